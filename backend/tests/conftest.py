"""
Pytest fixtures for gate pass backend tests.

Provides the in-memory test database, an authenticated user and the Flask
test client.
"""

import pytest

from gatepass import create_app
from gatepass.extensions import db
from gatepass.models import Destination
from gatepass.services import session_service
from gatepass.services.auth_service import create_user


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'GATEPASS_DEFAULT_DESTINATION_ID': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def user(db_session):
    """Gate desk user. Low bcrypt cost keeps the suite fast."""
    return create_user("guard@example.com", TEST_PASSWORD, name="Gate Desk", rounds=4)


@pytest.fixture(scope='function')
def token(user):
    _, plaintext = session_service.create_session(user_id=user.id)
    return plaintext


@pytest.fixture(scope='function')
def auth_headers(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def destination(db_session):
    """Create the Central Lab destination."""
    dest = Destination(name="Central Lab", code="CLAB", email="lab@example.com", is_active=True)
    db_session.add(dest)
    db_session.commit()
    return dest


def pass_payload(**overrides) -> dict:
    """Minimal create payload as the pass form sends it."""
    payload = {
        "date": "2024-03-05T00:00:00.000+05:30",
        "destination": "CLAB",
        "carriedBy": "Ravi",
        "through": "Hand",
        "mobileNo": "9876543210",
        "items": [
            {"description": "Laptop", "makeItem": "Dell", "model": "Latitude 5420", "serialNo": "SN-001", "qty": 1},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_payload():
    return pass_payload


class FakeGatePassApi:
    """
    In-memory stand-in for GatePassApi used by the client core tests.

    - calls: every call as (method, *args)
    - fail: method name -> exception to raise
    - gate: optional asyncio.Event that list_destinations waits on
    """

    def __init__(self, records=None, destinations=None):
        self.records = list(records or [])
        self.destinations = list(destinations or [])
        self.calls = []
        self.fail = {}
        self.gate = None
        self.create_response = None
        self.token = None

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail:
            raise self.fail[name]

    def count(self, name) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def set_token(self, token):
        self.token = token

    def clear_token(self):
        self.token = None

    async def list_records(self, **kwargs):
        self._record("list_records")
        return list(self.records)

    async def list_destinations(self):
        self._record("list_destinations")
        if self.gate is not None:
            await self.gate.wait()
        return list(self.destinations)

    async def create_record(self, payload):
        self._record("create_record", payload)
        if self.create_response is not None:
            return self.create_response
        return {"success": True, "gatePassId": payload["id"], "gatepassNo": payload["gatepassNo"]}

    async def update_record(self, record_id, payload):
        self._record("update_record", record_id, payload)
        return {"success": True, "message": "Gate pass updated"}

    async def set_enabled(self, record_id, enabled):
        self._record("set_enabled", record_id, enabled)
        return {"success": True}

    async def delete_record(self, record_id):
        self._record("delete_record", record_id)
        return {"success": True}

    async def create_destination(self, payload):
        self._record("create_destination", payload)
        return {"success": True, "id": 42, "message": "Destination created", "data": {**payload, "id": 42}}

    async def login(self, email, password):
        self._record("login", email, password)
        return {
            "success": True,
            "token": "t" * 64,
            "user": {"id": 7, "email": email.strip().lower(), "name": "Gate Desk"},
        }

    async def logout(self):
        self._record("logout")
        return {"success": True}


@pytest.fixture
def fake_api():
    return FakeGatePassApi()
