"""
Session lifecycle tests: login, validate, logout, idle timeout.
"""

from datetime import timedelta

from gatepass.models import SessionToken
from gatepass.services import session_service
from gatepass.time_utils import utcnow


TEST_PASSWORD = "Password123!"


def _login(client, email="guard@example.com", password=TEST_PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


class TestLogin:
    def test_login_returns_token(self, client, user):
        resp = _login(client)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["user"]["email"] == "guard@example.com"
        assert len(body["token"]) == 64

    def test_email_is_case_insensitive(self, client, user):
        assert _login(client, email="  Guard@Example.COM ").status_code == 200

    def test_username_key_accepted(self, client, user):
        resp = client.post("/api/auth/login", json={"username": "guard@example.com", "password": TEST_PASSWORD})
        assert resp.status_code == 200

    def test_wrong_password(self, client, user):
        resp = _login(client, password="Wrong123!")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid credentials"

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={}).status_code == 400

    def test_inactive_user(self, client, user, db_session):
        user.is_active = False
        db_session.commit()
        assert _login(client).status_code == 401


class TestSessionLifecycle:
    def test_validate_and_logout(self, client, user):
        token = _login(client).get_json()["token"]
        headers = {"Authorization": f"Bearer {token}"}

        resp = client.post("/api/auth/validate", headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["email"] == "guard@example.com"

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.post("/api/auth/validate", headers=headers).status_code == 401
        assert client.get("/api/gatepass", headers=headers).status_code == 401

    def test_logout_without_token(self, client, db_session):
        assert client.post("/api/auth/logout").status_code == 401

    def test_idle_session_revoked(self, client, token, auth_headers, db_session):
        session = db_session.query(SessionToken).filter_by(token_hash=session_service.hash_token(token)).one()
        session.last_used_at = utcnow() - session_service.SESSION_IDLE_TIMEOUT - timedelta(minutes=1)
        db_session.commit()

        assert client.get("/api/gatepass", headers=auth_headers).status_code == 401
        db_session.refresh(session)
        assert session.is_revoked is True
        assert session.revoked_reason == "Idle timeout"


def test_health(client, db_session):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "healthy"


def test_only_health_is_exposed(client, db_session):
    assert client.get("/version").status_code == 404
