"""
Gate pass API tests.

Verifies:
- Creation allocates numbers server-side and normalizes item lines
- Edits stamp modifiedBy and refuse disabled passes
- Enable/disable, delete, listing filters, CSV export
"""

import csv
import io

import pytest

from gatepass.models import GatePass


def _create(client, auth_headers, payload):
    resp = client.post("/api/gatepass", json=payload, headers=auth_headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


class TestUnauthenticatedAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/gatepass"),
            ("POST", "/api/gatepass"),
            ("GET", "/api/gatepass/abc"),
            ("PUT", "/api/gatepass/abc"),
            ("PATCH", "/api/gatepass/abc/status"),
            ("DELETE", "/api/gatepass/abc"),
            ("GET", "/api/gatepass/export"),
            ("GET", "/api/gatepass/next-number?date=2024-03-05"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401
        assert resp.get_json()["success"] is False


class TestCreate:
    def test_first_pass_of_day(self, client, auth_headers, destination, make_payload):
        body = _create(client, auth_headers, make_payload())
        assert body["success"] is True
        assert body["gatepassNo"] == "SDLGP05032024-0001"
        assert body["data"]["destinationId"] == destination.id
        assert body["data"]["createdBy"] == "guard@example.com"
        assert body["data"]["date"] == "2024-03-05"
        assert body["data"]["isEnable"] is True

    def test_numbers_increment_and_client_proposal_ignored(self, client, auth_headers, destination, make_payload):
        _create(client, auth_headers, make_payload())
        body = _create(client, auth_headers, make_payload(gatepassNo="SDLGP05032024-0001"))
        assert body["gatepassNo"] == "SDLGP05032024-0002"

    def test_client_id_kept(self, client, auth_headers, destination, make_payload):
        body = _create(client, auth_headers, make_payload(id="18e2f1c9a3b-abc123"))
        assert body["gatePassId"] == "18e2f1c9a3b-abc123"

    def test_duplicate_id_conflict(self, client, auth_headers, destination, make_payload):
        _create(client, auth_headers, make_payload(id="dup-1"))
        resp = client.post("/api/gatepass", json=make_payload(id="dup-1"), headers=auth_headers)
        assert resp.status_code == 409

    def test_day_counter_wins_over_stored_numbers(self, client, auth_headers, db_session, destination, make_payload):
        _create(client, auth_headers, make_payload(id="first"))
        db_session.query(GatePass).filter_by(id="first").update({"gatepass_no": "SDLGP05032024-0007"})
        db_session.commit()
        # Counter row already exists, so the stored numbers are not rescanned
        body = _create(client, auth_headers, make_payload())
        assert body["gatepassNo"] == "SDLGP05032024-0002"

    def test_items_normalized(self, client, auth_headers, destination, make_payload):
        body = _create(client, auth_headers, make_payload(items=[
            {"description": "  ", "makeItem": None, "model": "X1", "serialNo": "", "qty": 0},
            {"Description": "Monitor", "MakeItem": "LG", "Qty": "3"},
        ]))
        items = body["data"]["items"]
        assert [i["slNo"] for i in items] == [1, 2]
        assert items[0] == {
            "slNo": 1, "description": "N/A", "makeItem": "N/A", "model": "X1", "serialNo": "N/A", "qty": 1,
        }
        assert items[1]["description"] == "Monitor"
        assert items[1]["qty"] == 3

    def test_empty_items_get_placeholder_line(self, client, auth_headers, destination, make_payload):
        body = _create(client, auth_headers, make_payload(items=[]))
        assert body["data"]["items"] == [
            {"slNo": 1, "description": "N/A", "makeItem": "N/A", "model": "N/A", "serialNo": "N/A", "qty": 1}
        ]

    def test_unknown_destination_uses_default(self, client, auth_headers, db_session, make_payload):
        body = _create(client, auth_headers, make_payload(destination="NOWHERE"))
        assert body["data"]["destinationId"] == 1
        assert body["data"]["destinationCode"] == "NOWHERE"

    def test_destination_code_matched_ignoring_case(self, client, auth_headers, destination, make_payload):
        body = _create(client, auth_headers, make_payload(destination="clab"))
        assert body["data"]["destinationId"] == destination.id

    def test_missing_date_rejected(self, client, auth_headers, destination, make_payload):
        payload = make_payload()
        del payload["date"]
        resp = client.post("/api/gatepass", json=payload, headers=auth_headers)
        assert resp.status_code == 400
        assert "pass_date" in resp.get_json()["message"]

    def test_unreadable_date_rejected(self, client, auth_headers, destination, make_payload):
        resp = client.post("/api/gatepass", json=make_payload(date="yesterday"), headers=auth_headers)
        assert resp.status_code == 400


class TestUpdate:
    def test_update_stamps_modifier(self, client, auth_headers, destination, make_payload):
        created = _create(client, auth_headers, make_payload())
        resp = client.put(
            f"/api/gatepass/{created['gatePassId']}",
            json={"carriedBy": "Suresh", "items": [{"description": "Router", "qty": 2}]},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["carriedBy"] == "Suresh"
        assert data["gatepassNo"] == created["gatepassNo"]
        assert data["modifiedBy"] == "guard@example.com"
        assert data["modifiedAt"] is not None
        assert data["items"] == [
            {"slNo": 1, "description": "Router", "makeItem": "N/A", "model": "N/A", "serialNo": "N/A", "qty": 2}
        ]

    def test_number_cannot_change(self, client, auth_headers, destination, make_payload):
        created = _create(client, auth_headers, make_payload())
        resp = client.put(
            f"/api/gatepass/{created['gatePassId']}",
            json={"gatepassNo": "SDLGP05032024-9999"},
            headers=auth_headers,
        )
        assert resp.status_code == 400

    def test_disabled_pass_is_read_only(self, client, auth_headers, destination, make_payload):
        created = _create(client, auth_headers, make_payload())
        client.patch(f"/api/gatepass/{created['gatePassId']}/status", json={"isEnable": False}, headers=auth_headers)
        resp = client.put(
            f"/api/gatepass/{created['gatePassId']}",
            json={"carriedBy": "Someone"},
            headers=auth_headers,
        )
        assert resp.status_code == 409
        assert resp.get_json()["message"] == "This gate pass is disabled and cannot be edited."

    def test_missing_pass(self, client, auth_headers, db_session):
        resp = client.put("/api/gatepass/nope", json={"carriedBy": "x"}, headers=auth_headers)
        assert resp.status_code == 404


class TestStatusAndDelete:
    def test_toggle_status(self, client, auth_headers, destination, make_payload):
        created = _create(client, auth_headers, make_payload())
        url = f"/api/gatepass/{created['gatePassId']}/status"

        resp = client.patch(url, json={"isEnable": 0}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["isEnable"] is False

        resp = client.patch(url, json={"IsEnable": "1"}, headers=auth_headers)
        assert resp.get_json()["data"]["isEnable"] is True

    def test_status_requires_flag(self, client, auth_headers, destination, make_payload):
        created = _create(client, auth_headers, make_payload())
        resp = client.patch(f"/api/gatepass/{created['gatePassId']}/status", json={}, headers=auth_headers)
        assert resp.status_code == 400

    def test_delete(self, client, auth_headers, destination, make_payload):
        created = _create(client, auth_headers, make_payload())
        resp = client.delete(f"/api/gatepass/{created['gatePassId']}", headers=auth_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/gatepass/{created['gatePassId']}", headers=auth_headers).status_code == 404


class TestListing:
    @pytest.fixture
    def three_passes(self, client, auth_headers, destination, make_payload):
        a = _create(client, auth_headers, make_payload(carriedBy="Ravi"))
        b = _create(client, auth_headers, make_payload(carriedBy="Meena", destination="HQ"))
        c = _create(client, auth_headers, make_payload(carriedBy="Arun"))
        client.patch(f"/api/gatepass/{c['gatePassId']}/status", json={"isEnable": False}, headers=auth_headers)
        return a, b, c

    def test_list_all(self, client, auth_headers, three_passes):
        body = client.get("/api/gatepass", headers=auth_headers).get_json()
        assert body["success"] is True
        assert body["count"] == 3

    def test_enabled_filter(self, client, auth_headers, three_passes):
        body = client.get("/api/gatepass?enabled=false", headers=auth_headers).get_json()
        assert [p["carriedBy"] for p in body["data"]] == ["Arun"]

    def test_search(self, client, auth_headers, three_passes):
        body = client.get("/api/gatepass?q=hq", headers=auth_headers).get_json()
        assert [p["carriedBy"] for p in body["data"]] == ["Meena"]

    def test_pagination(self, client, auth_headers, three_passes):
        body = client.get("/api/gatepass?page=2&per_page=2", headers=auth_headers).get_json()
        assert body["total"] == 3
        assert body["pages"] == 2
        assert body["count"] == 1

    def test_export_csv(self, client, auth_headers, three_passes):
        resp = client.get("/api/gatepass/export?enabled=true", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert "attachment" in resp.headers["Content-Disposition"]
        rows = list(csv.reader(io.StringIO(resp.get_data(as_text=True))))
        assert rows[0][0] == "Gate Pass No"
        assert len(rows) == 3
        assert {row[3] for row in rows[1:]} == {"Ravi", "Meena"}

    def test_next_number_preview(self, client, auth_headers, three_passes):
        body = client.get("/api/gatepass/next-number?date=05-03-2024", headers=auth_headers).get_json()
        assert body["gatepassNo"] == "SDLGP05032024-0004"

    def test_next_number_requires_date(self, client, auth_headers, db_session):
        resp = client.get("/api/gatepass/next-number", headers=auth_headers)
        assert resp.status_code == 400
