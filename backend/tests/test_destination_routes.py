import pytest


class TestListDestinations:
    def test_requires_auth(self, client, db_session):
        assert client.get("/api/dest").status_code == 401

    def test_camel_case_rows(self, client, auth_headers, destination):
        body = client.get("/api/dest", headers=auth_headers).get_json()
        assert body["success"] is True
        assert body["data"] == [{
            "id": destination.id,
            "destinationName": "Central Lab",
            "destinationCode": "CLAB",
            "emailID": "lab@example.com",
            "isActive": 1,
            "createdAt": body["data"][0]["createdAt"],
        }]

    def test_active_only(self, client, auth_headers, destination):
        client.post(
            "/api/dest/create",
            json={"destinationName": "Old Store", "destinationCode": "OLD", "isActive": 0},
            headers=auth_headers,
        )
        all_codes = [d["destinationCode"] for d in client.get("/api/dest", headers=auth_headers).get_json()["data"]]
        active = client.get("/api/dest?active_only=1", headers=auth_headers).get_json()["data"]
        assert sorted(all_codes) == ["CLAB", "OLD"]
        assert [d["destinationCode"] for d in active] == ["CLAB"]


class TestCreateDestination:
    def test_create(self, client, auth_headers, db_session):
        resp = client.post(
            "/api/dest/create",
            json={"DestinationName": "Branch Office", "DestinationCode": "br01", "EmailID": ""},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["success"] is True
        assert body["id"] == body["data"]["id"]
        assert body["data"]["destinationCode"] == "BR01"
        assert body["data"]["emailID"] is None

    def test_duplicate_code_ignoring_case(self, client, auth_headers, destination):
        resp = client.post(
            "/api/dest/create",
            json={"destinationName": "Another Lab", "destinationCode": "clab"},
            headers=auth_headers,
        )
        assert resp.status_code == 409
        assert resp.get_json()["success"] is False

    @pytest.mark.parametrize("payload", [{}, {"destinationName": "No Code"}, {"destinationCode": "NONAME"}])
    def test_missing_fields(self, client, auth_headers, db_session, payload):
        resp = client.post("/api/dest/create", json=payload, headers=auth_headers)
        assert resp.status_code == 400
