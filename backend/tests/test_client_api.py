import json

import httpx
import pytest

from gatepass.client.api import GatePassApi
from gatepass.client.config import ClientConfig
from gatepass.client.errors import ApiError


def make_api(handler) -> GatePassApi:
    return GatePassApi(
        ClientConfig(api_url="http://gatepass.test", timeout=2.0),
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_list_reads_data_key():
    def handler(request):
        assert request.url.path == "/api/gatepass"
        return httpx.Response(200, json={"success": True, "data": [{"id": "a"}], "count": 1})

    api = make_api(handler)
    assert await api.list_records() == [{"id": "a"}]
    await api.aclose()


@pytest.mark.asyncio
async def test_list_reads_recordset_key():
    def handler(request):
        return httpx.Response(200, json={"success": True, "recordset": [{"Id": 1}]})

    async with make_api(handler) as api:
        assert await api.list_destinations() == [{"Id": 1}]


@pytest.mark.asyncio
async def test_filters_sent_as_query_params():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"success": True, "data": []})

    async with make_api(handler) as api:
        await api.list_records(search="CLAB", enabled=False)
    assert seen == {"q": "CLAB", "enabled": "false"}


@pytest.mark.asyncio
async def test_bearer_token_header():
    headers = []

    def handler(request):
        headers.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={"success": True, "data": []})

    async with make_api(handler) as api:
        await api.list_records()
        api.set_token("abc")
        await api.list_records()
        api.clear_token()
        await api.list_records()
    assert headers == [None, "Bearer abc", None]


@pytest.mark.asyncio
async def test_create_posts_json():
    def handler(request):
        assert request.method == "POST"
        body = json.loads(request.content)
        return httpx.Response(
            201,
            json={"success": True, "gatePassId": body["id"], "gatepassNo": "SDLGP05032024-0001"},
        )

    async with make_api(handler) as api:
        result = await api.create_record({"id": "x1", "date": "2024-03-05"})
    assert result["gatePassId"] == "x1"
    assert result["gatepassNo"] == "SDLGP05032024-0001"


@pytest.mark.asyncio
async def test_http_error_carries_server_message():
    def handler(request):
        return httpx.Response(409, json={"success": False, "message": "This gate pass is disabled and cannot be edited."})

    async with make_api(handler) as api:
        with pytest.raises(ApiError) as exc_info:
            await api.update_record("x1", {})
    assert exc_info.value.status_code == 409
    assert str(exc_info.value) == "This gate pass is disabled and cannot be edited."


@pytest.mark.asyncio
async def test_success_false_with_200_is_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "Insert failed"})

    async with make_api(handler) as api:
        with pytest.raises(ApiError, match="Insert failed"):
            await api.create_record({})


@pytest.mark.asyncio
async def test_non_json_error_uses_status():
    def handler(request):
        return httpx.Response(502, text="<html>Bad Gateway</html>")

    async with make_api(handler) as api:
        with pytest.raises(ApiError, match="HTTP 502"):
            await api.list_records()


@pytest.mark.asyncio
async def test_timeout_becomes_api_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with make_api(handler) as api:
        with pytest.raises(ApiError, match="timed out"):
            await api.list_records()


@pytest.mark.asyncio
async def test_set_enabled_and_delete_paths():
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path, request.content))
        return httpx.Response(200, json={"success": True})

    async with make_api(handler) as api:
        await api.set_enabled("x1", False)
        await api.delete_record("x1")
    assert calls[0][:2] == ("PATCH", "/api/gatepass/x1/status")
    assert json.loads(calls[0][2]) == {"isEnable": False}
    assert calls[1][:2] == ("DELETE", "/api/gatepass/x1")
