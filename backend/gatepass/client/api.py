# Overview: Async HTTP client for the gate pass API; every call returns the decoded JSON envelope.

"""
Thin async wrapper over the gate pass HTTP API.

Every response body is the {"success": ..., "message": ...} envelope. A
non-2xx status, an undecodable body or "success": false all raise
ApiError carrying the server's message, so callers only ever handle one
failure type from here.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .config import ClientConfig
from .errors import ApiError


logger = logging.getLogger(__name__)


def _records_from(body: Any) -> list:
    """Rows from a list response: {"data": [...]} or {"recordset": [...]}."""
    if isinstance(body, list):
        return body
    if not isinstance(body, dict):
        return []
    for key in ("data", "recordset"):
        rows = body.get(key)
        if isinstance(rows, list):
            return rows
    return []


def _message_from(body: Any, default: str) -> str:
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return default


class GatePassApi:
    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._token: Optional[str] = None
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            timeout=config.timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Session token
    # ------------------------------------------------------------------

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token or None

    def clear_token(self) -> None:
        self._token = None

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TimeoutException as e:
            logger.error("%s %s timed out after %ss", method, path, self.config.timeout)
            raise ApiError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ApiError(f"Request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = _message_from(body, f"HTTP {response.status_code}")
            logger.warning("%s %s -> %s: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code)
        if not isinstance(body, dict):
            raise ApiError("Unexpected response from server", status_code=response.status_code)
        if body.get("success") is False:
            raise ApiError(_message_from(body, "Request was not successful"), status_code=response.status_code)
        return body

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GatePassApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Gate passes
    # ------------------------------------------------------------------

    async def list_records(self, *, search: Optional[str] = None, enabled: Optional[bool] = None) -> list:
        params = {}
        if search:
            params["q"] = search
        if enabled is not None:
            params["enabled"] = "true" if enabled else "false"
        body = await self._request("GET", "/api/gatepass", params=params)
        return _records_from(body)

    async def get_record(self, record_id: str) -> dict:
        body = await self._request("GET", f"/api/gatepass/{record_id}")
        return body.get("data") or {}

    async def create_record(self, payload: dict) -> dict:
        return await self._request("POST", "/api/gatepass", json=payload)

    async def update_record(self, record_id: str, payload: dict) -> dict:
        return await self._request("PUT", f"/api/gatepass/{record_id}", json=payload)

    async def set_enabled(self, record_id: str, enabled: bool) -> dict:
        return await self._request("PATCH", f"/api/gatepass/{record_id}/status", json={"isEnable": enabled})

    async def delete_record(self, record_id: str) -> dict:
        return await self._request("DELETE", f"/api/gatepass/{record_id}")

    async def preview_next_number(self, pass_date: str) -> str:
        body = await self._request("GET", "/api/gatepass/next-number", params={"date": pass_date})
        return body.get("gatepassNo") or ""

    # ------------------------------------------------------------------
    # Destinations
    # ------------------------------------------------------------------

    async def list_destinations(self) -> list:
        body = await self._request("GET", "/api/dest")
        return _records_from(body)

    async def create_destination(self, payload: dict) -> dict:
        return await self._request("POST", "/api/dest/create", json=payload)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> dict:
        return await self._request("POST", "/api/auth/login", json={"email": email, "password": password})

    async def logout(self) -> dict:
        return await self._request("POST", "/api/auth/logout")

    async def validate(self) -> dict:
        return await self._request("POST", "/api/auth/validate")
