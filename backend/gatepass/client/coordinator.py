# Overview: Client-side gate pass lifecycle: create with rollback, edit, enable/disable.

"""
Gate pass lifecycle coordinator.

CREATE FLOW (strictly sequential, one await at a time):
1. temporary id for the new record
2. last issued number for the pass date (abort before sending anything
   if this fails)
3. next number proposed locally
4. destination id: given id, else cached destination with the same code,
   else the default destination
5. item lines normalized
6. submit; the server's id and number win over the local ones
7. optional downstream step (printing); if it fails the record is deleted
   again and the step's error re-raised

The server allocates the authoritative number, so two desks proposing the
same number never end up with duplicate passes.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import secrets
import time
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Union

from gatepass.numbering import next_pass_number
from gatepass.time_utils import DateLike, to_business_iso
from gatepass.validation import coerce_quantity, placeholder_if_blank

from .api import GatePassApi
from .cache import DestinationCache, match_destination
from .config import DEFAULT_DESTINATION_ID
from .dto import (
    DestinationRecord,
    PassDraft,
    PassItem,
    PassRecord,
    item_to_wire,
    normalize_destination,
    normalize_pass_record,
)
from .errors import ApiError, CreationError, GatePassClientError, RollbackError, UpdateError
from .resolver import PassNumberResolver
from .session import SessionIdentity


logger = logging.getLogger(__name__)

OnCreated = Callable[[PassRecord], Union[None, Awaitable[None]]]


def generate_temp_id() -> str:
    """Time-ordered id with a random tail, e.g. '18e2f1c9a3b-5f0c2a9e71d4'."""
    return f"{int(time.time() * 1000):x}-{secrets.token_hex(6)}"


def wire_date(value: DateLike) -> str:
    """Native dates go out as +05:30 ISO strings; strings are sent as given."""
    if isinstance(value, (date, datetime)):
        return to_business_iso(value)
    return value


def normalize_items(items: Optional[List[PassItem]]) -> List[PassItem]:
    """
    Item lines as they are sent: blank text becomes "N/A", qty is at least 1,
    sl_no runs 1..n, and an empty list becomes one placeholder line.
    """
    source = list(items or []) or [PassItem()]
    return [
        PassItem(
            sl_no=index,
            description=placeholder_if_blank(item.description),
            make=placeholder_if_blank(item.make),
            model=placeholder_if_blank(item.model),
            serial_no=placeholder_if_blank(item.serial_no),
            qty=coerce_quantity(item.qty),
        )
        for index, item in enumerate(source, start=1)
    ]


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class GatePassCoordinator:
    def __init__(
        self,
        api: GatePassApi,
        cache: DestinationCache,
        resolver: Optional[PassNumberResolver] = None,
        *,
        default_destination_id: int = DEFAULT_DESTINATION_ID,
    ):
        self.api = api
        self.cache = cache
        self.resolver = resolver or PassNumberResolver(api)
        self.default_destination_id = default_destination_id

    async def resolve_destination_id(
        self,
        destination_id: Any,
        destination_code: Optional[str],
        identity: Optional[SessionIdentity],
    ) -> int:
        given = _positive_int(destination_id)
        if given is not None:
            return given
        try:
            records = await self.cache.get(identity)
        except GatePassClientError as e:
            logger.warning("Destination lookup failed, using default destination: %s", e)
            return self.default_destination_id
        match = match_destination(records, destination_code)
        matched_id = _positive_int(match.id) if match is not None else None
        if matched_id is None:
            logger.info(
                "Destination %r not found, using default destination %s",
                destination_code,
                self.default_destination_id,
            )
            return self.default_destination_id
        return matched_id

    async def create(
        self,
        draft: PassDraft,
        identity: SessionIdentity,
        on_created: Optional[OnCreated] = None,
    ) -> PassRecord:
        """
        Issue a gate pass.

        Raises:
            FormatError: the draft date cannot be read
            SequenceResolutionError: existing passes could not be listed
            CreationError: the server rejected the pass or was unreachable
        """
        temp_id = generate_temp_id()
        last_issued = await self.resolver.resolve_last_issued(draft.date)
        proposed = next_pass_number(draft.date, last_issued)
        destination_id = await self.resolve_destination_id(
            draft.destination_id, draft.destination_code, identity
        )
        items = normalize_items(draft.items)

        payload = {
            "id": temp_id,
            "gatepassNo": proposed,
            "date": wire_date(draft.date),
            "destination": draft.destination_code,
            "destinationId": destination_id,
            "carriedBy": draft.carried_by,
            "through": draft.through,
            "mobileNo": draft.mobile_no,
            "returnable": draft.returnable,
            "createdBy": identity.email,
            "items": [item_to_wire(item) for item in items],
        }
        try:
            body = await self.api.create_record(payload)
        except ApiError as e:
            raise CreationError(f"Failed to create gate pass: {e}") from e

        record_id = body.get("gatePassId") or temp_id
        number = body.get("gatepassNo") or proposed
        if number != proposed:
            logger.info("Server issued %s instead of proposed %s", number, proposed)

        data = body.get("data")
        if isinstance(data, dict):
            record = dataclasses.replace(normalize_pass_record(data), id=record_id, pass_number=number)
        else:
            record = PassRecord(
                id=record_id,
                pass_number=number,
                date=draft.date,
                destination_code=draft.destination_code,
                destination_id=destination_id,
                carried_by=draft.carried_by,
                through=draft.through,
                mobile_no=draft.mobile_no,
                items=items,
                enabled=True,
                returnable=draft.returnable,
                created_by=identity.email,
                created_at=datetime.now(timezone.utc),
            )

        if on_created is not None:
            try:
                result = on_created(record)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Post-create step failed for %s, rolling back", record.pass_number)
                await self.rollback(record.id)
                raise
        return record

    async def update(self, record: PassRecord, identity: SessionIdentity) -> PassRecord:
        """
        Save edits to an existing pass and return the updated copy.

        ``record`` itself is left untouched. Disabled passes are refused
        without contacting the server.
        """
        if not record.enabled:
            raise UpdateError("This gate pass is disabled and cannot be edited.")

        destination_id = await self.resolve_destination_id(
            record.destination_id, record.destination_code, identity
        )
        items = normalize_items(record.items)
        modified_at = datetime.now(timezone.utc)

        payload = {
            "gatepassNo": record.pass_number,
            "date": wire_date(record.date),
            "destination": record.destination_code,
            "destinationId": destination_id,
            "carriedBy": record.carried_by,
            "through": record.through,
            "mobileNo": record.mobile_no,
            "returnable": record.returnable,
            "modifiedBy": identity.email,
            "modifiedAt": to_business_iso(modified_at),
            "items": [item_to_wire(item) for item in items],
        }
        try:
            await self.api.update_record(record.id, payload)
        except ApiError as e:
            raise UpdateError(f"Failed to update gate pass: {e}") from e

        return dataclasses.replace(
            record,
            destination_id=destination_id,
            items=items,
            modified_by=identity.email,
            modified_at=modified_at,
        )

    async def set_enabled(self, record: PassRecord, enabled: bool, identity: SessionIdentity) -> PassRecord:
        try:
            await self.api.set_enabled(record.id, enabled)
        except ApiError as e:
            raise UpdateError(f"Failed to update gate pass status: {e}") from e
        logger.info(
            "%s %s gate pass %s", identity.email, "enabled" if enabled else "disabled", record.pass_number
        )
        return dataclasses.replace(record, enabled=enabled)

    async def rollback(self, record_id: str) -> None:
        """Delete a just-created pass. Failures are logged, never raised."""
        try:
            await self.api.delete_record(record_id)
        except Exception as e:
            error = RollbackError(f"Failed to roll back gate pass {record_id}: {e}")
            logger.error("%s", error)
            return
        logger.info("Rolled back gate pass %s", record_id)

    async def create_destination(
        self,
        identity: Optional[SessionIdentity],
        *,
        name: str,
        code: str,
        email: Optional[str] = None,
        active: bool = True,
    ) -> DestinationRecord:
        """Create a destination and merge it into the identity's cached list."""
        payload = {
            "destinationName": name,
            "destinationCode": code,
            "emailID": email,
            "isActive": 1 if active else 0,
        }
        body = await self.api.create_destination(payload)
        data = body.get("data")
        if isinstance(data, dict):
            record = normalize_destination(data, 0)
        else:
            record = normalize_destination({**payload, "id": body.get("id")}, 0)
        self.cache.upsert(identity, record)
        return record
