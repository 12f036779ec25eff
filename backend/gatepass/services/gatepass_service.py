# backend/gatepass/services/gatepass_service.py
"""
Gate pass service.

WHY: Single place where passes are issued, edited, enabled/disabled and
listed, so the numbering and normalization rules hold no matter which
route or command touches a pass.

LIFECYCLE:
1. create: pass number allocated atomically, lines normalized
2. update: fields and lines rewritten, modified_by/modified_at stamped
3. set_enabled: soft delete / restore; disabled passes are read-only
4. delete: rollback compensator for failed creation flows only
"""
from __future__ import annotations

import math
import uuid

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from gatepass.extensions import db
from gatepass.models import GatePass, GatePassItem
from gatepass.services.concurrency import run_with_retry
from gatepass.services.destination_service import resolve_destination_id
from gatepass.services.sequence_service import allocate_pass_number
from gatepass.time_utils import utcnow
from gatepass.validation import (
    ConflictError,
    ModelValidationPolicy,
    TEXT_FIELD_MAX_LENGTH,
    ValidationError,
    coerce_boolean,
    coerce_quantity,
    placeholder_if_blank,
    remap_keys,
    validate_payload,
)


DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100
MAX_ITEMS_PER_PASS = 100

GATEPASS_POLICY = ModelValidationPolicy(
    writable_fields={
        "pass_date",
        "destination_code",
        "destination_id",
        "carried_by",
        "through",
        "mobile_no",
        "returnable",
    },
    required_on_create={"pass_date", "destination_code"},
)

GATEPASS_ALIASES = {
    "pass_date": ("date", "Date"),
    "destination_code": ("destinationCode", "DestinationCode", "destination", "Destination"),
    "destination_id": ("destinationId", "DestinationId", "DestinationID"),
    "carried_by": ("carriedBy", "CarriedBy"),
    "through": ("through", "Through"),
    "mobile_no": ("mobileNo", "MobileNo"),
    "returnable": ("returnable", "Returnable"),
}

ITEM_ALIASES = {
    "description": ("description", "Description"),
    "make": ("makeItem", "MakeItem", "make"),
    "model": ("model", "Model"),
    "serial_no": ("serialNo", "SerialNo", "serial_no"),
    "qty": ("qty", "Qty", "quantity"),
}


class GatePassError(Exception):
    """Raised when gate pass operations fail."""
    pass


class GatePassNotFoundError(GatePassError):
    """Raised when no gate pass has the requested id."""
    pass


def normalize_item_lines(raw_items) -> list[dict]:
    """
    Clean item lines from a payload.

    - blank text fields become the "N/A" placeholder
    - qty becomes an int of at least 1
    - sl_no is renumbered 1..n in the order given
    - an empty list yields one placeholder line (a pass always has a line)
    """
    if raw_items is None:
        raw_items = []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")
    if len(raw_items) > MAX_ITEMS_PER_PASS:
        raise ValidationError(f"A gate pass can carry at most {MAX_ITEMS_PER_PASS} items")

    lines = []
    for raw in raw_items or [{}]:
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object")
        fields = remap_keys(raw, ITEM_ALIASES)
        line = {
            key: placeholder_if_blank(fields.get(key))
            for key in ("description", "make", "model", "serial_no")
        }
        for key, value in line.items():
            if len(value) > TEXT_FIELD_MAX_LENGTH:
                raise ValidationError(f"Item {key} exceeds max length {TEXT_FIELD_MAX_LENGTH}")
        line["qty"] = coerce_quantity(fields.get("qty"))
        lines.append(line)

    for index, line in enumerate(lines, start=1):
        line["sl_no"] = index
    return lines


def _apply_lines(gate_pass: GatePass, lines: list[dict]) -> None:
    """
    Write normalized lines onto a pass, reusing existing rows in place.

    Rows are updated rather than replaced so (gate_pass_id, sl_no) stays
    unique throughout the flush.
    """
    existing = list(gate_pass.items)
    for index, line in enumerate(lines):
        if index < len(existing):
            row = existing[index]
            for key, value in line.items():
                setattr(row, key, value)
        else:
            gate_pass.items.append(GatePassItem(**line))
    for row in existing[len(lines):]:
        gate_pass.items.remove(row)


def _default_destination_id() -> int:
    return current_app.config.get("GATEPASS_DEFAULT_DESTINATION_ID", 1)


def get_gate_pass(gate_pass_id: str) -> GatePass:
    gate_pass = db.session.get(GatePass, gate_pass_id)
    if gate_pass is None:
        raise GatePassNotFoundError(f"Gate pass {gate_pass_id} not found")
    return gate_pass


def create_gate_pass(*, payload: dict, created_by: str) -> GatePass:
    """
    Issue a new gate pass.

    The pass number is always allocated here; a number proposed by the
    client is only compared and logged. The client's id is kept as the
    primary key when supplied.

    Raises:
        ValidationError: bad payload
        ConflictError: id already used, or number collided with stored data
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    def _op() -> GatePass:
        gate_pass_id = str(payload.get("id") or "").strip() or uuid.uuid4().hex
        if len(gate_pass_id) > 64:
            raise ValidationError("id exceeds max length 64")
        if db.session.get(GatePass, gate_pass_id) is not None:
            raise ConflictError(f"Gate pass {gate_pass_id} already exists")

        patch = validate_payload(
            model=GatePass,
            payload=remap_keys(payload, GATEPASS_ALIASES),
            policy=GATEPASS_POLICY,
            partial=False,
        )
        lines = normalize_item_lines(payload.get("items"))

        number = allocate_pass_number(patch["pass_date"])
        proposed = payload.get("gatepassNo") or payload.get("GatepassNo")
        if proposed and proposed != number:
            current_app.logger.info(
                "Client proposed %s for gate pass %s; issued %s", proposed, gate_pass_id, number
            )

        patch["destination_id"] = resolve_destination_id(
            patch.get("destination_id"),
            patch.get("destination_code"),
            default_id=_default_destination_id(),
        )
        patch["returnable"] = coerce_boolean(patch.get("returnable"), False)

        gate_pass = GatePass(
            id=gate_pass_id,
            gatepass_no=number,
            created_by=created_by,
            created_at=utcnow(),
            is_enabled=True,
            **patch,
        )
        _apply_lines(gate_pass, lines)
        db.session.add(gate_pass)
        try:
            db.session.flush()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError(f"Gate pass number {number} is already in use") from exc
        return gate_pass

    return run_with_retry(_op)


def update_gate_pass(*, gate_pass_id: str, payload: dict, modified_by: str) -> GatePass:
    """
    Edit an enabled gate pass.

    The pass number is immutable; a payload carrying a different one is
    rejected. Only fields present in the payload change.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    def _op() -> GatePass:
        gate_pass = get_gate_pass(gate_pass_id)
        if not gate_pass.is_enabled:
            raise ConflictError("This gate pass is disabled and cannot be edited.")

        number = payload.get("gatepassNo") or payload.get("GatepassNo")
        if number and number != gate_pass.gatepass_no:
            raise ValidationError("Gate pass number cannot be changed")

        patch = validate_payload(
            model=GatePass,
            payload=remap_keys(payload, GATEPASS_ALIASES),
            policy=GATEPASS_POLICY,
            partial=True,
        )
        if "destination_code" in patch and not patch["destination_code"]:
            raise ValidationError("destination_code cannot be blank")
        if "destination_code" in patch or "destination_id" in patch:
            patch["destination_id"] = resolve_destination_id(
                patch.get("destination_id"),
                patch.get("destination_code", gate_pass.destination_code),
                default_id=_default_destination_id(),
            )
        if "returnable" in patch:
            patch["returnable"] = coerce_boolean(patch["returnable"], False)

        for key, value in patch.items():
            setattr(gate_pass, key, value)

        if "items" in payload:
            _apply_lines(gate_pass, normalize_item_lines(payload.get("items")))

        gate_pass.modified_by = modified_by
        gate_pass.modified_at = utcnow()
        db.session.flush()
        return gate_pass

    return run_with_retry(_op)


def set_enabled(*, gate_pass_id: str, enabled: bool) -> GatePass:
    """Enable or disable (soft delete) a gate pass. Idempotent."""
    gate_pass = get_gate_pass(gate_pass_id)
    if gate_pass.is_enabled != enabled:
        gate_pass.is_enabled = enabled
        db.session.flush()
    return gate_pass


def delete_gate_pass(gate_pass_id: str) -> None:
    """
    Hard delete. Only used to roll back a creation whose follow-up step
    failed; the dashboard disables passes instead.
    """
    gate_pass = get_gate_pass(gate_pass_id)
    db.session.delete(gate_pass)
    db.session.flush()


def _search_query(search: str | None = None, enabled: bool | None = None):
    query = db.session.query(GatePass)
    if enabled is not None:
        query = query.filter(GatePass.is_enabled.is_(enabled))
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                GatePass.gatepass_no.ilike(pattern),
                GatePass.destination_code.ilike(pattern),
                GatePass.carried_by.ilike(pattern),
                GatePass.created_by.ilike(pattern),
            )
        )
    return query.order_by(GatePass.created_at.desc(), GatePass.gatepass_no.desc())


def search_gate_passes(*, search: str | None = None, enabled: bool | None = None) -> list[GatePass]:
    return _search_query(search, enabled).all()


def list_gate_passes(
    *,
    search: str | None = None,
    enabled: bool | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Gate pass listing with optional search and pagination.

    Args:
        search: case-insensitive substring of pass number, destination,
            carried-by or created-by
        enabled: True/False to filter on the enabled flag, None for all
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    query = _search_query(search, enabled)

    if page is None:
        passes = query.all()
        return {
            "items": [p.to_dict() for p in passes],
            "count": len(passes),
        }

    page = max(1, page)
    per_page = per_page or DEFAULT_PER_PAGE
    per_page = max(1, min(per_page, MAX_PER_PAGE))

    total = query.count()
    passes = query.offset((page - 1) * per_page).limit(per_page).all()
    return {
        "items": [p.to_dict() for p in passes],
        "count": len(passes),
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if total else 0,
    }
