# Overview: Service-layer operations for destinations; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Destination
from ..validation import ModelValidationPolicy, ConflictError, remap_keys, validate_payload


DESTINATION_POLICY = ModelValidationPolicy(
    writable_fields={"name", "code", "email", "is_active"},
    required_on_create={"name", "code"},
)

# Wire names accepted for each column (camelCase from the web form, PascalCase from legacy callers)
DESTINATION_ALIASES = {
    "name": ("destinationName", "DestinationName", "name"),
    "code": ("destinationCode", "DestinationCode", "code"),
    "email": ("emailID", "EmailID", "email"),
    "is_active": ("isActive", "IsActive", "is_active"),
}


class DestinationError(Exception):
    """Raised when destination operations fail."""
    pass


def list_destinations(*, include_inactive: bool = True) -> list[Destination]:
    query = db.session.query(Destination)
    if not include_inactive:
        query = query.filter(Destination.is_active.is_(True))
    return query.order_by(Destination.name.asc(), Destination.id.asc()).all()


def find_by_code(code: str) -> Destination | None:
    """Case-insensitive lookup by destination code."""
    code = (code or "").strip()
    if not code:
        return None
    return (
        db.session.query(Destination)
        .filter(func.upper(Destination.code) == code.upper())
        .first()
    )


def create_destination(payload: dict) -> Destination:
    """
    Create a destination from a wire payload.

    Raises ValidationError on bad input and ConflictError when the code is
    already taken (ignoring case).
    """
    patch = validate_payload(
        model=Destination,
        payload=remap_keys(payload or {}, DESTINATION_ALIASES),
        policy=DESTINATION_POLICY,
        partial=False,
    )
    patch["code"] = patch["code"].upper()
    if patch.get("email") == "":
        patch["email"] = None
    patch.setdefault("is_active", True)

    if find_by_code(patch["code"]):
        raise ConflictError(f"Destination code {patch['code']} already exists")

    destination = Destination(**patch)
    db.session.add(destination)
    db.session.flush()
    return destination


def resolve_destination_id(
    destination_id,
    destination_code: str | None,
    *,
    default_id: int,
) -> int:
    """
    Destination id to store on a pass.

    Given id if it is a positive integer, else the id of the destination
    whose code matches (ignoring case), else default_id. Never raises: an
    unknown destination must not block issuing a pass.
    """
    try:
        candidate = int(destination_id)
    except (TypeError, ValueError):
        candidate = 0
    if candidate > 0:
        return candidate

    match = find_by_code(destination_code or "")
    if match is not None:
        return match.id
    return default_id
