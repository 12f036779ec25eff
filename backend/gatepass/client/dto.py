# Overview: Boundary adapters turning loosely-shaped API JSON into typed client records.

"""
Client-side record types and the adapters that build them.

The backend (and older deployments of it) is not consistent about key
casing: the same field can arrive as "DestinationCode" or
"destinationCode", "Id" or "id". Every alias is listed here and resolved
once, so nothing past this module ever sees a raw dict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional, Union

from gatepass.time_utils import DateLike, parse_date_like, parse_iso_datetime
from gatepass.validation import coerce_boolean


@dataclass
class PassItem:
    sl_no: int = 1
    description: str = ""
    make: str = ""
    model: str = ""
    serial_no: str = ""
    qty: int = 1


@dataclass
class PassDraft:
    """What the pass form submits: a pass before it has an id or number."""
    date: DateLike
    destination_code: str
    destination_id: Optional[int] = None
    carried_by: str = ""
    through: str = ""
    mobile_no: str = ""
    items: list[PassItem] = field(default_factory=list)
    returnable: bool = False


@dataclass
class PassRecord:
    id: str
    pass_number: str
    date: DateLike
    destination_code: str
    destination_id: Optional[int] = None
    carried_by: str = ""
    through: str = ""
    mobile_no: str = ""
    items: list[PassItem] = field(default_factory=list)
    enabled: bool = True
    returnable: bool = False
    created_by: str = ""
    created_at: Optional[datetime] = None
    modified_by: Optional[str] = None
    modified_at: Optional[Union[datetime, str]] = None


@dataclass
class DestinationRecord:
    id: Union[int, str]
    name: str
    code: str
    email: Optional[str] = None
    active: bool = True


PASS_ALIASES = {
    "id": ("id", "Id", "ID", "gatePassId", "GatePassId"),
    "pass_number": ("gatepassNo", "GatepassNo", "gatePassNo", "GatePassNo", "passNumber"),
    "date": ("date", "Date"),
    "destination_code": ("destinationCode", "DestinationCode", "destination", "Destination"),
    "destination_id": ("destinationId", "DestinationId", "DestinationID"),
    "carried_by": ("carriedBy", "CarriedBy"),
    "through": ("through", "Through"),
    "mobile_no": ("mobileNo", "MobileNo"),
    "items": ("items", "Items"),
    "enabled": ("isEnable", "IsEnable", "isEnabled", "IsEnabled"),
    "returnable": ("returnable", "Returnable", "isReturnable", "IsReturnable"),
    "created_by": ("createdBy", "CreatedBy"),
    "created_at": ("createdAt", "CreatedAt"),
    "modified_by": ("modifiedBy", "ModifiedBy"),
    "modified_at": ("modifiedAt", "ModifiedAt"),
}

ITEM_ALIASES = {
    "sl_no": ("slNo", "SlNo", "SLNo"),
    "description": ("description", "Description"),
    "make": ("makeItem", "MakeItem", "make", "Make"),
    "model": ("model", "Model"),
    "serial_no": ("serialNo", "SerialNo"),
    "qty": ("qty", "Qty", "quantity", "Quantity"),
}

DESTINATION_ALIASES = {
    "id": ("Id", "id", "ID"),
    "name": ("DestinationName", "destinationName"),
    "code": ("DestinationCode", "destinationCode"),
    "email": ("EmailID", "emailID", "email", "Email"),
    "active": ("IsActive", "isActive"),
}


def pick_alias(raw: Mapping[str, Any], names: tuple[str, ...], default: Any = None) -> Any:
    """First alias present with a non-None value."""
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return default


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _int_or_none(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _date_or_raw(value: Any) -> DateLike:
    if isinstance(value, (date, datetime)) or value is None:
        return value
    try:
        return parse_date_like(str(value))
    except ValueError:
        return str(value)


def _timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime) or value is None:
        return value
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        return None


def normalize_pass_item(raw: Mapping[str, Any], index: int) -> PassItem:
    qty = _int_or_none(pick_alias(raw, ITEM_ALIASES["qty"]))
    return PassItem(
        sl_no=_int_or_none(pick_alias(raw, ITEM_ALIASES["sl_no"])) or index + 1,
        description=_text(pick_alias(raw, ITEM_ALIASES["description"])),
        make=_text(pick_alias(raw, ITEM_ALIASES["make"])),
        model=_text(pick_alias(raw, ITEM_ALIASES["model"])),
        serial_no=_text(pick_alias(raw, ITEM_ALIASES["serial_no"])),
        qty=qty if qty is not None else 1,
    )


def normalize_pass_record(raw: Mapping[str, Any]) -> PassRecord:
    items = pick_alias(raw, PASS_ALIASES["items"], [])
    if not isinstance(items, list):
        items = []
    return PassRecord(
        id=_text(pick_alias(raw, PASS_ALIASES["id"])),
        pass_number=_text(pick_alias(raw, PASS_ALIASES["pass_number"])),
        date=_date_or_raw(pick_alias(raw, PASS_ALIASES["date"])),
        destination_code=_text(pick_alias(raw, PASS_ALIASES["destination_code"])),
        destination_id=_int_or_none(pick_alias(raw, PASS_ALIASES["destination_id"])),
        carried_by=_text(pick_alias(raw, PASS_ALIASES["carried_by"])),
        through=_text(pick_alias(raw, PASS_ALIASES["through"])),
        mobile_no=_text(pick_alias(raw, PASS_ALIASES["mobile_no"])),
        items=[normalize_pass_item(item, i) for i, item in enumerate(items) if isinstance(item, Mapping)],
        enabled=coerce_boolean(pick_alias(raw, PASS_ALIASES["enabled"]), True),
        returnable=coerce_boolean(pick_alias(raw, PASS_ALIASES["returnable"]), False),
        created_by=_text(pick_alias(raw, PASS_ALIASES["created_by"])),
        created_at=_timestamp(pick_alias(raw, PASS_ALIASES["created_at"])),
        modified_by=pick_alias(raw, PASS_ALIASES["modified_by"]),
        modified_at=_timestamp(pick_alias(raw, PASS_ALIASES["modified_at"])),
    )


def normalize_destination(raw: Mapping[str, Any], index: int) -> DestinationRecord:
    """
    Build a DestinationRecord. A row with no id falls back to its list
    position, which keeps rows distinct for display but is never treated
    as a real destination id (ids must be positive).
    """
    return DestinationRecord(
        id=pick_alias(raw, DESTINATION_ALIASES["id"], index),
        name=_text(pick_alias(raw, DESTINATION_ALIASES["name"])),
        code=_text(pick_alias(raw, DESTINATION_ALIASES["code"])),
        email=pick_alias(raw, DESTINATION_ALIASES["email"]),
        active=coerce_boolean(pick_alias(raw, DESTINATION_ALIASES["active"]), True),
    )


def destination_to_wire(record: DestinationRecord) -> dict:
    return {
        "id": record.id,
        "destinationName": record.name,
        "destinationCode": record.code,
        "emailID": record.email,
        "isActive": 1 if record.active else 0,
    }


def item_to_wire(item: PassItem) -> dict:
    return {
        "slNo": item.sl_no,
        "description": item.description,
        "makeItem": item.make,
        "model": item.model,
        "serialNo": item.serial_no,
        "qty": item.qty,
    }
