from __future__ import annotations

from ..extensions import db
from gatepass.time_utils import to_utc_z


class GatePass(db.Model):
    """
    Gate pass document: a record of items leaving the facility.

    LIFECYCLE:
    1. Created once with a pass number allocated from PassSequence
    2. Updated any number of times (modified_by / modified_at stamped)
    3. Enabled / disabled (soft delete). Disabled passes are read-only.

    Hard delete only exists as the rollback path of a failed creation flow.

    The primary key is the client-generated string id, so a client can
    refer to the pass (e.g. to roll it back) before the server answers.
    """
    __tablename__ = "gate_passes"
    __table_args__ = (
        db.UniqueConstraint("gatepass_no", name="uq_gate_passes_gatepass_no"),
        db.Index("ix_gate_passes_pass_date", "pass_date"),
        db.Index("ix_gate_passes_enabled_created", "is_enabled", "created_at"),
    )

    id = db.Column(db.String(64), primary_key=True)

    # Human-readable pass number (e.g., "SDLGP05032024-0007"), immutable once issued
    gatepass_no = db.Column(db.String(64), nullable=False)

    # Logical pass date in the business timezone; the sequence's day key
    pass_date = db.Column(db.Date, nullable=False)

    destination_code = db.Column(db.String(128), nullable=False)
    destination_id = db.Column(db.Integer, nullable=True)

    carried_by = db.Column(db.String(128), nullable=True)
    through = db.Column(db.String(64), nullable=True)
    mobile_no = db.Column(db.String(32), nullable=True)

    is_enabled = db.Column(db.Boolean, nullable=False, default=True)
    returnable = db.Column(db.Boolean, nullable=False, default=False)

    # Audit
    created_by = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    modified_by = db.Column(db.String(255), nullable=True)
    modified_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version_id}

    items = db.relationship(
        "GatePassItem",
        back_populates="gate_pass",
        order_by="GatePassItem.sl_no",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "gatepassNo": self.gatepass_no,
            "date": self.pass_date.isoformat() if self.pass_date else None,
            "destination": self.destination_code,
            "destinationCode": self.destination_code,
            "destinationId": self.destination_id,
            "carriedBy": self.carried_by,
            "through": self.through,
            "mobileNo": self.mobile_no,
            "items": [item.to_dict() for item in self.items],
            "isEnable": self.is_enabled,
            "returnable": self.returnable,
            "createdBy": self.created_by,
            "createdAt": to_utc_z(self.created_at),
            "modifiedBy": self.modified_by,
            "modifiedAt": to_utc_z(self.modified_at) if self.modified_at else None,
        }


class GatePassItem(db.Model):
    """Line item on a gate pass. sl_no is assigned 1..n when the lines are written."""
    __tablename__ = "gate_pass_items"
    __table_args__ = (
        db.UniqueConstraint("gate_pass_id", "sl_no", name="uq_gate_pass_items_pass_slno"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    gate_pass_id = db.Column(db.String(64), db.ForeignKey("gate_passes.id", ondelete="CASCADE"), nullable=False, index=True)

    sl_no = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(500), nullable=False)
    make = db.Column(db.String(500), nullable=False)
    model = db.Column(db.String(500), nullable=False)
    serial_no = db.Column(db.String(500), nullable=False)
    qty = db.Column(db.Integer, nullable=False, default=1)

    gate_pass = db.relationship("GatePass", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "slNo": self.sl_no,
            "description": self.description,
            "makeItem": self.make,
            "model": self.model,
            "serialNo": self.serial_no,
            "qty": self.qty,
        }


class PassSequence(db.Model):
    """
    Atomic per-day pass number sequences.

    WHY: Two clients creating passes at the same moment must never be
    handed the same number. Allocation increments next_number in a single
    UPDATE on the day's row instead of scanning existing passes.
    """
    __tablename__ = "pass_sequences"
    __table_args__ = (
        db.UniqueConstraint("day_key", name="uq_pass_sequences_day_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    # DDMMYYYY, same key embedded in the pass number
    day_key = db.Column(db.String(8), nullable=False, index=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "day_key": self.day_key,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
