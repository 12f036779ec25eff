from __future__ import annotations

from ..extensions import db
from gatepass.time_utils import to_utc_z


class Destination(db.Model):
    """
    Places a gate pass can send items to (labs, branches, vendors).

    Reference data: rarely changes, cached per user on the client.
    Codes are unique ignoring case; the service stores them upper-cased.
    """
    __tablename__ = "destinations"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_destinations_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    code = db.Column(db.String(32), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "destinationName": self.name,
            "destinationCode": self.code,
            "emailID": self.email,
            "isActive": 1 if self.is_active else 0,
            "createdAt": to_utc_z(self.created_at),
        }
