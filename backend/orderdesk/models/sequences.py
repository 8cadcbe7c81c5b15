from __future__ import annotations

from ..extensions import db
from orderdesk.time_utils import to_utc_z


class SerialSequence(db.Model):
    """
    Atomic per-tenant, per-month order serial counter.

    last_value is the highest sequence handed out for (tenant_id, period);
    the next serial is last_value + 1. Rows are never decremented.
    """
    __tablename__ = "serial_sequences"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "period", name="uq_serial_sequences_tenant_period"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    # YYMM
    period = db.Column(db.String(4), nullable=False)
    last_value = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "period": self.period,
            "last_value": self.last_value,
            "updated_at": to_utc_z(self.updated_at),
        }
