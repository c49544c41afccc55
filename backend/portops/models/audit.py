from __future__ import annotations

import json

from ..extensions import db
from portops.time_utils import to_utc_z


class AuditLogEntry(db.Model):
    """
    Append-only old/new-value record of every mutation.

    Keyed by table name + record id. Rows are written in the same transaction
    as the change they describe and are never updated or deleted.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        db.Index("ix_audit_log_table_record", "table_name", "record_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    table_name = db.Column(db.String(64), nullable=False)
    record_id = db.Column(db.Integer, nullable=False)

    # INSERT, UPDATE, DELETE
    operation = db.Column(db.String(8), nullable=False)

    # JSON documents (text so SQLite and Postgres behave the same)
    old_data = db.Column(db.Text, nullable=True)
    new_data = db.Column(db.Text, nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True, index=True)
    ip_address = db.Column(db.String(64), nullable=True)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "operation": self.operation,
            "old_data": json.loads(self.old_data) if self.old_data else None,
            "new_data": json.loads(self.new_data) if self.new_data else None,
            "user_id": self.user_id,
            "ip_address": self.ip_address,
            "timestamp": to_utc_z(self.timestamp),
        }
