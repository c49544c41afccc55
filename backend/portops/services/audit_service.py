# Overview: Service-layer operations for the audit trail; appends old/new snapshots of every mutation.

"""
Audit trail invariants

- Append-only: rows are never updated or deleted.
- Written inside the same DB transaction as the change they describe, so a
  rolled-back operation leaves no audit row behind.
- Side channel only: no yard operation reads the audit log.
"""
from __future__ import annotations

import json
from typing import Optional

from flask import has_request_context, request

from ..extensions import db
from ..models import AuditLogEntry

OPERATION_INSERT = "INSERT"
OPERATION_UPDATE = "UPDATE"
OPERATION_DELETE = "DELETE"


def _dump(data: Optional[dict]) -> Optional[str]:
    if data is None:
        return None
    return json.dumps(data, sort_keys=True, default=str)


def record_change(
    *,
    table_name: str,
    record_id: int,
    operation: str,
    old_data: Optional[dict] = None,
    new_data: Optional[dict] = None,
    user_id: int | None = None,
) -> AuditLogEntry:
    """Append one audit row; the client IP is captured when called from a request."""
    ip_address = request.remote_addr if has_request_context() else None

    entry = AuditLogEntry(
        table_name=table_name,
        record_id=record_id,
        operation=operation,
        old_data=_dump(old_data),
        new_data=_dump(new_data),
        user_id=user_id,
        ip_address=ip_address,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def record_insert(record, *, user_id: int | None = None) -> AuditLogEntry:
    return record_change(
        table_name=record.__tablename__,
        record_id=record.id,
        operation=OPERATION_INSERT,
        new_data=record.to_dict(),
        user_id=user_id,
    )


def record_update(record, old_data: dict, *, user_id: int | None = None) -> AuditLogEntry:
    return record_change(
        table_name=record.__tablename__,
        record_id=record.id,
        operation=OPERATION_UPDATE,
        old_data=old_data,
        new_data=record.to_dict(),
        user_id=user_id,
    )
