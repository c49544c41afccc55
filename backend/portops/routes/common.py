# Overview: Shared request parsing and error mapping for the yard API routes.

from __future__ import annotations

from flask import jsonify, request

from ..extensions import db
from ..services.errors import OperationsError
from ..validation import ConflictError, ValidationError


# Business errors a route reports to the caller as-is
HANDLED_ERRORS = (OperationsError, ValidationError, ConflictError)

MAX_LIST_LIMIT = 500


def error_response(exc: Exception):
    """Roll back the request's transaction and render a handled error."""
    db.session.rollback()
    if isinstance(exc, OperationsError):
        return jsonify(exc.to_dict()), exc.status_code
    if isinstance(exc, ConflictError):
        return jsonify({"error": str(exc)}), 409
    return jsonify({"error": str(exc)}), 400


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def int_field(data: dict, key: str) -> int:
    if key not in data:
        raise ValidationError(f"Missing required field: {key}")
    value = data[key]
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{key} must be an integer")


def text_field(data: dict, key: str, *, required: bool = True, max_length: int = 255) -> str:
    value = data.get(key)
    if value is None:
        if required:
            raise ValidationError(f"Missing required field: {key}")
        return ""
    value = str(value).strip()
    if required and not value:
        raise ValidationError(f"{key} cannot be blank")
    if len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value


def list_limit(default: int = 100) -> int:
    limit = request.args.get("limit", default=default, type=int)
    return max(1, min(limit, MAX_LIST_LIMIT))
