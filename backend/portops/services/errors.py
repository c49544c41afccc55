# Overview: Domain error types raised by the yard services and mapped to HTTP responses by the routes.

from __future__ import annotations

from decimal import Decimal


class OperationsError(Exception):
    """Base class for yard business errors."""
    status_code = 400

    def to_dict(self) -> dict:
        return {"error": str(self)}


class NotFoundError(OperationsError):
    """Referenced goods, zone, placement or operator does not exist."""
    status_code = 404


class InvalidStateError(OperationsError):
    """
    Record is not in a state that allows the operation.

    The caller is working from stale data and should refresh.
    """
    status_code = 409


class CapacityExceededError(OperationsError):
    """
    Destination zone lacks room for the full quantity.

    Business rejection: never retried automatically.
    """
    status_code = 409

    def __init__(self, zone_code: str, requested: Decimal, available: Decimal):
        self.zone_code = zone_code
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient capacity in zone {zone_code}: "
            f"requested {requested}, available {available}"
        )

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "zone_code": self.zone_code,
            "requested": float(self.requested),
            "available": float(self.available),
        }


class ConcurrencyConflictError(OperationsError):
    """A conditional update found the row changed since it was read."""
    status_code = 409


class OccupancyInvariantError(OperationsError):
    """An occupancy update would leave a zone below zero."""
    status_code = 500
