# Overview: Service-layer operations for operator profiles; identity lookups for request attribution.

from __future__ import annotations

from ..extensions import db
from ..models import Profile
from ..models.auth import ROLES
from ..validation import ConflictError, ValidationError
from . import audit_service


def get_active_profile(profile_id: int) -> Profile | None:
    """Profile for an operator id, or None when unknown or deactivated."""
    return db.session.query(Profile).filter_by(id=profile_id, is_active=True).first()


def get_profile_by_email(email: str) -> Profile | None:
    return db.session.query(Profile).filter_by(email=email.strip().lower()).first()


def create_profile(email: str, full_name: str, role: str, *, actor_id: int | None = None) -> Profile:
    email = email.strip().lower()
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    if not email or "@" not in email:
        raise ValidationError("email must be a valid address")
    if get_profile_by_email(email):
        raise ConflictError(f"Profile {email} already exists")

    profile = Profile(email=email, full_name=full_name.strip(), role=role, is_active=True)
    db.session.add(profile)
    db.session.flush()

    audit_service.record_insert(profile, user_id=actor_id)
    return profile
