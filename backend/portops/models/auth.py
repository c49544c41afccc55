from __future__ import annotations

from ..extensions import db
from portops.time_utils import to_utc_z


ROLE_LANDING_CLERK = "landing_clerk"
ROLE_YARD_OPERATOR = "yard_operator"
ROLE_MANAGER = "manager"
ROLE_ADMIN = "admin"

ROLES = (ROLE_LANDING_CLERK, ROLE_YARD_OPERATOR, ROLE_MANAGER, ROLE_ADMIN)


class Profile(db.Model):
    """
    Operator identity stamped on landings, placements and movements.

    Sign-in is handled outside this service; requests carry the operator id
    and the role decides which operations the operator may perform.
    """
    __tablename__ = "profiles"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_profiles_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False)

    # landing_clerk, yard_operator, manager, admin
    role = db.Column(db.String(32), nullable=False, default=ROLE_LANDING_CLERK, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Profile id={self.id} email={self.email!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
