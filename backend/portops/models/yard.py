from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from portops.time_utils import to_utc_z


# Zone enums
ZONE_TYPE_CONTAINER = "container"
ZONE_TYPE_BULK = "bulk"
ZONE_TYPE_GENERAL = "general"
ZONE_TYPE_REFRIGERATED = "refrigerated"
ZONE_TYPES = (ZONE_TYPE_CONTAINER, ZONE_TYPE_BULK, ZONE_TYPE_GENERAL, ZONE_TYPE_REFRIGERATED)

ZONE_STATUS_ACTIVE = "active"
ZONE_STATUS_INACTIVE = "inactive"
ZONE_STATUS_MAINTENANCE = "maintenance"
ZONE_STATUSES = (ZONE_STATUS_ACTIVE, ZONE_STATUS_INACTIVE, ZONE_STATUS_MAINTENANCE)

# Goods landing enums
TRANSPORT_MODES = ("ship", "truck", "rail", "air")

UNIT_TYPE_CONTAINER = "container"
UNIT_TYPE_PALLET = "pallet"
UNIT_TYPE_TON = "ton"
UNIT_TYPE_CUBIC_METER = "cubic_meter"
UNIT_TYPES = (UNIT_TYPE_CONTAINER, UNIT_TYPE_PALLET, UNIT_TYPE_TON, UNIT_TYPE_CUBIC_METER)

GOODS_STATUS_LANDED = "landed"
GOODS_STATUS_PLACED = "placed"
GOODS_STATUS_IN_TRANSIT = "in_transit"
GOODS_STATUS_DEPARTED = "departed"
GOODS_STATUSES = (GOODS_STATUS_LANDED, GOODS_STATUS_PLACED, GOODS_STATUS_IN_TRANSIT, GOODS_STATUS_DEPARTED)

# Placement enums
PLACEMENT_TYPE_INITIAL = "initial"
PLACEMENT_TYPE_RELOCATED = "relocated"

PLACEMENT_STATUS_ACTIVE = "active"
PLACEMENT_STATUS_MOVED = "moved"
PLACEMENT_STATUS_DEPARTED = "departed"
PLACEMENT_STATUSES = (PLACEMENT_STATUS_ACTIVE, PLACEMENT_STATUS_MOVED, PLACEMENT_STATUS_DEPARTED)

# Movement enums
MOVEMENT_STATUS_PENDING = "pending"
MOVEMENT_STATUS_IN_PROGRESS = "in_progress"
MOVEMENT_STATUS_COMPLETED = "completed"
MOVEMENT_STATUS_CANCELLED = "cancelled"
MOVEMENT_STATUSES = (
    MOVEMENT_STATUS_PENDING,
    MOVEMENT_STATUS_IN_PROGRESS,
    MOVEMENT_STATUS_COMPLETED,
    MOVEMENT_STATUS_CANCELLED,
)

# Fixed-point quantities: tons and cubic meters are fractional
Quantity = db.Numeric(12, 3)
QUANTITY_QUANTUM = Decimal("0.001")


def quantity_to_json(value) -> float | None:
    if value is None:
        return None
    return float(value)


class Zone(db.Model):
    """
    Capacity-limited storage area.

    OCCUPANCY INVARIANT:
    - 0 <= current_occupancy <= capacity at all times.
    - current_occupancy equals the summed quantity of goods whose active
      placement references this zone.
    - Only the placement and movement engines write current_occupancy, and
      only through zone_service.apply_occupancy_delta (conditional UPDATE).

    Zones are never deleted; they are taken out of service via status.
    """
    __tablename__ = "zones"
    __table_args__ = (
        db.UniqueConstraint("zone_code", name="uq_zones_zone_code"),
        db.CheckConstraint("capacity >= 0", name="ck_zones_capacity_non_negative"),
        db.CheckConstraint("current_occupancy >= 0", name="ck_zones_occupancy_non_negative"),
        db.CheckConstraint("current_occupancy <= capacity", name="ck_zones_occupancy_within_capacity"),
        db.Index("ix_zones_status_type", "status", "zone_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    zone_code = db.Column(db.String(32), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")

    capacity = db.Column(Quantity, nullable=False, default=0)
    current_occupancy = db.Column(Quantity, nullable=False, default=0)

    # container, bulk, general, refrigerated
    zone_type = db.Column(db.String(16), nullable=False, default=ZONE_TYPE_GENERAL)

    # active, inactive, maintenance
    status = db.Column(db.String(16), nullable=False, default=ZONE_STATUS_ACTIVE, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def available_capacity(self) -> Decimal:
        return Decimal(self.capacity or 0) - Decimal(self.current_occupancy or 0)

    @property
    def utilization_percent(self) -> Decimal:
        capacity = Decimal(self.capacity or 0)
        if capacity == 0:
            return Decimal(0)
        return Decimal(self.current_occupancy or 0) / capacity * 100

    def __repr__(self) -> str:
        return (
            f"<Zone id={self.id} code={self.zone_code!r} "
            f"occupancy={self.current_occupancy}/{self.capacity} status={self.status!r}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "zone_code": self.zone_code,
            "description": self.description,
            "capacity": quantity_to_json(self.capacity),
            "current_occupancy": quantity_to_json(self.current_occupancy),
            "available_capacity": quantity_to_json(max(self.available_capacity, Decimal(0))),
            "utilization_percent": round(float(self.utilization_percent), 2),
            "zone_type": self.zone_type,
            "status": self.status,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class GoodsLanding(db.Model):
    """
    Cargo arrival record.

    LIFECYCLE (forward only):
    landed -> placed -> (in_transit) -> departed, placed <-> in_transit.
    landed -> placed is driven by the placement engine; relocation keeps the
    goods placed.
    """
    __tablename__ = "goods_landing"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_goods_landing_quantity_positive"),
        db.Index("ix_goods_landing_status_arrival", "status", "arrival_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # External container/consignment identifier (human-meaningful, not unique)
    goods_id = db.Column(db.String(64), nullable=False, index=True)

    arrival_time = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    origin = db.Column(db.String(255), nullable=False, default="")

    # ship, truck, rail, air
    transport_mode = db.Column(db.String(16), nullable=False)
    vessel_name = db.Column(db.String(255), nullable=False, default="")

    quantity = db.Column(Quantity, nullable=False)

    # container, pallet, ton, cubic_meter
    unit_type = db.Column(db.String(16), nullable=False, default=UNIT_TYPE_CONTAINER)

    # Free text; drives cold-chain matching in zone suggestions
    goods_type = db.Column(db.String(255), nullable=False, default="")

    # landed, placed, in_transit, departed
    status = db.Column(db.String(16), nullable=False, default=GOODS_STATUS_LANDED, index=True)

    landing_clerk_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    notes = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    landing_clerk = db.relationship("Profile", foreign_keys=[landing_clerk_id])

    def __repr__(self) -> str:
        return f"<GoodsLanding id={self.id} goods_id={self.goods_id!r} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "goods_id": self.goods_id,
            "arrival_time": to_utc_z(self.arrival_time),
            "origin": self.origin,
            "transport_mode": self.transport_mode,
            "vessel_name": self.vessel_name,
            "quantity": quantity_to_json(self.quantity),
            "unit_type": self.unit_type,
            "goods_type": self.goods_type,
            "status": self.status,
            "landing_clerk_id": self.landing_clerk_id,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class GoodsPlacement(db.Model):
    """
    Assignment of a goods record to a zone and rack.

    At most one placement per goods record is active; only active placements
    count toward zone occupancy. A movement closes the active placement
    (status=moved) and opens a relocated one in the destination zone.
    """
    __tablename__ = "goods_placement"
    __table_args__ = (
        db.Index("ix_goods_placement_goods_status", "goods_landing_id", "status"),
        db.Index("ix_goods_placement_zone_status", "zone_id", "status"),
        # One active placement per goods record
        db.Index(
            "uq_goods_placement_one_active",
            "goods_landing_id",
            unique=True,
            sqlite_where=db.text("status = 'active'"),
            postgresql_where=db.text("status = 'active'"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    goods_landing_id = db.Column(db.Integer, db.ForeignKey("goods_landing.id"), nullable=False)
    zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=False)

    rack_number = db.Column(db.String(64), nullable=False, default="")
    placement_time = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    operator_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    # initial, relocated
    placement_type = db.Column(db.String(16), nullable=False, default=PLACEMENT_TYPE_INITIAL)

    # active, moved, departed
    status = db.Column(db.String(16), nullable=False, default=PLACEMENT_STATUS_ACTIVE, index=True)

    notes = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    goods = db.relationship("GoodsLanding", backref=db.backref("placements", lazy=True))
    zone = db.relationship("Zone", backref=db.backref("placements", lazy=True))
    operator = db.relationship("Profile", foreign_keys=[operator_id])

    def to_dict(self, include_refs: bool = False) -> dict:
        data = {
            "id": self.id,
            "goods_landing_id": self.goods_landing_id,
            "zone_id": self.zone_id,
            "rack_number": self.rack_number,
            "placement_time": to_utc_z(self.placement_time),
            "operator_id": self.operator_id,
            "placement_type": self.placement_type,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_refs:
            data["goods_landing"] = {
                "goods_id": self.goods.goods_id,
                "goods_type": self.goods.goods_type,
                "quantity": quantity_to_json(self.goods.quantity),
                "unit_type": self.goods.unit_type,
            }
            data["zone"] = {"zone_code": self.zone.zone_code}
        return data


class Movement(db.Model):
    """
    Immutable history record of a relocation.

    Created in the same transaction as the placement swap it describes.
    Only `completed` is produced today; the other statuses are reserved for
    asynchronous movement workflows.
    """
    __tablename__ = "movements"
    __table_args__ = (
        db.Index("ix_movements_goods_time", "goods_landing_id", "movement_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    goods_landing_id = db.Column(db.Integer, db.ForeignKey("goods_landing.id"), nullable=False)

    from_zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=True)
    to_zone_id = db.Column(db.Integer, db.ForeignKey("zones.id"), nullable=False)
    from_rack = db.Column(db.String(64), nullable=False, default="")
    to_rack = db.Column(db.String(64), nullable=False, default="")

    movement_time = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    operator_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    reason = db.Column(db.String(255), nullable=False, default="")

    # pending, in_progress, completed, cancelled
    status = db.Column(db.String(16), nullable=False, default=MOVEMENT_STATUS_COMPLETED, index=True)

    notes = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    goods = db.relationship("GoodsLanding", backref=db.backref("movements", lazy=True))
    from_zone = db.relationship("Zone", foreign_keys=[from_zone_id])
    to_zone = db.relationship("Zone", foreign_keys=[to_zone_id])
    operator = db.relationship("Profile", foreign_keys=[operator_id])

    def to_dict(self, include_refs: bool = False) -> dict:
        data = {
            "id": self.id,
            "goods_landing_id": self.goods_landing_id,
            "from_zone_id": self.from_zone_id,
            "to_zone_id": self.to_zone_id,
            "from_rack": self.from_rack,
            "to_rack": self.to_rack,
            "movement_time": to_utc_z(self.movement_time),
            "operator_id": self.operator_id,
            "reason": self.reason,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_refs:
            data["goods_landing"] = {
                "goods_id": self.goods.goods_id,
                "goods_type": self.goods.goods_type,
                "quantity": quantity_to_json(self.goods.quantity),
                "unit_type": self.goods.unit_type,
            }
            data["from_zone"] = {"zone_code": self.from_zone.zone_code} if self.from_zone else None
            data["to_zone"] = {"zone_code": self.to_zone.zone_code}
        return data
