# Overview: Flask CLI command groups for bootstrap, inspection, and consistency checks.

# backend/portops/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` for migrated deployments).
# - python -m flask system seed [--with-goods]
#   Idempotent: default operators (one per role) and a starter set of zones.
#
# Operator profiles:
# - python -m flask profiles list
# - python -m flask profiles create --email ops@port.local --name "Ops" --role yard_operator
#
# Zones:
# - python -m flask zones list [--status active]
# - python -m flask zones check-occupancy
#   Recompute occupancy from active placements; exits 1 when any zone drifts.

from decimal import Decimal

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Profile, Zone
from .models.auth import ROLES, ROLE_ADMIN, ROLE_LANDING_CLERK, ROLE_MANAGER, ROLE_YARD_OPERATOR
from .models.yard import (
    ZONE_STATUSES,
    ZONE_TYPE_BULK,
    ZONE_TYPE_CONTAINER,
    ZONE_TYPE_GENERAL,
    ZONE_TYPE_REFRIGERATED,
)
from .services import goods_service, profile_service, zone_service
from .validation import ConflictError, ValidationError


DEFAULT_PROFILES = [
    ("admin@portops.local", "Port Admin", ROLE_ADMIN),
    ("manager@portops.local", "Terminal Manager", ROLE_MANAGER),
    ("operator@portops.local", "Yard Operator", ROLE_YARD_OPERATOR),
    ("clerk@portops.local", "Landing Clerk", ROLE_LANDING_CLERK),
]

DEFAULT_ZONES = [
    ("A1", "Container stack north", Decimal(100), ZONE_TYPE_CONTAINER),
    ("A2", "Container stack south", Decimal(100), ZONE_TYPE_CONTAINER),
    ("B1", "Dry bulk yard", Decimal(500), ZONE_TYPE_BULK),
    ("C1", "General cargo shed", Decimal(200), ZONE_TYPE_GENERAL),
    ("R1", "Reefer plug-in area", Decimal(50), ZONE_TYPE_REFRIGERATED),
]

DEMO_LANDINGS = [
    ("CONT123456", "ship", "MV OCEAN STAR", "Shanghai", Decimal(10), "container", "Electronics"),
    ("CONT654321", "ship", "MV OCEAN STAR", "Shanghai", Decimal(4), "container", "Frozen seafood"),
    ("BULK-0001", "ship", "MV IRON TIDE", "Port Hedland", Decimal(120), "ton", "Iron ore"),
]


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('seed')
@click.option('--with-goods', is_flag=True, help='Also register demo landings')
@with_appcontext
def seed(with_goods):
    """Create default operators and zones (safe to run repeatedly)."""
    click.echo("START Seeding port operations data...")

    admin = None
    for email, name, role in DEFAULT_PROFILES:
        profile = profile_service.get_profile_by_email(email)
        if profile:
            click.echo(f"WARN  Profile '{email}' already exists, skipping...")
        else:
            profile = profile_service.create_profile(email, name, role)
            click.echo(f"PASS Created profile: {email} ({role}, ID: {profile.id})")
        if role == ROLE_ADMIN:
            admin = profile

    for code, description, capacity, zone_type in DEFAULT_ZONES:
        if db.session.query(Zone).filter_by(zone_code=code).first():
            click.echo(f"WARN  Zone '{code}' already exists, skipping...")
            continue
        zone = zone_service.create_zone(
            {"zone_code": code, "description": description, "capacity": capacity, "zone_type": zone_type},
            actor_id=admin.id if admin else None,
        )
        click.echo(f"PASS Created zone: {zone.zone_code} ({zone_type}, capacity {capacity})")

    if with_goods:
        for goods_id, mode, vessel, origin, quantity, unit_type, goods_type in DEMO_LANDINGS:
            goods = goods_service.register_landing(
                {
                    "goods_id": goods_id,
                    "transport_mode": mode,
                    "vessel_name": vessel,
                    "origin": origin,
                    "quantity": quantity,
                    "unit_type": unit_type,
                    "goods_type": goods_type,
                },
                clerk_id=admin.id if admin else None,
            )
            click.echo(f"PASS Registered landing: {goods.goods_id} ({quantity} {unit_type})")

    db.session.commit()
    click.echo("DONE Seed complete")


@click.group('profiles')
def profiles_group():
    """Operator profile commands."""


@profiles_group.command('list')
@with_appcontext
def list_profiles():
    """List operator profiles."""
    profiles = db.session.query(Profile).order_by(Profile.id).all()
    if not profiles:
        click.echo("No profiles found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Role':<15}")
    click.echo("="*80)
    for p in profiles:
        inactive = "" if p.is_active else " (inactive)"
        click.echo(f"{p.id:<5} {p.email:<35} {p.full_name:<25} {p.role:<15}{inactive}")
    click.echo("="*80 + "\n")


@profiles_group.command('create')
@click.option('--email', required=True, help='Operator email (unique)')
@click.option('--name', 'full_name', required=True, help='Full name')
@click.option('--role', type=click.Choice(ROLES), required=True, help='Operator role')
@with_appcontext
def create_profile(email, full_name, role):
    """Create an operator profile."""
    try:
        profile = profile_service.create_profile(email, full_name, role)
        db.session.commit()
    except (ValidationError, ConflictError) as e:
        db.session.rollback()
        raise click.ClickException(str(e))
    click.echo(f"PASS Created profile: {profile.email} ({profile.role}, ID: {profile.id})")


@click.group('zones')
def zones_group():
    """Zone inspection commands."""


@zones_group.command('list')
@click.option('--status', type=click.Choice(ZONE_STATUSES), default=None, help='Filter by status')
@with_appcontext
def list_zones(status):
    """List zones with occupancy."""
    zones = zone_service.list_zones(status=status)
    if not zones:
        click.echo("No zones found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'Code':<8} {'Type':<14} {'Status':<12} {'Occupancy':>12} {'Capacity':>12} {'Used':>8}")
    click.echo("="*80)
    for z in zones:
        click.echo(
            f"{z.zone_code:<8} {z.zone_type:<14} {z.status:<12} "
            f"{z.current_occupancy:>12} {z.capacity:>12} {float(z.utilization_percent):>7.1f}%"
        )
    click.echo("="*80 + "\n")


@zones_group.command('check-occupancy')
@with_appcontext
def check_occupancy():
    """Compare stored occupancy with active placements (read-only)."""
    drift = zone_service.find_occupancy_drift()
    if not drift:
        click.echo("PASS All zone occupancies match their active placements")
        return

    for d in drift:
        click.echo(
            f"FAIL Zone {d.zone.zone_code}: recorded {d.recorded}, "
            f"active placements {d.computed}"
        )
    raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(profiles_group)
    app.cli.add_command(zones_group)
