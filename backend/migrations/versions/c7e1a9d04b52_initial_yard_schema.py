"""initial yard schema

Revision ID: c7e1a9d04b52
Revises:
Create Date: 2026-10-19 00:00:00.000000

This migration creates the complete port operations schema from scratch:
- profiles: operator identities (landing clerk, yard operator, manager, admin)
- zones: capacity-limited storage areas with versioned occupancy counters
- goods_landing: cargo arrival ledger
- goods_placement: goods -> zone/rack assignments (one active per goods)
- movements: relocation history
- audit_log: append-only old/new snapshots of every mutation
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c7e1a9d04b52'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # profiles: Operator identities
    # ============================================================================
    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_profiles_email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_profiles_role', 'profiles', ['role'])

    # ============================================================================
    # zones: Capacity-limited storage areas
    # ============================================================================
    # 0 <= current_occupancy <= capacity is enforced by the database as well as
    # by the conditional occupancy UPDATE.
    op.create_table(
        'zones',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('zone_code', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('capacity', sa.Numeric(precision=12, scale=3), nullable=False, server_default='0'),
        sa.Column('current_occupancy', sa.Numeric(precision=12, scale=3), nullable=False, server_default='0'),
        sa.Column('zone_type', sa.String(length=16), nullable=False, server_default='general'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('zone_code', name='uq_zones_zone_code'),
        sa.CheckConstraint('capacity >= 0', name='ck_zones_capacity_non_negative'),
        sa.CheckConstraint('current_occupancy >= 0', name='ck_zones_occupancy_non_negative'),
        sa.CheckConstraint('current_occupancy <= capacity', name='ck_zones_occupancy_within_capacity'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_zones_status', 'zones', ['status'])
    op.create_index('ix_zones_status_type', 'zones', ['status', 'zone_type'])

    # ============================================================================
    # goods_landing: Cargo arrival ledger
    # ============================================================================
    op.create_table(
        'goods_landing',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('goods_id', sa.String(length=64), nullable=False),
        sa.Column('arrival_time', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('origin', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('transport_mode', sa.String(length=16), nullable=False),
        sa.Column('vessel_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('quantity', sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column('unit_type', sa.String(length=16), nullable=False, server_default='container'),
        sa.Column('goods_type', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='landed'),
        sa.Column('landing_clerk_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['landing_clerk_id'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_goods_landing_quantity_positive'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_goods_landing_goods_id', 'goods_landing', ['goods_id'])
    op.create_index('ix_goods_landing_status', 'goods_landing', ['status'])
    op.create_index('ix_goods_landing_status_arrival', 'goods_landing', ['status', 'arrival_time'])

    # ============================================================================
    # goods_placement: Goods -> zone/rack assignments
    # ============================================================================
    op.create_table(
        'goods_placement',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('goods_landing_id', sa.Integer(), nullable=False),
        sa.Column('zone_id', sa.Integer(), nullable=False),
        sa.Column('rack_number', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('placement_time', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('operator_id', sa.Integer(), nullable=True),
        sa.Column('placement_type', sa.String(length=16), nullable=False, server_default='initial'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['goods_landing_id'], ['goods_landing.id'], ),
        sa.ForeignKeyConstraint(['zone_id'], ['zones.id'], ),
        sa.ForeignKeyConstraint(['operator_id'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_goods_placement_status', 'goods_placement', ['status'])
    op.create_index('ix_goods_placement_goods_status', 'goods_placement', ['goods_landing_id', 'status'])
    op.create_index('ix_goods_placement_zone_status', 'goods_placement', ['zone_id', 'status'])
    # Partial unique index: one active placement per goods record
    op.create_index(
        'uq_goods_placement_one_active',
        'goods_placement',
        ['goods_landing_id'],
        unique=True,
        sqlite_where=sa.text("status = 'active'"),
        postgresql_where=sa.text("status = 'active'"),
    )

    # ============================================================================
    # movements: Relocation history
    # ============================================================================
    op.create_table(
        'movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('goods_landing_id', sa.Integer(), nullable=False),
        sa.Column('from_zone_id', sa.Integer(), nullable=True),
        sa.Column('to_zone_id', sa.Integer(), nullable=False),
        sa.Column('from_rack', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('to_rack', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('movement_time', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('operator_id', sa.Integer(), nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='completed'),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['goods_landing_id'], ['goods_landing.id'], ),
        sa.ForeignKeyConstraint(['from_zone_id'], ['zones.id'], ),
        sa.ForeignKeyConstraint(['to_zone_id'], ['zones.id'], ),
        sa.ForeignKeyConstraint(['operator_id'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_movements_movement_time', 'movements', ['movement_time'])
    op.create_index('ix_movements_status', 'movements', ['status'])
    op.create_index('ix_movements_goods_time', 'movements', ['goods_landing_id', 'movement_time'])

    # ============================================================================
    # audit_log: Append-only change history
    # ============================================================================
    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('table_name', sa.String(length=64), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('operation', sa.String(length=8), nullable=False),
        sa.Column('old_data', sa.Text(), nullable=True),
        sa.Column('new_data', sa.Text(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_audit_log_user_id', 'audit_log', ['user_id'])
    op.create_index('ix_audit_log_timestamp', 'audit_log', ['timestamp'])
    op.create_index('ix_audit_log_table_record', 'audit_log', ['table_name', 'record_id'])


def downgrade():
    op.drop_index('ix_audit_log_table_record', table_name='audit_log')
    op.drop_index('ix_audit_log_timestamp', table_name='audit_log')
    op.drop_index('ix_audit_log_user_id', table_name='audit_log')
    op.drop_table('audit_log')

    op.drop_index('ix_movements_goods_time', table_name='movements')
    op.drop_index('ix_movements_status', table_name='movements')
    op.drop_index('ix_movements_movement_time', table_name='movements')
    op.drop_table('movements')

    op.drop_index('uq_goods_placement_one_active', table_name='goods_placement')
    op.drop_index('ix_goods_placement_zone_status', table_name='goods_placement')
    op.drop_index('ix_goods_placement_goods_status', table_name='goods_placement')
    op.drop_index('ix_goods_placement_status', table_name='goods_placement')
    op.drop_table('goods_placement')

    op.drop_index('ix_goods_landing_status_arrival', table_name='goods_landing')
    op.drop_index('ix_goods_landing_status', table_name='goods_landing')
    op.drop_index('ix_goods_landing_goods_id', table_name='goods_landing')
    op.drop_table('goods_landing')

    op.drop_index('ix_zones_status_type', table_name='zones')
    op.drop_index('ix_zones_status', table_name='zones')
    op.drop_table('zones')

    op.drop_index('ix_profiles_role', table_name='profiles')
    op.drop_table('profiles')
