"""initial uniform request schema

Revision ID: 0001_uniforms
Revises:
Create Date: 2026-03-01 00:00:00.000000

Creates the uniform tracker schema from scratch:
- stores, roles, staff: the staff directory
- role_allowance_limits, role_cooldown_limits: per-role overrides
- system_settings: global key/value settings (COOLDOWN_DAYS)
- uniform_items: sized SKUs with stock on hand
- uniform_requests, uniform_request_items: requests and their lines
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_uniforms'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # Directory
    # ============================================================================
    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_roles_name', 'roles', ['name'])

    op.create_table(
        'staff',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_staff_store_id', 'staff', ['store_id'])
    op.create_index('ix_staff_role_id', 'staff', ['role_id'])
    op.create_index('ix_staff_store_role', 'staff', ['store_id', 'role_id'])

    # ============================================================================
    # Per-role overrides and global settings
    # ============================================================================
    op.create_table(
        'role_allowance_limits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('annual_limit', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('role_id'),
        sa.CheckConstraint('annual_limit >= 0', name='ck_role_allowance_limits_non_negative'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'role_cooldown_limits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('cooldown_days', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('role_id'),
        sa.CheckConstraint('cooldown_days >= 0', name='ck_role_cooldown_limits_non_negative'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'system_settings',
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('key')
    )

    # ============================================================================
    # Stock
    # ============================================================================
    op.create_table(
        'uniform_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('size', sa.String(length=32), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('stock_on_hand', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', 'size', name='uq_uniform_items_sku_size'),
        sa.CheckConstraint('stock_on_hand >= 0', name='ck_uniform_items_stock_non_negative'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # Requests
    # ============================================================================
    op.create_table(
        'uniform_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('staff_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('note', sa.String(length=500), nullable=True),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('dispatched_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('arrived_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('collected_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['staff_id'], ['staff.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_uniform_requests_staff_id', 'uniform_requests', ['staff_id'])
    op.create_index('ix_uniform_requests_status', 'uniform_requests', ['status'])
    op.create_index('ix_uniform_requests_staff_requested', 'uniform_requests', ['staff_id', 'requested_at'])
    op.create_index('ix_uniform_requests_status_requested', 'uniform_requests', ['status', 'requested_at'])

    op.create_table(
        'uniform_request_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('uniform_item_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['request_id'], ['uniform_requests.id']),
        sa.ForeignKeyConstraint(['uniform_item_id'], ['uniform_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('request_id', 'uniform_item_id', name='uq_uniform_request_items_request_item'),
        sa.CheckConstraint('quantity > 0', name='ck_uniform_request_items_quantity_positive'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_uniform_request_items_request_id', 'uniform_request_items', ['request_id'])
    op.create_index('ix_uniform_request_items_uniform_item_id', 'uniform_request_items', ['uniform_item_id'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('uniform_request_items')
    op.drop_table('uniform_requests')
    op.drop_table('uniform_items')
    op.drop_table('system_settings')
    op.drop_table('role_cooldown_limits')
    op.drop_table('role_allowance_limits')
    op.drop_table('staff')
    op.drop_table('roles')
    op.drop_table('stores')
