"""sites_sync_tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('organizations'):
        op.create_table('organizations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=500), nullable=False),
        sa.Column('phone', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
        )
        op.create_index(op.f('ix_organizations_organization_id'), 'organizations', ['organization_id'], unique=True)

    if not inspector.has_table('sites'):
        op.create_table('sites',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('site_id', sa.String(length=255), nullable=False),
        sa.Column('region', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('service_name', sa.String(length=255), nullable=True),
        sa.Column('status_date', sa.String(length=100), nullable=True),
        sa.Column('status_name', sa.String(length=255), nullable=True),
        sa.Column('organization_id', sa.String(length=16), nullable=True),
        sa.Column('transaction_date', sa.String(length=100), nullable=True),
        sa.Column('transaction_amount', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=50), nullable=True),
        sa.Column('fitting_room', sa.String(length=255), nullable=True),
        sa.Column('problems', sa.Text(), nullable=True),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id']),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_sites_site_id'), 'sites', ['site_id'], unique=True)
        op.create_index(op.f('ix_sites_region'), 'sites', ['region'], unique=False)
        op.create_index(op.f('ix_sites_status_name'), 'sites', ['status_name'], unique=False)
        op.create_index(op.f('ix_sites_organization_id'), 'sites', ['organization_id'], unique=False)

    if not inspector.has_table('sync_log'):
        op.create_table('sync_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sync_type', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('records_processed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('records_created', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('records_updated', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('records_skipped', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('execution_time_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_sync_log_status'), 'sync_log', ['status'], unique=False)
        op.create_index(op.f('ix_sync_log_created_at'), 'sync_log', ['created_at'], unique=False)

    if not inspector.has_table('settings'):
        op.create_table('settings',
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('key')
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    # sites referencia organizations: se elimina primero
    for table in ('sites', 'sync_log', 'settings', 'organizations'):
        if inspector.has_table(table):
            op.drop_table(table)
