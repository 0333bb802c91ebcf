"""org hierarchy, roles, users, dealers, audit

Revision ID: 0001_org_hierarchy
Revises: 
Create Date: 2026-10-17
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_org_hierarchy'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    op.create_table('regions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
        _timestamps(),
    )
    op.create_table('areas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('region_id', sa.Integer(), sa.ForeignKey('regions.id', ondelete='CASCADE'), nullable=False),
        _timestamps(),
    )
    op.create_index('ix_areas_region_id', 'areas', ['region_id'])
    op.create_table('territories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('area_id', sa.Integer(), sa.ForeignKey('areas.id', ondelete='CASCADE'), nullable=False),
        _timestamps(),
    )
    op.create_index('ix_territories_area_id', 'territories', ['area_id'])

    op.create_table('roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False, unique=True),
        sa.Column('is_system', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        _timestamps(),
    )

    # users.dealer_id FK is added after dealers exists (the two tables reference each other)
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False, unique=True),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id'), nullable=False),
        sa.Column('region_id', sa.Integer(), sa.ForeignKey('regions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('area_id', sa.Integer(), sa.ForeignKey('areas.id', ondelete='SET NULL'), nullable=True),
        sa.Column('territory_id', sa.Integer(), sa.ForeignKey('territories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('dealer_id', sa.Integer(), nullable=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _timestamps(),
    )
    for col in ('username', 'email', 'role_id', 'region_id', 'area_id', 'territory_id', 'dealer_id', 'manager_id'):
        op.create_index(f'ix_users_{col}', 'users', [col])

    op.create_table('dealers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('dealer_code', sa.String(length=32), nullable=False, unique=True),
        sa.Column('business_name', sa.String(length=150), nullable=False),
        sa.Column('contact_person', sa.String(length=128)),
        sa.Column('email', sa.String(length=150)),
        sa.Column('phone_number', sa.String(length=32)),
        sa.Column('address', sa.String(length=255)),
        sa.Column('city', sa.String(length=64)),
        sa.Column('state', sa.String(length=64)),
        sa.Column('pincode', sa.String(length=16)),
        sa.Column('gst_number', sa.String(length=32)),
        sa.Column('lat', sa.Float()),
        sa.Column('lng', sa.Float()),
        sa.Column('region_id', sa.Integer(), sa.ForeignKey('regions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('area_id', sa.Integer(), sa.ForeignKey('areas.id', ondelete='SET NULL'), nullable=True),
        sa.Column('territory_id', sa.Integer(), sa.ForeignKey('territories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        _timestamps(),
    )
    for col in ('dealer_code', 'business_name', 'region_id', 'area_id', 'territory_id', 'manager_id'):
        op.create_index(f'ix_dealers_{col}', 'dealers', [col])

    with op.batch_alter_table('users') as batch:
        batch.create_foreign_key('fk_users_dealer_id', 'dealers', ['dealer_id'], ['id'], ondelete='SET NULL')

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_audit_logs_actor_user_id', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])


def downgrade():
    op.drop_table('audit_logs')
    with op.batch_alter_table('users') as batch:
        batch.drop_constraint('fk_users_dealer_id', type_='foreignkey')
    op.drop_table('dealers')
    op.drop_table('users')
    op.drop_table('roles')
    op.drop_table('territories')
    op.drop_table('areas')
    op.drop_table('regions')
