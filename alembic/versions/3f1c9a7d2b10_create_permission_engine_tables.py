"""create_permission_engine_tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-17 09:12:44.201583

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    """
    Create the permission engine schema.

    Creates:
    - tenants, users, tenant_memberships
    - catalog: views, features, modules, module_views, module_features,
      tenant_modules, menu_items, sub_menu_items
    - user_levels and their view/feature permission rows
    - user_level_assignments
    - audit_log_entries (bounded by the application, no foreign keys)
    """
    # 1. Tenants and users
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('auth_user_id', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('auth_user_id')
    )
    op.create_index('ix_users_auth_user_id', 'users', ['auth_user_id'])
    op.create_table(
        'tenant_memberships',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'user_id', name='uq_tenant_user')
    )
    op.create_index('ix_tenant_memberships_tenant_id', 'tenant_memberships', ['tenant_id'])
    op.create_index('ix_tenant_memberships_user_id', 'tenant_memberships', ['user_id'])

    # 2. Catalog
    op.create_table(
        'views',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('url', sa.String(length=500), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'features',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('key', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'modules',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )
    op.create_table(
        'module_views',
        sa.Column('module_id', sa.String(length=100), nullable=False),
        sa.Column('view_id', sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(['module_id'], ['modules.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['view_id'], ['views.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('module_id', 'view_id')
    )
    op.create_table(
        'module_features',
        sa.Column('module_id', sa.String(length=100), nullable=False),
        sa.Column('feature_id', sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(['module_id'], ['modules.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['feature_id'], ['features.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('module_id', 'feature_id')
    )
    op.create_table(
        'tenant_modules',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('module_id', sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['module_id'], ['modules.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'module_id', name='uq_tenant_module')
    )
    op.create_index('ix_tenant_modules_tenant_id', 'tenant_modules', ['tenant_id'])
    op.create_table(
        'menu_items',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('sequence_index', sa.Integer(), nullable=False),
        sa.Column('view_id', sa.String(length=100), nullable=True),
        sa.Column('feature_id', sa.String(length=100), nullable=True),
        sa.Column('is_entrypoint', sa.Boolean(), nullable=False),
        sa.Column('icon', sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['view_id'], ['views.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['feature_id'], ['features.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_menu_items_tenant_id', 'menu_items', ['tenant_id'])
    op.create_table(
        'sub_menu_items',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('menu_item_id', sa.String(length=100), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('sequence_index', sa.Integer(), nullable=False),
        sa.Column('view_id', sa.String(length=100), nullable=True),
        sa.Column('feature_id', sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['menu_item_id'], ['menu_items.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['view_id'], ['views.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['feature_id'], ['features.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sub_menu_items_tenant_id', 'sub_menu_items', ['tenant_id'])
    op.create_index('ix_sub_menu_items_menu_item_id', 'sub_menu_items', ['menu_item_id'])

    # 3. User levels and permission matrices
    op.create_table(
        'user_levels',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'name', name='uq_user_level_tenant_name')
    )
    op.create_index('ix_user_levels_tenant_id', 'user_levels', ['tenant_id'])
    op.create_table(
        'user_level_view_permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('user_level_id', sa.Integer(), nullable=False),
        sa.Column('view_id', sa.String(length=100), nullable=False),
        sa.Column('state', sa.String(length=7), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_level_id'], ['user_levels.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['view_id'], ['views.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_level_id', 'view_id', name='uq_level_view')
    )
    op.create_index('ix_user_level_view_permissions_tenant_id', 'user_level_view_permissions', ['tenant_id'])
    op.create_index('ix_user_level_view_permissions_user_level_id', 'user_level_view_permissions', ['user_level_id'])
    op.create_table(
        'user_level_feature_permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('user_level_id', sa.Integer(), nullable=False),
        sa.Column('feature_id', sa.String(length=100), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('state', sa.String(length=7), nullable=False),
        sa.Column('scope', sa.String(length=7), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_level_id'], ['user_levels.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['feature_id'], ['features.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_level_id', 'feature_id', 'action', name='uq_level_feature_action')
    )
    op.create_index('ix_user_level_feature_permissions_tenant_id', 'user_level_feature_permissions', ['tenant_id'])
    op.create_index('ix_user_level_feature_permissions_user_level_id', 'user_level_feature_permissions', ['user_level_id'])

    # 4. Assignments
    op.create_table(
        'user_level_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_level_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_level_id'], ['user_levels.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'user_level_id', name='uq_user_level_assignment')
    )
    op.create_index('ix_assignments_tenant_user', 'user_level_assignments', ['tenant_id', 'user_id'])
    op.create_index('ix_assignments_tenant_level', 'user_level_assignments', ['tenant_id', 'user_level_id'])

    # 5. Audit log
    op.create_table(
        'audit_log_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(length=21), nullable=False),
        sa.Column('entity_id', sa.String(length=100), nullable=False),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('before_state', sa.JSON(), nullable=True),
        sa.Column('after_state', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_audit_tenant_timestamp', 'audit_log_entries', ['tenant_id', 'timestamp'])


def downgrade() -> None:
    """Drop the permission engine schema (children before parents)."""
    op.drop_index('ix_audit_tenant_timestamp', table_name='audit_log_entries')
    op.drop_table('audit_log_entries')
    op.drop_table('user_level_assignments')
    op.drop_table('user_level_feature_permissions')
    op.drop_table('user_level_view_permissions')
    op.drop_table('user_levels')
    op.drop_table('sub_menu_items')
    op.drop_table('menu_items')
    op.drop_table('tenant_modules')
    op.drop_table('module_features')
    op.drop_table('module_views')
    op.drop_table('modules')
    op.drop_table('features')
    op.drop_table('views')
    op.drop_table('tenant_memberships')
    op.drop_table('users')
    op.drop_table('tenants')
