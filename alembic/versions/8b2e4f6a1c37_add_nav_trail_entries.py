"""add_nav_trail_entries

Revision ID: 8b2e4f6a1c37
Revises: 3f1c9a7d2b10
Create Date: 2026-10-17 15:40:02.118364

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8b2e4f6a1c37'
down_revision: Union[str, Sequence[str], None] = '3f1c9a7d2b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create nav_trail_entries (per-session visits for breadcrumbs and recents)."""
    op.create_table(
        'nav_trail_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(length=128), nullable=False),
        sa.Column('depth', sa.Integer(), nullable=False),
        sa.Column('view_id', sa.String(length=100), nullable=False),
        sa.Column('url', sa.String(length=2048), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['view_id'], ['views.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_nav_trail_tenant_user_session',
        'nav_trail_entries',
        ['tenant_id', 'user_id', 'session_id'],
    )


def downgrade() -> None:
    """Drop nav_trail_entries."""
    op.drop_index('ix_nav_trail_tenant_user_session', table_name='nav_trail_entries')
    op.drop_table('nav_trail_entries')
