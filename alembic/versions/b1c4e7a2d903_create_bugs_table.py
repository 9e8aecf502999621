"""create_bugs_table

Revision ID: b1c4e7a2d903
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'b1c4e7a2d903'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'bugs',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('severity', sa.String(length=10), nullable=False, server_default='medium'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='open'),
        sa.Column('assigned_to', sa.Text(), nullable=False, server_default='Unassigned'),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('reproducible', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('tags', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_bugs_status_severity', 'bugs', ['status', 'severity'])
    op.create_index('idx_bugs_created_at', 'bugs', ['created_at'])


def downgrade() -> None:
    op.drop_index('idx_bugs_created_at', table_name='bugs')
    op.drop_index('idx_bugs_status_severity', table_name='bugs')
    op.drop_table('bugs')
