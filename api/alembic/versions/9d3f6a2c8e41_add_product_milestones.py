"""add product milestones

Revision ID: 9d3f6a2c8e41
Revises: 4c1e2b7d9a10
Create Date: 2025-10-06 10:30:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9d3f6a2c8e41'
down_revision: Union[str, None] = '4c1e2b7d9a10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'milestones',
        sa.Column('milestone_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=50), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('priority', sa.String(length=50), nullable=False),
        sa.Column('target_date', sa.Date(), nullable=True),
        sa.Column('actual_date', sa.Date(), nullable=True,
                  comment='Date the milestone was completed'),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_by', sa.String(length=255), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('milestone_id')
    )
    op.create_index(op.f('ix_milestones_product_id'), 'milestones', ['product_id'], unique=False)

    op.create_table(
        'milestone_updates',
        sa.Column('update_id', sa.Integer(), nullable=False),
        sa.Column('milestone_id', sa.Integer(), nullable=False),
        sa.Column('update_text', sa.Text(), nullable=False),
        sa.Column('status_change', sa.String(length=50), nullable=True),
        sa.Column('updated_by', sa.String(length=255), nullable=False),
        sa.Column('update_date', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['milestone_id'], ['milestones.milestone_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('update_id')
    )
    op.create_index(op.f('ix_milestone_updates_milestone_id'), 'milestone_updates', ['milestone_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_milestone_updates_milestone_id'), table_name='milestone_updates')
    op.drop_table('milestone_updates')
    op.drop_index(op.f('ix_milestones_product_id'), table_name='milestones')
    op.drop_table('milestones')
