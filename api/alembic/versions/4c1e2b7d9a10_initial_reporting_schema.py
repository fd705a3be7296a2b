"""initial reporting schema

Revision ID: 4c1e2b7d9a10
Revises:
Create Date: 2025-09-01 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1e2b7d9a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('email')
    )

    op.create_table(
        'audit_logs',
        sa.Column('log_id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id']),
        sa.PrimaryKeyConstraint('log_id')
    )
    op.create_index(op.f('ix_audit_logs_log_id'), 'audit_logs', ['log_id'], unique=False)

    # Metric library
    op.create_table(
        'performance_metrics',
        sa.Column('metric_id', sa.Integer(), nullable=False),
        sa.Column('unique_id', sa.String(length=50), nullable=False,
                  comment='Stable external identifier, e.g. PM-001'),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('mandate', sa.String(length=50), nullable=True),
        sa.Column('legal_regulatory', sa.Boolean(), nullable=False),
        sa.Column('notice', sa.Text(), nullable=True),
        sa.Column('applicable_phases', sa.JSON(), nullable=True,
                  comment='Product lifecycle phases (Discovery, Alpha, Beta, Live, Retired) the metric applies to'),
        sa.Column('measure', sa.String(length=50), nullable=False),
        sa.Column('mandatory', sa.Boolean(), nullable=False),
        sa.Column('validation_criteria', sa.Text(), nullable=True,
                  comment='min:/max: clauses for numeric measures, comma-separated options for option measures'),
        sa.Column('can_report_null_return', sa.Boolean(), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('updated_by', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('metric_id'),
        sa.UniqueConstraint('unique_id')
    )

    # One value per metric, product and period
    op.create_table(
        'performance_metric_data',
        sa.Column('data_id', sa.Integer(), nullable=False),
        sa.Column('metric_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=50), nullable=False),
        sa.Column('reporting_period', sa.String(length=20), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('is_null_return', sa.Boolean(), nullable=False),
        sa.Column('is_submitted', sa.Boolean(), nullable=False,
                  comment='Locked as part of a finalized return'),
        sa.Column('submitted_by', sa.String(length=255), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['metric_id'], ['performance_metrics.metric_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('data_id'),
        sa.UniqueConstraint('metric_id', 'product_id', 'reporting_period',
                            name='uq_metric_data_metric_product_period')
    )
    op.create_index(op.f('ix_performance_metric_data_metric_id'), 'performance_metric_data', ['metric_id'], unique=False)
    op.create_index(op.f('ix_performance_metric_data_product_id'), 'performance_metric_data', ['product_id'], unique=False)
    op.create_index(op.f('ix_performance_metric_data_reporting_period'), 'performance_metric_data', ['reporting_period'], unique=False)

    op.create_table(
        'product_allocations',
        sa.Column('allocation_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=50), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('phase', sa.String(length=50), nullable=True),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('allocated_at', sa.DateTime(), nullable=False),
        sa.Column('allocated_by', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('allocation_id'),
        sa.UniqueConstraint('product_id', 'user_email', name='uq_product_allocation_product_user')
    )
    op.create_index(op.f('ix_product_allocations_product_id'), 'product_allocations', ['product_id'], unique=False)
    op.create_index(op.f('ix_product_allocations_user_email'), 'product_allocations', ['user_email'], unique=False)

    op.create_table(
        'report_submissions',
        sa.Column('submission_id', sa.Integer(), nullable=False),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('reporting_period', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('submitted_by', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('submission_id'),
        sa.UniqueConstraint('user_email', 'reporting_period', name='uq_report_submission_user_period')
    )
    op.create_index(op.f('ix_report_submissions_user_email'), 'report_submissions', ['user_email'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_report_submissions_user_email'), table_name='report_submissions')
    op.drop_table('report_submissions')
    op.drop_index(op.f('ix_product_allocations_user_email'), table_name='product_allocations')
    op.drop_index(op.f('ix_product_allocations_product_id'), table_name='product_allocations')
    op.drop_table('product_allocations')
    op.drop_index(op.f('ix_performance_metric_data_reporting_period'), table_name='performance_metric_data')
    op.drop_index(op.f('ix_performance_metric_data_product_id'), table_name='performance_metric_data')
    op.drop_index(op.f('ix_performance_metric_data_metric_id'), table_name='performance_metric_data')
    op.drop_table('performance_metric_data')
    op.drop_table('performance_metrics')
    op.drop_index(op.f('ix_audit_logs_log_id'), table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_table('users')
