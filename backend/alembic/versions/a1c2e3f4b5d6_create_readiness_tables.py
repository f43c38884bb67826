"""create_readiness_tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = 'a1c2e3f4b5d6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('daily_metrics',
        sa.Column('id', sqlmodel.sql.sqltypes.GUID(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('hrv', sa.Float(), nullable=True),
        sa.Column('resting_heart_rate', sa.Float(), nullable=True),
        sa.Column('sleep_hours', sa.Float(), nullable=True),
        sa.Column('sleep_quality', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('date', name='uq_daily_metrics_date'),
    )
    op.create_index('ix_daily_metrics_date', 'daily_metrics', ['date'])

    op.create_table('readiness_score',
        sa.Column('id', sqlmodel.sql.sqltypes.GUID(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('category', sa.Enum('OPTIMAL', 'MODERATE', 'LOW', 'FATIGUE', 'UNKNOWN', name='readinesscategory'), nullable=False),
        sa.Column('hrv_baseline', sa.Float(), nullable=False),
        sa.Column('hrv_deviation_percent', sa.Float(), nullable=False),
        sa.Column('rhr_adjustment', sa.Float(), nullable=False),
        sa.Column('sleep_adjustment', sa.Float(), nullable=False),
        sa.Column('mode', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('window_length_days', sa.Integer(), nullable=False),
        sa.Column('calculated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('date', name='uq_readiness_score_date'),
    )
    op.create_index('ix_readiness_score_date', 'readiness_score', ['date'])

    op.create_table('readiness_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('window_length_days', sa.Integer(), nullable=False),
        sa.Column('minimum_samples_for_baseline', sa.Integer(), nullable=False),
        sa.Column('use_rhr_adjustment', sa.Boolean(), nullable=False),
        sa.Column('use_sleep_adjustment', sa.Boolean(), nullable=False),
        sa.Column('mode', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('window_end_hour', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('readiness_settings')
    op.drop_index('ix_readiness_score_date', table_name='readiness_score')
    op.drop_table('readiness_score')
    op.drop_index('ix_daily_metrics_date', table_name='daily_metrics')
    op.drop_table('daily_metrics')
    sa.Enum(name='readinesscategory').drop(op.get_bind(), checkfirst=True)
