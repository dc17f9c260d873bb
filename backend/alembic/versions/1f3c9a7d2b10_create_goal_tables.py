"""create goals, goal_checkins, miss_markers, profiles

Revision ID: 1f3c9a7d2b10
Revises:
Create Date: 2025-12-02 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1f3c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'goals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('recurrence_kind', sa.String(length=20), server_default='none', nullable=False),
        sa.Column('repeat_days', sa.String(length=20), nullable=True),
        sa.Column('repeat_count', sa.Integer(), nullable=True),
        sa.Column('any_days', sa.Boolean(), nullable=True),
        sa.Column('checkins_per_day', sa.Integer(), server_default='1', nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('reset_time', sa.Time(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.CheckConstraint('checkins_per_day >= 1', name='ck_goals_checkins_per_day'),
        sa.CheckConstraint('end_date IS NULL OR end_date >= start_date', name='ck_goals_date_range'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_goals_id', 'goals', ['id'])
    op.create_index('ix_goals_user_id', 'goals', ['user_id'])

    op.create_table(
        'goal_checkins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('goal_id', sa.Integer(), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.ForeignKeyConstraint(['goal_id'], ['goals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('goal_id', 'day', name='uq_goal_checkins_goal_day')
    )
    op.create_index('ix_goal_checkins_id', 'goal_checkins', ['id'])
    op.create_index('ix_goal_checkins_goal_id', 'goal_checkins', ['goal_id'])

    op.create_table(
        'miss_markers',
        sa.Column('goal_id', sa.Integer(), nullable=False),
        sa.Column('period_key', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.ForeignKeyConstraint(['goal_id'], ['goals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('goal_id', 'period_key')
    )

    op.create_table(
        'profiles',
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('instagram_username', sa.String(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('user_id')
    )
    op.create_index('ix_profiles_user_id', 'profiles', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_profiles_user_id', table_name='profiles')
    op.drop_table('profiles')
    op.drop_table('miss_markers')
    op.drop_index('ix_goal_checkins_goal_id', table_name='goal_checkins')
    op.drop_index('ix_goal_checkins_id', table_name='goal_checkins')
    op.drop_table('goal_checkins')
    op.drop_index('ix_goals_id', table_name='goals')
    op.drop_index('ix_goals_user_id', table_name='goals')
    op.drop_table('goals')
