"""initial kpi schema

Revision ID: 3f1c2a9d7b10
Revises: 
Create Date: 2026-10-12 10:14:03.518220

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('position', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='staff'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_id', 'users', ['id'])

    op.create_table(
        'attendance_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('check_in_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('check_out_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('method', sa.String(), nullable=False, server_default='IP'),
        sa.Column('location', sa.String(), nullable=True),
    )
    op.create_index('ix_attendance_logs_id', 'attendance_logs', ['id'])

    op.create_table(
        'duties',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('duty_date', sa.Date(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('is_done', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_duties_id', 'duties', ['id'])

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('assigned_to_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(), nullable=True, server_default='pending'),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_tasks_id', 'tasks', ['id'])

    op.create_table(
        'individual_goals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('month_key', sa.String(7), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('target_value', sa.Float(), nullable=False),
        sa.Column('actual_value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_individual_goals_id', 'individual_goals', ['id'])
    op.create_index('ix_individual_goals_user_month', 'individual_goals', ['user_id', 'month_key'])

    op.create_table(
        'kpi_configs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('weight_okr', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('weight_behavior', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('weight_attendance', sa.Integer(), nullable=False, server_default='20'),
        sa.Column('penalty_late', sa.Float(), nullable=False, server_default='5'),
        sa.Column('penalty_missed_duty', sa.Float(), nullable=False, server_default='10'),
        sa.Column('penalty_absent', sa.Float(), nullable=False, server_default='15'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'kpi_criteria',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(), nullable=False, unique=True),
        sa.Column('label', sa.String(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_kpi_criteria_id', 'kpi_criteria', ['id'])

    op.create_table(
        'kpi_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('evaluator_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('month_key', sa.String(7), nullable=False),
        sa.Column('scores', sa.JSON(), nullable=False),
        sa.Column('self_scores', sa.JSON(), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(), nullable=False, server_default='DRAFT'),
        sa.Column('total_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('max_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('final_score', sa.Integer(), nullable=True),
        sa.Column('grade', sa.String(1), nullable=True),
        sa.Column('breakdown', sa.JSON(), nullable=True),
        sa.Column('stats_snapshot', sa.JSON(), nullable=True),
        sa.Column('goals_snapshot', sa.JSON(), nullable=True),
        sa.Column('bonus_amount', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'month_key', name='uq_kpi_user_month'),
    )
    op.create_index('ix_kpi_records_id', 'kpi_records', ['id'])

    op.create_table(
        'reward_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('kpi_record_id', sa.Integer(), sa.ForeignKey('kpi_records.id'), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_reward_transactions_id', 'reward_transactions', ['id'])


def downgrade() -> None:
    op.drop_table('reward_transactions')
    op.drop_table('kpi_records')
    op.drop_table('kpi_criteria')
    op.drop_table('kpi_configs')
    op.drop_table('individual_goals')
    op.drop_table('tasks')
    op.drop_table('duties')
    op.drop_table('attendance_logs')
    op.drop_table('users')
