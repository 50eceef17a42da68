"""Initial schema: organization, surveys, question catalogs, results, notifications, login logs

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('code', sa.String(50)),
        sa.Column('description', sa.Text()),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('departments.id')),
        *_timestamps(),
    )
    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False, unique=True),
        sa.Column('code', sa.String(50)),
        sa.Column('description', sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='employee'),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id')),
        sa.Column('job_id', sa.Integer(), sa.ForeignKey('jobs.id')),
        sa.Column('date_of_birth', sa.Date()),
        sa.Column('years_of_service', sa.Integer()),
        sa.Column('address', sa.String(255)),
        *_timestamps(),
    )
    op.create_index('ix_users_department_id', 'users', ['department_id'])
    op.create_index('ix_users_job_id', 'users', ['job_id'])

    op.create_table(
        'surveys',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('survey_type', sa.String(20), nullable=False, server_default='organizational'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('running', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('display', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        *_timestamps(),
    )
    op.create_index('ix_surveys_survey_type', 'surveys', ['survey_type'])

    op.create_table(
        'problems',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(20), nullable=False, server_default='single_choice'),
        sa.Column('category', sa.String(100), nullable=False, server_default=''),
        sa.Column('category_id', sa.Integer()),
        *[sa.Column(f'answer{i}_score', sa.Float(), nullable=False, server_default='0') for i in range(1, 7)],
        sa.Column('display_order', sa.Integer()),
        *_timestamps(),
    )
    op.create_index('ix_problems_display_order', 'problems', ['display_order'])

    op.create_table(
        'growth_survey_questions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(20), nullable=False, server_default='single_choice'),
        sa.Column('category', sa.String(50)),
        sa.Column('weight', sa.Float()),
        sa.Column('target_jobs', sa.JSON(), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('display_order', sa.Integer()),
        *_timestamps(),
    )
    op.create_index('ix_growth_survey_questions_display_order', 'growth_survey_questions', ['display_order'])

    op.create_table(
        'organizational_survey_results',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('survey_id', sa.Integer(), sa.ForeignKey('surveys.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('response', sa.JSON(), nullable=False),
        sa.Column('free_text', sa.JSON(), nullable=False),
        sa.Column('response_rate', sa.Float(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('survey_id', 'user_id', name='uq_org_results_survey_user'),
    )
    op.create_index('ix_organizational_survey_results_survey_id', 'organizational_survey_results', ['survey_id'])
    op.create_index('ix_organizational_survey_results_user_id', 'organizational_survey_results', ['user_id'])

    op.create_table(
        'organizational_survey_summary',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('survey_id', sa.Integer(), sa.ForeignKey('surveys.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        *[sa.Column(f'category{i}_score', sa.Float()) for i in range(1, 9)],
        sa.Column('total_score', sa.Float()),
        sa.Column('response_rate', sa.Float(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('survey_id', 'user_id', name='uq_org_summary_survey_user'),
    )
    op.create_index('ix_organizational_survey_summary_survey_id', 'organizational_survey_summary', ['survey_id'])
    op.create_index('ix_organizational_survey_summary_user_id', 'organizational_survey_summary', ['user_id'])

    op.create_table(
        'growth_survey_responses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('survey_id', sa.Integer(), sa.ForeignKey('surveys.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('growth_survey_questions.id'), nullable=False),
        sa.Column('answer', sa.Text()),
        sa.Column('score', sa.Float()),
        sa.Column('category', sa.String(50)),
        sa.Column('weight', sa.Float()),
        sa.Column('total_score', sa.Float(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('survey_id', 'user_id', 'question_id', name='uq_growth_responses_survey_user_question'),
    )
    op.create_index('ix_growth_survey_responses_survey_id', 'growth_survey_responses', ['survey_id'])
    op.create_index('ix_growth_survey_responses_user_id', 'growth_survey_responses', ['user_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('survey_id', sa.Integer(), sa.ForeignKey('surveys.id')),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.Integer()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('read_at', sa.DateTime()),
        sa.Column('mailed_at', sa.DateTime()),
        sa.Column('provider_message_id', sa.String(255)),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_survey_id', 'notifications', ['survey_id'])

    op.create_table(
        'login_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer()),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('login_status', sa.String(20), nullable=False),
        sa.Column('failure_reason', sa.String(255)),
        sa.Column('ip_address', sa.String(64)),
        sa.Column('user_agent', sa.String(512)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_login_logs_user_id', 'login_logs', ['user_id'])
    op.create_index('ix_login_logs_created_at', 'login_logs', ['created_at'])


def downgrade() -> None:
    for name in ('login_logs', 'notifications', 'growth_survey_responses', 'organizational_survey_summary',
                 'organizational_survey_results', 'growth_survey_questions', 'problems', 'surveys',
                 'users', 'jobs', 'departments'):
        op.drop_table(name)
