"""Initial migration - create all base tables

Revision ID: 0_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Create enums (SQLAlchemy persists member names) ───────────────
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE role_enum AS ENUM ('USER', 'ADMIN');
        EXCEPTION WHEN duplicate_object THEN null;
        END $$;
    """)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE difficulty_enum AS ENUM ('EASY', 'MEDIUM', 'HARD');
        EXCEPTION WHEN duplicate_object THEN null;
        END $$;
    """)

    difficulty = postgresql.ENUM('EASY', 'MEDIUM', 'HARD', name='difficulty_enum', create_type=False)

    # ── users table ───────────────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', postgresql.ENUM('USER', 'ADMIN', name='role_enum', create_type=False), nullable=False, server_default='USER'),
        sa.Column('avatar', sa.String(500), nullable=False, server_default=''),
        sa.Column('preferences', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_quizzes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed_quizzes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_time_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_quiz_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ── quizzes table ─────────────────────────────────────────────────
    op.create_table(
        'quizzes',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('difficulty', difficulty, nullable=False, server_default='MEDIUM'),
        sa.Column('time_limit', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('total_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('creator_id', sa.UUID(), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('shuffle_questions', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('allow_review', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('show_correct_answers', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('passing_score', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('total_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_time_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pass_rate', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_quizzes_category', 'category'),
        sa.Index('ix_quizzes_creator_id', 'creator_id'),
        sa.Index('ix_quizzes_created_at', 'created_at'),
    )

    # ── quiz_tags table ───────────────────────────────────────────────
    op.create_table(
        'quiz_tags',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('quiz_id', sa.UUID(), nullable=False),
        sa.Column('tag', sa.String(50), nullable=False),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('quiz_id', 'tag', name='uq_quiz_tag'),
        sa.Index('ix_quiz_tags_quiz_id', 'quiz_id'),
        sa.Index('ix_quiz_tags_tag', 'tag'),
    )

    # ── questions table ───────────────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('quiz_id', sa.UUID(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('difficulty', difficulty, nullable=False, server_default='MEDIUM'),
        sa.Column('points', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_questions_quiz_id', 'quiz_id'),
    )

    # ── attempts table ────────────────────────────────────────────────
    op.create_table(
        'attempts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('quiz_id', sa.UUID(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('earned_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('time_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_attempts_user_id', 'user_id'),
        sa.Index('ix_attempts_quiz_id', 'quiz_id'),
        sa.Index('ix_attempts_completed', 'completed'),
        sa.Index('ix_attempts_completed_at', 'completed_at'),
    )

    # ── attempt_answers table ─────────────────────────────────────────
    op.create_table(
        'attempt_answers',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('attempt_id', sa.UUID(), nullable=False),
        sa.Column('question_id', sa.UUID(), nullable=False),
        sa.Column('selected_option', sa.Integer(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('time_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['attempt_id'], ['attempts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_attempt_answers_attempt_id', 'attempt_id'),
    )


def downgrade() -> None:
    op.drop_table('attempt_answers')
    op.drop_table('attempts')
    op.drop_table('questions')
    op.drop_table('quiz_tags')
    op.drop_table('quizzes')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.execute("DROP TYPE IF EXISTS difficulty_enum")
    op.execute("DROP TYPE IF EXISTS role_enum")
