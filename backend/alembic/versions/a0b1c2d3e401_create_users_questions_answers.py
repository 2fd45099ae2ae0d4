"""create users, questions and answers tables

Revision ID: a0b1c2d3e401
Revises:
Create Date: 2024-12-01 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = 'a0b1c2d3e401'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False, comment='Identity (UUID)'),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 質問は管理側で投入する (1日1問)
    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('question_date', sa.Date(), nullable=False, comment='出題日 (1日1問)'),
        sa.Column('text', sa.Text(), nullable=False, comment='質問文'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_questions_question_date', 'questions', ['question_date'], unique=True)

    op.create_table(
        'answers',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('question_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False, comment='回答者のIdentity'),
        sa.Column('answer_text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='CASCADE'),
        # upsertのキー
        sa.UniqueConstraint('question_id', 'user_id', name='uq_answer_question_user'),
    )
    op.create_index('ix_answers_question_id', 'answers', ['question_id'])
    op.create_index('ix_answers_user_id', 'answers', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_answers_user_id', table_name='answers')
    op.drop_index('ix_answers_question_id', table_name='answers')
    op.drop_table('answers')
    op.drop_index('ix_questions_question_date', table_name='questions')
    op.drop_table('questions')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
