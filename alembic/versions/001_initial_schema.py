"""initial schema - users, questions, drops, messages

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Users table (ids come from the identity provider)
    op.create_table('users',
        sa.Column('id', sa.String(255), nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('first_name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('profile_image_url', sa.String(1024), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_name', 'users', ['name'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    # Questions table
    op.create_table('questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('category', sa.String(50), nullable=True, server_default='general'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_questions_is_active', 'questions', ['is_active'])

    # Drops table
    op.create_table('drops',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('answer', sa.Text(), nullable=False),
        sa.Column('journaling_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'question_id', 'journaling_date', name='uq_drops_user_question_day'),
    )
    op.create_index('ix_drops_user_id', 'drops', ['user_id'])
    op.create_index('ix_drops_created_at', 'drops', ['created_at'])
    op.create_index('ix_drops_user_created', 'drops', ['user_id', 'created_at'])

    # Messages table
    op.create_table('messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('drop_id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('from_user', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['drop_id'], ['drops.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_messages_drop_created', 'messages', ['drop_id', 'created_at'])


def downgrade():
    op.drop_index('ix_messages_drop_created', 'messages')
    op.drop_table('messages')
    op.drop_index('ix_drops_user_created', 'drops')
    op.drop_index('ix_drops_created_at', 'drops')
    op.drop_index('ix_drops_user_id', 'drops')
    op.drop_table('drops')
    op.drop_index('ix_questions_is_active', 'questions')
    op.drop_table('questions')
    op.drop_index('ix_users_created_at', 'users')
    op.drop_index('ix_users_name', 'users')
    op.drop_table('users')
