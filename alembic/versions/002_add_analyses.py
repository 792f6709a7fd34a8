"""add analyses, analysis_drops and users.last_analysis_date

Revision ID: 002_analyses
Revises: 001_initial
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = '002_analyses'
down_revision = '001_initial'
branch_labels = None
depends_on = None


def upgrade():
    op.add_column('users', sa.Column('last_analysis_date', sa.DateTime(), nullable=True))
    op.create_index('ix_users_last_analysis_date', 'users', ['last_analysis_date'])

    op.create_table('analyses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('bullet_points', sa.Text(), nullable=False),
        sa.Column('is_favorited', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_analyses_user_id', 'analyses', ['user_id'])
    op.create_index('ix_analyses_is_favorited', 'analyses', ['is_favorited'])
    op.create_index('ix_analyses_created_at', 'analyses', ['created_at'])
    op.create_index(
        'ix_analyses_user_favorited_created', 'analyses',
        ['user_id', 'is_favorited', 'created_at'],
    )

    op.create_table('analysis_drops',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('analysis_id', sa.Integer(), nullable=False),
        sa.Column('drop_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['analysis_id'], ['analyses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['drop_id'], ['drops.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_analysis_drops_analysis_id', 'analysis_drops', ['analysis_id'])
    op.create_index('ix_analysis_drops_drop_id', 'analysis_drops', ['drop_id'])


def downgrade():
    op.drop_index('ix_analysis_drops_drop_id', 'analysis_drops')
    op.drop_index('ix_analysis_drops_analysis_id', 'analysis_drops')
    op.drop_table('analysis_drops')
    op.drop_index('ix_analyses_user_favorited_created', 'analyses')
    op.drop_index('ix_analyses_created_at', 'analyses')
    op.drop_index('ix_analyses_is_favorited', 'analyses')
    op.drop_index('ix_analyses_user_id', 'analyses')
    op.drop_table('analyses')
    op.drop_index('ix_users_last_analysis_date', 'users')
    op.drop_column('users', 'last_analysis_date')
