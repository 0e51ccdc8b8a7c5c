"""Add app_settings table for database-backed AI configuration

Revision ID: 5d19e8f4a6c2
Revises: 3a7c91e0d2b4
Create Date: 2026-03-05 21:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = '5d19e8f4a6c2'
down_revision = '3a7c91e0d2b4'
branch_labels = None
depends_on = None


def upgrade():
    # No seed rows: an absent key falls back to the environment default
    op.create_table('app_settings',
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('key')
    )


def downgrade():
    op.drop_table('app_settings')
