"""Initial schema: campaigns, wiki entities and session summaries

Revision ID: 3a7c91e0d2b4
Revises:
Create Date: 2026-03-02 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c91e0d2b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('campaigns',
        sa.Column('id',          sa.Integer(),    nullable=False),
        sa.Column('name',        sa.String(200),  nullable=False),
        sa.Column('description', sa.Text(),       nullable=True),
        sa.Column('created_at',  sa.DateTime(),   nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table('locations',
        sa.Column('id',            sa.Integer(),    nullable=False),
        sa.Column('campaign_id',   sa.Integer(),    nullable=False),
        sa.Column('name',          sa.String(200),  nullable=False),
        sa.Column('type',          sa.String(100),  nullable=True),
        sa.Column('description',   sa.Text(),       nullable=True),
        sa.Column('founding_year', sa.String(100),  nullable=True),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', 'campaign_id', name='uq_location_name_campaign'),
    )

    op.create_table('characters',
        sa.Column('id',           sa.Integer(),    nullable=False),
        sa.Column('campaign_id',  sa.Integer(),    nullable=False),
        sa.Column('name',         sa.String(200),  nullable=False),
        sa.Column('type',         sa.String(20),   nullable=True),
        sa.Column('description',  sa.Text(),       nullable=True),
        sa.Column('species',      sa.String(100),  nullable=True),
        sa.Column('class',        sa.String(100),  nullable=True),
        sa.Column('level',        sa.Integer(),    nullable=True),
        sa.Column('hp',           sa.Integer(),    nullable=True),
        sa.Column('ac',           sa.Integer(),    nullable=True),
        sa.Column('status',       sa.String(50),   nullable=True),
        sa.Column('strength',     sa.Integer(),    nullable=True),
        sa.Column('dexterity',    sa.Integer(),    nullable=True),
        sa.Column('constitution', sa.Integer(),    nullable=True),
        sa.Column('intelligence', sa.Integer(),    nullable=True),
        sa.Column('wisdom',       sa.Integer(),    nullable=True),
        sa.Column('charisma',     sa.Integer(),    nullable=True),
        sa.Column('origin_id',    sa.Integer(),    nullable=True),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.ForeignKeyConstraint(['origin_id'], ['locations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', 'campaign_id', name='uq_character_name_campaign'),
    )

    op.create_table('organizations',
        sa.Column('id',              sa.Integer(),    nullable=False),
        sa.Column('campaign_id',     sa.Integer(),    nullable=False),
        sa.Column('name',            sa.String(200),  nullable=False),
        sa.Column('type',            sa.String(100),  nullable=True),
        sa.Column('description',     sa.Text(),       nullable=True),
        sa.Column('status',          sa.String(50),   nullable=True),
        sa.Column('founding',        sa.String(200),  nullable=True),
        sa.Column('leader_id',       sa.Integer(),    nullable=True),
        sa.Column('headquarters_id', sa.Integer(),    nullable=True),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.ForeignKeyConstraint(['leader_id'], ['characters.id']),
        sa.ForeignKeyConstraint(['headquarters_id'], ['locations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', 'campaign_id', name='uq_organization_name_campaign'),
    )

    op.create_table('items',
        sa.Column('id',          sa.Integer(),    nullable=False),
        sa.Column('campaign_id', sa.Integer(),    nullable=False),
        sa.Column('name',        sa.String(200),  nullable=False),
        sa.Column('type',        sa.String(100),  nullable=True),
        sa.Column('rarity',      sa.String(50),   nullable=True),
        sa.Column('description', sa.Text(),       nullable=True),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', 'campaign_id', name='uq_item_name_campaign'),
    )

    op.create_table('lore',
        sa.Column('id',          sa.Integer(),    nullable=False),
        sa.Column('campaign_id', sa.Integer(),    nullable=False),
        sa.Column('title',       sa.String(200),  nullable=False),
        sa.Column('type',        sa.String(100),  nullable=True),
        sa.Column('tag',         sa.String(100),  nullable=True),
        sa.Column('description', sa.Text(),       nullable=True),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('title', 'campaign_id', name='uq_lore_title_campaign'),
    )

    op.create_table('session_summaries',
        sa.Column('id',             sa.Integer(),    nullable=False),
        sa.Column('campaign_id',    sa.Integer(),    nullable=False),
        sa.Column('session_number', sa.Integer(),    nullable=False),
        sa.Column('title',          sa.String(200),  nullable=True),
        sa.Column('chapter_title',  sa.String(200),  nullable=True),
        sa.Column('recap',          sa.Text(),       nullable=True),
        sa.Column('outline',        sa.Text(),       nullable=True),
        sa.Column('notes',          sa.Text(),       nullable=True),
        sa.Column('notable_quotes', sa.JSON(),       nullable=True),
        sa.Column('created_at',     sa.DateTime(),   nullable=True),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('session_number', 'campaign_id', name='uq_session_number_campaign'),
    )

    op.create_table('organization_members',
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('character_id',    sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['character_id'], ['characters.id']),
        sa.PrimaryKeyConstraint('organization_id', 'character_id'),
    )

    # Which entities showed up in which session
    for table, column, target in (
        ('session_character_link', 'character_id', 'characters'),
        ('session_location_link',  'location_id',  'locations'),
        ('session_item_link',      'item_id',      'items'),
        ('session_lore_link',      'lore_id',      'lore'),
    ):
        op.create_table(table,
            sa.Column('session_id', sa.Integer(), nullable=False),
            sa.Column(column,       sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['session_id'], ['session_summaries.id']),
            sa.ForeignKeyConstraint([column], [f'{target}.id']),
            sa.PrimaryKeyConstraint('session_id', column),
        )


def downgrade():
    op.drop_table('session_lore_link')
    op.drop_table('session_item_link')
    op.drop_table('session_location_link')
    op.drop_table('session_character_link')
    op.drop_table('organization_members')
    op.drop_table('session_summaries')
    op.drop_table('lore')
    op.drop_table('items')
    op.drop_table('organizations')
    op.drop_table('characters')
    op.drop_table('locations')
    op.drop_table('campaigns')
