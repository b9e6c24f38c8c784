"""create projects and phrases tables

Revision ID: 20261018_1000_create_projects_and_phrases
Revises:
Create Date: 2026-10-18 10:00:00
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '20261018_1000_create_projects_and_phrases'
down_revision = None
branch_labels = None
depends_on = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def upgrade() -> None:
    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('project_key', sa.String(64), nullable=False),
        sa.Column('source_locale', sa.String(16), nullable=False, server_default='en'),
        sa.Column('supported_locales', _json(), nullable=False),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_projects_id', 'projects', ['id'])
    op.create_index('ix_projects_project_key', 'projects', ['project_key'], unique=True)

    op.create_table(
        'phrases',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('key', sa.String(255), nullable=False),
        sa.Column('source_text', sa.Text(), nullable=False),
        sa.Column('context', sa.Text(), nullable=True),
        sa.Column('source_hash', sa.String(64), nullable=False),
        sa.Column('content_hash', sa.String(64), nullable=True),
        sa.Column('status', sa.String(32), nullable=False, server_default='pending'),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('tags', _json(), nullable=False),
        sa.Column('translations', _json(), nullable=False),
        sa.Column('occurrences', _json(), nullable=True),
        sa.Column('source_url', sa.Text(), nullable=True),
        sa.Column('source_type', sa.String(64), nullable=True),
        sa.Column('screenshot', sa.Text(), nullable=True),
        sa.Column('phrase_metadata', _json(), nullable=True),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('project_id', 'source_hash', name='uq_phrases_project_source_hash'),
    )
    op.create_index('ix_phrases_id', 'phrases', ['id'])
    op.create_index('ix_phrases_project_id', 'phrases', ['project_id'])
    op.create_index('ix_phrases_project_key', 'phrases', ['project_id', 'key'])
    op.create_index('ix_phrases_status', 'phrases', ['status'])
    op.create_index('ix_phrases_is_archived', 'phrases', ['is_archived'])


def downgrade() -> None:
    op.drop_index('ix_phrases_is_archived', table_name='phrases')
    op.drop_index('ix_phrases_status', table_name='phrases')
    op.drop_index('ix_phrases_project_key', table_name='phrases')
    op.drop_index('ix_phrases_project_id', table_name='phrases')
    op.drop_index('ix_phrases_id', table_name='phrases')
    op.drop_table('phrases')
    op.drop_index('ix_projects_project_key', table_name='projects')
    op.drop_index('ix_projects_id', table_name='projects')
    op.drop_table('projects')
