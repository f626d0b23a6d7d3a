"""create_validation_tables

Revision ID: 4f2a91c07b3e
Revises:
Create Date: 2026-01-12 09:30:14.482113

Creates the unit validation schema: summaries, requests, source documents
and their extraction fragments, the requirement catalogue, per-run results
and prompt templates.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4f2a91c07b3e'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(with_updated: bool = False):
    columns = [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    ]
    if with_updated:
        columns.append(
            sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('NOW()'))
        )
    return columns


def upgrade() -> None:
    op.create_table(
        'validation_summaries',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('unit_code', sa.String(50), nullable=False),
        sa.Column('unit_title', sa.Text),
        sa.Column('unit_link', sa.Text),
        sa.Column('organization_code', sa.String(50)),
        *_timestamps(with_updated=True),
    )
    op.create_index('ix_validation_summaries_unit_code', 'validation_summaries', ['unit_code'])
    op.create_index('ix_validation_summaries_organization_code', 'validation_summaries', ['organization_code'])

    op.create_table(
        'validation_requests',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'summary_id',
            sa.Integer,
            sa.ForeignKey('validation_summaries.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('validation_category', sa.String(50), nullable=False),
        sa.Column('document_type', sa.String(50), nullable=False, server_default='unit'),
        sa.Column('file_search_store_name', sa.Text),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('validation_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('validation_total', sa.Integer, nullable=False, server_default='0'),
        sa.Column('validation_progress', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('error_message', sa.Text),
        sa.Column('provider', sa.String(20)),
        sa.Column('orchestration_mode', sa.String(20)),
        sa.Column('last_run_id', sa.String(36)),
        *_timestamps(with_updated=True),
        sa.Column('started_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True)),
    )
    op.create_index('ix_validation_requests_summary_id', 'validation_requests', ['summary_id'])
    op.create_index('ix_validation_requests_status', 'validation_requests', ['status'])

    op.create_table(
        'source_documents',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'validation_request_id',
            sa.Integer,
            sa.ForeignKey('validation_requests.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('storage_path', sa.Text, nullable=False),
        sa.Column('mime_type', sa.String(100), server_default='application/pdf'),
        sa.Column('extracted_content', sa.Text),  # Cached corpus text, NULL until extracted
        sa.Column('extracted_at', sa.TIMESTAMP(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_source_documents_validation_request_id', 'source_documents', ['validation_request_id'])

    op.create_table(
        'extraction_fragments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'document_id',
            sa.Integer,
            sa.ForeignKey('source_documents.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('ordinal', sa.Integer, nullable=False),
        sa.Column('page_number', sa.Integer),
        sa.Column('role', sa.String(50)),
        sa.Column('text', sa.Text, nullable=False),
    )
    op.create_index('idx_extraction_fragments_document', 'extraction_fragments', ['document_id', 'ordinal'])

    op.create_table(
        'unit_requirements',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('unit_code', sa.String(50), nullable=False),
        sa.Column('unit_link', sa.Text),
        sa.Column('requirement_type', sa.String(50), nullable=False),
        sa.Column('requirement_number', sa.String(50), nullable=False),
        sa.Column('requirement_text', sa.Text, nullable=False),
        sa.Column('element_text', sa.Text),
    )
    op.create_index('idx_unit_requirements_unit_type', 'unit_requirements', ['unit_code', 'requirement_type'])
    op.create_index('idx_unit_requirements_link', 'unit_requirements', ['unit_link'])

    op.create_table(
        'validation_results',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'validation_request_id',
            sa.Integer,
            sa.ForeignKey('validation_requests.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('run_id', sa.String(36), nullable=False),
        sa.Column('requirement_id', sa.Integer, sa.ForeignKey('unit_requirements.id')),
        sa.Column('requirement_type', sa.String(50)),
        sa.Column('requirement_number', sa.String(50)),
        sa.Column('requirement_text', sa.Text),
        sa.Column('status', sa.String(20), nullable=False),  # compliant, non_compliant, needs_review, error
        sa.Column('reasoning', sa.Text),
        sa.Column('mapped_content', sa.Text),
        sa.Column('citations', sa.JSON),
        sa.Column('smart_questions', sa.Text),
        sa.Column('benchmark_answer', sa.Text),
        sa.Column('recommendations', sa.Text),
        sa.Column('parse_mode', sa.String(20), nullable=False, server_default='primary'),
        sa.Column('error_message', sa.Text),
        *_timestamps(),
    )
    op.create_index(
        'idx_validation_results_request_run',
        'validation_results',
        ['validation_request_id', 'run_id'],
    )

    op.create_table(
        'prompts',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('prompt_type', sa.String(50), nullable=False, server_default='validation'),
        sa.Column('requirement_type', sa.String(50)),
        sa.Column('document_type', sa.String(50)),
        sa.Column('prompt_text', sa.Text, nullable=False),
        sa.Column('system_instruction', sa.Text),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.text('true')),
        sa.Column('is_default', sa.Boolean, nullable=False, server_default=sa.text('false')),
        *_timestamps(),
    )
    op.create_index(
        'idx_prompts_lookup',
        'prompts',
        ['prompt_type', 'requirement_type', 'document_type'],
    )


def downgrade() -> None:
    op.drop_table('prompts')
    op.drop_table('validation_results')
    op.drop_table('unit_requirements')
    op.drop_table('extraction_fragments')
    op.drop_table('source_documents')
    op.drop_table('validation_requests')
    op.drop_table('validation_summaries')
