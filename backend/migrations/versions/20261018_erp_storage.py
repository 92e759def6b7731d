"""ERP storage: single-row JSON document table

Revision ID: 20261018_erp_storage
Revises:
Create Date: 2026-10-18

The whole business document (catalog, ledger, parties, settings) lives in one
JSON payload keyed by the document key. This is also the shape of the
Supabase mirror table, so the same DDL serves both sides.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_erp_storage'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('erp_storage',
        sa.Column('id', sa.String(length=128), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_erp_storage'))
    )


def downgrade():
    op.drop_table('erp_storage')
