from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20251019_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("collection", sa.String(64), primary_key=True, nullable=False),
        sa.Column("id", sa.String(64), primary_key=True, nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    # membership lookups during winner reconciliation
    op.execute(
        "CREATE INDEX ix_documents_submission_reg ON documents "
        "(collection, (data->>'competition_id'), (data->>'registration_id'))"
    )
    op.execute("CREATE INDEX ix_documents_is_winner ON documents (collection, (data->>'is_winner'))")

def downgrade() -> None:
    op.drop_index("ix_documents_is_winner", table_name="documents")
    op.drop_index("ix_documents_submission_reg", table_name="documents")
    op.drop_table("documents")
