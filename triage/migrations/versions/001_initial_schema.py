"""Initial schema baseline

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the documents, swipes, summaries and reads tables.
For databases created by init_db(), mark this migration as complete without running it:
    alembic stamp 001
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # documents table
    op.create_table(
        "documents",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("author", sa.Text(), nullable=True),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("word_count", sa.Integer(), nullable=True),
        sa.Column("reading_time", sa.Text(), nullable=True),
        sa.Column("saved_at", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("tags", sa.Text(), nullable=True),
        sa.Column("synced_at", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "location IN ('new', 'later', 'shortlist', 'archive')",
            name="ck_documents_location",
        ),
    )
    op.create_index("idx_documents_saved_at", "documents", ["saved_at"])
    op.create_index("idx_documents_synced_at", "documents", ["synced_at"])

    # swipes table
    op.create_table(
        "swipes",
        sa.Column("document_id", sa.Text(), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("swiped_at", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("document_id"),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"]),
        sa.CheckConstraint("action IN ('keep', 'dismiss')", name="ck_swipes_action"),
    )
    op.create_index("idx_swipes_swiped_at", "swipes", ["swiped_at"])

    # summaries table
    op.create_table(
        "summaries",
        sa.Column("document_id", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("key_points", sa.Text(), nullable=True),
        sa.Column("created_at", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("document_id"),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"]),
    )

    # reads table
    op.create_table(
        "reads",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("document_id", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("read_at", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"]),
    )


def downgrade() -> None:
    op.drop_table("reads")
    op.drop_table("summaries")
    op.drop_index("idx_swipes_swiped_at", table_name="swipes")
    op.drop_table("swipes")
    op.drop_index("idx_documents_synced_at", table_name="documents")
    op.drop_index("idx_documents_saved_at", table_name="documents")
    op.drop_table("documents")
