"""create research documents

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:01.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "research_documents",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("image", sa.String(), nullable=False, server_default=""),
        sa.Column("thumbnail", sa.String(), nullable=False, server_default=""),
        sa.Column("cover_image", sa.String(), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("pin", sa.String(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_research_documents_category"), "research_documents", ["category"], unique=False)
    op.create_index(op.f("ix_research_documents_updated_at"), "research_documents", ["updated_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_research_documents_updated_at"), table_name="research_documents")
    op.drop_index(op.f("ix_research_documents_category"), table_name="research_documents")
    op.drop_table("research_documents")
