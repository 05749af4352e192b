"""Create registrations and stored_files tables

Revision ID: 5d1f0c2b7a94
Revises:
Create Date: 2025-09-14 10:42:18.406113

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5d1f0c2b7a94"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "stored_files",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("storage_key", sa.VARCHAR(), nullable=False),
        sa.Column("original_name", sa.VARCHAR(), nullable=False),
        sa.Column("mime_type", sa.VARCHAR(), nullable=False),
        sa.Column(
            "category",
            sa.Enum(
                "receipt",
                "abstract",
                name="stored_file_category",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("size_bytes", sa.INTEGER(), nullable=False),
        sa.Column("uploaded_by", sa.VARCHAR(), nullable=False),
        sa.Column("data", sa.LargeBinary(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_stored_files_storage_key", "stored_files", ["storage_key"], unique=True
    )
    op.create_index(
        "ix_stored_files_category", "stored_files", ["category"], unique=False
    )

    op.create_table(
        "registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("full_name", sa.VARCHAR(), nullable=False),
        sa.Column("gender", sa.VARCHAR(), nullable=False),
        sa.Column("dob", sa.VARCHAR(), nullable=False),
        sa.Column("nationality", sa.VARCHAR(), nullable=False),
        sa.Column("mobile", sa.VARCHAR(length=10), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=False),
        sa.Column("address", sa.VARCHAR(), nullable=False),
        sa.Column("institution", sa.VARCHAR(), nullable=False),
        sa.Column("designation", sa.VARCHAR(), nullable=False),
        sa.Column("department", sa.VARCHAR(), nullable=False),
        sa.Column("category", sa.VARCHAR(), nullable=False),
        sa.Column("fee", sa.FLOAT(), nullable=False),
        sa.Column("payment_ref", sa.VARCHAR(), nullable=False),
        sa.Column("participation", sa.VARCHAR(), nullable=False),
        sa.Column("submission_title", sa.VARCHAR(), nullable=False),
        sa.Column("authors", sa.VARCHAR(), nullable=False),
        sa.Column("abstract_text", sa.VARCHAR(), nullable=False),
        sa.Column("declaration", sa.BOOLEAN(), nullable=False),
        sa.Column("receipt_file_id", sa.Uuid(), nullable=False),
        sa.Column("receipt_file_name", sa.VARCHAR(), nullable=False),
        sa.Column("abstract_file_id", sa.Uuid(), nullable=False),
        sa.Column("abstract_file_name", sa.VARCHAR(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    # Unique index backs the duplicate-email check under concurrent submissions
    op.create_index("ix_registrations_email", "registrations", ["email"], unique=True)
    op.create_index(
        "ix_registrations_created_at", "registrations", ["created_at"], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_registrations_created_at", table_name="registrations")
    op.drop_index("ix_registrations_email", table_name="registrations")
    op.drop_table("registrations")
    op.drop_index("ix_stored_files_category", table_name="stored_files")
    op.drop_index("ix_stored_files_storage_key", table_name="stored_files")
    op.drop_table("stored_files")
