"""Create form_submissions table

Revision ID: 5d2e8f0a9c31
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5d2e8f0a9c31"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

submission_source = sa.Enum("form", "csv", name="submission_source")

TEXT_FIELDS = (
    "name",
    "email",
    "user_type",
    "school",
    "grade",
    "major",
    "company",
    "position",
    "experience",
    "skills",
    "business_name",
    "industry",
    "employees",
    "revenue",
    "interests",
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "form_submissions",
        sa.Column("row_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        *[sa.Column(field, sa.VARCHAR(), nullable=True) for field in TEXT_FIELDS],
        sa.Column("newsletter", sa.BOOLEAN(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "source", submission_source, nullable=False, server_default="form"
        ),
        sa.Column("csv_data", sa.JSON(), nullable=True),
        sa.Column("extra_fields", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("row_id"),
    )
    op.create_index(
        "ix_form_submissions_id", "form_submissions", ["id"], unique=True
    )
    op.create_index(
        "ix_form_submissions_user_type", "form_submissions", ["user_type"]
    )
    op.create_index(
        "ix_form_submissions_submitted_at", "form_submissions", ["submitted_at"]
    )
    op.create_index("ix_form_submissions_source", "form_submissions", ["source"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_form_submissions_source", table_name="form_submissions")
    op.drop_index("ix_form_submissions_submitted_at", table_name="form_submissions")
    op.drop_index("ix_form_submissions_user_type", table_name="form_submissions")
    op.drop_index("ix_form_submissions_id", table_name="form_submissions")
    op.drop_table("form_submissions")
    submission_source.drop(op.get_bind(), checkfirst=True)
