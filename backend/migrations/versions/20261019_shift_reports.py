"""Add shift_reports

Revision ID: 20261019_shift_reports
Revises: 20261019_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_shift_reports"
down_revision = "20261019_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "shift_reports",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("shift", sa.String(16), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("total_revenue", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_items_sold", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_remaining", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("sales_data", sa.JSON(), nullable=False),
        sa.Column("remaining_breads", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "shift", "report_date", name="uq_shift_reports_user_shift_date"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("shift_reports", schema=None) as batch_op:
        batch_op.create_index("ix_shift_reports_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_shift_reports_shift_date", ["shift", "report_date"], unique=False)


def downgrade():
    op.drop_table("shift_reports")
