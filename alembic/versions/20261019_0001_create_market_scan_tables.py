"""create market scan tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "studies_v2",
        sa.Column("id", sa.String(length=120), nullable=False),
        sa.Column("brand", sa.String(length=120), nullable=False),
        sa.Column("model", sa.String(length=120), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("max_mileage", sa.Integer(), nullable=False),
        sa.Column("country_target", sa.String(length=8), nullable=False),
        sa.Column("market_target_url", sa.Text(), nullable=False),
        sa.Column("country_source", sa.String(length=8), nullable=False),
        sa.Column("market_source_url", sa.Text(), nullable=False),
        sa.Column("trim_text", sa.String(length=255), nullable=True),
        sa.Column("trim_text_target", sa.String(length=255), nullable=True),
        sa.Column("trim_text_source", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_studies_v2")),
    )
    op.create_index("ix_studies_v2_brand_model", "studies_v2", ["brand", "model"], unique=False)
    op.create_index(
        "ix_studies_v2_countries",
        "studies_v2",
        ["country_target", "country_source"],
        unique=False,
    )

    op.create_table(
        "study_runs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("run_type", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("price_diff_threshold_eur", sa.Numeric(), nullable=True),
        sa.Column("total_studies", sa.Integer(), nullable=False),
        sa.Column("null_count", sa.Integer(), nullable=False),
        sa.Column("opportunities_count", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("executed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_study_runs")),
    )
    op.create_index("ix_study_runs_status", "study_runs", ["status"], unique=False)
    op.create_index("ix_study_runs_created_at", "study_runs", ["created_at"], unique=False)

    op.create_table(
        "study_run_results",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("run_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("study_id", sa.String(length=120), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("target_market_price", sa.Numeric(), nullable=True),
        sa.Column("best_source_price", sa.Numeric(), nullable=True),
        sa.Column("price_difference", sa.Numeric(), nullable=True),
        sa.Column("target_stats", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("target_error_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_study_run_results")),
    )
    op.create_index("ix_study_run_results_run_id", "study_run_results", ["run_id"], unique=False)
    op.create_index("ix_study_run_results_study_id", "study_run_results", ["study_id"], unique=False)
    op.create_index("ix_study_run_results_status", "study_run_results", ["status"], unique=False)

    op.create_table(
        "study_source_listings",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("run_result_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("listing_url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False),
        sa.Column("mileage", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("trim", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["run_result_id"],
            ["study_run_results.id"],
            name=op.f("fk_study_source_listings_run_result_id_study_run_results"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_study_source_listings")),
    )
    op.create_index(
        "ix_study_source_listings_run_result_id",
        "study_source_listings",
        ["run_result_id"],
        unique=False,
    )

    op.create_table(
        "study_run_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("study_run_id", sa.String(length=120), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("last_stage", sa.String(length=32), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("logs_json", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_study_run_logs")),
    )
    op.create_index("ix_study_run_logs_study_run_id", "study_run_logs", ["study_run_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_study_run_logs_study_run_id", table_name="study_run_logs")
    op.drop_table("study_run_logs")
    op.drop_index("ix_study_source_listings_run_result_id", table_name="study_source_listings")
    op.drop_table("study_source_listings")
    op.drop_index("ix_study_run_results_status", table_name="study_run_results")
    op.drop_index("ix_study_run_results_study_id", table_name="study_run_results")
    op.drop_index("ix_study_run_results_run_id", table_name="study_run_results")
    op.drop_table("study_run_results")
    op.drop_index("ix_study_runs_created_at", table_name="study_runs")
    op.drop_index("ix_study_runs_status", table_name="study_runs")
    op.drop_table("study_runs")
    op.drop_index("ix_studies_v2_countries", table_name="studies_v2")
    op.drop_index("ix_studies_v2_brand_model", table_name="studies_v2")
    op.drop_table("studies_v2")
