"""create_cellar_tables

Revision ID: 5d2c81f0a7e4
Revises:
Create Date: 2026-02-25 10:12:44.183120

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5d2c81f0a7e4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "wines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("producer", sa.String(255), nullable=False),
        sa.Column("wine_name", sa.Text(), nullable=False),
        sa.Column("appellation", sa.String(255), nullable=False),
        sa.Column("classification", sa.String(32), nullable=False),
        sa.Column("region", sa.String(128), nullable=False),
        sa.Column("commune", sa.String(128), nullable=False),
        sa.Column("vineyard", sa.String(255), nullable=True),
        sa.Column("color", sa.String(8), nullable=False),
    )
    op.create_index("ix_wines_producer", "wines", ["producer"])
    op.create_index("ix_wines_appellation", "wines", ["appellation"])
    op.create_index("ix_wines_commune", "wines", ["commune"])

    op.create_table(
        "price_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "wine_id",
            sa.Integer(),
            sa.ForeignKey("wines.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("vintage", sa.Integer(), nullable=False),
        sa.Column("avg_price", sa.Float(), nullable=True),
        sa.Column("min_price", sa.Float(), nullable=True),
        sa.Column("max_price", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(8), nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("fetched_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_price_snapshots_wine_id", "price_snapshots", ["wine_id"])
    op.create_index(
        "ix_price_snapshots_key_fetched",
        "price_snapshots",
        ["wine_id", "vintage", sa.text("fetched_at DESC")],
    )

    op.create_table(
        "cellar_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "wine_id",
            sa.Integer(),
            sa.ForeignKey("wines.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("vintage", sa.Integer(), nullable=False),
        sa.Column("purchase_price", sa.Float(), nullable=True),
        sa.Column("purchase_date", sa.String(10), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status", sa.String(16), nullable=False, server_default="in_cellar"
        ),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("tasting_notes", sa.Text(), nullable=True),
        sa.CheckConstraint("quantity >= 0", name="ck_cellar_items_quantity"),
        sa.CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 100)",
            name="ck_cellar_items_rating",
        ),
    )
    op.create_index("ix_cellar_items_wine_id", "cellar_items", ["wine_id"])
    op.create_index("ix_cellar_items_status", "cellar_items", ["status"])


def downgrade() -> None:
    op.drop_table("cellar_items")
    op.drop_table("price_snapshots")
    op.drop_table("wines")
