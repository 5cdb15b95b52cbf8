"""initial_inventory_schema

Revision ID: 0001_initial_inventory
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial_inventory"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = (
    "PPE",
    "Diagnostics",
    "Airway",
    "Circulation",
    "Emergency_Medication",
    "Burns_Dressings",
)
TRANSACTION_TYPES = ("Initial Add", "Withdrawal", "Update")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "settings",
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("key"),
    )

    op.create_table(
        "drugs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("drug_code", sa.String(length=100), nullable=False),
        sa.Column("drug_name", sa.String(length=255), nullable=False),
        sa.Column("barcode", sa.String(length=100), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column(
            "category",
            sa.Enum(*CATEGORIES, name="drug_category_enum", native_enum=False, length=50),
            nullable=False,
        ),
        sa.CheckConstraint("quantity >= 0", name="ck_drugs_quantity_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("drug_code", "category", name="uq_drugs_code_category"),
        sa.UniqueConstraint("barcode", "category", name="uq_drugs_barcode_category"),
    )
    op.create_index(op.f("ix_drugs_drug_name"), "drugs", ["drug_name"], unique=False)
    op.create_index(op.f("ix_drugs_category"), "drugs", ["category"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("drug_id", sa.Integer(), nullable=False),
        sa.Column(
            "type",
            sa.Enum(*TRANSACTION_TYPES, name="transaction_type_enum", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("quantity_change", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["drug_id"], ["drugs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_transactions_timestamp"), "transactions", ["timestamp"], unique=False)
    op.create_index(
        "idx_transactions_drug_timestamp",
        "transactions",
        ["drug_id", "timestamp"],
        unique=False,
    )

    op.create_table(
        "sessions",
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("logged_in", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("token"),
    )
    op.create_index(op.f("ix_sessions_expires_at"), "sessions", ["expires_at"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_sessions_expires_at"), table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("idx_transactions_drug_timestamp", table_name="transactions")
    op.drop_index(op.f("ix_transactions_timestamp"), table_name="transactions")
    op.drop_table("transactions")
    op.drop_index(op.f("ix_drugs_category"), table_name="drugs")
    op.drop_index(op.f("ix_drugs_drug_name"), table_name="drugs")
    op.drop_table("drugs")
    op.drop_table("settings")
