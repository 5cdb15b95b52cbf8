# medstock/models/transaction.py
"""
Append-only audit ledger of stock events.
Rows are inserted by the inventory service and never updated afterwards.
"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medstock.models.base import Base
from medstock.models.drug import Drug
from medstock.utils.datetime_utils import utc_now


class TransactionType(str, PyEnum):
    INITIAL_ADD = "Initial Add"
    WITHDRAWAL = "Withdrawal"
    UPDATE = "Update"


class InventoryTransaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("idx_transactions_drug_timestamp", "drug_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    drug_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("drugs.id", ondelete="CASCADE"),
        nullable=False,
    )

    type: Mapped[TransactionType] = mapped_column(
        Enum(
            TransactionType,
            name="transaction_type_enum",
            values_callable=lambda enum: [member.value for member in enum],
            native_enum=False,
            length=20,
        ),
        nullable=False,
    )
    quantity_change: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        index=True,
    )

    drug: Mapped["Drug"] = relationship("Drug", back_populates="transactions")
