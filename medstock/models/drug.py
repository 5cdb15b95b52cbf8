# medstock/models/drug.py
from datetime import date
from enum import Enum as PyEnum

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medstock.models.base import Base


class DrugCategory(str, PyEnum):
    PPE = "PPE"
    DIAGNOSTICS = "Diagnostics"
    AIRWAY = "Airway"
    CIRCULATION = "Circulation"
    EMERGENCY_MEDICATION = "Emergency_Medication"
    BURNS_DRESSINGS = "Burns_Dressings"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    DrugCategory.PPE: "PPE",
    DrugCategory.DIAGNOSTICS: "Diagnostics",
    DrugCategory.AIRWAY: "Airway",
    DrugCategory.CIRCULATION: "Circulation",
    DrugCategory.EMERGENCY_MEDICATION: "Emergency Medication",
    DrugCategory.BURNS_DRESSINGS: "Burns/Dressings",
}


class Drug(Base):
    """
    One stock-keeping unit of medical supply.

    Codes and barcodes are unique per category, not globally, so the same
    catalog code may appear once in PPE and once in Airway.
    """

    __tablename__ = "drugs"
    __table_args__ = (
        UniqueConstraint("drug_code", "category", name="uq_drugs_code_category"),
        UniqueConstraint("barcode", "category", name="uq_drugs_barcode_category"),
        CheckConstraint("quantity >= 0", name="ck_drugs_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    drug_code: Mapped[str] = mapped_column(String(100), nullable=False)
    drug_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    barcode: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        doc="Optional; NULL barcodes never collide.",
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    category: Mapped[DrugCategory] = mapped_column(
        Enum(
            DrugCategory,
            name="drug_category_enum",
            values_callable=lambda enum: [member.value for member in enum],
            native_enum=False,
            length=50,
        ),
        nullable=False,
        index=True,
    )

    transactions: Mapped[list["InventoryTransaction"]] = relationship(
        "InventoryTransaction",
        back_populates="drug",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="InventoryTransaction.timestamp",
    )
