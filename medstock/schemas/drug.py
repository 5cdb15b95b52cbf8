# schemas/drug.py
from __future__ import annotations

from datetime import date
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)

from medstock.models.drug import DrugCategory

# Largest value the INTEGER quantity column holds on every supported database
MAX_QUANTITY = 2_147_483_647

CodeStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=100),
]

NameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]

OptStr100 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=100),
    ]
    | None
)


class DrugFields(BaseModel):
    """
    Item fields as sent by the UI (camelCase), for both add and full edit.

    - Empty barcode / expiry strings from UI forms are normalized to None.
    - Snake-case names are accepted too, for scripts and tests.
    """

    drug_code: CodeStr = Field(alias="drugCode")
    drug_name: NameStr = Field(alias="drugName")
    barcode: OptStr100 = None
    quantity: int = Field(ge=0, le=MAX_QUANTITY)
    expiry_date: date | None = Field(default=None, alias="expiryDate")
    category: DrugCategory

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("barcode", "expiry_date", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class DrugCreate(DrugFields):
    """Used when adding a new item."""


class DrugUpdate(DrugFields):
    """Used when editing an item (PUT). Every mutable field is overwritten."""


class DrugResponse(BaseModel):
    id: int
    drug_code: str
    drug_name: str
    barcode: str | None = None
    quantity: int
    expiry_date: date | None = None
    category: DrugCategory

    model_config = ConfigDict(from_attributes=True)


class DrugListResponse(BaseModel):
    drugs: list[DrugResponse]


class DrugCreatedResponse(BaseModel):
    id: int


class WithdrawRequest(BaseModel):
    quantity_to_withdraw: int | None = Field(
        default=None, gt=0, le=MAX_QUANTITY, alias="quantityToWithdraw"
    )
    notes: str | None = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WithdrawResponse(BaseModel):
    message: str
    new_quantity: int = Field(serialization_alias="newQuantity")


class MessageResponse(BaseModel):
    message: str
