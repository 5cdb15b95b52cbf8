# medstock/api/endpoints/drugs.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from medstock.core.database import get_db
from medstock.schemas.drug import (
    DrugCreate,
    DrugCreatedResponse,
    DrugListResponse,
    DrugResponse,
    DrugUpdate,
    MessageResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from medstock.services import inventory_service

router = APIRouter()


@router.get("", response_model=DrugListResponse, tags=["drugs"])
def list_drugs(
    category: Optional[str] = Query(None, description="Required. One of the item categories."),
    filter: Optional[str] = Query(
        None, description="Optional: 'low_stock', 'expiring_soon' or 'expired'"
    ),
    db: Session = Depends(get_db),
) -> DrugListResponse:
    """
    List items in a category, ordered by name.
    """
    drugs = inventory_service.list_items(db, category, filter)
    return DrugListResponse(drugs=[DrugResponse.model_validate(drug) for drug in drugs])


@router.post(
    "",
    response_model=DrugCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["drugs"],
)
def create_drug(
    payload: DrugCreate,
    db: Session = Depends(get_db),
) -> DrugCreatedResponse:
    """
    Add a new item. Its starting quantity is recorded as an Initial Add transaction.
    """
    drug = inventory_service.add_item(db, payload)
    return DrugCreatedResponse(id=drug.id)


@router.post("/withdraw/{drug_id}", response_model=WithdrawResponse, tags=["drugs"])
def withdraw_drug(
    drug_id: int,
    payload: WithdrawRequest,
    db: Session = Depends(get_db),
) -> WithdrawResponse:
    new_quantity = inventory_service.withdraw(
        db,
        drug_id,
        payload.quantity_to_withdraw,
        notes=payload.notes,
    )
    return WithdrawResponse(message="Withdrawal successful.", new_quantity=new_quantity)


@router.get("/{drug_id}", response_model=DrugResponse, tags=["drugs"])
def get_drug(
    drug_id: int,
    db: Session = Depends(get_db),
) -> DrugResponse:
    return DrugResponse.model_validate(inventory_service.get_item(db, drug_id))


@router.put("/{drug_id}", response_model=MessageResponse, tags=["drugs"])
def update_drug(
    drug_id: int,
    payload: DrugUpdate,
    db: Session = Depends(get_db),
) -> MessageResponse:
    """
    Replace an item's fields. The quantity difference (possibly zero) is
    recorded as an Update transaction.
    """
    inventory_service.update_item(db, drug_id, payload)
    return MessageResponse(message="Update successful.")


@router.delete("/{drug_id}", response_model=MessageResponse, tags=["drugs"])
def delete_drug(
    drug_id: int,
    db: Session = Depends(get_db),
) -> MessageResponse:
    inventory_service.delete_item(db, drug_id)
    return MessageResponse(message="Deletion successful.")
