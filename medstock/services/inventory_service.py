# medstock/services/inventory_service.py
"""
Inventory ledger: stock items and their audit transactions.

Every mutation runs as one database transaction. Operations that read a
quantity and write it back (withdraw, update) take a row lock first, so a
second writer on the same item blocks until the first commits and then
sees the committed quantity.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Iterator

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from medstock.core.config import get_settings
from medstock.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from medstock.models.drug import Drug, DrugCategory
from medstock.models.transaction import InventoryTransaction, TransactionType
from medstock.schemas.drug import DrugCreate, DrugUpdate
from medstock.services.report_service import invalidate_dashboard_cache, require_category
from medstock.utils.datetime_utils import expiry_window, utc_today

logger = logging.getLogger(__name__)


class ItemFilter(str, Enum):
    LOW_STOCK = "low_stock"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"


@contextmanager
def _mutation(db: Session, failure_message: str) -> Iterator[None]:
    """
    Commit the block's work, or roll all of it back on any error.

    Unique-constraint violations surface as ConflictError, other database
    errors as StorageError; domain errors pass through unchanged.
    """
    try:
        yield
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("%s Constraint violation: %s", failure_message, exc.orig)
        raise ConflictError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(failure_message)
        raise StorageError(failure_message) from exc
    except Exception:
        db.rollback()
        raise


def _lock_item(db: Session, item_id: int) -> Drug:
    """SELECT ... FOR UPDATE the item row, re-reading it from the database."""
    drug = db.execute(
        select(Drug)
        .where(Drug.id == item_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if drug is None:
        raise NotFoundError()
    return drug


def _ensure_unique(
    db: Session,
    *,
    drug_code: str,
    barcode: str | None,
    category: DrugCategory,
    exclude_id: int | None = None,
) -> None:
    clauses = [Drug.drug_code == drug_code]
    if barcode is not None:
        clauses.append(Drug.barcode == barcode)

    query = db.query(Drug.id).filter(Drug.category == category, or_(*clauses))
    if exclude_id is not None:
        query = query.filter(Drug.id != exclude_id)

    if query.first() is not None:
        raise ConflictError()


def _append_ledger_entry(
    db: Session,
    *,
    drug_id: int,
    type: TransactionType,
    quantity_change: int,
    notes: str | None,
) -> None:
    """
    Record a ledger row in the caller's transaction.

    With STRICT_AUDIT_LEDGER off, the insert runs in a savepoint and a
    failure is logged instead of aborting the stock change.
    """
    entry = InventoryTransaction(
        drug_id=drug_id,
        type=type,
        quantity_change=quantity_change,
        notes=notes,
    )

    if get_settings().strict_audit_ledger:
        db.add(entry)
        db.flush()
        return

    try:
        with db.begin_nested():
            db.add(entry)
    except SQLAlchemyError:
        logger.warning(
            "Failed to record %s ledger entry for drug_id=%s (non-critical)",
            type.value,
            drug_id,
            exc_info=True,
        )


def get_item(db: Session, item_id: int) -> Drug:
    drug = db.get(Drug, item_id)
    if drug is None:
        raise NotFoundError()
    return drug


def list_items(
    db: Session,
    category: DrugCategory | str | None,
    filter: ItemFilter | str | None = None,
) -> list[Drug]:
    """
    Items in one category, ordered by name.

    filter:
    - low_stock: quantity below LOW_STOCK_THRESHOLD
    - expiring_soon: expiry between today and today + EXPIRING_SOON_DAYS, inclusive
    - expired: expiry strictly before today
    """
    category = require_category(category)
    settings = get_settings()
    query = db.query(Drug).filter(Drug.category == category)

    if filter:
        try:
            filter = ItemFilter(filter)
        except ValueError:
            raise ValidationError(f"Unknown filter: {filter}") from None

        if filter == ItemFilter.LOW_STOCK:
            query = query.filter(Drug.quantity < settings.low_stock_threshold)
        elif filter == ItemFilter.EXPIRING_SOON:
            start, end = expiry_window(settings.expiring_soon_days)
            query = query.filter(
                Drug.expiry_date.is_not(None),
                Drug.expiry_date.between(start, end),
            )
        elif filter == ItemFilter.EXPIRED:
            query = query.filter(
                Drug.expiry_date.is_not(None),
                Drug.expiry_date < utc_today(),
            )

    return query.order_by(Drug.drug_name.asc(), Drug.id.asc()).all()


def add_item(db: Session, payload: DrugCreate) -> Drug:
    """
    Insert a new item together with its Initial Add ledger entry.
    Raises ConflictError if the code or barcode is taken in the category.
    """
    with _mutation(db, "Failed to add item."):
        _ensure_unique(
            db,
            drug_code=payload.drug_code,
            barcode=payload.barcode,
            category=payload.category,
        )

        drug = Drug(
            drug_code=payload.drug_code,
            drug_name=payload.drug_name,
            barcode=payload.barcode,
            quantity=payload.quantity,
            expiry_date=payload.expiry_date,
            category=payload.category,
        )
        db.add(drug)
        db.flush()  # assigns drug.id

        _append_ledger_entry(
            db,
            drug_id=drug.id,
            type=TransactionType.INITIAL_ADD,
            quantity_change=drug.quantity,
            notes="Initial stock entry",
        )

    logger.info("Added item id=%s category=%s quantity=%s", drug.id, drug.category.value, drug.quantity)
    invalidate_dashboard_cache()
    return drug


def withdraw(db: Session, item_id: int, amount: int | None, notes: str | None = None) -> int:
    """
    Take `amount` units out of stock and return the new quantity.
    """
    if amount is None or isinstance(amount, bool) or amount <= 0:
        raise ValidationError("Withdrawal quantity must be greater than zero.")

    with _mutation(db, "Withdrawal failed."):
        drug = _lock_item(db, item_id)
        if amount > drug.quantity:
            raise InsufficientStockError(
                f"Insufficient stock: requested {amount}, available {drug.quantity}."
            )

        drug.quantity = drug.quantity - amount
        new_quantity = drug.quantity

        _append_ledger_entry(
            db,
            drug_id=drug.id,
            type=TransactionType.WITHDRAWAL,
            quantity_change=-amount,
            notes=notes,
        )

    logger.info("Withdrew %s from item id=%s; %s left", amount, item_id, new_quantity)
    invalidate_dashboard_cache()
    return new_quantity


def update_item(db: Session, item_id: int, payload: DrugUpdate) -> Drug:
    """
    Overwrite every mutable field and record the quantity delta.
    A zero delta is still recorded, as a details-only edit.
    """
    with _mutation(db, "Failed to update item."):
        drug = _lock_item(db, item_id)
        old_quantity = drug.quantity

        _ensure_unique(
            db,
            drug_code=payload.drug_code,
            barcode=payload.barcode,
            category=payload.category,
            exclude_id=drug.id,
        )

        drug.drug_code = payload.drug_code
        drug.drug_name = payload.drug_name
        drug.barcode = payload.barcode
        drug.quantity = payload.quantity
        drug.expiry_date = payload.expiry_date
        drug.category = payload.category

        quantity_change = payload.quantity - old_quantity
        if quantity_change != 0:
            notes = f"Quantity updated from {old_quantity} to {payload.quantity}"
        else:
            notes = "Item details updated (quantity unchanged)"

        _append_ledger_entry(
            db,
            drug_id=drug.id,
            type=TransactionType.UPDATE,
            quantity_change=quantity_change,
            notes=notes,
        )

    logger.info("Updated item id=%s (quantity change %s)", item_id, quantity_change)
    invalidate_dashboard_cache()
    return drug


def delete_item(db: Session, item_id: int) -> None:
    """Delete an item; its transactions go with it (ON DELETE CASCADE)."""
    with _mutation(db, "Failed to delete item."):
        drug = db.get(Drug, item_id)
        if drug is None:
            raise NotFoundError()
        db.delete(drug)

    logger.info("Deleted item id=%s", item_id)
    invalidate_dashboard_cache()
