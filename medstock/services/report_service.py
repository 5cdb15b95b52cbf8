# medstock/services/report_service.py
"""
Read-only projections over the inventory ledger: dashboard aggregates and
the rows behind the spreadsheet exports. Nothing here takes locks.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from medstock.core.config import get_settings
from medstock.core.exceptions import ValidationError
from medstock.core.redis import cache_get, cache_incr, cache_set
from medstock.models.drug import Drug, DrugCategory
from medstock.models.transaction import InventoryTransaction
from medstock.schemas.dashboard import CategoryCount, DashboardStats
from medstock.utils.datetime_utils import expiry_window

logger = logging.getLogger(__name__)

DASHBOARD_CACHE_KEY = "dashboard:stats"
DASHBOARD_VERSION_KEY = "dashboard:version"

STOCK_REPORT_HEADERS = ["Item Code", "Item Name", "Barcode", "Quantity", "Expiry Date"]
TRANSACTION_REPORT_HEADERS = [
    "Date/Time",
    "Item Name",
    "Item Code",
    "Barcode",
    "Transaction Type",
    "Quantity Change",
    "Notes",
]


@dataclass
class StockRow:
    code: str
    name: str
    barcode: str | None
    quantity: int
    expiry_date: date | None


@dataclass
class TransactionRow:
    timestamp: datetime
    item_name: str
    item_code: str
    barcode: str | None
    type: str
    quantity_change: int
    notes: str | None


def require_category(category: DrugCategory | str | None) -> DrugCategory:
    if not category:
        raise ValidationError("Category is required.")
    try:
        return DrugCategory(category)
    except ValueError:
        raise ValidationError(f"Unknown category: {category}") from None


def dashboard_cache_key() -> str:
    """Stats key for the current inventory version."""
    return f"{DASHBOARD_CACHE_KEY}:{cache_get(DASHBOARD_VERSION_KEY) or 0}"


def invalidate_dashboard_cache() -> None:
    # Stats computed before the bump land under the old key and are never read
    cache_incr(DASHBOARD_VERSION_KEY)


def dashboard_stats(db: Session) -> DashboardStats:
    """
    Low-stock and expiring-soon counts across all categories, plus the
    number of items per category. Cached in Redis when available.
    """
    settings = get_settings()

    cache_key = dashboard_cache_key()
    cached = cache_get(cache_key)
    if cached:
        try:
            return DashboardStats(**json.loads(cached))
        except (ValueError, TypeError):
            logger.warning("Dashboard cache corrupted. Recomputing.", exc_info=True)

    low_stock_count = (
        db.query(func.count(Drug.id))
        .filter(Drug.quantity < settings.low_stock_threshold)
        .scalar()
    )

    start, end = expiry_window(settings.expiring_soon_days)
    expiring_soon_count = (
        db.query(func.count(Drug.id))
        .filter(Drug.expiry_date.is_not(None), Drug.expiry_date.between(start, end))
        .scalar()
    )

    category_rows = (
        db.query(Drug.category, func.count(Drug.id))
        .group_by(Drug.category)
        .order_by(Drug.category)
        .all()
    )

    stats = DashboardStats(
        low_stock_count=low_stock_count or 0,
        expiring_soon_count=expiring_soon_count or 0,
        category_counts=[
            CategoryCount(category=category, count=count)
            for category, count in category_rows
        ],
    )

    cache_set(
        cache_key,
        stats.model_dump_json(by_alias=True),
        ttl=settings.dashboard_cache_ttl,
    )
    return stats


def current_stock_rows(db: Session, category: DrugCategory | str | None) -> list[StockRow]:
    category = require_category(category)
    drugs = (
        db.query(Drug)
        .filter(Drug.category == category)
        .order_by(Drug.drug_name.asc(), Drug.id.asc())
        .all()
    )
    return [
        StockRow(
            code=drug.drug_code,
            name=drug.drug_name,
            barcode=drug.barcode,
            quantity=drug.quantity,
            expiry_date=drug.expiry_date,
        )
        for drug in drugs
    ]


def transaction_rows(db: Session, category: DrugCategory | str | None) -> list[TransactionRow]:
    """All ledger rows for items in the category, most recent first."""
    category = require_category(category)
    rows = (
        db.query(InventoryTransaction, Drug)
        .join(Drug, InventoryTransaction.drug_id == Drug.id)
        .filter(Drug.category == category)
        .order_by(InventoryTransaction.timestamp.desc(), InventoryTransaction.id.desc())
        .all()
    )
    return [
        TransactionRow(
            timestamp=entry.timestamp,
            item_name=drug.drug_name,
            item_code=drug.drug_code,
            barcode=drug.barcode,
            type=entry.type.value,
            quantity_change=entry.quantity_change,
            notes=entry.notes,
        )
        for entry, drug in rows
    ]
