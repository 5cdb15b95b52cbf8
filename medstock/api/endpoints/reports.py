# medstock/api/endpoints/reports.py
from io import BytesIO
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from medstock.core.database import get_db
from medstock.services.report_service import (
    STOCK_REPORT_HEADERS,
    TRANSACTION_REPORT_HEADERS,
    current_stock_rows,
    require_category,
    transaction_rows,
)
from medstock.utils.datetime_utils import format_date, format_timestamp
from medstock.utils.spreadsheet import XLSX_MEDIA_TYPE, build_workbook

router = APIRouter()


def _xlsx_response(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/report", tags=["reports"])
def export_stock_report(
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Export current stock of one category to XLSX.
    """
    category = require_category(category)
    rows = current_stock_rows(db, category)

    content = build_workbook(
        "Items",
        STOCK_REPORT_HEADERS,
        (
            [row.code, row.name, row.barcode, row.quantity, format_date(row.expiry_date) or None]
            for row in rows
        ),
    )
    return _xlsx_response(content, f"Report_{category.value}.xlsx")


@router.get("/transaction-report", tags=["reports"])
def export_transaction_report(
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Export the transaction history of one category to XLSX, newest first.
    """
    category = require_category(category)
    rows = transaction_rows(db, category)

    content = build_workbook(
        "Transaction History",
        TRANSACTION_REPORT_HEADERS,
        (
            [
                format_timestamp(row.timestamp),
                row.item_name,
                row.item_code,
                row.barcode,
                row.type,
                row.quantity_change,
                row.notes,
            ]
            for row in rows
        ),
    )
    return _xlsx_response(content, f"Transaction_Report_{category.value}.xlsx")
