# medstock/api/endpoints/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from medstock.core.database import get_db
from medstock.schemas.dashboard import DashboardStats
from medstock.services.report_service import dashboard_stats

router = APIRouter()


@router.get("/dashboard-stats", response_model=DashboardStats, tags=["dashboard"])
def get_dashboard_stats(db: Session = Depends(get_db)) -> DashboardStats:
    """
    Low-stock count, expiring-soon count and items per category.
    Cached for DASHBOARD_CACHE_TTL seconds when Redis is configured.
    """
    return dashboard_stats(db)
