# medstock/api/router.py
from fastapi import APIRouter, Depends

from medstock.api.endpoints import (
    auth,
    dashboard,
    drugs,
    pages,
    reports,
    settings,
)
from medstock.dependencies.auth import require_api_session

# Reachable without a session: login, logout and the page routes (which guard themselves)
public_router = APIRouter()
public_router.include_router(auth.router)
public_router.include_router(pages.router)

# Everything under the API prefix requires a valid session
api_router = APIRouter(dependencies=[Depends(require_api_session)])
api_router.include_router(settings.router, tags=["settings"])
api_router.include_router(dashboard.router, tags=["dashboard"])
api_router.include_router(drugs.router, prefix="/drugs", tags=["drugs"])
api_router.include_router(reports.router, tags=["reports"])
