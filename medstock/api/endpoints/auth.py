# medstock/api/endpoints/auth.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.orm import Session

from medstock.core.config import get_settings
from medstock.core.database import get_db
from medstock.core.exceptions import AuthenticationError
from medstock.dependencies.auth import get_session_manager, get_session_token
from medstock.schemas.auth import LoginResponse
from medstock.services.session_service import SessionManager

router = APIRouter()
logger = logging.getLogger(__name__)

LOGIN_PAGE = "/login.html"
DASHBOARD_PAGE = "/dashboard.html"


@dataclass
class LoginSubmission:
    password: str | None
    from_form: bool


async def read_login_submission(request: Request) -> LoginSubmission:
    """
    Accept the password either as JSON ({"password": ...}) from the API
    client or as a urlencoded/multipart field from the HTML login form.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            data = None
        password = data.get("password") if isinstance(data, dict) else None
        return LoginSubmission(password=password if isinstance(password, str) else None, from_form=False)

    form = await request.form()
    password = form.get("password")
    return LoginSubmission(password=password if isinstance(password, str) else None, from_form=True)


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


@router.post("/login", response_model=LoginResponse, tags=["auth"])
def login(
    submission: LoginSubmission = Depends(read_login_submission),
    previous_token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
    session_manager: SessionManager = Depends(get_session_manager),
) -> Response:
    """
    Log in with the admin password.

    A fresh session token is issued on every successful login and any token
    the browser already held is destroyed.
    """
    try:
        token = session_manager.login(db, submission.password, previous_token=previous_token)
    except AuthenticationError as exc:
        if submission.from_form:
            return RedirectResponse(f"{LOGIN_PAGE}?error=1", status_code=status.HTTP_303_SEE_OTHER)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=LoginResponse(success=False, message=str(exc)).model_dump(),
        )

    if submission.from_form:
        response: Response = RedirectResponse(DASHBOARD_PAGE, status_code=status.HTTP_303_SEE_OTHER)
    else:
        response = JSONResponse(content=LoginResponse(success=True).model_dump(exclude_none=True))
    _set_session_cookie(response, token)
    return response


@router.get("/logout", tags=["auth"])
def logout(
    token: str | None = Depends(get_session_token),
    session_manager: SessionManager = Depends(get_session_manager),
) -> RedirectResponse:
    session_manager.logout(token)
    response = RedirectResponse(LOGIN_PAGE, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(get_settings().session_cookie_name, path="/")
    return response
