# medstock/api/endpoints/settings.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from medstock.core.database import get_db
from medstock.schemas.auth import ChangePasswordRequest
from medstock.schemas.drug import MessageResponse
from medstock.services.credential_service import change_password as change_admin_password

router = APIRouter()


@router.post("/change-password", response_model=MessageResponse, tags=["settings"])
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
) -> MessageResponse:
    change_admin_password(
        db,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return MessageResponse(message="Password changed successfully!")
