import logging

from sqlalchemy.orm import Session

from medstock.core.exceptions import AuthenticationError
from medstock.services.credential_service import check_admin_password

logger = logging.getLogger(__name__)


def authenticate_admin(db: Session, password: str | None) -> None:
    """
    Check a login password against the stored admin hash.
    Raises AuthenticationError without saying which check failed.
    """
    if not password:
        raise AuthenticationError()

    if not check_admin_password(db, password):
        logger.info("Login rejected: incorrect password")
        raise AuthenticationError()
