# medstock/services/credential_service.py
"""
Admin credential store.

A single bcrypt hash lives in the settings table under ADMIN_PASSWORD_KEY.
The first read on an empty table seeds it from DEFAULT_ADMIN_PASSWORD.
"""

import logging

from passlib.exc import PasswordSizeError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from medstock.core.config import get_settings
from medstock.core.exceptions import (
    InvalidCurrentPasswordError,
    StorageError,
    ValidationError,
)
from medstock.core.security import get_password_hash, verify_password
from medstock.models.setting import ADMIN_PASSWORD_KEY, Setting

logger = logging.getLogger(__name__)


def get_admin_password_hash(db: Session) -> str:
    """
    Return the stored admin password hash, creating the bootstrap hash
    if no row exists yet.
    """
    try:
        row = db.get(Setting, ADMIN_PASSWORD_KEY)
        if row and row.value:
            # End the read transaction; SQLite holds its write lock until then
            db.commit()
            return row.value

        bootstrap_hash = get_password_hash(get_settings().default_admin_password)
        if row:
            row.value = bootstrap_hash
        else:
            db.add(Setting(key=ADMIN_PASSWORD_KEY, value=bootstrap_hash))
        db.commit()
        logger.info("Default admin password hash has been set.")
        return bootstrap_hash
    except IntegrityError:
        # Another request seeded the row first; use theirs
        db.rollback()
        row = db.get(Setting, ADMIN_PASSWORD_KEY, populate_existing=True)
        db.commit()
        if row and row.value:
            return row.value
        raise StorageError("Admin password is not configured.")
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to read admin password hash")
        raise StorageError() from exc


def set_admin_password_hash(db: Session, new_hash: str) -> None:
    """Overwrite the stored admin password hash in one transaction."""
    try:
        row = db.get(Setting, ADMIN_PASSWORD_KEY)
        if row:
            row.value = new_hash
        else:
            db.add(Setting(key=ADMIN_PASSWORD_KEY, value=new_hash))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to store admin password hash")
        raise StorageError("Failed to update password.") from exc


def check_admin_password(db: Session, password: str) -> bool:
    stored_hash = get_admin_password_hash(db)
    try:
        return verify_password(password, stored_hash)
    except PasswordSizeError:
        logger.info("Rejected oversized password")
        return False


def change_password(db: Session, *, current_password: str, new_password: str) -> None:
    """
    Replace the admin password after verifying the current one.
    Raises InvalidCurrentPasswordError or ValidationError on bad input.
    """
    if not check_admin_password(db, current_password):
        raise InvalidCurrentPasswordError()

    if not new_password or not new_password.strip():
        raise ValidationError("New password cannot be empty.")

    try:
        new_hash = get_password_hash(new_password)
    except PasswordSizeError:
        raise ValidationError("New password is too long.") from None

    set_admin_password_hash(db, new_hash)
    logger.info("Admin password changed")
