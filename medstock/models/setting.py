# medstock/models/setting.py
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from medstock.models.base import Base

ADMIN_PASSWORD_KEY = "admin_password"


class Setting(Base):
    """
    Key-value application settings.
    Holds the admin password hash under ADMIN_PASSWORD_KEY.
    """

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
