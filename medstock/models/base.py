# medstock/models/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Inventory tables, the settings table and the session table
    all inherit from this class.
    """

    pass
