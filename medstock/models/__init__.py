# medstock/models/__init__.py
from medstock.models.base import Base
from medstock.models.drug import CATEGORY_LABELS, Drug, DrugCategory
from medstock.models.transaction import InventoryTransaction, TransactionType
from medstock.models.setting import ADMIN_PASSWORD_KEY, Setting
from medstock.models.session import LoginSession
