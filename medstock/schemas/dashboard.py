# schemas/dashboard.py
from pydantic import BaseModel, ConfigDict, Field

from medstock.models.drug import DrugCategory


class CategoryCount(BaseModel):
    category: DrugCategory
    count: int


class DashboardStats(BaseModel):
    low_stock_count: int = Field(alias="lowStockCount")
    expiring_soon_count: int = Field(alias="expiringSoonCount")
    category_counts: list[CategoryCount] = Field(alias="categoryCounts")

    model_config = ConfigDict(populate_by_name=True)
