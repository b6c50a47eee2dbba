"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel, OrganizationScopedMixin
from .food_category_group import FoodCategoryGroup
from .food_category import FoodCategory
from .food_sub_category import FoodSubCategory
from .master_ingredient import MasterIngredient
from .prepared_item import PreparedItem
from .inventory_count import InventoryCount
from .recipe import Recipe, RecipeIngredient

__all__ = [
    "Base",
    "BaseModel",
    "OrganizationScopedMixin",
    "FoodCategoryGroup",
    "FoodCategory",
    "FoodSubCategory",
    "MasterIngredient",
    "PreparedItem",
    "InventoryCount",
    "Recipe",
    "RecipeIngredient",
]
