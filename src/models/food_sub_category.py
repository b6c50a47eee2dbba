"""
FoodSubCategory model for third-level food classification.

Sub-categories live under a category (e.g., "Beef" under "Proteins").
"""

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel, OrganizationScopedMixin


class FoodSubCategory(OrganizationScopedMixin, BaseModel):
    """
    FoodSubCategory model representing the leaf taxonomy level.

    Attributes:
        category_id: Foreign key to parent FoodCategory
        name: Sub-category display name
        description: Optional description text
        sort_order: Display ordering among siblings in the same category
    """

    __tablename__ = "food_sub_categories"

    category_id = Column(
        Integer,
        ForeignKey("food_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    category = relationship("FoodCategory", back_populates="sub_categories")

    __table_args__ = (
        Index("idx_food_sub_category_category_sort", "category_id", "sort_order"),
    )

    def __repr__(self) -> str:
        return f"FoodSubCategory(id={self.id}, name='{self.name}')"
