"""
FoodCategory model for second-level food classification.

Categories live under a major group (e.g., "Proteins" under "Food").
"""

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel, OrganizationScopedMixin


class FoodCategory(OrganizationScopedMixin, BaseModel):
    """
    FoodCategory model representing the middle taxonomy level.

    Attributes:
        group_id: Foreign key to parent FoodCategoryGroup
        name: Category display name
        description: Optional description text
        sort_order: Display ordering among siblings in the same group

    Relationships:
        group: Many-to-One with FoodCategoryGroup
        sub_categories: One-to-Many with FoodSubCategory (cascade delete)
    """

    __tablename__ = "food_categories"

    group_id = Column(
        Integer,
        ForeignKey("food_category_groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    group = relationship("FoodCategoryGroup", back_populates="categories")
    sub_categories = relationship(
        "FoodSubCategory",
        back_populates="category",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (Index("idx_food_category_group_sort", "group_id", "sort_order"),)

    def __repr__(self) -> str:
        return f"FoodCategory(id={self.id}, name='{self.name}')"
