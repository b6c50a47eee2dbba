"""
FoodCategoryGroup model for top-level food classification.

Major groups are the first level of the three-level food taxonomy
(e.g., "Food", "Beverage", "Alcohol").
"""

from sqlalchemy import Column, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel, OrganizationScopedMixin


class FoodCategoryGroup(OrganizationScopedMixin, BaseModel):
    """
    FoodCategoryGroup model representing a major group.

    Hierarchy: FoodCategoryGroup > FoodCategory > FoodSubCategory

    Attributes:
        name: Group display name
        description: Optional description text
        icon: Optional icon identifier for display
        color: Optional display color
        sort_order: Display ordering among groups

    Relationships:
        categories: One-to-Many with FoodCategory (cascade delete)
    """

    __tablename__ = "food_category_groups"

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    categories = relationship(
        "FoodCategory",
        back_populates="group",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (
        Index("idx_food_category_group_org_sort", "organization_id", "sort_order"),
    )

    def __repr__(self) -> str:
        return f"FoodCategoryGroup(id={self.id}, name='{self.name}')"
