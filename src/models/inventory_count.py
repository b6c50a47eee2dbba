"""
InventoryCount model - a dated stock count of one master ingredient.
"""

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel, OrganizationScopedMixin
from src.utils.constants import INVENTORY_STATUS_PENDING


class InventoryCount(OrganizationScopedMixin, BaseModel):
    """
    InventoryCount model.

    Attributes:
        master_ingredient_id: Counted ingredient
        count_date: Day of the count; one count per ingredient per day
        quantity: Counted quantity in purchase units
        unit_cost: Cost per unit at count time
        total_value: quantity x unit_cost, maintained by the service layer
        location, counted_by, notes: Descriptive fields
        status: "pending" or "approved"
    """

    __tablename__ = "inventory_counts"

    master_ingredient_id = Column(
        Integer,
        ForeignKey("master_ingredients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    count_date = Column(Date, nullable=False)
    quantity = Column(Float, nullable=False, default=0.0)
    unit_cost = Column(Float, nullable=False, default=0.0)
    total_value = Column(Float, nullable=False, default=0.0)
    location = Column(String(100), nullable=True)
    counted_by = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=INVENTORY_STATUS_PENDING)

    master_ingredient = relationship("MasterIngredient", back_populates="inventory_counts")

    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "master_ingredient_id",
            "count_date",
            name="uq_inventory_count_org_ingredient_date",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"InventoryCount(id={self.id}, master_ingredient_id={self.master_ingredient_id}, "
            f"count_date={self.count_date})"
        )
