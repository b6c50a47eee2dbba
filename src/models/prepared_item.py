"""
PreparedItem model - intermediate recipe outputs usable as ingredients.
"""

from sqlalchemy import Column, Float, String, UniqueConstraint

from .allergens import AllergenFlagsMixin
from .base import BaseModel, OrganizationScopedMixin


class PreparedItem(AllergenFlagsMixin, OrganizationScopedMixin, BaseModel):
    """
    PreparedItem model.

    Attributes:
        item_id: Unique per organization; import conflict key
        product: Display name
        category, sub_category: Free-text classification as imported
        station: Kitchen station that produces the item
        storage_area, container, container_type, shelf_life: Storage details
        recipe_unit: Unit in which recipes consume the item
        cost_per_recipe_unit: Cost looked up by the costing engine
        yield_percent: Usable share, 0-100
        final_cost: Total batch cost as imported
    """

    __tablename__ = "prepared_items"

    item_id = Column(String(50), nullable=False)
    product = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)
    sub_category = Column(String(100), nullable=True)
    station = Column(String(100), nullable=True)

    storage_area = Column(String(100), nullable=True)
    container = Column(String(100), nullable=True)
    container_type = Column(String(100), nullable=True)
    shelf_life = Column(String(100), nullable=True)

    recipe_unit = Column(String(50), nullable=True)
    cost_per_recipe_unit = Column(Float, nullable=False, default=0.0)
    yield_percent = Column(Float, nullable=False, default=100.0)
    final_cost = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        UniqueConstraint("organization_id", "item_id", name="uq_prepared_item_org_item"),
    )

    def __repr__(self) -> str:
        return f"PreparedItem(id={self.id}, product='{self.product}')"

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["allergens"] = self.get_active_allergens()
        return result
