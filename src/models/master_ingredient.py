"""
MasterIngredient model - the organization's purchasable ingredient catalog.

Each row describes a product as bought (case size, case price, vendor) and
how it converts into recipe units, including yield loss.
"""

from sqlalchemy import Column, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .allergens import AllergenFlagsMixin
from .base import BaseModel, OrganizationScopedMixin


class MasterIngredient(AllergenFlagsMixin, OrganizationScopedMixin, BaseModel):
    """
    MasterIngredient model.

    Attributes:
        item_code: Unique per organization; import conflict key
        product: Product display name
        major_group / category / sub_category: Taxonomy node ids (optional).
            Stored without foreign keys so deleting a taxonomy node leaves
            these dangling; they then resolve to "Unknown".
        vendor, case_size, units_per_case: Purchase description
        current_price: Price per purchase unit (case)
        unit_of_measure: Base unit of the purchase
        recipe_unit_per_purchase_unit: Recipe units contained in one case
        recipe_unit_type: Recipe unit label (portion, cup, ...)
        yield_percent: Usable share after prep loss, 0-100
        cost_per_recipe_unit: Derived, see recipe_cost_service.cost_per_recipe_unit
        storage_area, image_url: Descriptive fields
    """

    __tablename__ = "master_ingredients"

    item_code = Column(String(50), nullable=False)
    product = Column(String(200), nullable=False)

    major_group = Column(Integer, nullable=True)
    category = Column(Integer, nullable=True)
    sub_category = Column(Integer, nullable=True)

    vendor = Column(String(200), nullable=True)
    case_size = Column(String(100), nullable=True)
    units_per_case = Column(String(50), nullable=True)
    current_price = Column(Float, nullable=False, default=0.0)
    unit_of_measure = Column(String(50), nullable=True)

    recipe_unit_per_purchase_unit = Column(Float, nullable=False, default=0.0)
    recipe_unit_type = Column(String(50), nullable=True)
    yield_percent = Column(Float, nullable=False, default=100.0)
    cost_per_recipe_unit = Column(Float, nullable=False, default=0.0)

    storage_area = Column(String(100), nullable=True)
    image_url = Column(String(500), nullable=True)

    inventory_counts = relationship(
        "InventoryCount",
        back_populates="master_ingredient",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (
        UniqueConstraint("organization_id", "item_code", name="uq_master_ingredient_org_code"),
        Index("idx_master_ingredient_product", "product"),
    )

    def __repr__(self) -> str:
        return f"MasterIngredient(id={self.id}, item_code='{self.item_code}')"

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["allergens"] = self.get_active_allergens()
        return result
