"""
Recipe models for kitchen recipes.

This module contains:
- Recipe: Recipe header, production details, storage/training/quality data,
  derived costs and version history
- RecipeIngredient: Ordered ingredient lines referencing either a master
  ingredient (raw) or a prepared item (prepared)

Nested, free-form recipe sections (steps, equipment, storage, training,
quality control) are stored as JSON documents. Assign a new value to change
them; in-place mutation is not tracked.
"""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel, OrganizationScopedMixin
from src.utils.constants import INGREDIENT_TYPE_RAW, INITIAL_RECIPE_VERSION
from src.utils.datetime_utils import utc_now

# Recipe columns that map 1:1 onto keys of the editor dict
EDITOR_FIELDS = (
    "type",
    "name",
    "category",
    "sub_category",
    "description",
    "prep_time",
    "cook_time",
    "ingredient_cost",
    "labor_cost",
    "total_cost",
    "cost_per_unit",
    "equipment",
    "steps",
    "primary_station",
    "secondary_stations",
    "storage",
    "training",
    "quality_control",
    "allergens",
    "versions",
    "current_version",
    "created_by",
    "updated_by",
    "notes",
)


class Recipe(OrganizationScopedMixin, BaseModel):
    """
    Recipe model.

    Attributes:
        type: "prepared" (intermediate output) or "final" (menu item)
        name, category, sub_category, description: Basic information
        yield_value, yield_unit: Recipe yield (e.g. 12 portions)
        prep_time, cook_time: Minutes; drive labor cost
        ingredient_cost, labor_cost, total_cost, cost_per_unit: Derived costs,
            always recomputed by recipe_cost_service
        equipment, steps, storage, training, quality_control: JSON sections
        primary_station, secondary_stations: Station management
        allergens: List of allergen names
        versions: [{version, date, author, changes}]
        current_version: Always equals versions[-1]["version"]
        last_modified, created_by, updated_by: Audit fields
    """

    __tablename__ = "recipes"

    type = Column(String(20), nullable=False, index=True)
    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=True)
    sub_category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    yield_value = Column(Float, nullable=False, default=1.0)
    yield_unit = Column(String(50), nullable=False, default="batch")

    prep_time = Column(Float, nullable=False, default=0.0)
    cook_time = Column(Float, nullable=False, default=0.0)

    ingredient_cost = Column(Float, nullable=False, default=0.0)
    labor_cost = Column(Float, nullable=False, default=0.0)
    total_cost = Column(Float, nullable=False, default=0.0)
    cost_per_unit = Column(Float, nullable=True, default=0.0)

    equipment = Column(JSON, nullable=False, default=list)
    steps = Column(JSON, nullable=False, default=list)
    primary_station = Column(String(100), nullable=True)
    secondary_stations = Column(JSON, nullable=False, default=list)
    storage = Column(JSON, nullable=False, default=dict)
    training = Column(JSON, nullable=False, default=dict)
    quality_control = Column(JSON, nullable=False, default=dict)
    allergens = Column(JSON, nullable=False, default=list)

    versions = Column(JSON, nullable=False, default=list)
    current_version = Column(String(20), nullable=False, default=INITIAL_RECIPE_VERSION)
    last_modified = Column(DateTime, nullable=False, default=utc_now)
    created_by = Column(String(64), nullable=True)
    updated_by = Column(String(64), nullable=True)

    notes = Column(Text, nullable=True)

    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
        lazy="joined",
    )

    __table_args__ = (Index("idx_recipe_org_type", "organization_id", "type"),)

    def __repr__(self) -> str:
        return f"Recipe(id={self.id}, name='{self.name}', version='{self.current_version}')"

    def to_editor_dict(self) -> dict:
        """
        Convert the recipe into the in-memory dict the editor, costing
        engine, validator and version policy operate on.

        Returns:
            Dict with recipe fields, "recipe_yield": {"value", "unit"} and
            "ingredients" as a list of ingredient dicts in position order
        """
        result = {"id": self.id}
        for field in EDITOR_FIELDS:
            result[field] = getattr(self, field)
        result["recipe_yield"] = {"value": self.yield_value, "unit": self.yield_unit}
        result["ingredients"] = [ri.to_editor_dict() for ri in self.recipe_ingredients]
        result["last_modified"] = self.last_modified.isoformat() if self.last_modified else None
        return result

    def apply_editor_dict(self, data: dict) -> None:
        """
        Copy editor dict values onto the row. Ingredient lines are replaced
        wholesale when "ingredients" is present.

        Args:
            data: Editor dict (full or partial)
        """
        for field in EDITOR_FIELDS:
            if field in data:
                setattr(self, field, data[field])

        if "recipe_yield" in data and data["recipe_yield"] is not None:
            self.yield_value = data["recipe_yield"].get("value", self.yield_value)
            self.yield_unit = data["recipe_yield"].get("unit", self.yield_unit)

        if "ingredients" in data:
            self.recipe_ingredients = [
                RecipeIngredient.from_editor_dict(line, position)
                for position, line in enumerate(data["ingredients"] or [])
            ]

        self.last_modified = utc_now()


class RecipeIngredient(BaseModel):
    """
    One ingredient line of a recipe.

    Attributes:
        recipe_id: Owning recipe
        position: Zero-based order within the recipe
        ingredient_type: "raw" or "prepared"
        ingredient_ref: MasterIngredient.item_code for raw lines
        prepared_item_ref: PreparedItem.id for prepared lines
        name: Display name of the referenced item
        quantity: Decimal quantity kept as entered (string)
        unit: Unit of measure
        cost: Cached unit cost from the last recompute; not authoritative
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    ingredient_type = Column(String(20), nullable=False, default=INGREDIENT_TYPE_RAW)
    ingredient_ref = Column(String(50), nullable=True)
    prepared_item_ref = Column(Integer, nullable=True)
    name = Column(String(200), nullable=True)
    quantity = Column(String(50), nullable=False, default="0")
    unit = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    cost = Column(Float, nullable=False, default=0.0)

    recipe = relationship("Recipe", back_populates="recipe_ingredients")

    def __repr__(self) -> str:
        return (
            f"RecipeIngredient(recipe_id={self.recipe_id}, type='{self.ingredient_type}', "
            f"quantity='{self.quantity}')"
        )

    def to_editor_dict(self) -> dict:
        return {
            "type": self.ingredient_type,
            "name": self.name,
            "ingredient_ref": self.ingredient_ref,
            "prepared_item_ref": self.prepared_item_ref,
            "quantity": self.quantity,
            "unit": self.unit,
            "notes": self.notes,
            "cost": self.cost,
        }

    @classmethod
    def from_editor_dict(cls, data: dict, position: int) -> "RecipeIngredient":
        quantity = data.get("quantity")
        return cls(
            position=position,
            ingredient_type=data.get("type") or INGREDIENT_TYPE_RAW,
            ingredient_ref=data.get("ingredient_ref"),
            prepared_item_ref=data.get("prepared_item_ref"),
            name=data.get("name"),
            quantity="" if quantity is None else str(quantity),
            unit=data.get("unit"),
            notes=data.get("notes"),
            cost=data.get("cost") or 0.0,
        )
