"""
Recipe Cost Service - derived cost fields for recipes and ingredients.

The computation functions are pure: they take an in-memory recipe dict and
cost lookups and return new values without touching the database. The
store-backed helpers at the bottom build the lookups for the current
organization and persist recomputed totals.

Cost lookups may be mappings (``{"BEEF-001": 14.82}``) or callables
returning a unit cost or None.

Costs are Python floats, not Decimal: a recipe yield of zero or less must
produce ``inf``/``nan`` for cost_per_unit rather than raise, and the Float
columns store exactly what was computed. Values are never rounded on the way
to the database; round only when displaying.

Usage:
    from src.services import recipe_cost_service

    costs = recipe_cost_service.compute_costs(
        recipe, {"BEEF-001": 14.82}, {7: 3.10}, labor_rate_per_hour=30
    )
    costs["cost_per_unit"]
"""

import logging
import math
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from sqlalchemy.orm import Session

from src.models.master_ingredient import MasterIngredient
from src.models.prepared_item import PreparedItem
from src.models.recipe import Recipe
from src.services.database import session_scope
from src.services.exceptions import RecipeNotFound, ValidationError
from src.services.identity import resolve_organization_id
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.config import get_config
from src.utils.constants import INGREDIENT_TYPE_PREPARED

logger = get_service_logger(__name__)

CostLookup = Union[Mapping, Callable[[object], Optional[float]]]


# ============================================================================
# Helpers
# ============================================================================


def parse_quantity(quantity) -> Optional[float]:
    """
    Parse an ingredient quantity kept as a decimal string.

    Returns:
        The number, or None when the value is blank or not numeric
    """
    if quantity is None:
        return None
    try:
        value = float(str(quantity).strip())
    except ValueError:
        return None
    if math.isnan(value):
        return None
    return value


def _lookup(lookup: Optional[CostLookup], key) -> Optional[float]:
    if lookup is None or key is None:
        return None
    if callable(lookup):
        return lookup(key)
    return lookup.get(key)


def _ieee_divide(numerator: float, denominator: float) -> float:
    """Float division that yields inf/nan for a zero denominator instead of raising."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def resolve_unit_cost(
    ingredient: Dict,
    ingredient_cost_lookup: Optional[CostLookup],
    prepared_item_cost_lookup: Optional[CostLookup],
) -> Optional[float]:
    """
    Unit cost of one recipe ingredient from the lookup matching its type.

    Returns:
        Unit cost, or None when the reference doesn't resolve
    """
    if ingredient.get("type") == INGREDIENT_TYPE_PREPARED:
        return _lookup(prepared_item_cost_lookup, ingredient.get("prepared_item_ref"))
    return _lookup(ingredient_cost_lookup, ingredient.get("ingredient_ref"))


# ============================================================================
# Pure computations
# ============================================================================


def cost_per_recipe_unit(
    current_price: float,
    recipe_units_per_purchase_unit: float,
    yield_percent: float,
) -> float:
    """
    Cost of one recipe unit of a master ingredient.

    cost = (current_price / recipe_units_per_purchase_unit) x (100 / yield_percent)

    Args:
        current_price: Price per purchase unit (case)
        recipe_units_per_purchase_unit: Recipe units in one purchase unit
        yield_percent: Usable share after prep loss, in (0, 100]

    Returns:
        Cost per recipe unit

    Raises:
        ValidationError: If units or yield are zero/negative, yield exceeds 100,
            or the price is negative

    Example:
        >>> round(cost_per_recipe_unit(125.99, 10, 85), 2)
        14.82
    """
    errors = []
    if current_price is None or current_price < 0:
        errors.append("Current price must be zero or greater")
    if not recipe_units_per_purchase_unit or recipe_units_per_purchase_unit <= 0:
        errors.append("Recipe units per purchase unit must be greater than zero")
    if not yield_percent or yield_percent <= 0 or yield_percent > 100:
        errors.append("Yield % must be greater than 0 and at most 100")
    if errors:
        raise ValidationError(errors)

    return (current_price / recipe_units_per_purchase_unit) * (100 / yield_percent)


def compute_costs(
    recipe: Dict,
    ingredient_cost_lookup: Optional[CostLookup],
    prepared_item_cost_lookup: Optional[CostLookup],
    labor_rate_per_hour: Optional[float] = None,
) -> Dict[str, float]:
    """
    Compute derived costs for a recipe.

    Unresolved ingredient references and unparseable quantities contribute 0.
    A recipe yield of zero produces inf (or nan for a zero total); callers
    validate yield > 0 first.

    Args:
        recipe: Recipe dict with ingredients, prep_time, cook_time, recipe_yield
        ingredient_cost_lookup: item_code -> cost per recipe unit
        prepared_item_cost_lookup: prepared item id -> cost per recipe unit
        labor_rate_per_hour: Labor rate; defaults to the configured rate

    Returns:
        Dict with ingredient_costs, labor_cost, total_cost, cost_per_unit
    """
    if labor_rate_per_hour is None:
        labor_rate_per_hour = get_config().labor_rate_per_hour

    ingredient_costs = 0.0
    for ingredient in recipe.get("ingredients") or []:
        unit_cost = resolve_unit_cost(
            ingredient, ingredient_cost_lookup, prepared_item_cost_lookup
        )
        quantity = parse_quantity(ingredient.get("quantity"))
        if unit_cost is None or quantity is None:
            continue
        ingredient_costs += unit_cost * quantity

    total_minutes = float(recipe.get("prep_time") or 0) + float(recipe.get("cook_time") or 0)
    labor_cost = (total_minutes / 60) * labor_rate_per_hour

    total_cost = ingredient_costs + labor_cost

    recipe_yield = recipe.get("recipe_yield") or {}
    yield_value = float(recipe_yield.get("value") or 0)
    cost_per_unit = _ieee_divide(total_cost, yield_value)

    return {
        "ingredient_costs": ingredient_costs,
        "labor_cost": labor_cost,
        "total_cost": total_cost,
        "cost_per_unit": cost_per_unit,
    }


def find_unresolved_ingredients(
    ingredients: List[Dict],
    ingredient_cost_lookup: Optional[CostLookup],
    prepared_item_cost_lookup: Optional[CostLookup],
) -> List[str]:
    """
    Report ingredient lines that compute_costs() silently counts as zero.

    Returns:
        Messages like "Ingredient 2: Master ingredient not found"
    """
    problems = []
    for index, ingredient in enumerate(ingredients or [], start=1):
        unit_cost = resolve_unit_cost(
            ingredient, ingredient_cost_lookup, prepared_item_cost_lookup
        )
        if unit_cost is None:
            if ingredient.get("type") == INGREDIENT_TYPE_PREPARED:
                problems.append(f"Ingredient {index}: Prepared item not found")
            else:
                problems.append(f"Ingredient {index}: Master ingredient not found")

        quantity = parse_quantity(ingredient.get("quantity"))
        if quantity is None or quantity <= 0:
            problems.append(f"Ingredient {index}: Invalid quantity")
    return problems


def refresh_ingredient_costs(
    ingredients: List[Dict],
    ingredient_cost_lookup: Optional[CostLookup],
    prepared_item_cost_lookup: Optional[CostLookup],
) -> List[Dict]:
    """
    Return copies of the ingredient lines with "cost" re-read from the lookups.

    Unresolved references get a cached cost of 0.
    """
    refreshed = []
    for ingredient in ingredients or []:
        unit_cost = resolve_unit_cost(
            ingredient, ingredient_cost_lookup, prepared_item_cost_lookup
        )
        refreshed.append({**ingredient, "cost": unit_cost if unit_cost is not None else 0.0})
    return refreshed


def recompute_recipe(
    recipe: Dict,
    ingredient_cost_lookup: Optional[CostLookup],
    prepared_item_cost_lookup: Optional[CostLookup],
    labor_rate_per_hour: Optional[float] = None,
) -> Dict:
    """
    Return a copy of the recipe with cached ingredient costs and all derived
    cost fields recomputed.
    """
    updated = dict(recipe)
    updated["ingredients"] = refresh_ingredient_costs(
        recipe.get("ingredients") or [], ingredient_cost_lookup, prepared_item_cost_lookup
    )
    costs = compute_costs(
        updated, ingredient_cost_lookup, prepared_item_cost_lookup, labor_rate_per_hour
    )
    updated["ingredient_cost"] = costs["ingredient_costs"]
    updated["labor_cost"] = costs["labor_cost"]
    updated["total_cost"] = costs["total_cost"]
    updated["cost_per_unit"] = costs["cost_per_unit"]
    return updated


def calculate_weighted_yield(recipe: Dict, ingredient_yield_lookup: Optional[CostLookup]) -> float:
    """
    Quantity-weighted yield % across a recipe's ingredients.

    Raw ingredients contribute their master ingredient yield; prepared items
    count as fully usable; unresolved raw ingredients contribute nothing.

    Returns:
        Weighted yield percent, or 0.0 when the recipe has no usable quantity
    """
    total_quantity = 0.0
    weighted = 0.0
    for ingredient in recipe.get("ingredients") or []:
        quantity = parse_quantity(ingredient.get("quantity"))
        if quantity is None:
            continue
        total_quantity += quantity

        if ingredient.get("type") == INGREDIENT_TYPE_PREPARED:
            weighted += quantity
            continue
        yield_percent = _lookup(ingredient_yield_lookup, ingredient.get("ingredient_ref"))
        if yield_percent is not None:
            weighted += (yield_percent / 100) * quantity

    if total_quantity <= 0:
        return 0.0
    return (weighted / total_quantity) * 100


# ============================================================================
# Store-backed helpers
# ============================================================================


def build_cost_lookups(
    session: Optional[Session] = None,
) -> Tuple[Dict[str, float], Dict[int, float]]:
    """
    Load cost lookups for the current organization.

    Returns:
        Tuple of (item_code -> cost_per_recipe_unit, prepared item id -> cost_per_recipe_unit)
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session):
        ingredient_costs = {
            code: cost
            for code, cost in sess.query(
                MasterIngredient.item_code, MasterIngredient.cost_per_recipe_unit
            ).filter(MasterIngredient.organization_id == org_id)
        }
        prepared_costs = {
            item_id: cost
            for item_id, cost in sess.query(
                PreparedItem.id, PreparedItem.cost_per_recipe_unit
            ).filter(PreparedItem.organization_id == org_id)
        }
        return ingredient_costs, prepared_costs

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def calculate_recipe_costs(
    recipe_id: int,
    labor_rate_per_hour: Optional[float] = None,
    session: Optional[Session] = None,
) -> Dict[str, float]:
    """
    Recompute and store a recipe's derived costs from current catalog prices.

    Unresolved ingredient references still count as zero; they are logged at
    WARNING level so the gap is visible.

    Returns:
        Dict from compute_costs()

    Raises:
        RecipeNotFound: If the recipe doesn't exist in this organization
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict[str, float]:
        recipe = (
            sess.query(Recipe)
            .filter(Recipe.id == recipe_id, Recipe.organization_id == org_id)
            .first()
        )
        if recipe is None:
            raise RecipeNotFound(recipe_id)

        ingredient_lookup, prepared_lookup = build_cost_lookups(session=sess)
        editor = recipe.to_editor_dict()
        updated = recompute_recipe(editor, ingredient_lookup, prepared_lookup, labor_rate_per_hour)

        for line, refreshed in zip(recipe.recipe_ingredients, updated["ingredients"]):
            line.cost = refreshed["cost"]
        recipe.ingredient_cost = updated["ingredient_cost"]
        recipe.labor_cost = updated["labor_cost"]
        recipe.total_cost = updated["total_cost"]
        recipe.cost_per_unit = updated["cost_per_unit"]
        sess.flush()

        unresolved = find_unresolved_ingredients(
            editor["ingredients"], ingredient_lookup, prepared_lookup
        )
        if unresolved:
            log_operation(
                logger,
                operation="calculate_recipe_costs",
                outcome="unresolved_ingredients",
                level=logging.WARNING,
                recipe_id=recipe_id,
                problems=unresolved,
            )

        return compute_costs(updated, ingredient_lookup, prepared_lookup, labor_rate_per_hour)

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)
