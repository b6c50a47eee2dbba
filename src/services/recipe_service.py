"""
Recipe Service - Business logic for recipe management.

This service provides CRUD operations for recipes with:
- Derived cost recomputation from current catalog prices
- Completeness validation before every save
- Version history (patch bump on significant changes)
- Optional optimistic-concurrency check on update
- Search and filtering
- Seeding recipe templates from prepared items

Recipes are passed in and returned as editor dicts (see
Recipe.to_editor_dict), never as ORM instances.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import PreparedItem, Recipe
from src.services import recipe_cost_service
from src.services.database import session_scope
from src.services.exceptions import (
    ConflictError,
    DatabaseError,
    RecipeNotFound,
    ValidationError,
)
from src.services.identity import resolve_organization_id, resolve_user_id
from src.services.logging_utils import get_service_logger, log_operation
from src.services.recipe_versioning import apply_recipe_update, initial_version_history
from src.utils.constants import INITIAL_RECIPE_VERSION, INGREDIENT_TYPE_PREPARED
from src.utils.validators import validate_recipe

logger = get_service_logger(__name__)

# Storage and training defaults for recipe templates seeded from prepared items
SEED_STORAGE_TEMPERATURE = {"min": 35, "max": 40, "unit": "F"}
SEED_SKILL_LEVEL = "beginner"


# ============================================================================
# Utility Functions
# ============================================================================


def _get_recipe_row(sess: Session, recipe_id: int, org_id: str) -> Recipe:
    recipe = (
        sess.query(Recipe)
        .filter(Recipe.id == recipe_id, Recipe.organization_id == org_id)
        .first()
    )
    if recipe is None:
        raise RecipeNotFound(recipe_id)
    return recipe


def _yield_errors(recipe: Dict) -> List[str]:
    """Costing divides by the yield, so it must be positive before costs are computed."""
    value = (recipe.get("recipe_yield") or {}).get("value")
    try:
        if float(value) > 0:
            return []
    except (TypeError, ValueError):
        pass
    return ["Recipe yield must be greater than zero"]


def _validate_and_cost(sess: Session, recipe: Dict) -> Dict:
    """
    Validate a recipe dict and return it with derived costs recomputed.

    Raises:
        ValidationError: If the recipe is incomplete or has no positive yield
    """
    errors = validate_recipe(recipe) + _yield_errors(recipe)
    if errors:
        raise ValidationError(errors)

    ingredient_lookup, prepared_lookup = recipe_cost_service.build_cost_lookups(session=sess)
    unresolved = recipe_cost_service.find_unresolved_ingredients(
        recipe.get("ingredients") or [], ingredient_lookup, prepared_lookup
    )
    if unresolved:
        log_operation(
            logger,
            operation="recompute_costs",
            outcome="unresolved_ingredients",
            level=logging.WARNING,
            recipe_name=recipe.get("name"),
            problems=unresolved,
        )
    return recipe_cost_service.recompute_recipe(recipe, ingredient_lookup, prepared_lookup)


# ============================================================================
# CRUD Operations
# ============================================================================


def create_recipe(recipe_data: Dict, session: Optional[Session] = None) -> Dict:
    """
    Create a new recipe at version 1.0.0 with an "Initial version" history entry.

    Derived cost fields in recipe_data are ignored and recomputed.

    Args:
        recipe_data: Recipe editor dict (without id or version fields)
        session: Optional database session

    Returns:
        Created recipe as an editor dict

    Raises:
        AuthorizationError: If no organization is resolved
        ValidationError: If the recipe is incomplete
        DatabaseError: If database operation fails
    """
    org_id = resolve_organization_id()
    user_id = resolve_user_id()

    def _impl(sess: Session) -> Dict:
        data = dict(recipe_data)
        data.pop("id", None)
        data["versions"] = initial_version_history(user_id)
        data["current_version"] = INITIAL_RECIPE_VERSION
        data["created_by"] = user_id
        data["updated_by"] = user_id
        data.setdefault("recipe_yield", {"value": 1, "unit": "batch"})

        costed = _validate_and_cost(sess, data)

        recipe = Recipe(organization_id=org_id)
        recipe.apply_editor_dict(costed)
        sess.add(recipe)
        sess.flush()

        log_operation(
            logger,
            operation="create_recipe",
            outcome="success",
            recipe_id=recipe.id,
            recipe_name=recipe.name,
        )
        return recipe.to_editor_dict()

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)


def get_recipe(recipe_id: int, session: Optional[Session] = None) -> Dict:
    """
    Retrieve a recipe by ID.

    Raises:
        RecipeNotFound: If recipe doesn't exist in this organization
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        return _get_recipe_row(sess, recipe_id, org_id).to_editor_dict()

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def list_recipes(recipe_type: Optional[str] = None, session: Optional[Session] = None) -> List[Dict]:
    """
    List recipes ordered by name, optionally restricted to one type.

    Args:
        recipe_type: "prepared" or "final"; None for all
        session: Optional database session

    Returns:
        List of recipe editor dicts
    """
    return filter_recipes(recipe_type=recipe_type, session=session)


def update_recipe(
    recipe_id: int,
    updates: Dict,
    expected_version: Optional[str] = None,
    session: Optional[Session] = None,
) -> Dict:
    """
    Apply a partial update to a recipe.

    Touching a significant field (ingredients, steps, equipment, storage,
    quality_control, allergens) bumps the patch version and appends a
    history entry; other edits leave the version unchanged. Derived costs
    are always recomputed.

    Args:
        recipe_id: Recipe ID
        updates: Fields to change (editor dict keys)
        expected_version: Version the caller loaded; when given and no longer
            current, the update is rejected instead of overwriting
        session: Optional database session

    Returns:
        Updated recipe as an editor dict

    Raises:
        RecipeNotFound: If recipe doesn't exist
        ConflictError: If expected_version is stale
        ValidationError: If the updated recipe is incomplete
        DatabaseError: If database operation fails
    """
    org_id = resolve_organization_id()
    user_id = resolve_user_id()

    def _impl(sess: Session) -> Dict:
        recipe = _get_recipe_row(sess, recipe_id, org_id)

        if expected_version is not None and expected_version != recipe.current_version:
            raise ConflictError(recipe_id, expected_version, recipe.current_version)

        current = recipe.to_editor_dict()
        changes = {
            k: v for k, v in updates.items()
            if k not in ("id", "versions", "current_version", "created_by")
        }
        updated = _validate_and_cost(sess, apply_recipe_update(current, changes, user_id))

        if "ingredients" in changes:
            recipe.apply_editor_dict(updated)
        else:
            # Keep the existing ingredient rows; only their cached costs change
            recipe.apply_editor_dict({k: v for k, v in updated.items() if k != "ingredients"})
            for line, refreshed in zip(recipe.recipe_ingredients, updated["ingredients"]):
                line.cost = refreshed["cost"]
        sess.flush()

        if recipe.current_version != current["current_version"]:
            log_operation(
                logger,
                operation="update_recipe",
                outcome="version_bumped",
                recipe_id=recipe_id,
                version=recipe.current_version,
            )
        else:
            logger.debug(f"Recipe {recipe_id} updated without version change")

        return recipe.to_editor_dict()

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update recipe {recipe_id}", e)


def delete_recipe(recipe_id: int, session: Optional[Session] = None) -> bool:
    """
    Delete a recipe and its ingredient lines.

    Returns:
        True if deleted successfully

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> bool:
        recipe = _get_recipe_row(sess, recipe_id, org_id)
        # Cascade removes recipe_ingredients
        sess.delete(recipe)
        log_operation(logger, operation="delete_recipe", outcome="success", recipe_id=recipe_id)
        return True

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete recipe {recipe_id}", e)


# ============================================================================
# Search and Filter Functions
# ============================================================================


def filter_recipes(
    recipe_type: Optional[str] = None,
    search_term: Optional[str] = None,
    session: Optional[Session] = None,
) -> List[Dict]:
    """
    Filter recipes by type and a search term.

    The search term matches name, category or sub-category
    (case-insensitive partial match).

    Returns:
        List of recipe editor dicts ordered by name
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        query = sess.query(Recipe).filter(Recipe.organization_id == org_id)

        if recipe_type:
            query = query.filter(Recipe.type == recipe_type)

        if search_term:
            pattern = f"%{search_term.strip()}%"
            query = query.filter(
                or_(
                    Recipe.name.ilike(pattern),
                    Recipe.category.ilike(pattern),
                    Recipe.sub_category.ilike(pattern),
                )
            )

        recipes = query.order_by(Recipe.name, Recipe.id).all()
        return [recipe.to_editor_dict() for recipe in recipes]

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


def get_recipes_using_prepared_item(prepared_item_id: int, session: Optional[Session] = None) -> List[Dict]:
    """List recipes that include the given prepared item as an ingredient."""
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        recipes = (
            sess.query(Recipe)
            .filter(Recipe.organization_id == org_id)
            .order_by(Recipe.name, Recipe.id)
            .all()
        )
        return [
            recipe.to_editor_dict()
            for recipe in recipes
            if any(
                line.ingredient_type == INGREDIENT_TYPE_PREPARED
                and line.prepared_item_ref == prepared_item_id
                for line in recipe.recipe_ingredients
            )
        ]

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)


# ============================================================================
# Seeding
# ============================================================================


def _template_from_prepared_item(item: PreparedItem, user_id: Optional[str]) -> Dict:
    """Recipe template for a prepared item: no ingredients or steps yet."""
    description_parts = [part for part in (item.sub_category, item.station) if part]
    return {
        "type": "prepared",
        "name": item.product,
        "category": item.category,
        "sub_category": item.sub_category,
        "description": " - ".join(description_parts) or None,
        "ingredients": [],
        "recipe_yield": {"value": 1, "unit": "batch"},
        "cost_per_unit": item.cost_per_recipe_unit,
        "total_cost": item.final_cost,
        "prep_time": 0,
        "cook_time": 0,
        "equipment": [],
        "steps": [],
        "primary_station": item.station,
        "secondary_stations": [],
        "storage": {
            "temperature": dict(SEED_STORAGE_TEMPERATURE),
            "container": item.container,
            "container_type": item.container_type,
            "fifo_labeling": {"required": True},
        },
        "training": {"skill_level": SEED_SKILL_LEVEL},
        "quality_control": {},
        "allergens": item.get_active_allergens(),
        "versions": initial_version_history(user_id),
        "current_version": INITIAL_RECIPE_VERSION,
        "created_by": user_id,
        "updated_by": user_id,
    }


def seed_from_prepared_items(session: Optional[Session] = None) -> List[Dict]:
    """
    Create a "prepared" recipe template for each prepared item.

    Templates carry the item's costs, station, container and allergens but no
    ingredients or steps, so they are stored without completeness validation.
    Items that already have a prepared recipe with the same name are skipped.

    Returns:
        List of created recipe editor dicts
    """
    org_id = resolve_organization_id()
    user_id = resolve_user_id()

    def _impl(sess: Session) -> List[Dict]:
        existing = {
            name.strip().lower()
            for (name,) in sess.query(Recipe.name).filter(
                Recipe.organization_id == org_id, Recipe.type == "prepared"
            )
        }
        items = (
            sess.query(PreparedItem)
            .filter(PreparedItem.organization_id == org_id)
            .order_by(PreparedItem.product, PreparedItem.id)
            .all()
        )

        created = []
        for item in items:
            if item.product.strip().lower() in existing:
                continue
            recipe = Recipe(organization_id=org_id)
            recipe.apply_editor_dict(_template_from_prepared_item(item, user_id))
            sess.add(recipe)
            existing.add(item.product.strip().lower())
            created.append(recipe)
        sess.flush()

        log_operation(
            logger,
            operation="seed_from_prepared_items",
            outcome="success",
            created_count=len(created),
            skipped_count=len(items) - len(created),
        )
        return [recipe.to_editor_dict() for recipe in created]

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to seed recipes from prepared items", e)
