"""
Master Ingredient Service - the organization's purchasable ingredient catalog.

Provides CRUD operations with:
- Field validation (src.utils.validators)
- Taxonomy classification nesting checks
- Cost per recipe unit derived on every save, never accepted from callers

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import InventoryCount, MasterIngredient
from src.services import food_taxonomy_service
from src.services.database import session_scope
from src.services.exceptions import DatabaseError, MasterIngredientNotFound, ValidationError
from src.services.identity import resolve_organization_id
from src.services.logging_utils import get_service_logger, log_operation
from src.services.recipe_cost_service import cost_per_recipe_unit
from src.utils.validators import validate_master_ingredient_data

logger = get_service_logger(__name__)

# Columns callers may write; cost_per_recipe_unit is always derived
EDITABLE_FIELDS = tuple(
    name for name in MasterIngredient.writable_columns() if name != "cost_per_recipe_unit"
)


def _run(impl, session: Optional[Session]):
    try:
        if session is not None:
            return impl(session)
        with session_scope() as sess:
            return impl(sess)
    except SQLAlchemyError as e:
        raise DatabaseError("Master ingredient operation failed", e)


def _get_row(sess: Session, ingredient_id: int, org_id: str) -> MasterIngredient:
    ingredient = (
        sess.query(MasterIngredient)
        .filter(MasterIngredient.id == ingredient_id, MasterIngredient.organization_id == org_id)
        .first()
    )
    if ingredient is None:
        raise MasterIngredientNotFound(ingredient_id)
    return ingredient


def _prepare_fields(sess: Session, data: Dict) -> Dict:
    """
    Validate a full set of ingredient fields and add the derived cost.

    Raises:
        ValidationError: With every field and classification problem found
    """
    fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    fields.setdefault("yield_percent", 100.0)
    fields.setdefault("current_price", 0.0)

    _, errors = validate_master_ingredient_data(fields)
    errors += food_taxonomy_service.validate_classification(
        fields.get("major_group"),
        fields.get("category"),
        fields.get("sub_category"),
        session=sess,
    )
    if errors:
        raise ValidationError(errors)

    fields["cost_per_recipe_unit"] = cost_per_recipe_unit(
        float(fields["current_price"]),
        float(fields["recipe_unit_per_purchase_unit"]),
        float(fields["yield_percent"]),
    )
    return fields


def _check_unique_code(sess: Session, org_id: str, item_code: str, exclude_id: Optional[int] = None):
    query = sess.query(MasterIngredient.id).filter(
        MasterIngredient.organization_id == org_id,
        MasterIngredient.item_code == item_code,
    )
    if exclude_id is not None:
        query = query.filter(MasterIngredient.id != exclude_id)
    if query.first() is not None:
        raise ValidationError([f"Item code '{item_code}' already exists"])


# ============================================================================
# CRUD Operations
# ============================================================================


def create_master_ingredient(data: Dict, session: Optional[Session] = None) -> Dict:
    """
    Create a master ingredient.

    Args:
        data: Ingredient fields (item_code, product, current_price,
            recipe_unit_per_purchase_unit, yield_percent, classification ids,
            allergen_* flags, ...)
        session: Optional database session

    Returns:
        Created ingredient dict, including the derived cost_per_recipe_unit

    Raises:
        AuthorizationError: If no organization is resolved
        ValidationError: If fields are invalid, the classification doesn't
            nest or the item code is taken
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        fields = _prepare_fields(sess, data)
        _check_unique_code(sess, org_id, fields["item_code"])

        ingredient = MasterIngredient(organization_id=org_id, **fields)
        sess.add(ingredient)
        sess.flush()

        log_operation(
            logger,
            operation="create_master_ingredient",
            outcome="success",
            ingredient_id=ingredient.id,
            item_code=ingredient.item_code,
        )
        return ingredient.to_dict()

    return _run(_impl, session)


def get_master_ingredient(
    ingredient_id: int,
    include_classification: bool = False,
    session: Optional[Session] = None,
) -> Dict:
    """
    Retrieve a master ingredient by ID.

    Args:
        ingredient_id: Ingredient ID
        include_classification: Add major_group_name/category_name/
            sub_category_name ("Unknown" for deleted taxonomy nodes)
        session: Optional database session

    Raises:
        MasterIngredientNotFound: If the ingredient doesn't exist
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        ingredient = _get_row(sess, ingredient_id, org_id)
        result = ingredient.to_dict()
        if include_classification:
            result.update(
                food_taxonomy_service.resolve_classification(
                    ingredient.major_group,
                    ingredient.category,
                    ingredient.sub_category,
                    session=sess,
                )
            )
        return result

    return _run(_impl, session)


def get_master_ingredient_by_code(item_code: str, session: Optional[Session] = None) -> Optional[Dict]:
    """Look up an ingredient by item code; None if there is none."""
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Optional[Dict]:
        ingredient = (
            sess.query(MasterIngredient)
            .filter(
                MasterIngredient.organization_id == org_id,
                MasterIngredient.item_code == item_code,
            )
            .first()
        )
        return ingredient.to_dict() if ingredient else None

    return _run(_impl, session)


def list_master_ingredients(
    search: Optional[str] = None,
    major_group: Optional[int] = None,
    session: Optional[Session] = None,
) -> List[Dict]:
    """
    List master ingredients ordered by product name.

    Args:
        search: Case-insensitive partial match on product, item code or vendor
        major_group: Restrict to one major group id
        session: Optional database session
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        query = sess.query(MasterIngredient).filter(MasterIngredient.organization_id == org_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    MasterIngredient.product.ilike(pattern),
                    MasterIngredient.item_code.ilike(pattern),
                    MasterIngredient.vendor.ilike(pattern),
                )
            )
        if major_group is not None:
            query = query.filter(MasterIngredient.major_group == major_group)
        return [i.to_dict() for i in query.order_by(MasterIngredient.product, MasterIngredient.id)]

    return _run(_impl, session)


def update_master_ingredient(
    ingredient_id: int, updates: Dict, session: Optional[Session] = None
) -> Dict:
    """
    Update a master ingredient; the derived cost is recomputed.

    Raises:
        MasterIngredientNotFound: If the ingredient doesn't exist
        ValidationError: If the resulting fields are invalid
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        ingredient = _get_row(sess, ingredient_id, org_id)
        merged = {**ingredient.to_dict(), **updates}
        fields = _prepare_fields(sess, merged)
        if fields["item_code"] != ingredient.item_code:
            _check_unique_code(sess, org_id, fields["item_code"], exclude_id=ingredient.id)

        ingredient.apply_changes(fields)
        sess.flush()

        log_operation(
            logger,
            operation="update_master_ingredient",
            outcome="success",
            ingredient_id=ingredient.id,
            cost_per_recipe_unit=ingredient.cost_per_recipe_unit,
        )
        return ingredient.to_dict()

    return _run(_impl, session)


def delete_master_ingredient(ingredient_id: int, session: Optional[Session] = None) -> bool:
    """
    Delete a master ingredient and its inventory counts.

    Recipes that reference the item code are left alone; their costing then
    treats the reference as unresolved.
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> bool:
        ingredient = _get_row(sess, ingredient_id, org_id)
        sess.delete(ingredient)
        log_operation(
            logger,
            operation="delete_master_ingredient",
            outcome="success",
            ingredient_id=ingredient_id,
        )
        return True

    return _run(_impl, session)


def clear_master_ingredients(session: Optional[Session] = None) -> int:
    """
    Delete every master ingredient (and inventory count) of the organization.

    Returns:
        Number of ingredients deleted
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> int:
        sess.query(InventoryCount).filter(InventoryCount.organization_id == org_id).delete(
            synchronize_session=False
        )
        deleted = (
            sess.query(MasterIngredient)
            .filter(MasterIngredient.organization_id == org_id)
            .delete(synchronize_session=False)
        )
        log_operation(logger, operation="clear_master_ingredients", outcome="success", deleted=deleted)
        return deleted

    return _run(_impl, session)
