"""
Inventory Service - dated stock counts of master ingredients.

One count per ingredient per day and organization. total_value is always
quantity x unit_cost; it is recomputed on every save.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from src.models import InventoryCount, MasterIngredient
from src.services.database import session_scope
from src.services.exceptions import (
    DatabaseError,
    InventoryCountNotFound,
    MasterIngredientNotFound,
    ValidationError,
)
from src.services.identity import resolve_organization_id, resolve_user_id
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import INVENTORY_STATUS_APPROVED, INVENTORY_STATUS_PENDING
from src.utils.datetime_utils import today
from src.utils.validators import validate_inventory_count_data

logger = get_service_logger(__name__)

# Fields an update may change; the ingredient and date of a count are fixed
UPDATABLE_FIELDS = ("quantity", "unit_cost", "location", "notes", "status")


def _run(impl, session: Optional[Session]):
    try:
        if session is not None:
            return impl(session)
        with session_scope() as sess:
            return impl(sess)
    except SQLAlchemyError as e:
        raise DatabaseError("Inventory operation failed", e)


def _get_row(sess: Session, count_id: int, org_id: str) -> InventoryCount:
    count = (
        sess.query(InventoryCount)
        .filter(InventoryCount.id == count_id, InventoryCount.organization_id == org_id)
        .first()
    )
    if count is None:
        raise InventoryCountNotFound(count_id)
    return count


def _to_dict(count: InventoryCount) -> Dict:
    result = count.to_dict()
    ingredient = count.master_ingredient
    result["ingredient"] = (
        {
            "item_code": ingredient.item_code,
            "product": ingredient.product,
            "unit_of_measure": ingredient.unit_of_measure,
            "image_url": ingredient.image_url,
        }
        if ingredient is not None
        else None
    )
    return result


def _validate(data: Dict) -> None:
    is_valid, errors = validate_inventory_count_data(data)
    if not is_valid:
        raise ValidationError(errors)


def _coerce_count_date(value) -> date:
    """Count date from a date, datetime or ISO string; blank means today."""
    if value is None or value == "":
        return today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(["Count date must be a valid ISO date"])


def add_inventory_count(data: Dict, session: Optional[Session] = None) -> Dict:
    """
    Record a stock count.

    Args:
        data: master_ingredient_id, quantity, unit_cost, and optionally
            count_date (defaults to today), location, notes, status
        session: Optional database session

    Returns:
        Created count dict with total_value and ingredient summary

    Raises:
        MasterIngredientNotFound: If the ingredient isn't in this organization
        ValidationError: If fields are invalid or the ingredient already has
            a count on that date
    """
    org_id = resolve_organization_id()
    user_id = resolve_user_id()

    def _impl(sess: Session) -> Dict:
        fields = {
            "master_ingredient_id": data.get("master_ingredient_id"),
            "quantity": data.get("quantity"),
            "unit_cost": data.get("unit_cost", 0.0),
            "status": data.get("status") or INVENTORY_STATUS_PENDING,
        }
        _validate(fields)

        ingredient = (
            sess.query(MasterIngredient)
            .filter(
                MasterIngredient.id == fields["master_ingredient_id"],
                MasterIngredient.organization_id == org_id,
            )
            .first()
        )
        if ingredient is None:
            raise MasterIngredientNotFound(fields["master_ingredient_id"])

        count_date = _coerce_count_date(data.get("count_date"))

        duplicate = (
            sess.query(InventoryCount.id)
            .filter(
                InventoryCount.organization_id == org_id,
                InventoryCount.master_ingredient_id == ingredient.id,
                InventoryCount.count_date == count_date,
            )
            .first()
        )
        if duplicate is not None:
            raise ValidationError(
                [f"'{ingredient.item_code}' already has a count for {count_date.isoformat()}"]
            )

        quantity = float(fields["quantity"])
        unit_cost = float(fields["unit_cost"])
        count = InventoryCount(
            organization_id=org_id,
            master_ingredient_id=ingredient.id,
            count_date=count_date,
            quantity=quantity,
            unit_cost=unit_cost,
            total_value=quantity * unit_cost,
            location=data.get("location"),
            counted_by=user_id,
            notes=data.get("notes"),
            status=fields["status"],
        )
        sess.add(count)
        sess.flush()

        log_operation(
            logger,
            operation="add_inventory_count",
            outcome="success",
            count_id=count.id,
            item_code=ingredient.item_code,
        )
        return _to_dict(count)

    return _run(_impl, session)


def update_inventory_count(count_id: int, updates: Dict, session: Optional[Session] = None) -> Dict:
    """
    Update quantity, unit cost, location, notes or status of a count.

    Raises:
        InventoryCountNotFound: If the count doesn't exist
        ValidationError: If the resulting fields are invalid
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        count = _get_row(sess, count_id, org_id)
        changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        merged = {
            "master_ingredient_id": count.master_ingredient_id,
            "quantity": count.quantity,
            "unit_cost": count.unit_cost,
            "status": count.status,
            **changes,
        }
        _validate(merged)

        for field, value in changes.items():
            setattr(count, field, value)
        count.quantity = float(count.quantity)
        count.unit_cost = float(count.unit_cost)
        count.total_value = count.quantity * count.unit_cost
        sess.flush()
        return _to_dict(count)

    return _run(_impl, session)


def approve_inventory_count(count_id: int, session: Optional[Session] = None) -> Dict:
    """Mark a pending count as approved."""
    return update_inventory_count(count_id, {"status": INVENTORY_STATUS_APPROVED}, session=session)


def delete_inventory_count(count_id: int, session: Optional[Session] = None) -> bool:
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> bool:
        sess.delete(_get_row(sess, count_id, org_id))
        return True

    return _run(_impl, session)


def list_inventory_counts(
    count_date: Optional[date] = None,
    status: Optional[str] = None,
    session: Optional[Session] = None,
) -> List[Dict]:
    """
    List counts, newest count date first.

    Args:
        count_date: Restrict to one day
        status: Restrict to "pending" or "approved"
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        query = (
            sess.query(InventoryCount)
            .options(joinedload(InventoryCount.master_ingredient))
            .filter(InventoryCount.organization_id == org_id)
        )
        if count_date is not None:
            query = query.filter(InventoryCount.count_date == _coerce_count_date(count_date))
        if status is not None:
            query = query.filter(InventoryCount.status == status)
        counts = query.order_by(InventoryCount.count_date.desc(), InventoryCount.id).all()
        return [_to_dict(c) for c in counts]

    return _run(_impl, session)


def clear_inventory_counts(session: Optional[Session] = None) -> int:
    """
    Delete every inventory count of the organization.

    Returns:
        Number of counts deleted
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> int:
        deleted = (
            sess.query(InventoryCount)
            .filter(InventoryCount.organization_id == org_id)
            .delete(synchronize_session=False)
        )
        log_operation(logger, operation="clear_inventory_counts", outcome="success", deleted=deleted)
        return deleted

    return _run(_impl, session)
