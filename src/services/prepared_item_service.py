"""
Prepared Item Service - intermediate recipe outputs usable as ingredients.

CRUD plus clear-all, scoped to the current organization. Item IDs are
unique per organization and serve as the spreadsheet import key.
"""

from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import PreparedItem
from src.services.database import session_scope
from src.services.exceptions import DatabaseError, PreparedItemNotFound, ValidationError
from src.services.identity import resolve_organization_id
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.validators import validate_prepared_item_data

logger = get_service_logger(__name__)

EDITABLE_FIELDS = tuple(PreparedItem.writable_columns())


def _run(impl, session: Optional[Session]):
    try:
        if session is not None:
            return impl(session)
        with session_scope() as sess:
            return impl(sess)
    except SQLAlchemyError as e:
        raise DatabaseError("Prepared item operation failed", e)


def _get_row(sess: Session, item_id: int, org_id: str) -> PreparedItem:
    item = (
        sess.query(PreparedItem)
        .filter(PreparedItem.id == item_id, PreparedItem.organization_id == org_id)
        .first()
    )
    if item is None:
        raise PreparedItemNotFound(item_id)
    return item


def _prepare_fields(data: Dict) -> Dict:
    fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    is_valid, errors = validate_prepared_item_data(fields)
    if not is_valid:
        raise ValidationError(errors)
    return fields


def _check_unique_item_id(sess: Session, org_id: str, item_id: str, exclude_id: Optional[int] = None):
    query = sess.query(PreparedItem.id).filter(
        PreparedItem.organization_id == org_id, PreparedItem.item_id == item_id
    )
    if exclude_id is not None:
        query = query.filter(PreparedItem.id != exclude_id)
    if query.first() is not None:
        raise ValidationError([f"Item ID '{item_id}' already exists"])


def create_prepared_item(data: Dict, session: Optional[Session] = None) -> Dict:
    """
    Create a prepared item.

    Raises:
        ValidationError: If fields are invalid or the item ID is taken
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        fields = _prepare_fields(data)
        _check_unique_item_id(sess, org_id, fields["item_id"])

        item = PreparedItem(organization_id=org_id, **fields)
        sess.add(item)
        sess.flush()
        log_operation(
            logger,
            operation="create_prepared_item",
            outcome="success",
            prepared_item_id=item.id,
            item_id=item.item_id,
        )
        return item.to_dict()

    return _run(_impl, session)


def get_prepared_item(item_id: int, session: Optional[Session] = None) -> Dict:
    org_id = resolve_organization_id()
    return _run(lambda sess: _get_row(sess, item_id, org_id).to_dict(), session)


def list_prepared_items(
    search: Optional[str] = None,
    station: Optional[str] = None,
    session: Optional[Session] = None,
) -> List[Dict]:
    """
    List prepared items ordered by product name.

    Args:
        search: Case-insensitive partial match on product, item ID or category
        station: Exact station filter
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        query = sess.query(PreparedItem).filter(PreparedItem.organization_id == org_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    PreparedItem.product.ilike(pattern),
                    PreparedItem.item_id.ilike(pattern),
                    PreparedItem.category.ilike(pattern),
                )
            )
        if station:
            query = query.filter(PreparedItem.station == station)
        return [i.to_dict() for i in query.order_by(PreparedItem.product, PreparedItem.id)]

    return _run(_impl, session)


def update_prepared_item(item_id: int, updates: Dict, session: Optional[Session] = None) -> Dict:
    """
    Update a prepared item.

    Raises:
        PreparedItemNotFound: If the item doesn't exist
        ValidationError: If the resulting fields are invalid
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        item = _get_row(sess, item_id, org_id)
        fields = _prepare_fields({**item.to_dict(), **updates})
        if fields["item_id"] != item.item_id:
            _check_unique_item_id(sess, org_id, fields["item_id"], exclude_id=item.id)
        item.apply_changes(fields)
        sess.flush()
        return item.to_dict()

    return _run(_impl, session)


def delete_prepared_item(item_id: int, session: Optional[Session] = None) -> bool:
    """Delete a prepared item. Recipes referencing it keep the dangling reference."""
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> bool:
        sess.delete(_get_row(sess, item_id, org_id))
        log_operation(
            logger, operation="delete_prepared_item", outcome="success", prepared_item_id=item_id
        )
        return True

    return _run(_impl, session)


def clear_prepared_items(session: Optional[Session] = None) -> int:
    """
    Delete every prepared item of the organization.

    Returns:
        Number of items deleted
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> int:
        deleted = (
            sess.query(PreparedItem)
            .filter(PreparedItem.organization_id == org_id)
            .delete(synchronize_session=False)
        )
        log_operation(logger, operation="clear_prepared_items", outcome="success", deleted=deleted)
        return deleted

    return _run(_impl, session)
