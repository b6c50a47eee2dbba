"""
Food Taxonomy Service - three-level classification hierarchy.

Major Group > Category > Sub-Category, used to classify master ingredients
and recipes. Enforces parent-child integrity and sibling ordering.

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation

Deleting a node removes its children through the ORM cascade, but never
touches ingredients that reference it; those references resolve to
"Unknown" via resolve_classification().
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from src.models.food_category import FoodCategory
from src.models.food_category_group import FoodCategoryGroup
from src.models.food_sub_category import FoodSubCategory
from src.services.database import session_scope
from src.services.exceptions import TaxonomyNodeNotFound, ValidationError
from src.services.identity import resolve_organization_id
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.constants import UNKNOWN_CLASSIFICATION

logger = get_service_logger(__name__)


class TaxonomyLevel(str, Enum):
    """Hierarchy level of a taxonomy node."""

    GROUP = "group"
    CATEGORY = "category"
    SUB_CATEGORY = "sub_category"


class Direction(str, Enum):
    """Reorder direction within a sibling list."""

    UP = "up"
    DOWN = "down"


_LEVEL_MODELS = {
    TaxonomyLevel.GROUP: FoodCategoryGroup,
    TaxonomyLevel.CATEGORY: FoodCategory,
    TaxonomyLevel.SUB_CATEGORY: FoodSubCategory,
}

# child level -> (parent level, foreign key column on the child)
_PARENTS = {
    TaxonomyLevel.CATEGORY: (TaxonomyLevel.GROUP, "group_id"),
    TaxonomyLevel.SUB_CATEGORY: (TaxonomyLevel.CATEGORY, "category_id"),
}


# ============================================================================
# Utility Functions
# ============================================================================


def _coerce_level(level) -> TaxonomyLevel:
    try:
        return TaxonomyLevel(level)
    except ValueError:
        raise ValidationError([f"Unknown taxonomy level '{level}'"])


def _coerce_direction(direction) -> Direction:
    try:
        return Direction(direction)
    except ValueError:
        raise ValidationError([f"Direction must be 'up' or 'down', got '{direction}'"])


def _get_node(sess: Session, level: TaxonomyLevel, node_id: int, org_id: str):
    model = _LEVEL_MODELS[level]
    node = (
        sess.query(model)
        .filter(model.id == node_id, model.organization_id == org_id)
        .first()
    )
    if node is None:
        raise TaxonomyNodeNotFound(level.value, node_id)
    return node


def _siblings(sess: Session, level: TaxonomyLevel, org_id: str, parent_id: Optional[int]):
    """Siblings in display order: sort_order, then insertion order."""
    model = _LEVEL_MODELS[level]
    query = sess.query(model).filter(model.organization_id == org_id)
    if level in _PARENTS:
        query = query.filter(getattr(model, _PARENTS[level][1]) == parent_id)
    return query.order_by(model.sort_order, model.id).all()


def _parent_id_of(node, level: TaxonomyLevel) -> Optional[int]:
    if level not in _PARENTS:
        return None
    return getattr(node, _PARENTS[level][1])


def _run(impl, session: Optional[Session]):
    if session is not None:
        return impl(session)
    with session_scope() as sess:
        return impl(sess)


# ============================================================================
# Listing
# ============================================================================


def list_groups(session: Optional[Session] = None) -> List[Dict]:
    """
    List major groups ordered by sort_order, ties broken by insertion order.

    Args:
        session: Optional database session

    Returns:
        List of group dicts

    Raises:
        AuthorizationError: If no organization is resolved
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        return [g.to_dict() for g in _siblings(sess, TaxonomyLevel.GROUP, org_id, None)]

    return _run(_impl, session)


def list_categories(group_id: int, session: Optional[Session] = None) -> List[Dict]:
    """
    List the categories of one major group in display order.

    Args:
        group_id: Parent group id
        session: Optional database session

    Returns:
        List of category dicts (empty for an unknown group)
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        return [c.to_dict() for c in _siblings(sess, TaxonomyLevel.CATEGORY, org_id, group_id)]

    return _run(_impl, session)


def list_sub_categories(category_id: int, session: Optional[Session] = None) -> List[Dict]:
    """
    List the sub-categories of one category in display order.

    Args:
        category_id: Parent category id
        session: Optional database session

    Returns:
        List of sub-category dicts (empty for an unknown category)
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        return [
            s.to_dict()
            for s in _siblings(sess, TaxonomyLevel.SUB_CATEGORY, org_id, category_id)
        ]

    return _run(_impl, session)


def get_node(level, node_id: int, session: Optional[Session] = None) -> Dict:
    """
    Get one taxonomy node.

    Raises:
        TaxonomyNodeNotFound: If the node doesn't exist in this organization
    """
    level = _coerce_level(level)
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        return _get_node(sess, level, node_id, org_id).to_dict()

    return _run(_impl, session)


def get_hierarchy_tree(session: Optional[Session] = None) -> List[Dict]:
    """
    Get the full group > category > sub-category tree in display order.

    Returns:
        List of group dicts, each with a "categories" list whose entries
        carry a "sub_categories" list
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        tree = []
        for group in _siblings(sess, TaxonomyLevel.GROUP, org_id, None):
            group_dict = group.to_dict()
            group_dict["categories"] = []
            for category in _siblings(sess, TaxonomyLevel.CATEGORY, org_id, group.id):
                category_dict = category.to_dict()
                category_dict["sub_categories"] = [
                    s.to_dict()
                    for s in _siblings(sess, TaxonomyLevel.SUB_CATEGORY, org_id, category.id)
                ]
                group_dict["categories"].append(category_dict)
            tree.append(group_dict)
        return tree

    return _run(_impl, session)


# ============================================================================
# Mutations
# ============================================================================


def create_node(
    level,
    name: str,
    parent_id: Optional[int] = None,
    description: Optional[str] = None,
    icon: Optional[str] = None,
    color: Optional[str] = None,
    session: Optional[Session] = None,
) -> Dict:
    """
    Create a taxonomy node at the end of its sibling list.

    Args:
        level: "group", "category" or "sub_category"
        name: Display name (required, trimmed)
        parent_id: Group id for categories, category id for sub-categories
        description: Optional description
        icon, color: Optional display hints (groups only)
        session: Optional database session

    Returns:
        Created node dict; sort_order equals the prior sibling count

    Raises:
        ValidationError: If name is empty or the parent doesn't exist
        AuthorizationError: If no organization is resolved
    """
    level = _coerce_level(level)
    if not name or not name.strip():
        raise ValidationError(["Name cannot be empty"])
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        model = _LEVEL_MODELS[level]
        fields = {
            "organization_id": org_id,
            "name": name.strip(),
            "description": description,
        }

        sibling_parent_id = None
        if level in _PARENTS:
            parent_level, fk_column = _PARENTS[level]
            parent_model = _LEVEL_MODELS[parent_level]
            parent = None
            if parent_id is not None:
                parent = (
                    sess.query(parent_model)
                    .filter(parent_model.id == parent_id, parent_model.organization_id == org_id)
                    .first()
                )
            if parent is None:
                raise ValidationError(
                    [f"Parent {parent_level.value.replace('_', '-')} {parent_id} does not exist"]
                )
            fields[fk_column] = sibling_parent_id = parent.id
        else:
            fields["icon"] = icon
            fields["color"] = color

        fields["sort_order"] = len(_siblings(sess, level, org_id, sibling_parent_id))

        node = model(**fields)
        sess.add(node)
        sess.flush()
        sess.refresh(node)

        log_operation(
            logger,
            operation="create_taxonomy_node",
            outcome="success",
            level_name=level.value,
            node_id=node.id,
            organization_id=org_id,
        )
        return node.to_dict()

    return _run(_impl, session)


def create_group(name: str, description: Optional[str] = None, icon: Optional[str] = None,
                 color: Optional[str] = None, session: Optional[Session] = None) -> Dict:
    """Create a major group. See create_node()."""
    return create_node(
        TaxonomyLevel.GROUP, name, description=description, icon=icon, color=color,
        session=session,
    )


def create_category(group_id: int, name: str, description: Optional[str] = None,
                    session: Optional[Session] = None) -> Dict:
    """Create a category under a major group. See create_node()."""
    return create_node(
        TaxonomyLevel.CATEGORY, name, parent_id=group_id, description=description,
        session=session,
    )


def create_sub_category(category_id: int, name: str, description: Optional[str] = None,
                        session: Optional[Session] = None) -> Dict:
    """Create a sub-category under a category. See create_node()."""
    return create_node(
        TaxonomyLevel.SUB_CATEGORY, name, parent_id=category_id, description=description,
        session=session,
    )


def rename_node(
    level,
    node_id: int,
    name: str,
    description: Optional[str] = None,
    session: Optional[Session] = None,
) -> Dict:
    """
    Rename a node and optionally replace its description.

    The node keeps its parent and position.

    Raises:
        TaxonomyNodeNotFound: If node_id is unknown
        ValidationError: If name is empty
    """
    level = _coerce_level(level)
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict:
        node = _get_node(sess, level, node_id, org_id)
        if not name or not name.strip():
            raise ValidationError(["Name cannot be empty"])

        node.name = name.strip()
        if description is not None:
            node.description = description

        sess.flush()
        sess.refresh(node)
        return node.to_dict()

    return _run(_impl, session)


def reorder_node(
    level,
    node_id: int,
    direction,
    session: Optional[Session] = None,
) -> List[Dict]:
    """
    Move a node one position up or down among its siblings.

    Sibling sort orders are renumbered 0..n-1 before the swap so nodes that
    shared a sort_order still move. At the first (up) or last (down)
    position nothing changes.

    Args:
        level: Node level
        node_id: Node to move
        direction: "up" or "down"
        session: Optional database session

    Returns:
        The sibling list in its new display order

    Raises:
        TaxonomyNodeNotFound: If node_id is unknown
        ValidationError: If direction is not "up" or "down"
    """
    level = _coerce_level(level)
    direction = _coerce_direction(direction)
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[Dict]:
        node = _get_node(sess, level, node_id, org_id)
        siblings = _siblings(sess, level, org_id, _parent_id_of(node, level))

        index = next(i for i, s in enumerate(siblings) if s.id == node.id)
        target = index - 1 if direction == Direction.UP else index + 1
        if target < 0 or target >= len(siblings):
            return [s.to_dict() for s in siblings]

        for position, sibling in enumerate(siblings):
            sibling.sort_order = position
        siblings[index].sort_order, siblings[target].sort_order = target, index
        sess.flush()

        return [s.to_dict() for s in _siblings(sess, level, org_id, _parent_id_of(node, level))]

    return _run(_impl, session)


def delete_node(level, node_id: int, session: Optional[Session] = None) -> int:
    """
    Delete a node (and, by cascade, its children).

    Ingredients and recipes referencing the node are not checked or updated.

    Returns:
        The deleted node id, so callers can clear any editor selection
        pointing at it

    Raises:
        TaxonomyNodeNotFound: If node_id is unknown
    """
    level = _coerce_level(level)
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> int:
        node = _get_node(sess, level, node_id, org_id)
        sess.delete(node)
        sess.flush()

        log_operation(
            logger,
            operation="delete_taxonomy_node",
            outcome="success",
            level_name=level.value,
            node_id=node_id,
            organization_id=org_id,
        )
        return node_id

    return _run(_impl, session)


# ============================================================================
# Classification helpers
# ============================================================================


def _name_or_unknown(sess: Session, level: TaxonomyLevel, node_id, org_id: str) -> Optional[str]:
    if node_id is None:
        return None
    model = _LEVEL_MODELS[level]
    node = (
        sess.query(model)
        .filter(model.id == node_id, model.organization_id == org_id)
        .first()
    )
    return node.name if node is not None else UNKNOWN_CLASSIFICATION


def resolve_classification(
    major_group: Optional[int] = None,
    category: Optional[int] = None,
    sub_category: Optional[int] = None,
    session: Optional[Session] = None,
) -> Dict[str, Optional[str]]:
    """
    Resolve classification ids to display names.

    Unset ids resolve to None; ids of deleted nodes resolve to "Unknown".

    Returns:
        Dict with major_group_name, category_name, sub_category_name
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> Dict[str, Optional[str]]:
        return {
            "major_group_name": _name_or_unknown(sess, TaxonomyLevel.GROUP, major_group, org_id),
            "category_name": _name_or_unknown(sess, TaxonomyLevel.CATEGORY, category, org_id),
            "sub_category_name": _name_or_unknown(
                sess, TaxonomyLevel.SUB_CATEGORY, sub_category, org_id
            ),
        }

    return _run(_impl, session)


def validate_classification(
    major_group: Optional[int] = None,
    category: Optional[int] = None,
    sub_category: Optional[int] = None,
    session: Optional[Session] = None,
) -> List[str]:
    """
    Check that a classification nests correctly.

    Each level is optional, but a set level needs its parent level set, every
    set id must exist, and each child must belong to the given parent.

    Returns:
        List of error messages (empty when valid)
    """
    org_id = resolve_organization_id()

    def _impl(sess: Session) -> List[str]:
        errors = []
        group_node = category_node = sub_node = None

        if major_group is not None:
            group_node = (
                sess.query(FoodCategoryGroup)
                .filter(FoodCategoryGroup.id == major_group,
                        FoodCategoryGroup.organization_id == org_id)
                .first()
            )
            if group_node is None:
                errors.append(f"Major group {major_group} does not exist")

        if category is not None:
            category_node = (
                sess.query(FoodCategory)
                .filter(FoodCategory.id == category, FoodCategory.organization_id == org_id)
                .first()
            )
            if category_node is None:
                errors.append(f"Category {category} does not exist")
            elif major_group is None:
                errors.append("Category requires a major group")
            elif group_node is not None and category_node.group_id != group_node.id:
                errors.append(
                    f"Category '{category_node.name}' does not belong to "
                    f"major group '{group_node.name}'"
                )

        if sub_category is not None:
            sub_node = (
                sess.query(FoodSubCategory)
                .filter(FoodSubCategory.id == sub_category,
                        FoodSubCategory.organization_id == org_id)
                .first()
            )
            if sub_node is None:
                errors.append(f"Sub-category {sub_category} does not exist")
            elif category is None:
                errors.append("Sub-category requires a category")
            elif category_node is not None and sub_node.category_id != category_node.id:
                errors.append(
                    f"Sub-category '{sub_node.name}' does not belong to "
                    f"category '{category_node.name}'"
                )

        return errors

    return _run(_impl, session)


def lookup_classification_ids(
    group_name: Optional[str],
    category_name: Optional[str],
    sub_category_name: Optional[str],
    session: Optional[Session] = None,
) -> Tuple[Dict[str, Optional[int]], List[str]]:
    """
    Resolve classification names (as found in spreadsheets) to node ids.

    Names are matched case-insensitively within their parent. A name that
    can't be matched leaves that level, and every level below it, unset.

    Returns:
        Tuple of ({"major_group", "category", "sub_category"} ids, warnings)
    """
    org_id = resolve_organization_id()

    def _match(nodes, wanted):
        wanted_key = wanted.strip().lower()
        return next((n for n in nodes if n.name.strip().lower() == wanted_key), None)

    def _impl(sess: Session):
        ids = {"major_group": None, "category": None, "sub_category": None}
        warnings = []

        if not group_name:
            return ids, warnings
        group = _match(_siblings(sess, TaxonomyLevel.GROUP, org_id, None), group_name)
        if group is None:
            warnings.append(f"Unknown major group '{group_name}'")
            return ids, warnings
        ids["major_group"] = group.id

        if not category_name:
            return ids, warnings
        category = _match(_siblings(sess, TaxonomyLevel.CATEGORY, org_id, group.id), category_name)
        if category is None:
            warnings.append(f"Unknown category '{category_name}' in '{group.name}'")
            return ids, warnings
        ids["category"] = category.id

        if not sub_category_name:
            return ids, warnings
        sub = _match(
            _siblings(sess, TaxonomyLevel.SUB_CATEGORY, org_id, category.id), sub_category_name
        )
        if sub is None:
            warnings.append(f"Unknown sub-category '{sub_category_name}' in '{category.name}'")
            return ids, warnings
        ids["sub_category"] = sub.id

        return ids, warnings

    return _run(_impl, session)
