"""
Application state for an editing session.

AppState is a plain object created by the host (CLI, application shell,
test) and passed to whatever needs it. It holds the signed-in identity, the
taxonomy selection of the open editor and the recipe being edited, and
changes them only through its action methods.

Usage:
    from src.services.app_state import AppState

    state = AppState()
    state.sign_in(user_id="u-1", organization_id="org-1")
    state.select_group(3)
    state.delete_taxonomy_node("group", 3)   # selection is cleared

    with state.acting():
        recipe_service.list_recipes()        # scoped to org-1

Each AppState keeps its own Identity; signing one session in or out never
changes what another session's service calls see.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from src.services import food_taxonomy_service, identity, recipe_cost_service
from src.services.food_taxonomy_service import TaxonomyLevel
from src.utils.constants import COST_TRIGGER_FIELDS
from src.utils.validators import validate_recipe


@dataclass
class TaxonomySelection:
    """Major group / category / sub-category chosen in an editor."""

    group_id: Optional[int] = None
    category_id: Optional[int] = None
    sub_category_id: Optional[int] = None

    def is_empty(self) -> bool:
        return self.group_id is None and self.category_id is None and self.sub_category_id is None


class AppState:
    """
    Explicit state container for one editing session.

    Selecting a level clears the levels below it. Deleting a taxonomy node
    clears the selection at and below that node's level when the deleted id
    is the one selected.
    """

    def __init__(self) -> None:
        self.identity: Optional[identity.Identity] = None
        self.selection = TaxonomySelection()
        self.current_recipe: Optional[Dict] = None

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def sign_in(self, user_id: Optional[str], organization_id: str) -> identity.Identity:
        """Record the user and organization this session acts for."""
        self.identity = identity.Identity(user_id=user_id, organization_id=organization_id)
        return self.identity

    def sign_out(self) -> None:
        """Forget the identity and everything selected under it."""
        self.identity = None
        self.clear_selection()
        self.clear_current_recipe()

    @contextmanager
    def acting(self) -> Iterator[Optional[identity.Identity]]:
        """
        Block in which service calls act as this session's identity.

        Outside a signed-in session the block runs with no identity, so
        organization-scoped calls raise AuthorizationError.
        """
        with identity.acting_as(self.identity) as current:
            yield current

    # -------------------------------------------------------------------------
    # Taxonomy selection
    # -------------------------------------------------------------------------

    def select_group(self, group_id: Optional[int]) -> None:
        self.selection = TaxonomySelection(group_id=group_id)

    def select_category(self, category_id: Optional[int]) -> None:
        self.selection = TaxonomySelection(
            group_id=self.selection.group_id, category_id=category_id
        )

    def select_sub_category(self, sub_category_id: Optional[int]) -> None:
        self.selection = TaxonomySelection(
            group_id=self.selection.group_id,
            category_id=self.selection.category_id,
            sub_category_id=sub_category_id,
        )

    def clear_selection(self) -> None:
        self.selection = TaxonomySelection()

    def handle_node_deleted(self, level, deleted_id: int) -> bool:
        """
        Clear selection that pointed at a deleted taxonomy node.

        Args:
            level: Level of the deleted node
            deleted_id: Id returned by food_taxonomy_service.delete_node

        Returns:
            True if the selection changed
        """
        level = TaxonomyLevel(level)
        selection = self.selection

        if level == TaxonomyLevel.GROUP and selection.group_id == deleted_id:
            self.clear_selection()
            return True
        if level == TaxonomyLevel.CATEGORY and selection.category_id == deleted_id:
            self.select_category(None)
            return True
        if level == TaxonomyLevel.SUB_CATEGORY and selection.sub_category_id == deleted_id:
            self.select_sub_category(None)
            return True
        return False

    def delete_taxonomy_node(self, level, node_id: int) -> int:
        """
        Delete a taxonomy node and clear any selection pointing at it.

        Returns:
            The deleted node id
        """
        with self.acting():
            deleted_id = food_taxonomy_service.delete_node(level, node_id)
        self.handle_node_deleted(level, deleted_id)
        return deleted_id

    # -------------------------------------------------------------------------
    # Recipe editor
    # -------------------------------------------------------------------------

    def set_current_recipe(self, recipe: Optional[Dict]) -> None:
        self.current_recipe = dict(recipe) if recipe is not None else None

    def clear_current_recipe(self) -> None:
        self.current_recipe = None

    def edit_current_recipe(
        self,
        updates: Dict,
        ingredient_cost_lookup=None,
        prepared_item_cost_lookup=None,
        labor_rate_per_hour: Optional[float] = None,
    ) -> Dict:
        """
        Apply edits to the recipe being edited.

        Derived costs are recomputed when an edit touches ingredients, prep or
        cook time, or the yield. Lookups default to current catalog prices.

        Raises:
            ValueError: If no recipe is being edited
        """
        if self.current_recipe is None:
            raise ValueError("No recipe is being edited")

        recipe = {**self.current_recipe, **updates}
        if any(field in updates for field in COST_TRIGGER_FIELDS):
            if ingredient_cost_lookup is None and prepared_item_cost_lookup is None:
                with self.acting():
                    ingredient_cost_lookup, prepared_item_cost_lookup = (
                        recipe_cost_service.build_cost_lookups()
                    )
            recipe = recipe_cost_service.recompute_recipe(
                recipe, ingredient_cost_lookup, prepared_item_cost_lookup, labor_rate_per_hour
            )

        self.current_recipe = recipe
        return recipe

    def current_recipe_errors(self) -> List[str]:
        """Completeness errors of the recipe being edited (empty when none is open)."""
        if self.current_recipe is None:
            return []
        return validate_recipe(self.current_recipe)
