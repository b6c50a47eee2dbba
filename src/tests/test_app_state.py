"""Tests for the explicit application state object."""

import pytest

from src.services import food_taxonomy_service, identity
from src.services.app_state import AppState, TaxonomySelection
from src.services.exceptions import AuthorizationError, TaxonomyNodeNotFound


@pytest.fixture
def state(test_db):
    app_state = AppState()
    app_state.sign_in("user-1", "org-1")
    yield app_state
    app_state.sign_out()


class TestIdentity:
    def test_service_calls_act_as_session_identity(self, state):
        assert identity.get_current_identity() is None
        with state.acting():
            assert identity.resolve_organization_id() == "org-1"
        assert state.identity.user_id == "user-1"

    def test_sessions_do_not_share_identity(self, test_db):
        kitchen_a = AppState()
        kitchen_b = AppState()
        kitchen_a.sign_in("u1", "org-a")
        kitchen_b.sign_in("u2", "org-b")

        with kitchen_a.acting():
            group = food_taxonomy_service.create_group("Food")
        kitchen_b.sign_out()

        assert group["organization_id"] == "org-a"
        with kitchen_a.acting():
            assert [g["name"] for g in food_taxonomy_service.list_groups()] == ["Food"]
        with kitchen_b.acting(), pytest.raises(AuthorizationError):
            food_taxonomy_service.list_groups()

    def test_delete_uses_session_identity(self, test_db):
        kitchen_a = AppState()
        kitchen_a.sign_in("u1", "org-a")
        with kitchen_a.acting():
            food = food_taxonomy_service.create_group("Food")

        other = AppState()
        other.sign_in("u2", "org-b")
        with pytest.raises(TaxonomyNodeNotFound):
            other.delete_taxonomy_node("group", food["id"])

        assert kitchen_a.delete_taxonomy_node("group", food["id"]) == food["id"]

    def test_sign_out_clears_everything(self, state):
        state.select_group(1)
        state.set_current_recipe({"name": "x"})

        state.sign_out()

        assert state.identity is None
        assert state.selection.is_empty()
        assert state.current_recipe is None


class TestSelection:
    def test_selecting_a_level_clears_levels_below(self):
        state = AppState()
        state.select_group(1)
        state.select_category(2)
        state.select_sub_category(3)

        state.select_category(5)

        assert state.selection == TaxonomySelection(group_id=1, category_id=5)

    def test_deleting_selected_group_clears_selection(self, state):
        with state.acting():
            food = food_taxonomy_service.create_group("Food")
            proteins = food_taxonomy_service.create_category(food["id"], "Proteins")
        state.select_group(food["id"])
        state.select_category(proteins["id"])

        deleted = state.delete_taxonomy_node("group", food["id"])

        assert deleted == food["id"]
        assert state.selection.is_empty()

    def test_deleting_selected_sub_category_keeps_parents(self, state):
        with state.acting():
            food = food_taxonomy_service.create_group("Food")
            proteins = food_taxonomy_service.create_category(food["id"], "Proteins")
            beef = food_taxonomy_service.create_sub_category(proteins["id"], "Beef")
        state.select_group(food["id"])
        state.select_category(proteins["id"])
        state.select_sub_category(beef["id"])

        state.delete_taxonomy_node("sub_category", beef["id"])

        assert state.selection == TaxonomySelection(group_id=food["id"], category_id=proteins["id"])

    def test_deleting_unselected_node_keeps_selection(self):
        state = AppState()
        state.select_group(1)
        assert state.handle_node_deleted("group", 2) is False
        assert state.selection.group_id == 1


class TestRecipeEditor:
    def test_edit_without_open_recipe(self):
        with pytest.raises(ValueError):
            AppState().edit_current_recipe({"name": "x"})

    def test_cost_fields_trigger_recompute(self, recipe_factory):
        state = AppState()
        state.set_current_recipe(recipe_factory())

        edited = state.edit_current_recipe(
            {"prep_time": 60, "cook_time": 0},
            ingredient_cost_lookup={"BEEF-001": 5.0},
            prepared_item_cost_lookup={},
            labor_rate_per_hour=20,
        )

        assert edited["ingredient_cost"] == pytest.approx(10.0)
        assert edited["labor_cost"] == pytest.approx(20.0)
        assert edited["cost_per_unit"] == pytest.approx(30.0 / 4)

    def test_non_cost_edit_leaves_costs(self, recipe_factory):
        state = AppState()
        state.set_current_recipe(recipe_factory(total_cost=12.0))

        edited = state.edit_current_recipe({"name": "Renamed"})

        assert edited["name"] == "Renamed"
        assert edited["total_cost"] == 12.0

    def test_default_lookups_read_catalog(self, brisket, recipe_factory):
        state = AppState()
        state.sign_in("user-1", "org-1")
        state.set_current_recipe(recipe_factory())

        edited = state.edit_current_recipe({"cook_time": 0, "prep_time": 0})

        assert edited["ingredient_cost"] == pytest.approx(2 * 14.8224, abs=1e-3)

    def test_current_recipe_errors(self, recipe_factory):
        state = AppState()
        assert state.current_recipe_errors() == []
        state.set_current_recipe(recipe_factory(name=""))
        assert "Recipe name is required" in state.current_recipe_errors()
