"""
Tests for recipe persistence: create, update with versioning, delete,
filtering and seeding from prepared items.
"""

import logging

import pytest

from src.services import identity, recipe_service
from src.services.exceptions import (
    AuthorizationError,
    ConflictError,
    RecipeNotFound,
    ValidationError,
)


class TestCreateRecipe:
    """Creating recipes."""

    def test_create_sets_version_and_costs(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())

        assert recipe["id"] is not None
        assert recipe["current_version"] == "1.0.0"
        assert len(recipe["versions"]) == 1
        assert recipe["versions"][0]["changes"] == ["Initial version"]
        assert recipe["versions"][0]["author"] == "user-1"
        assert recipe["created_by"] == "user-1"

        # 2 x 14.8224 ingredients + 1 hour at the default 30/hour, over 4 portions
        assert recipe["ingredient_cost"] == pytest.approx(29.6447, abs=1e-3)
        assert recipe["labor_cost"] == pytest.approx(30.0)
        assert recipe["total_cost"] == pytest.approx(59.6447, abs=1e-3)
        assert recipe["cost_per_unit"] == pytest.approx(recipe["total_cost"] / 4)
        assert recipe["ingredients"][0]["cost"] == pytest.approx(14.8224, abs=1e-4)

    def test_supplied_costs_are_ignored(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory(total_cost=1.0, cost_per_unit=0.25))
        assert recipe["total_cost"] != 1.0

    def test_incomplete_recipe_rejected(self, org_db, recipe_factory):
        with pytest.raises(ValidationError) as exc:
            recipe_service.create_recipe(recipe_factory(name="", steps=[]))

        assert "Recipe name is required" in exc.value.errors
        assert "At least one step is required" in exc.value.errors

    def test_zero_yield_rejected(self, brisket, recipe_factory):
        with pytest.raises(ValidationError) as exc:
            recipe_service.create_recipe(recipe_factory(recipe_yield={"value": 0, "unit": "portion"}))
        assert exc.value.errors == ["Recipe yield must be greater than zero"]

    def test_unresolved_ingredient_saved_with_warning(self, org_db, recipe_factory, caplog):
        with caplog.at_level(logging.WARNING):
            recipe = recipe_service.create_recipe(recipe_factory(prep_time=0, cook_time=0))

        assert recipe["ingredient_cost"] == 0.0
        assert "recompute_costs: unresolved_ingredients" in caplog.text

    def test_prepared_ingredient_costed(self, brisket, demi_glace, recipe_factory):
        ingredients = recipe_factory()["ingredients"] + [{
            "type": "prepared",
            "name": "Demi Glace",
            "prepared_item_ref": demi_glace["id"],
            "quantity": "2",
            "unit": "cup",
        }]

        recipe = recipe_service.create_recipe(
            recipe_factory(ingredients=ingredients, prep_time=0, cook_time=0)
        )

        assert recipe["ingredient_cost"] == pytest.approx(2 * 14.8224 + 2 * 3.10, abs=1e-3)

    def test_requires_organization(self, test_db, recipe_factory):
        with identity.acting_as(None), pytest.raises(AuthorizationError):
            recipe_service.create_recipe(recipe_factory())


class TestUpdateRecipe:
    """Updating recipes and the version policy."""

    def test_ingredient_update_bumps_version(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())
        ingredients = [dict(recipe["ingredients"][0], quantity="3")]

        updated = recipe_service.update_recipe(recipe["id"], {"ingredients": ingredients})

        assert updated["current_version"] == "1.0.1"
        assert updated["versions"][-1]["changes"] == ["Updated ingredients"]
        assert updated["ingredient_cost"] == pytest.approx(3 * 14.8224, abs=1e-3)

    def test_name_only_update_keeps_version(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())

        updated = recipe_service.update_recipe(recipe["id"], {"name": "Smoked Brisket"})

        assert updated["name"] == "Smoked Brisket"
        assert updated["current_version"] == "1.0.0"
        assert len(updated["versions"]) == 1

    def test_prep_time_change_recomputes_labor(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())

        updated = recipe_service.update_recipe(recipe["id"], {"prep_time": 90})

        assert updated["labor_cost"] == pytest.approx(60.0)
        assert updated["current_version"] == "1.0.0"

    def test_version_fields_cannot_be_overwritten(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())

        updated = recipe_service.update_recipe(
            recipe["id"], {"current_version": "9.9.9", "versions": [], "notes": "x"}
        )

        assert updated["current_version"] == "1.0.0"
        assert len(updated["versions"]) == 1

    def test_stale_version_conflict(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())
        recipe_service.update_recipe(recipe["id"], {"steps": recipe["steps"]})

        with pytest.raises(ConflictError) as exc:
            recipe_service.update_recipe(
                recipe["id"], {"name": "Late edit"}, expected_version="1.0.0"
            )
        assert exc.value.actual_version == "1.0.1"

    def test_matching_expected_version_accepted(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())
        updated = recipe_service.update_recipe(
            recipe["id"], {"name": "On time"}, expected_version="1.0.0"
        )
        assert updated["name"] == "On time"

    def test_invalid_update_leaves_recipe_unchanged(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())

        with pytest.raises(ValidationError):
            recipe_service.update_recipe(recipe["id"], {"ingredients": []})

        assert recipe_service.get_recipe(recipe["id"])["current_version"] == "1.0.0"

    def test_update_unknown_recipe(self, org_db):
        with pytest.raises(RecipeNotFound):
            recipe_service.update_recipe(12, {"name": "x"})


class TestQueries:
    """Get, list, filter and delete."""

    def test_filter_by_type_and_search(self, brisket, recipe_factory):
        recipe_service.create_recipe(recipe_factory(name="Braised Brisket"))
        recipe_service.create_recipe(recipe_factory(name="Beef Stock", type="prepared"))
        recipe_service.create_recipe(recipe_factory(name="Apple Tart", category="Desserts"))

        assert [r["name"] for r in recipe_service.list_recipes()] == [
            "Apple Tart", "Beef Stock", "Braised Brisket",
        ]
        assert [r["name"] for r in recipe_service.list_recipes("prepared")] == ["Beef Stock"]
        assert [r["name"] for r in recipe_service.filter_recipes(search_term="dessert")] == [
            "Apple Tart"
        ]

    def test_recipes_scoped_to_organization(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())
        with identity.acting_as(identity.Identity("user-2", "org-2")):
            assert recipe_service.list_recipes() == []
            with pytest.raises(RecipeNotFound):
                recipe_service.get_recipe(recipe["id"])

    def test_delete(self, brisket, recipe_factory):
        recipe = recipe_service.create_recipe(recipe_factory())

        assert recipe_service.delete_recipe(recipe["id"]) is True
        with pytest.raises(RecipeNotFound):
            recipe_service.get_recipe(recipe["id"])

    def test_recipes_using_prepared_item(self, brisket, demi_glace, recipe_factory):
        ingredients = recipe_factory()["ingredients"] + [{
            "type": "prepared", "name": "Demi Glace", "prepared_item_ref": demi_glace["id"],
            "quantity": "1", "unit": "cup",
        }]
        recipe_service.create_recipe(recipe_factory(name="With Sauce", ingredients=ingredients))
        recipe_service.create_recipe(recipe_factory(name="Plain"))

        using = recipe_service.get_recipes_using_prepared_item(demi_glace["id"])

        assert [r["name"] for r in using] == ["With Sauce"]


class TestSeedFromPreparedItems:
    """Recipe templates from the prepared item catalog."""

    def test_seed_creates_template(self, demi_glace):
        created = recipe_service.seed_from_prepared_items()

        assert len(created) == 1
        template = created[0]
        assert template["type"] == "prepared"
        assert template["name"] == "Demi Glace"
        assert template["description"] == "Mother Sauces - Saucier"
        assert template["cost_per_unit"] == pytest.approx(3.10)
        assert template["total_cost"] == pytest.approx(12.40)
        assert template["storage"]["temperature"] == {"min": 35, "max": 40, "unit": "F"}
        assert template["training"]["skill_level"] == "beginner"
        assert template["allergens"] == ["milk"]
        assert template["current_version"] == "1.0.0"

    def test_seed_skips_existing(self, demi_glace):
        recipe_service.seed_from_prepared_items()
        assert recipe_service.seed_from_prepared_items() == []
        assert len(recipe_service.list_recipes("prepared")) == 1
