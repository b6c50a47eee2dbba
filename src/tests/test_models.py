"""Tests for model helpers that don't need a service layer."""

from src.models import MasterIngredient, PreparedItem, Recipe, RecipeIngredient


class TestAllergenFlags:
    def test_active_allergens_include_named_custom_slots(self):
        item = PreparedItem(
            item_id="P-1",
            product="Pesto",
            allergen_treenut=True,
            allergen_milk=True,
            allergen_custom1_name="Basil",
            allergen_custom1_active=True,
            allergen_custom2_name="Pine Pollen",
            allergen_custom2_active=False,
        )

        assert item.get_active_allergens() == ["treenut", "milk", "Basil"]
        assert item.get_custom_allergens() == [
            {"name": "Basil", "active": True},
            {"name": "Pine Pollen", "active": False},
        ]

    def test_unset_flags_are_false(self):
        ingredient = MasterIngredient(item_code="A", product="B")
        assert not any(ingredient.get_allergen_flags().values())


class TestRecipeEditorDict:
    def test_apply_and_read_back(self):
        recipe = Recipe(organization_id="org-1")
        recipe.apply_editor_dict({
            "type": "final",
            "name": "Soup",
            "recipe_yield": {"value": 6, "unit": "portion"},
            "ingredients": [
                {"type": "raw", "name": "Onion", "ingredient_ref": "ONI-1", "quantity": "2", "unit": "ea"},
                {"type": "prepared", "name": "Stock", "prepared_item_ref": 3, "quantity": "1.5", "unit": "L"},
            ],
        })

        editor = recipe.to_editor_dict()

        assert editor["recipe_yield"] == {"value": 6, "unit": "portion"}
        assert [line["name"] for line in editor["ingredients"]] == ["Onion", "Stock"]
        assert [line.position for line in recipe.recipe_ingredients] == [0, 1]
        assert editor["ingredients"][1]["prepared_item_ref"] == 3
        assert editor["last_modified"] is not None

    def test_partial_update_keeps_ingredients(self):
        recipe = Recipe(organization_id="org-1")
        recipe.apply_editor_dict({"ingredients": [{"name": "Salt", "quantity": "1", "unit": "g"}]})

        recipe.apply_editor_dict({"name": "Salted"})

        assert len(recipe.recipe_ingredients) == 1
        assert isinstance(recipe.recipe_ingredients[0], RecipeIngredient)


class TestApplyChanges:
    def test_reports_changed_columns_and_skips_protected(self):
        item = PreparedItem(id=5, item_id="P-1", product="Pesto", final_cost=4.0)

        changed = item.apply_changes(
            {"id": 99, "organization_id": "org-9", "product": "Pesto", "final_cost": 4.5, "colour": "green"}
        )

        assert changed == ["final_cost"]
        assert item.id == 5
        assert item.organization_id is None
        assert item.updated_at is not None

    def test_no_changes_leaves_timestamp(self):
        item = PreparedItem(item_id="P-1", product="Pesto")

        assert item.apply_changes({"product": "Pesto"}) == []
        assert item.updated_at is None
