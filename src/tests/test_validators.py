"""
Tests for input validation functions.

Tests cover the validators module:
- String validation (required, length)
- Numeric validation (positive, non-negative, ranges)
- Catalog record validation (master ingredient, prepared item, inventory count)
- Recipe completeness validation

Field validators return (is_valid, error); validate_recipe returns a list.
"""

import pytest

from src.utils import validators
from src.utils.constants import MAX_NAME_LENGTH


class TestStringValidation:
    """Test string validation functions."""

    def test_validate_required_string_valid(self):
        assert validators.validate_required_string("Test Value", "Test Field") == (True, "")

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_validate_required_string_blank(self, value):
        is_valid, error = validators.validate_required_string(value, "Test Field")
        assert not is_valid
        assert error == "Test Field: This field is required"

    def test_validate_string_length_exact_max(self):
        assert validators.validate_string_length("A" * 100, 100, "Test Field")[0]

    def test_validate_string_length_too_long(self):
        is_valid, error = validators.validate_string_length("A" * 101, 100, "Test Field")
        assert not is_valid
        assert "100 characters" in error


class TestNumericValidation:
    """Test numeric validation functions."""

    def test_positive_number(self):
        assert validators.validate_positive_number("2.5")[0]
        assert not validators.validate_positive_number(0)[0]
        assert "valid number" in validators.validate_positive_number("abc")[1]

    def test_non_negative_number(self):
        assert validators.validate_non_negative_number(0)[0]
        assert not validators.validate_non_negative_number(-0.01)[0]

    def test_number_range_inclusive(self):
        assert validators.validate_number_range(100, 0, 100)[0]
        assert not validators.validate_number_range(100.5, 0, 100)[0]


class TestCatalogValidation:
    """Master ingredient, prepared item and inventory count fields."""

    def test_valid_master_ingredient(self):
        is_valid, errors = validators.validate_master_ingredient_data({
            "item_code": "BEEF-001",
            "product": "Beef Brisket",
            "current_price": 125.99,
            "recipe_unit_per_purchase_unit": 10,
            "yield_percent": 85,
        })
        assert is_valid, errors

    def test_master_ingredient_reports_every_problem(self):
        is_valid, errors = validators.validate_master_ingredient_data({
            "item_code": "",
            "product": "X" * (MAX_NAME_LENGTH + 1),
            "current_price": -5,
            "recipe_unit_per_purchase_unit": 0,
            "yield_percent": 0,
        })
        assert not is_valid
        assert len(errors) == 5
        assert "Yield %: Must be greater than zero" in errors

    def test_yield_above_100_rejected(self):
        _, errors = validators.validate_master_ingredient_data({
            "item_code": "A", "product": "B", "recipe_unit_per_purchase_unit": 1,
            "yield_percent": 101,
        })
        assert errors == ["Yield %: Must be between 0 and 100"]

    def test_prepared_item_requires_id_and_product(self):
        is_valid, errors = validators.validate_prepared_item_data({})
        assert not is_valid
        assert errors == ["Item ID: This field is required", "Product: This field is required"]

    def test_inventory_count_status(self):
        _, errors = validators.validate_inventory_count_data(
            {"master_ingredient_id": 1, "quantity": 2, "status": "lost"}
        )
        assert errors == ["Status: Must be one of pending, approved"]


class TestValidateRecipe:
    """Recipe completeness rules."""

    def _valid(self, recipe_factory):
        recipe = recipe_factory()
        recipe["versions"] = [{"version": "1.0.0", "changes": ["Initial version"]}]
        recipe["current_version"] = "1.0.0"
        return recipe

    def test_complete_recipe_has_no_errors(self, recipe_factory):
        assert validators.validate_recipe(self._valid(recipe_factory)) == []

    def test_empty_recipe_reports_all_missing_sections(self):
        errors = validators.validate_recipe({"name": "", "ingredients": []})

        assert "Recipe name is required" in errors
        assert "Category is required" in errors
        assert "At least one ingredient is required" in errors
        assert "At least one step is required" in errors
        assert "Storage temperature is required" in errors
        assert "Skill level is required" in errors
        assert "Version information is required" in errors

    def test_name_and_ingredient_errors_both_reported(self, recipe_factory):
        recipe = self._valid(recipe_factory)
        recipe["name"] = ""
        recipe["ingredients"] = [{"type": "raw", "name": "Salt", "quantity": "0", "unit": "g"}]

        errors = validators.validate_recipe(recipe)

        assert len(errors) >= 2
        assert "Recipe name is required" in errors
        assert "Ingredient 1: Valid quantity is required" in errors

    def test_prepared_ingredient_needs_reference(self, recipe_factory):
        recipe = self._valid(recipe_factory)
        recipe["ingredients"] = [{"type": "prepared", "name": "Stock", "quantity": "1", "unit": "L"}]

        assert validators.validate_recipe(recipe) == [
            "Ingredient 1: Prepared item reference is required"
        ]

    def test_step_details(self, recipe_factory):
        recipe = self._valid(recipe_factory)
        recipe["steps"] = [{
            "description": "Sear",
            "temperature": {"value": 0, "unit": ""},
            "quality_checks": [{"description": "Color", "criteria": ""}],
        }]

        assert validators.validate_recipe(recipe) == [
            "Step 1: Valid temperature value is required",
            "Step 1: Temperature unit is required",
            "Step 1: Quality check 1: Criteria is required",
        ]

    def test_step_media_urls_and_timestamps(self, recipe_factory):
        recipe = self._valid(recipe_factory)
        recipe["steps"] = [
            {"description": "Sear", "media": [
                {"type": "video", "url": "https://youtu.be/dQw4w9WgXcQ", "timestamp": "01:30"},
                {"type": "document", "url": "sear-guide.pdf"},
            ]},
            {"description": "Rest", "media": [
                {"type": "video", "url": "https://example.com/clip.mp4"},
                {"type": "image", "url": "rest.jpg", "timestamp": "1:75"},
            ]},
        ]

        assert validators.validate_recipe(recipe) == [
            "Step 2, Media 1: Invalid video URL",
            "Step 2, Media 2: Invalid image URL",
            "Step 2, Media 2: Invalid timestamp format",
        ]

    def test_storage_ranges(self, recipe_factory):
        recipe = self._valid(recipe_factory)
        recipe["storage"] = {
            "temperature": {"min": 40, "max": 35, "unit": "F"},
            "humidity": {"min": 80, "max": 60, "unit": "%"},
            "container": "Hotel Pan",
            "container_type": "",
        }

        assert validators.validate_recipe(recipe) == [
            "Min temperature must be less than max temperature",
            "Container type is required",
            "Min humidity must be less than max humidity",
        ]

    def test_unknown_skill_level(self, recipe_factory):
        recipe = self._valid(recipe_factory)
        recipe["training"] = {"skill_level": "wizard"}

        assert validators.validate_recipe(recipe) == [
            "Skill level must be one of beginner, intermediate, advanced, expert"
        ]

    def test_temperature_check_range(self, recipe_factory):
        recipe = self._valid(recipe_factory)
        recipe["quality_control"] = {
            "temperature_checks": [{"stage": "Cooling", "min_temp": 70, "max_temp": 41}]
        }

        assert validators.validate_recipe(recipe) == [
            "Temperature check 1: Min temperature must be less than max temperature"
        ]

    def test_equipment_needs_name(self, recipe_factory):
        recipe = self._valid(recipe_factory)
        recipe["equipment"] = [{"name": " "}]

        assert validators.validate_recipe(recipe) == ["Equipment 1: Name is required"]
