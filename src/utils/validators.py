"""
Input validation functions for Kitchen Back Office.

This module provides validation functions for all user inputs including:
- Numeric validation (positive, non-negative, ranges)
- String validation (length, required fields)
- Catalog record validation (master ingredients, prepared items, inventory counts)
- Recipe completeness validation before a save
"""

from typing import List, Optional, Tuple

from .constants import (
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_REQUIRED_FIELD,
    INGREDIENT_TYPE_PREPARED,
    INGREDIENT_TYPES,
    INVENTORY_STATUSES,
    MAX_CODE_LENGTH,
    MAX_NAME_LENGTH,
    RECIPE_TYPES,
    SKILL_LEVELS,
)
from .recipe_media import validate_media_urls


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: str, max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_positive_number(value: any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a positive number (> 0).

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value <= 0:
            return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_non_negative_number(value: any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a non-negative number (>= 0).

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value < 0:
            return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_number_range(
    value: any, min_value: float, max_value: float, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a number is within a specified range (inclusive).

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value < min_value or num_value > max_value:
            return False, f"{field_name}: Must be between {min_value} and {max_value}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def _collect(errors: List[str], result: Tuple[bool, str]) -> None:
    is_valid, error = result
    if not is_valid:
        errors.append(error)


# ============================================================================
# Catalog records
# ============================================================================


def validate_master_ingredient_data(data: dict) -> Tuple[bool, list]:
    """
    Validate the fields of a master ingredient before it is saved.

    Classification nesting is checked separately against the taxonomy store
    (food_taxonomy_service.validate_classification).

    Args:
        data: Dictionary containing master ingredient fields

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    is_valid, error = validate_required_string(data.get("item_code"), "Item Code")
    if not is_valid:
        errors.append(error)
    else:
        _collect(errors, validate_string_length(data["item_code"], MAX_CODE_LENGTH, "Item Code"))

    is_valid, error = validate_required_string(data.get("product"), "Product")
    if not is_valid:
        errors.append(error)
    else:
        _collect(errors, validate_string_length(data["product"], MAX_NAME_LENGTH, "Product"))

    _collect(errors, validate_non_negative_number(data.get("current_price", 0), "Current Price"))
    _collect(
        errors,
        validate_positive_number(
            data.get("recipe_unit_per_purchase_unit"), "Recipe Units per Purchase Unit"
        ),
    )

    # Zero yield would make the recipe-unit cost infinite
    yield_percent = data.get("yield_percent", 100)
    is_valid, error = validate_number_range(yield_percent, 0, 100, "Yield %")
    if not is_valid:
        errors.append(error)
    elif float(yield_percent) == 0:
        errors.append(f"Yield %: {ERROR_INVALID_POSITIVE}")

    return len(errors) == 0, errors


def validate_prepared_item_data(data: dict) -> Tuple[bool, list]:
    """
    Validate the fields of a prepared item.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    is_valid, error = validate_required_string(data.get("item_id"), "Item ID")
    if not is_valid:
        errors.append(error)
    else:
        _collect(errors, validate_string_length(data["item_id"], MAX_CODE_LENGTH, "Item ID"))

    _collect(errors, validate_required_string(data.get("product"), "Product"))

    for field, label in (("cost_per_recipe_unit", "Cost per Recipe Unit"), ("final_cost", "Final Cost")):
        if data.get(field) is not None:
            _collect(errors, validate_non_negative_number(data[field], label))

    if data.get("yield_percent") is not None:
        _collect(errors, validate_number_range(data["yield_percent"], 0, 100, "Yield %"))

    return len(errors) == 0, errors


def validate_inventory_count_data(data: dict) -> Tuple[bool, list]:
    """
    Validate the fields of an inventory count.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if not data.get("master_ingredient_id"):
        errors.append(f"Master Ingredient: {ERROR_REQUIRED_FIELD}")

    _collect(errors, validate_non_negative_number(data.get("quantity"), "Quantity"))
    _collect(errors, validate_non_negative_number(data.get("unit_cost", 0), "Unit Cost"))

    status = data.get("status")
    if status is not None and status not in INVENTORY_STATUSES:
        errors.append(f"Status: Must be one of {', '.join(INVENTORY_STATUSES)}")

    return len(errors) == 0, errors


# ============================================================================
# Recipes
# ============================================================================


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _positive_number(value) -> bool:
    try:
        return float(value) > 0
    except (ValueError, TypeError):
        return False


def _numeric(value) -> bool:
    """True for a non-zero number; a missing or zero value counts as absent."""
    if isinstance(value, bool) or value in (None, ""):
        return False
    try:
        return float(value) != 0
    except (ValueError, TypeError):
        return False


def _less_than(low, high) -> bool:
    try:
        return float(low) < float(high)
    except (ValueError, TypeError):
        return False


def _validate_recipe_ingredient(ingredient: dict) -> List[str]:
    errors = []

    if _blank(ingredient.get("name")):
        errors.append("Name is required")

    if not _positive_number(ingredient.get("quantity")):
        errors.append("Valid quantity is required")

    if _blank(ingredient.get("unit")):
        errors.append("Unit is required")

    ingredient_type = ingredient.get("type")
    if ingredient_type is not None and ingredient_type not in INGREDIENT_TYPES:
        errors.append(f"Type must be one of {', '.join(INGREDIENT_TYPES)}")

    if ingredient_type == INGREDIENT_TYPE_PREPARED and not ingredient.get("prepared_item_ref"):
        errors.append("Prepared item reference is required")

    return errors


def _validate_recipe_step(step: dict) -> List[str]:
    errors = []

    if _blank(step.get("description")):
        errors.append("Description is required")

    temperature = step.get("temperature")
    if temperature:
        if not _numeric(temperature.get("value")):
            errors.append("Valid temperature value is required")
        if not temperature.get("unit"):
            errors.append("Temperature unit is required")

    duration = step.get("duration")
    if duration:
        if not _numeric(duration.get("value")):
            errors.append("Valid duration value is required")
        if not duration.get("unit"):
            errors.append("Duration unit is required")

    for index, check in enumerate(step.get("quality_checks") or [], start=1):
        if _blank(check.get("description")):
            errors.append(f"Quality check {index}: Description is required")
        if _blank(check.get("criteria")):
            errors.append(f"Quality check {index}: Criteria is required")

    return errors


def _validate_recipe_storage(storage: Optional[dict]) -> List[str]:
    errors = []
    storage = storage or {}

    temperature = storage.get("temperature")
    if not temperature:
        errors.append("Storage temperature is required")
    else:
        if not _less_than(temperature.get("min"), temperature.get("max")):
            errors.append("Min temperature must be less than max temperature")
        if not temperature.get("unit"):
            errors.append("Temperature unit is required")

    if _blank(storage.get("container")):
        errors.append("Storage container is required")

    if _blank(storage.get("container_type")):
        errors.append("Container type is required")

    humidity = storage.get("humidity")
    if humidity:
        if not _less_than(humidity.get("min"), humidity.get("max")):
            errors.append("Min humidity must be less than max humidity")
        if not humidity.get("unit"):
            errors.append("Humidity unit is required")

    return errors


def validate_recipe(recipe: dict) -> List[str]:
    """
    Check a recipe for completeness before it is saved.

    Every rule is evaluated; violations are reported together rather than
    stopping at the first one.

    Args:
        recipe: Recipe editor dict (see Recipe.to_editor_dict)

    Returns:
        List of error messages (empty = valid)

    Example:
        >>> len(validate_recipe({"name": "", "ingredients": []})) >= 2
        True
    """
    errors = []

    if _blank(recipe.get("name")):
        errors.append("Recipe name is required")

    if _blank(recipe.get("category")):
        errors.append("Category is required")

    recipe_type = recipe.get("type")
    if recipe_type is not None and recipe_type not in RECIPE_TYPES:
        errors.append(f"Recipe type must be one of {', '.join(RECIPE_TYPES)}")

    ingredients = recipe.get("ingredients") or []
    if not ingredients:
        errors.append("At least one ingredient is required")
    for index, ingredient in enumerate(ingredients, start=1):
        errors.extend(
            f"Ingredient {index}: {error}" for error in _validate_recipe_ingredient(ingredient)
        )

    steps = recipe.get("steps") or []
    if not steps:
        errors.append("At least one step is required")
    for index, step in enumerate(steps, start=1):
        errors.extend(f"Step {index}: {error}" for error in _validate_recipe_step(step))
    errors.extend(validate_media_urls(steps))

    for index, equipment in enumerate(recipe.get("equipment") or [], start=1):
        if _blank(equipment.get("name")):
            errors.append(f"Equipment {index}: Name is required")

    errors.extend(_validate_recipe_storage(recipe.get("storage")))

    skill_level = (recipe.get("training") or {}).get("skill_level")
    if not skill_level:
        errors.append("Skill level is required")
    elif skill_level not in SKILL_LEVELS:
        errors.append(f"Skill level must be one of {', '.join(SKILL_LEVELS)}")

    quality_control = recipe.get("quality_control") or {}
    for index, check in enumerate(quality_control.get("temperature_checks") or [], start=1):
        if _blank(check.get("stage")):
            errors.append(f"Temperature check {index}: Stage is required")
        if not _less_than(check.get("min_temp"), check.get("max_temp")):
            errors.append(
                f"Temperature check {index}: Min temperature must be less than max temperature"
            )

    if not recipe.get("versions") or not recipe.get("current_version"):
        errors.append("Version information is required")

    return errors

