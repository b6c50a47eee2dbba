"""
Constants and enumerations for the Kitchen Back Office application.

This module defines all system-wide constants including:
- Application metadata
- Allergen catalog
- Recipe enumerations (types, skill levels, significant fields)
- Import defaults
"""

from typing import Dict, List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Kitchen Back Office"
APP_VERSION = "0.1.0"
DATABASE_FILENAME = "kitchen_backoffice.db"

# ============================================================================
# Allergens
# ============================================================================

# Column suffix -> spreadsheet header. Order matches the import template.
ALLERGEN_COLUMNS: Dict[str, str] = {
    "peanut": "Peanut",
    "crustacean": "Crustacean",
    "treenut": "Tree Nut",
    "shellfish": "Shellfish",
    "sesame": "Sesame",
    "soy": "Soy",
    "fish": "Fish",
    "wheat": "Wheat",
    "milk": "Milk",
    "sulphite": "Sulphite",
    "egg": "Egg",
    "gluten": "Gluten",
    "mustard": "Mustard",
    "celery": "Celery",
    "garlic": "Garlic",
    "onion": "Onion",
    "nitrite": "Nitrite",
    "mushroom": "Mushroom",
    "hot_pepper": "Hot Pepper",
    "citrus": "Citrus",
    "pork": "Pork",
}

ALLERGENS: List[str] = list(ALLERGEN_COLUMNS.keys())

MAX_CUSTOM_ALLERGENS = 3

# ============================================================================
# Recipes
# ============================================================================

RECIPE_TYPES: List[str] = ["prepared", "final"]

INGREDIENT_TYPE_RAW = "raw"
INGREDIENT_TYPE_PREPARED = "prepared"
INGREDIENT_TYPES: List[str] = [INGREDIENT_TYPE_RAW, INGREDIENT_TYPE_PREPARED]

SKILL_LEVELS: List[str] = ["beginner", "intermediate", "advanced", "expert"]

MEDIA_TYPE_IMAGE = "image"
MEDIA_TYPE_VIDEO = "video"
MEDIA_TYPE_DOCUMENT = "document"
MEDIA_TYPES: List[str] = [MEDIA_TYPE_IMAGE, MEDIA_TYPE_VIDEO, MEDIA_TYPE_DOCUMENT]

INITIAL_RECIPE_VERSION = "1.0.0"
INITIAL_VERSION_NOTE = "Initial version"

# Recipe fields whose change triggers a version bump, with the change-list
# line recorded for each. Insertion order is the order lines are emitted.
SIGNIFICANT_FIELD_CHANGES: Dict[str, str] = {
    "ingredients": "Updated ingredients",
    "steps": "Modified recipe steps",
    "equipment": "Updated equipment requirements",
    "storage": "Modified storage requirements",
    "quality_control": "Updated quality control standards",
    "allergens": "Modified allergen information",
}

# Fields whose change requires derived costs to be recomputed
COST_TRIGGER_FIELDS = ("ingredients", "prep_time", "cook_time", "recipe_yield")

DEFAULT_LABOR_RATE_PER_HOUR = 30.0

# ============================================================================
# Inventory
# ============================================================================

INVENTORY_STATUS_PENDING = "pending"
INVENTORY_STATUS_APPROVED = "approved"
INVENTORY_STATUSES: List[str] = [INVENTORY_STATUS_PENDING, INVENTORY_STATUS_APPROVED]

# ============================================================================
# Import
# ============================================================================

IMPORT_BATCH_SIZE = 100

# Sentinel strings treated as a set boolean flag in spreadsheet imports
TRUE_FLAG_VALUES = frozenset({"1", "true"})

DEFAULT_YIELD_PERCENT = 100.0

UNKNOWN_CLASSIFICATION = "Unknown"

# ============================================================================
# Validation Limits
# ============================================================================

MAX_NAME_LENGTH = 200
MAX_CODE_LENGTH = 50

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Must be a valid number"
ERROR_INVALID_POSITIVE = "Must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Must be zero or greater"
