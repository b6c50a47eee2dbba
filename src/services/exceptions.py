"""Service layer exception classes for Kitchen Back Office.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── NotFoundError
    │   ├── TaxonomyNodeNotFound
    │   ├── MasterIngredientNotFound
    │   ├── PreparedItemNotFound
    │   ├── InventoryCountNotFound
    │   └── RecipeNotFound
    ├── AuthorizationError
    ├── ConflictError
    ├── ImportBatchError
    └── DatabaseError
"""

from typing import List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class ValidationError(ServiceError):
    """Raised when input shape is bad or a required field is empty.

    Args:
        errors: List of human-readable validation messages

    Example:
        >>> raise ValidationError(["Name cannot be empty"])
        ValidationError: Validation failed: Name cannot be empty
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        error_msg = "; ".join(self.errors)
        super().__init__(f"Validation failed: {error_msg}")


class NotFoundError(ServiceError):
    """Raised when an unknown id is referenced."""

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} with ID {identifier} not found")


class TaxonomyNodeNotFound(NotFoundError):
    """Raised when a group, category or sub-category cannot be found.

    Example:
        >>> raise TaxonomyNodeNotFound("category", 12)
        TaxonomyNodeNotFound: Category with ID 12 not found
    """

    def __init__(self, level: str, node_id: int):
        self.level = level
        super().__init__(level.replace("_", "-").capitalize(), node_id)


class MasterIngredientNotFound(NotFoundError):
    """Raised when a master ingredient cannot be found by id or item code."""

    def __init__(self, identifier):
        super().__init__("Master ingredient", identifier)


class PreparedItemNotFound(NotFoundError):
    """Raised when a prepared item cannot be found."""

    def __init__(self, identifier):
        super().__init__("Prepared item", identifier)


class InventoryCountNotFound(NotFoundError):
    """Raised when an inventory count cannot be found."""

    def __init__(self, identifier):
        super().__init__("Inventory count", identifier)


class RecipeNotFound(NotFoundError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id):
        self.recipe_id = recipe_id
        super().__init__("Recipe", recipe_id)


class AuthorizationError(ServiceError):
    """Raised when no organization or session can be resolved."""

    def __init__(self, message: str = "No organization ID found"):
        super().__init__(message)


class ConflictError(ServiceError):
    """Raised when an update was prepared against a stale recipe version.

    Args:
        recipe_id: Recipe being updated
        expected_version: Version the caller last saw
        actual_version: Version currently stored
    """

    def __init__(self, recipe_id, expected_version: str, actual_version: str):
        self.recipe_id = recipe_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Recipe {recipe_id} changed since it was loaded: "
            f"expected version {expected_version}, found {actual_version}"
        )


class ImportBatchError(ServiceError):
    """Raised when a spreadsheet import fails part-way through its batches.

    Batches committed before the failure remain applied. Re-running the import
    with the full dataset is safe because rows are upserted by conflict key.

    Args:
        entity_type: What was being imported (e.g. "master_ingredients")
        committed: Number of rows committed before the failure
        total: Number of rows in the import
        original_error: Exception raised by the failing batch
    """

    def __init__(
        self,
        entity_type: str,
        committed: int,
        total: int,
        original_error: Optional[Exception] = None,
    ):
        self.entity_type = entity_type
        self.committed = committed
        self.total = total
        self.original_error = original_error
        super().__init__(
            f"Import of {entity_type} failed after {committed} of {total} rows: {original_error}"
        )


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
