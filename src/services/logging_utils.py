"""Structured logging for service operations.

Every service module logs under ``kitchen_backoffice.services.<module>`` and
reports finished operations through ``log_operation`` so handlers see the
same ``operation``/``outcome`` fields for taxonomy, recipe and import work.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="update_recipe",
        outcome="version_bumped",
        recipe_id=12,
        version="1.0.1",
    )
"""

import logging
from typing import Any, Dict

LOGGER_PREFIX = "kitchen_backoffice.services"

# Attributes LogRecord sets itself; passing them in extra raises KeyError
_RESERVED_KEYS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


def get_service_logger(name: str) -> logging.Logger:
    """
    Logger for a service module, named after its last dotted component.

    Example:
        >>> get_service_logger("src.services.recipe_service").name
        'kitchen_backoffice.services.recipe_service'
    """
    return logging.getLogger(f"{LOGGER_PREFIX}.{name.rsplit('.', 1)[-1]}")


def _safe_context(context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        (f"ctx_{key}" if key in _RESERVED_KEYS else key): value for key, value in context.items()
    }


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log one service operation with structured context.

    Context fields travel in ``extra``; a field that collides with a
    LogRecord attribute (``name``, ``created``, ``args`` ...) is stored as
    ``ctx_<field>`` instead.

    Args:
        logger: Logger from get_service_logger
        operation: Operation name (e.g., "import_master_ingredients")
        outcome: Outcome description (e.g., "success", "batch_failed")
        level: Log level (default: INFO)
        **context: Entity ids, counts, error text
    """
    extra = {"operation": operation, "outcome": outcome, **_safe_context(context)}
    logger.log(level, f"{operation}: {outcome}", extra=extra)
