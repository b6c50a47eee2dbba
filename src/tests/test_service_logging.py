"""Tests for service layer structured logging.

These tests verify that recipe, taxonomy and import operations emit
structured log entries with appropriate context information.
"""

import logging

import pytest

from src.services import food_taxonomy_service, import_service, recipe_service
from src.services.logging_utils import get_service_logger, log_operation


class TestLoggingUtilities:
    """Tests for logging utility functions."""

    def test_get_service_logger_returns_logger(self):
        """get_service_logger returns a configured Logger instance."""
        logger = get_service_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "kitchen_backoffice.services.test_module"

    def test_get_service_logger_extracts_module_name(self):
        """get_service_logger extracts module name from full path."""
        logger = get_service_logger("src.services.recipe_service")
        assert logger.name == "kitchen_backoffice.services.recipe_service"

    def test_log_operation_logs_at_custom_level(self, caplog):
        """log_operation respects custom log level."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.DEBUG):
            log_operation(
                logger,
                operation="debug_op",
                outcome="debug_outcome",
                level=logging.DEBUG,
            )

        assert "debug_op: debug_outcome" in caplog.text

    def test_log_operation_includes_extra_context(self, caplog):
        """log_operation includes extra context in log records."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(
                logger,
                operation="context_test",
                outcome="success",
                recipe_id=42,
                version="1.0.1",
            )

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.operation == "context_test"
        assert record.outcome == "success"
        assert record.recipe_id == 42
        assert record.version == "1.0.1"

    def test_log_operation_renames_reserved_keys(self, caplog):
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="create_group", outcome="success", name="Food", created=3)

        record = caplog.records[0]
        assert record.ctx_name == "Food"
        assert record.ctx_created == 3
        assert record.name == "kitchen_backoffice.services.test"


class TestServiceLogging:
    """Operations log their outcome with context."""

    def test_version_bump_logged(self, brisket, recipe_factory, caplog):
        recipe = recipe_service.create_recipe(recipe_factory())

        with caplog.at_level(logging.INFO, logger="kitchen_backoffice.services"):
            recipe_service.update_recipe(recipe["id"], {"allergens": ["milk"]})

        bumped = [r for r in caplog.records if getattr(r, "outcome", None) == "version_bumped"]
        assert len(bumped) == 1
        assert bumped[0].version == "1.0.1"

    def test_taxonomy_delete_logged(self, org_db, caplog):
        group = food_taxonomy_service.create_group("Food")

        with caplog.at_level(logging.INFO, logger="kitchen_backoffice.services"):
            food_taxonomy_service.delete_node("group", group["id"])

        record = next(r for r in caplog.records if getattr(r, "operation", None) == "delete_taxonomy_node")
        assert record.node_id == group["id"]
        assert record.organization_id == "org-1"

    def test_import_summary_logged(self, org_db, caplog):
        rows = [{"Item ID": "P-1", "PRODUCT": "Stock"}]

        with caplog.at_level(logging.INFO, logger="kitchen_backoffice.services"):
            import_service.import_prepared_items(rows)

        record = next(r for r in caplog.records if getattr(r, "operation", None) == "import_prepared_items")
        assert record.outcome == "success"
        assert record.added == 1

    @pytest.mark.parametrize("dry_run,outcome", [(True, "dry_run"), (False, "success")])
    def test_import_outcome(self, org_db, caplog, dry_run, outcome):
        with caplog.at_level(logging.INFO, logger="kitchen_backoffice.services"):
            import_service.import_prepared_items([{"Item ID": "P-1", "PRODUCT": "Stock"}], dry_run=dry_run)
        assert f"import_prepared_items: {outcome}" in caplog.text
