"""Tests for engine setup, table verification and session scoping."""

import pytest
from sqlalchemy import text

from src.models import MasterIngredient
from src.services import database


class TestEngine:
    def test_memory_engine_shares_one_database(self):
        engine = database.create_database_engine("sqlite:///:memory:")

        assert database.missing_tables(engine) == database.REQUIRED_TABLES
        database.init_database(engine)
        assert database.missing_tables(engine) == ()

    def test_foreign_keys_enabled(self):
        engine = database.create_database_engine("sqlite:///:memory:")

        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestSessionScope:
    def test_commits_on_success(self, test_db):
        with database.session_scope() as session:
            session.add(MasterIngredient(organization_id="org-1", item_code="A-1", product="Salt"))

        assert test_db().query(MasterIngredient).count() == 1

    def test_rolls_back_on_error(self, test_db):
        with pytest.raises(RuntimeError):
            with database.session_scope() as session:
                session.add(MasterIngredient(organization_id="org-1", item_code="A-1", product="Salt"))
                session.flush()
                raise RuntimeError("boom")

        assert test_db().query(MasterIngredient).count() == 0
