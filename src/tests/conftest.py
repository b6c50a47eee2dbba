"""Pytest configuration and fixtures for service layer tests."""

import pytest
from sqlalchemy.orm import sessionmaker, scoped_session

from src.models.base import Base
from src.services import identity
from src.services.database import create_database_engine
from src.utils.config import reset_config


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Rebuild the config singleton per test so environment overrides apply."""
    for name in ("KITCHEN_BACKOFFICE_LABOR_RATE", "KITCHEN_BACKOFFICE_IMPORT_BATCH_SIZE"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the session factory to the test
    4. Drops all tables after the test completes
    """
    engine = create_database_engine("sqlite:///:memory:")

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session


@pytest.fixture(scope="function")
def signed_in():
    """Run the test as user-1 acting for org-1."""
    with identity.acting_as(identity.Identity("user-1", "org-1")) as current:
        yield current


@pytest.fixture(scope="function")
def org_db(test_db, signed_in):
    """Clean database with an identity already resolved."""
    return test_db


@pytest.fixture(scope="function")
def taxonomy(org_db):
    """Provide a small taxonomy: Food > Proteins > (Beef, Poultry), Food > Dairy."""
    from src.services import food_taxonomy_service as svc

    food = svc.create_group("Food")
    proteins = svc.create_category(food["id"], "Proteins")
    dairy = svc.create_category(food["id"], "Dairy")
    beef = svc.create_sub_category(proteins["id"], "Beef")
    poultry = svc.create_sub_category(proteins["id"], "Poultry")
    return {
        "food": food,
        "proteins": proteins,
        "dairy": dairy,
        "beef": beef,
        "poultry": poultry,
    }


@pytest.fixture(scope="function")
def brisket(org_db):
    """Provide a master ingredient costing 125.99 / 10 x 100 / 85 per portion."""
    from src.services import master_ingredient_service

    return master_ingredient_service.create_master_ingredient({
        "item_code": "BEEF-001",
        "product": "Beef Brisket",
        "vendor": "US Foods",
        "current_price": 125.99,
        "unit_of_measure": "kg",
        "recipe_unit_per_purchase_unit": 10,
        "recipe_unit_type": "portion",
        "yield_percent": 85,
    })


@pytest.fixture(scope="function")
def demi_glace(org_db):
    """Provide a prepared item with a cost per recipe unit of 3.10."""
    from src.services import prepared_item_service

    return prepared_item_service.create_prepared_item({
        "item_id": "PREP-001",
        "product": "Demi Glace",
        "category": "Sauces",
        "sub_category": "Mother Sauces",
        "station": "Saucier",
        "container": "Deli Cup",
        "container_type": "Plastic",
        "recipe_unit": "cup",
        "cost_per_recipe_unit": 3.10,
        "final_cost": 12.40,
        "allergen_milk": True,
    })


def make_recipe(**overrides):
    """Build a complete recipe editor dict that passes validation."""
    recipe = {
        "type": "final",
        "name": "Braised Brisket",
        "category": "Mains",
        "sub_category": "Beef",
        "description": "Slow braised brisket",
        "ingredients": [
            {
                "type": "raw",
                "name": "Beef Brisket",
                "ingredient_ref": "BEEF-001",
                "quantity": "2",
                "unit": "portion",
            },
        ],
        "recipe_yield": {"value": 4, "unit": "portion"},
        "prep_time": 30,
        "cook_time": 30,
        "equipment": [{"name": "Dutch Oven"}],
        "steps": [
            {
                "description": "Braise until tender",
                "temperature": {"value": 300, "unit": "F"},
                "duration": {"value": 180, "unit": "minutes"},
                "quality_checks": [{"description": "Doneness", "criteria": "Fork tender"}],
            },
        ],
        "storage": {
            "temperature": {"min": 35, "max": 40, "unit": "F"},
            "container": "Hotel Pan",
            "container_type": "Stainless",
        },
        "training": {"skill_level": "intermediate"},
        "quality_control": {
            "temperature_checks": [{"stage": "Holding", "min_temp": 140, "max_temp": 165}],
        },
        "allergens": [],
    }
    recipe.update(overrides)
    return recipe


@pytest.fixture
def recipe_factory():
    """Provide make_recipe() so tests can build complete recipes with overrides."""
    return make_recipe
