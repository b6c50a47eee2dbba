"""
Engine and session handling for the Kitchen Back Office store.

Services open a transaction with ``session_scope()`` unless the caller hands
them a session. The engine and session factory are created lazily from
``Config.database_url`` so tests can swap ``get_session_factory`` before any
connection exists.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Dict, Optional, Tuple

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.base import Base
from ..utils.config import get_config

logger = logging.getLogger(__name__)

# Tables a usable database must have; checked after initialization
REQUIRED_TABLES: Tuple[str, ...] = (
    "food_category_groups",
    "food_categories",
    "food_sub_categories",
    "master_ingredients",
    "prepared_items",
    "inventory_counts",
    "recipes",
    "recipe_ingredients",
)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Turn on foreign keys (taxonomy cascades rely on them) and WAL for SQLite."""
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return

    cursor = dbapi_connection.cursor()
    for pragma in ("foreign_keys=ON", "journal_mode=WAL", "synchronous=NORMAL"):
        cursor.execute(f"PRAGMA {pragma}")
    cursor.close()


def _is_memory_url(database_url: str) -> bool:
    return ":memory:" in database_url or "mode=memory" in database_url


def _engine_options(database_url: str) -> Dict:
    if not database_url.startswith("sqlite"):
        return {}
    if _is_memory_url(database_url):
        # Every session must see the same in-memory database
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"connect_args": {"check_same_thread": False, "timeout": 30}}


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create an engine for ``database_url`` (default: the configured URL).

    SQLite file databases get a 30 second busy timeout; in-memory SQLite
    shares a single connection.
    """
    if database_url is None:
        database_url = get_config().database_url

    logger.info(f"Creating database engine: {database_url}")
    return create_engine(database_url, echo=echo, **_engine_options(database_url))


def init_database(engine: Optional[Engine] = None) -> None:
    """Create any missing tables on ``engine`` (default: the global engine)."""
    from .. import models  # noqa: F401  registers every table on Base.metadata

    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    logger.info("Database tables initialized")


def get_engine(force_recreate: bool = False) -> Engine:
    global _engine

    if _engine is None or force_recreate:
        _engine = create_database_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """
    Session factory bound to the global engine.

    Sessions keep attribute values after commit so services can build their
    return dicts after the transaction closes.
    """
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _SessionFactory


@contextmanager
def session_scope():
    """
    One transaction per block: commit on success, roll back on any error.

    Example:
        with session_scope() as session:
            session.add(MasterIngredient(organization_id="acme", item_code="BEEF-001", ...))
    """
    session: Session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def missing_tables(engine: Optional[Engine] = None) -> Tuple[str, ...]:
    """Names from REQUIRED_TABLES that the database does not have."""
    existing = set(inspect(engine or get_engine()).get_table_names())
    return tuple(name for name in REQUIRED_TABLES if name not in existing)


def verify_database() -> bool:
    """True when the database is reachable and every required table exists."""
    try:
        missing = missing_tables()
    except SQLAlchemyError as e:
        logger.error(f"Database verification failed: {e}")
        return False

    if missing:
        logger.warning(f"Database is missing tables: {', '.join(missing)}")
    return not missing


def initialize_app_database() -> None:
    """Create the database directory and tables for the configured environment."""
    config = get_config()

    if config.database_url.startswith("sqlite") and not _is_memory_url(config.database_url):
        config.ensure_directories()
        state = "existing" if config.database_exists() else "new"
        logger.info(f"Using {state} database at: {config.database_path}")

    init_database(get_engine())

    if verify_database():
        logger.info("Database initialized and verified")
