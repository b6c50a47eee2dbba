"""
Main entry point for the Kitchen Back Office application.

Reports the environment, warns when the data may live in the other
environment's database, then hands the command line to the import/export
utility.
"""

import logging
import sqlite3
import sys
from pathlib import Path

from src.utils import import_export_cli
from src.utils.config import Config, ENV_VAR_ENVIRONMENT, get_config

logger = logging.getLogger(__name__)

# Tables whose row counts indicate a database is in use
_DATA_TABLES = ("master_ingredients", "prepared_items", "recipes", "inventory_counts")


def _row_count(db_path: Path) -> int:
    """Total rows across the data tables; 0 for a missing file or table."""
    if not db_path.exists():
        return 0
    total = 0
    conn = sqlite3.connect(str(db_path))
    try:
        cursor = conn.cursor()
        for table in _DATA_TABLES:
            try:
                cursor.execute(f"SELECT COUNT(*) FROM {table}")
            except sqlite3.OperationalError:
                continue  # table not created yet
            total += cursor.fetchone()[0]
    finally:
        conn.close()
    return total


def check_database_environment() -> None:
    """
    Warn if the current database is empty but the alternate environment's
    database has data, which usually means the wrong environment is selected.
    """
    config = get_config()
    alt_env = "development" if config.is_production else "production"
    alt_db = Config(alt_env).database_path

    current_count = _row_count(config.database_path)
    alt_count = _row_count(alt_db)

    print(f"Database path: {config.database_path}")
    print(f"  - Current ({config.environment}): {current_count} records")
    print(f"  - Alternate ({alt_env}): {alt_count} records")

    if current_count == 0 and alt_count > 0:
        print("\n" + "=" * 60)
        print("WARNING: Current database is empty but alternate has data!")
        print(f"  Your data may be in the {alt_env} database at:")
        print(f"  {alt_db}")
        print(f"\n  To use {alt_env} mode, set {ENV_VAR_ENVIRONMENT}={alt_env}")
        print("=" * 60 + "\n")


def main(argv=None) -> int:
    """
    Main application entry point.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Process exit code
    """
    config = get_config()
    print(f"Starting {config.app_name} v{config.app_version}")
    print(f"Environment: {config.environment}")

    if config.database_url.startswith("sqlite"):
        check_database_environment()

    return import_export_cli.main(argv)


if __name__ == "__main__":
    sys.exit(main())
