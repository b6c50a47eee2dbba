"""
Import/Export CLI Utility

Command-line interface for spreadsheet (CSV or .xlsx) imports and templates.
No UI required - designed for programmatic and testing use.

The organization (and optionally user) is taken from --org/--user or from
KITCHEN_BACKOFFICE_ORGANIZATION_ID / KITCHEN_BACKOFFICE_USER_ID.

Usage Examples:
    # Import master ingredients
    python -m src.utils.import_export_cli --org acme import-ingredients ingredients.csv

    # Preview an import without committing
    python -m src.utils.import_export_cli --org acme import-ingredients ingredients.csv --dry-run

    # Import prepared items
    python -m src.utils.import_export_cli --org acme import-prepared-items prepared.csv

    # Import today's inventory counts
    python -m src.utils.import_export_cli --org acme import-inventory counts.csv

    # Write the master ingredient template
    python -m src.utils.import_export_cli export-template ingredients_template.xlsx

    # Print the food taxonomy
    python -m src.utils.import_export_cli --org acme list-taxonomy
"""

import argparse
import logging
from datetime import date
from zipfile import BadZipFile

from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError

from src.services.app_state import AppState
from src.services.database import initialize_app_database
from src.services.exceptions import AuthorizationError, ImportBatchError, ServiceError
from src.services import food_taxonomy_service, import_service
from src.utils.config import get_config

logger = logging.getLogger(__name__)


def _print_result(result) -> int:
    print(result.get_summary())
    return 0


def import_ingredients(file_path: str, dry_run: bool = False) -> int:
    """Import master ingredients from a CSV file or .xlsx workbook."""
    print(f"Importing master ingredients from {file_path}...")
    rows = import_service.read_spreadsheet_rows(file_path)
    return _print_result(import_service.import_master_ingredients(rows, dry_run=dry_run))


def import_prepared_items(file_path: str, dry_run: bool = False) -> int:
    """Import prepared items from a CSV file or .xlsx workbook."""
    print(f"Importing prepared items from {file_path}...")
    rows = import_service.read_spreadsheet_rows(file_path)
    return _print_result(import_service.import_prepared_items(rows, dry_run=dry_run))


def import_inventory(file_path: str, count_date: date = None, dry_run: bool = False) -> int:
    """Import inventory counts from a CSV file or .xlsx workbook."""
    print(f"Importing inventory counts from {file_path}...")
    rows = import_service.read_spreadsheet_rows(file_path)
    return _print_result(
        import_service.import_inventory_counts(rows, count_date=count_date, dry_run=dry_run)
    )


def export_template(file_path: str, include_examples: bool = True) -> int:
    """Write the master ingredient import template."""
    path = import_service.write_master_ingredients_template(file_path, include_examples)
    print(f"Template written to {path}")
    return 0


def list_taxonomy() -> int:
    """Print the food taxonomy as an indented tree."""
    tree = food_taxonomy_service.get_hierarchy_tree()
    if not tree:
        print("No major groups defined.")
        return 0

    for group in tree:
        print(f"{group['name']} (id {group['id']})")
        for category in group["categories"]:
            print(f"  {category['name']} (id {category['id']})")
            for sub in category["sub_categories"]:
                print(f"    {sub['name']} (id {sub['id']})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import/Export utility for Kitchen Back Office",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Import master ingredients:
    python -m src.utils.import_export_cli --org acme import-ingredients ingredients.csv

  Import inventory counts for a given day:
    python -m src.utils.import_export_cli --org acme import-inventory counts.csv --date 2024-03-01

  Write the import template:
    python -m src.utils.import_export_cli export-template template.csv
""",
    )
    parser.add_argument("--org", dest="organization_id", help="Organization ID")
    parser.add_argument("--user", dest="user_id", help="User ID recorded on changes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    for command, help_text in (
        ("import-ingredients", "Import master ingredients from CSV or .xlsx"),
        ("import-prepared-items", "Import prepared items from CSV or .xlsx"),
        ("import-inventory", "Import inventory counts from CSV or .xlsx"),
    ):
        import_parser = subparsers.add_parser(command, help=help_text)
        import_parser.add_argument("file", help="CSV or .xlsx file path")
        import_parser.add_argument(
            "--dry-run", action="store_true", help="Validate and count rows without committing"
        )
        if command == "import-inventory":
            import_parser.add_argument(
                "--date",
                dest="count_date",
                type=date.fromisoformat,
                help="Count date, YYYY-MM-DD (default: today)",
            )

    template_parser = subparsers.add_parser(
        "export-template", help="Write the master ingredient template (.xlsx or .csv by suffix)"
    )
    template_parser.add_argument("file", help="CSV or .xlsx file path")
    template_parser.add_argument(
        "--no-examples", action="store_true", help="Write the header row only"
    )

    subparsers.add_parser("list-taxonomy", help="Print the food category taxonomy")

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "export-template":
        return export_template(args.file, include_examples=not args.no_examples)

    config = get_config()
    state = AppState()
    organization_id = args.organization_id or config.default_organization_id
    if organization_id:
        state.sign_in(args.user_id or config.default_user_id, organization_id)

    try:
        # Required for all remaining commands
        initialize_app_database()

        with state.acting():
            if args.command == "import-ingredients":
                return import_ingredients(args.file, dry_run=args.dry_run)
            elif args.command == "import-prepared-items":
                return import_prepared_items(args.file, dry_run=args.dry_run)
            elif args.command == "import-inventory":
                return import_inventory(args.file, count_date=args.count_date, dry_run=args.dry_run)
            elif args.command == "list-taxonomy":
                return list_taxonomy()
    except AuthorizationError as e:
        print(f"ERROR: {e}. Pass --org or set KITCHEN_BACKOFFICE_ORGANIZATION_ID.")
        return 1
    except ImportBatchError as e:
        print(f"ERROR: {e}")
        print(f"{e.committed} of {e.total} rows were committed; re-run to finish the import.")
        return 1
    except (ServiceError, SQLAlchemyError, OSError, InvalidFileException, BadZipFile) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"ERROR: {e}")
        return 1
    finally:
        state.sign_out()

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
