"""Tests for the import/export command line."""

import pytest
from sqlalchemy.exc import OperationalError

from src.services import identity, master_ingredient_service
from src.utils import import_export_cli
from src.utils.config import reset_config


@pytest.fixture
def cli_db(test_db, monkeypatch):
    """Route the CLI at the test database instead of the application file."""
    monkeypatch.setattr(import_export_cli, "initialize_app_database", lambda: None)
    monkeypatch.delenv("KITCHEN_BACKOFFICE_ORGANIZATION_ID", raising=False)
    monkeypatch.delenv("KITCHEN_BACKOFFICE_USER_ID", raising=False)
    return test_db


def test_export_template_needs_no_database(tmp_path, capsys):
    path = tmp_path / "template.csv"

    assert import_export_cli.main(["export-template", str(path), "--no-examples"]) == 0

    assert path.read_text(encoding="utf-8").startswith("Item Code,Major Group")
    assert "Template written" in capsys.readouterr().out


def test_import_ingredients(cli_db, tmp_path, capsys):
    path = tmp_path / "template.csv"
    import_export_cli.main(["export-template", str(path)])

    code = import_export_cli.main(["--org", "org-1", "--user", "chef", "import-ingredients", str(path)])

    assert code == 0
    assert "Added:   3" in capsys.readouterr().out
    # The CLI leaves no identity behind
    assert identity.get_current_identity() is None
    with identity.acting_as(identity.Identity("chef", "org-1")):
        assert len(master_ingredient_service.list_master_ingredients()) == 3


def test_organization_from_environment(cli_db, tmp_path, monkeypatch):
    path = tmp_path / "template.csv"
    import_export_cli.main(["export-template", str(path)])
    monkeypatch.setenv("KITCHEN_BACKOFFICE_ORGANIZATION_ID", "org-env")
    reset_config()

    assert import_export_cli.main(["import-ingredients", str(path), "--dry-run"]) == 0


def test_missing_organization(cli_db, capsys):
    assert import_export_cli.main(["list-taxonomy"]) == 1
    assert "No organization ID found" in capsys.readouterr().out


def test_missing_file(cli_db, tmp_path, capsys):
    code = import_export_cli.main(["--org", "org-1", "import-prepared-items", str(tmp_path / "nope.csv")])
    assert code == 1
    assert "ERROR" in capsys.readouterr().out


def test_import_ingredients_from_workbook(cli_db, tmp_path, capsys):
    path = tmp_path / "template.xlsx"
    assert import_export_cli.main(["export-template", str(path)]) == 0

    code = import_export_cli.main(["--org", "org-1", "import-ingredients", str(path)])

    assert code == 0
    assert "Added:   3" in capsys.readouterr().out


def test_unreadable_workbook(cli_db, tmp_path, capsys):
    path = tmp_path / "counts.xlsx"
    path.write_text("Item ID,Quantity\n", encoding="utf-8")

    assert import_export_cli.main(["--org", "org-1", "import-inventory", str(path)]) == 1
    assert "ERROR" in capsys.readouterr().out


def test_database_setup_failure_reported(test_db, monkeypatch, capsys):
    def _fail():
        raise OperationalError("CREATE TABLE", {}, Exception("disk I/O error"))

    monkeypatch.setattr(import_export_cli, "initialize_app_database", _fail)

    assert import_export_cli.main(["--org", "org-1", "list-taxonomy"]) == 1
    assert "ERROR" in capsys.readouterr().out
    assert identity.get_current_identity() is None


def test_inventory_without_known_items(cli_db, tmp_path, capsys):
    path = tmp_path / "counts.csv"
    path.write_text("Item ID,Quantity\nNOPE,1\n", encoding="utf-8")

    code = import_export_cli.main(
        ["--org", "org-1", "import-inventory", str(path), "--date", "2024-03-01"]
    )

    assert code == 1
    assert "No valid inventory counts" in capsys.readouterr().out


def test_list_taxonomy(cli_db, capsys):
    from src.services import food_taxonomy_service

    with identity.acting_as(identity.Identity("chef", "org-1")):
        food = food_taxonomy_service.create_group("Food")
        food_taxonomy_service.create_category(food["id"], "Proteins")

    assert import_export_cli.main(["--org", "org-1", "list-taxonomy"]) == 0
    out = capsys.readouterr().out
    assert "Food (id" in out
    assert "  Proteins (id" in out


def test_no_command_prints_help(capsys):
    assert import_export_cli.main([]) == 1


def test_row_count_of_missing_database(tmp_path):
    from src.main import _row_count

    assert _row_count(tmp_path / "missing.db") == 0


def test_row_count_ignores_missing_tables(tmp_path):
    import sqlite3

    from src.main import _row_count

    db_path = tmp_path / "partial.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute("CREATE TABLE recipes (id INTEGER PRIMARY KEY)")
    conn.executemany("INSERT INTO recipes (id) VALUES (?)", [(1,), (2,)])
    conn.commit()
    conn.close()

    assert _row_count(db_path) == 2
