"""
Import Service - spreadsheet import of master ingredients, prepared items
and inventory counts.

Rows come from CSV files or .xlsx workbooks (read_spreadsheet_rows) or any
sequence of ``{column header: value}`` mappings. Every cell is coerced by
import_normalization; nothing here parses cells itself.

Rows are upserted by conflict key:
- master ingredients: (organization, item_code)
- prepared items: (organization, item_id)
- inventory counts: (organization, master ingredient, count date)

Imports run in batches of IMPORT_BATCH_SIZE rows, each committed in its own
transaction. When a batch fails, earlier batches stay committed and
ImportBatchError reports how many rows made it. Re-running the whole import
is safe because rows are upserted.

Usage:
    from src.services import import_service

    rows = import_service.read_spreadsheet_rows("ingredients.csv")
    result = import_service.import_master_ingredients(rows)
    print(result.get_summary())
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.comments import Comment
from openpyxl.utils import get_column_letter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import InventoryCount, MasterIngredient, PreparedItem
from src.services import food_taxonomy_service
from src.services.database import session_scope
from src.services.exceptions import ImportBatchError, ServiceError, ValidationError
from src.services.identity import resolve_organization_id, resolve_user_id
from src.services.import_normalization import (
    Coercion,
    MASTER_INGREDIENT_COLUMNS,
    headers_for,
    normalize_inventory_count_row,
    normalize_master_ingredient_row,
    normalize_prepared_item_row,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.recipe_cost_service import cost_per_recipe_unit
from src.utils.config import get_config
from src.utils.constants import INVENTORY_STATUS_PENDING
from src.utils.datetime_utils import today

logger = get_service_logger(__name__)

MASTER_INGREDIENTS = "master_ingredients"
PREPARED_ITEMS = "prepared_items"
INVENTORY_COUNTS = "inventory_counts"

# Example rows written below the header of the master ingredient template
TEMPLATE_EXAMPLE_ROWS = [
    {
        "Item Code": "BEEF-001", "Product Name": "Beef Brisket", "Major Group": "Food",
        "Category": "Proteins", "Sub-Category": "Beef", "Vendor": "US Foods",
        "Case Size": "2x5kg", "Units/Case": "2", "Case Price": "125.99",
        "Unit of Measure": "kg", "Recipe Units/Case": "10", "Recipe Unit Type": "portion",
        "Yield %": "85", "Storage Area": "Walk-in Cooler",
    },
    {
        "Item Code": "CHIX-001", "Product Name": "Chicken Breast", "Major Group": "Food",
        "Category": "Proteins", "Sub-Category": "Poultry", "Vendor": "Sysco",
        "Case Size": "4x2kg", "Units/Case": "4", "Case Price": "89.99",
        "Unit of Measure": "kg", "Recipe Units/Case": "8", "Recipe Unit Type": "portion",
        "Yield %": "90", "Storage Area": "Walk-in Cooler",
    },
    {
        "Item Code": "MILK-001", "Product Name": "Whole Milk", "Major Group": "Food",
        "Category": "Dairy", "Sub-Category": "Milk", "Vendor": "GFS",
        "Case Size": "4L", "Units/Case": "1", "Case Price": "6.99",
        "Unit of Measure": "L", "Recipe Units/Case": "16", "Recipe Unit Type": "cup",
        "Yield %": "100", "Storage Area": "Walk-in Cooler", "Milk": "1",
    },
]

WORKBOOK_SUFFIXES = (".xlsx",)
TEMPLATE_SHEET_TITLE = "Master Ingredients"
INSTRUCTIONS_SHEET_TITLE = "Instructions"
TEMPLATE_COMMENT_AUTHOR = "Kitchen Back Office"

# Header comments on the workbook template
TEMPLATE_HEADER_NOTES = {
    "Item Code": "Required. Unique identifier for the ingredient",
    "Major Group": "Top level category (Food, Beverage, etc)",
    "Category": "Category within the major group",
    "Sub-Category": "Optional. Sub-category within the category",
    "Product Name": "Required. Name of the product",
    "Vendor": "Supplier name",
    "Case Size": "Case packaging (e.g. 4x2kg)",
    "Units/Case": "Number of units in a case",
    "Case Price": "Current price per case",
    "Unit of Measure": "Base unit of measure",
    "Recipe Units/Case": "Number of recipe units per case",
    "Recipe Unit Type": "Type of recipe unit (portion, serving, etc)",
    "Yield %": "Yield percentage (1-100); blank means 100",
    "Storage Area": "Storage location",
}

TEMPLATE_INSTRUCTIONS = [
    "Master Ingredients Import Template Instructions",
    "",
    "Required Fields:",
    "- Item Code and Product Name are required",
    "- Item Code must be unique within your organization",
    "- Case Price should be the current price per case",
    "- Yield % should be between 1-100",
    "",
    "Allergens:",
    "- Use 1 for Yes and 0 for No",
    "- Leave blank or use 0 for no allergen",
    "",
    "Classification:",
    "- Major Group, Category and Sub-Category must match the food taxonomy",
    "",
    "Units of Measure:",
    "- Use standard abbreviations: kg, g, L, ml, ea",
    "",
    "Tips:",
    "- Hover over column headers for field descriptions",
    "- Rows with the same Item Code update the existing ingredient",
]


# ============================================================================
# Result Class
# ============================================================================


@dataclass
class EntityImportCounts:
    """Per-import row statistics."""

    added: int = 0
    updated: int = 0
    skipped: int = 0


class ImportResult:
    """
    Result of a spreadsheet import.

    Rows count as added (new conflict key), updated (existing key) or
    skipped (missing key or unknown reference). Warnings describe skipped
    rows and rows imported with fallback values.
    """

    def __init__(self, entity_type: str, dry_run: bool = False):
        self.entity_type = entity_type
        self.dry_run = dry_run
        self.counts = EntityImportCounts()
        self.warnings: List[str] = []
        self.batches_committed = 0

    @property
    def total_processed(self) -> int:
        return self.counts.added + self.counts.updated + self.counts.skipped

    @property
    def total_imported(self) -> int:
        """Rows written (added + updated)."""
        return self.counts.added + self.counts.updated

    def add_skip(self, identifier: str, reason: str) -> None:
        self.counts.skipped += 1
        self.warnings.append(f"{identifier} skipped: {reason}")

    def merge(self, other: "ImportResult") -> None:
        """Fold a committed batch's result into this one."""
        self.counts.added += other.counts.added
        self.counts.updated += other.counts.updated
        self.counts.skipped += other.counts.skipped
        self.warnings.extend(other.warnings)

    def get_summary(self) -> str:
        """Generate user-friendly summary for CLI display."""
        title = self.entity_type.replace("_", " ").title()
        lines = ["=" * 60, f"Import Summary: {title}"]
        if self.dry_run:
            lines.append("*** DRY RUN - No changes committed ***")
        lines.append("=" * 60)
        lines.append(f"Total Processed: {self.total_processed}")
        lines.append(f"  Added:   {self.counts.added}")
        lines.append(f"  Updated: {self.counts.updated}")
        lines.append(f"  Skipped: {self.counts.skipped}")

        if self.warnings:
            lines.append("\nWarnings:")
            for warning in self.warnings[:10]:
                lines.append(f"  - {warning}")
            if len(self.warnings) > 10:
                lines.append(f"  ... and {len(self.warnings) - 10} more warnings")

        lines.append("=" * 60)
        return "\n".join(lines)


# ============================================================================
# Batching
# ============================================================================


def _run_batches(
    entity_type: str,
    records: List[Dict],
    upsert_batch: Callable[[Session, List[Dict], ImportResult], None],
    result: ImportResult,
    batch_size: Optional[int],
) -> ImportResult:
    """
    Upsert prepared records batch by batch, one transaction per batch.

    Raises:
        ImportBatchError: When a batch fails; earlier batches stay committed
    """
    batch_size = batch_size or get_config().import_batch_size
    committed = 0

    for start in range(0, len(records), batch_size):
        batch = records[start:start + batch_size]
        batch_result = ImportResult(entity_type, dry_run=result.dry_run)
        try:
            with session_scope() as sess:
                upsert_batch(sess, batch, batch_result)
                if result.dry_run:
                    sess.rollback()
        except (SQLAlchemyError, ServiceError) as e:
            log_operation(
                logger,
                operation=f"import_{entity_type}",
                outcome="batch_failed",
                level=logging.ERROR,
                batch_start=start,
                committed=committed,
                total=len(records),
                error=str(e),
            )
            raise ImportBatchError(entity_type, committed, len(records), e) from e

        committed += len(batch)
        result.merge(batch_result)
        result.batches_committed += 1

    log_operation(
        logger,
        operation=f"import_{entity_type}",
        outcome="dry_run" if result.dry_run else "success",
        added=result.counts.added,
        updated=result.counts.updated,
        skipped=result.counts.skipped,
        batches=result.batches_committed,
    )
    return result


def _upsert(sess: Session, model, key_filters, fields: Dict, org_id: str) -> bool:
    """
    Insert or update one row matched by its conflict key.

    Returns:
        True if a new row was added
    """
    existing = sess.query(model).filter(model.organization_id == org_id, *key_filters).first()
    if existing is not None:
        existing.apply_changes(fields)
        sess.flush()
        return False
    sess.add(model(organization_id=org_id, **fields))
    sess.flush()
    return True


# ============================================================================
# Master Ingredients
# ============================================================================


def _derive_cost(fields: Dict, label: str, result: ImportResult) -> float:
    """Cost per recipe unit, or 0 with a warning when units or yield make it undefined."""
    try:
        return cost_per_recipe_unit(
            fields["current_price"],
            fields["recipe_unit_per_purchase_unit"],
            fields["yield_percent"],
        )
    except ValidationError as e:
        result.warnings.append(f"{label}: cost per recipe unit set to 0 ({'; '.join(e.errors)})")
        return 0.0


def import_master_ingredients(
    rows: Sequence[Mapping],
    dry_run: bool = False,
    batch_size: Optional[int] = None,
) -> ImportResult:
    """
    Import master ingredients, upserting by item code.

    Classification names (Major Group, Category, Sub-Category) are matched to
    taxonomy nodes by name; unknown names leave the level unset and add a
    warning. Rows whose units or yield make the recipe-unit cost undefined
    are imported with a cost of 0 and a warning.

    Args:
        rows: Spreadsheet rows keyed by column header
        dry_run: Validate and count without committing
        batch_size: Rows per transaction (default from config)

    Returns:
        ImportResult with counts and warnings

    Raises:
        AuthorizationError: If no organization is resolved
        ImportBatchError: If a batch fails
    """
    org_id = resolve_organization_id()
    result = ImportResult(MASTER_INGREDIENTS, dry_run=dry_run)

    records = []
    for row_number, row in enumerate(rows, start=2):
        fields = normalize_master_ingredient_row(row)
        if not fields["item_code"]:
            result.add_skip(f"Row {row_number}", "missing Item Code")
            continue
        if not fields["product"]:
            result.add_skip(f"Row {row_number} ({fields['item_code']})", "missing Product Name")
            continue
        fields["_label"] = f"Row {row_number} ({fields['item_code']})"
        records.append(fields)

    def _upsert_batch(sess: Session, batch: List[Dict], batch_result: ImportResult) -> None:
        for record in batch:
            fields = dict(record)
            label = fields.pop("_label")
            ids, warnings = food_taxonomy_service.lookup_classification_ids(
                fields.pop("major_group_name"),
                fields.pop("category_name"),
                fields.pop("sub_category_name"),
                session=sess,
            )
            batch_result.warnings.extend(f"{label}: {warning}" for warning in warnings)
            fields.update(ids)
            fields["cost_per_recipe_unit"] = _derive_cost(fields, label, batch_result)

            added = _upsert(
                sess,
                MasterIngredient,
                [MasterIngredient.item_code == fields["item_code"]],
                fields,
                org_id,
            )
            if added:
                batch_result.counts.added += 1
            else:
                batch_result.counts.updated += 1

    return _run_batches(MASTER_INGREDIENTS, records, _upsert_batch, result, batch_size)


# ============================================================================
# Prepared Items
# ============================================================================


def import_prepared_items(
    rows: Sequence[Mapping],
    dry_run: bool = False,
    batch_size: Optional[int] = None,
) -> ImportResult:
    """
    Import prepared items, upserting by item ID.

    Raises:
        AuthorizationError: If no organization is resolved
        ImportBatchError: If a batch fails
    """
    org_id = resolve_organization_id()
    result = ImportResult(PREPARED_ITEMS, dry_run=dry_run)

    records = []
    for row_number, row in enumerate(rows, start=2):
        fields = normalize_prepared_item_row(row)
        if not fields["item_id"]:
            result.add_skip(f"Row {row_number}", "missing Item ID")
            continue
        if not fields["product"]:
            result.add_skip(f"Row {row_number} ({fields['item_id']})", "missing PRODUCT")
            continue
        records.append(fields)

    def _upsert_batch(sess: Session, batch: List[Dict], batch_result: ImportResult) -> None:
        for fields in batch:
            added = _upsert(
                sess, PreparedItem, [PreparedItem.item_id == fields["item_id"]], fields, org_id
            )
            if added:
                batch_result.counts.added += 1
            else:
                batch_result.counts.updated += 1

    return _run_batches(PREPARED_ITEMS, records, _upsert_batch, result, batch_size)


# ============================================================================
# Inventory Counts
# ============================================================================


def import_inventory_counts(
    rows: Sequence[Mapping],
    count_date: Optional[date] = None,
    dry_run: bool = False,
    batch_size: Optional[int] = None,
) -> ImportResult:
    """
    Import inventory counts for one day, upserting by ingredient and date.

    Item ID cells are matched to master ingredient item codes; rows with an
    unknown or missing Item ID are skipped. Imported counts are "pending".

    Args:
        rows: Spreadsheet rows keyed by column header
        count_date: Day of the count (default today)
        dry_run: Validate and count without committing
        batch_size: Rows per transaction (default from config)

    Raises:
        AuthorizationError: If no organization is resolved
        ValidationError: If no row references a known ingredient
        ImportBatchError: If a batch fails
    """
    org_id = resolve_organization_id()
    user_id = resolve_user_id()
    count_date = count_date or today()
    result = ImportResult(INVENTORY_COUNTS, dry_run=dry_run)

    with session_scope() as sess:
        ingredient_ids = {
            code: ingredient_id
            for ingredient_id, code in sess.query(
                MasterIngredient.id, MasterIngredient.item_code
            ).filter(MasterIngredient.organization_id == org_id)
        }

    records = []
    for row_number, row in enumerate(rows, start=2):
        fields = normalize_inventory_count_row(row)
        item_code = fields.pop("item_code")
        if not item_code:
            result.add_skip(f"Row {row_number}", "missing Item ID")
            continue
        if item_code not in ingredient_ids:
            result.add_skip(f"Row {row_number} ({item_code})", "unknown Item ID")
            continue
        fields.update(
            master_ingredient_id=ingredient_ids[item_code],
            count_date=count_date,
            total_value=fields["quantity"] * fields["unit_cost"],
            counted_by=user_id,
            status=INVENTORY_STATUS_PENDING,
        )
        records.append(fields)

    if not records:
        raise ValidationError(["No valid inventory counts found in import data"])

    def _upsert_batch(sess: Session, batch: List[Dict], batch_result: ImportResult) -> None:
        for fields in batch:
            added = _upsert(
                sess,
                InventoryCount,
                [
                    InventoryCount.master_ingredient_id == fields["master_ingredient_id"],
                    InventoryCount.count_date == fields["count_date"],
                ],
                fields,
                org_id,
            )
            if added:
                batch_result.counts.added += 1
            else:
                batch_result.counts.updated += 1

    return _run_batches(INVENTORY_COUNTS, records, _upsert_batch, result, batch_size)


# ============================================================================
# Spreadsheet files
# ============================================================================


def _is_workbook(path: Path) -> bool:
    return path.suffix.lower() in WORKBOOK_SUFFIXES


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _read_csv_rows(path: Path) -> List[Dict[str, str]]:
    try:
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        text = path.read_text(encoding="latin-1")

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationError([f"{path.name}: no header row found"])
    return list(reader)


def _read_workbook_rows(path: Path) -> List[Dict[str, str]]:
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet_rows = workbook.worksheets[0].iter_rows(values_only=True)
        header_row = next(sheet_rows, None)
        headers = [_cell_text(cell).strip() for cell in header_row or ()]
        if not any(headers):
            raise ValidationError([f"{path.name}: no header row found"])

        rows = []
        for values in sheet_rows:
            if all(value is None or _cell_text(value).strip() == "" for value in values):
                continue
            rows.append(
                {
                    header: _cell_text(value)
                    for header, value in zip(headers, values)
                    if header
                }
            )
        return rows
    finally:
        workbook.close()


def read_spreadsheet_rows(file_path) -> List[Dict[str, str]]:
    """
    Read a CSV file or Excel workbook into row mappings keyed by header.

    ``.xlsx`` workbooks are read from their first sheet; blank rows are
    skipped and whole-number cells come back as "2" rather than "2.0".
    Anything else is read as CSV, trying UTF-8 (with or without BOM) first,
    then Latin-1.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the file has no header row
    """
    path = Path(file_path)
    if _is_workbook(path):
        rows = _read_workbook_rows(path)
    else:
        rows = _read_csv_rows(path)
    logger.info(f"Read {len(rows)} rows from {path}")
    return rows


def _template_rows(include_examples: bool) -> List[List[str]]:
    if not include_examples:
        return []
    return [
        [
            example.get(spec.header, "0" if spec.coercion == Coercion.FLAG else "")
            for spec in MASTER_INGREDIENT_COLUMNS
        ]
        for example in TEMPLATE_EXAMPLE_ROWS
    ]


def _write_template_workbook(path: Path, headers: List[str], rows: List[List[str]]) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = TEMPLATE_SHEET_TITLE
    sheet.append(headers)
    for row in rows:
        sheet.append(row)

    for column, header in enumerate(headers, start=1):
        note = TEMPLATE_HEADER_NOTES.get(header)
        if note:
            sheet.cell(row=1, column=column).comment = Comment(note, TEMPLATE_COMMENT_AUTHOR)
        sheet.column_dimensions[get_column_letter(column)].width = max(12, len(header) + 2)
    sheet.freeze_panes = "A2"

    instructions = workbook.create_sheet(INSTRUCTIONS_SHEET_TITLE)
    for line in TEMPLATE_INSTRUCTIONS:
        instructions.append([line])
    instructions.column_dimensions["A"].width = 60

    workbook.save(path)


def write_master_ingredients_template(file_path, include_examples: bool = True) -> Path:
    """
    Write the master ingredient import template.

    A ``.xlsx`` path gets a workbook with the template sheet (header
    comments describe each field) followed by an Instructions sheet; any
    other path gets a plain CSV.

    Args:
        file_path: Destination file
        include_examples: Add example rows below the header

    Returns:
        Path of the written file
    """
    path = Path(file_path)
    headers = headers_for(MASTER_INGREDIENT_COLUMNS)
    rows = _template_rows(include_examples)

    if _is_workbook(path):
        _write_template_workbook(path, headers, rows)
    else:
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            writer.writerows(rows)
    logger.info(f"Wrote master ingredient template to {path}")
    return path
