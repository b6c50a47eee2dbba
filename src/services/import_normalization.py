"""
Spreadsheet row normalization - the single place import values are coerced.

Every import reads rows as ``{column header: cell value}`` mappings and
passes them through the column tables below. No other module parses
spreadsheet cells.

Coercion table:

    ========  ===================================  =======================
    Kind      Accepted input                       Blank / unparseable
    ========  ===================================  =======================
    TEXT      any value, whitespace trimmed        None
    NUMBER    decimal string                       0.0
    CURRENCY  decimal with ``$`` and ``,`` removed  0.0
    PERCENT   decimal with ``%`` removed           column default / 0.0
    FLAG      "1" or "true" (any case) -> True     False
    ========  ===================================  =======================

Yield % columns default to 100 when blank; an unparseable yield is 0.
Headers are matched ignoring surrounding whitespace and case.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.utils.constants import (
    ALLERGEN_COLUMNS,
    DEFAULT_YIELD_PERCENT,
    MAX_CUSTOM_ALLERGENS,
    TRUE_FLAG_VALUES,
)


class Coercion(str, Enum):
    """How a spreadsheet cell is converted."""

    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENT = "percent"
    FLAG = "flag"


@dataclass(frozen=True)
class ColumnSpec:
    """One spreadsheet column: header, target field, coercion and blank default."""

    header: str
    field: str
    coercion: Coercion = Coercion.TEXT
    blank_default: Any = None


# ============================================================================
# Cell coercion
# ============================================================================


def parse_text(value) -> Optional[str]:
    """Trim a cell; blank cells become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_float(text: Optional[str], blank_default: float) -> float:
    if text is None:
        return blank_default
    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_number(value, blank_default: float = 0.0) -> float:
    return _parse_float(parse_text(value), blank_default)


def parse_currency(value, blank_default: float = 0.0) -> float:
    """
    Parse a money cell such as "$1,234.50".

    Example:
        >>> parse_currency("$1,234.50")
        1234.5
    """
    text = parse_text(value)
    if text is not None:
        text = parse_text(text.replace("$", "").replace(",", ""))
    return _parse_float(text, blank_default)


def parse_percent(value, blank_default: float = 0.0) -> float:
    """Parse a percent cell such as "85%" into 85.0."""
    text = parse_text(value)
    if text is not None:
        text = parse_text(text.replace("%", ""))
    return _parse_float(text, blank_default)


def parse_flag(value) -> bool:
    """True only for the sentinel strings "1" and "true"."""
    text = parse_text(value)
    return text is not None and text.lower() in TRUE_FLAG_VALUES


_PARSERS = {
    Coercion.NUMBER: parse_number,
    Coercion.CURRENCY: parse_currency,
    Coercion.PERCENT: parse_percent,
}


def coerce_cell(value, spec: ColumnSpec):
    """Apply a column's coercion to one cell value."""
    if spec.coercion == Coercion.TEXT:
        text = parse_text(value)
        return text if text is not None else spec.blank_default
    if spec.coercion == Coercion.FLAG:
        return parse_flag(value)
    blank_default = spec.blank_default if spec.blank_default is not None else 0.0
    return _PARSERS[spec.coercion](value, blank_default)


# ============================================================================
# Column tables
# ============================================================================


def _allergen_columns(include_custom: bool = True) -> Tuple[ColumnSpec, ...]:
    columns = [
        ColumnSpec(header, f"allergen_{name}", Coercion.FLAG)
        for name, header in ALLERGEN_COLUMNS.items()
    ]
    if include_custom:
        for slot in range(1, MAX_CUSTOM_ALLERGENS + 1):
            columns.append(ColumnSpec(f"Custom Allergen {slot} Name", f"allergen_custom{slot}_name"))
            columns.append(
                ColumnSpec(f"Custom Allergen {slot} Active", f"allergen_custom{slot}_active", Coercion.FLAG)
            )
        columns.append(ColumnSpec("Allergen Notes", "allergen_notes"))
    return tuple(columns)


MASTER_INGREDIENT_COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec("Item Code", "item_code"),
    ColumnSpec("Major Group", "major_group_name"),
    ColumnSpec("Category", "category_name"),
    ColumnSpec("Sub-Category", "sub_category_name"),
    ColumnSpec("Product Name", "product"),
    ColumnSpec("Vendor", "vendor"),
    ColumnSpec("Case Size", "case_size"),
    ColumnSpec("Units/Case", "units_per_case"),
    ColumnSpec("Case Price", "current_price", Coercion.CURRENCY),
    ColumnSpec("Unit of Measure", "unit_of_measure"),
    ColumnSpec("Recipe Units/Case", "recipe_unit_per_purchase_unit", Coercion.NUMBER),
    ColumnSpec("Recipe Unit Type", "recipe_unit_type"),
    ColumnSpec("Yield %", "yield_percent", Coercion.PERCENT, DEFAULT_YIELD_PERCENT),
    ColumnSpec("Storage Area", "storage_area"),
    ColumnSpec("Image URL", "image_url"),
) + _allergen_columns()

PREPARED_ITEM_COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec("Item ID", "item_id"),
    ColumnSpec("CATEGORY", "category"),
    ColumnSpec("PRODUCT", "product"),
    ColumnSpec("STATION", "station"),
    ColumnSpec("SUB CATEGORY", "sub_category"),
    ColumnSpec("STORAGE AREA", "storage_area"),
    ColumnSpec("CONTAINER", "container"),
    ColumnSpec("CONTAINER TYPE", "container_type"),
    ColumnSpec("SHELF LIFE", "shelf_life"),
    ColumnSpec("RECIPE UNIT", "recipe_unit"),
    ColumnSpec("COST PER R/U", "cost_per_recipe_unit", Coercion.CURRENCY),
    ColumnSpec("YIELD %", "yield_percent", Coercion.PERCENT, DEFAULT_YIELD_PERCENT),
    ColumnSpec("FINAL $", "final_cost", Coercion.CURRENCY),
) + _allergen_columns()

INVENTORY_COUNT_COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec("Item ID", "item_code"),
    ColumnSpec("Quantity", "quantity", Coercion.NUMBER),
    ColumnSpec("Unit Cost", "unit_cost", Coercion.CURRENCY),
    ColumnSpec("Location", "location"),
    ColumnSpec("Notes", "notes"),
)


def headers_for(columns: Tuple[ColumnSpec, ...]) -> List[str]:
    """Spreadsheet headers of a column table, in template order."""
    return [spec.header for spec in columns]


# ============================================================================
# Row normalization
# ============================================================================


def _header_key(header) -> str:
    return str(header).strip().lower()


def normalize_row(row: Mapping[str, Any], columns: Tuple[ColumnSpec, ...]) -> Dict[str, Any]:
    """
    Convert one spreadsheet row into model field values.

    Every column in the table yields a field; missing cells are treated as
    blank. Unknown headers are ignored.

    Args:
        row: Mapping of column header to cell value
        columns: Column table (e.g. MASTER_INGREDIENT_COLUMNS)

    Returns:
        Dict of field name to coerced value
    """
    cells = {_header_key(header): value for header, value in row.items() if header is not None}
    return {spec.field: coerce_cell(cells.get(_header_key(spec.header)), spec) for spec in columns}


def normalize_master_ingredient_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Normalize a master ingredient row.

    Classification cells stay as names in major_group_name, category_name and
    sub_category_name; the import service resolves them to taxonomy ids.
    """
    return normalize_row(row, MASTER_INGREDIENT_COLUMNS)


def normalize_prepared_item_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    return normalize_row(row, PREPARED_ITEM_COLUMNS)


def normalize_inventory_count_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    return normalize_row(row, INVENTORY_COUNT_COLUMNS)
