"""
Recipe version bump policy.

An update either leaves the version alone (only non-significant fields were
touched) or appends a history entry with the patch segment incremented. A
field is significant when it appears in SIGNIFICANT_FIELD_CHANGES; the
mapping also supplies the change-list line recorded for it.

There is no major/minor bump path.
"""

import re
from typing import Dict, List, Optional

from src.services.exceptions import ValidationError
from src.utils.constants import (
    INITIAL_RECIPE_VERSION,
    INITIAL_VERSION_NOTE,
    SIGNIFICANT_FIELD_CHANGES,
)
from src.utils.datetime_utils import utc_now_iso

_VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


def has_significant_changes(updates: Dict) -> bool:
    """True if the partial update touches any significant field."""
    return any(field in updates for field in SIGNIFICANT_FIELD_CHANGES)


def get_changes_list(updates: Dict) -> List[str]:
    """
    Human-readable change lines for the significant fields in an update.

    Lines follow the fixed field order of SIGNIFICANT_FIELD_CHANGES,
    not the order of keys in the update.
    """
    return [
        description
        for field, description in SIGNIFICANT_FIELD_CHANGES.items()
        if field in updates
    ]


def increment_version(version: str) -> str:
    """
    Increment the patch segment of a "major.minor.patch" version.

    Raises:
        ValidationError: If the version is not three dot-separated integers

    Example:
        >>> increment_version("1.2.3")
        '1.2.4'
    """
    match = _VERSION_PATTERN.match(version or "")
    if match is None:
        raise ValidationError([f"Invalid version '{version}': expected major.minor.patch"])
    major, minor, patch = (int(part) for part in match.groups())
    return f"{major}.{minor}.{patch + 1}"


def initial_version_history(author: Optional[str], date: Optional[str] = None) -> List[Dict]:
    """History for a newly created recipe: a single "Initial version" entry."""
    return [
        {
            "version": INITIAL_RECIPE_VERSION,
            "date": date or utc_now_iso(),
            "author": author,
            "changes": [INITIAL_VERSION_NOTE],
        }
    ]


def apply_recipe_update(
    recipe: Dict,
    updates: Dict,
    user_id: Optional[str],
    now: Optional[str] = None,
) -> Dict:
    """
    Merge a partial update into a recipe dict and apply the version policy.

    Args:
        recipe: Current recipe editor dict (not modified)
        updates: Fields to change
        user_id: Author recorded on the update (and on a new history entry)
        now: ISO timestamp to use; defaults to the current UTC time

    Returns:
        New recipe dict with last_modified and updated_by set, and when a
        significant field was touched, a bumped current_version and one more
        entry in versions
    """
    now = now or utc_now_iso()

    updated = {**recipe, **updates}
    updated["last_modified"] = now
    updated["updated_by"] = user_id

    if has_significant_changes(updates):
        new_version = increment_version(recipe.get("current_version") or INITIAL_RECIPE_VERSION)
        updated["versions"] = list(recipe.get("versions") or []) + [
            {
                "version": new_version,
                "date": now,
                "author": user_id,
                "changes": get_changes_list(updates),
            }
        ]
        updated["current_version"] = new_version
    else:
        updated["versions"] = list(recipe.get("versions") or [])
        updated["current_version"] = recipe.get("current_version")

    return updated
