"""
Allergen flag columns shared by master ingredients and prepared items.

Each fixed allergen is stored as an ``allergen_<name>`` boolean column; up to
three organization-defined allergens are stored as name/active pairs.
"""

from typing import Dict, List

from sqlalchemy import Boolean, Column, String, Text

from src.utils.constants import ALLERGENS, MAX_CUSTOM_ALLERGENS


class AllergenFlagsMixin:
    """Boolean allergen columns plus three custom allergen slots."""

    allergen_peanut = Column(Boolean, nullable=False, default=False)
    allergen_crustacean = Column(Boolean, nullable=False, default=False)
    allergen_treenut = Column(Boolean, nullable=False, default=False)
    allergen_shellfish = Column(Boolean, nullable=False, default=False)
    allergen_sesame = Column(Boolean, nullable=False, default=False)
    allergen_soy = Column(Boolean, nullable=False, default=False)
    allergen_fish = Column(Boolean, nullable=False, default=False)
    allergen_wheat = Column(Boolean, nullable=False, default=False)
    allergen_milk = Column(Boolean, nullable=False, default=False)
    allergen_sulphite = Column(Boolean, nullable=False, default=False)
    allergen_egg = Column(Boolean, nullable=False, default=False)
    allergen_gluten = Column(Boolean, nullable=False, default=False)
    allergen_mustard = Column(Boolean, nullable=False, default=False)
    allergen_celery = Column(Boolean, nullable=False, default=False)
    allergen_garlic = Column(Boolean, nullable=False, default=False)
    allergen_onion = Column(Boolean, nullable=False, default=False)
    allergen_nitrite = Column(Boolean, nullable=False, default=False)
    allergen_mushroom = Column(Boolean, nullable=False, default=False)
    allergen_hot_pepper = Column(Boolean, nullable=False, default=False)
    allergen_citrus = Column(Boolean, nullable=False, default=False)
    allergen_pork = Column(Boolean, nullable=False, default=False)

    allergen_custom1_name = Column(String(100), nullable=True)
    allergen_custom1_active = Column(Boolean, nullable=False, default=False)
    allergen_custom2_name = Column(String(100), nullable=True)
    allergen_custom2_active = Column(Boolean, nullable=False, default=False)
    allergen_custom3_name = Column(String(100), nullable=True)
    allergen_custom3_active = Column(Boolean, nullable=False, default=False)

    allergen_notes = Column(Text, nullable=True)

    def get_allergen_flags(self) -> Dict[str, bool]:
        """
        Map every fixed allergen name to its flag.

        Returns:
            Dict like {"peanut": False, "milk": True, ...}
        """
        return {name: bool(getattr(self, f"allergen_{name}")) for name in ALLERGENS}

    def get_custom_allergens(self) -> List[Dict]:
        """
        Custom allergen slots that have a name.

        Returns:
            List of {"name": str, "active": bool}
        """
        custom = []
        for slot in range(1, MAX_CUSTOM_ALLERGENS + 1):
            name = getattr(self, f"allergen_custom{slot}_name")
            if name:
                custom.append(
                    {"name": name, "active": bool(getattr(self, f"allergen_custom{slot}_active"))}
                )
        return custom

    def get_active_allergens(self) -> List[str]:
        """
        Names of all allergens present, fixed ones first.

        Returns:
            List of allergen names (custom allergens by their given name)
        """
        active = [name for name, flag in self.get_allergen_flags().items() if flag]
        active.extend(c["name"] for c in self.get_custom_allergens() if c["active"])
        return active
