"""Tests for the prepared item catalog service."""

import pytest

from src.services import prepared_item_service as svc
from src.services.exceptions import PreparedItemNotFound, ValidationError


class TestPreparedItems:
    def test_create_and_get(self, demi_glace):
        fetched = svc.get_prepared_item(demi_glace["id"])

        assert fetched["product"] == "Demi Glace"
        assert fetched["yield_percent"] == 100.0
        assert fetched["allergen_milk"] is True

    def test_duplicate_item_id(self, demi_glace):
        with pytest.raises(ValidationError) as exc:
            svc.create_prepared_item({"item_id": "PREP-001", "product": "Another"})
        assert exc.value.errors == ["Item ID 'PREP-001' already exists"]

    def test_negative_cost_rejected(self, org_db):
        with pytest.raises(ValidationError):
            svc.create_prepared_item({"item_id": "P2", "product": "Stock", "final_cost": -1})

    def test_list_filters(self, demi_glace):
        svc.create_prepared_item({"item_id": "PREP-002", "product": "Aioli", "station": "Garde Manger"})

        assert [i["product"] for i in svc.list_prepared_items()] == ["Aioli", "Demi Glace"]
        assert [i["product"] for i in svc.list_prepared_items(station="Saucier")] == ["Demi Glace"]
        assert [i["product"] for i in svc.list_prepared_items(search="sauce")] == ["Demi Glace"]

    def test_update(self, demi_glace):
        updated = svc.update_prepared_item(demi_glace["id"], {"final_cost": 15.0})
        assert updated["final_cost"] == 15.0
        assert updated["item_id"] == "PREP-001"

    def test_delete_and_clear(self, demi_glace):
        svc.create_prepared_item({"item_id": "PREP-002", "product": "Aioli"})

        assert svc.delete_prepared_item(demi_glace["id"]) is True
        with pytest.raises(PreparedItemNotFound):
            svc.get_prepared_item(demi_glace["id"])
        assert svc.clear_prepared_items() == 1
