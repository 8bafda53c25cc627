"""Tests for the SQL-backed asset catalog."""

from decimal import Decimal
from uuid import uuid4

import pytest

from asset_kernel.exceptions import AssetNotFoundError


class TestSqlAssetCatalog:

    def test_lookup(self, catalog, assets):
        snapshot = catalog.lookup(assets["A001"].asset_id)
        assert snapshot.asset_no == "A001"
        assert snapshot.cost_center == "CC-100"
        assert snapshot.book_value == Decimal("500.00")
        assert snapshot.location == "Plant 1"

    def test_lookup_missing(self, catalog, assets):
        assert catalog.lookup(uuid4()) is None

    def test_register_with_explicit_id(self, catalog):
        asset_id = uuid4()
        snapshot = catalog.register("Z001", "Crane", "CC-900", Decimal("10"), asset_id=asset_id)
        assert snapshot.asset_id == asset_id
        assert catalog.lookup(asset_id).name == "Crane"

    def test_mutate_fields(self, catalog, assets, clock):
        asset_id = assets["A002"].asset_id
        catalog.mutate_fields(asset_id, cost_center="CC-300", location="Warehouse 3")
        snapshot = catalog.lookup(asset_id)
        assert snapshot.cost_center == "CC-300"
        assert snapshot.location == "Warehouse 3"
        assert snapshot.book_value == Decimal("250.50")

    def test_mutate_single_field(self, catalog, assets):
        asset_id = assets["A001"].asset_id
        catalog.mutate_fields(asset_id, location="Yard")
        snapshot = catalog.lookup(asset_id)
        assert snapshot.cost_center == "CC-100"
        assert snapshot.location == "Yard"

    def test_mutate_missing_asset(self, catalog):
        with pytest.raises(AssetNotFoundError):
            catalog.mutate_fields(uuid4(), cost_center="CC-300")

    def test_mutation_logged(self, catalog, assets, captured_logs):
        catalog.mutate_fields(assets["B001"].asset_id, cost_center="CC-300")
        records = [r for r in captured_logs() if r["message"] == "asset_fields_mutated"]
        assert records[0]["asset_no"] == "B001"
        assert records[0]["cost_center"] == "CC-300"
