"""Tests for SQLite product store."""

import pytest

from src.core.entities.product import Product
from src.core.exceptions import DuplicateProductError
from src.infrastructure.storage.sqlite.product_store import SQLiteProductStore


class TestSQLiteProductStore:
    async def test_create_and_get(self, sqlite_db):
        store = SQLiteProductStore()
        created = await store.create_product(
            Product(
                id="NIP-1",
                sku="NIP-EXT-5L",
                name="Weatherbond 5L",
                brand="Nippon",
                category="Exterior",
                unit="can",
                minimum_stock=4,
            )
        )

        fetched = await store.get_product("NIP-1")

        assert fetched is not None
        assert fetched == created
        assert fetched.minimum_stock == 4

    async def test_get_missing(self, sqlite_db):
        assert await SQLiteProductStore().get_product("nope") is None

    async def test_duplicate_id_rejected(self, paints):
        with pytest.raises(DuplicateProductError):
            await SQLiteProductStore().create_product(
                Product(id="P1", sku="OTHER-SKU", name="Copy")
            )

    async def test_duplicate_sku_rejected(self, paints):
        with pytest.raises(DuplicateProductError) as exc_info:
            await SQLiteProductStore().create_product(
                Product(id="P9", sku="SKU-P1", name="Copy")
            )
        assert exc_info.value.details["sku"] == "SKU-P1"

    async def test_list_ordered_by_name(self, paints):
        products = await SQLiteProductStore().list_products()
        assert [p.name for p in products] == ["Alpha Gloss", "Beta Matt", "Gamma Primer"]

    async def test_list_paging_and_category(self, paints):
        store = SQLiteProductStore()

        page = await store.list_products(limit=1, offset=1)
        assert [p.id for p in page] == ["P2"]

        exterior = await store.list_products(category="Exterior")
        assert [p.id for p in exterior] == ["P1", "P3"]

        everything = await store.list_products(limit=None, offset=1)
        assert [p.id for p in everything] == ["P2", "P3"]

    async def test_get_products_skips_unknown(self, paints):
        products = await SQLiteProductStore().get_products(["P3", "missing", "P1"])
        assert [p.id for p in products] == ["P1", "P3"]

    async def test_get_products_empty(self, sqlite_db):
        assert await SQLiteProductStore().get_products([]) == []
