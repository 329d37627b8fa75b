"""
Unit Tests - Entity Resolver
"""
import pytest
from sqlalchemy import func, select

from sales_etl.config import ImportSettings
from sales_etl.database.models import Client, PaymentMethod, Product, Store
from sales_etl.transformation.resolver import (
    EntityKind,
    EntityResolver,
    ResolutionError,
    key_text,
    normalize_key,
)


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


class TestKeys:
    """Tests for natural key normalization"""

    def test_key_text(self):
        """Test trimming and integral float codes"""
        assert key_text("  Latte ") == "Latte"
        assert key_text(1024.0) == "1024"
        assert key_text(10.5) == "10.5"
        assert key_text("   ") is None
        assert key_text(None) is None

    def test_normalize_key(self):
        """Test case folding"""
        assert normalize_key(" LATTE ") == "latte"
        assert normalize_key("") is None


class TestEntityResolver:
    """Tests for get-or-create resolution"""

    async def test_case_and_whitespace_share_identity(self, resolver, test_db):
        """Test 'Latte', 'latte ' and ' LATTE' resolve to one product"""
        first = await resolver.resolve_product("Latte", category="Coffee", base_price=3.5)
        second = await resolver.resolve_product("latte ")
        third = await resolver.resolve_product(" LATTE")
        await test_db.commit()
        resolver.commit_row()

        assert first == second == third
        assert await _count(test_db, Product) == 1

        product = await test_db.get(Product, first)
        assert product.name == "Latte"
        assert product.category == "Coffee"
        assert product.base_price == 3.5

    async def test_distinct_keys(self, resolver, test_db):
        """Test different names create different rows"""
        latte = await resolver.resolve_product("Latte")
        mocha = await resolver.resolve_product("Mocha")

        assert latte != mocha
        assert resolver.created[EntityKind.PRODUCT] == 2

    async def test_missing_product_fails(self, resolver):
        """Test products have no fallback"""
        with pytest.raises(ResolutionError):
            await resolver.resolve_product("   ")

    async def test_missing_client_is_anonymous(self, resolver, test_db):
        """Test empty client codes resolve to no client"""
        assert await resolver.resolve_client(None) is None
        assert await resolver.resolve_client("  ") is None
        assert await _count(test_db, Client) == 0

    async def test_numeric_client_codes(self, resolver):
        """Test 1024 and 1024.0 are the same client"""
        assert await resolver.resolve_client(1024) == await resolver.resolve_client(1024.0)

    async def test_default_store_is_deterministic(self, resolver, test_db):
        """Test every missing store resolves to the same sentinel row"""
        first = await resolver.resolve_store(None)
        second = await resolver.resolve_store("")
        explicit = await resolver.resolve_store("main store")

        assert first == second == explicit
        store = await test_db.get(Store, first)
        assert store.name == "Main Store"
        assert store.address == "No address"
        assert store.city == "No city"

    async def test_default_payment_method(self, resolver, test_db):
        """Test missing payment types fall back to the sentinel"""
        default = await resolver.resolve_payment_method(None)
        cash = await resolver.resolve_payment_method("CASH")

        assert default == cash
        method = await test_db.get(PaymentMethod, default)
        assert method.payment_type == "Cash"
        assert method.description == "Cash payment"

    async def test_configured_sentinels(self, test_db):
        """Test sentinel names come from settings"""
        settings = ImportSettings(default_store_name="Online", default_payment_type="Unknown")
        resolver = EntityResolver(test_db, settings)

        store = await test_db.get(Store, await resolver.resolve_store(None))
        method = await test_db.get(PaymentMethod, await resolver.resolve_payment_method(None))

        assert store.name == "Online"
        assert method.payment_type == "Unknown"

    async def test_rollback_discards_cache(self, resolver, test_db):
        """Test identifiers cached during a rolled-back row are forgotten"""
        await resolver.resolve_store("Downtown")
        await test_db.rollback()
        resolver.rollback_row()

        assert resolver.cached(EntityKind.STORE) == {}
        assert await _count(test_db, Store) == 0

        store_id = await resolver.resolve_store("Downtown")
        await test_db.commit()
        resolver.commit_row()

        assert await _count(test_db, Store) == 1
        assert resolver.cached(EntityKind.STORE) == {"downtown": store_id}

    async def test_committed_entries_survive_later_rollback(self, resolver, test_db):
        """Test a rollback only drops the current row's entries"""
        airport = await resolver.resolve_store("Airport")
        await test_db.commit()
        resolver.commit_row()

        await resolver.resolve_store("Downtown")
        await test_db.rollback()
        resolver.rollback_row()

        assert resolver.cached(EntityKind.STORE) == {"airport": airport}

    async def test_existing_rows_are_reused(self, test_db, import_settings):
        """Test a fresh resolver finds rows persisted earlier"""
        first = EntityResolver(test_db, import_settings)
        store_id = await first.resolve_store("Downtown")
        await test_db.commit()

        second = EntityResolver(test_db, import_settings)
        assert await second.resolve_store("  DOWNTOWN") == store_id
        assert second.created[EntityKind.STORE] == 0
        assert await _count(test_db, Store) == 1

    async def test_non_ascii_keys_match_existing_rows(self, test_db, import_settings):
        """Test 'Ñuñoa' stored by one resolver is found as 'ñuñoa' by the next"""
        first = EntityResolver(test_db, import_settings)
        store_id = await first.resolve_store("Ñuñoa")
        await test_db.commit()

        second = EntityResolver(test_db, import_settings)
        assert await second.resolve_store("ñuñoa") == store_id
        assert await second.resolve_store("ÑUÑOA") == store_id
        assert second.created[EntityKind.STORE] == 0
        assert await _count(test_db, Store) == 1

    async def test_rollback_undoes_created_count(self, resolver, test_db):
        """Test rows inserted by a rolled-back row are not counted as created"""
        await resolver.resolve_store("Airport")
        await test_db.commit()
        resolver.commit_row()

        await resolver.resolve_store("Downtown")
        await resolver.resolve_store("airport")
        await test_db.rollback()
        resolver.rollback_row()

        assert resolver.created[EntityKind.STORE] == 1
        assert await _count(test_db, Store) == 1
