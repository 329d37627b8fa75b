"""
Entity Resolver

Maps raw natural-key values (product names, client codes, payment types,
store names) to surrogate identifiers, creating reference rows the first
time a key is seen.

Resolution order for a normalized key:
1. the in-memory cache owned by this resolver
2. an existing row in the store whose key matches case-insensitively
3. a new row with the supplied attributes

The resolved identifier is cached under the normalized key. Rows are
resolved one at a time; cache entries added while a row is in flight are
tracked so they can be dropped if that row's transaction rolls back.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

import structlog
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from sales_etl.config import ImportSettings
from sales_etl.database.models import Base, Client, PaymentMethod, Product, Store

logger = structlog.get_logger(__name__)


class EntityKind(str, Enum):
    """Reference entity types"""
    PRODUCT = "product"
    CLIENT = "client"
    PAYMENT_METHOD = "payment_method"
    STORE = "store"


@dataclass(frozen=True)
class _Binding:
    model: Type[Base]
    id_column: Any
    key_column: Any


_BINDINGS: Dict[EntityKind, _Binding] = {
    EntityKind.PRODUCT: _Binding(Product, Product.product_id, Product.name),
    EntityKind.CLIENT: _Binding(Client, Client.client_id, Client.anonymous_code),
    EntityKind.PAYMENT_METHOD: _Binding(
        PaymentMethod, PaymentMethod.payment_method_id, PaymentMethod.payment_type
    ),
    EntityKind.STORE: _Binding(Store, Store.store_id, Store.name),
}


class ResolutionError(Exception):
    """A mandatory reference could not be resolved for a row"""


def key_text(value: Any) -> Optional[str]:
    """
    Display form of a natural key: trimmed text, with integral floats
    written without a decimal part (Excel stores codes like 1024 as 1024.0).
    Empty values yield None.
    """
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def normalize_key(value: Any) -> Optional[str]:
    """Cache key of a natural key: trimmed and lowercased"""
    text = key_text(value)
    return text.lower() if text is not None else None


class EntityResolver:
    """
    Get-or-create over the four reference tables for one import run.

    The resolver owns its caches; create one per run and discard it
    afterwards. It is not safe for concurrent use.

    Example:
        resolver = EntityResolver(session, settings.importer)
        store_id = await resolver.resolve_store("  downtown ")
    """

    def __init__(self, session: AsyncSession, settings: Optional[ImportSettings] = None):
        self.session = session
        self.settings = settings or ImportSettings()
        self._caches: Dict[EntityKind, Dict[str, int]] = {kind: {} for kind in EntityKind}
        # (kind, key, inserted) for every cache entry added by the current row
        self._pending: List[Tuple[EntityKind, str, bool]] = []
        self.created: Counter = Counter()

    # ------------------------------------------------------------------
    # Row transaction bookkeeping
    # ------------------------------------------------------------------

    def commit_row(self) -> None:
        """Keep the cache entries added by the current row"""
        self._pending.clear()

    def rollback_row(self) -> None:
        """Forget cache entries added by a row whose transaction rolled back"""
        for kind, key, inserted in self._pending:
            self._caches[kind].pop(key, None)
            if inserted:
                self.created[kind] -= 1
        if self._pending:
            logger.debug("Discarded uncommitted cache entries", count=len(self._pending))
        self._pending.clear()

    def cached(self, kind: EntityKind) -> Dict[str, int]:
        """Snapshot of the cache for one entity type"""
        return dict(self._caches[kind])

    # ------------------------------------------------------------------
    # Public resolution API
    # ------------------------------------------------------------------

    async def resolve_product(
        self,
        name: Any,
        category: Any = None,
        base_price: Optional[float] = None,
    ) -> int:
        """
        Resolve a product by name.

        Raises:
            ResolutionError: If the name is empty
        """
        display = key_text(name)
        if display is None:
            # Products have no fallback entity
            raise ResolutionError("Product name is missing")
        return await self._get_or_create(
            EntityKind.PRODUCT,
            display,
            category=key_text(category),
            base_price=base_price,
        )

    async def resolve_client(self, code: Any, client_type: Any = None) -> Optional[int]:
        """Resolve a client by anonymous code. Empty codes are anonymous sales."""
        display = key_text(code)
        if display is None:
            return None
        return await self._get_or_create(
            EntityKind.CLIENT,
            display,
            client_type=key_text(client_type),
        )

    async def resolve_payment_method(self, payment_type: Any, description: Any = None) -> int:
        """Resolve a payment method, falling back to the configured default type"""
        display = key_text(payment_type)
        if display is None:
            return await self._get_or_create(
                EntityKind.PAYMENT_METHOD,
                self.settings.default_payment_type,
                description=self.settings.default_payment_description,
            )
        return await self._get_or_create(
            EntityKind.PAYMENT_METHOD,
            display,
            description=key_text(description),
        )

    async def resolve_store(self, name: Any, address: Any = None, city: Any = None) -> int:
        """Resolve a store, falling back to the configured default store"""
        display = key_text(name)
        if display is None:
            return await self._get_or_create(
                EntityKind.STORE,
                self.settings.default_store_name,
                address=self.settings.default_store_address,
                city=self.settings.default_store_city,
            )
        return await self._get_or_create(
            EntityKind.STORE,
            display,
            address=key_text(address),
            city=key_text(city),
        )

    # ------------------------------------------------------------------
    # Get-or-create
    # ------------------------------------------------------------------

    async def _get_or_create(self, kind: EntityKind, display: str, **attributes: Any) -> int:
        key = display.lower()
        cache = self._caches[kind]

        identifier = cache.get(key)
        if identifier is not None:
            return identifier

        binding = _BINDINGS[kind]
        result = await self.session.execute(
            select(binding.id_column)
            .where(func.lower(func.trim(binding.key_column)) == key)
            .order_by(binding.id_column)
            .limit(1)
        )
        identifier = result.scalar_one_or_none()
        inserted = identifier is None

        if inserted:
            result = await self.session.execute(
                insert(binding.model).values({binding.key_column.key: display, **attributes})
            )
            identifier = result.inserted_primary_key[0]
            self.created[kind] += 1
            logger.debug("Created reference entity", entity=kind.value, key=display, id=identifier)

        cache[key] = identifier
        self._pending.append((kind, key, inserted))
        return identifier
