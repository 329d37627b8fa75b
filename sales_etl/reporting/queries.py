"""
Preset Queries

Read-only aggregate queries over the normalized tables. They depend only
on table and column names and foreign keys, never on load order.
Ad-hoc SQL is accepted when it starts with a read-only keyword and runs
in a transaction that is always rolled back.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import Select, desc, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from sales_etl.database.models import Client, PaymentMethod, Product, Sale, Store
from sales_etl.database.schema import ENTITY_TABLES


@dataclass(frozen=True)
class PresetQuery:
    """A named read-only query"""
    name: str
    description: str
    build: Callable[[int], Select]


def recent_sales(limit: int) -> Select:
    return (
        select(
            Sale.sale_id,
            Sale.sale_timestamp,
            Product.name.label("product"),
            Store.name.label("store"),
            PaymentMethod.payment_type.label("payment_type"),
            Client.anonymous_code.label("client"),
            Sale.quantity,
            Sale.total_amount,
        )
        .join(Product, Sale.product_id == Product.product_id)
        .join(Store, Sale.store_id == Store.store_id)
        .join(PaymentMethod, Sale.payment_method_id == PaymentMethod.payment_method_id)
        .outerjoin(Client, Sale.client_id == Client.client_id)
        .order_by(desc(Sale.sale_timestamp), desc(Sale.sale_id))
        .limit(limit)
    )


def sales_by_product(limit: int) -> Select:
    return (
        select(
            Product.name.label("product"),
            Product.category,
            func.count(Sale.sale_id).label("sales_count"),
            func.sum(Sale.quantity).label("units"),
            func.avg(Sale.unit_price).label("avg_price"),
            func.sum(Sale.total_amount).label("revenue"),
        )
        .join(Sale, Sale.product_id == Product.product_id)
        .group_by(Product.product_id, Product.name, Product.category)
        .order_by(Product.name)
        .limit(limit)
    )


def daily_totals(limit: int) -> Select:
    return (
        select(
            Sale.sale_date,
            func.count(Sale.sale_id).label("sales_count"),
            func.sum(Sale.total_amount).label("revenue"),
        )
        .group_by(Sale.sale_date)
        .order_by(desc(Sale.sale_date))
        .limit(limit)
    )


def top_products(limit: int) -> Select:
    return (
        select(
            Product.name.label("product"),
            func.count(Sale.sale_id).label("sales_count"),
            func.sum(Sale.total_amount).label("revenue"),
        )
        .join(Sale, Sale.product_id == Product.product_id)
        .group_by(Product.product_id, Product.name)
        .order_by(desc("revenue"))
        .limit(limit)
    )


def monthly_revenue(limit: int) -> Select:
    return (
        select(
            Sale.month_number,
            Sale.month_name,
            func.count(Sale.sale_id).label("sales_count"),
            func.sum(Sale.total_amount).label("revenue"),
        )
        .group_by(Sale.month_number, Sale.month_name)
        .order_by(Sale.month_number)
        .limit(limit)
    )


def client_analysis(limit: int) -> Select:
    return (
        select(
            Client.anonymous_code.label("client"),
            Client.total_purchases,
            Client.total_spent,
            Client.first_purchase_date,
            Client.last_purchase_date,
        )
        .where(Client.total_purchases > 0)
        .order_by(desc(Client.total_spent))
        .limit(limit)
    )


def store_performance(limit: int) -> Select:
    return (
        select(
            Store.name.label("store"),
            func.count(Sale.sale_id).label("sales_count"),
            func.coalesce(func.sum(Sale.total_amount), 0).label("revenue"),
        )
        .outerjoin(Sale, Sale.store_id == Store.store_id)
        .group_by(Store.store_id, Store.name)
        .order_by(desc("revenue"))
        .limit(limit)
    )


def payment_preferences(limit: int) -> Select:
    return (
        select(
            PaymentMethod.payment_type,
            func.count(Sale.sale_id).label("sales_count"),
            func.coalesce(func.sum(Sale.total_amount), 0).label("revenue"),
        )
        .outerjoin(Sale, Sale.payment_method_id == PaymentMethod.payment_method_id)
        .group_by(PaymentMethod.payment_method_id, PaymentMethod.payment_type)
        .order_by(desc("sales_count"))
        .limit(limit)
    )


def sales_by_day_period(limit: int) -> Select:
    return (
        select(
            Sale.day_period,
            func.count(Sale.sale_id).label("sales_count"),
            func.sum(Sale.total_amount).label("revenue"),
        )
        .group_by(Sale.day_period)
        .order_by(desc("sales_count"))
        .limit(limit)
    )


def category_analysis(limit: int) -> Select:
    return (
        select(
            Product.category,
            func.count(func.distinct(Product.product_id)).label("products"),
            func.count(Sale.sale_id).label("sales_count"),
            func.sum(Sale.total_amount).label("revenue"),
        )
        .join(Sale, Sale.product_id == Product.product_id)
        .group_by(Product.category)
        .order_by(desc("revenue"))
        .limit(limit)
    )


PRESET_QUERIES: Dict[str, PresetQuery] = {
    query.name: query
    for query in (
        PresetQuery("recent-sales", "Most recent sales with product names", recent_sales),
        PresetQuery("sales-by-product", "Sales summary by product", sales_by_product),
        PresetQuery("daily-totals", "Daily sales totals", daily_totals),
        PresetQuery("top-products", "Top selling products by revenue", top_products),
        PresetQuery("monthly-revenue", "Monthly revenue trend", monthly_revenue),
        PresetQuery("clients", "Client purchase statistics", client_analysis),
        PresetQuery("stores", "Store performance comparison", store_performance),
        PresetQuery("payment-methods", "Payment method preferences", payment_preferences),
        PresetQuery("day-periods", "Sales by time of day", sales_by_day_period),
        PresetQuery("categories", "Product category analysis", category_analysis),
    )
}


async def run_preset(session: AsyncSession, name: str, limit: int = 20) -> List[Dict[str, Any]]:
    """
    Execute a preset query.

    Raises:
        KeyError: If the preset does not exist
    """
    if name not in PRESET_QUERIES:
        raise KeyError(f"Unknown preset query: {name}")
    result = await session.execute(PRESET_QUERIES[name].build(limit))
    return [dict(row) for row in result.mappings().all()]


READ_ONLY_KEYWORDS = ("select", "with", "values", "explain")


async def run_sql(session: AsyncSession, sql: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Execute one ad-hoc read-only statement.

    The statement runs in its own transaction, which is rolled back
    whatever happens. On SQLite the connection is also switched to
    query_only, so a write hidden behind WITH fails instead of landing.

    Args:
        session: Session on the loaded store
        sql: A single SELECT, WITH, VALUES or EXPLAIN statement
        limit: Maximum rows to return (all when None)

    Raises:
        ValueError: If the statement does not start with a read-only keyword
    """
    statement = sql.strip().rstrip(";").strip()
    match = re.match(r"\w+", statement)
    keyword = match.group(0).lower() if match else ""
    if keyword not in READ_ONLY_KEYWORDS:
        raise ValueError(
            f"Only read-only statements are allowed ({', '.join(k.upper() for k in READ_ONLY_KEYWORDS)})"
        )

    await session.rollback()
    dialect = session.get_bind().dialect.name
    try:
        # NullPool connections are closed on release, so the pragma ends with the rollback
        if dialect == "sqlite":
            await session.execute(text("PRAGMA query_only = ON"))
        elif dialect == "postgresql":
            await session.execute(text("SET TRANSACTION READ ONLY"))
        result = await session.execute(text(statement))
        if not result.returns_rows:
            return []
        mappings = result.mappings()
        rows = mappings.all() if limit is None else mappings.fetchmany(limit)
        return [dict(row) for row in rows]
    finally:
        await session.rollback()


async def table_counts(session: AsyncSession) -> Dict[str, int]:
    """Row count of every entity table, in creation order"""
    counts = {}
    for table in ENTITY_TABLES:
        counts[table.name] = await session.scalar(select(func.count()).select_from(table)) or 0
    return counts
