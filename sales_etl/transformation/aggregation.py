"""
Client Statistics Aggregation

Recomputes the derived purchase statistics of every client that has at
least one sale: number of purchases, amount spent, first and last purchase
date. Clients without sales are left untouched. The pass reads only the
current sales table, so repeating it without new sales changes nothing.
"""

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sales_etl.database.models import Client, Sale

logger = structlog.get_logger(__name__)


def _per_client(expression):
    """Correlated scalar subquery over the sales of the client being updated"""
    return (
        select(expression)
        .where(Sale.client_id == Client.client_id)
        .correlate(Client)
        .scalar_subquery()
    )


def client_statistics_statement():
    """UPDATE statement recomputing every client referenced by a sale"""
    clients_with_sales = (
        select(Sale.client_id)
        .where(Sale.client_id.is_not(None))
        .distinct()
    )
    return (
        update(Client)
        .where(Client.client_id.in_(clients_with_sales))
        .values(
            total_purchases=_per_client(func.count(Sale.sale_id)),
            total_spent=_per_client(func.coalesce(func.sum(Sale.total_amount), 0)),
            first_purchase_date=_per_client(func.min(Sale.sale_date)),
            last_purchase_date=_per_client(func.max(Sale.sale_date)),
        )
        .execution_options(synchronize_session=False)
    )


async def refresh_client_statistics(session: AsyncSession) -> int:
    """
    Run the aggregation pass and commit it.

    Args:
        session: Session on the loaded store

    Returns:
        Number of client rows updated
    """
    logger.info("Updating client statistics")
    result = await session.execute(client_statistics_statement())
    await session.commit()

    updated = result.rowcount or 0
    logger.info("Client statistics updated", clients=updated)
    return updated
