"""
Schema Registry

Declarative view over the five entity tables: ordered columns with their
types and constraints, plus idempotent drop-and-create of the whole schema.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import structlog
from sqlalchemy import Table
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from .models import Base, Client, PaymentMethod, Product, Sale, Store

logger = structlog.get_logger(__name__)

# Creation order respects foreign-key dependencies; drops run in reverse
ENTITY_TABLES: Tuple[Table, ...] = (
    Client.__table__,
    Product.__table__,
    PaymentMethod.__table__,
    Store.__table__,
    Sale.__table__,
)


@dataclass(frozen=True)
class ColumnSpec:
    """Declared shape of one column"""
    name: str
    type: str
    primary_key: bool
    nullable: bool
    default: Optional[str] = None
    foreign_key: Optional[str] = None

    @property
    def required(self) -> bool:
        return not self.nullable and not self.primary_key


def _default_of(column) -> Optional[str]:
    if column.server_default is not None:
        return str(getattr(column.server_default, "arg", column.server_default))
    if column.default is not None and column.default.is_scalar:
        return repr(column.default.arg)
    return None


def describe_table(table: Table) -> List[ColumnSpec]:
    """Ordered column specs for a single table"""
    specs = []
    for column in table.columns:
        foreign_key = None
        if column.foreign_keys:
            foreign_key = next(iter(column.foreign_keys)).target_fullname
        specs.append(
            ColumnSpec(
                name=column.name,
                type=str(column.type),
                primary_key=column.primary_key,
                nullable=bool(column.nullable),
                default=_default_of(column),
                foreign_key=foreign_key,
            )
        )
    return specs


def describe_schema() -> Dict[str, List[ColumnSpec]]:
    """
    Describe every entity table.

    Returns:
        Mapping of table name to its ordered column specs, in creation order
    """
    return {table.name: describe_table(table) for table in ENTITY_TABLES}


def index_names() -> Dict[str, List[str]]:
    """Declared index names per table"""
    return {
        table.name: sorted(index.name for index in table.indexes)
        for table in ENTITY_TABLES
    }


async def recreate_schema(bind: AsyncEngine | AsyncConnection) -> None:
    """
    Drop the five entity tables if they exist, then create them with
    their indexes. Any failure here is fatal to the run.

    Args:
        bind: Async engine or connection to run the DDL on
    """
    if isinstance(bind, AsyncEngine):
        async with bind.begin() as conn:
            await recreate_schema(conn)
        return

    await bind.run_sync(Base.metadata.drop_all, tables=list(reversed(ENTITY_TABLES)))
    await bind.run_sync(Base.metadata.create_all, tables=list(ENTITY_TABLES))

    for table in ENTITY_TABLES:
        logger.info(
            "Table created",
            table=table.name,
            columns=len(table.columns),
            indexes=len(table.indexes),
        )
