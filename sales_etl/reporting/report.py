"""
End-of-Run Report

Summarizes the loaded store: table counts, revenue, date range, top
products and clients, store performance and monthly sales.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sales_etl.database.models import Sale
from sales_etl.database.schema import ColumnSpec, describe_schema
from sales_etl.ingestion.importer import ImportSummary
from .queries import client_analysis, monthly_revenue, store_performance, table_counts, top_products

logger = structlog.get_logger(__name__)


class SalesReport(BaseModel):
    """Snapshot of the loaded data"""
    table_counts: Dict[str, int] = Field(default_factory=dict)
    total_revenue: float = 0
    average_sale: float = 0
    first_sale_date: Optional[date] = None
    last_sale_date: Optional[date] = None
    top_products: List[Dict[str, Any]] = Field(default_factory=list)
    top_clients: List[Dict[str, Any]] = Field(default_factory=list)
    stores: List[Dict[str, Any]] = Field(default_factory=list)
    monthly: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None


async def _rows(session: AsyncSession, statement) -> List[Dict[str, Any]]:
    result = await session.execute(statement)
    return [dict(row) for row in result.mappings().all()]


async def build_report(session: AsyncSession, top: int = 5) -> SalesReport:
    """
    Build the report. Query failures are recorded on the report, not raised.

    Args:
        session: Session on the loaded store
        top: Number of products and clients to rank
    """
    report = SalesReport()
    try:
        report.table_counts = await table_counts(session)

        totals = (
            await session.execute(
                select(
                    func.coalesce(func.sum(Sale.total_amount), 0).label("revenue"),
                    func.coalesce(func.avg(Sale.total_amount), 0).label("average"),
                    func.min(Sale.sale_date).label("first"),
                    func.max(Sale.sale_date).label("last"),
                )
            )
        ).one()
        report.total_revenue = float(totals.revenue)
        report.average_sale = float(totals.average)
        report.first_sale_date = totals.first
        report.last_sale_date = totals.last

        report.top_products = await _rows(session, top_products(top))
        report.top_clients = await _rows(session, client_analysis(top))
        report.stores = await _rows(session, store_performance(1000))
        report.monthly = await _rows(session, monthly_revenue(12))
    except SQLAlchemyError as e:
        report.error = str(e)
        logger.error("Error generating report", error=str(e))

    return report


def _money(value: Any) -> str:
    return f"${float(value or 0):,.2f}"


def render_summary(summary: ImportSummary) -> str:
    """Per-sheet counts of an import run as text"""
    lines = [f"Import {summary.status.value}: {summary.workbook_path or ''}".rstrip()]
    for sheet in summary.sheets:
        if sheet.status.value == "skipped":
            lines.append(f"  {sheet.sheet_name}: skipped (no data)")
            continue
        lines.append(
            f"  {sheet.sheet_name}: {sheet.rows_processed} processed, "
            f"{sheet.rows_loaded} loaded, {sheet.rows_failed} failed"
        )
        for error in sheet.errors:
            lines.append(f"    row {error.row_number}: {error.message}")
        hidden = sheet.rows_failed - len(sheet.errors)
        if hidden > 0:
            lines.append(f"    ... {hidden} more errors not shown")
    lines.append(
        f"Total: {summary.rows_processed} processed, "
        f"{summary.rows_loaded} loaded, {summary.rows_failed} failed"
    )
    if summary.aggregation_error:
        lines.append(f"Client statistics not updated: {summary.aggregation_error}")
    else:
        lines.append(f"Client statistics updated for {summary.clients_updated} clients")
    return "\n".join(lines)


def render_report(report: SalesReport) -> str:
    """Human-readable report"""
    lines = ["SALES DATABASE REPORT", "=" * 21, "", "OVERVIEW:"]
    for table, count in report.table_counts.items():
        lines.append(f"  {table}: {count}")

    lines += [
        "",
        "SALES SUMMARY:",
        f"  Total revenue: {_money(report.total_revenue)}",
        f"  Average sale: {_money(report.average_sale)}",
        f"  Date range: {report.first_sale_date} to {report.last_sale_date}",
        "",
        "TOP PRODUCTS:",
    ]
    for i, row in enumerate(report.top_products, start=1):
        lines.append(f"  {i}. {row['product']}: {row['sales_count']} sales, {_money(row['revenue'])}")

    lines += ["", "TOP CLIENTS:"]
    if report.top_clients:
        for i, row in enumerate(report.top_clients, start=1):
            lines.append(
                f"  {i}. {row['client']}: {row['total_purchases']} purchases, {_money(row['total_spent'])}"
            )
    else:
        lines.append("  No client data available (anonymous sales)")

    lines += ["", "STORE PERFORMANCE:"]
    for i, row in enumerate(report.stores, start=1):
        lines.append(f"  {i}. {row['store']}: {row['sales_count']} sales, {_money(row['revenue'])}")

    lines += ["", "MONTHLY SALES:"]
    for row in report.monthly:
        lines.append(f"  {row['month_name']}: {row['sales_count']} sales, {_money(row['revenue'])}")

    if report.error:
        lines += ["", f"Report incomplete: {report.error}"]
    return "\n".join(lines)


def render_table_counts(counts: Dict[str, int]) -> str:
    """Table names with their row counts"""
    width = max((len(name) for name in counts), default=0)
    return "\n".join(f"{name.ljust(width)}  {count}" for name, count in counts.items())


def _column_line(column: ColumnSpec) -> str:
    parts = [column.name, column.type]
    if column.primary_key:
        parts.append("PRIMARY KEY")
    elif not column.nullable:
        parts.append("NOT NULL")
    if column.default is not None:
        parts.append(f"DEFAULT {column.default}")
    if column.foreign_key:
        parts.append(f"REFERENCES {column.foreign_key}")
    return "  " + " ".join(parts)


def render_schema(schema: Optional[Dict[str, List[ColumnSpec]]] = None) -> str:
    """Declared columns of every table, in creation order"""
    schema = schema if schema is not None else describe_schema()
    blocks = []
    for table, columns in schema.items():
        blocks.append("\n".join([table] + [_column_line(c) for c in columns]))
    return "\n\n".join(blocks)
