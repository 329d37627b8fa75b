"""
Command Line Entry Point

Usage:
    sales-etl check    --workbook Coffe_sales.xlsx
    sales-etl analyze  --workbook Coffe_sales.xlsx
    sales-etl import   --workbook Coffe_sales.xlsx --database-url sqlite+aiosqlite:///./coffee_sales.db
    sales-etl report
    sales-etl query top-products --limit 10
    sales-etl query --sql "SELECT name, city FROM stores"
    sales-etl tables
    sales-etl schema
"""

import argparse
import asyncio
import sys
from typing import List, Optional
from zipfile import BadZipFile

import structlog
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError

from sales_etl.config import get_settings
from sales_etl.config.settings import DatabaseSettings
from sales_etl.config.logging import configure_logging
from sales_etl.database.connection import close_database, get_db, init_database
from sales_etl.ingestion import PrerequisiteError, SalesImporter, check_prerequisites, require_prerequisites
from sales_etl.reporting import (
    PRESET_QUERIES,
    analyze_workbook,
    build_report,
    render_profiles,
    render_report,
    render_schema,
    render_summary,
    render_table_counts,
    run_preset,
    run_sql,
    table_counts,
)

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sales-etl",
        description="Load a denormalized sales workbook into a normalized database",
    )
    parser.add_argument("--workbook", help="Source workbook (default: IMPORT_WORKBOOK_PATH)")
    parser.add_argument("--database-url", help="SQLAlchemy async URL (default: DATABASE_URL)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("check", help="Verify the workbook, libraries and database directory")
    commands.add_parser("analyze", help="Profile the workbook without loading it")
    commands.add_parser("import", help="Recreate the schema and load the workbook")
    commands.add_parser("report", help="Print the report for the loaded database")

    commands.add_parser("tables", help="List tables with their row counts")
    commands.add_parser("schema", help="Print the declared columns of every table")

    query = commands.add_parser("query", help="Run a preset or ad-hoc read-only query")
    query.add_argument("name", nargs="?", choices=sorted(PRESET_QUERIES), help="Preset query name")
    query.add_argument("--sql", help="Ad-hoc SELECT statement, run instead of a preset")
    query.add_argument("--limit", type=int, default=20, help="Maximum rows (default: 20)")
    return parser


def _print_rows(rows: List[dict]) -> None:
    if not rows:
        print("No rows")
        return
    columns = list(rows[0])
    print(" | ".join(columns))
    for row in rows:
        print(" | ".join("" if row[c] is None else str(row[c]) for c in columns))


async def _import(workbook: str, database_url: str) -> None:
    engine = await init_database(database_url)
    try:
        summary = await SalesImporter(engine).run(workbook)
        print(render_summary(summary))
        async with get_db() as session:
            report = await build_report(session)
        print()
        print(render_report(report))
    finally:
        await close_database()


async def _report(database_url: str) -> None:
    await init_database(database_url)
    try:
        async with get_db() as session:
            report = await build_report(session)
        print(render_report(report))
    finally:
        await close_database()


async def _query(database_url: str, name: Optional[str], sql: Optional[str], limit: int) -> None:
    await init_database(database_url)
    try:
        async with get_db() as session:
            if sql:
                rows = await run_sql(session, sql, limit=limit)
            else:
                rows = await run_preset(session, name, limit=limit)
        if not sql:
            print(PRESET_QUERIES[name].description)
        _print_rows(rows)
    finally:
        await close_database()


async def _tables(database_url: str) -> None:
    await init_database(database_url)
    try:
        async with get_db() as session:
            counts = await table_counts(session)
        print(render_table_counts(counts))
    finally:
        await close_database()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level)

    workbook = args.workbook or settings.importer.workbook_path
    database_url = args.database_url or settings.database.url
    database_path = DatabaseSettings(url=database_url).sqlite_path

    try:
        if args.command == "check":
            report = check_prerequisites(workbook, database_path)
            if report.ok:
                print(f"Ready: {report.workbook_path} ({report.workbook_size_bytes} bytes)")
                return 0
            for problem in report.problems:
                print(f"Problem: {problem}")
            if report.candidate_workbooks:
                print(f"Workbooks found: {', '.join(report.candidate_workbooks)}")
            return 1

        if args.command == "analyze":
            print(render_profiles(analyze_workbook(workbook)))
        elif args.command == "import":
            require_prerequisites(workbook, database_path)
            asyncio.run(_import(workbook, database_url))
        elif args.command == "report":
            asyncio.run(_report(database_url))
        elif args.command == "tables":
            asyncio.run(_tables(database_url))
        elif args.command == "schema":
            print(render_schema())
        elif args.command == "query":
            if bool(args.name) == bool(args.sql):
                print("Give either a preset name or --sql")
                return 1
            try:
                asyncio.run(_query(database_url, args.name, args.sql, args.limit))
            except ValueError as e:
                print(f"Query rejected: {e}")
                return 1
    except PrerequisiteError as e:
        logger.error("Prerequisites missing", problems=e.report.problems)
        return 1
    except (OSError, BadZipFile, InvalidFileException, SQLAlchemyError) as e:
        logger.error("Run failed", command=args.command, error=str(e), error_type=type(e).__name__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
