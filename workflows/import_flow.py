"""
Prefect Workflow Orchestration - Workbook Import

Wraps a full import run:
- Prerequisite check
- Schema recreation and workbook load
- End-of-run report

The import task is not retried: every run recreates the schema, so a
retry would discard what the failed attempt loaded.
"""

from typing import Optional

from prefect import flow, task, get_run_logger

from sales_etl.config import get_settings
from sales_etl.config.settings import DatabaseSettings
from sales_etl.database.connection import build_engine, build_session_factory
from sales_etl.ingestion import import_workbook, require_prerequisites
from sales_etl.reporting import build_report, render_report, render_summary

settings = get_settings()


# =============================================================================
# TASKS
# =============================================================================

@task(
    name="check_prerequisites",
    description="Verify the workbook, libraries and database directory",
)
def check_prerequisites_task(workbook_path: str, database_path: Optional[str]) -> dict:
    """Fail fast when the run cannot start"""
    logger = get_run_logger()

    report = require_prerequisites(workbook_path, database_path)
    logger.info(f"Workbook found: {report.workbook_path} ({report.workbook_size_bytes} bytes)")
    return {"workbook_path": report.workbook_path, "size_bytes": report.workbook_size_bytes}


@task(
    name="import_workbook",
    description="Recreate the schema and load every sheet",
    retries=0,
)
async def import_workbook_task(workbook_path: str, database_url: str) -> dict:
    """Load the workbook and return the run summary"""
    logger = get_run_logger()

    engine = build_engine(database_url)
    try:
        summary = await import_workbook(engine, workbook_path)
    finally:
        await engine.dispose()

    logger.info(render_summary(summary))
    if summary.rows_failed:
        logger.warning(f"{summary.rows_failed} rows failed to load")
    return summary.model_dump(mode="json")


@task(
    name="build_report",
    description="Summarize the loaded database",
    retries=2,
    retry_delay_seconds=10,
)
async def build_report_task(database_url: str) -> dict:
    """Build the end-of-run report"""
    logger = get_run_logger()

    engine = build_engine(database_url)
    try:
        async with build_session_factory(engine)() as session:
            report = await build_report(session)
    finally:
        await engine.dispose()

    logger.info(render_report(report))
    return report.model_dump(mode="json")


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="workbook_import",
    description="Load a denormalized sales workbook into the normalized store",
)
async def workbook_import(
    workbook_path: Optional[str] = None,
    database_url: Optional[str] = None,
) -> dict:
    """
    Full import pipeline.

    Steps:
    1. Check prerequisites
    2. Import the workbook
    3. Build the report
    """
    logger = get_run_logger()

    workbook_path = workbook_path or settings.importer.workbook_path
    database_url = database_url or settings.database.url
    database_path = DatabaseSettings(url=database_url).sqlite_path

    logger.info(f"Starting workbook import from {workbook_path}")

    results = {"steps": {}}
    results["steps"]["prerequisites"] = check_prerequisites_task(workbook_path, database_path)
    results["steps"]["import"] = await import_workbook_task(workbook_path, database_url)
    results["steps"]["report"] = await build_report_task(database_url)
    results["status"] = results["steps"]["import"]["status"]

    return results


if __name__ == "__main__":
    import asyncio

    asyncio.run(workbook_import())
