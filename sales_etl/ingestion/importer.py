"""
Sales Workbook Importer

Loads a denormalized sales workbook into the normalized schema.
Supports:
- Every sheet of the workbook, each with its own counters
- Flexible column matching per sheet
- Lazy creation of reference entities through a per-run resolver
- Row-level failure isolation with capped error reporting
- Client statistics recomputation after the load

Rows are processed strictly in source order on a single session. Each row
runs in its own transaction: it is committed before the next row starts,
or rolled back and counted as failed. Earlier rows are never undone.
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import structlog
from pydantic import BaseModel, Field
from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from sales_etl.config import ImportSettings, get_settings
from sales_etl.database.connection import build_session_factory
from sales_etl.database.models import Sale
from sales_etl.database.schema import recreate_schema
from sales_etl.transformation.aggregation import refresh_client_statistics
from sales_etl.transformation.column_mapping import ColumnMap, is_blank
from sales_etl.transformation.resolver import EntityResolver
from sales_etl.transformation.row_mapper import RowMapper, RowResult
from .workbook import Sheet, read_workbook

logger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LoadStatus(str, Enum):
    """Sheet and run load status"""
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED = "skipped"


class RowError(BaseModel):
    """A reported row failure"""
    row_number: int
    message: str


class SheetResult(BaseModel):
    """Result of loading one sheet"""
    sheet_name: str
    status: LoadStatus = LoadStatus.COMPLETED
    headers: List[str] = Field(default_factory=list)
    rows_processed: int = 0
    rows_loaded: int = 0
    rows_failed: int = 0
    blank_rows: int = 0
    errors: List[RowError] = Field(default_factory=list)
    started_at: datetime
    completed_at: Optional[datetime] = None
    load_duration_seconds: float = 0


class ImportSummary(BaseModel):
    """Result of a full workbook import"""
    workbook_path: Optional[str] = None
    status: LoadStatus = LoadStatus.COMPLETED
    sheets: List[SheetResult] = Field(default_factory=list)
    entities_created: Dict[str, int] = Field(default_factory=dict)
    clients_updated: int = 0
    aggregation_error: Optional[str] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    load_duration_seconds: float = 0

    @property
    def rows_processed(self) -> int:
        return sum(sheet.rows_processed for sheet in self.sheets)

    @property
    def rows_loaded(self) -> int:
        return sum(sheet.rows_loaded for sheet in self.sheets)

    @property
    def rows_failed(self) -> int:
        return sum(sheet.rows_failed for sheet in self.sheets)


class SalesImporter:
    """
    Workbook-to-database importer.

    Example:
        engine = build_engine("sqlite+aiosqlite:///./coffee_sales.db")
        importer = SalesImporter(engine)
        summary = await importer.run("Coffe_sales.xlsx")
    """

    def __init__(
        self,
        engine: AsyncEngine,
        settings: Optional[ImportSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.engine = engine
        self.settings = settings or get_settings().importer
        self.clock = clock
        self._session_factory = build_session_factory(engine)

    async def run(self, workbook_path: Union[str, Path, None] = None) -> ImportSummary:
        """
        Full run: read the workbook, recreate the schema, load every sheet,
        then recompute client statistics.

        Reading the workbook and creating the schema are fatal on failure;
        the exception propagates and nothing is reported.

        Args:
            workbook_path: Source workbook, defaults to the configured path

        Returns:
            ImportSummary with per-sheet counts
        """
        path = Path(workbook_path or self.settings.workbook_path)
        logger.info("Starting import", file=str(path), database=str(self.engine.url))

        sheets = read_workbook(path)
        await recreate_schema(self.engine)

        summary = await self.import_sheets(sheets)
        summary.workbook_path = str(path)
        return summary

    async def import_sheets(self, sheets: Sequence[Sheet]) -> ImportSummary:
        """
        Load sheets into an existing schema and run the aggregation pass once.

        Args:
            sheets: Sheets to load, in order

        Returns:
            ImportSummary with per-sheet counts
        """
        summary = ImportSummary(started_at=_now())

        async with self._session_factory() as session:
            resolver = EntityResolver(session, self.settings)
            mapper = RowMapper(resolver, locale=self.settings.locale, clock=self.clock)

            for sheet in sheets:
                summary.sheets.append(await self.import_sheet(session, mapper, sheet))

            summary.entities_created = {
                kind.value: count for kind, count in resolver.created.items() if count
            }

            try:
                summary.clients_updated = await refresh_client_statistics(session)
            except SQLAlchemyError as e:
                await session.rollback()
                summary.aggregation_error = str(e)
                logger.error("Client statistics update failed", error=str(e))

        summary.completed_at = _now()
        summary.load_duration_seconds = (summary.completed_at - summary.started_at).total_seconds()
        summary.status = self._overall_status(summary)

        logger.info(
            "Import completed",
            status=summary.status.value,
            rows_processed=summary.rows_processed,
            rows_loaded=summary.rows_loaded,
            rows_failed=summary.rows_failed,
            clients_updated=summary.clients_updated,
            duration_seconds=round(summary.load_duration_seconds, 3),
        )
        return summary

    async def import_sheet(
        self,
        session: AsyncSession,
        mapper: RowMapper,
        sheet: Sheet,
    ) -> SheetResult:
        """
        Row loop for one sheet.

        Args:
            session: Session used for every row of the run
            mapper: Row mapper holding the run's resolver
            sheet: Sheet to load

        Returns:
            SheetResult with this sheet's counters
        """
        log = logger.bind(sheet=sheet.name)
        result = SheetResult(sheet_name=sheet.name, started_at=_now())

        if sheet.is_empty:
            log.warning("No data found in sheet")
            result.status = LoadStatus.SKIPPED
            result.completed_at = _now()
            return result

        column_map = ColumnMap.from_headers(sheet.header)
        result.headers = ["" if h is None else str(h) for h in sheet.header]
        total = len(sheet.rows)
        log.info("Processing sheet", rows=total, headers=result.headers)
        log.debug("Columns matched", columns=column_map.describe())

        # Compiled once per sheet, executed per row
        insert_sale = insert(Sale)
        max_reported = self.settings.max_reported_errors
        interval = self.settings.progress_interval

        for row_number, row in enumerate(sheet.rows, start=1):
            if row_number > 1 and (row_number - 1) % interval == 0:
                log.info(f"Processed {row_number - 1}/{total} rows")

            if all(is_blank(value) for value in row):
                result.blank_rows += 1
                continue

            outcome = await self._process_row(session, mapper, insert_sale, column_map, row, row_number)
            result.rows_processed += 1

            if outcome.ok:
                result.rows_loaded += 1
                continue

            result.rows_failed += 1
            if result.rows_failed <= max_reported:
                result.errors.append(RowError(row_number=row_number, message=outcome.error))
                log.warning("Row failed", row=row_number, error=outcome.error)
                if result.rows_failed == max_reported:
                    log.warning("Further row errors will be suppressed")

        result.completed_at = _now()
        result.load_duration_seconds = (result.completed_at - result.started_at).total_seconds()
        result.status = self._sheet_status(result)

        log.info(
            "Sheet import completed",
            rows_loaded=result.rows_loaded,
            rows_failed=result.rows_failed,
            duration_seconds=round(result.load_duration_seconds, 3),
        )
        return result

    async def _process_row(
        self,
        session: AsyncSession,
        mapper: RowMapper,
        insert_sale,
        column_map: ColumnMap,
        row: Sequence,
        row_number: int,
    ) -> RowResult:
        """Map, insert and commit one row; roll it back on any failure"""
        try:
            outcome = await mapper.map_row(row, column_map, row_number)
            if outcome.ok:
                await session.execute(insert_sale, outcome.record.as_params())
                await session.commit()
                mapper.resolver.commit_row()
                return outcome
        except Exception as e:
            outcome = RowResult.failure(row_number, f"{type(e).__name__}: {e}")

        await session.rollback()
        mapper.resolver.rollback_row()
        return outcome

    @staticmethod
    def _sheet_status(result: SheetResult) -> LoadStatus:
        if result.rows_failed == 0:
            return LoadStatus.COMPLETED
        if result.rows_loaded == 0:
            return LoadStatus.FAILED
        return LoadStatus.PARTIAL

    @staticmethod
    def _overall_status(summary: ImportSummary) -> LoadStatus:
        loaded = [s for s in summary.sheets if s.status != LoadStatus.SKIPPED]
        if loaded and all(s.status == LoadStatus.FAILED for s in loaded):
            return LoadStatus.FAILED
        if summary.aggregation_error or any(s.status != LoadStatus.COMPLETED for s in loaded):
            return LoadStatus.PARTIAL
        return LoadStatus.COMPLETED


async def import_workbook(
    engine: AsyncEngine,
    workbook_path: Union[str, Path, None] = None,
    settings: Optional[ImportSettings] = None,
) -> ImportSummary:
    """Convenience wrapper around SalesImporter.run"""
    return await SalesImporter(engine, settings=settings).run(workbook_path)
