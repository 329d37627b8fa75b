"""
Prerequisite Checks

Verifies that a run can start: the source workbook exists, the libraries
the pipeline needs are importable, and a SQLite target directory is
writable. Nothing is read or transformed here.
"""

from dataclasses import dataclass, field
from importlib.util import find_spec
from pathlib import Path
import os
from typing import List, Optional, Union

import structlog

from sales_etl.config import get_settings

logger = structlog.get_logger(__name__)

# Import names of the libraries an import run needs
REQUIRED_MODULES = ("openpyxl", "sqlalchemy", "aiosqlite", "structlog", "pydantic_settings")

# Formats openpyxl can open; legacy .xls (BIFF) files are not among them
WORKBOOK_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")


class PrerequisiteError(RuntimeError):
    """Raised when a run cannot start"""

    def __init__(self, report: "PrerequisiteReport"):
        self.report = report
        super().__init__("; ".join(report.problems))


@dataclass
class PrerequisiteReport:
    """Outcome of the prerequisite checks"""
    workbook_path: str
    workbook_found: bool = False
    workbook_size_bytes: Optional[int] = None
    candidate_workbooks: List[str] = field(default_factory=list)
    missing_modules: List[str] = field(default_factory=list)
    database_dir_writable: bool = True
    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def _find_candidates(directory: Path) -> List[str]:
    if not directory.is_dir():
        return []
    return sorted(
        p.name for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in WORKBOOK_SUFFIXES
    )


def check_prerequisites(
    workbook_path: Union[str, Path, None] = None,
    database_path: Union[str, Path, None] = None,
) -> PrerequisiteReport:
    """
    Run every prerequisite check.

    Args:
        workbook_path: Source workbook, defaults to the configured path
        database_path: SQLite database file, defaults to the configured one

    Returns:
        PrerequisiteReport describing what is missing, if anything
    """
    settings = get_settings()
    path = Path(workbook_path or settings.importer.workbook_path)
    report = PrerequisiteReport(workbook_path=str(path))

    if path.is_file():
        report.workbook_found = True
        report.workbook_size_bytes = path.stat().st_size
        if path.suffix.lower() not in WORKBOOK_SUFFIXES:
            report.problems.append(f"Unsupported workbook format: {path.name} (save it as .xlsx)")
    else:
        report.candidate_workbooks = _find_candidates(path.parent)
        report.problems.append(f"Workbook not found: {path}")

    report.missing_modules = [name for name in REQUIRED_MODULES if find_spec(name) is None]
    if report.missing_modules:
        report.problems.append(f"Missing libraries: {', '.join(report.missing_modules)}")

    db_path = database_path or settings.database.sqlite_path
    if db_path and db_path != ":memory:":
        directory = Path(db_path).resolve().parent
        report.database_dir_writable = directory.is_dir() and os.access(directory, os.W_OK)
        if not report.database_dir_writable:
            report.problems.append(f"Database directory not writable: {directory}")

    if report.ok:
        logger.info("Prerequisites satisfied", workbook=str(path), size_bytes=report.workbook_size_bytes)
    else:
        logger.warning(
            "Prerequisites missing",
            problems=report.problems,
            candidates=report.candidate_workbooks,
        )
    return report


def require_prerequisites(
    workbook_path: Union[str, Path, None] = None,
    database_path: Union[str, Path, None] = None,
) -> PrerequisiteReport:
    """
    Like check_prerequisites, but raise when anything is missing.

    Raises:
        PrerequisiteError: If any check failed
    """
    report = check_prerequisites(workbook_path, database_path)
    if not report.ok:
        raise PrerequisiteError(report)
    return report
