"""
Workbook Analyzer

Profiles a source workbook before import: per sheet, the header row, row
count, sample rows, and per column the null count, distinct count and a
suggested column type.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, List, Sequence, Union
import re

import polars as pl
import structlog

from sales_etl.ingestion.workbook import Sheet, read_workbook

logger = structlog.get_logger(__name__)

SAMPLE_SIZE = 20
_DATE_TEXT = re.compile(r"\d{1,4}[-/]\d{1,2}[-/]\d{1,4}")


@dataclass
class ColumnProfile:
    """Profile of one source column"""
    name: str
    null_count: int
    distinct_count: int
    suggested_type: str


@dataclass
class SheetProfile:
    """Profile of one sheet"""
    name: str
    headers: List[str]
    row_count: int
    sample_rows: List[List[Any]] = field(default_factory=list)
    columns: List[ColumnProfile] = field(default_factory=list)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value))
        return True
    except ValueError:
        return False


def suggest_type(column_name: str, values: Sequence[Any]) -> str:
    """
    Suggest a SQL column type, by name first and then by sampled values.

    Args:
        column_name: Header label
        values: Non-null values of the column
    """
    if not values:
        return "TEXT"

    name = column_name.lower()
    if any(word in name for word in ("price", "amount", "total", "cost")):
        return "DECIMAL(10,2)"
    if any(word in name for word in ("quantity", "count", "number")):
        return "INTEGER"
    if "date" in name or "time" in name:
        return "DATETIME"
    if "id" in name and name != "id":
        return "INTEGER"

    sample = list(values[:SAMPLE_SIZE])
    if all(_is_number(v) for v in sample):
        has_decimals = any(float(v) % 1 != 0 for v in sample)
        return "DECIMAL(10,2)" if has_decimals else "INTEGER"
    if any(isinstance(v, (date, datetime)) or (isinstance(v, str) and _DATE_TEXT.search(v)) for v in sample):
        return "DATETIME"
    return "TEXT"


def _column_names(headers: Sequence[Any]) -> List[str]:
    """Unique, non-empty column labels for a DataFrame"""
    names: List[str] = []
    for index, header in enumerate(headers):
        name = str(header).strip() if header is not None else ""
        name = name or f"column_{index + 1}"
        base, suffix = name, 2
        while name in names:
            name = f"{base}_{suffix}"
            suffix += 1
        names.append(name)
    return names


def profile_sheet(sheet: Sheet, sample_rows: int = 3) -> SheetProfile:
    """Profile a single sheet"""
    width = max([len(sheet.header)] + [len(row) for row in sheet.rows])
    names = _column_names(list(sheet.header) + [None] * (width - len(sheet.header)))

    padded = [list(row) + [None] * (width - len(row)) for row in sheet.rows]
    raw_columns = {name: [row[i] for row in padded] for i, name in enumerate(names)}

    # Cells of mixed types are compared as text
    frame = pl.DataFrame(
        {
            name: [None if v is None else str(v) for v in values]
            for name, values in raw_columns.items()
        },
        schema={name: pl.Utf8 for name in names},
    )

    columns = []
    for name in names:
        series = frame[name]
        non_null = [v for v in raw_columns[name] if v is not None]
        columns.append(
            ColumnProfile(
                name=name,
                null_count=series.null_count(),
                distinct_count=series.drop_nulls().n_unique(),
                suggested_type=suggest_type(name, non_null),
            )
        )

    return SheetProfile(
        name=sheet.name,
        headers=names,
        row_count=frame.height,
        sample_rows=[list(row) for row in sheet.rows[:sample_rows]],
        columns=columns,
    )


def analyze_workbook(path: Union[str, Path]) -> List[SheetProfile]:
    """
    Profile every sheet of a workbook.

    Raises:
        FileNotFoundError: If the workbook does not exist
    """
    profiles = [profile_sheet(sheet) for sheet in read_workbook(path)]
    logger.info("Workbook analyzed", file=str(path), sheets=len(profiles))
    return profiles


def render_profiles(profiles: Sequence[SheetProfile]) -> str:
    """Human-readable analysis"""
    lines = []
    for profile in profiles:
        lines.append(f'Sheet "{profile.name}": {profile.row_count} rows, {len(profile.headers)} columns')
        if not profile.headers:
            lines.append("  Empty worksheet")
            continue
        for column in profile.columns:
            lines.append(
                f"  - {column.name}: {column.suggested_type} "
                f"({column.distinct_count} distinct, {column.null_count} empty)"
            )
        for i, row in enumerate(profile.sample_rows, start=1):
            lines.append(f"  row {i}: {row}")
    return "\n".join(lines)
