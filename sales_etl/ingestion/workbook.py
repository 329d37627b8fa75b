"""
Workbook Reader

Reads every sheet of an .xlsx workbook as a header row plus positional
data rows. Cell values keep their native types (str, int, float, bool,
datetime) and empty cells are None.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Union

import structlog
from openpyxl import load_workbook

logger = structlog.get_logger(__name__)


@dataclass
class Sheet:
    """One worksheet: header labels and the rows below them"""
    name: str
    header: List[Any] = field(default_factory=list)
    rows: List[List[Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Empty and header-only sheets hold no records"""
        return not self.header or not any(self.rows)


def _trim_trailing_empty(values: List[Any]) -> List[Any]:
    end = len(values)
    while end and values[end - 1] is None:
        end -= 1
    return values[:end]


def read_workbook(path: Union[str, Path]) -> List[Sheet]:
    """
    Load all sheets of a workbook.

    Args:
        path: Path to the .xlsx file

    Returns:
        Sheets in workbook order

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Workbook not found: {path}")

    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheets = []
        for worksheet in workbook.worksheets:
            rows = [
                _trim_trailing_empty(list(values))
                for values in worksheet.iter_rows(values_only=True)
            ]
            header = rows[0] if rows else []
            sheets.append(Sheet(name=worksheet.title, header=header, rows=rows[1:]))
    finally:
        workbook.close()

    logger.info(
        "Workbook loaded",
        file=str(path),
        sheets=[sheet.name for sheet in sheets],
    )
    return sheets
