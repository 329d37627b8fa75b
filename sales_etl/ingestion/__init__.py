"""
Data Ingestion Module
"""
from .importer import ImportSummary, LoadStatus, SalesImporter, SheetResult, import_workbook
from .prerequisites import PrerequisiteError, check_prerequisites, require_prerequisites
from .workbook import Sheet, read_workbook

__all__ = [
    "ImportSummary",
    "LoadStatus",
    "SalesImporter",
    "SheetResult",
    "import_workbook",
    "PrerequisiteError",
    "check_prerequisites",
    "require_prerequisites",
    "Sheet",
    "read_workbook",
]
