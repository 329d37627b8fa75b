"""
Data Transformation Module
"""
from .aggregation import refresh_client_statistics
from .column_mapping import ColumnMap, SaleField, FIELD_PATTERNS
from .resolver import EntityKind, EntityResolver, ResolutionError
from .row_mapper import RowMapper, RowResult, SaleRecord

__all__ = [
    "refresh_client_statistics",
    "ColumnMap",
    "SaleField",
    "FIELD_PATTERNS",
    "EntityKind",
    "EntityResolver",
    "ResolutionError",
    "RowMapper",
    "RowResult",
    "SaleRecord",
]
