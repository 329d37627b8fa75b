"""
Reporting Module
"""
from .analyzer import analyze_workbook, render_profiles
from .queries import PRESET_QUERIES, run_preset, run_sql, table_counts
from .report import (
    SalesReport,
    build_report,
    render_report,
    render_schema,
    render_summary,
    render_table_counts,
)

__all__ = [
    "analyze_workbook",
    "render_profiles",
    "PRESET_QUERIES",
    "run_preset",
    "run_sql",
    "table_counts",
    "SalesReport",
    "build_report",
    "render_report",
    "render_schema",
    "render_summary",
    "render_table_counts",
]
