"""
Unit Tests - Workbook Reading and Prerequisites
"""
from datetime import datetime

import pytest

from sales_etl.ingestion.prerequisites import (
    PrerequisiteError,
    check_prerequisites,
    require_prerequisites,
)
from sales_etl.ingestion.workbook import Sheet, read_workbook


class TestReadWorkbook:
    """Tests for the workbook reader"""

    def test_reads_every_sheet(self, workbook_path, sales_header):
        """Test sheet order, header and native cell types"""
        sheets = read_workbook(workbook_path)

        assert [s.name for s in sheets] == ["Sales", "Notes"]
        sales = sheets[0]
        assert sales.header == sales_header
        assert len(sales.rows) == 6
        assert sales.rows[0][0] == datetime(2024, 3, 1, 10, 15)
        assert sales.rows[0][3] == 3.5

    def test_empty_sheet(self, workbook_path):
        """Test a sheet without cells is empty"""
        notes = read_workbook(workbook_path)[1]

        assert notes.is_empty

    def test_trailing_empty_cells_trimmed(self, workbook_path):
        """Test rows end at their last value"""
        last = read_workbook(workbook_path)[0].rows[-1]

        assert last[-1] == "ANON-0003"

    def test_missing_file(self, tmp_path):
        """Test a missing workbook raises"""
        with pytest.raises(FileNotFoundError):
            read_workbook(tmp_path / "nope.xlsx")


class TestSheet:
    """Tests for Sheet"""

    def test_header_only_is_empty(self):
        """Test a header without data rows"""
        assert Sheet("S", ["Date"], []).is_empty
        assert Sheet("S", ["Date"], [[]]).is_empty
        assert not Sheet("S", ["Date"], [["2024-01-01"]]).is_empty


class TestPrerequisites:
    """Tests for the prerequisite checks"""

    def test_satisfied(self, workbook_path, tmp_path):
        """Test an existing workbook and writable directory"""
        report = check_prerequisites(workbook_path, tmp_path / "sales.db")

        assert report.ok
        assert report.workbook_found
        assert report.workbook_size_bytes > 0
        assert report.missing_modules == []

    def test_missing_workbook_lists_candidates(self, workbook_path, tmp_path):
        """Test other workbooks in the directory are suggested"""
        report = check_prerequisites(tmp_path / "other.xlsx", tmp_path / "sales.db")

        assert not report.ok
        assert not report.workbook_found
        assert report.candidate_workbooks == [workbook_path.name]

    def test_unwritable_database_directory(self, workbook_path, tmp_path):
        """Test a database path under a missing directory"""
        report = check_prerequisites(workbook_path, tmp_path / "missing" / "sales.db")

        assert not report.database_dir_writable
        assert not report.ok

    def test_require_raises(self, tmp_path):
        """Test require_prerequisites raises with the report attached"""
        with pytest.raises(PrerequisiteError) as exc_info:
            require_prerequisites(tmp_path / "missing.xlsx", tmp_path / "sales.db")

        assert not exc_info.value.report.workbook_found
        assert "Workbook not found" in str(exc_info.value)

    def test_legacy_xls_is_not_suggested(self, workbook_path, tmp_path):
        """Test .xls files are left out of the candidate list"""
        (tmp_path / "old.xls").write_bytes(b"\xd0\xcf\x11\xe0")
        report = check_prerequisites(tmp_path / "other.xlsx", tmp_path / "sales.db")

        assert report.candidate_workbooks == [workbook_path.name]

    def test_legacy_xls_is_unsupported(self, tmp_path):
        """Test an existing .xls workbook fails the check"""
        legacy = tmp_path / "old.xls"
        legacy.write_bytes(b"\xd0\xcf\x11\xe0")
        report = check_prerequisites(legacy, tmp_path / "sales.db")

        assert report.workbook_found
        assert not report.ok
        assert "Unsupported workbook format: old.xls" in report.problems[0]
