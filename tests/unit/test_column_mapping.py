"""
Unit Tests - Column Matching
"""
import pytest

from sales_etl.transformation.column_mapping import ColumnMap, SaleField, is_blank


class TestColumnMap:
    """Tests for ColumnMap"""

    def test_matches_mixed_language_headers(self, sales_header):
        """Test each field is found through its recognized substrings"""
        column_map = ColumnMap.from_headers(sales_header)

        assert column_map.columns_for(SaleField.DATE) == (0,)
        assert column_map.columns_for(SaleField.PRODUCT) == (1,)
        assert column_map.columns_for(SaleField.CATEGORY) == (2,)
        assert column_map.columns_for(SaleField.PRICE) == (3,)
        assert column_map.columns_for(SaleField.QUANTITY) == (4,)
        assert column_map.columns_for(SaleField.CLIENT) == (5,)
        assert column_map.columns_for(SaleField.PAYMENT_METHOD) == (6,)
        assert column_map.columns_for(SaleField.STORE) == (7,)

    def test_matching_is_case_insensitive(self):
        """Test header case is ignored"""
        column_map = ColumnMap.from_headers(["  FECHA DE VENTA ", "PRODUCTO"])

        assert column_map.columns_for(SaleField.DATE) == (0,)
        assert column_map.columns_for(SaleField.PRODUCT) == (1,)

    def test_priority_follows_pattern_order(self):
        """Test 'price' outranks 'total' regardless of header position"""
        column_map = ColumnMap.from_headers(["Total Amount", "Price"])

        assert column_map.columns_for(SaleField.PRICE) == (1, 0)
        assert column_map.value([9.0, 3.5], SaleField.PRICE) == 3.5

    def test_falls_through_to_next_candidate(self):
        """Test an empty higher-priority cell yields the next matching column"""
        column_map = ColumnMap.from_headers(["Total Amount", "Price"])

        assert column_map.value([9.0, None], SaleField.PRICE) == 9.0
        assert column_map.value([9.0, "   "], SaleField.PRICE) == 9.0

    def test_missing_field_is_none(self):
        """Test a field with no matching header is absent"""
        column_map = ColumnMap.from_headers(["Date", "Product"])

        assert column_map.columns_for(SaleField.STORE) == ()
        assert column_map.value(["2024-01-01", "Latte"], SaleField.STORE) is None

    def test_short_rows(self):
        """Test rows shorter than the header are tolerated"""
        column_map = ColumnMap.from_headers(["Date", "Product", "Store"])

        assert column_map.value(["2024-01-01"], SaleField.STORE) is None

    def test_empty_and_duplicate_headers(self):
        """Test None headers are skipped and the first duplicate wins"""
        column_map = ColumnMap.from_headers([None, "Store", "store"])

        assert column_map.columns_for(SaleField.STORE) == (1,)
        assert column_map.columns_for(SaleField.DATE) == ()

    def test_extract(self, sales_header, sales_rows):
        """Test extraction of every field from a row"""
        column_map = ColumnMap.from_headers(sales_header)
        values = column_map.extract(sales_rows[0])

        assert values[SaleField.PRODUCT] == "Latte"
        assert values[SaleField.QUANTITY] == 2
        assert values[SaleField.STORE] == "Downtown"
        assert set(values) == set(SaleField)

    def test_describe(self):
        """Test matched headers are reported per field"""
        column_map = ColumnMap.from_headers(["Date", "Product"])
        description = column_map.describe()

        assert description["date"] == ["date"]
        assert description["product"] == ["product"]
        assert description["store"] == []


class TestIsBlank:
    """Tests for blank cell detection"""

    @pytest.mark.parametrize("value", [None, "", "   ", "\t"])
    def test_blank(self, value):
        """Test empty values"""
        assert is_blank(value)

    @pytest.mark.parametrize("value", [0, 0.0, False, "x", " a "])
    def test_not_blank(self, value):
        """Test values that carry data"""
        assert not is_blank(value)
