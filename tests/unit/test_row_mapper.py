"""
Unit Tests - Row Mapper
"""
from datetime import date, datetime, time

from sales_etl.transformation.column_mapping import ColumnMap
from sales_etl.transformation.row_mapper import RowMapper, RowResult


FIXED_NOW = datetime(2024, 5, 20, 19, 45, 0)


def _mapper(resolver, locale="en") -> RowMapper:
    return RowMapper(resolver, locale=locale, clock=lambda: FIXED_NOW)


class TestRowMapper:
    """Tests for RowMapper"""

    async def test_maps_complete_row(self, resolver, sales_header, sales_rows):
        """Test a full row yields a resolved sale record"""
        column_map = ColumnMap.from_headers(sales_header)
        result = await _mapper(resolver).map_row(sales_rows[0], column_map, 1)

        assert result.ok
        record = result.record
        assert record.sale_date == date(2024, 3, 1)
        assert record.time_of_day == time(10, 15)
        assert record.unit_price == 3.5
        assert record.quantity == 2
        assert record.total_amount == 7.0
        assert record.day_period == "Morning"
        assert record.weekday_name == "Friday"
        assert record.weekday_number == 5
        assert record.month_name == "March"
        assert record.month_number == 3
        assert record.client_id is not None

    async def test_currency_text_values(self, resolver, sales_header, sales_rows):
        """Test '$4.00' and '3' are coerced"""
        column_map = ColumnMap.from_headers(sales_header)
        result = await _mapper(resolver).map_row(sales_rows[3], column_map, 4)

        assert result.record.unit_price == 4.0
        assert result.record.quantity == 3
        assert result.record.total_amount == 12.0

    async def test_anonymous_sale(self, resolver, sales_header, sales_rows):
        """Test a row without client code"""
        column_map = ColumnMap.from_headers(sales_header)
        result = await _mapper(resolver).map_row(sales_rows[2], column_map, 3)

        assert result.ok
        assert result.record.client_id is None

    async def test_missing_date_uses_clock(self, resolver):
        """Test the mapping-time timestamp is used when no date column exists"""
        column_map = ColumnMap.from_headers(["Product", "Price"])
        result = await _mapper(resolver).map_row(["Latte", 3.5], column_map, 1)

        assert result.record.sale_timestamp == FIXED_NOW
        assert result.record.day_period == "Evening"
        assert result.record.quantity == 1

    async def test_unparseable_price(self, resolver):
        """Test price 'abc' with no quantity totals 0.0"""
        column_map = ColumnMap.from_headers(["Date", "Product", "Price"])
        result = await _mapper(resolver).map_row(["2024-03-01", "Latte", "abc"], column_map, 1)

        assert result.ok
        assert result.record.unit_price == 0.0
        assert result.record.total_amount == 0.0

    async def test_invalid_date_fails_row(self, resolver):
        """Test an unparseable date is a row failure, not an exception"""
        column_map = ColumnMap.from_headers(["Date", "Product"])
        result = await _mapper(resolver).map_row(["yesterday-ish", "Latte"], column_map, 7)

        assert not result.ok
        assert result.row_number == 7
        assert "Invalid date" in result.error

    async def test_missing_product_fails_row(self, resolver):
        """Test a row without product name"""
        column_map = ColumnMap.from_headers(["Date", "Product"])
        result = await _mapper(resolver).map_row(["2024-03-01", None], column_map, 2)

        assert not result.ok
        assert result.error == "Product name is missing"

    async def test_spanish_locale(self, resolver):
        """Test calendar names follow the locale"""
        column_map = ColumnMap.from_headers(["Fecha", "Producto"])
        result = await _mapper(resolver, "es").map_row(["2024-03-03 20:00:00", "Café"], column_map, 1)

        assert result.record.weekday_name == "Domingo"
        assert result.record.month_name == "Marzo"
        assert result.record.day_period == "Noche"

    async def test_record_params(self, resolver, sales_header, sales_rows):
        """Test insert parameters cover the sale columns"""
        column_map = ColumnMap.from_headers(sales_header)
        result = await _mapper(resolver).map_row(sales_rows[0], column_map, 1)
        params = result.record.as_params()

        assert params["product_id"] == result.record.product_id
        assert "sale_id" not in params
        assert set(params) >= {"sale_date", "sale_timestamp", "store_id", "payment_method_id", "total_amount"}


class TestRowResult:
    """Tests for RowResult"""

    def test_failure(self):
        """Test failure constructor"""
        result = RowResult.failure(3, "boom")

        assert not result.ok
        assert result.record is None
        assert result.error == "boom"
