"""
Test Suite Configuration
"""
import pytest
from datetime import datetime
from typing import AsyncGenerator, List

from openpyxl import Workbook
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from sales_etl.config import ImportSettings, Settings
from sales_etl.database.connection import build_engine, build_session_factory
from sales_etl.database.schema import recreate_schema
from sales_etl.transformation.resolver import EntityResolver


SALES_HEADER = ["Fecha", "coffee_name", "Category", "Price", "Qty", "customer_id", "payment_method", "Store Location"]


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def import_settings() -> ImportSettings:
    """Import settings with the default sentinels"""
    return ImportSettings(max_reported_errors=10, progress_interval=25, locale="en")


@pytest.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite database with the schema created, one per test"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await recreate_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    session_factory = build_session_factory(test_engine)

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def resolver(test_db, import_settings) -> EntityResolver:
    """Resolver bound to the test session"""
    return EntityResolver(test_db, import_settings)


@pytest.fixture
def sales_header() -> List[str]:
    """Header row in the layout of the coffee sales export"""
    return list(SALES_HEADER)


@pytest.fixture
def sales_rows() -> List[list]:
    """Six sales: three products, two stores, one anonymous sale"""
    return [
        [datetime(2024, 3, 1, 10, 15), "Latte", "Coffee", 3.5, 2, "ANON-0001", "card", "Downtown"],
        [datetime(2024, 3, 1, 13, 40), "latte ", "Coffee", 3.5, 1, "anon-0001", "Card", "downtown"],
        [datetime(2024, 3, 2, 18, 5), "Americano", "Coffee", 2.75, 1, None, "cash", "Airport"],
        [datetime(2024, 3, 3, 9, 0), "Hot Chocolate", "Chocolate", "$4.00", "3", "ANON-0002", "card", "Downtown"],
        [datetime(2024, 4, 7, 19, 30), "Americano", "Coffee", 2.75, None, "ANON-0002", "cash", "Airport"],
        [datetime(2024, 4, 8, 11, 59), "Latte", "Coffee", 3.5, 1, "ANON-0003", None, None],
    ]


@pytest.fixture
def workbook_path(tmp_path, sales_header, sales_rows):
    """Workbook with one sales sheet and one empty sheet"""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Sales"
    sheet.append(sales_header)
    for row in sales_rows:
        sheet.append(row)
    workbook.create_sheet("Notes")

    path = tmp_path / "Coffe_sales.xlsx"
    workbook.save(path)
    return path
