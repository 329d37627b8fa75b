"""
Row Mapper

Turns one positional workbook row into a fully resolved sale record:
raw values are picked through the sheet's column map, the timestamp is
parsed and expanded into calendar attributes, monetary values are
coerced, and natural keys are resolved to surrogate identifiers.

Mapping never raises for bad data; the outcome is a RowResult.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from .resolver import EntityResolver, ResolutionError
from .column_mapping import ColumnMap, SaleField
from .derived import (
    InvalidDateError,
    calendar_fields,
    coerce_price,
    coerce_quantity,
    parse_datetime,
    parse_number,
    total_amount,
)


@dataclass(frozen=True)
class SaleRecord:
    """A sale ready for insertion, with every reference resolved"""
    sale_date: date
    sale_timestamp: datetime
    time_of_day: time
    product_id: int
    payment_method_id: int
    client_id: Optional[int]
    store_id: int
    unit_price: float
    quantity: int
    total_amount: float
    day_period: str
    weekday_name: str
    month_name: str
    weekday_number: int
    month_number: int

    def as_params(self) -> Dict[str, Any]:
        """Column values for the sales insert statement"""
        return asdict(self)


@dataclass(frozen=True)
class RowResult:
    """Outcome of mapping one source row"""
    row_number: int
    record: Optional[SaleRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, row_number: int, record: SaleRecord) -> "RowResult":
        return cls(row_number=row_number, record=record)

    @classmethod
    def failure(cls, row_number: int, error: str) -> "RowResult":
        return cls(row_number=row_number, error=error)


class RowMapper:
    """
    Maps source rows to sale records for one import run.

    Args:
        resolver: Entity resolver shared by every row of the run
        locale: Calendar name table ("en" or "es")
        clock: Source of the timestamp used when a row has no date
    """

    def __init__(
        self,
        resolver: EntityResolver,
        locale: str = "en",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.resolver = resolver
        self.locale = locale
        self.clock = clock

    async def map_row(
        self,
        row: Sequence[Any],
        column_map: ColumnMap,
        row_number: int,
    ) -> RowResult:
        """
        Map one row.

        Args:
            row: Positional cell values aligned to the sheet header
            column_map: Field-to-column mapping built once for the sheet
            row_number: 1-based data row number, used in error reports

        Returns:
            RowResult with a SaleRecord, or with the reason the row failed
        """
        values = column_map.extract(row)

        try:
            record = await self._build_record(values)
        except (InvalidDateError, ResolutionError) as e:
            return RowResult.failure(row_number, str(e))
        except SQLAlchemyError as e:
            return RowResult.failure(row_number, f"{type(e).__name__}: {e}")

        return RowResult.success(row_number, record)

    async def _build_record(self, values: Dict[SaleField, Any]) -> SaleRecord:
        raw_date = values[SaleField.DATE]
        moment = self.clock() if raw_date is None else parse_datetime(raw_date)
        calendar = calendar_fields(moment, self.locale)

        unit_price = coerce_price(values[SaleField.PRICE])
        quantity = coerce_quantity(values[SaleField.QUANTITY])

        product_id = await self.resolver.resolve_product(
            values[SaleField.PRODUCT],
            category=values[SaleField.CATEGORY],
            base_price=parse_number(values[SaleField.PRICE]),
        )
        client_id = await self.resolver.resolve_client(values[SaleField.CLIENT])
        store_id = await self.resolver.resolve_store(values[SaleField.STORE])
        payment_method_id = await self.resolver.resolve_payment_method(
            values[SaleField.PAYMENT_METHOD]
        )

        return SaleRecord(
            sale_date=calendar.sale_date,
            sale_timestamp=calendar.sale_timestamp,
            time_of_day=calendar.time_of_day,
            product_id=product_id,
            payment_method_id=payment_method_id,
            client_id=client_id,
            store_id=store_id,
            unit_price=unit_price,
            quantity=quantity,
            total_amount=total_amount(unit_price, quantity),
            day_period=calendar.day_period,
            weekday_name=calendar.weekday_name,
            month_name=calendar.month_name,
            weekday_number=calendar.weekday_number,
            month_number=calendar.month_number,
        )
