"""
Derived Field Computation

Value coercion for raw workbook cells and the calendar attributes derived
from a sale timestamp (weekday, month, day period).
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Dict, Optional, Tuple
import math
import re

from openpyxl.utils.datetime import from_excel


# Indexed 0=Sunday .. 6=Saturday
WEEKDAY_NAMES: Dict[str, Tuple[str, ...]] = {
    "en": ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"),
    "es": ("Domingo", "Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado"),
}

# Indexed 0=January .. 11=December
MONTH_NAMES: Dict[str, Tuple[str, ...]] = {
    "en": (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
    "es": (
        "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
        "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
    ),
}

# (morning, afternoon, evening)
DAY_PERIOD_NAMES: Dict[str, Tuple[str, str, str]] = {
    "en": ("Morning", "Afternoon", "Evening"),
    "es": ("Mañana", "Tarde", "Noche"),
}

AFTERNOON_START_HOUR = 12
EVENING_START_HOUR = 18

DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%d-%m-%Y",
)

_CURRENCY_CHARS = re.compile(r"[$€£¥,\s]")
_LEADING_FLOAT = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")
_LEADING_INT = re.compile(r"^[+-]?\d+")


class InvalidDateError(ValueError):
    """Raised when a cell cannot be read as a date or timestamp"""


@dataclass(frozen=True)
class CalendarFields:
    """Calendar attributes derived from one sale timestamp"""
    sale_date: date
    sale_timestamp: datetime
    time_of_day: time
    weekday_name: str
    weekday_number: int
    month_name: str
    month_number: int
    day_period: str


def parse_datetime(value: Any) -> datetime:
    """
    Read a workbook cell as a naive local timestamp.

    Accepts datetime, date, Excel serial numbers and common text formats.

    Raises:
        InvalidDateError: If the value cannot be interpreted
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, bool):
        raise InvalidDateError(f"Invalid date value: {value!r}")
    if isinstance(value, (int, float)):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError, TypeError) as e:
            raise InvalidDateError(f"Invalid date value: {value!r}") from e
        if isinstance(converted, datetime):
            return converted
        if isinstance(converted, date):
            return datetime.combine(converted, time.min)
        raise InvalidDateError(f"Invalid date value: {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text)
            return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed
        except ValueError:
            pass
        for fmt in DATETIME_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
    raise InvalidDateError(f"Invalid date value: {value!r}")


def day_period(hour: int, locale: str = "en") -> str:
    """
    Bucket an hour of day: [0, 12) morning, [12, 18) afternoon, [18, 24) evening.
    """
    morning, afternoon, evening = DAY_PERIOD_NAMES[locale]
    if hour < AFTERNOON_START_HOUR:
        return morning
    if hour < EVENING_START_HOUR:
        return afternoon
    return evening


def calendar_fields(moment: datetime, locale: str = "en") -> CalendarFields:
    """Split a timestamp and derive its calendar attributes"""
    weekday_number = (moment.weekday() + 1) % 7
    return CalendarFields(
        sale_date=moment.date(),
        sale_timestamp=moment,
        time_of_day=moment.time().replace(microsecond=0),
        weekday_name=WEEKDAY_NAMES[locale][weekday_number],
        weekday_number=weekday_number,
        month_name=MONTH_NAMES[locale][moment.month - 1],
        month_number=moment.month,
        day_period=day_period(moment.hour, locale),
    )


def parse_number(value: Any) -> Optional[float]:
    """
    Leading numeric value of a cell, ignoring currency symbols and
    thousands separators. None when nothing numeric is found.
    """
    if value is None or isinstance(value, (bool, date, time)):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value == value else None  # NaN
    match = _LEADING_FLOAT.match(_CURRENCY_CHARS.sub("", str(value)))
    if not match:
        return None
    return float(match.group(0))


def coerce_price(value: Any, default: float = 0.0) -> float:
    """Unit price as float, falling back to the default"""
    number = parse_number(value)
    return default if number is None else number


def coerce_quantity(value: Any, default: int = 1) -> int:
    """
    Quantity as an integer, truncating decimals. Missing, unparseable and
    zero quantities fall back to the default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return default
        quantity = int(value)
    else:
        match = _LEADING_INT.match(_CURRENCY_CHARS.sub("", str(value)))
        if not match:
            return default
        quantity = int(match.group(0))
    return quantity or default


def total_amount(unit_price: float, quantity: int) -> float:
    """Line total"""
    return unit_price * quantity
