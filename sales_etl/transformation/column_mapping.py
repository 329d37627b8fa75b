"""
Column Matching

Source workbooks use arbitrary column names. Each logical sale field has a
ranked list of recognized substrings; a header matches a pattern when its
lowercased text contains it. Matching runs once per sheet and yields, per
field, the candidate column indices in priority order. Per row, the first
candidate holding a value wins.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


class SaleField(str, Enum):
    """Logical fields extracted from a source row"""
    DATE = "date"
    PRODUCT = "product"
    CATEGORY = "category"
    PRICE = "price"
    QUANTITY = "quantity"
    CLIENT = "client"
    PAYMENT_METHOD = "payment_method"
    STORE = "store"


# Ranked substrings per field; order is significant
FIELD_PATTERNS: Dict[SaleField, Tuple[str, ...]] = {
    SaleField.DATE: ("fecha", "date", "día"),
    SaleField.PRODUCT: ("producto", "product", "item", "coffee"),
    SaleField.CATEGORY: ("categoria", "category", "tipo"),
    SaleField.PRICE: ("precio", "price", "total", "amount"),
    SaleField.QUANTITY: ("cantidad", "quantity", "qty"),
    SaleField.CLIENT: ("cliente", "customer", "client"),
    SaleField.PAYMENT_METHOD: ("pago", "payment", "método"),
    SaleField.STORE: ("sucursal", "store", "location", "branch"),
}


def is_blank(value: Any) -> bool:
    """A cell counts as empty when it is None or whitespace-only text"""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _header_text(header: Any) -> str:
    if header is None:
        return ""
    return str(header).strip().lower()


@dataclass(frozen=True)
class ColumnMap:
    """
    Fixed field-to-column mapping for one sheet.

    Example:
        column_map = ColumnMap.from_headers(["Date", "coffee_name", "money"])
        product = column_map.value(row, SaleField.PRODUCT)
    """
    headers: Tuple[str, ...]
    candidates: Mapping[SaleField, Tuple[int, ...]] = field(default_factory=dict)

    @classmethod
    def from_headers(
        cls,
        headers: Sequence[Any],
        patterns: Optional[Mapping[SaleField, Sequence[str]]] = None,
    ) -> "ColumnMap":
        """
        Build the mapping from a header row.

        For each pattern, in priority order, the first header containing it
        becomes a candidate. Duplicate and empty headers are tolerated.

        Args:
            headers: Header row of the sheet
            patterns: Override the recognized substrings

        Returns:
            ColumnMap for the sheet
        """
        patterns = patterns or FIELD_PATTERNS
        normalized = tuple(_header_text(h) for h in headers)

        candidates: Dict[SaleField, Tuple[int, ...]] = {}
        for sale_field, field_patterns in patterns.items():
            indices: List[int] = []
            for pattern in field_patterns:
                needle = pattern.lower()
                for index, header in enumerate(normalized):
                    if header and needle in header:
                        if index not in indices:
                            indices.append(index)
                        break
            candidates[sale_field] = tuple(indices)

        return cls(headers=normalized, candidates=candidates)

    def columns_for(self, sale_field: SaleField) -> Tuple[int, ...]:
        """Candidate column indices for a field, highest priority first"""
        return self.candidates.get(sale_field, ())

    def value(self, row: Sequence[Any], sale_field: SaleField) -> Any:
        """
        First non-empty value among the field's candidate columns.

        Returns:
            The raw cell value, or None when the field is absent
        """
        for index in self.columns_for(sale_field):
            if index < len(row) and not is_blank(row[index]):
                return row[index]
        return None

    def extract(self, row: Sequence[Any]) -> Dict[SaleField, Any]:
        """Raw values for every logical field"""
        return {sale_field: self.value(row, sale_field) for sale_field in SaleField}

    def describe(self) -> Dict[str, List[str]]:
        """Matched header names per field, for logging"""
        return {
            sale_field.value: [self.headers[i] for i in indices]
            for sale_field, indices in self.candidates.items()
        }
