from .amounts import format_currency, normalize_amount, normalize_currency
from .dates import NOT_AVAILABLE, display_date, parse_timestamp
from .orders import convert_orderspace_order, convert_woo_order, title_case

__all__ = [
    "NOT_AVAILABLE",
    "convert_orderspace_order",
    "convert_woo_order",
    "display_date",
    "format_currency",
    "normalize_amount",
    "normalize_currency",
    "parse_timestamp",
    "title_case",
]
