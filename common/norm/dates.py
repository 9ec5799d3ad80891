import logging
from datetime import date, datetime, timezone
from typing import Optional, Tuple

LOG = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

ORDERSPACE_CREATED_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
WOO_CREATED_FORMAT = "%Y-%m-%dT%H:%M:%S"
DELIVERY_DATE_FORMAT = "%Y-%m-%d"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw: Optional[str], fmt: str) -> Optional[datetime]:
    """Parse ``raw`` with ``fmt``; naive values are taken as UTC."""
    if not raw:
        return None
    try:
        parsed = datetime.strptime(raw.strip(), fmt)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def display_date(value: date) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def sort_key_and_display(raw: Optional[str], fmt: str, source: str) -> Tuple[datetime, str]:
    """Return the sort timestamp and display string for an order creation date.

    Unparseable dates never stop an order from being listed: the sort key falls
    back to the current time and the raw value is shown as is.
    """
    parsed = parse_timestamp(raw, fmt)
    if parsed is None:
        LOG.warning("Failed to parse %s order date %r, sorting it as now", source, raw)
        return _now(), raw or ""
    return parsed, display_date(parsed)


def delivery_display(raw: Optional[str]) -> str:
    if not raw:
        return NOT_AVAILABLE
    try:
        return display_date(datetime.strptime(raw.strip(), DELIVERY_DATE_FORMAT).date())
    except ValueError:
        return raw
