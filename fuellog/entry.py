"""Fuel entry records and field parsing."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from dateutil import parser as date_parser

from .errors import EntryInputError


def parse_number(value: Any) -> Optional[float]:
    """Parse a stored numeric field, returning None when it isn't a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


# Two unrelated defaults; a string only names a complete date when both
# parses agree, so parts missing from the text never come from the clock.
DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a stored date field (no time component), None when unusable.

    Only complete dates count: "2024-03" or "March" is None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        first, second = [date_parser.parse(text, default=d).date() for d in DATE_DEFAULTS]
    except (ValueError, OverflowError):
        return None
    if first != second:
        return None
    return first


@dataclass
class RawEntry:
    """One fuel purchase as stored. Equal entries have equal fields."""

    date: Any
    odometer_reading: Any
    fuel: Any
    price: Any


@dataclass
class ProcessedEntry:
    """A raw entry with parsed fields and values derived from its neighbours."""

    date: Any
    odometer_reading: Optional[float]
    fuel: Optional[float]
    price: Optional[float]
    parsed_date: Optional[date] = None
    distance_traveled: Optional[float] = None
    total_spend: Optional[float] = None
    is_first: bool = False
    is_invalid: bool = False
    raw: Optional[RawEntry] = None

    @property
    def is_usable(self) -> bool:
        """True when the entry counts toward statistics and charts."""
        return self.distance_traveled is not None and not self.is_invalid

    def matches(self, raw: RawEntry) -> bool:
        """True when this entry was derived from a value-equal raw entry."""
        if self.raw is not None:
            # Stored values, so unparseable fields still tell entries apart
            return self.raw == raw
        return (
            self.date == raw.date
            and self.odometer_reading == parse_number(raw.odometer_reading)
            and self.fuel == parse_number(raw.fuel)
            and self.price == parse_number(raw.price)
        )


def make_entry(date_value: Any, odometer: Any, fuel: Any, price: Any) -> RawEntry:
    """
    Build an entry from manual input, rejecting incomplete values.

    Raises:
        EntryInputError: a field is empty or does not parse.
    """
    fields = {"odometer reading": odometer, "fuel": fuel, "price": price}
    missing = [name for name, value in fields.items() if value in (None, "")]
    if date_value in (None, "") or (isinstance(date_value, str) and not date_value.strip()):
        missing.insert(0, "date")
    if missing:
        raise EntryInputError(f"Please fill in: {', '.join(missing)}")

    parsed = {name: parse_number(value) for name, value in fields.items()}
    bad = [name for name, value in parsed.items() if value is None]
    if bad:
        raise EntryInputError(f"Not a number: {', '.join(bad)}")

    parsed_date = parse_date(date_value)
    if parsed_date is None:
        raise EntryInputError(f"Invalid date '{date_value}' (expected YYYY-MM-DD)")

    return RawEntry(
        date=parsed_date.isoformat(),
        odometer_reading=parsed["odometer reading"],
        fuel=parsed["fuel"],
        price=parsed["price"],
    )
