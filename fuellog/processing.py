"""
Derivation pass over a vehicle's raw entries.

Sorts entries by date and derives, for each one, the distance traveled since
the previous fill-up, the total spend and whether the entry is valid. Bad
data never raises: it is flagged on the entry and the entry is left out of
statistics.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List

from .entry import ProcessedEntry, RawEntry, parse_date, parse_number


@dataclass
class ProcessResult:
    """Processed entries in date order plus the advisory invalid-data flag."""

    entries: List[ProcessedEntry] = field(default_factory=list)
    has_invalid_entries: bool = False

    @property
    def usable(self) -> List[ProcessedEntry]:
        return usable_entries(self.entries)


def date_sort_key(value) -> date:
    """Sort key for a stored date; missing or unparseable dates sort first."""
    return parse_date(value) or date.min


def derive(raw_entries: Iterable[RawEntry]) -> ProcessResult:
    """
    Sort entries by date and derive distance, spend and validity.

    - The earliest entry is the baseline: no distance, never usable.
    - Distance needs both odometer readings and a strictly increasing reading.
    - Every input entry comes back, in date order (stable for equal dates).
    """
    ordered = sorted(raw_entries, key=lambda e: date_sort_key(e.date))

    processed = []
    prev_odo = None
    for index, raw in enumerate(ordered):
        odo = parse_number(raw.odometer_reading)
        fuel = parse_number(raw.fuel)
        price = parse_number(raw.price)
        entry_date = parse_date(raw.date)

        is_invalid = odo is None or fuel is None or price is None or entry_date is None
        distance = None
        if index > 0 and odo is not None and prev_odo is not None:
            if odo > prev_odo:
                distance = odo - prev_odo
            else:
                is_invalid = True

        processed.append(
            ProcessedEntry(
                date=raw.date,
                odometer_reading=odo,
                fuel=fuel,
                price=price,
                parsed_date=entry_date,
                distance_traveled=distance,
                total_spend=fuel * price if fuel is not None and price is not None else None,
                is_first=index == 0,
                is_invalid=is_invalid,
                raw=raw,
            )
        )
        prev_odo = odo

    return ProcessResult(
        entries=processed,
        has_invalid_entries=any(e.is_invalid for e in processed),
    )


def usable_entries(entries: Iterable[ProcessedEntry]) -> List[ProcessedEntry]:
    """Entries with a distance and no data errors, in their given order."""
    return [e for e in entries if e.is_usable]
