"""
Session state and the full processing pass behind every view.

The CLI and web app never keep derived values between requests: after any
change they call build_dashboard() again, which re-derives everything from
the stored entries.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .charts import ChartSeries, chart_series
from .entry import ProcessedEntry
from .ownership import OwnershipReport, OwnershipUnavailable, project
from .processing import date_sort_key, derive, usable_entries
from .statistics import STATS_THRESHOLD, StatisticsResult, aggregate
from .store import Store
from .units import UnitSystem
from .vehicle import Vehicle

# Log table columns that can be sorted, mapped to ProcessedEntry attributes
SORT_KEYS = {
    "date": "date",
    "odometerReading": "odometer_reading",
    "distanceTraveled": "distance_traveled",
    "fuel": "fuel",
    "price": "price",
    "totalSpend": "total_spend",
}
ASC = "asc"
DESC = "desc"


@dataclass
class SortConfig:
    """Log table sort column and direction."""

    key: str = "date"
    direction: str = ASC

    def __post_init__(self):
        if self.key not in SORT_KEYS:
            raise ValueError(
                f"Unknown sort key '{self.key}' (choose from {', '.join(SORT_KEYS)})"
            )
        if self.direction not in (ASC, DESC):
            raise ValueError(f"Unknown sort direction '{self.direction}'")

    def toggle(self, key: str) -> "SortConfig":
        """Same column flips direction; a new column starts ascending."""
        if key == self.key:
            return SortConfig(key, DESC if self.direction == ASC else ASC)
        return SortConfig(key, ASC)


@dataclass
class Session:
    """Which vehicle is being viewed, and how."""

    current_vehicle: Optional[str] = None
    sort: SortConfig = field(default_factory=SortConfig)
    unit_system: UnitSystem = UnitSystem.METRIC

    def select(self, store: Store) -> Optional[Vehicle]:
        """
        Resolve the current vehicle against the store.

        Falls back to the first vehicle when none is selected or the
        selected one no longer exists.
        """
        if self.current_vehicle not in store.vehicles:
            names = store.names()
            self.current_vehicle = names[0] if names else None
        if self.current_vehicle is None:
            return None
        return store.vehicles[self.current_vehicle]


def sort_for_display(
    entries: List[ProcessedEntry], sort: SortConfig
) -> List[ProcessedEntry]:
    """
    Order processed entries for the log table.

    Numeric columns put missing values last when ascending and first when
    descending. Ties keep date order.
    """
    reverse = sort.direction == DESC
    if sort.key == "date":
        return sorted(entries, key=lambda e: date_sort_key(e.date), reverse=reverse)

    attr = SORT_KEYS[sort.key]

    def key(entry):
        value = getattr(entry, attr)
        return (value is None, value if value is not None else 0.0)

    return sorted(entries, key=key, reverse=reverse)


@dataclass
class Notice:
    level: str  # "error" or "info"
    text: str


@dataclass
class LogRow:
    """A processed entry and the index of the stored entry it came from."""

    entry: ProcessedEntry
    index: int


@dataclass
class Dashboard:
    """Everything a view needs for one vehicle, from a single pass."""

    vehicle: Optional[Vehicle]
    unit_system: UnitSystem
    sort: SortConfig
    # Processed entries in date order; rows holds them in display order
    entries: List[ProcessedEntry] = field(default_factory=list)
    rows: List[LogRow] = field(default_factory=list)
    has_invalid_entries: bool = False
    statistics: Optional[StatisticsResult] = None
    ownership: Union[OwnershipReport, OwnershipUnavailable, None] = None
    charts: Dict[str, ChartSeries] = field(default_factory=dict)
    notices: List[Notice] = field(default_factory=list)

    @property
    def stats_notice(self) -> Optional[str]:
        """Why detailed statistics are missing, if they are."""
        if self.vehicle is None:
            return "Please select or add a vehicle to view detailed statistics."
        if self.statistics is None or self.statistics.has_report:
            return None
        needed = self.statistics.needed
        plural = "entries" if needed > 1 else "entry"
        return (
            f"Please add {needed} more valid fuel {plural} to view detailed "
            f"statistics. (Requires at least {STATS_THRESHOLD} entries with a "
            "calculated distance traveled and no data errors)"
        )


def log_notices(entries: List[ProcessedEntry]) -> List[Notice]:
    """Notices shown above the log table."""
    notices = []
    if any(e.is_invalid for e in entries):
        notices.append(
            Notice(
                "error",
                "Data Entry Issue: Some entries appear to have invalid data "
                "(e.g., odometer not increasing, missing values). These entries "
                "are excluded from statistics. Please edit or delete them for "
                "accurate calculations.",
            )
        )
    total_needed = STATS_THRESHOLD + 1
    if 0 < len(entries) < total_needed:
        notices.append(
            Notice(
                "info",
                "The first entry establishes your starting odometer reading. "
                f"At least {total_needed} total entries are needed to generate "
                "stats and charts.",
            )
        )
    elif len(entries) >= total_needed:
        notices.append(
            Notice(
                "info",
                "The first entry is always your baseline reading and is "
                "excluded from statistics.",
            )
        )
    return notices


def build_dashboard(store: Store, session: Session) -> Dashboard:
    """Derive, aggregate and project everything for the session's vehicle."""
    session.unit_system = store.unit_system
    vehicle = session.select(store)
    dashboard = Dashboard(vehicle=vehicle, unit_system=store.unit_system, sort=session.sort)
    if vehicle is None:
        dashboard.ownership = project(0.0, [], None, vehicle_selected=False)
        return dashboard

    result = derive(vehicle.entries)
    usable = usable_entries(result.entries)
    statistics = aggregate(usable, store.unit_system)

    dashboard.rows = [
        LogRow(entry, vehicle.index_of(entry))
        for entry in sort_for_display(result.entries, session.sort)
    ]
    dashboard.entries = result.entries
    dashboard.has_invalid_entries = result.has_invalid_entries
    dashboard.statistics = statistics
    dashboard.ownership = project(
        statistics.total_fuel_cost, usable, vehicle.purchase_price
    )
    dashboard.charts = chart_series(usable, store.unit_system)
    dashboard.notices = log_notices(result.entries)
    return dashboard
