"""Total cost of ownership: purchase price plus fuel, spread over time."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

from .calculations import tracked_days
from .entry import ProcessedEntry
from .statistics import STATS_THRESHOLD, entries_needed

DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30.44
DAYS_PER_YEAR = 365.25


class Unavailable(Enum):
    """Why ownership cost can't be shown."""

    NO_VEHICLE = 1
    NO_PURCHASE_PRICE = 2
    NOT_ENOUGH_DATA = 3


@dataclass
class OwnershipUnavailable:
    reason: Unavailable
    needed: int = 0

    @property
    def message(self) -> str:
        if self.reason is Unavailable.NO_VEHICLE:
            return "Please select or add a vehicle to view Total Cost of Ownership."
        if self.reason is Unavailable.NO_PURCHASE_PRICE:
            return (
                "To see Total Cost of Ownership, edit the vehicle "
                "and add its purchase price."
            )
        plural = "entries" if self.needed > 1 else "entry"
        return (
            f"Please add {self.needed} more valid fuel {plural} "
            "to calculate Total Cost of Ownership."
        )


@dataclass
class OwnershipReport:
    """Ownership cost amortized over the tracked span."""

    purchase_price: float
    total_fuel_cost: float
    total_ownership_cost: float
    days: int
    cost_per_day: float

    @property
    def cost_per_week(self) -> float:
        return self.cost_per_day * DAYS_PER_WEEK

    @property
    def cost_per_month(self) -> float:
        return self.cost_per_day * DAYS_PER_MONTH

    @property
    def cost_per_year(self) -> float:
        return self.cost_per_day * DAYS_PER_YEAR

    def rows(self):
        """(label, value) pairs formatted to 2 decimals, for display."""
        return [
            ("Purchase Price", f"{self.purchase_price:.2f}"),
            ("Total Fuel Cost", f"{self.total_fuel_cost:.2f}"),
            ("Total Ownership Cost (Price + Fuel)", f"{self.total_ownership_cost:.2f}"),
            ("Cost per Year", f"{self.cost_per_year:.2f}"),
            ("Cost per Month", f"{self.cost_per_month:.2f}"),
            ("Cost per Week", f"{self.cost_per_week:.2f}"),
            ("Cost per Day", f"{self.cost_per_day:.2f}"),
        ]


def project(
    total_fuel_cost: float,
    entries: Sequence[ProcessedEntry],
    purchase_price: Optional[float],
    vehicle_selected: bool = True,
) -> Union[OwnershipReport, OwnershipUnavailable]:
    """
    Project ownership cost from fuel spend and purchase price.

    `entries` are the usable entries in date order. The span is at least one
    day so same-day entries can't divide by zero.
    """
    if not vehicle_selected:
        return OwnershipUnavailable(Unavailable.NO_VEHICLE)
    if purchase_price is None or purchase_price <= 0:
        return OwnershipUnavailable(Unavailable.NO_PURCHASE_PRICE)
    if len(entries) < STATS_THRESHOLD:
        return OwnershipUnavailable(
            Unavailable.NOT_ENOUGH_DATA, needed=entries_needed(len(entries))
        )

    total = purchase_price + total_fuel_cost
    days = tracked_days(entries[0].parsed_date, entries[-1].parsed_date)
    return OwnershipReport(
        purchase_price=purchase_price,
        total_fuel_cost=total_fuel_cost,
        total_ownership_cost=total,
        days=days,
        cost_per_day=total / days,
    )
