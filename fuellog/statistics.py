"""
Aggregate statistics over a vehicle's usable entries.

Statistics are only reported once there are STATS_THRESHOLD usable entries
(entries with a calculated distance and no data errors). Below that the
result still carries the total fuel cost so ownership cost can use it.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .calculations import (
    date_gaps,
    efficiency,
    median,
    rolling_average,
    safe_divide,
    sample_stdev,
    tracked_days,
)
from .entry import ProcessedEntry
from .units import UnitSystem

STATS_THRESHOLD = 3

NOT_AVAILABLE = "N/A"

CATEGORY_DESCRIPTIONS = {
    "Time-Based": "Statistics related to the passage of time between entries.",
    "Distance": "Analysis of the distance traveled between each refuel.",
    "Fuel & Cost": "Metrics about fuel volume, unit price, and total expenditure.",
    "Efficiency": "In-depth analysis of your vehicle's fuel efficiency trends.",
    "Volatility": (
        "Measures the consistency of prices and costs over time. "
        "Higher numbers mean more fluctuation."
    ),
}


def entries_needed(usable_count: int) -> int:
    """How many more usable entries are required before stats are shown."""
    return max(0, STATS_THRESHOLD - usable_count)


def _fixed(value: float, decimals: int, unit: str = "") -> str:
    text = f"{value:.{decimals}f}"
    return f"{text} {unit}" if unit else text


@dataclass
class StatisticsReport:
    """Raw statistic values for a set of usable entries."""

    unit_system: UnitSystem
    entry_count: int
    # Primary
    total_distance: float
    total_fuel: float
    total_cost: float
    average_efficiency: float
    # Time-based
    total_days: int
    average_days_between: float
    distance_per_day: float
    cost_per_day: float
    longest_gap: int
    # Distance
    average_distance: float
    longest_distance: float
    shortest_distance: float
    distance_stdev: float
    # Fuel & cost
    average_price: float
    average_cost: float
    max_cost: float
    min_cost: float
    cost_per_distance: float
    distance_per_cost: float
    # Efficiency
    best_efficiency: float
    worst_efficiency: float
    median_efficiency: float
    efficiency_stdev: float
    rolling_average_3: Optional[float]
    rolling_average_5: Optional[float]
    # Volatility
    price_stdev: float
    cost_stdev: float

    def categories(self) -> "OrderedDict[str, Dict[str, str]]":
        """
        Statistics grouped by category, formatted for display and export.

        Distance, volume, cost and efficiency use 2 decimals; per-volume
        price and cost per distance use 3.
        """
        units = self.unit_system
        dist = units.distance_unit
        vol = units.volume_unit
        eff = units.efficiency_unit

        def rolling(value: Optional[float]) -> str:
            return NOT_AVAILABLE if value is None else _fixed(value, 2, eff)

        return OrderedDict(
            [
                (
                    "Primary",
                    {
                        "Total Distance": _fixed(self.total_distance, 2, dist),
                        "Total Fuel": _fixed(self.total_fuel, 2, vol),
                        "Total Cost": _fixed(self.total_cost, 2),
                        "Average Efficiency": _fixed(self.average_efficiency, 2, eff),
                    },
                ),
                (
                    "Time-Based",
                    {
                        "Total Days Tracked": f"{self.total_days} days",
                        "Average Days Between Entries": _fixed(
                            self.average_days_between, 1, "days"
                        ),
                        "Distance per Day": _fixed(self.distance_per_day, 2, dist),
                        "Fuel Cost per Day": _fixed(self.cost_per_day, 2),
                        "Longest Gap Between Entries": f"{self.longest_gap} days",
                    },
                ),
                (
                    "Distance",
                    {
                        "Average Distance per Entry": _fixed(
                            self.average_distance, 2, dist
                        ),
                        "Longest Distance on One Entry": _fixed(
                            self.longest_distance, 2, dist
                        ),
                        "Shortest Distance on One Entry": _fixed(
                            self.shortest_distance, 2, dist
                        ),
                        "Std. Dev. of Distance": _fixed(self.distance_stdev, 2, dist),
                    },
                ),
                (
                    "Fuel & Cost",
                    {
                        "Average Price per Unit": _fixed(
                            self.average_price, 3, f"per {vol}"
                        ),
                        "Average Cost per Entry": _fixed(self.average_cost, 2),
                        "Most Expensive Entry": _fixed(self.max_cost, 2),
                        "Cheapest Entry": _fixed(self.min_cost, 2),
                        "Cost per Distance": _fixed(
                            self.cost_per_distance, 3, f"per {dist}"
                        ),
                        "Distance per Currency Unit": _fixed(
                            self.distance_per_cost, 2, dist
                        ),
                    },
                ),
                (
                    "Efficiency",
                    {
                        "Best Efficiency": _fixed(self.best_efficiency, 2, eff),
                        "Worst Efficiency": _fixed(self.worst_efficiency, 2, eff),
                        "Median Efficiency": _fixed(self.median_efficiency, 2, eff),
                        "Std. Dev. of Efficiency": _fixed(
                            self.efficiency_stdev, 2, eff
                        ),
                        "3-Entry Rolling Avg": rolling(self.rolling_average_3),
                        "5-Entry Rolling Avg": rolling(self.rolling_average_5),
                    },
                ),
                (
                    "Volatility",
                    {
                        "Std. Dev. of Fuel Price": _fixed(self.price_stdev, 3),
                        "Std. Dev. of Entry Cost": _fixed(self.cost_stdev, 2),
                    },
                ),
            ]
        )

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        """Plain-dict form of categories(), as written by the JSON export."""
        return {name: dict(stats) for name, stats in self.categories().items()}


@dataclass
class StatisticsResult:
    """Outcome of aggregation: a report, or not enough data yet."""

    report: Optional[StatisticsReport]
    total_fuel_cost: float
    usable_count: int

    @property
    def needed(self) -> int:
        return entries_needed(self.usable_count)

    @property
    def has_report(self) -> bool:
        return self.report is not None


def entry_efficiencies(
    entries: Sequence[ProcessedEntry], unit_system: UnitSystem
) -> List[float]:
    """Per-entry efficiency in the unit system's convention."""
    return [
        efficiency(e.distance_traveled, e.fuel, unit_system.higher_efficiency_is_better)
        for e in entries
    ]


def aggregate(
    entries: Sequence[ProcessedEntry], unit_system: UnitSystem = UnitSystem.METRIC
) -> StatisticsResult:
    """
    Compute statistics over usable entries (already filtered and date-ordered).

    Average efficiency comes from the totals, not from averaging per-entry
    efficiencies, so short fill-ups don't skew it.
    """
    total_cost = sum((e.total_spend for e in entries), 0.0)
    count = len(entries)
    if count < STATS_THRESHOLD:
        return StatisticsResult(report=None, total_fuel_cost=total_cost, usable_count=count)

    distances = [e.distance_traveled for e in entries]
    fuels = [e.fuel for e in entries]
    prices = [e.price for e in entries]
    costs = [e.total_spend for e in entries]
    dates = [e.parsed_date for e in entries]
    efficiencies = entry_efficiencies(entries, unit_system)

    total_distance = sum(distances)
    total_fuel = sum(fuels)
    higher_is_better = unit_system.higher_efficiency_is_better
    if total_fuel == 0:
        average_efficiency = 0.0
    else:
        average_efficiency = efficiency(total_distance, total_fuel, higher_is_better)

    total_days = tracked_days(dates[0], dates[-1])
    gaps = date_gaps(dates)

    best = max(efficiencies) if higher_is_better else min(efficiencies)
    worst = min(efficiencies) if higher_is_better else max(efficiencies)

    report = StatisticsReport(
        unit_system=unit_system,
        entry_count=count,
        total_distance=total_distance,
        total_fuel=total_fuel,
        total_cost=total_cost,
        average_efficiency=average_efficiency,
        total_days=total_days,
        average_days_between=sum(gaps) / len(gaps) if gaps else 0.0,
        distance_per_day=total_distance / total_days,
        cost_per_day=total_cost / total_days,
        longest_gap=max(gaps) if gaps else 0,
        average_distance=total_distance / count,
        longest_distance=max(distances),
        shortest_distance=min(distances),
        distance_stdev=sample_stdev(distances),
        average_price=safe_divide(total_cost, total_fuel),
        average_cost=total_cost / count,
        max_cost=max(costs),
        min_cost=min(costs),
        cost_per_distance=safe_divide(total_cost, total_distance),
        distance_per_cost=safe_divide(total_distance, total_cost),
        best_efficiency=best,
        worst_efficiency=worst,
        median_efficiency=median(efficiencies),
        efficiency_stdev=sample_stdev(efficiencies),
        rolling_average_3=rolling_average(efficiencies, 3),
        rolling_average_5=rolling_average(efficiencies, 5),
        price_stdev=sample_stdev(prices),
        cost_stdev=sample_stdev(costs),
    )
    return StatisticsResult(report=report, total_fuel_cost=total_cost, usable_count=count)
