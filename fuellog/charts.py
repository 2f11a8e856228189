"""Per-entry data series for the dashboard charts."""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .calculations import safe_divide
from .entry import ProcessedEntry
from .statistics import STATS_THRESHOLD, entry_efficiencies
from .units import UnitSystem


@dataclass
class ChartSeries:
    """One chart: a label, a kind ("line" or "bar") and values per entry date."""

    label: str
    kind: str
    labels: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)
    reverse_axis: bool = False

    def to_dict(self) -> Dict:
        return {
            "label": self.label,
            "kind": self.kind,
            "labels": self.labels,
            "values": self.values,
            "reverseAxis": self.reverse_axis,
        }


def _cumulative(values: Sequence[float]) -> List[float]:
    totals = []
    running = 0.0
    for value in values:
        running += value
        totals.append(running)
    return totals


def chart_series(
    entries: Sequence[ProcessedEntry], unit_system: UnitSystem = UnitSystem.METRIC
) -> "OrderedDict[str, ChartSeries]":
    """
    Build the chart series for usable entries, in date order.

    Returns an empty mapping below the statistics threshold. Metric
    efficiency (L/100km) gets a reversed axis so "up" still means better.
    """
    if len(entries) < STATS_THRESHOLD:
        return OrderedDict()

    imperial = unit_system is UnitSystem.IMPERIAL
    dates = [e.parsed_date.isoformat() for e in entries]
    distance_name = "Mile" if imperial else "KM"
    volume_name = "Gallon" if imperial else "Liter"

    def series(label, kind, values, reverse_axis=False):
        return ChartSeries(label, kind, list(dates), list(values), reverse_axis)

    return OrderedDict(
        [
            (
                "efficiency",
                series(
                    unit_system.efficiency_unit,
                    "line",
                    entry_efficiencies(entries, unit_system),
                    reverse_axis=not unit_system.higher_efficiency_is_better,
                ),
            ),
            ("cost", series("Cost per Entry", "bar", [e.total_spend for e in entries])),
            (
                "cost_per_distance",
                series(
                    f"Cost per {distance_name}",
                    "line",
                    [safe_divide(e.total_spend, e.distance_traveled) for e in entries],
                ),
            ),
            (
                "fuel_price",
                series(f"Price per {volume_name}", "line", [e.price for e in entries]),
            ),
            (
                "fuel_volume",
                series(
                    f"Fuel Volume ({volume_name}s)", "bar", [e.fuel for e in entries]
                ),
            ),
            (
                "cumulative_distance",
                series(
                    f"Cumulative Distance ({unit_system.distance_unit})",
                    "line",
                    _cumulative([e.distance_traveled for e in entries]),
                ),
            ),
        ]
    )
