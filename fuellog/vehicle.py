"""Vehicle class - the aggregate of a vehicle's fuel entries and calculations."""

from typing import List, Optional, Union

from .charts import chart_series
from .entry import ProcessedEntry, RawEntry
from .ownership import OwnershipReport, OwnershipUnavailable, project
from .processing import ProcessResult, derive
from .statistics import StatisticsResult, aggregate
from .units import UnitSystem


class Vehicle:
    """A vehicle with an optional purchase price and its fuel log."""

    def __init__(
        self,
        name: str,
        purchase_price: Optional[float] = None,
        entries: Optional[List[RawEntry]] = None,
        has_invalid_entries: bool = False,
    ):
        self.name = name
        self.purchase_price = purchase_price
        self.entries = entries or []
        # Advisory only; refreshed whenever the store is saved
        self.has_invalid_entries = has_invalid_entries

    def process(self) -> ProcessResult:
        """Run the derivation pass over the stored entries."""
        return derive(self.entries)

    def usable_entries(self) -> List[ProcessedEntry]:
        """Entries that count toward statistics, in date order."""
        return self.process().usable

    def statistics(self, unit_system: UnitSystem = UnitSystem.METRIC) -> StatisticsResult:
        return aggregate(self.usable_entries(), unit_system)

    def ownership_cost(
        self, unit_system: UnitSystem = UnitSystem.METRIC
    ) -> Union[OwnershipReport, OwnershipUnavailable]:
        usable = self.usable_entries()
        total_fuel_cost = aggregate(usable, unit_system).total_fuel_cost
        return project(total_fuel_cost, usable, self.purchase_price)

    def charts(self, unit_system: UnitSystem = UnitSystem.METRIC):
        return chart_series(self.usable_entries(), unit_system)

    def index_of(self, entry: ProcessedEntry) -> int:
        """
        Index of the first stored entry the processed entry came from.

        Entries have no identity, so this matches on field values; returns -1
        when nothing matches.
        """
        for index, raw in enumerate(self.entries):
            if entry.matches(raw):
                return index
        return -1
