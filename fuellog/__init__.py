"""
Fuel purchase tracking and statistics.

This package provides the data models and calculations for a fuel log:
- RawEntry / ProcessedEntry: stored fuel purchases and their derived values
- derive: date ordering, distance traveled, spend and validity flags
- aggregate: grouped statistics over usable entries
- project: total cost of ownership
- UnitSystem / convert_entries: metric and imperial values
- Vehicle / Store: vehicles and their YAML persistence
- Session / build_dashboard: the full pass behind every view
"""

from .errors import (
    FuelLogError,
    EntryInputError,
    VehicleExistsError,
    VehicleNotFoundError,
    ImportFormatError,
    ExportError,
)
from .entry import RawEntry, ProcessedEntry, make_entry, parse_number, parse_date
from .units import UnitSystem, convert_entry, convert_entries
from .processing import ProcessResult, derive, usable_entries
from .statistics import STATS_THRESHOLD, StatisticsReport, StatisticsResult, aggregate
from .ownership import OwnershipReport, OwnershipUnavailable, Unavailable, project
from .charts import ChartSeries, chart_series
from .vehicle import Vehicle
from .store import (
    Store,
    load_store,
    save_store,
    load_vehicle,
    add_vehicle,
    update_vehicle,
    delete_vehicle,
    add_entry,
    update_entry,
    delete_entry,
    edit_entries,
    replace_entries,
    clear_entries,
    set_unit_system,
)
from .session import Session, SortConfig, Dashboard, build_dashboard

__all__ = [
    "FuelLogError",
    "EntryInputError",
    "VehicleExistsError",
    "VehicleNotFoundError",
    "ImportFormatError",
    "ExportError",
    "RawEntry",
    "ProcessedEntry",
    "make_entry",
    "parse_number",
    "parse_date",
    "UnitSystem",
    "convert_entry",
    "convert_entries",
    "ProcessResult",
    "derive",
    "usable_entries",
    "STATS_THRESHOLD",
    "StatisticsReport",
    "StatisticsResult",
    "aggregate",
    "OwnershipReport",
    "OwnershipUnavailable",
    "Unavailable",
    "project",
    "ChartSeries",
    "chart_series",
    "Vehicle",
    "Store",
    "load_store",
    "save_store",
    "load_vehicle",
    "add_vehicle",
    "update_vehicle",
    "delete_vehicle",
    "add_entry",
    "update_entry",
    "delete_entry",
    "edit_entries",
    "replace_entries",
    "clear_entries",
    "set_unit_system",
    "Session",
    "SortConfig",
    "Dashboard",
    "build_dashboard",
]
