"""YAML loading and saving utilities for the fuel log store."""

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from . import config
from .entry import RawEntry, make_entry, parse_number
from .errors import EntryInputError, FuelLogError, VehicleExistsError, VehicleNotFoundError
from .units import UnitSystem, convert_entries
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

STORE_VERSION = 2

# Sentinel for "leave the purchase price alone" in update_vehicle
KEEP = object()


@dataclass
class Store:
    """All vehicles keyed by name, plus the unit system their values are in."""

    unit_system: UnitSystem = UnitSystem.METRIC
    vehicles: Dict[str, Vehicle] = field(default_factory=dict)

    def names(self) -> List[str]:
        return list(self.vehicles)

    def get_vehicle(self, name: str) -> Vehicle:
        try:
            return self.vehicles[name]
        except KeyError:
            raise VehicleNotFoundError(f"Vehicle '{name}' not found") from None


# =============================================================================
# Conversion between YAML data and objects
# =============================================================================


def _entry_from_dict(dct: Dict[str, Any]) -> RawEntry:
    entry_date = dct.get("date")
    # Unquoted YAML dates load as date objects
    if isinstance(entry_date, date):
        entry_date = entry_date.isoformat()
    return RawEntry(
        entry_date,
        dct.get("odometerReading"),
        dct.get("fuel"),
        dct.get("price"),
    )


def entry_to_dict(entry: RawEntry) -> Dict[str, Any]:
    """Serialize an entry to the stored dict format (camelCase keys)."""
    return {
        "date": entry.date,
        "odometerReading": entry.odometer_reading,
        "fuel": entry.fuel,
        "price": entry.price,
    }


def _vehicle_from_record(name: str, record: Dict[str, Any]) -> Vehicle:
    return Vehicle(
        name,
        parse_purchase_price(record.get("price")),
        [_entry_from_dict(e) for e in record.get("entries") or []],
        bool(record.get("hasInvalidEntries", False)),
    )


def _vehicle_to_record(vehicle: Vehicle) -> Dict[str, Any]:
    return {
        "price": vehicle.purchase_price,
        "hasInvalidEntries": vehicle.has_invalid_entries,
        "entries": [entry_to_dict(e) for e in vehicle.entries],
    }


def migrate(data: Any) -> Dict[str, Any]:
    """
    Bring raw store data up to the current layout.

    - Version 1 (no version key): a bare mapping of vehicle name to record,
      where a record may itself be a bare list of entries.
    - Version 2: {version, unitSystem, vehicles}.
    """
    if data is None:
        return {"version": STORE_VERSION, "vehicles": {}}
    if not isinstance(data, dict):
        raise FuelLogError("Store file must contain a mapping")

    version = data.get("version")
    # Legacy stores are keyed by vehicle name, so "version" may be a vehicle
    if not isinstance(version, int) or isinstance(version, bool):
        logger.info("Migrating legacy store layout (%d vehicles)", len(data))
        data = {"version": STORE_VERSION, "vehicles": data}
    elif version != STORE_VERSION:
        raise FuelLogError(f"Unsupported store version: {version}")

    vehicles = data.get("vehicles") or {}
    for name, record in vehicles.items():
        if isinstance(record, list):
            logger.debug("Wrapping bare entry list for vehicle '%s'", name)
            vehicles[name] = {"price": None, "entries": record}
    data["vehicles"] = vehicles
    return data


def parse_purchase_price(value: Any) -> Optional[float]:
    """Purchase price as a number; missing, unparseable or non-positive is None."""
    price = parse_number(value)
    if price is None or price <= 0:
        return None
    return price


def validate_vehicle_name(name: Optional[str]) -> str:
    """Strip a vehicle name, rejecting empty names."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise EntryInputError("Vehicle name cannot be empty.")
    return cleaned


# =============================================================================
# Load / save
# =============================================================================


def load_store(
    filename: Union[str, Path], default_units: Optional[UnitSystem] = None
) -> Store:
    """
    Load the store from a YAML file; a missing file is an empty store.

    default_units applies when the file doesn't name a unit system, and
    comes from configuration when not given.
    """
    if default_units is None:
        default_units = config.default_units()
    path = Path(filename)
    if not path.exists():
        logger.debug("Store %s not found, starting empty", path)
        return Store(unit_system=default_units)

    with open(path, "r") as fp:
        data = migrate(yaml.load(fp, Loader=yaml.SafeLoader))

    units = data.get("unitSystem")
    return Store(
        unit_system=UnitSystem.parse(units) if units else default_units,
        vehicles={
            str(name): _vehicle_from_record(str(name), record or {})
            for name, record in data["vehicles"].items()
        },
    )


def save_store(filename: Union[str, Path], store: Store) -> None:
    """
    Write the store to a YAML file.

    Each vehicle's hasInvalidEntries flag is refreshed from a derivation
    pass. The file is replaced in one step, so a failed write leaves the
    previous contents in place.
    """
    for vehicle in store.vehicles.values():
        vehicle.has_invalid_entries = vehicle.process().has_invalid_entries

    data = {
        "version": STORE_VERSION,
        "unitSystem": store.unit_system.value,
        "vehicles": {
            name: _vehicle_to_record(vehicle) for name, vehicle in store.vehicles.items()
        },
    }

    path = Path(filename)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "w") as fp:
            yaml.dump(
                data,
                fp,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                width=120,
            )
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def load_vehicle(filename: Union[str, Path], name: str) -> Vehicle:
    """Load a single vehicle from the store."""
    return load_store(filename).get_vehicle(name)


# =============================================================================
# Vehicle mutations
# =============================================================================


def add_vehicle(
    filename: Union[str, Path], name: str, purchase_price: Any = None
) -> Vehicle:
    """Add a vehicle with no entries."""
    store = load_store(filename)
    name = validate_vehicle_name(name)
    if name in store.vehicles:
        raise VehicleExistsError(f"Vehicle '{name}' already exists")

    vehicle = Vehicle(name, parse_purchase_price(purchase_price))
    store.vehicles[name] = vehicle
    save_store(filename, store)
    logger.info("Added vehicle '%s'", name)
    return vehicle


def update_vehicle(
    filename: Union[str, Path],
    name: str,
    new_name: Optional[str] = None,
    purchase_price: Any = KEEP,
) -> Vehicle:
    """
    Rename a vehicle and/or change its purchase price.

    Renaming keeps the vehicle's position in the store. Pass
    purchase_price=None to clear the price.
    """
    store = load_store(filename)
    vehicle = store.get_vehicle(name)

    if new_name is not None:
        new_name = validate_vehicle_name(new_name)
        if new_name != name and new_name in store.vehicles:
            raise VehicleExistsError(f"Vehicle '{new_name}' already exists")

    if purchase_price is not KEEP:
        vehicle.purchase_price = parse_purchase_price(purchase_price)

    if new_name is not None and new_name != name:
        vehicle.name = new_name
        store.vehicles = {
            (new_name if key == name else key): value
            for key, value in store.vehicles.items()
        }
        logger.info("Renamed vehicle '%s' to '%s'", name, new_name)

    save_store(filename, store)
    return vehicle


def delete_vehicle(filename: Union[str, Path], name: str) -> None:
    """Remove a vehicle and all its entries."""
    store = load_store(filename)
    store.get_vehicle(name)
    del store.vehicles[name]
    save_store(filename, store)
    logger.info("Deleted vehicle '%s'", name)


# =============================================================================
# Entry mutations
# =============================================================================


def _check_index(vehicle: Vehicle, index: int) -> None:
    if index < 0 or index >= len(vehicle.entries):
        raise IndexError(
            f"Entry index {index} out of range (0..{len(vehicle.entries) - 1})"
        )


def add_entry(filename: Union[str, Path], name: str, entry: RawEntry) -> None:
    """Append an entry to a vehicle's log."""
    store = load_store(filename)
    store.get_vehicle(name).entries.append(entry)
    save_store(filename, store)
    logger.info("Added entry dated %s to '%s'", entry.date, name)


def update_entry(
    filename: Union[str, Path], name: str, index: int, entry: RawEntry
) -> None:
    """Replace the entry at the given index in a vehicle's log."""
    store = load_store(filename)
    vehicle = store.get_vehicle(name)
    _check_index(vehicle, index)
    vehicle.entries[index] = entry
    save_store(filename, store)
    logger.info("Updated entry %d of '%s'", index, name)


def delete_entry(filename: Union[str, Path], name: str, index: int) -> None:
    """Remove the entry at the given index in a vehicle's log."""
    store = load_store(filename)
    vehicle = store.get_vehicle(name)
    _check_index(vehicle, index)
    del vehicle.entries[index]
    save_store(filename, store)
    logger.info("Deleted entry %d of '%s'", index, name)


def replace_entries(
    filename: Union[str, Path], name: str, entries: List[RawEntry]
) -> None:
    """Replace a vehicle's whole log (import and bulk edit)."""
    store = load_store(filename)
    store.get_vehicle(name).entries = list(entries)
    save_store(filename, store)
    logger.info("Replaced log of '%s' with %d entries", name, len(entries))


def edit_entries(
    filename: Union[str, Path], name: str, rows: List[Dict[str, Any]]
) -> List[RawEntry]:
    """
    Bulk edit: validate every row, then replace the log.

    Each row holds date, odometerReading, fuel and price. One bad row
    rejects the whole edit and the log is left untouched.
    """
    if not rows:
        raise EntryInputError("No entries to edit.")
    entries = []
    for number, row in enumerate(rows, start=1):
        try:
            entries.append(
                make_entry(
                    row.get("date"),
                    row.get("odometerReading"),
                    row.get("fuel"),
                    row.get("price"),
                )
            )
        except EntryInputError as e:
            raise EntryInputError(f"Row {number}: {e}") from e
    replace_entries(filename, name, entries)
    return entries


def clear_entries(filename: Union[str, Path], name: str) -> None:
    """Remove every entry from a vehicle's log."""
    replace_entries(filename, name, [])


# =============================================================================
# Unit system
# =============================================================================


def set_unit_system(filename: Union[str, Path], unit_system: UnitSystem) -> bool:
    """
    Switch the store's unit system, converting every vehicle's entries.

    Returns False when the store already uses the requested system.
    """
    store = load_store(filename)
    if store.unit_system is unit_system:
        return False
    for vehicle in store.vehicles.values():
        vehicle.entries = convert_entries(vehicle.entries, store.unit_system, unit_system)
    logger.info(
        "Switched store from %s to %s", store.unit_system.value, unit_system.value
    )
    store.unit_system = unit_system
    save_store(filename, store)
    return True
