"""
Import and export of fuel logs and statistics.

Imports parse a whole file before anything is stored, so a rejected file
never leaves a half-imported log behind.
"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml
from jsonschema import ValidationError, validate

from .entry import ProcessedEntry, RawEntry, parse_date, parse_number
from .errors import ExportError, ImportFormatError
from .processing import derive
from .statistics import StatisticsReport
from .store import edit_entries, entry_to_dict, replace_entries
from .units import UnitSystem
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

LOG_CSV_HEADER = [
    "Date",
    "OdometerReading",
    "DistanceTraveled",
    "Fuel",
    "PricePerUnit",
    "TotalSpend",
]
STATS_CSV_HEADER = ["Category", "Statistic", "Value"]

IMPORT_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["odometerReading", "fuel", "price", "date"],
    },
}


# =============================================================================
# Import
# =============================================================================


def parse_json_entries(content: str) -> List[RawEntry]:
    """Parse a JSON array of entry objects; values are kept verbatim."""
    try:
        data = json.loads(content)
    except ValueError as e:
        raise ImportFormatError(f"Invalid JSON: {e}") from e
    try:
        validate(instance=data, schema=IMPORT_SCHEMA)
    except ValidationError as e:
        raise ImportFormatError(
            "Invalid JSON format. Expected an array of entry objects with "
            "'odometerReading', 'fuel', 'price' and 'date'."
        ) from e
    return [
        RawEntry(d["date"], d["odometerReading"], d["fuel"], d["price"]) for d in data
    ]


def _find_column(headers: List[str], *names: str) -> Optional[int]:
    for name in names:
        if name in headers:
            return headers.index(name)
    return None


def parse_csv_entries(content: str) -> List[RawEntry]:
    """
    Parse CSV with a header row naming date, odometerreading, fuel and price
    (or priceperunit), in any case and order.

    Rows where any of the four fields don't parse are dropped.
    """
    rows = [row for row in csv.reader(io.StringIO(content)) if any(c.strip() for c in row)]
    if len(rows) < 2:
        raise ImportFormatError("CSV file needs a header and at least one data row.")

    headers = [h.strip().lower() for h in rows[0]]
    columns = {
        "date": _find_column(headers, "date"),
        "odometerReading": _find_column(headers, "odometerreading"),
        "fuel": _find_column(headers, "fuel"),
        "price": _find_column(headers, "price", "priceperunit"),
    }
    if None in columns.values():
        raise ImportFormatError(
            "CSV must contain headers: 'date', 'odometerreading', 'fuel', "
            "and 'price' (or 'priceperunit')."
        )

    entries = []
    for line_number, row in enumerate(rows[1:], start=2):
        values = {
            key: row[index].strip() if index < len(row) else ""
            for key, index in columns.items()
        }
        odometer = parse_number(values["odometerReading"])
        fuel = parse_number(values["fuel"])
        price = parse_number(values["price"])
        if parse_date(values["date"]) is None or None in (odometer, fuel, price):
            logger.debug("Skipping CSV line %d: %r", line_number, row)
            continue
        entries.append(RawEntry(values["date"], odometer, fuel, price))
    return entries


def parse_import(filename: Union[str, Path], content: str) -> List[RawEntry]:
    """Parse import content, choosing the format from the file name."""
    # Leading byte order mark from spreadsheet exports
    content = content.lstrip("\ufeff")
    suffix = Path(str(filename)).suffix.lower()
    if suffix == ".json":
        entries = parse_json_entries(content)
    elif suffix == ".csv":
        entries = parse_csv_entries(content)
    else:
        raise ImportFormatError("Unsupported file. Please use .json or .csv")
    logger.info("Parsed %d entries from %s", len(entries), filename)
    return entries


def read_import_file(filename: Union[str, Path]) -> List[RawEntry]:
    """Read and parse an import file from disk."""
    try:
        with open(filename, "r", encoding="utf-8-sig") as fp:
            content = fp.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ImportFormatError(f"Could not read {filename}: {e}") from e
    return parse_import(filename, content)


def import_log(
    store_file: Union[str, Path], name: str, import_file: Union[str, Path]
) -> List[RawEntry]:
    """Replace a vehicle's log with the entries from an import file."""
    entries = read_import_file(import_file)
    replace_entries(store_file, name, entries)
    return entries


def read_edit_rows(filename: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read bulk edit rows from a YAML or JSON file.

    The file holds a list of mappings with date, odometerReading, fuel and
    price, which is the layout of a JSON log export.
    """
    try:
        with open(filename, "r", encoding="utf-8-sig") as fp:
            rows = yaml.load(fp, Loader=yaml.SafeLoader)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ImportFormatError(f"Could not read {filename}: {e}") from e
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise ImportFormatError("Edit file must contain a list of entries.")
    return rows


def edit_log(
    store_file: Union[str, Path], name: str, edit_file: Union[str, Path]
) -> List[RawEntry]:
    """Replace a vehicle's log with validated rows from an edit file."""
    return edit_entries(store_file, name, read_edit_rows(edit_file))


# =============================================================================
# Export
# =============================================================================


def _fixed(value: Optional[float], decimals: int) -> str:
    return NOT_AVAILABLE if value is None else f"{value:.{decimals}f}"


def log_csv_row(entry: ProcessedEntry) -> List[str]:
    """One processed entry as a CSV row."""
    return [
        str(entry.date) if entry.date not in (None, "") else NOT_AVAILABLE,
        _fixed(entry.odometer_reading, 2),
        _fixed(entry.distance_traveled, 2),
        _fixed(entry.fuel, 2),
        _fixed(entry.price, 3),
        _fixed(entry.total_spend, 2),
    ]


def export_log_json(entries: Sequence[RawEntry]) -> str:
    """Raw entries, verbatim, as a JSON array."""
    if not entries:
        raise ExportError("No log data to export.")
    return json.dumps([entry_to_dict(e) for e in entries], indent=2)


def export_log_csv(entries: Sequence[RawEntry]) -> str:
    """Processed entries (date order, derived fields) as CSV."""
    if not entries:
        raise ExportError("No log data to export.")
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(LOG_CSV_HEADER)
    for entry in derive(entries).entries:
        writer.writerow(log_csv_row(entry))
    return out.getvalue()


def export_stats_json(report: Optional[StatisticsReport]) -> str:
    """The grouped statistics report as JSON."""
    if report is None:
        raise ExportError("No statistics to export. Add more data.")
    return json.dumps(report.to_dict(), indent=2)


def export_stats_csv(report: Optional[StatisticsReport]) -> str:
    """Statistics flattened to Category,Statistic,Value rows."""
    if report is None:
        raise ExportError("No statistics to export. Add more data.")
    out = io.StringIO()
    csv.writer(out, lineterminator="\n").writerow(STATS_CSV_HEADER)
    writer = csv.writer(out, lineterminator="\n", quoting=csv.QUOTE_ALL)
    for number, (category, stats) in enumerate(report.categories().items()):
        if number:
            out.write("\n")
        for statistic, value in stats.items():
            writer.writerow([category, statistic, value])
    return out.getvalue()


def export_filename(vehicle_name: str, kind: str, fmt: str) -> str:
    """Download file name, e.g. 'Civic_log.csv'."""
    return f"{vehicle_name}_{kind}.{fmt}"


def export(vehicle: Vehicle, kind: str, fmt: str, unit_system: UnitSystem) -> str:
    """
    Export a vehicle's log or statistics.

    kind is "log" or "stats", fmt is "json" or "csv".
    """
    if (kind, fmt) == ("log", "json"):
        return export_log_json(vehicle.entries)
    if (kind, fmt) == ("log", "csv"):
        return export_log_csv(vehicle.entries)
    if kind == "stats" and fmt in ("json", "csv"):
        report = vehicle.statistics(unit_system).report
        if fmt == "json":
            return export_stats_json(report)
        return export_stats_csv(report)
    raise ValueError(f"Unknown export: {kind} as {fmt}")
