#!/usr/bin/env python3
"""Tests for import and export of logs and statistics."""

import json

import pytest

from fuellog import (
    EntryInputError,
    ExportError,
    ImportFormatError,
    RawEntry,
    UnitSystem,
    Vehicle,
    add_vehicle,
    load_vehicle,
)
from fuellog.transfer import (
    export,
    export_filename,
    export_log_csv,
    export_log_json,
    export_stats_csv,
    export_stats_json,
    edit_log,
    import_log,
    parse_csv_entries,
    parse_import,
    parse_json_entries,
    read_edit_rows,
    read_import_file,
)


def example_entries():
    return [
        RawEntry("2024-01-01", 1000.0, 40.0, 1.5),
        RawEntry("2024-01-10", 1400.0, 40.0, 1.5),
        RawEntry("2024-01-20", 1800.0, 40.0, 1.6),
        RawEntry("2024-01-30", 2100.0, 40.0, 1.55),
    ]


# =============================================================================
# Import tests
# =============================================================================


class TestParseJsonEntries:
    """Tests for parse_json_entries."""

    def test_parses_array(self):
        content = json.dumps(
            [{"date": "2024-01-01", "odometerReading": 1000, "fuel": 40, "price": 1.5}]
        )
        assert parse_json_entries(content) == [RawEntry("2024-01-01", 1000, 40, 1.5)]

    def test_values_kept_verbatim(self):
        content = json.dumps(
            [{"date": "junk", "odometerReading": "abc", "fuel": None, "price": 1.5}]
        )
        assert parse_json_entries(content) == [RawEntry("junk", "abc", None, 1.5)]

    def test_not_an_array(self):
        with pytest.raises(ImportFormatError, match="Invalid JSON format"):
            parse_json_entries('{"date": "2024-01-01"}')

    def test_missing_key(self):
        content = json.dumps([{"date": "2024-01-01", "fuel": 40, "price": 1.5}])
        with pytest.raises(ImportFormatError, match="Invalid JSON format"):
            parse_json_entries(content)

    def test_malformed(self):
        with pytest.raises(ImportFormatError, match="Invalid JSON"):
            parse_json_entries("[{")


class TestParseCsvEntries:
    """Tests for parse_csv_entries."""

    def test_headers_any_case_and_order(self):
        content = "Price,FUEL,date,OdometerReading\n1.5,40,2024-01-01,1000\n"
        assert parse_csv_entries(content) == [RawEntry("2024-01-01", 1000.0, 40.0, 1.5)]

    def test_accepts_exported_header(self):
        content = (
            "Date,OdometerReading,DistanceTraveled,Fuel,PricePerUnit,TotalSpend\n"
            "2024-01-01,1000.00,N/A,40.00,1.500,60.00\n"
        )
        assert parse_csv_entries(content) == [RawEntry("2024-01-01", 1000.0, 40.0, 1.5)]

    def test_drops_bad_rows(self):
        content = (
            "date,odometerreading,fuel,price\n"
            "2024-01-01,1000,40,1.5\n"
            "not a date,1400,40,1.5\n"
            "2024-01-20,abc,40,1.6\n"
            "2024-01-30,2100,40\n"
            "2024-02-10,2500,35,1.45\n"
        )
        entries = parse_csv_entries(content)
        assert [e.date for e in entries] == ["2024-01-01", "2024-02-10"]

    def test_header_only(self):
        with pytest.raises(ImportFormatError, match="header and at least one data row"):
            parse_csv_entries("date,odometerreading,fuel,price\n")

    def test_missing_header(self):
        with pytest.raises(ImportFormatError, match="CSV must contain headers"):
            parse_csv_entries("date,odometer,fuel,price\n2024-01-01,1000,40,1.5\n")


class TestParseImport:
    """Tests for parse_import and read_import_file."""

    def test_chooses_format_by_suffix(self):
        content = "date,odometerreading,fuel,price\n2024-01-01,1000,40,1.5\n"
        assert len(parse_import("log.CSV", content)) == 1

    def test_unsupported_suffix(self):
        with pytest.raises(ImportFormatError, match="Please use .json or .csv"):
            parse_import("log.txt", "")

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(ImportFormatError, match="Could not read"):
            read_import_file(tmp_path / "missing.csv")

    def test_csv_with_byte_order_mark(self):
        content = "\ufeffdate,odometerReading,fuel,price\n2024-01-01,1000,40,1.5\n"
        assert parse_import("x.csv", content) == [RawEntry("2024-01-01", 1000.0, 40.0, 1.5)]

    def test_read_file_with_byte_order_mark(self, tmp_path):
        path = tmp_path / "log.csv"
        path.write_bytes(
            b"\xef\xbb\xbfdate,odometerReading,fuel,price\n2024-01-01,1000,40,1.5\n"
        )
        assert read_import_file(path) == [RawEntry("2024-01-01", 1000.0, 40.0, 1.5)]

    def test_json_with_byte_order_mark(self):
        content = '\ufeff[{"date": "2024-01-01", "odometerReading": 1000, "fuel": 40, "price": 1.5}]'
        assert len(parse_import("log.json", content)) == 1

    def test_import_log_replaces_entries(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FUEL_LOG_UNITS", "metric")
        store_file = tmp_path / "fuel_log.yaml"
        add_vehicle(store_file, "Civic")
        import_file = tmp_path / "civic.json"
        import_file.write_text(
            json.dumps(
                [{"date": "2024-01-01", "odometerReading": 1000, "fuel": 40, "price": 1.5}]
            )
        )
        entries = import_log(store_file, "Civic", import_file)
        assert load_vehicle(store_file, "Civic").entries == entries

    def test_rejected_import_leaves_log(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FUEL_LOG_UNITS", "metric")
        store_file = tmp_path / "fuel_log.yaml"
        add_vehicle(store_file, "Civic")
        import_file = tmp_path / "civic.json"
        import_file.write_text("{}")
        with pytest.raises(ImportFormatError):
            import_log(store_file, "Civic", import_file)
        assert load_vehicle(store_file, "Civic").entries == []


class TestEditLog:
    """Tests for read_edit_rows and edit_log."""

    @pytest.fixture
    def store_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FUEL_LOG_UNITS", "metric")
        path = tmp_path / "fuel_log.yaml"
        add_vehicle(path, "Civic")
        return path

    def test_reads_yaml_rows(self, tmp_path):
        edit_file = tmp_path / "civic.yaml"
        edit_file.write_text(
            "- date: 2024-03-01\n  odometerReading: 5000\n  fuel: 30\n  price: 1.4\n"
        )
        rows = read_edit_rows(edit_file)
        assert rows[0]["odometerReading"] == 5000

    def test_rejects_non_list(self, tmp_path):
        edit_file = tmp_path / "civic.yaml"
        edit_file.write_text("date: 2024-03-01\n")
        with pytest.raises(ImportFormatError, match="list of entries"):
            read_edit_rows(edit_file)

    def test_edit_log_from_json_export(self, store_file, tmp_path):
        edit_file = tmp_path / "civic.json"
        edit_file.write_text(
            export_log_json(
                [
                    RawEntry("2024-03-01", 5000, 30, 1.4),
                    RawEntry("2024-03-11", 5400, 32, 1.5),
                ]
            )
        )
        entries = edit_log(store_file, "Civic", edit_file)
        assert entries[1] == RawEntry("2024-03-11", 5400.0, 32.0, 1.5)
        assert load_vehicle(store_file, "Civic").entries == entries

    def test_one_bad_row_rejects_edit(self, store_file, tmp_path):
        edit_file = tmp_path / "civic.json"
        edit_file.write_text(
            json.dumps(
                [
                    {"date": "2024-03-01", "odometerReading": 5000, "fuel": 30, "price": 1.4},
                    {"date": "March", "odometerReading": 5400, "fuel": 32, "price": 1.5},
                ]
            )
        )
        with pytest.raises(EntryInputError, match="Row 2: Invalid date"):
            edit_log(store_file, "Civic", edit_file)
        assert load_vehicle(store_file, "Civic").entries == []


# =============================================================================
# Export tests
# =============================================================================


class TestExportLog:
    """Tests for log exports."""

    def test_json_is_raw_entries(self):
        data = json.loads(export_log_json(example_entries()))
        assert data[0] == {
            "date": "2024-01-01",
            "odometerReading": 1000.0,
            "fuel": 40.0,
            "price": 1.5,
        }
        assert len(data) == 4

    def test_csv_has_derived_columns(self):
        entries = list(reversed(example_entries()))
        assert export_log_csv(entries) == (
            "Date,OdometerReading,DistanceTraveled,Fuel,PricePerUnit,TotalSpend\n"
            "2024-01-01,1000.00,N/A,40.00,1.500,60.00\n"
            "2024-01-10,1400.00,400.00,40.00,1.500,60.00\n"
            "2024-01-20,1800.00,400.00,40.00,1.600,64.00\n"
            "2024-01-30,2100.00,300.00,40.00,1.550,62.00\n"
        )

    def test_csv_marks_missing_values(self):
        csv_text = export_log_csv([RawEntry("", "abc", 40.0, None)])
        assert csv_text.splitlines()[1] == "N/A,N/A,N/A,40.00,N/A,N/A"

    def test_empty_log(self):
        with pytest.raises(ExportError, match="No log data"):
            export_log_json([])
        with pytest.raises(ExportError, match="No log data"):
            export_log_csv([])


class TestExportStats:
    """Tests for statistics exports."""

    @pytest.fixture
    def report(self):
        return Vehicle("Civic", entries=example_entries()).statistics().report

    def test_json(self, report):
        data = json.loads(export_stats_json(report))
        assert data["Primary"]["Total Cost"] == "186.00"
        assert list(data)[-1] == "Volatility"

    def test_csv(self, report):
        lines = export_stats_csv(report).split("\n")
        assert lines[0] == "Category,Statistic,Value"
        assert lines[1] == '"Primary","Total Distance","1100.00 km"'
        # Blank line between categories only
        assert lines.count("") == 5 + 1

    def test_no_report(self):
        with pytest.raises(ExportError, match="No statistics"):
            export_stats_json(None)
        with pytest.raises(ExportError, match="No statistics"):
            export_stats_csv(None)


class TestExport:
    """Tests for export and export_filename."""

    def test_dispatch(self):
        vehicle = Vehicle("Civic", entries=example_entries())
        assert export(vehicle, "log", "csv", UnitSystem.METRIC).startswith("Date,")
        assert export(vehicle, "stats", "csv", UnitSystem.METRIC).startswith("Category,")

    def test_stats_not_enough_data(self):
        vehicle = Vehicle("Civic", entries=example_entries()[:2])
        with pytest.raises(ExportError):
            export(vehicle, "stats", "json", UnitSystem.METRIC)

    def test_unknown(self):
        with pytest.raises(ValueError):
            export(Vehicle("Civic"), "charts", "png", UnitSystem.METRIC)

    def test_filename(self):
        assert export_filename("Civic", "log", "csv") == "Civic_log.csv"
