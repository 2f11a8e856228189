#!/usr/bin/env python3
"""Tests for the Flask web application."""

import io
import json

import pytest

from fuellog import RawEntry, UnitSystem, add_vehicle, load_store, load_vehicle, replace_entries
from web.app import app, format_number, format_price, notice_color


def example_entries():
    return [
        RawEntry("2024-01-01", 1000.0, 40.0, 1.5),
        RawEntry("2024-01-10", 1400.0, 40.0, 1.5),
        RawEntry("2024-01-20", 1800.0, 40.0, 1.6),
        RawEntry("2024-01-30", 2100.0, 40.0, 1.55),
    ]


@pytest.fixture
def store_file(tmp_path, monkeypatch):
    monkeypatch.setenv("FUEL_LOG_UNITS", "metric")
    path = tmp_path / "fuel_log.yaml"
    app.config.update(TESTING=True, STORE_FILE=path)
    return path


@pytest.fixture
def client(store_file):
    with app.test_client() as client:
        yield client


@pytest.fixture
def civic(store_file):
    add_vehicle(store_file, "Civic", 20000)
    replace_entries(store_file, "Civic", example_entries())
    return store_file


class TestFilters:
    """Tests for template filters."""

    def test_format_number(self):
        assert format_number(1234.5) == "1,234.50"
        assert format_number(1.5, 3) == "1.500"
        assert format_number(None) == "N/A"

    def test_format_price(self):
        assert format_price(20000) == "20,000.00"
        assert format_price(None) == "-"

    def test_notice_color(self):
        assert "red" in notice_color("error")
        assert "gray" in notice_color("other")


class TestIndex:
    """Tests for the index page."""

    def test_empty_store(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert b"No vehicles yet" in response.data

    def test_redirects_to_first_vehicle(self, client, civic):
        response = client.get("/")
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/vehicle/Civic")

    def test_list_view(self, client, civic):
        response = client.get("/?list=1")
        assert response.status_code == 200
        assert b"Civic" in response.data
        assert b"20,000.00" in response.data


class TestVehicleRoutes:
    """Tests for vehicle create/edit/delete."""

    def test_create_vehicle(self, client, store_file):
        response = client.post("/vehicles", data={"name": "Civic", "price": "20000"})
        assert response.status_code == 302
        assert load_vehicle(store_file, "Civic").purchase_price == 20000.0

    def test_create_duplicate_flashes_error(self, client, civic):
        response = client.post(
            "/vehicles", data={"name": "Civic"}, follow_redirects=True
        )
        assert b"already exists" in response.data

    def test_edit_vehicle(self, client, civic):
        response = client.post(
            "/vehicle/Civic/edit", data={"name": "Accord", "price": "18000"}
        )
        assert response.headers["Location"].endswith("/vehicle/Accord")
        assert load_vehicle(civic, "Accord").purchase_price == 18000.0

    def test_delete_vehicle(self, client, civic):
        client.post("/vehicle/Civic/delete")
        assert load_store(civic).vehicles == {}

    def test_unknown_vehicle_redirects(self, client, store_file):
        response = client.get("/vehicle/Nope", follow_redirects=True)
        assert b"Vehicle &#39;Nope&#39; not found" in response.data


class TestDashboard:
    """Tests for the vehicle dashboard."""

    def test_shows_log_stats_and_cost(self, client, civic):
        response = client.get("/vehicle/Civic")
        assert response.status_code == 200
        assert b"2024-01-30" in response.data
        assert b"10.91 L/100km" in response.data
        assert b"20186.00" in response.data
        assert b"chart-efficiency" in response.data

    def test_not_enough_entries(self, client, store_file):
        add_vehicle(store_file, "Civic")
        response = client.get("/vehicle/Civic")
        assert b"Please add 3 more valid fuel entries" in response.data
        assert b"add its purchase price" in response.data

    def test_sort_args(self, client, civic):
        response = client.get("/vehicle/Civic?sort=fuel&dir=desc")
        assert response.status_code == 200

    def test_bad_sort_falls_back(self, client, civic):
        response = client.get("/vehicle/Civic?sort=colour")
        assert response.status_code == 200
        assert b"Unknown sort key" in response.data

    def test_charts_json(self, client, civic):
        response = client.get("/vehicle/Civic/charts.json")
        data = response.get_json()
        assert data["efficiency"]["reverseAxis"] is True
        assert data["cumulative_distance"]["values"] == [400, 800, 1100]

    def test_charts_json_unknown_vehicle(self, client, store_file):
        assert client.get("/vehicle/Nope/charts.json").status_code == 404


class TestEntryRoutes:
    """Tests for entry add/edit/delete/clear."""

    def test_log_entry(self, client, civic):
        client.post(
            "/vehicle/Civic/entries",
            data={"date": "2024-02-10", "odometerReading": "2500", "fuel": "35", "price": "1.45"},
        )
        assert load_vehicle(civic, "Civic").entries[-1] == RawEntry(
            "2024-02-10", 2500.0, 35.0, 1.45
        )

    def test_log_entry_missing_field(self, client, civic):
        response = client.post(
            "/vehicle/Civic/entries",
            data={"date": "2024-02-10", "odometerReading": "", "fuel": "35", "price": "1.45"},
            follow_redirects=True,
        )
        assert b"Please fill in: odometer reading" in response.data
        assert len(load_vehicle(civic, "Civic").entries) == 4

    def test_edit_entry(self, client, civic):
        client.post(
            "/vehicle/Civic/entries/1/edit",
            data={"date": "2024-01-10", "odometerReading": "1450", "fuel": "41", "price": "1.5"},
        )
        assert load_vehicle(civic, "Civic").entries[1] == RawEntry(
            "2024-01-10", 1450.0, 41.0, 1.5
        )

    def test_edit_entry_out_of_range(self, client, civic):
        response = client.post(
            "/vehicle/Civic/entries/9/edit",
            data={"date": "2024-01-10", "odometerReading": "1450", "fuel": "41", "price": "1.5"},
            follow_redirects=True,
        )
        assert b"out of range" in response.data

    def test_delete_entry(self, client, civic):
        client.post("/vehicle/Civic/entries/0/delete")
        assert load_vehicle(civic, "Civic").entries == example_entries()[1:]

    def test_clear(self, client, civic):
        client.post("/vehicle/Civic/clear")
        assert load_vehicle(civic, "Civic").entries == []

    def test_dashboard_has_bulk_edit_form(self, client, civic):
        response = client.get("/vehicle/Civic")
        assert b"/vehicle/Civic/entries/edit-all" in response.data
        assert b"Edit whole log" in response.data

    def test_edit_whole_log(self, client, civic):
        response = client.post(
            "/vehicle/Civic/entries/edit-all",
            data={
                "date": ["2024-01-01", "2024-01-10"],
                "odometerReading": ["1000", "1450"],
                "fuel": ["40", "41"],
                "price": ["1.5", "1.5"],
            },
            follow_redirects=True,
        )
        assert b"Saved 2 log entries" in response.data
        assert load_vehicle(civic, "Civic").entries == [
            RawEntry("2024-01-01", 1000.0, 40.0, 1.5),
            RawEntry("2024-01-10", 1450.0, 41.0, 1.5),
        ]

    def test_edit_whole_log_bad_row_rejects_all(self, client, civic):
        response = client.post(
            "/vehicle/Civic/entries/edit-all",
            data={
                "date": ["2024-01-01", "2024-01-10"],
                "odometerReading": ["1000", ""],
                "fuel": ["40", "41"],
                "price": ["1.5", "1.5"],
            },
            follow_redirects=True,
        )
        assert b"Row 2: Please fill in: odometer reading" in response.data
        assert load_vehicle(civic, "Civic").entries == example_entries()

    def test_edit_whole_log_uneven_rows(self, client, civic):
        response = client.post(
            "/vehicle/Civic/entries/edit-all",
            data={
                "date": ["2024-01-01", "2024-01-10"],
                "odometerReading": ["1000"],
                "fuel": ["40", "41"],
                "price": ["1.5", "1.5"],
            },
            follow_redirects=True,
        )
        assert b"Every row needs" in response.data
        assert load_vehicle(civic, "Civic").entries == example_entries()


class TestTransferRoutes:
    """Tests for import, export and unit switching."""

    def test_export_log_csv(self, client, civic):
        response = client.get("/vehicle/Civic/export/log/csv")
        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert 'filename="Civic_log.csv"' in response.headers["Content-Disposition"]
        assert response.data.startswith(b"Date,OdometerReading")

    def test_export_stats_json(self, client, civic):
        response = client.get("/vehicle/Civic/export/stats/json")
        assert json.loads(response.data)["Primary"]["Total Cost"] == "186.00"

    def test_export_nothing(self, client, store_file):
        add_vehicle(store_file, "Civic")
        response = client.get("/vehicle/Civic/export/log/json", follow_redirects=True)
        assert b"No log data to export." in response.data

    def test_import_csv(self, client, civic):
        content = b"date,odometerreading,fuel,price\n2024-03-01,5000,30,1.4\n"
        response = client.post(
            "/vehicle/Civic/import",
            data={"file": (io.BytesIO(content), "log.csv")},
            content_type="multipart/form-data",
            follow_redirects=True,
        )
        assert b"Successfully replaced log with 1 imported entries!" in response.data
        assert load_vehicle(civic, "Civic").entries == [
            RawEntry("2024-03-01", 5000.0, 30.0, 1.4)
        ]

    def test_import_rejected(self, client, civic):
        response = client.post(
            "/vehicle/Civic/import",
            data={"file": (io.BytesIO(b"{}"), "log.json")},
            content_type="multipart/form-data",
            follow_redirects=True,
        )
        assert b"Invalid JSON format" in response.data
        assert load_vehicle(civic, "Civic").entries == example_entries()

    def test_import_without_file(self, client, civic):
        response = client.post("/vehicle/Civic/import", follow_redirects=True)
        assert b"Please choose a .json or .csv file" in response.data

    def test_import_csv_with_byte_order_mark(self, client, civic):
        content = "\ufeffdate,odometerReading,fuel,price\n2024-03-01,5000,30,1.4\n"
        response = client.post(
            "/vehicle/Civic/import",
            data={"file": (io.BytesIO(content.encode("utf-8")), "log.csv")},
            content_type="multipart/form-data",
            follow_redirects=True,
        )
        assert b"Successfully replaced log with 1 imported entries!" in response.data

    def test_switch_units(self, client, civic):
        response = client.post(
            "/units", data={"unit_system": "imperial", "vehicle": "Civic"}
        )
        assert response.headers["Location"].endswith("/vehicle/Civic")
        store = load_store(civic)
        assert store.unit_system is UnitSystem.IMPERIAL
        assert store.vehicles["Civic"].entries[0].odometer_reading == 621.37

    def test_switch_units_unknown(self, client, civic):
        response = client.post(
            "/units", data={"unit_system": "furlongs"}, follow_redirects=True
        )
        assert b"Unknown unit system" in response.data
