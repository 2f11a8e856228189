"""Flask web application for fuel log tracking."""

import logging
import os

from flask import (
    Flask,
    Response,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from fuellog import (
    FuelLogError,
    OwnershipReport,
    Session,
    SortConfig,
    UnitSystem,
    add_entry,
    add_vehicle,
    build_dashboard,
    clear_entries,
    delete_entry,
    delete_vehicle,
    edit_entries,
    load_store,
    make_entry,
    replace_entries,
    set_unit_system,
    update_entry,
    update_vehicle,
)
from fuellog import config
from fuellog.session import ASC, DESC, SORT_KEYS
from fuellog.statistics import CATEGORY_DESCRIPTIONS
from fuellog.transfer import export, export_filename, parse_import

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")
app.config["STORE_FILE"] = config.store_path()

EXPORT_MIMETYPES = {"json": "application/json", "csv": "text/csv"}


def store_file():
    return app.config["STORE_FILE"]


def format_number(value, decimals=2):
    """Format a number to fixed decimals."""
    if value is None:
        return "N/A"
    return f"{value:,.{decimals}f}"


def format_price(price):
    """Format a purchase price, blank when unset."""
    if price is None:
        return "-"
    return f"{price:,.2f}"


def notice_color(level: str) -> str:
    """Get Tailwind color classes for a notice."""
    colors = {
        "error": "bg-red-100 text-red-800 border-red-200",
        "info": "bg-blue-100 text-blue-800 border-blue-200",
        "success": "bg-green-100 text-green-800 border-green-200",
    }
    return colors.get(level, "bg-gray-100 text-gray-800")


# Register template filters
app.jinja_env.filters["format_number"] = format_number
app.jinja_env.filters["format_price"] = format_price
app.jinja_env.filters["notice_color"] = notice_color


def back_to(vehicle_name):
    return redirect(url_for("vehicle_detail", vehicle_name=vehicle_name))


@app.route("/")
def index():
    """Vehicle list; goes straight to the first vehicle when there is one."""
    store = load_store(store_file())
    if store.vehicles and request.args.get("list") is None:
        return back_to(store.names()[0])

    vehicles = []
    for vehicle in store.vehicles.values():
        result = vehicle.process()
        vehicles.append(
            {
                "vehicle": vehicle,
                "entries": len(result.entries),
                "usable": len(result.usable),
                "has_invalid_entries": result.has_invalid_entries,
            }
        )

    return render_template(
        "index.html",
        vehicles=vehicles,
        unit_system=store.unit_system,
        UnitSystem=UnitSystem,
    )


@app.route("/vehicles", methods=["POST"])
def create_vehicle():
    """Handle add vehicle form submission."""
    name = request.form.get("name", "")
    price = request.form.get("price") or None
    try:
        vehicle = add_vehicle(store_file(), name, price)
    except FuelLogError as e:
        flash(str(e), "error")
        return redirect(url_for("index", list=1))

    flash(f"Added vehicle: {vehicle.name}", "success")
    return back_to(vehicle.name)


@app.route("/vehicle/<vehicle_name>")
def vehicle_detail(vehicle_name: str):
    """Dashboard: log table, statistics, ownership cost and charts."""
    store = load_store(store_file())
    if vehicle_name not in store.vehicles:
        flash(f"Vehicle '{vehicle_name}' not found", "error")
        return redirect(url_for("index", list=1))

    try:
        sort = SortConfig(
            request.args.get("sort", "date"), request.args.get("dir", ASC).lower()
        )
    except ValueError as e:
        flash(str(e), "error")
        sort = SortConfig()

    dashboard = build_dashboard(store, Session(current_vehicle=vehicle_name, sort=sort))
    ownership = dashboard.ownership

    return render_template(
        "vehicle.html",
        dashboard=dashboard,
        vehicle=dashboard.vehicle,
        vehicle_names=store.names(),
        units=store.unit_system,
        UnitSystem=UnitSystem,
        sort=sort,
        sort_keys=SORT_KEYS,
        next_sort={key: sort.toggle(key) for key in SORT_KEYS},
        DESC=DESC,
        categories=(
            dashboard.statistics.report.categories()
            if dashboard.statistics.has_report
            else {}
        ),
        descriptions=CATEGORY_DESCRIPTIONS,
        ownership=ownership if isinstance(ownership, OwnershipReport) else None,
        ownership_message=(
            None if isinstance(ownership, OwnershipReport) else ownership.message
        ),
        charts={key: series.to_dict() for key, series in dashboard.charts.items()},
    )


@app.route("/vehicle/<vehicle_name>/charts.json")
def vehicle_charts(vehicle_name: str):
    """Chart series for a vehicle as JSON."""
    store = load_store(store_file())
    try:
        vehicle = store.get_vehicle(vehicle_name)
    except FuelLogError as e:
        return jsonify({"error": str(e)}), 404
    charts = vehicle.charts(store.unit_system)
    return jsonify({key: series.to_dict() for key, series in charts.items()})


@app.route("/vehicle/<vehicle_name>/edit", methods=["POST"])
def edit_vehicle(vehicle_name: str):
    """Handle rename / purchase price form submission."""
    new_name = request.form.get("name") or None
    price = request.form.get("price") or None
    try:
        vehicle = update_vehicle(store_file(), vehicle_name, new_name, price)
    except FuelLogError as e:
        flash(str(e), "error")
        return back_to(vehicle_name)

    flash(f"Updated vehicle: {vehicle.name}", "success")
    return back_to(vehicle.name)


@app.route("/vehicle/<vehicle_name>/delete", methods=["POST"])
def remove_vehicle(vehicle_name: str):
    """Delete a vehicle and its log."""
    try:
        delete_vehicle(store_file(), vehicle_name)
    except FuelLogError as e:
        flash(str(e), "error")
        return redirect(url_for("index", list=1))

    flash(f'Deleted vehicle "{vehicle_name}"', "success")
    return redirect(url_for("index"))


@app.route("/vehicle/<vehicle_name>/entries", methods=["POST"])
def log_entry(vehicle_name: str):
    """Handle add fuel entry form submission."""
    try:
        entry = make_entry(
            request.form.get("date"),
            request.form.get("odometerReading"),
            request.form.get("fuel"),
            request.form.get("price"),
        )
        add_entry(store_file(), vehicle_name, entry)
    except FuelLogError as e:
        flash(str(e), "error")
        return back_to(vehicle_name)

    flash(f"Logged fuel entry for {entry.date}", "success")
    return back_to(vehicle_name)


@app.route("/vehicle/<vehicle_name>/entries/<int:index>/edit", methods=["POST"])
def edit_entry(vehicle_name: str, index: int):
    """Replace one fuel entry."""
    try:
        entry = make_entry(
            request.form.get("date"),
            request.form.get("odometerReading"),
            request.form.get("fuel"),
            request.form.get("price"),
        )
        update_entry(store_file(), vehicle_name, index, entry)
    except (FuelLogError, IndexError) as e:
        flash(str(e), "error")
        return back_to(vehicle_name)

    flash("Entry updated", "success")
    return back_to(vehicle_name)


@app.route("/vehicle/<vehicle_name>/entries/edit-all", methods=["POST"])
def edit_whole_log(vehicle_name: str):
    """Replace the whole log from the bulk edit form, one row per entry."""
    columns = ("date", "odometerReading", "fuel", "price")
    values = [request.form.getlist(column) for column in columns]
    if len({len(v) for v in values}) != 1:
        flash("Every row needs a date, odometer reading, fuel and price", "error")
        return back_to(vehicle_name)

    rows = [dict(zip(columns, row)) for row in zip(*values)]
    try:
        entries = edit_entries(store_file(), vehicle_name, rows)
    except FuelLogError as e:
        flash(str(e), "error")
        return back_to(vehicle_name)

    flash(f"Saved {len(entries)} log entries", "success")
    return back_to(vehicle_name)


@app.route("/vehicle/<vehicle_name>/entries/<int:index>/delete", methods=["POST"])
def remove_entry(vehicle_name: str, index: int):
    """Delete one fuel entry."""
    try:
        delete_entry(store_file(), vehicle_name, index)
    except (FuelLogError, IndexError) as e:
        flash(str(e), "error")
        return back_to(vehicle_name)

    flash("Entry deleted", "success")
    return back_to(vehicle_name)


@app.route("/vehicle/<vehicle_name>/clear", methods=["POST"])
def clear_log(vehicle_name: str):
    """Delete every fuel entry of a vehicle."""
    try:
        clear_entries(store_file(), vehicle_name)
    except FuelLogError as e:
        flash(str(e), "error")
        return redirect(url_for("index", list=1))

    flash("Log cleared", "success")
    return back_to(vehicle_name)


@app.route("/vehicle/<vehicle_name>/import", methods=["POST"])
def import_entries(vehicle_name: str):
    """Replace a vehicle's log from an uploaded JSON or CSV file."""
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        flash("Please choose a .json or .csv file to import", "error")
        return back_to(vehicle_name)

    try:
        content = upload.read().decode("utf-8-sig")
        entries = parse_import(upload.filename, content)
        replace_entries(store_file(), vehicle_name, entries)
    except UnicodeDecodeError:
        flash("Could not read file: not UTF-8 text", "error")
        return back_to(vehicle_name)
    except FuelLogError as e:
        logger.info("Rejected import %s for '%s': %s", upload.filename, vehicle_name, e)
        flash(str(e), "error")
        return back_to(vehicle_name)

    flash(f"Successfully replaced log with {len(entries)} imported entries!", "success")
    return back_to(vehicle_name)


@app.route("/vehicle/<vehicle_name>/export/<kind>/<fmt>")
def export_entries(vehicle_name: str, kind: str, fmt: str):
    """Download a vehicle's log or statistics as JSON or CSV."""
    store = load_store(store_file())
    try:
        vehicle = store.get_vehicle(vehicle_name)
        content = export(vehicle, kind, fmt, store.unit_system)
    except (FuelLogError, ValueError) as e:
        flash(str(e), "error")
        return back_to(vehicle_name)

    filename = export_filename(vehicle.name, kind, fmt)
    return Response(
        content,
        mimetype=EXPORT_MIMETYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.route("/units", methods=["POST"])
def switch_units():
    """Convert every vehicle's entries to another unit system."""
    vehicle_name = request.form.get("vehicle")
    try:
        units = UnitSystem.parse(request.form.get("unit_system", ""))
    except ValueError as e:
        flash(str(e), "error")
    else:
        if set_unit_system(store_file(), units):
            flash(f"Converted all entries to {units.value}", "success")

    if vehicle_name:
        return back_to(vehicle_name)
    return redirect(url_for("index", list=1))


if __name__ == "__main__":
    config.configure_logging()
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
