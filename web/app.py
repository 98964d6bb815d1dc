"""Flask web application for vehicle rental management."""

import logging
import os
import threading
from datetime import date
from typing import Optional

from flask import (
    Flask,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from fleet import FleetCoordinator, FleetError, load_config, open_fleet
from fleet.invoice import format_money
from fleet.status import RentalStatus

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")

_fleet_lock = threading.Lock()
VEHICLE_TYPES = ("cargo", "passenger")


def get_fleet() -> FleetCoordinator:
    """Coordinator for this app, opened from config on first use."""
    fleet = current_app.config.get("FLEET")
    if fleet is None:
        with _fleet_lock:
            fleet = current_app.config.get("FLEET")
            if fleet is None:
                config = load_config(os.environ.get("FLEET_CONFIG"))
                logging.basicConfig(level=config.log_level)
                fleet = open_fleet(config)
                current_app.config["FLEET"] = fleet
    return fleet


def parse_form_date(field: str) -> Optional[date]:
    value = request.form.get(field)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def status_badge_color(status: RentalStatus) -> str:
    """Get Tailwind color classes for status badge."""
    colors = {
        RentalStatus.AVAILABLE: "bg-green-500 text-white",
        RentalStatus.RENTED: "bg-yellow-500 text-white",
    }
    return colors.get(status, "bg-gray-500 text-white")


# Register template filters
app.jinja_env.filters["money"] = format_money
app.jinja_env.filters["status_badge_color"] = status_badge_color


@app.route("/")
def index():
    """Dashboard showing the whole fleet."""
    fleet = get_fleet()
    vehicle_type = request.args.get("type") or None
    if vehicle_type is not None and vehicle_type.lower() not in VEHICLE_TYPES:
        flash(f"Unknown vehicle type '{vehicle_type}'", "error")
        vehicle_type = None
    vehicles = sorted(
        fleet.registry.query(vehicle_type=vehicle_type), key=lambda v: v.plate
    )
    return render_template(
        "index.html",
        vehicles=vehicles,
        vehicle_type=vehicle_type,
        counts=fleet.registry.count_by_type(),
        rented=sum(1 for v in vehicles if not v.available),
    )


@app.route("/vehicle/<plate>")
def vehicle_detail(plate: str):
    """Vehicle detail page with rental periods and invoice."""
    fleet = get_fleet()
    vehicle = fleet.registry.find(plate)
    if vehicle is None:
        flash(f"Vehicle '{plate}' not found", "error")
        return redirect(url_for("index"))

    return render_template(
        "vehicle.html",
        vehicle=vehicle,
        periods=fleet.get_vehicle_rental_periods(vehicle.plate),
        invoice=vehicle.calculate_invoice(),
        today=date.today().isoformat(),
    )


@app.route("/vehicle/<plate>/rent", methods=["POST"])
def rent(plate: str):
    """Handle rent form submission."""
    start = parse_form_date("start")
    end = parse_form_date("end")
    if start is None or end is None:
        flash("Please enter valid start and end dates", "error")
        return redirect(url_for("vehicle_detail", plate=plate))

    try:
        ok = get_fleet().rent_vehicle(plate, start, end)
    except FleetError as e:
        flash(str(e), "error")
        return redirect(url_for("vehicle_detail", plate=plate))

    if ok:
        flash(f"Rented {plate.upper()} from {start} to {end}", "success")
    else:
        flash(f"{plate.upper()} is not available from {start} to {end}", "error")
    return redirect(url_for("vehicle_detail", plate=plate))


@app.route("/vehicle/<plate>/extend", methods=["POST"])
def extend(plate: str):
    """Handle extend form submission."""
    original_end = parse_form_date("original_end")
    new_end = parse_form_date("new_end")
    if original_end is None or new_end is None:
        flash("Please enter valid dates", "error")
        return redirect(url_for("vehicle_detail", plate=plate))

    try:
        ok = get_fleet().extend_rental(plate, original_end, new_end)
    except FleetError as e:
        flash(str(e), "error")
        return redirect(url_for("vehicle_detail", plate=plate))

    if ok:
        flash(f"Rental now ends {new_end}", "success")
    else:
        flash(f"Could not move rental ending {original_end} to {new_end}", "error")
    return redirect(url_for("vehicle_detail", plate=plate))


@app.route("/vehicle/<plate>/finish", methods=["POST"])
def finish(plate: str):
    """Handle finish rental submission."""
    start = parse_form_date("start")
    if start is None:
        flash("Missing rental start date", "error")
        return redirect(url_for("vehicle_detail", plate=plate))

    if get_fleet().finish_rental(plate, start):
        flash(f"Finished rental starting {start}", "success")
    else:
        flash(f"No active rental starting {start}", "error")
    return redirect(url_for("vehicle_detail", plate=plate))


if __name__ == "__main__":
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
