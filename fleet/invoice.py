"""Invoice text and cost comparisons for rented vehicles."""

from .calculations import VAT_RATE
from .vehicle import Vehicle


def format_money(amount: float) -> str:
    return f"${amount:,.2f}"


def total_cost(vehicle: Vehicle) -> float:
    return vehicle.calculate_invoice().total


def average_daily_cost(vehicle: Vehicle) -> float:
    """Total cost spread over the rental days."""
    if vehicle.rental_days <= 0:
        raise ValueError("Rental days must be greater than zero")
    return total_cost(vehicle) / vehicle.rental_days


def compare_costs(first: Vehicle, second: Vehicle) -> float:
    """Positive when `first` costs more than `second`."""
    return total_cost(first) - total_cost(second)


def rental_summary(vehicle: Vehicle) -> str:
    """Multi-line invoice for a vehicle's current rental length."""
    invoice = vehicle.calculate_invoice()
    lines = [
        "RENTAL SUMMARY",
        "-" * 19,
        f"Plate: {vehicle.plate}",
        f"Model: {vehicle.model} ({vehicle.year})",
        f"Rental days: {vehicle.rental_days}",
        f"Daily price: {format_money(vehicle.daily_price)}",
        f"Type: {vehicle.type_name}",
        f"Capacity: {vehicle.kind.capacity_display}",
        "",
        "COST DETAIL",
        "-" * 19,
        f"Subtotal: {format_money(invoice.subtotal)}",
        f"VAT ({VAT_RATE * 100:.0f}%): {format_money(invoice.vat)}",
        f"Discount: {format_money(invoice.discount)}",
        "-" * 19,
        f"TOTAL: {format_money(invoice.total)}",
    ]
    if vehicle.is_long_term:
        lines += ["", "* Long-term rental (7 days or more)"]
    return "\n".join(lines)


def comparison_report(first: Vehicle, second: Vehicle) -> str:
    """Side-by-side cost report for two rental options."""
    lines = ["RENTAL COMPARISON", "-" * 17]
    for label, vehicle in (("OPTION 1", first), ("OPTION 2", second)):
        lines += [
            "",
            f"{label}:",
            f"- {vehicle.model} ({vehicle.plate})",
            f"- Type: {vehicle.type_name}",
            f"- Days: {vehicle.rental_days}",
            f"- Total cost: {format_money(total_cost(vehicle))}",
        ]

    difference = compare_costs(first, second)
    lines += ["", "RESULT:"]
    if difference > 0:
        lines.append(f"Option 1 costs {format_money(difference)} more than option 2")
    elif difference < 0:
        lines.append(f"Option 2 costs {format_money(-difference)} more than option 1")
    else:
        lines.append("Both options cost the same")
    return "\n".join(lines)
