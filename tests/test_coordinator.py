#!/usr/bin/env python3
"""Tests for FleetCoordinator bookings and their rollback."""

import threading
from datetime import date

import pytest

from fleet import (
    Cargo,
    FleetCoordinator,
    InvalidRentalPeriodError,
    Passenger,
    PersistenceError,
    RentalStore,
    Vehicle,
    VehicleRegistry,
    VehicleStore,
)
from fleet.coordinator import check_rental_period


class FlakyStore(VehicleStore):
    """VehicleStore whose updates fail while `failing` is set."""

    failing = False

    def update(self, vehicle):
        if self.failing:
            raise PersistenceError("disk full")
        super().update(vehicle)


class FlakyRentalStore(RentalStore):
    """RentalStore whose saves fail while `failing` is set."""

    failing = False

    def save(self, periods):
        if self.failing:
            raise PersistenceError("disk full")
        super().save(periods)


def make_van(plate="ABCD12", price=10000.0, days=1):
    return Vehicle(plate, "Sprinter", 2020, price, days, Cargo(3000))


@pytest.fixture
def store(tmp_path):
    return FlakyStore(tmp_path / "vehicles.dat")


@pytest.fixture
def fleet(store):
    """Coordinator with one available cargo van and no rental store."""
    coordinator = FleetCoordinator(VehicleRegistry(store))
    coordinator.add_vehicle(make_van())
    return coordinator


@pytest.fixture
def rentals_path(tmp_path):
    return tmp_path / "rentals.yaml"


@pytest.fixture
def stored_fleet(store, rentals_path):
    """Coordinator that also persists rental periods."""
    coordinator = FleetCoordinator(
        VehicleRegistry(store), rental_store=FlakyRentalStore(rentals_path)
    )
    coordinator.add_vehicle(make_van())
    return coordinator


# =============================================================================
# check_rental_period
# =============================================================================


class TestCheckRentalPeriod:
    """Tests for requested range validation."""

    def test_returns_inclusive_days(self):
        assert check_rental_period(date(2024, 3, 1), date(2024, 3, 5)) == 5

    def test_single_day(self):
        assert check_rental_period(date(2024, 3, 1), date(2024, 3, 1)) == 1

    def test_end_before_start(self):
        with pytest.raises(InvalidRentalPeriodError):
            check_rental_period(date(2024, 3, 5), date(2024, 3, 1))

    def test_maximum_length(self):
        assert check_rental_period(date(2023, 1, 1), date(2023, 12, 31)) == 365

    def test_too_long(self):
        with pytest.raises(InvalidRentalPeriodError):
            check_rental_period(date(2024, 1, 1), date(2024, 12, 31))


# =============================================================================
# rent_vehicle
# =============================================================================


class TestRentVehicle:
    """Tests for renting a vehicle."""

    def test_rent_updates_vehicle(self, fleet, store):
        assert fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))

        vehicle = fleet.registry.find("ABCD12")
        assert vehicle.rental_days == 5
        assert not vehicle.available
        assert fleet.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 3, 1): date(2024, 3, 5)
        }
        assert store.find("ABCD12").rental_days == 5

    def test_rented_vehicle_cannot_be_rented_again(self, fleet):
        assert fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))
        assert not fleet.rent_vehicle("ABCD12", date(2024, 3, 3), date(2024, 3, 4))
        assert not fleet.rent_vehicle("ABCD12", date(2024, 4, 1), date(2024, 4, 4))
        assert fleet.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 3, 1): date(2024, 3, 5)
        }

    def test_invoice_after_rent(self, fleet):
        fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))
        invoice = fleet.registry.find("ABCD12").calculate_invoice()
        assert invoice.subtotal == pytest.approx(50000)
        assert invoice.vat == pytest.approx(9500)
        assert invoice.discount == pytest.approx(3500)
        assert invoice.total == pytest.approx(56000)

    def test_plate_is_case_insensitive(self, fleet):
        assert fleet.rent_vehicle("abcd12", date(2024, 3, 1), date(2024, 3, 5))
        assert fleet.get_vehicle_rental_periods("abcd12")

    def test_unknown_vehicle(self, fleet):
        assert not fleet.rent_vehicle("ZZZZ99", date(2024, 3, 1), date(2024, 3, 5))
        assert fleet.tracker.snapshot() == {}

    def test_invalid_range_raises(self, fleet):
        with pytest.raises(InvalidRentalPeriodError):
            fleet.rent_vehicle("ABCD12", date(2024, 3, 5), date(2024, 3, 1))
        assert fleet.registry.find("ABCD12").available

    def test_range_taken_in_tracker(self, fleet):
        fleet.tracker.book("ABCD12", date(2024, 3, 4), date(2024, 3, 8))
        assert not fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))
        assert fleet.registry.find("ABCD12").available

    def test_store_failure_rolls_back(self, fleet, store):
        store.failing = True
        assert not fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))

        vehicle = fleet.registry.find("ABCD12")
        assert vehicle.available
        assert vehicle.rental_days == 1
        assert fleet.get_vehicle_rental_periods("ABCD12") == {}

    def test_concurrent_rent_succeeds_once(self, fleet):
        results = []
        barrier = threading.Barrier(6)

        def worker(day):
            barrier.wait()
            results.append(
                fleet.rent_vehicle("ABCD12", date(2024, 3, day), date(2024, 3, day))
            )

        threads = [
            threading.Thread(target=worker, args=(day,)) for day in range(1, 7)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(fleet.get_vehicle_rental_periods("ABCD12")) == 1


class TestRentVariants:
    """Tests for rent_vehicle_until and rent_vehicle_from."""

    def test_rent_until(self, fleet):
        assert fleet.rent_vehicle_until(
            "ABCD12", date(2024, 3, 10), today=date(2024, 3, 1)
        )
        assert fleet.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 3, 1): date(2024, 3, 10)
        }
        assert fleet.registry.find("ABCD12").rental_days == 10

    def test_rent_until_past_date_raises(self, fleet):
        with pytest.raises(InvalidRentalPeriodError):
            fleet.rent_vehicle_until(
                "ABCD12", date(2024, 2, 1), today=date(2024, 3, 1)
            )

    def test_rent_from_duration(self, fleet):
        assert fleet.rent_vehicle_from("ABCD12", date(2024, 3, 1), 7)
        assert fleet.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 3, 1): date(2024, 3, 7)
        }
        assert fleet.registry.find("ABCD12").is_long_term

    def test_rent_from_open_ended(self, fleet):
        assert fleet.rent_vehicle_from("ABCD12", date(2024, 1, 1), 0)
        assert fleet.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 1, 1): date(2024, 12, 30)
        }
        assert fleet.registry.find("ABCD12").rental_days == 365


# =============================================================================
# extend_rental
# =============================================================================


class TestExtendRental:
    """Tests for moving a rental's end date."""

    @pytest.fixture
    def rented(self, fleet):
        assert fleet.rent_vehicle("ABCD12", date(2024, 1, 1), date(2024, 1, 10))
        return fleet

    def test_extend(self, rented):
        assert rented.extend_rental("ABCD12", date(2024, 1, 10), date(2024, 1, 20))
        assert rented.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 1, 1): date(2024, 1, 20)
        }
        vehicle = rented.registry.find("ABCD12")
        assert vehicle.rental_days == 20
        assert not vehicle.available

    def test_shorten(self, rented):
        assert rented.extend_rental("ABCD12", date(2024, 1, 10), date(2024, 1, 3))
        assert rented.registry.find("ABCD12").rental_days == 3

    def test_wrong_original_end(self, rented):
        assert not rented.extend_rental(
            "ABCD12", date(2024, 1, 9), date(2024, 1, 20)
        )
        assert rented.registry.find("ABCD12").rental_days == 10

    def test_unknown_vehicle(self, rented):
        assert not rented.extend_rental(
            "ZZZZ99", date(2024, 1, 10), date(2024, 1, 20)
        )

    def test_end_before_start(self, rented):
        assert not rented.extend_rental(
            "ABCD12", date(2024, 1, 10), date(2023, 12, 1)
        )
        assert rented.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 1, 1): date(2024, 1, 10)
        }

    def test_extend_beyond_maximum_raises(self, rented):
        with pytest.raises(InvalidRentalPeriodError):
            rented.extend_rental("ABCD12", date(2024, 1, 10), date(2025, 1, 10))
        assert rented.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 1, 1): date(2024, 1, 10)
        }

    def test_store_failure_rolls_back(self, rented, store):
        store.failing = True
        assert not rented.extend_rental(
            "ABCD12", date(2024, 1, 10), date(2024, 1, 20)
        )
        assert rented.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 1, 1): date(2024, 1, 10)
        }
        assert rented.registry.find("ABCD12").rental_days == 10


# =============================================================================
# finish_rental
# =============================================================================


class TestFinishRental:
    """Tests for ending a rental."""

    @pytest.fixture
    def rented(self, fleet):
        assert fleet.rent_vehicle("ABCD12", date(2024, 1, 1), date(2024, 1, 10))
        return fleet

    def test_finish(self, rented):
        assert rented.finish_rental("ABCD12", date(2024, 1, 1))
        assert rented.registry.find("ABCD12").available
        assert rented.get_vehicle_rental_periods("ABCD12") == {}

    def test_finish_keeps_rental_days(self, rented):
        rented.finish_rental("ABCD12", date(2024, 1, 1))
        assert rented.registry.find("ABCD12").rental_days == 10

    def test_can_rent_again_after_finish(self, rented):
        rented.finish_rental("ABCD12", date(2024, 1, 1))
        assert rented.rent_vehicle("ABCD12", date(2024, 1, 5), date(2024, 1, 6))

    def test_wrong_start(self, rented):
        assert not rented.finish_rental("ABCD12", date(2024, 1, 2))
        assert not rented.registry.find("ABCD12").available

    def test_available_vehicle(self, fleet):
        assert not fleet.finish_rental("ABCD12", date(2024, 1, 1))

    def test_unknown_vehicle(self, fleet):
        assert not fleet.finish_rental("ZZZZ99", date(2024, 1, 1))

    def test_store_failure_rolls_back(self, rented, store):
        store.failing = True
        assert not rented.finish_rental("ABCD12", date(2024, 1, 1))
        assert not rented.registry.find("ABCD12").available
        assert rented.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 1, 1): date(2024, 1, 10)
        }


# =============================================================================
# Rental persistence
# =============================================================================


class TestRentalPersistence:
    """Tests for coordinators backed by a RentalStore."""

    def test_rent_writes_rentals_file(self, stored_fleet, rentals_path):
        stored_fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))
        assert RentalStore(rentals_path).load() == {
            "ABCD12": {date(2024, 3, 1): date(2024, 3, 5)}
        }

    def test_restore_on_startup(self, stored_fleet, store, rentals_path):
        stored_fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))

        reopened = FleetCoordinator(
            VehicleRegistry(store), rental_store=RentalStore(rentals_path)
        )
        vehicle = reopened.registry.find("ABCD12")
        assert not vehicle.available
        assert vehicle.rental_days == 5
        assert reopened.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 3, 1): date(2024, 3, 5)
        }
        assert reopened.finish_rental("ABCD12", date(2024, 3, 1))

    def test_restore_drops_unknown_plates(self, store, rentals_path):
        RentalStore(rentals_path).save({"ZZZZ99": {date(2024, 3, 1): date(2024, 3, 2)}})
        coordinator = FleetCoordinator(
            VehicleRegistry(store), rental_store=RentalStore(rentals_path)
        )
        assert coordinator.tracker.snapshot() == {}

    def test_restore_drops_overlapping_periods(self, store, rentals_path):
        rentals_path.write_text(
            "rentals:\n"
            "  ABCD12:\n"
            "    - {start: '2024-01-01', end: '2024-01-10'}\n"
            "    - {start: '2024-01-05', end: '2024-01-20'}\n"
        )
        registry = VehicleRegistry(store)
        registry.add(make_van())

        coordinator = FleetCoordinator(registry, rental_store=RentalStore(rentals_path))
        assert coordinator.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 1, 1): date(2024, 1, 10)
        }
        assert not registry.find("ABCD12").available

    def test_concurrent_rents_on_many_plates_all_saved(self, store, rentals_path):
        plates = [f"AB{1000 + i}" for i in range(8)]
        registry = VehicleRegistry(store)
        for plate in plates:
            registry.add(make_van(plate))
        coordinator = FleetCoordinator(registry, rental_store=RentalStore(rentals_path))

        results = []
        barrier = threading.Barrier(len(plates))

        def worker(plate):
            barrier.wait()
            results.append(
                coordinator.rent_vehicle(plate, date(2024, 3, 1), date(2024, 3, 5))
            )

        threads = [threading.Thread(target=worker, args=(p,)) for p in plates]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == [True] * len(plates)
        assert RentalStore(rentals_path).load() == {
            plate: {date(2024, 3, 1): date(2024, 3, 5)} for plate in plates
        }
        assert list(rentals_path.parent.glob("*.tmp")) == []

    def test_rentals_save_failure_rolls_back(self, stored_fleet, store):
        stored_fleet.rental_store.failing = True
        assert not stored_fleet.rent_vehicle(
            "ABCD12", date(2024, 3, 1), date(2024, 3, 5)
        )
        assert stored_fleet.registry.find("ABCD12").available
        assert store.find("ABCD12").rental_days == 1
        assert stored_fleet.get_vehicle_rental_periods("ABCD12") == {}

    def test_finish_save_failure_rolls_back(self, stored_fleet, rentals_path):
        stored_fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))
        stored_fleet.rental_store.failing = True

        assert not stored_fleet.finish_rental("ABCD12", date(2024, 3, 1))
        assert not stored_fleet.registry.find("ABCD12").available
        assert stored_fleet.get_vehicle_rental_periods("ABCD12") == {
            date(2024, 3, 1): date(2024, 3, 5)
        }


# =============================================================================
# Fleet maintenance
# =============================================================================


class TestRemoveVehicle:
    """Tests for removing vehicles through the coordinator."""

    def test_remove_clears_periods(self, stored_fleet, rentals_path):
        stored_fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))
        assert stored_fleet.remove_vehicle("abcd12")

        assert stored_fleet.registry.find("ABCD12") is None
        assert stored_fleet.get_vehicle_rental_periods("ABCD12") == {}
        assert RentalStore(rentals_path).load() == {}

    def test_remove_unknown(self, fleet):
        assert not fleet.remove_vehicle("ZZZZ99")

    def test_locks_kept_only_for_registered_plates(self, fleet):
        for day in range(1, 6):
            fleet.rent_vehicle(f"ZZ{day:02d}", date(2024, 3, day), date(2024, 3, day))
            fleet.finish_rental(f"YY{day:02d}", date(2024, 3, day))
        assert set(fleet._locks) == set()

        fleet.rent_vehicle("ABCD12", date(2024, 3, 1), date(2024, 3, 5))
        assert set(fleet._locks) == {"ABCD12"}
        fleet.remove_vehicle("ABCD12")
        assert set(fleet._locks) == set()

    def test_is_vehicle_available(self, fleet):
        fleet.add_vehicle(Vehicle("XY1234", "Transit", 2019, 80.0, 1, Passenger(9)))
        assert fleet.is_vehicle_available("XY1234", date(2024, 3, 1), date(2024, 3, 2))
        fleet.rent_vehicle("XY1234", date(2024, 3, 1), date(2024, 3, 2))
        assert not fleet.is_vehicle_available(
            "XY1234", date(2024, 5, 1), date(2024, 5, 2)
        )
        assert not fleet.is_vehicle_available(
            "ZZZZ99", date(2024, 3, 1), date(2024, 3, 2)
        )
