#!/usr/bin/env python3
"""
Application Service and DTO Unit Tests

Tests that the service turns engine results into DTOs and engine errors
into failed results carrying an error code.
"""

import unittest
from decimal import Decimal

from pydantic import ValidationError

from parkledger.application.engine import ParkingEngine
from parkledger.application.parking_service import ParkingService, IParkingService
from parkledger.application.dtos import (
    ParkingRequestDTO, ExitRequestDTO, OperationResultDTO, TicketDTO,
    ReceiptDTO, VehicleInfoDTO, StatisticsDTO, MoneyDTO
)
from parkledger.domain.models import VehicleCategory
from tests import ManualClock


def car_request(plate="KA01AB1234", **overrides):
    data = {
        "license_plate": plate,
        "owner_name": "Ravi",
        "phone_number": "9876543210",
        "vehicle_type": "car",
        "model": "Swift",
    }
    data.update(overrides)
    return ParkingRequestDTO(**data)


class TestDTOs(unittest.TestCase):
    """Unit tests for request validation"""

    def test_parking_request_normalises(self):
        request = car_request(plate=" ka01ab1234 ", vehicle_type=" CAR ")
        self.assertEqual(request.license_plate, "KA01AB1234")
        self.assertEqual(request.vehicle_type, "car")

    def test_truck_requires_capacity(self):
        with self.assertRaises(ValidationError):
            ParkingRequestDTO(license_plate="MH12TR0001", vehicle_type="truck")
        with self.assertRaises(ValidationError):
            ParkingRequestDTO(license_plate="MH12TR0001", vehicle_type="truck", load_capacity=-2)
        request = ParkingRequestDTO(license_plate="MH12TR0001", vehicle_type="truck", load_capacity=8)
        self.assertEqual(request.load_capacity, 8)

    def test_blank_plate_rejected(self):
        with self.assertRaises(ValidationError):
            ExitRequestDTO(license_plate="   ")
        with self.assertRaises(ValidationError):
            car_request(plate="")

    def test_unknown_category_left_for_engine(self):
        self.assertEqual(car_request(vehicle_type="Van").vehicle_type, "van")

    def test_round_trip_through_json(self):
        request = car_request()
        self.assertEqual(ParkingRequestDTO.from_json(request.to_json()), request)

    def test_money_dto_format(self):
        self.assertEqual(MoneyDTO(amount=Decimal("42.5")).format(), "42.50 INR")

    def test_operation_result_helpers(self):
        ok = OperationResultDTO.ok(data=1, message="done")
        self.assertTrue(ok.success)
        self.assertIsNone(ok.error_code)
        failed = OperationResultDTO.fail("VEHICLE_NOT_FOUND", "missing")
        self.assertFalse(failed.success)
        self.assertEqual(failed.error_code, "VEHICLE_NOT_FOUND")


class TestParkingService(unittest.TestCase):
    """Unit tests for the application service"""

    def setUp(self):
        self.clock = ManualClock()
        self.engine = ParkingEngine(
            capacities={VehicleCategory.CAR: 1, VehicleCategory.BIKE: 2, VehicleCategory.TRUCK: 1},
            clock=self.clock
        )
        self.service = ParkingService(self.engine)

    def test_implements_interface(self):
        self.assertIsInstance(self.service, IParkingService)

    def test_park_success(self):
        result = self.service.park_vehicle(car_request())
        self.assertTrue(result.success)
        self.assertIsInstance(result.data, TicketDTO)
        self.assertEqual(result.data.ticket_id, "TICKET1001")
        self.assertEqual(result.data.slot_number, 1)
        self.assertEqual(result.data.hourly_rate.amount, Decimal("20"))

    def test_park_failures_carry_error_codes(self):
        self.service.park_vehicle(car_request())
        cases = [
            (car_request(), "VEHICLE_ALREADY_PARKED"),
            (car_request(plate="KA99ZZ0001"), "CAPACITY_EXHAUSTED"),
            (car_request(plate="KA99ZZ0002", vehicle_type="van"), "INVALID_CATEGORY"),
            (car_request(plate="KA99@0003"), "INVALID_VEHICLE"),
        ]
        for request, expected in cases:
            with self.assertLogs("ParkingService", level="WARNING"):
                result = self.service.park_vehicle(request)
            self.assertFalse(result.success)
            self.assertEqual(result.error_code, expected)
            self.assertTrue(result.message)
        self.assertEqual(self.engine.total_processed, 1)

    def test_exit_success(self):
        self.service.park_vehicle(car_request())
        self.clock.advance(minutes=150)
        result = self.service.exit_vehicle(ExitRequestDTO(license_plate="ka01ab1234"))

        self.assertTrue(result.success)
        receipt = result.data
        self.assertIsInstance(receipt, ReceiptDTO)
        self.assertEqual(receipt.charge.amount, Decimal("50"))
        self.assertEqual(receipt.charge.currency, "INR")
        self.assertEqual(receipt.duration_minutes, 150)
        self.assertEqual(receipt.vehicle_type, "Car (Swift)")
        self.assertEqual(receipt.ticket_id, "TICKET1001")
        self.assertEqual(receipt.record_id, "REC1")

    def test_exit_unknown_vehicle(self):
        result = self.service.exit_vehicle(ExitRequestDTO(license_plate="NOPE"))
        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "VEHICLE_NOT_FOUND")

    def test_find_vehicle(self):
        self.service.park_vehicle(car_request())
        self.clock.advance(minutes=12)

        result = self.service.find_vehicle("ka01ab1234")
        self.assertTrue(result.success)
        self.assertIsInstance(result.data, VehicleInfoDTO)
        self.assertEqual(result.data.duration_minutes, 12)
        self.assertEqual(result.data.category, "car")
        self.assertEqual(result.data.ticket_id, "TICKET1001")

        missing = self.service.find_vehicle("NOPE")
        self.assertEqual(missing.error_code, "VEHICLE_NOT_FOUND")

    def test_reports(self):
        self.service.park_vehicle(car_request())
        self.service.park_vehicle(ParkingRequestDTO(license_plate="B1", vehicle_type="bike"))
        self.clock.advance(minutes=30)
        self.service.exit_vehicle(ExitRequestDTO(license_plate="B1"))

        availability = {a.category: (a.free, a.total) for a in self.service.get_availability()}
        self.assertEqual(availability, {"car": (0, 1), "bike": (2, 2), "truck": (1, 1)})

        parked = self.service.get_parked_vehicles()
        self.assertEqual([v.license_plate for v in parked], ["KA01AB1234"])
        self.assertEqual(parked[0].duration_minutes, 30)

        history = self.service.get_history()
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].charge.amount, Decimal("10"))

        stats = self.service.get_statistics()
        self.assertIsInstance(stats, StatisticsDTO)
        self.assertEqual(stats.currently_parked, 1)
        self.assertEqual(stats.total_processed, 2)
        self.assertEqual(stats.history_count, 1)
        self.assertEqual(stats.total_revenue.amount, Decimal("10"))
        self.assertEqual(len(stats.availability), 3)


if __name__ == '__main__':
    unittest.main()
