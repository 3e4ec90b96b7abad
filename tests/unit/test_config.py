#!/usr/bin/env python3
"""
Configuration Unit Tests
"""

import unittest
from decimal import Decimal

from pydantic import ValidationError

from parkledger.config import ParkingConfig, TariffConfig, CategoryTariffConfig
from parkledger.domain.models import VehicleCategory
from parkledger.domain.pricing import TariffSchedule


class TestParkingConfig(unittest.TestCase):

    def test_defaults_match_facility(self):
        config = ParkingConfig()
        self.assertEqual(config.capacities, {
            VehicleCategory.CAR: 50,
            VehicleCategory.BIKE: 100,
            VehicleCategory.TRUCK: 20,
        })
        self.assertEqual(config.band_starts, {
            VehicleCategory.CAR: 1,
            VehicleCategory.BIKE: 101,
            VehicleCategory.TRUCK: 201,
        })
        self.assertIsNone(config.database_url)
        self.assertIsNone(config.redis_url)
        self.assertEqual(config.log_level, "INFO")

    def test_default_tariffs_build_default_schedule(self):
        self.assertEqual(TariffConfig().to_schedule(), TariffSchedule())

    def test_from_env(self):
        environ = {
            "PARKLEDGER_CAR_SLOTS": "10",
            "PARKLEDGER_TRUCK_SLOTS": "3",
            "PARKLEDGER_DATABASE_URL": "sqlite:///parking.db",
            "PARKLEDGER_LOG_LEVEL": "debug",
            "PARKLEDGER_REDIS_URL": "",
            "UNRELATED": "ignored",
        }
        config = ParkingConfig.from_env(environ)
        self.assertEqual(config.car_slots, 10)
        self.assertEqual(config.bike_slots, 100)
        self.assertEqual(config.truck_slots, 3)
        self.assertEqual(config.database_url, "sqlite:///parking.db")
        self.assertIsNone(config.redis_url)
        self.assertEqual(config.log_level, "DEBUG")

    def test_overrides_win_and_none_is_ignored(self):
        environ = {"PARKLEDGER_CAR_SLOTS": "10", "PARKLEDGER_BIKE_SLOTS": "7"}
        config = ParkingConfig.from_env(environ, car_slots=4, bike_slots=None)
        self.assertEqual(config.car_slots, 4)
        self.assertEqual(config.bike_slots, 7)

    def test_invalid_values_rejected(self):
        with self.assertRaises(ValidationError):
            ParkingConfig(car_slots=-1)
        with self.assertRaises(ValidationError):
            ParkingConfig(log_level="LOUD")
        with self.assertRaises(ValidationError):
            ParkingConfig.from_env({"PARKLEDGER_BIKE_SLOTS": "many"})

    def test_custom_tariff(self):
        tariffs = TariffConfig(
            car=CategoryTariffConfig(base_rate=Decimal("25"), additional_rate=Decimal("15")),
            currency="usd"
        )
        schedule = ParkingConfig(tariffs=tariffs).tariffs.to_schedule()
        self.assertEqual(schedule.car.base_rate, Decimal("25"))
        self.assertEqual(schedule.currency, "USD")
        self.assertEqual(schedule.truck.surcharge, Decimal("100"))

    def test_config_is_frozen(self):
        config = ParkingConfig()
        with self.assertRaises(ValidationError):
            config.car_slots = 1


if __name__ == '__main__':
    unittest.main()
