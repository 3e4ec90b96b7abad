# File: src/parkledger/config.py
"""
Application configuration

Capacities, slot bands, tariff constants and the optional adapters
(SQL record store, Redis publisher) in one validated pydantic model.
Values come from keyword arguments, a dictionary, or PARKLEDGER_*
environment variables.
"""

from typing import Dict, Optional, Any
from decimal import Decimal
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .domain.models import VehicleCategory
from .domain.pricing import CategoryTariff, TariffSchedule


ENV_PREFIX = "PARKLEDGER_"


class CategoryTariffConfig(BaseModel):
    """Rates for one category"""
    model_config = ConfigDict(frozen=True)

    base_rate: Decimal = Field(ge=0, description="Hourly rate for the first two hours")
    additional_rate: Decimal = Field(ge=0, description="Hourly rate after two hours")
    surcharge: Decimal = Field(default=Decimal('0'), ge=0, description="Flat heavy-load surcharge")
    surcharge_threshold: Optional[int] = Field(default=None, ge=0, description="Load capacity above which the surcharge applies")

    def to_domain(self) -> CategoryTariff:
        return CategoryTariff(
            base_rate=self.base_rate,
            additional_rate=self.additional_rate,
            surcharge=self.surcharge,
            surcharge_threshold=self.surcharge_threshold
        )


class TariffConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    car: CategoryTariffConfig = CategoryTariffConfig(base_rate=Decimal('20'), additional_rate=Decimal('10'))
    bike: CategoryTariffConfig = CategoryTariffConfig(base_rate=Decimal('10'), additional_rate=Decimal('5'))
    truck: CategoryTariffConfig = CategoryTariffConfig(
        base_rate=Decimal('50'), additional_rate=Decimal('30'),
        surcharge=Decimal('100'), surcharge_threshold=5
    )
    currency: str = Field(default="INR", min_length=3, max_length=3)

    def to_schedule(self) -> TariffSchedule:
        return TariffSchedule(
            car=self.car.to_domain(),
            bike=self.bike.to_domain(),
            truck=self.truck.to_domain(),
            currency=self.currency.upper()
        )


class ParkingConfig(BaseModel):
    """Top-level configuration for the parking application"""
    model_config = ConfigDict(frozen=True)

    car_slots: int = Field(default=50, ge=0)
    bike_slots: int = Field(default=100, ge=0)
    truck_slots: int = Field(default=20, ge=0)

    car_band_start: int = Field(default=1, ge=1)
    bike_band_start: int = Field(default=101, ge=1)
    truck_band_start: int = Field(default=201, ge=1)

    tariffs: TariffConfig = TariffConfig()

    database_url: Optional[str] = Field(default=None, description="SQLAlchemy URL of the record store")
    redis_url: Optional[str] = Field(default=None, description="Redis URL for event publishing")
    redis_channel: str = Field(default="parkledger.events")

    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def capacities(self) -> Dict[VehicleCategory, int]:
        return {
            VehicleCategory.CAR: self.car_slots,
            VehicleCategory.BIKE: self.bike_slots,
            VehicleCategory.TRUCK: self.truck_slots,
        }

    @property
    def band_starts(self) -> Dict[VehicleCategory, int]:
        return {
            VehicleCategory.CAR: self.car_band_start,
            VehicleCategory.BIKE: self.bike_band_start,
            VehicleCategory.TRUCK: self.truck_band_start,
        }

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None, **overrides: Any) -> 'ParkingConfig':
        """
        Build configuration from PARKLEDGER_* variables
        e.g. PARKLEDGER_CAR_SLOTS=10, PARKLEDGER_DATABASE_URL=sqlite:///parking.db
        Explicit overrides win over the environment; None overrides are ignored.
        """
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for name in cls.model_fields:
            if name == 'tariffs':
                continue
            value = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if value is not None and value != "":
                data[name] = value

        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)
