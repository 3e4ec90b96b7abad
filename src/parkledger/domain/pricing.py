# File: src/parkledger/domain/pricing.py
"""
Vehicle Category Policy

Tiered, duration-based pricing for each vehicle category:
- the stay is rounded up to whole hours (a 1 minute stay is billed as 1 hour)
- the first two hours are billed at the category base rate
- every hour after that is billed at the category additional rate
- trucks heavier than the surcharge threshold pay a flat surcharge

The category set is closed, so dispatch is a single branch over
VehicleCategory instead of one strategy class per vehicle kind.
"""

from dataclasses import dataclass
from typing import Optional, Dict
from decimal import Decimal
import logging
import math

from .models import Vehicle, VehicleCategory, Money


# Hours billed at the base rate before the additional rate applies
BASE_RATE_HOURS = 2


# ============================================================================
# TARIFF VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class CategoryTariff:
    """Rates for one vehicle category"""
    base_rate: Decimal
    additional_rate: Decimal
    surcharge: Decimal = Decimal('0')
    surcharge_threshold: Optional[int] = None

    def __post_init__(self):
        for name in ('base_rate', 'additional_rate', 'surcharge'):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, Decimal(str(value)))
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")


@dataclass(frozen=True)
class TariffSchedule:
    """
    Rates for every category
    Defaults are the facility's published tariff (rupees per hour)
    """
    car: CategoryTariff = CategoryTariff(Decimal('20'), Decimal('10'))
    bike: CategoryTariff = CategoryTariff(Decimal('10'), Decimal('5'))
    truck: CategoryTariff = CategoryTariff(
        Decimal('50'), Decimal('30'),
        surcharge=Decimal('100'), surcharge_threshold=5
    )
    currency: str = "INR"

    def for_category(self, category: VehicleCategory) -> CategoryTariff:
        if category is VehicleCategory.CAR:
            return self.car
        elif category is VehicleCategory.BIKE:
            return self.bike
        elif category is VehicleCategory.TRUCK:
            return self.truck
        raise ValueError(f"No tariff for category {category!r}")

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            category.value: {
                "base_rate": str(self.for_category(category).base_rate),
                "additional_rate": str(self.for_category(category).additional_rate),
                "surcharge": str(self.for_category(category).surcharge),
            }
            for category in VehicleCategory
        }


# ============================================================================
# POLICY FUNCTIONS
# ============================================================================

def required_slots(category: VehicleCategory) -> int:
    """Number of standard bays a vehicle of this category occupies"""
    if category is VehicleCategory.CAR:
        return 1
    elif category is VehicleCategory.BIKE:
        return 1
    elif category is VehicleCategory.TRUCK:
        return 2
    raise ValueError(f"Unknown category {category!r}")


def billable_hours(duration_minutes: int) -> int:
    """Ceiling of minutes / 60"""
    if duration_minutes < 0:
        raise ValueError("Duration cannot be negative")
    return math.ceil(duration_minutes / 60)


class TieredPricingPolicy:
    """
    Computes the charge for a closed session

    fee = h * base                              when h <= 2
    fee = 2 * base + (h - 2) * additional       otherwise
    plus the truck surcharge when load capacity exceeds the threshold
    """

    def __init__(self, schedule: Optional[TariffSchedule] = None):
        self.schedule = schedule or TariffSchedule()
        self.logger = logging.getLogger(self.__class__.__name__)

    def fee(self, vehicle: Vehicle, duration_minutes: int) -> Money:
        tariff = self.schedule.for_category(vehicle.category)
        hours = billable_hours(duration_minutes)

        if hours <= BASE_RATE_HOURS:
            amount = tariff.base_rate * hours
        else:
            amount = (tariff.base_rate * BASE_RATE_HOURS
                      + tariff.additional_rate * (hours - BASE_RATE_HOURS))

        if self._surcharge_applies(vehicle, tariff):
            amount += tariff.surcharge

        self.logger.debug(
            f"Fee for {vehicle.plate} ({vehicle.category.value}): "
            f"{duration_minutes} min -> {hours} h -> {amount}"
        )
        return Money(amount, self.schedule.currency)

    def hourly_rate(self, category: VehicleCategory) -> Money:
        """Base hourly rate, shown on tickets"""
        return Money(self.schedule.for_category(category).base_rate, self.schedule.currency)

    @staticmethod
    def _surcharge_applies(vehicle: Vehicle, tariff: CategoryTariff) -> bool:
        if vehicle.category is not VehicleCategory.TRUCK:
            return False
        if tariff.surcharge_threshold is None:
            return False
        return vehicle.load_capacity > tariff.surcharge_threshold
