# File: src/parkledger/domain/models.py
"""
Domain Models for the Parking Ledger

This module contains:
1. Value Objects: LicensePlate, Money
2. Enums: VehicleCategory (closed set of vehicle kinds)
3. Entities: Vehicle, ParkingSlot
4. Session artefacts: ParkingTicket, ParkingSession, HistoryRecord, Receipt
5. Read models: Availability, ParkingStatistics

Vehicles, tickets and history records are immutable once created. Slots are
the only entities mutated in place, and only by the slot pool.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Union
from datetime import datetime
from decimal import Decimal
from enum import Enum
import re

from .exceptions import InvalidCategory, InvalidVehicle, InvalidSlot


# ============================================================================
# DOMAIN PRIMITIVES / VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class LicensePlate:
    """
    Value Object: License plate number, the unique key of a vehicle
    Normalised to upper case with surrounding whitespace removed
    """
    value: str

    def __post_init__(self):
        if self.value is None or not str(self.value).strip():
            raise InvalidVehicle("License plate cannot be empty")

        object.__setattr__(self, 'value', str(self.value).strip().upper())

        if len(self.value) > 20:
            raise InvalidVehicle(f"License plate must be at most 20 characters, got: {self.value}")

        if not re.match(r'^[A-Z0-9\s\-]+$', self.value):
            raise InvalidVehicle(
                f"License plate can only contain letters, numbers, spaces, and hyphens: {self.value}"
            )

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Money:
    """
    Value Object: Monetary amount with currency
    Amounts are Decimal so revenue sums stay exact
    """
    amount: Decimal
    currency: str = "INR"

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if self.amount < Decimal('0'):
            raise ValueError("Money amount cannot be negative")

        if len(self.currency) != 3:
            raise ValueError(f"Currency must be 3-letter code: {self.currency}")

    @classmethod
    def zero(cls, currency: str = "INR") -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money amounts (same currency only)"""
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency} to {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, multiplier: Union[int, Decimal]) -> 'Money':
        """Multiply money by a non-negative factor"""
        if multiplier < 0:
            raise ValueError("Multiplier cannot be negative")
        return Money(self.amount * Decimal(multiplier), self.currency)

    def format(self) -> str:
        """Format money for display"""
        return f"{self.amount:.2f} {self.currency}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount),
            "currency": self.currency
        }


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class VehicleCategory(Enum):
    """
    Enumeration of vehicle categories handled by the facility
    Each category has its own slot band and tariff
    """
    CAR = "car"
    BIKE = "bike"
    TRUCK = "truck"

    @classmethod
    def parse(cls, value: Union[str, 'VehicleCategory']) -> 'VehicleCategory':
        """
        Resolve caller input into a category
        Accepts enum members or case-insensitive names/values
        Raises: InvalidCategory for anything else
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            key = value.strip().lower()
            for category in cls:
                if category.value == key:
                    return category

        raise InvalidCategory(f"Invalid vehicle category: {value!r}")

    def __str__(self) -> str:
        return self.value.title()


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

@dataclass(frozen=True)
class Vehicle:
    """
    Entity: A vehicle identified by its license plate

    Category payload:
    - CAR / BIKE carry a model string
    - TRUCK carries a load capacity in tons
    """
    license_plate: LicensePlate
    owner_name: str
    phone_number: str
    category: VehicleCategory
    model: Optional[str] = None
    load_capacity: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.license_plate, LicensePlate):
            object.__setattr__(self, 'license_plate', LicensePlate(self.license_plate))

        if self.category is VehicleCategory.TRUCK:
            if self.load_capacity is None:
                raise InvalidVehicle("Truck requires a load capacity")
            if isinstance(self.load_capacity, bool) or not isinstance(self.load_capacity, int):
                raise InvalidVehicle(f"Load capacity must be a whole number of tons: {self.load_capacity!r}")
            if self.load_capacity < 0:
                raise InvalidVehicle("Load capacity cannot be negative")
        elif self.load_capacity is not None:
            raise InvalidVehicle(f"{self.category} does not take a load capacity")

    @property
    def plate(self) -> str:
        return self.license_plate.value

    @property
    def type_label(self) -> str:
        """Human-readable category label, e.g. 'Car (Swift)' or 'Truck (8 tons)'"""
        if self.category is VehicleCategory.TRUCK:
            return f"{self.category} ({self.load_capacity} tons)"
        if self.model:
            return f"{self.category} ({self.model})"
        return str(self.category)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "license_plate": self.plate,
            "owner_name": self.owner_name,
            "phone_number": self.phone_number,
            "category": self.category.value,
            "model": self.model,
            "load_capacity": self.load_capacity,
            "type_label": self.type_label
        }

    def __str__(self) -> str:
        return f"{self.type_label} [{self.plate}]"


class ParkingSlot:
    """
    Entity: Individual numbered parking slot within a category band
    Created once when the pool is built; only occupancy changes afterwards
    """

    def __init__(self, number: int, category: VehicleCategory):
        if number <= 0:
            raise ValueError("Slot number must be positive")
        self.number = number
        self.category = category
        self.is_occupied = False
        self.current_plate: Optional[str] = None

    def occupy(self, plate: str) -> None:
        """
        Occupy the slot with a vehicle
        Raises: InvalidSlot if slot is already occupied
        """
        if self.is_occupied:
            raise InvalidSlot(f"Slot {self.number} is already occupied by {self.current_plate}")
        self.is_occupied = True
        self.current_plate = plate

    def vacate(self) -> str:
        """
        Vacate the slot
        Returns: plate of the vehicle that was in the slot
        Raises: InvalidSlot if slot is already free
        """
        if not self.is_occupied:
            raise InvalidSlot(f"Slot {self.number} is already free")
        plate = self.current_plate
        self.is_occupied = False
        self.current_plate = None
        return plate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "category": self.category.value,
            "is_occupied": self.is_occupied,
            "current_plate": self.current_plate
        }

    def __repr__(self) -> str:
        return f"ParkingSlot(number={self.number}, category={self.category.value}, occupied={self.is_occupied})"

    def __str__(self) -> str:
        status = "OCCUPIED" if self.is_occupied else "AVAILABLE"
        return f"Slot {self.number} [{self.category.name}] - {status}"


# ============================================================================
# SESSION ARTEFACTS
# ============================================================================

@dataclass(frozen=True)
class ParkingTicket:
    """Ticket handed to the driver on entry"""
    ticket_id: str
    license_plate: str
    slot_number: int
    issued_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticket_id": self.ticket_id,
            "license_plate": self.license_plate,
            "slot_number": self.slot_number,
            "issued_at": self.issued_at.isoformat()
        }


@dataclass
class ParkingSession:
    """Open pairing of one vehicle with one slot"""
    vehicle: Vehicle
    slot_number: int
    ticket: ParkingTicket

    @property
    def entry_time(self) -> datetime:
        return self.ticket.issued_at

    @property
    def license_plate(self) -> str:
        return self.vehicle.plate


@dataclass(frozen=True)
class HistoryRecord:
    """
    Immutable snapshot of a closed session
    Appended to the ledger on exit and never changed afterwards
    """
    record_id: str
    license_plate: str
    vehicle_type: str
    category: VehicleCategory
    slot_number: int
    entry_time: datetime
    exit_time: datetime
    duration_minutes: int
    charge: Money

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "license_plate": self.license_plate,
            "vehicle_type": self.vehicle_type,
            "category": self.category.value,
            "slot_number": self.slot_number,
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "charge": self.charge.to_dict()
        }


@dataclass(frozen=True)
class Receipt:
    """Exit receipt: the closed record plus the vehicle that left"""
    record: HistoryRecord
    vehicle: Vehicle
    ticket_id: str

    @property
    def charge(self) -> Money:
        return self.record.charge

    @property
    def duration_minutes(self) -> int:
        return self.record.duration_minutes

    @property
    def entry_time(self) -> datetime:
        return self.record.entry_time

    @property
    def exit_time(self) -> datetime:
        return self.record.exit_time


# ============================================================================
# READ MODELS
# ============================================================================

@dataclass(frozen=True)
class Availability:
    category: VehicleCategory
    free: int
    total: int

    @property
    def occupied(self) -> int:
        return self.total - self.free


@dataclass(frozen=True)
class ParkingStatistics:
    """Aggregate counters reported by the engine"""
    currently_parked: int
    total_processed: int
    total_revenue: Money
    history_count: int
    occupancy: Dict[VehicleCategory, Availability] = field(default_factory=dict)


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, truncated and never negative"""
    seconds = (end - start).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)
