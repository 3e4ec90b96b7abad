# File: src/parkledger/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Parking Ledger

DTOs carry data across the application boundary (console, API handlers,
tests). They validate input at creation and hold no business logic.

1. Input DTOs  - ParkingRequestDTO, ExitRequestDTO
2. Output DTOs - TicketDTO, ReceiptDTO, VehicleInfoDTO, AvailabilityDTO,
                 HistoryRecordDTO, StatisticsDTO
3. Result DTO  - OperationResultDTO wrapping any output with success/error
"""

from typing import Dict, List, Optional, Any
from datetime import datetime
from decimal import Decimal
from enum import Enum
import json

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..domain.models import (
    ParkingTicket, Receipt, ParkingSession, Availability, HistoryRecord,
    ParkingStatistics, Money
)


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True
    )

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        return self.model_dump(exclude_none=exclude_none, **kwargs)

    def to_json(self, **kwargs) -> str:
        """Convert DTO to JSON string"""
        return self.model_dump_json(**kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseDTO':
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> 'BaseDTO':
        return cls(**json.loads(json_str))


# ============================================================================
# ENUM DTOs
# ============================================================================

class VehicleCategoryDTO(str, Enum):
    CAR = "car"
    BIKE = "bike"
    TRUCK = "truck"


class MoneyDTO(BaseDTO):
    amount: Decimal = Field(ge=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)

    @classmethod
    def from_money(cls, money: Money) -> 'MoneyDTO':
        return cls(amount=money.amount, currency=money.currency)

    def format(self) -> str:
        return f"{self.amount:.2f} {self.currency}"


# ============================================================================
# INPUT DTOs
# ============================================================================

class ParkingRequestDTO(BaseDTO):
    """DTO for a park request"""
    license_plate: str = Field(min_length=1, description="License plate number")
    owner_name: str = Field(default="", description="Owner's name")
    phone_number: str = Field(default="", description="Owner's phone number")
    vehicle_type: str = Field(description="Vehicle category: car, bike or truck")
    model: Optional[str] = Field(default=None, description="Car/bike model")
    load_capacity: Optional[int] = Field(default=None, ge=0, description="Truck load capacity in tons")
    entry_time: Optional[datetime] = Field(default=None, description="Informational; the engine clock decides")

    @field_validator('license_plate')
    @classmethod
    def normalise_plate(cls, v: str) -> str:
        plate = v.strip().upper()
        if not plate:
            raise ValueError("License plate cannot be empty")
        return plate

    @field_validator('vehicle_type')
    @classmethod
    def normalise_vehicle_type(cls, v: str) -> str:
        # Unknown categories are left for the engine to reject with InvalidCategory
        return v.strip().lower()

    @model_validator(mode='after')
    def validate_truck_capacity(self) -> 'ParkingRequestDTO':
        if self.vehicle_type == VehicleCategoryDTO.TRUCK.value and self.load_capacity is None:
            raise ValueError("Truck requires a load capacity")
        return self


class ExitRequestDTO(BaseDTO):
    """DTO for an exit request"""
    license_plate: str = Field(min_length=1, description="License plate number")

    @field_validator('license_plate')
    @classmethod
    def normalise_plate(cls, v: str) -> str:
        plate = v.strip().upper()
        if not plate:
            raise ValueError("License plate cannot be empty")
        return plate


# ============================================================================
# OUTPUT DTOs
# ============================================================================

class TicketDTO(BaseDTO):
    ticket_id: str
    license_plate: str
    slot_number: int
    issued_at: datetime
    hourly_rate: Optional[MoneyDTO] = None

    @classmethod
    def from_ticket(cls, ticket: ParkingTicket, hourly_rate: Optional[Money] = None) -> 'TicketDTO':
        return cls(
            ticket_id=ticket.ticket_id,
            license_plate=ticket.license_plate,
            slot_number=ticket.slot_number,
            issued_at=ticket.issued_at,
            hourly_rate=MoneyDTO.from_money(hourly_rate) if hourly_rate else None
        )


class ReceiptDTO(BaseDTO):
    record_id: str
    ticket_id: str
    license_plate: str
    vehicle_type: str
    slot_number: int
    entry_time: datetime
    exit_time: datetime
    duration_minutes: int = Field(ge=0)
    charge: MoneyDTO

    @classmethod
    def from_receipt(cls, receipt: Receipt) -> 'ReceiptDTO':
        return cls(
            record_id=receipt.record.record_id,
            ticket_id=receipt.ticket_id,
            license_plate=receipt.record.license_plate,
            vehicle_type=receipt.record.vehicle_type,
            slot_number=receipt.record.slot_number,
            entry_time=receipt.entry_time,
            exit_time=receipt.exit_time,
            duration_minutes=receipt.duration_minutes,
            charge=MoneyDTO.from_money(receipt.charge)
        )


class VehicleInfoDTO(BaseDTO):
    license_plate: str
    owner_name: str
    phone_number: str
    vehicle_type: str
    category: VehicleCategoryDTO
    slot_number: int
    ticket_id: str
    entry_time: datetime
    duration_minutes: Optional[int] = None

    @classmethod
    def from_session(cls, session: ParkingSession, duration_minutes: Optional[int] = None) -> 'VehicleInfoDTO':
        vehicle = session.vehicle
        return cls(
            license_plate=vehicle.plate,
            owner_name=vehicle.owner_name,
            phone_number=vehicle.phone_number,
            vehicle_type=vehicle.type_label,
            category=VehicleCategoryDTO(vehicle.category.value),
            slot_number=session.slot_number,
            ticket_id=session.ticket.ticket_id,
            entry_time=session.entry_time,
            duration_minutes=duration_minutes
        )


class AvailabilityDTO(BaseDTO):
    category: VehicleCategoryDTO
    free: int = Field(ge=0)
    total: int = Field(ge=0)

    @classmethod
    def from_availability(cls, availability: Availability) -> 'AvailabilityDTO':
        return cls(
            category=VehicleCategoryDTO(availability.category.value),
            free=availability.free,
            total=availability.total
        )


class HistoryRecordDTO(BaseDTO):
    record_id: str
    license_plate: str
    vehicle_type: str
    slot_number: int
    entry_time: datetime
    exit_time: datetime
    duration_minutes: int
    charge: MoneyDTO

    @classmethod
    def from_record(cls, record: HistoryRecord) -> 'HistoryRecordDTO':
        return cls(
            record_id=record.record_id,
            license_plate=record.license_plate,
            vehicle_type=record.vehicle_type,
            slot_number=record.slot_number,
            entry_time=record.entry_time,
            exit_time=record.exit_time,
            duration_minutes=record.duration_minutes,
            charge=MoneyDTO.from_money(record.charge)
        )


class StatisticsDTO(BaseDTO):
    currently_parked: int
    total_processed: int
    total_revenue: MoneyDTO
    history_count: int
    availability: List[AvailabilityDTO] = Field(default_factory=list)

    @classmethod
    def from_statistics(cls, stats: ParkingStatistics) -> 'StatisticsDTO':
        return cls(
            currently_parked=stats.currently_parked,
            total_processed=stats.total_processed,
            total_revenue=MoneyDTO.from_money(stats.total_revenue),
            history_count=stats.history_count,
            availability=[AvailabilityDTO.from_availability(a) for a in stats.occupancy.values()]
        )


# ============================================================================
# RESULT DTO
# ============================================================================

class OperationResultDTO(BaseDTO):
    """Outcome of a service call: payload on success, error code otherwise"""
    success: bool
    message: Optional[str] = None
    error_code: Optional[str] = None
    data: Optional[Any] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> 'OperationResultDTO':
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error_code: str, message: str) -> 'OperationResultDTO':
        return cls(success=False, error_code=error_code, message=message)
