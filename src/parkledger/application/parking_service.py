# File: src/parkledger/application/parking_service.py
"""
Parking Application Service

The use-case layer that callers (console, API handlers) talk to. It turns
request DTOs into engine calls, turns engine results into output DTOs, and
turns domain errors into failed OperationResultDTOs carrying an error code.
It holds no parking state of its own.

Use cases:
1. Vehicle entry (park) and exit
2. Vehicle search
3. Availability, parked vehicles, history and statistics reporting
"""

from typing import List, Protocol, runtime_checkable
import logging

from .dtos import (
    ParkingRequestDTO, ExitRequestDTO, OperationResultDTO,
    TicketDTO, ReceiptDTO, VehicleInfoDTO, AvailabilityDTO,
    HistoryRecordDTO, StatisticsDTO
)
from .engine import ParkingEngine
from ..domain.exceptions import ParkingError
from ..domain.models import VehicleCategory, elapsed_minutes


@runtime_checkable
class IParkingService(Protocol):
    """Interface the presentation layer depends on"""

    def park_vehicle(self, request: ParkingRequestDTO) -> OperationResultDTO: ...

    def exit_vehicle(self, request: ExitRequestDTO) -> OperationResultDTO: ...

    def find_vehicle(self, license_plate: str) -> OperationResultDTO: ...

    def get_availability(self) -> List[AvailabilityDTO]: ...

    def get_parked_vehicles(self) -> List[VehicleInfoDTO]: ...

    def get_history(self) -> List[HistoryRecordDTO]: ...

    def get_statistics(self) -> StatisticsDTO: ...


class ParkingService:
    """
    Application service for the parking ledger

    Every failure that the engine reports as a ParkingError comes back as
    OperationResultDTO(success=False, error_code=...). Anything else is a
    programming error and propagates.
    """

    def __init__(self, engine: ParkingEngine):
        self.engine = engine
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.info("ParkingService initialized")

    # ========================================================================
    # COMMANDS
    # ========================================================================

    def park_vehicle(self, request: ParkingRequestDTO) -> OperationResultDTO:
        """
        Use Case: Vehicle Entry
        Allocates the lowest free slot of the vehicle's category and issues a ticket
        """
        self.logger.info(f"Processing parking request for {request.license_plate}")

        try:
            ticket = self.engine.park(
                plate=request.license_plate,
                owner=request.owner_name,
                phone=request.phone_number,
                category=request.vehicle_type,
                model=request.model,
                load_capacity=request.load_capacity
            )
        except ParkingError as e:
            return self._failure("park", request.license_plate, e)

        category = VehicleCategory.parse(request.vehicle_type)
        return OperationResultDTO.ok(
            data=TicketDTO.from_ticket(ticket, self.engine.pricing.hourly_rate(category)),
            message="Vehicle parked successfully"
        )

    def exit_vehicle(self, request: ExitRequestDTO) -> OperationResultDTO:
        """
        Use Case: Vehicle Exit
        Computes the charge, frees the slot and records the visit
        """
        self.logger.info(f"Processing exit request for {request.license_plate}")

        try:
            receipt = self.engine.exit(request.license_plate)
        except ParkingError as e:
            return self._failure("exit", request.license_plate, e)

        return OperationResultDTO.ok(
            data=ReceiptDTO.from_receipt(receipt),
            message="Thank you for parking with us!"
        )

    # ========================================================================
    # QUERIES
    # ========================================================================

    def find_vehicle(self, license_plate: str) -> OperationResultDTO:
        try:
            session = self.engine.session(license_plate)
        except ParkingError as e:
            return self._failure("search", license_plate, e)

        duration = elapsed_minutes(session.entry_time, self.engine.now())
        return OperationResultDTO.ok(data=VehicleInfoDTO.from_session(session, duration))

    def get_availability(self) -> List[AvailabilityDTO]:
        return [
            AvailabilityDTO.from_availability(availability)
            for availability in self.engine.availability_by_category().values()
        ]

    def get_parked_vehicles(self) -> List[VehicleInfoDTO]:
        now = self.engine.now()
        return [
            VehicleInfoDTO.from_session(session, elapsed_minutes(session.entry_time, now))
            for session in self.engine.parked_vehicles()
        ]

    def get_history(self) -> List[HistoryRecordDTO]:
        return [HistoryRecordDTO.from_record(record) for record in self.engine.history()]

    def get_statistics(self) -> StatisticsDTO:
        return StatisticsDTO.from_statistics(self.engine.statistics())

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _failure(self, operation: str, license_plate: str, error: ParkingError) -> OperationResultDTO:
        self.logger.warning(f"{operation} failed for {license_plate}: {error}")
        return OperationResultDTO.fail(error.error_code, str(error))
