# File: src/parkledger/application/engine.py
"""
Parking Engine

The single owner of all parking state. It composes the slot pool, session
registry, ticket issuer, history ledger and pricing policy behind the
operations callers use: park, exit, search, availability, history and
statistics.

Each operation runs as one critical section under the engine lock, so a
slot is never observable as acquired-but-unregistered and an exit's
remove/release/append sequence is never interleaved with another call.
Event sinks are notified after the lock is released, in commit order: the
dispatch lock is taken before the engine lock is let go.
"""

from typing import Dict, Optional, Tuple, Callable, Union
from datetime import datetime
import dataclasses
import logging
import threading

from ..domain.models import (
    Vehicle, VehicleCategory, LicensePlate, ParkingSession, ParkingTicket,
    HistoryRecord, Receipt, Availability, ParkingStatistics, ParkingSlot,
    elapsed_minutes
)
from ..domain.aggregates import SlotPool, SessionRegistry, TicketIssuer, HistoryLedger
from ..domain.exceptions import VehicleAlreadyParked
from ..domain.pricing import TieredPricingPolicy
from ..infrastructure.events import (
    EventDispatcher, VehicleEnteredEvent, VehicleExitedEvent
)


CategoryInput = Union[str, VehicleCategory]

# Default capacities of the lot
DEFAULT_CAPACITIES: Dict[VehicleCategory, int] = {
    VehicleCategory.CAR: 50,
    VehicleCategory.BIKE: 100,
    VehicleCategory.TRUCK: 20,
}


def normalise_plate(plate: str) -> str:
    """Lookup key for a plate typed by a caller; never raises"""
    return str(plate).strip().upper()


class ParkingEngine:
    """
    Orchestrates slot allocation, ticketing, billing and history

    Args:
        capacities: slots per category (defaults to 50 cars, 100 bikes, 20 trucks)
        band_starts: first slot number of each category band
        pricing: tariff policy used on exit
        dispatcher: receives entry/exit events after each committed transaction
        clock: returns "now"; injectable so durations are deterministic in tests
        ticket_start: ticket counter seed (first ticket is seed + 1)
    """

    def __init__(
        self,
        capacities: Optional[Dict[VehicleCategory, int]] = None,
        band_starts: Optional[Dict[VehicleCategory, int]] = None,
        pricing: Optional[TieredPricingPolicy] = None,
        dispatcher: Optional[EventDispatcher] = None,
        clock: Optional[Callable[[], datetime]] = None,
        ticket_start: int = 1000
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = threading.RLock()
        self._dispatch_lock = threading.RLock()

        self.pricing = pricing or TieredPricingPolicy()
        self.dispatcher = dispatcher or EventDispatcher()
        self._clock = clock or datetime.now

        self._pool = SlotPool(DEFAULT_CAPACITIES if capacities is None else capacities, band_starts)
        self._registry = SessionRegistry()
        self._tickets = TicketIssuer(start=ticket_start)
        self._ledger = HistoryLedger(currency=self.pricing.schedule.currency)
        self._total_processed = 0

        self.logger.info(
            "ParkingEngine initialized: " + ", ".join(
                f"{category.value}={self._pool.total(category)}" for category in VehicleCategory
            )
        )

    # ========================================================================
    # TRANSACTIONS
    # ========================================================================

    def park(
        self,
        plate: str,
        owner: str,
        phone: str,
        category: CategoryInput,
        model: Optional[str] = None,
        load_capacity: Optional[int] = None
    ) -> ParkingTicket:
        """
        Park a vehicle in the lowest-numbered free slot of its category

        Returns: the issued ParkingTicket
        Raises:
            InvalidCategory: unrecognised category input
            InvalidVehicle: malformed plate or truck capacity
            VehicleAlreadyParked: the plate already has an open session
            CapacityExhausted: no free slot in the category
        Nothing is committed when an error is raised.
        """
        vehicle_category = VehicleCategory.parse(category)
        vehicle = Vehicle(
            license_plate=LicensePlate(plate),
            owner_name=owner,
            phone_number=phone,
            category=vehicle_category,
            model=model,
            load_capacity=load_capacity
        )

        with self._lock:
            if vehicle.plate in self._registry:
                self.logger.warning(f"Rejected park for {vehicle.plate}: already parked")
                raise VehicleAlreadyParked(f"Vehicle {vehicle.plate} is already parked")

            slot_number = self._pool.acquire(vehicle_category, vehicle.plate)
            ticket = self._tickets.issue(vehicle.plate, slot_number, self._clock())
            self._registry.insert(ParkingSession(vehicle=vehicle, slot_number=slot_number, ticket=ticket))
            self._total_processed += 1
            self._dispatch_lock.acquire()

        try:
            self.logger.info(
                f"Vehicle {vehicle.plate} parked in slot {slot_number} (Ticket: {ticket.ticket_id})"
            )
            self.dispatcher.entry(VehicleEnteredEvent(
                license_plate=vehicle.plate,
                owner_name=vehicle.owner_name,
                phone_number=vehicle.phone_number,
                vehicle_type=vehicle.type_label,
                category=vehicle_category.value,
                slot_number=slot_number,
                ticket_id=ticket.ticket_id,
                entry_time=ticket.issued_at
            ))
        finally:
            self._dispatch_lock.release()
        return ticket

    def exit(self, plate: str) -> Receipt:
        """
        Close the session of a parked vehicle

        Returns: Receipt with the charge, duration and entry/exit times
        Raises: VehicleNotFound if the plate has no open session
        """
        key = normalise_plate(plate)

        with self._lock:
            session = self._registry.get(key)
            exit_time = self._clock()
            duration = elapsed_minutes(session.entry_time, exit_time)
            charge = self.pricing.fee(session.vehicle, duration)

            self._pool.release(session.vehicle.category, session.slot_number)
            self._registry.remove(key)
            record = self._ledger.append(
                vehicle=session.vehicle,
                slot_number=session.slot_number,
                entry_time=session.entry_time,
                exit_time=exit_time,
                duration_minutes=duration,
                charge=charge
            )
            self._dispatch_lock.acquire()

        try:
            self.logger.info(
                f"Vehicle {key} left slot {record.slot_number} after {duration} min, "
                f"charged {charge.format()} ({record.record_id})"
            )
            self.dispatcher.exit(VehicleExitedEvent(
                license_plate=key,
                record_id=record.record_id,
                category=record.category.value,
                slot_number=record.slot_number,
                entry_time=record.entry_time,
                exit_time=record.exit_time,
                duration_minutes=duration,
                charge=str(charge.amount),
                currency=charge.currency
            ))
        finally:
            self._dispatch_lock.release()
        return Receipt(record=record, vehicle=session.vehicle, ticket_id=session.ticket.ticket_id)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def search(self, plate: str) -> Vehicle:
        """
        Look up a parked vehicle
        Raises: VehicleNotFound if the plate has no open session
        """
        with self._lock:
            return self._registry.get(normalise_plate(plate)).vehicle

    def session(self, plate: str) -> ParkingSession:
        """Copy of the open session for a plate (raises VehicleNotFound)"""
        with self._lock:
            return dataclasses.replace(self._registry.get(normalise_plate(plate)))

    def is_parked(self, plate: str) -> bool:
        with self._lock:
            return normalise_plate(plate) in self._registry

    def availability(self, category: CategoryInput) -> Availability:
        vehicle_category = VehicleCategory.parse(category)
        with self._lock:
            return Availability(
                category=vehicle_category,
                free=self._pool.free_count(vehicle_category),
                total=self._pool.total(vehicle_category)
            )

    def availability_by_category(self) -> Dict[VehicleCategory, Availability]:
        with self._lock:
            return {category: self.availability(category) for category in VehicleCategory}

    def history(self) -> Tuple[HistoryRecord, ...]:
        """Closed sessions in completion order (read-only snapshot)"""
        with self._lock:
            return self._ledger.records()

    def parked_vehicles(self) -> Tuple[ParkingSession, ...]:
        """Open sessions in entry order"""
        with self._lock:
            return tuple(dataclasses.replace(session) for session in self._registry.sessions())

    def slots(self, category: CategoryInput) -> Tuple[ParkingSlot, ...]:
        vehicle_category = VehicleCategory.parse(category)
        with self._lock:
            return self._pool.slots(vehicle_category)

    def statistics(self) -> ParkingStatistics:
        with self._lock:
            return ParkingStatistics(
                currently_parked=len(self._registry),
                total_processed=self._total_processed,
                total_revenue=self._ledger.total_revenue(),
                history_count=len(self._ledger),
                occupancy=self.availability_by_category()
            )

    def now(self) -> datetime:
        """Current time according to the engine clock"""
        return self._clock()

    @property
    def total_processed(self) -> int:
        with self._lock:
            return self._total_processed
