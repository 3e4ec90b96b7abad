# File: src/parkledger/domain/aggregates.py
"""
State holders owned by the parking engine

1. SlotPool - numbered slots per category with lowest-free-first allocation
2. SessionRegistry - open sessions keyed by license plate
3. TicketIssuer - monotonic ticket ids
4. HistoryLedger - append-only log of closed sessions

None of these classes lock; the engine serialises every call into them.
"""

from typing import List, Optional, Dict, Tuple, Iterator
from datetime import datetime
import copy
import heapq
import logging

from .models import (
    ParkingSlot, ParkingSession, ParkingTicket, HistoryRecord,
    Vehicle, VehicleCategory, Money
)
from .exceptions import (
    CapacityExhausted, InvalidSlot, VehicleAlreadyParked, VehicleNotFound
)


# Default band starts: cars 1.., bikes 101.., trucks 201..
DEFAULT_BAND_STARTS: Dict[VehicleCategory, int] = {
    VehicleCategory.CAR: 1,
    VehicleCategory.BIKE: 101,
    VehicleCategory.TRUCK: 201,
}


# ============================================================================
# SLOT POOL
# ============================================================================

class SlotPool:
    """
    Per-category collection of numbered slots

    Free slot numbers of each category live in a min-heap, so acquire always
    hands out the lowest-numbered free slot and release makes a slot
    immediately available again.
    """

    def __init__(
        self,
        capacities: Dict[VehicleCategory, int],
        band_starts: Optional[Dict[VehicleCategory, int]] = None
    ):
        self._logger = logging.getLogger(self.__class__.__name__)
        starts = dict(DEFAULT_BAND_STARTS)
        if band_starts:
            starts.update(band_starts)

        self._bands: Dict[VehicleCategory, range] = {}
        self._slots: Dict[VehicleCategory, Dict[int, ParkingSlot]] = {}
        self._free: Dict[VehicleCategory, List[int]] = {}

        self._initialize_bands(capacities, starts)

    def _initialize_bands(
        self,
        capacities: Dict[VehicleCategory, int],
        starts: Dict[VehicleCategory, int]
    ) -> None:
        """Lay out disjoint bands in category order and create every slot"""
        previous_end = 0
        for category in VehicleCategory:
            capacity = capacities.get(category, 0)
            if capacity < 0:
                raise ValueError(f"Capacity for {category} cannot be negative")

            start = starts.get(category, previous_end + 1)
            if start <= previous_end:
                # configured start collides with the previous band
                start = previous_end + 1

            band = range(start, start + capacity)
            self._bands[category] = band
            self._slots[category] = {number: ParkingSlot(number, category) for number in band}
            self._free[category] = list(band)
            heapq.heapify(self._free[category])

            if capacity:
                previous_end = band[-1]

            self._logger.debug(f"{category} band: {start}..{start + capacity - 1} ({capacity} slots)")

    def acquire(self, category: VehicleCategory, plate: str) -> int:
        """
        Occupy the lowest-numbered free slot of the category
        Returns: slot number
        Raises: CapacityExhausted if the category is full
        """
        free = self._free[category]
        if not free:
            raise CapacityExhausted(f"No available slots for {category.name}")

        number = heapq.heappop(free)
        self._slots[category][number].occupy(plate)
        self._logger.debug(f"Slot {number} acquired by {plate}")
        return number

    def release(self, category: VehicleCategory, number: int) -> None:
        """
        Return a slot to the free set
        Raises: InvalidSlot if the number is outside the category band or the slot is free
        """
        slot = self._slots[category].get(number)
        if slot is None:
            raise InvalidSlot(f"Slot {number} does not belong to the {category.name} band")

        plate = slot.vacate()
        heapq.heappush(self._free[category], number)
        self._logger.debug(f"Slot {number} released by {plate}")

    def band(self, category: VehicleCategory) -> range:
        return self._bands[category]

    def total(self, category: VehicleCategory) -> int:
        return len(self._bands[category])

    def free_count(self, category: VehicleCategory) -> int:
        return len(self._free[category])

    def occupied_count(self, category: VehicleCategory) -> int:
        return self.total(category) - self.free_count(category)

    def slots(self, category: VehicleCategory) -> Tuple[ParkingSlot, ...]:
        """Copies of the category's slots in slot-number order"""
        return tuple(copy.copy(slot) for _, slot in sorted(self._slots[category].items()))


# ============================================================================
# SESSION REGISTRY & TICKETING
# ============================================================================

class SessionRegistry:
    """Open sessions keyed by normalised license plate, in entry order"""

    def __init__(self):
        self._sessions: Dict[str, ParkingSession] = {}

    def insert(self, session: ParkingSession) -> None:
        plate = session.license_plate
        if plate in self._sessions:
            raise VehicleAlreadyParked(f"Vehicle {plate} is already parked")
        self._sessions[plate] = session

    def get(self, plate: str) -> ParkingSession:
        session = self._sessions.get(plate)
        if session is None:
            raise VehicleNotFound(f"Vehicle not found: {plate}")
        return session

    def remove(self, plate: str) -> ParkingSession:
        session = self.get(plate)
        del self._sessions[plate]
        return session

    def __contains__(self, plate: str) -> bool:
        return plate in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def sessions(self) -> Tuple[ParkingSession, ...]:
        return tuple(self._sessions.values())


class TicketIssuer:
    """
    Issues ticket ids from a monotonic counter
    The first ticket of a fresh issuer is TICKET1001
    """

    def __init__(self, start: int = 1000, prefix: str = "TICKET"):
        self._counter = start
        self.prefix = prefix

    def issue(self, plate: str, slot_number: int, issued_at: datetime) -> ParkingTicket:
        self._counter += 1
        return ParkingTicket(
            ticket_id=f"{self.prefix}{self._counter}",
            license_plate=plate,
            slot_number=slot_number,
            issued_at=issued_at
        )

    @property
    def last_number(self) -> int:
        return self._counter


# ============================================================================
# HISTORY LEDGER
# ============================================================================

class HistoryLedger:
    """
    Append-only log of closed sessions in completion order

    Revenue is folded from the records themselves, so it cannot drift from
    the history.
    """

    def __init__(self, currency: str = "INR", record_prefix: str = "REC"):
        self.currency = currency
        self.record_prefix = record_prefix
        self._records: List[HistoryRecord] = []
        self._record_counter = 0

    def append(
        self,
        vehicle: Vehicle,
        slot_number: int,
        entry_time: datetime,
        exit_time: datetime,
        duration_minutes: int,
        charge: Money
    ) -> HistoryRecord:
        """Create the next record for a closed session and append it"""
        self._record_counter += 1
        record = HistoryRecord(
            record_id=f"{self.record_prefix}{self._record_counter}",
            license_plate=vehicle.plate,
            vehicle_type=vehicle.type_label,
            category=vehicle.category,
            slot_number=slot_number,
            entry_time=entry_time,
            exit_time=exit_time,
            duration_minutes=duration_minutes,
            charge=charge
        )
        self._records.append(record)
        return record

    def records(self) -> Tuple[HistoryRecord, ...]:
        return tuple(self._records)

    def total_revenue(self) -> Money:
        total = Money.zero(self.currency)
        for record in self._records:
            total = total + record.charge
        return total

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HistoryRecord]:
        return iter(tuple(self._records))
