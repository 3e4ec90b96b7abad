# File: src/parkledger/infrastructure/events.py
"""
Entry/exit events and the sinks that observe them

The engine emits one event after each committed park or exit. Sinks are
one-way observers (SQL record store, Redis publisher, test recorders): the
engine never waits on their success, and a failing sink is logged and
skipped without affecting the other sinks or the caller.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, List, Any, Iterable
from datetime import datetime
from dataclasses import dataclass, field
from uuid import uuid4
import json
import logging


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True)
class VehicleEnteredEvent:
    """Raised after a vehicle has been parked"""
    license_plate: str
    owner_name: str
    phone_number: str
    vehicle_type: str
    category: str
    slot_number: int
    ticket_id: str
    entry_time: datetime
    event_id: str = field(default_factory=lambda: str(uuid4()))

    event_type = "vehicle.entered"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "data": {
                "license_plate": self.license_plate,
                "owner_name": self.owner_name,
                "phone_number": self.phone_number,
                "vehicle_type": self.vehicle_type,
                "category": self.category,
                "slot_number": self.slot_number,
                "ticket_id": self.ticket_id,
                "entry_time": self.entry_time.isoformat()
            }
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class VehicleExitedEvent:
    """Raised after a vehicle has left and its charge was recorded"""
    license_plate: str
    record_id: str
    category: str
    slot_number: int
    entry_time: datetime
    exit_time: datetime
    duration_minutes: int
    charge: str
    currency: str
    event_id: str = field(default_factory=lambda: str(uuid4()))

    event_type = "vehicle.exited"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "event_id": self.event_id,
            "data": {
                "license_plate": self.license_plate,
                "record_id": self.record_id,
                "category": self.category,
                "slot_number": self.slot_number,
                "entry_time": self.entry_time.isoformat(),
                "exit_time": self.exit_time.isoformat(),
                "duration_minutes": self.duration_minutes,
                "charge": self.charge,
                "currency": self.currency
            }
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


# ============================================================================
# SINKS
# ============================================================================

class EventSink(ABC):
    """Observer of committed park/exit transactions"""

    @abstractmethod
    def on_entry(self, event: VehicleEnteredEvent) -> None:
        pass

    @abstractmethod
    def on_exit(self, event: VehicleExitedEvent) -> None:
        pass


class InMemoryEventSink(EventSink):
    """Keeps every event in a list; used by tests and the console demo"""

    def __init__(self):
        self.entries: List[VehicleEnteredEvent] = []
        self.exits: List[VehicleExitedEvent] = []

    def on_entry(self, event: VehicleEnteredEvent) -> None:
        self.entries.append(event)

    def on_exit(self, event: VehicleExitedEvent) -> None:
        self.exits.append(event)


class EventDispatcher:
    """
    Fans events out to every registered sink

    Each sink is called in registration order. Exceptions raised by a sink
    are logged and swallowed so persistence problems never reach the core.
    """

    def __init__(self, sinks: Optional[Iterable[EventSink]] = None):
        self._sinks: List[EventSink] = list(sinks or [])
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, sink: EventSink) -> None:
        if sink not in self._sinks:
            self._sinks.append(sink)
            self._logger.debug(f"Subscribed {sink.__class__.__name__}")

    def unsubscribe(self, sink: EventSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    @property
    def sinks(self) -> List[EventSink]:
        return list(self._sinks)

    def entry(self, event: VehicleEnteredEvent) -> None:
        for sink in list(self._sinks):
            try:
                sink.on_entry(event)
            except Exception as e:
                self._logger.error(
                    f"Error handling {event.event_type} with {sink.__class__.__name__}: {e}",
                    exc_info=True
                )

    def exit(self, event: VehicleExitedEvent) -> None:
        for sink in list(self._sinks):
            try:
                sink.on_exit(event)
            except Exception as e:
                self._logger.error(
                    f"Error handling {event.event_type} with {sink.__class__.__name__}: {e}",
                    exc_info=True
                )
