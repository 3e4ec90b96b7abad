# File: src/parkledger/infrastructure/repositories.py
"""
SQL Record Store

Persists every visit to a `parking_entries` table: a row is inserted with
status PARKED when a vehicle enters and completed (status, exit time,
charges) when it leaves. The store is an event sink, so the in-memory
engine stays the source of truth and a database outage only costs the
persisted copy.
"""

from typing import Dict, List, Optional, Any, Iterator
from datetime import datetime
from decimal import Decimal
from contextlib import contextmanager
import logging

from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, Index, create_engine
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from .events import EventSink, VehicleEnteredEvent, VehicleExitedEvent


STATUS_PARKED = "PARKED"
STATUS_COMPLETED = "COMPLETED"


# ============================================================================
# SQLALCHEMY MODELS
# ============================================================================

Base = declarative_base()


class ParkingEntryModel(Base):
    """SQLAlchemy model for one visit"""
    __tablename__ = 'parking_entries'

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_number = Column(String(20), nullable=False)
    owner_name = Column(String(100))
    phone = Column(String(20))
    vehicle_type = Column(String(50))
    entry_time = Column(DateTime, nullable=False)
    slot_number = Column(Integer, nullable=False)
    ticket_id = Column(String(30))
    status = Column(String(20), nullable=False, default=STATUS_PARKED)
    exit_time = Column(DateTime)
    charges = Column(Numeric(10, 2))
    record_id = Column(String(30))

    __table_args__ = (
        Index('ix_parking_entries_vehicle_status', 'vehicle_number', 'status'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vehicle_number": self.vehicle_number,
            "owner_name": self.owner_name,
            "phone": self.phone,
            "vehicle_type": self.vehicle_type,
            "entry_time": self.entry_time,
            "slot_number": self.slot_number,
            "ticket_id": self.ticket_id,
            "status": self.status,
            "exit_time": self.exit_time,
            "charges": Decimal(self.charges) if self.charges is not None else None,
            "record_id": self.record_id
        }


def create_database_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across sessions"""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs.setdefault("poolclass", StaticPool)
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(database_url, **kwargs)


# ============================================================================
# RECORD STORE
# ============================================================================

class SQLAlchemyParkingRecordStore(EventSink):
    """
    Event sink writing parking entries to a relational database

    Args:
        database_url: SQLAlchemy URL, used when no engine is given
        engine: an existing SQLAlchemy engine
        create_tables: create `parking_entries` if it does not exist
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        engine: Optional[Engine] = None,
        create_tables: bool = True
    ):
        if engine is None and database_url is None:
            raise ValueError("Either database_url or engine is required")

        self.engine = engine or create_database_engine(database_url)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._logger = logging.getLogger(self.__class__.__name__)

        if create_tables:
            self.create_schema()

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)
        self._logger.info(f"Schema ready on {self.engine.url.render_as_string(hide_password=True)}")

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Transactional scope: commit on success, rollback on error"""
        session = self.session_factory()
        try:
            yield session
            session.commit()
            self._logger.debug("Transaction committed")
        except SQLAlchemyError as e:
            self._logger.error(f"Database error, rolling back: {e}")
            session.rollback()
            raise
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # EVENT SINK
    # ========================================================================

    def on_entry(self, event: VehicleEnteredEvent) -> None:
        try:
            with self.session_scope() as session:
                session.add(ParkingEntryModel(
                    vehicle_number=event.license_plate,
                    owner_name=event.owner_name,
                    phone=event.phone_number,
                    vehicle_type=event.vehicle_type,
                    entry_time=event.entry_time,
                    slot_number=event.slot_number,
                    ticket_id=event.ticket_id,
                    status=STATUS_PARKED
                ))
            self._logger.debug(f"Saved entry for {event.license_plate}")
        except IntegrityError as e:
            self._logger.error(f"Integrity error saving entry for {event.license_plate}: {e}")
            raise

    def on_exit(self, event: VehicleExitedEvent) -> None:
        with self.session_scope() as session:
            entry = (
                session.query(ParkingEntryModel)
                .filter(
                    ParkingEntryModel.vehicle_number == event.license_plate,
                    ParkingEntryModel.status == STATUS_PARKED
                )
                .order_by(ParkingEntryModel.entry_time.desc())
                .first()
            )
            if entry is None:
                self._logger.warning(f"No open entry for {event.license_plate}; exit not persisted")
                return

            entry.status = STATUS_COMPLETED
            entry.exit_time = event.exit_time
            entry.charges = Decimal(event.charge)
            entry.record_id = event.record_id
        self._logger.debug(f"Completed entry for {event.license_plate}")

    # ========================================================================
    # QUERIES
    # ========================================================================

    def recent_records(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent entries, newest first"""
        try:
            with self.session_scope() as session:
                models = (
                    session.query(ParkingEntryModel)
                    .order_by(ParkingEntryModel.entry_time.desc(), ParkingEntryModel.id.desc())
                    .limit(limit)
                    .all()
                )
                return [model.to_dict() for model in models]
        except SQLAlchemyError as e:
            self._logger.error(f"Database error reading recent records: {e}")
            raise

    def open_entries(self) -> List[Dict[str, Any]]:
        """Entries still marked PARKED"""
        with self.session_scope() as session:
            models = (
                session.query(ParkingEntryModel)
                .filter(ParkingEntryModel.status == STATUS_PARKED)
                .order_by(ParkingEntryModel.entry_time)
                .all()
            )
            return [model.to_dict() for model in models]

    def count(self, status: Optional[str] = None) -> int:
        with self.session_scope() as session:
            query = session.query(ParkingEntryModel)
            if status is not None:
                query = query.filter(ParkingEntryModel.status == status)
            return query.count()

    def close(self) -> None:
        self.engine.dispose()
