#!/usr/bin/env python3
"""
Persistence and Publishing Integration Tests

The SQL record store runs against in-memory SQLite; the Redis publisher
runs against a mocked client.
"""

import json
import unittest
from decimal import Decimal
from unittest.mock import Mock, patch

import redis
from sqlalchemy.exc import OperationalError

from parkledger.application.engine import ParkingEngine
from parkledger.domain.models import VehicleCategory
from parkledger.infrastructure.events import EventDispatcher, VehicleExitedEvent
from parkledger.infrastructure.messaging import RedisEventPublisher
from parkledger.infrastructure.repositories import (
    SQLAlchemyParkingRecordStore, ParkingEntryModel, STATUS_PARKED, STATUS_COMPLETED
)
from tests import ManualClock


LOT = {VehicleCategory.CAR: 5, VehicleCategory.BIKE: 5, VehicleCategory.TRUCK: 2}


class TestSQLRecordStore(unittest.TestCase):
    """Integration tests for the SQLAlchemy record store"""

    def setUp(self):
        self.store = SQLAlchemyParkingRecordStore(database_url="sqlite://")
        self.clock = ManualClock()
        self.engine = ParkingEngine(
            capacities=LOT,
            dispatcher=EventDispatcher([self.store]),
            clock=self.clock
        )

    def tearDown(self):
        self.store.close()

    def test_entry_is_saved_as_parked(self):
        self.engine.park("KA01AB1234", "Ravi", "9876543210", "car", model="Swift")

        entries = self.store.open_entries()
        self.assertEqual(len(entries), 1)
        entry = entries[0]
        self.assertEqual(entry["vehicle_number"], "KA01AB1234")
        self.assertEqual(entry["owner_name"], "Ravi")
        self.assertEqual(entry["vehicle_type"], "Car (Swift)")
        self.assertEqual(entry["slot_number"], 1)
        self.assertEqual(entry["ticket_id"], "TICKET1001")
        self.assertEqual(entry["status"], STATUS_PARKED)
        self.assertIsNone(entry["exit_time"])
        self.assertIsNone(entry["charges"])

    def test_exit_completes_the_entry(self):
        self.engine.park("MH12TR0001", "Vikram", "1", "truck", load_capacity=8)
        self.clock.advance(minutes=30)
        self.engine.exit("MH12TR0001")

        self.assertEqual(self.store.count(STATUS_PARKED), 0)
        self.assertEqual(self.store.count(STATUS_COMPLETED), 1)
        record = self.store.recent_records()[0]
        self.assertEqual(record["status"], STATUS_COMPLETED)
        self.assertEqual(record["charges"], Decimal("150"))
        self.assertEqual(record["exit_time"], self.clock.current)
        self.assertEqual(record["record_id"], "REC1")

    def test_repeat_visits_complete_the_open_row_only(self):
        self.engine.park("KA01AB1234", "Ravi", "1", "car")
        self.clock.advance(minutes=10)
        self.engine.exit("KA01AB1234")
        self.clock.advance(minutes=5)
        self.engine.park("KA01AB1234", "Ravi", "1", "car")

        self.assertEqual(self.store.count(), 2)
        self.assertEqual(self.store.count(STATUS_PARKED), 1)
        self.assertEqual(self.store.count(STATUS_COMPLETED), 1)

    def test_recent_records_newest_first_with_limit(self):
        for index in range(4):
            self.engine.park(f"CAR{index}", "o", "p", "car")
            self.clock.advance(minutes=1)

        records = self.store.recent_records(limit=3)
        self.assertEqual([r["vehicle_number"] for r in records], ["CAR3", "CAR2", "CAR1"])

    def test_exit_without_open_entry_is_logged(self):
        event = VehicleExitedEvent(
            license_plate="GHOST1", record_id="REC9", category="car", slot_number=1,
            entry_time=self.clock.current, exit_time=self.clock.current,
            duration_minutes=0, charge="0", currency="INR"
        )
        with self.assertLogs("SQLAlchemyParkingRecordStore", level="WARNING"):
            self.store.on_exit(event)
        self.assertEqual(self.store.count(), 0)

    def test_session_scope_rolls_back_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.store.session_scope() as session:
                session.add(ParkingEntryModel(
                    vehicle_number="TEMP1", entry_time=self.clock.current, slot_number=1
                ))
                session.flush()
                raise RuntimeError("abort")
        self.assertEqual(self.store.count(), 0)

    def test_database_failure_does_not_reach_engine(self):
        error = OperationalError("INSERT", {}, Exception("database is locked"))
        with patch.object(self.store, "session_factory", side_effect=error):
            with self.assertLogs("EventDispatcher", level="ERROR"):
                ticket = self.engine.park("KA01AB1234", "Ravi", "1", "car")
        self.assertEqual(ticket.slot_number, 1)
        self.assertTrue(self.engine.is_parked("KA01AB1234"))

    def test_requires_url_or_engine(self):
        with self.assertRaises(ValueError):
            SQLAlchemyParkingRecordStore()

    def test_shared_engine(self):
        other = SQLAlchemyParkingRecordStore(engine=self.store.engine, create_tables=False)
        self.engine.park("KA01AB1234", "Ravi", "1", "car")
        self.assertEqual(other.count(), 1)


class TestRedisEventPublisher(unittest.TestCase):
    """Integration tests for the Redis publisher with a mocked client"""

    def setUp(self):
        self.client = Mock()
        self.client.publish.return_value = 1
        self.publisher = RedisEventPublisher(channel="test.events", client=self.client)
        self.clock = ManualClock()
        self.engine = ParkingEngine(
            capacities=LOT,
            dispatcher=EventDispatcher([self.publisher]),
            clock=self.clock
        )

    def test_entry_and_exit_are_published(self):
        self.engine.park("KA01AB1234", "Ravi", "1", "car", model="Swift")
        self.clock.advance(minutes=45)
        self.engine.exit("KA01AB1234")

        self.assertEqual(self.client.publish.call_count, 2)
        channels = [call.args[0] for call in self.client.publish.call_args_list]
        self.assertEqual(channels, ["test.events", "test.events"])

        entered = json.loads(self.client.publish.call_args_list[0].args[1])
        self.assertEqual(entered["event_type"], "vehicle.entered")
        self.assertEqual(entered["data"]["license_plate"], "KA01AB1234")
        self.assertEqual(entered["data"]["ticket_id"], "TICKET1001")

        exited = json.loads(self.client.publish.call_args_list[1].args[1])
        self.assertEqual(exited["event_type"], "vehicle.exited")
        self.assertEqual(exited["data"]["charge"], "20")
        self.assertEqual(exited["data"]["currency"], "INR")
        self.assertEqual(exited["data"]["duration_minutes"], 45)

    def test_publish_failure_is_isolated(self):
        self.client.publish.side_effect = redis.ConnectionError("connection refused")
        with self.assertLogs("EventDispatcher", level="ERROR"):
            ticket = self.engine.park("KA01AB1234", "Ravi", "1", "car")
        self.assertEqual(ticket.ticket_id, "TICKET1001")

    def test_publish_raises_redis_errors(self):
        self.client.publish.side_effect = redis.ConnectionError("connection refused")
        with self.assertLogs("RedisEventPublisher", level="ERROR"):
            with self.assertRaises(redis.ConnectionError):
                self.publisher.publish("{}")

    @patch("parkledger.infrastructure.messaging.redis.Redis.from_url")
    def test_client_from_url(self, mock_from_url):
        publisher = RedisEventPublisher(redis_url="redis://cache:6379/2")
        mock_from_url.assert_called_once_with("redis://cache:6379/2")
        self.assertIs(publisher.redis_client, mock_from_url.return_value)
        self.assertEqual(publisher.channel, "parkledger.events")

        publisher.close()
        mock_from_url.return_value.close.assert_called_once_with()


if __name__ == '__main__':
    unittest.main()
