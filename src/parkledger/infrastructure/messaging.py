# File: src/parkledger/infrastructure/messaging.py
"""
Event publishing over Redis Pub/Sub

RedisEventPublisher forwards each entry/exit event as JSON to a channel so
other processes (dashboards, billing exports) can follow the lot live.
"""

from typing import Optional
import logging

import redis

from .events import EventSink, VehicleEnteredEvent, VehicleExitedEvent


DEFAULT_CHANNEL = "parkledger.events"


class RedisEventPublisher(EventSink):
    """Redis-based event sink using Pub/Sub"""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        channel: str = DEFAULT_CHANNEL,
        client: Optional[redis.Redis] = None,
        **kwargs
    ):
        self.redis_url = redis_url
        self.channel = channel
        self._logger = logging.getLogger(self.__class__.__name__)

        # Redis connection
        self.redis_client = client if client is not None else redis.Redis.from_url(redis_url, **kwargs)

    def publish(self, message_json: str) -> int:
        """Publish a JSON payload; returns the number of receiving subscribers"""
        try:
            receivers = self.redis_client.publish(self.channel, message_json)
        except redis.RedisError as e:
            self._logger.error(f"Error publishing to Redis: {e}")
            raise
        self._logger.debug(f"Published message to {self.channel} ({receivers} receivers)")
        return receivers

    def on_entry(self, event: VehicleEnteredEvent) -> None:
        self.publish(event.to_json())

    def on_exit(self, event: VehicleExitedEvent) -> None:
        self.publish(event.to_json())

    def close(self) -> None:
        self.redis_client.close()
