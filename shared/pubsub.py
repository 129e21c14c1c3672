import logging
import threading
import time
from typing import Callable, List, Optional

import redis

from .events import Event

logger = logging.getLogger(__name__)

EventHandler = Callable[[Event], None]


class FeedListener:
    """Handle returned by ChangeFeed.listen(); close() detaches the handler."""

    def __init__(self, detach: Callable[[], None]):
        self._detach = detach
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._detach()


class ChangeFeed:
    """Publish/listen channel signalling that team records changed."""

    def publish(self, event: Event):
        raise NotImplementedError

    def listen(self, handler: EventHandler) -> FeedListener:
        raise NotImplementedError

    def ping(self) -> bool:
        return True


class LocalChangeFeed(ChangeFeed):
    """
    In-process change feed for development and tests.
    Handlers run synchronously in the publishing thread.
    """

    def __init__(self):
        self._handlers: List[EventHandler] = []
        self._lock = threading.Lock()

    def publish(self, event: Event):
        with self._lock:
            handlers = list(self._handlers)

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Change feed handler failed for {event.type}")

    def listen(self, handler: EventHandler) -> FeedListener:
        with self._lock:
            self._handlers.append(handler)

        def detach():
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return FeedListener(detach)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._handlers)


class RedisChangeFeed(ChangeFeed):
    """
    Change feed backed by Redis pub/sub.
    Every listener gets its own pubsub connection served by a worker thread.
    """

    def __init__(self, redis_client: redis.Redis, channel: str = 'scoreboard:changes', retry_delay: float = 0.5):
        self.redis = redis_client
        self.channel = channel
        self.retry_delay = retry_delay

    def publish(self, event: Event):
        self.redis.publish(self.channel, event.to_json())

    def listen(self, handler: EventHandler) -> FeedListener:
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)

        def on_message(message):
            if message['type'] != 'message':
                return
            try:
                event = Event.from_json(message['data'])
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Discarding malformed change event on {self.channel}: {e}")
                return
            try:
                handler(event)
            except Exception:
                logger.exception(f"Change feed handler failed for {event.type}")

        def on_worker_error(error, pubsub, thread):
            # The worker keeps polling; redis-py reconnects and resubscribes on the next read
            logger.error(f"Change feed listener error on {self.channel}: {error}")
            time.sleep(self.retry_delay)

        pubsub.subscribe(**{self.channel: on_message})
        worker = pubsub.run_in_thread(
            sleep_time=0.1,
            daemon=True,
            exception_handler=on_worker_error
        )

        def detach():
            # The worker closes the pubsub connection once its loop exits
            worker.stop()
            if threading.current_thread() is not worker:
                worker.join(timeout=1.0)

        return FeedListener(detach)

    def ping(self) -> bool:
        return bool(self.redis.ping())


def create_change_feed(
    backend: str = 'local',
    redis_url: Optional[str] = None,
    channel: str = 'scoreboard:changes'
) -> ChangeFeed:
    if backend == 'local':
        return LocalChangeFeed()
    if backend == 'redis':
        client = redis.from_url(
            redis_url or 'redis://localhost:6379',
            decode_responses=True,
            socket_connect_timeout=5,
            health_check_interval=30
        )
        return RedisChangeFeed(client, channel=channel)
    raise ValueError(f"Unknown change feed backend: {backend}")
