"""
In-memory broadcast hub for WebSocket fanout.

- publish(event) hands the event to a single broadcast task (bounded hand-off queue).
- The broadcast task snapshots the registry and enqueues onto each subscriber's
  own bounded outbound queue; it never awaits a socket.
- Each subscriber has a writer task that drains its queue onto the connection.
  A failed or timed-out write unregisters the subscriber and closes its connection.
"""
import asyncio
import logging
import threading
import uuid
from typing import Any, Callable, Optional, Protocol, Set

from app.models.schemas import ChangeEvent
from app.services.errors import ConnectionFailure

logger = logging.getLogger("stock.hub")

OVERFLOW_DISCONNECT = "disconnect"
OVERFLOW_DROP_OLDEST = "drop_oldest"
OVERFLOW_POLICIES = (OVERFLOW_DISCONNECT, OVERFLOW_DROP_OLDEST)


class Connection(Protocol):
    """What the hub needs from a live connection (Starlette's WebSocket fits)."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class Subscriber:
    """One registered connection with its outbound queue and writer task."""

    def __init__(
        self,
        connection: Connection,
        queue_maxsize: int = 256,
        overflow: str = OVERFLOW_DISCONNECT,
        send_timeout: float = 10.0,
        on_failure: Optional[Callable[["Subscriber"], Any]] = None,
    ):
        self.id = uuid.uuid4().hex[:8]
        self.connection = connection
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_maxsize)
        self._overflow = overflow
        self._send_timeout = send_timeout
        self._on_failure = on_failure
        self._task: Optional[asyncio.Task[None]] = None
        self._closed = False
        self.sent = 0
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._write_loop(), name=f"subscriber-{self.id}")

    def offer(self, payload: str) -> bool:
        """
        Queue payload for this subscriber without blocking.
        Returns False when the subscriber is closed or overflowed under the disconnect policy.
        """
        if self._closed:
            return False
        try:
            self._outbox.put_nowait(payload)
            return True
        except asyncio.QueueFull:
            if self._overflow != OVERFLOW_DROP_OLDEST:
                return False
        self._outbox.get_nowait()
        self._outbox.task_done()
        self.dropped += 1
        self._outbox.put_nowait(payload)
        return True

    async def join(self) -> None:
        """Wait until everything queued so far has been written or discarded."""
        await self._outbox.join()

    async def close(self) -> None:
        """Stop the writer and close the connection. Safe to call more than once."""
        if self._closed and self._task is None:
            return
        self._closed = True
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._discard_pending()
        await self._close_connection()

    async def _write_loop(self) -> None:
        while True:
            payload = await self._outbox.get()
            try:
                await self._send(payload)
            except ConnectionFailure as exc:
                logger.warning("subscriber %s dropped: %s", self.id, exc)
                self._closed = True
                self._task = None
                if self._on_failure is not None:
                    self._on_failure(self)
                self._discard_pending()
                await self._close_connection()
                return
            finally:
                self._outbox.task_done()

    async def _send(self, payload: str) -> None:
        try:
            await asyncio.wait_for(
                self.connection.send_text(payload), timeout=self._send_timeout
            )
        except asyncio.TimeoutError as exc:
            raise ConnectionFailure(f"write timed out after {self._send_timeout}s") from exc
        except Exception as exc:
            raise ConnectionFailure(str(exc) or exc.__class__.__name__) from exc
        self.sent += 1

    def _discard_pending(self) -> None:
        while True:
            try:
                self._outbox.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._outbox.task_done()

    async def _close_connection(self) -> None:
        try:
            await self.connection.close()
        except Exception as exc:
            # Peer already gone; nothing left to release.
            logger.debug("subscriber %s close: %s", self.id, exc)


class BroadcastHub:
    """Registry of live subscribers plus the single broadcast task."""

    def __init__(
        self,
        queue_maxsize: int = 1000,
        subscriber_queue_maxsize: int = 256,
        overflow: str = OVERFLOW_DISCONNECT,
        send_timeout: float = 10.0,
    ):
        if overflow not in OVERFLOW_POLICIES:
            raise ValueError(f"unknown overflow policy: {overflow!r}")
        self._queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=queue_maxsize)
        self._subscribers: Set[Subscriber] = set()
        self._lock = threading.Lock()
        self._subscriber_queue_maxsize = subscriber_queue_maxsize
        self._overflow = overflow
        self._send_timeout = send_timeout
        self._task: Optional[asyncio.Task[None]] = None
        self._closers: Set[asyncio.Task[Any]] = set()
        self._published = 0
        self._disconnected = 0
        self._dropped_closed = 0

    def register(self, connection: Connection) -> Subscriber:
        subscriber = Subscriber(
            connection,
            queue_maxsize=self._subscriber_queue_maxsize,
            overflow=self._overflow,
            send_timeout=self._send_timeout,
            on_failure=self._on_write_failure,
        )
        with self._lock:
            self._subscribers.add(subscriber)
            count = len(self._subscribers)
        subscriber.start()
        logger.info("subscriber %s connected (total %d)", subscriber.id, count)
        return subscriber

    def unregister(self, subscriber: Subscriber) -> bool:
        """Remove subscriber from the registry. Returns False if it was not registered."""
        with self._lock:
            if subscriber not in self._subscribers:
                return False
            self._subscribers.discard(subscriber)
            count = len(self._subscribers)
        self._dropped_closed += subscriber.dropped
        logger.info("subscriber %s disconnected (total %d)", subscriber.id, count)
        return True

    def __contains__(self, subscriber: object) -> bool:
        with self._lock:
            return subscriber in self._subscribers

    async def publish(self, event: ChangeEvent) -> None:
        """Hand event to the broadcast task; waits only if the hand-off queue is full."""
        await self._queue.put(event)
        self._published += 1

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="hub-broadcast")
            logger.info("broadcast hub started")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        with self._lock:
            subscribers = list(self._subscribers)
            self._subscribers.clear()
        for subscriber in subscribers:
            await subscriber.close()
        if self._closers:
            await asyncio.gather(*self._closers, return_exceptions=True)
        logger.info("broadcast hub stopped (%d subscribers closed)", len(subscribers))

    async def flush(self) -> None:
        """Wait until every published event has been written (or failed) on every subscriber."""
        await self._queue.join()
        with self._lock:
            subscribers = list(self._subscribers)
        await asyncio.gather(*(s.join() for s in subscribers))
        if self._closers:
            await asyncio.gather(*list(self._closers), return_exceptions=True)

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self._deliver(event.to_json())
            except Exception:
                logger.exception("broadcast of %s failed", event.kind.value)
            finally:
                self._queue.task_done()

    def _deliver(self, payload: str) -> None:
        with self._lock:
            targets = list(self._subscribers)
        for subscriber in targets:
            if subscriber.offer(payload):
                continue
            logger.warning("subscriber %s overflowed or closed; disconnecting", subscriber.id)
            if self.unregister(subscriber):
                self._disconnected += 1
            self._spawn_close(subscriber)

    def _on_write_failure(self, subscriber: Subscriber) -> None:
        if self.unregister(subscriber):
            self._disconnected += 1

    def _spawn_close(self, subscriber: Subscriber) -> None:
        task = asyncio.create_task(subscriber.close(), name=f"close-{subscriber.id}")
        self._closers.add(task)
        task.add_done_callback(self._closers.discard)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def published(self) -> int:
        return self._published

    @property
    def disconnected(self) -> int:
        return self._disconnected

    @property
    def dropped(self) -> int:
        with self._lock:
            live = sum(s.dropped for s in self._subscribers)
        return self._dropped_closed + live

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize()
