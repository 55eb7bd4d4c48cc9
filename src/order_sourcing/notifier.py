import asyncio
import logging
import threading
from typing import Dict, List, Tuple

from .models import DomainEvent


class LoggingObserver:
    """
    Writes one log line per appended event, with the full event payload.
    This is purely diagnostic output.
    """

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def __call__(self, event: DomainEvent, version: int) -> None:
        if logging.getLogger().isEnabledFor(self.level):
            logging.log(self.level, f"Event stored (version {version}): {event.model_dump_json()}")


class Notifier:
    """
    Hands appended events to async consumers, grouped by correlation key.

    Each watcher is a queue bound to the event loop it was opened on. Events
    are delivered through that loop, so appends may come from any thread and
    watchers still receive them in version order.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._watchers: Dict[str, List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]]] = {}

    def __call__(self, event: DomainEvent, version: int) -> None:
        key = event.correlation_key
        if key is None:
            return
        with self._lock:
            targets = list(self._watchers.get(key, ()))
        for loop, queue in targets:
            loop.call_soon_threadsafe(queue.put_nowait, event)

    def subscribe(self, correlation_key: str) -> asyncio.Queue:
        """
        Opens a queue on the running loop that receives every event appended
        for `correlation_key` from now on. Must be called from a coroutine.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._watchers.setdefault(correlation_key, []).append((loop, queue))
        return queue

    def unsubscribe(self, correlation_key: str, queue: asyncio.Queue):
        with self._lock:
            remaining = [(loop, q) for loop, q in self._watchers.get(correlation_key, ()) if q is not queue]
            if remaining:
                self._watchers[correlation_key] = remaining
            else:
                self._watchers.pop(correlation_key, None)

    def watcher_count(self, correlation_key: str) -> int:
        with self._lock:
            return len(self._watchers.get(correlation_key, ()))
