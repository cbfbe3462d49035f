"""
Event Bus
Search and login lifecycle notifications for the web layer and tests
"""
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List
import logging
import threading

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class EventBus:
    """
    Synchronous, thread-safe publish/subscribe.

    Handlers run on the emitting thread, which during a search is a worker
    thread. A failing handler is logged and does not affect the emitter or
    the remaining handlers.
    """

    def __init__(self):
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._lock = threading.RLock()

    def subscribe(self, event_type: str, handler: Handler):
        with self._lock:
            if handler not in self._handlers[event_type]:
                self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: Handler):
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def emit(self, event_type: str, payload=None):
        # Snapshot so handlers may (un)subscribe while being called.
        with self._lock:
            handlers = list(self._handlers.get(event_type, ()))
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler %r failed for %s", handler, event_type)


class Events:
    # {"query", "variants", "page"}
    SEARCH_STARTED = "search_started"
    # {"completed", "total", "source", "warning"}
    SEARCH_PROGRESS = "search_progress"
    # {"query", "variants", "results", "count", "source_warnings", "source_health"}
    SEARCH_COMPLETED = "search_completed"

    # {"source", "attempts"} / {"source", "error", "attempts"}
    SOURCE_LOGIN_SUCCEEDED = "source_login_succeeded"
    SOURCE_LOGIN_FAILED = "source_login_failed"

    # {"enabled_sources": {...}}
    SETTINGS_CHANGED = "settings_changed"
    SOURCES_RELOADED = "sources_reloaded"
