"""
Source Registry
Owns the source definitions and the session manager of each login-gated source.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional
import logging
import threading

from ..core.event_bus import EventBus, Events
from ..core.session_manager import SessionManager
from .base import SourceDefinition
from .builtin import builtin_definitions
from .plugin_loader import PluginContext, SourcePluginLoader, default_plugin_dirs

logger = logging.getLogger(__name__)


class SourceRegistry:
    """
    Registry keyed by source id. Each registry is self-contained, so tests
    can build isolated ones instead of sharing process-wide state.
    """

    def __init__(self, event_bus: Optional[EventBus] = None):
        self.event_bus = event_bus
        self._definitions: Dict[str, SourceDefinition] = {}
        self._sessions: Dict[str, SessionManager] = {}
        self._lock = threading.RLock()
        self.plugin_errors: List[str] = []

    def register(self, definition: SourceDefinition) -> SourceDefinition:
        """Add a definition, replacing any earlier one with the same id."""
        if not isinstance(definition, SourceDefinition):
            raise TypeError(f"Invalid source type for register(): {type(definition)}. Expected SourceDefinition.")
        if not str(definition.id or "").strip():
            raise ValueError("Source must define a non-empty 'id'.")
        if not str(definition.name or "").strip():
            raise ValueError("Source must define a non-empty 'name'.")
        if not callable(definition.result_builder):
            raise ValueError("Source must provide a callable result_builder(row, page_url).")
        with self._lock:
            self._definitions[definition.id] = definition
            self._sessions.pop(definition.id, None)
            if definition.requires_login:
                # Lazy: nothing touches the network until a search needs the cookies.
                self._sessions[definition.id] = SessionManager(
                    definition.id,
                    definition.login,
                    data=definition.data,
                    max_attempts=definition.max_login_attempts,
                    event_bus=self.event_bus,
                )
        return definition

    def unregister(self, source_id: str):
        with self._lock:
            self._definitions.pop(source_id, None)
            self._sessions.pop(source_id, None)

    def get(self, source_id: str) -> Optional[SourceDefinition]:
        with self._lock:
            return self._definitions.get(source_id)

    def session(self, source_id: str) -> Optional[SessionManager]:
        with self._lock:
            return self._sessions.get(source_id)

    def definitions(self) -> List[SourceDefinition]:
        with self._lock:
            return list(self._definitions.values())

    def enabled(self) -> List[SourceDefinition]:
        """Enabled definitions in registration order."""
        with self._lock:
            return [d for d in self._definitions.values() if d.enabled]

    def enable_source(self, source_id: str, enabled: bool = True) -> bool:
        with self._lock:
            definition = self._definitions.get(source_id)
            if definition is None:
                return False
            definition.enabled = bool(enabled)
            return True

    def apply_enabled_map(self, enabled_map: Dict[str, bool]):
        """Hot reload enable/disable state; unknown ids are ignored."""
        with self._lock:
            for source_id, enabled in (enabled_map or {}).items():
                if source_id in self._definitions:
                    self._definitions[source_id].enabled = bool(enabled)
        if self.event_bus is not None:
            self.event_bus.emit(Events.SOURCES_RELOADED)

    def list(self) -> List[Dict]:
        with self._lock:
            return [
                {
                    "id": d.id,
                    "name": d.name,
                    "enabled": bool(d.enabled),
                    "requiresLogin": d.requires_login,
                }
                for d in self._definitions.values()
            ]

    def bootstrap(self, settings=None, plugin_dirs: Optional[Iterable[Path]] = None) -> "SourceRegistry":
        """Register the built-in sources, then local plugins, then apply saved toggles."""
        for definition in builtin_definitions(settings):
            self.register(definition)

        loader = SourcePluginLoader(default_plugin_dirs() if plugin_dirs is None else plugin_dirs)
        loaded = loader.load(PluginContext(settings=settings, event_bus=self.event_bus), self)
        self.plugin_errors = list(loader.last_errors)
        for error in self.plugin_errors:
            logger.warning("Plugin load error: %s", error)
        if loaded:
            logger.info("Loaded %d plugin source(s)", len(loaded))

        if settings is not None:
            self.apply_enabled_map(settings.get("enabled_sources", {}) or {})
        logger.info("Ready with %d sources", len(self._definitions))
        return self

    def shutdown(self):
        with self._lock:
            self._definitions.clear()
            self._sessions.clear()
