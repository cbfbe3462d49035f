"""Runtime bootstrap for the swarmsearch web API."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os

from ..core.event_bus import EventBus
from ..core.fetch import FetchGateway
from ..core.search_coordinator import SearchCoordinator, fetch_pool_size
from ..core.settings_manager import SearchConfig, SettingsManager
from ..sources.registry import SourceRegistry

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class SwarmRuntime:
    """Shared service graph used by web endpoints."""

    settings: SettingsManager
    event_bus: EventBus
    registry: SourceRegistry
    coordinator: SearchCoordinator

    def shutdown(self):
        self.coordinator.shutdown()
        self.registry.shutdown()


def configure_logging():
    level_name = str(os.environ.get("SWARMSEARCH_LOG_LEVEL", "") or "INFO").strip().upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_runtime() -> SwarmRuntime:
    """Create and wire core services."""
    configure_logging()
    settings = SettingsManager()
    event_bus = EventBus()
    config = SearchConfig.from_settings(settings)

    registry = SourceRegistry(event_bus).bootstrap(settings)
    gateway = FetchGateway(
        max_workers=fetch_pool_size(registry, config),
        default_timeout=config.per_url_timeout_seconds,
    )
    coordinator = SearchCoordinator(registry, gateway=gateway, event_bus=event_bus, config=config)

    return SwarmRuntime(
        settings=settings,
        event_bus=event_bus,
        registry=registry,
        coordinator=coordinator,
    )
