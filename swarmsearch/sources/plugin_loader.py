"""
Local source plugins.
Plugins are plain Python files in trusted local directories; nothing is fetched remotely.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Iterable, List
import hashlib
import importlib.util
import logging
import sys
import traceback

from .base import SourceDefinition

logger = logging.getLogger(__name__)


@dataclass
class PluginContext:
    """What a plugin's register() may use: the settings store and the event bus."""
    settings: object
    event_bus: object | None = None


class SourcePluginLoader:
    """
    A plugin file contributes sources in one of two ways:
    - a ``register(registry, context)`` function that calls ``registry.register(...)``
    - module-level SourceDefinition values created with ``plugin_enabled=True``

    Errors are collected per file in ``last_errors``; one bad plugin never
    stops the others from loading.
    """

    def __init__(self, plugin_dirs: Iterable[Path]):
        self.plugin_dirs = [Path(p) for p in plugin_dirs]
        self.last_errors: List[str] = []

    def discover_files(self) -> List[Path]:
        files: List[Path] = []
        for d in self.plugin_dirs:
            if not d.is_dir():
                continue
            files.extend(f for f in sorted(d.glob("*.py")) if not f.name.startswith("_"))
        return files

    def load(self, context: PluginContext, registry) -> List[SourceDefinition]:
        """Register every plugin source into ``registry``; returns the ones added."""
        self.last_errors.clear()
        loaded: List[SourceDefinition] = []
        for path in self.discover_files():
            before = {d.id: d for d in registry.definitions()}
            try:
                self._load_file(path, registry, context)
            except Exception as e:
                self.last_errors.append(f"{path}: {e}")
            added = [d for d in registry.definitions() if before.get(d.id) is not d]
            if added:
                logger.debug("%s added sources %s", path.name, [d.id for d in added])
            loaded.extend(added)
        return loaded

    def _load_file(self, path: Path, registry, context: PluginContext):
        module = self._import(path)

        register_fn = getattr(module, "register", None)
        if callable(register_fn):
            register_fn(registry, context)
            return

        definitions = [
            value for value in vars(module).values()
            if isinstance(value, SourceDefinition) and value.plugin_enabled
        ]
        if not definitions:
            raise RuntimeError("No register() function or plugin_enabled SourceDefinition found")
        for definition in definitions:
            registry.register(definition)

    @staticmethod
    def _import(path: Path) -> ModuleType:
        digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:10]
        module_name = f"swarmsearch_plugin_{path.stem}_{digest}"
        spec = importlib.util.spec_from_file_location(module_name, str(path))
        if spec is None or spec.loader is None:
            raise RuntimeError("Unable to create import spec")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            raise RuntimeError(f"Plugin import failed\n{traceback.format_exc(limit=5)}") from None
        return module


def default_plugin_dirs() -> List[Path]:
    """User-wide plugins first, then ones next to the working directory."""
    return [
        Path.home() / ".swarmsearch" / "plugins",
        Path.cwd() / "swarmsearch_plugins",
    ]
