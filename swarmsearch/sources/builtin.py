"""
Built-in source definitions, in registration order.
"""
from typing import List

from . import kickass, magnetdl, piratebay, rutracker, torrent9, torrentgalaxy, x1337
from .base import SourceDefinition

BUILTIN_MODULES = [
    piratebay,
    x1337,
    kickass,
    torrentgalaxy,
    magnetdl,
    torrent9,
    rutracker,
]


def builtin_definitions(settings=None) -> List[SourceDefinition]:
    return [module.definition(settings) for module in BUILTIN_MODULES]
