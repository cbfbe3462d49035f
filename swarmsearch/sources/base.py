"""
Source Definitions
Declarative description of one torrent index, consumed by the search coordinator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
from urllib.parse import quote

SearchUrl = Union[str, Callable[[str, int, dict], Union[str, List[str]]]]
ResultBuilder = Callable[[Any, str], Optional[Dict[str, Any]]]

RESPONSE_TYPES = ("html", "html_fragment")


@dataclass
class SourceDefinition:
    """
    A source is data, not code: where to search, which rows to read and how
    to map one row to a partial result. Sources behind a login add a
    ``login(gateway, data)`` callable returning a cookie string.
    """
    id: str
    name: str
    search_url: SearchUrl
    list_selector: str
    result_builder: ResultBuilder
    enabled: bool = True
    magnet_selector: Optional[Union[str, Callable]] = None
    response_type: str = "html"
    page_offset: int = 0
    fetch_headers: Optional[Callable[[dict], Dict[str, str]]] = None
    data: Dict[str, Any] = field(default_factory=dict)
    login: Optional[Callable[[Any, dict], str]] = None
    max_login_attempts: int = 3
    plugin_enabled: bool = False

    def __post_init__(self):
        if self.response_type not in RESPONSE_TYPES:
            raise ValueError(f"response_type must be one of {RESPONSE_TYPES}, got {self.response_type!r}")

    @property
    def requires_login(self) -> bool:
        return callable(self.login)

    def build_urls(self, query: str, page: int = 1) -> List[str]:
        """Candidate URLs for one query, tried in order until one answers."""
        page_value = page + self.page_offset
        if callable(self.search_url):
            urls = self.search_url(query, page_value, self.data)
        else:
            urls = (
                self.search_url
                .replace("{query}", quote(query, safe=""))
                .replace("{page}", str(page_value))
            )
        if isinstance(urls, str):
            urls = [urls]
        return [u for u in (urls or []) if u]

    def headers(self) -> Dict[str, str]:
        if self.fetch_headers is None:
            return {}
        return {k: v for k, v in (self.fetch_headers(self.data) or {}).items() if v}


def resolve_mirrors(settings, source_id: str, defaults: Iterable[str]) -> List[str]:
    """User mirrors from ``<source_id>_mirrors`` first, then the built-in ones."""
    custom = []
    if settings is not None:
        custom = list(settings.get(f"{source_id}_mirrors", []) or [])
    mirrors: List[str] = []
    for m in custom + list(defaults):
        m = str(m or "").strip().rstrip("/")
        if m and m not in mirrors:
            mirrors.append(m)
    return mirrors


def text_of(node) -> str:
    if node is None:
        return ""
    return node.get_text(" ", strip=True)


def nth(row, selector: str, index: int):
    """Like jQuery's ``.eq(index)``: the index-th match or None."""
    matches = row.select(selector)
    if -len(matches) <= index < len(matches):
        return matches[index]
    return None


def attr_of(node, name: str) -> str:
    if node is None:
        return ""
    return str(node.get(name) or "").strip()
