"""
Magnet Links
Parse, build and merge magnet URIs
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from urllib.parse import parse_qsl, quote
import re


DEFAULT_TRACKERS = [
    "udp://tracker.opentrackr.org:1337/announce",
    "udp://open.stealth.si:80/announce",
    "udp://tracker.torrent.eu.org:451/announce",
    "udp://exodus.desync.com:6969/announce",
]

_BTIH_RE = re.compile(r"xt=urn:btih:([a-fA-F0-9]{40}|[a-zA-Z2-7]{32})(?![a-zA-Z0-9])")
_HEX_INFOHASH_RE = re.compile(r"(?<![a-fA-F0-9])([a-fA-F0-9]{40})(?![a-fA-F0-9])")


@dataclass
class Magnet:
    """Components of a magnet link"""
    xt: str
    dn: str = ""
    trackers: List[str] = field(default_factory=list)

    def to_uri(self) -> str:
        uri = f"magnet:?xt={self.xt}"
        if self.dn:
            uri += f"&dn={quote(self.dn, safe='')}"
        for tracker in self.trackers:
            uri += f"&tr={quote(tracker, safe='')}"
        return uri


def extract_infohash(magnet: str) -> str:
    """Extract the btih content identifier from a magnet link (lowercase)."""
    match = _BTIH_RE.search(magnet or "")
    if match:
        return match.group(1).lower()
    return ""


def find_infohash_in_url(url: str) -> str:
    """Some indexes put the 40-hex infohash straight into their detail URLs."""
    match = _HEX_INFOHASH_RE.search(url or "")
    return match.group(1).lower() if match else ""


def is_magnet(link: Optional[str]) -> bool:
    return bool(link) and link.strip().lower().startswith("magnet:?")


def parse_magnet(magnet: str) -> Optional[Magnet]:
    if not is_magnet(magnet):
        return None
    query = magnet.strip()[len("magnet:?"):]
    xt = ""
    dn = ""
    trackers: List[str] = []
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key == "xt" and not xt:
            xt = value
        elif key == "dn" and not dn:
            dn = value
        elif key == "tr" and value:
            trackers.append(value)
    if not xt:
        return None
    return Magnet(xt=xt, dn=dn, trackers=trackers)


def combine_magnets(magnets: Iterable[str]) -> Optional[str]:
    """
    Merge several magnets for the same swarm into one link.

    Keeps the first xt and the first non-empty dn; trackers are the
    order-preserving union of every input's trackers.
    """
    parsed = [m for m in (parse_magnet(link) for link in magnets) if m is not None]
    if not parsed:
        return None
    dn = next((m.dn for m in parsed if m.dn), "")
    trackers: List[str] = []
    for m in parsed:
        for tracker in m.trackers:
            if tracker not in trackers:
                trackers.append(tracker)
    return Magnet(xt=parsed[0].xt, dn=dn, trackers=trackers).to_uri()


def magnet_from_infohash(infohash: str, display_name: str = "") -> Optional[str]:
    infohash = (infohash or "").strip()
    if not re.fullmatch(r"[A-Fa-f0-9]{40}", infohash):
        return None
    return Magnet(
        xt=f"urn:btih:{infohash.upper()}",
        dn=display_name or "",
        trackers=list(DEFAULT_TRACKERS),
    ).to_uri()
