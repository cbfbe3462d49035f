"""
Search Result Model
Records produced from listing rows and the ranked records returned to callers
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import re

from .magnet import extract_infohash


@dataclass
class PartialResult:
    """One listing row, before enrichment"""
    title: str
    source: str = ""
    source_id: str = ""
    detail_url: Optional[str] = None
    magnet: Optional[str] = None
    size: str = ""
    seeders: int = 0
    leechers: int = 0

    @staticmethod
    def parse_count(value: Any) -> int:
        """Parse a seeder/leecher cell; anything unparseable counts as 0."""
        if isinstance(value, bool):
            return 0
        if isinstance(value, int):
            return max(0, value)
        text = re.sub(r"[,\s]", "", str(value or ""))
        match = re.match(r"\d+", text)
        if not match:
            return 0
        return int(match.group(0))

    @staticmethod
    def normalize_size(size_str: str) -> int:
        """
        Normalize size string to bytes
        Handles: "1.5 GB", "500 MB", "2.3 GiB", etc.
        """
        if isinstance(size_str, int):
            return size_str

        size_str = (size_str or "").strip().upper().replace(",", ".")

        match = re.search(r'([\d.]+)\s*([KMGT]I?B)', size_str)
        if not match:
            return 0

        try:
            value = float(match.group(1))
        except ValueError:
            return 0
        unit = match.group(2)

        # Conversion factors (binary: KiB, MiB, GiB vs decimal: KB, MB, GB)
        multipliers = {
            'KB': 1000, 'KIB': 1024,
            'MB': 1000**2, 'MIB': 1024**2,
            'GB': 1000**3, 'GIB': 1024**3,
            'TB': 1000**4, 'TIB': 1024**4,
        }

        return int(value * multipliers.get(unit, 1))

    @staticmethod
    def format_size(size_bytes: int) -> str:
        """Bytes to a display string such as "1.46 GiB"."""
        value = float(max(0, int(size_bytes or 0)))
        for unit in ("B", "KiB", "MiB", "GiB"):
            if value < 1024:
                return f"{value:.0f} B" if unit == "B" else f"{value:.2f} {unit}"
            value /= 1024
        return f"{value:.2f} TiB"

    @property
    def size_bytes(self) -> int:
        return self.normalize_size(self.size)


@dataclass
class RankedResult(PartialResult):
    """Scored result carrying its dedup key"""
    infohash: str = ""
    score: int = 0
    query_variant: str = ""

    @classmethod
    def from_partial(cls, partial: PartialResult, query_variant: str = "") -> "RankedResult":
        result = cls(
            title=partial.title,
            source=partial.source,
            source_id=partial.source_id,
            detail_url=partial.detail_url,
            magnet=partial.magnet,
            size=partial.size,
            seeders=partial.seeders,
            leechers=partial.leechers,
            query_variant=query_variant,
        )
        result.set_magnet(partial.magnet)
        return result

    def set_magnet(self, magnet: Optional[str]) -> None:
        """Attach a magnet; the infohash is fixed by the first magnet that carries one."""
        if not magnet:
            return
        self.magnet = magnet
        if not self.infohash:
            self.infohash = extract_infohash(magnet)

    def to_public_dict(self) -> Dict[str, Any]:
        out = {
            "title": self.title,
            "source": self.source,
            "size": self.size,
            "sizeBytes": self.size_bytes,
            "seeders": self.seeders,
            "leechers": self.leechers,
            "magnet": self.magnet or "",
            "score": self.score,
            "infohash": self.infohash,
        }
        if self.detail_url:
            out["detailUrl"] = self.detail_url
        return out
