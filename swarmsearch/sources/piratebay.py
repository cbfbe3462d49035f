"""
PirateBay Search Source
Listing rows carry the magnet, so no detail page is needed.
"""
from urllib.parse import quote
import re

from .base import SourceDefinition, attr_of, nth, resolve_mirrors, text_of

SOURCE_ID = "tpb"

MIRRORS = [
    "https://tpb.party",
]

_SIZE_RE = re.compile(r"([\d.]+.*[KMGT]i?B)")


def build_row(row, page_url: str):
    title_link = nth(row, "td a", 1)
    size_text = text_of(nth(row, "td", 4)).replace("\xa0", " ")
    # Older layouts: "Uploaded 03-14 2019, Size 1.5 GiB, ULed by x"
    desc = text_of(row.select_one(".detDesc")).replace("\xa0", " ")
    if not _SIZE_RE.search(size_text) and "Size" in desc:
        size_text = desc.split("Size", 1)[1].split(",")[0]
    size_match = _SIZE_RE.search(size_text)
    return {
        "title": text_of(title_link),
        "detail_url": attr_of(title_link, "href"),
        "magnet": attr_of(row.select_one('a[href^="magnet:"]'), "href"),
        "size": size_match.group(1).strip() if size_match else "",
        "seeders": text_of(nth(row, "td", 5)),
        "leechers": text_of(nth(row, "td", 6)),
    }


def definition(settings=None) -> SourceDefinition:
    mirrors = resolve_mirrors(settings, SOURCE_ID, MIRRORS)

    def search_url(query, page, data):
        encoded = quote(query, safe="")
        return [f"{m}/search/{encoded}/{page}/99/100" for m in mirrors]

    return SourceDefinition(
        id=SOURCE_ID,
        name="The Pirate Bay",
        search_url=search_url,
        list_selector="#searchResult tr:not(.header)",
        result_builder=build_row,
        # PirateBay pages are 0-indexed
        page_offset=-1,
    )
