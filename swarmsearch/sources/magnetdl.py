"""
magnetDL Search Source
The data endpoint answers with bare table rows, not a full page.
"""
from urllib.parse import quote

from .base import SourceDefinition, attr_of, nth, resolve_mirrors, text_of

SOURCE_ID = "magnetdl"

MIRRORS = [
    "https://magnetdl.app",
]


def build_row(row, page_url: str):
    return {
        "title": text_of(nth(row, "td", 1)),
        # A magnet in detail_url is moved to the magnet field by the extractor.
        "detail_url": attr_of(row.select_one('a[href^="magnet:"]'), "href"),
        "size": text_of(nth(row, "td", 4)),
        "seeders": text_of(row.select_one("td.s")),
        "leechers": text_of(row.select_one("td.l")),
    }


def definition(settings=None) -> SourceDefinition:
    mirrors = resolve_mirrors(settings, SOURCE_ID, MIRRORS)

    def search_url(query, page, data):
        encoded = quote(query, safe="")
        return [f"{m}/data.php?page=0&q={encoded}" for m in mirrors]

    return SourceDefinition(
        id=SOURCE_ID,
        name="magnetDL",
        search_url=search_url,
        response_type="html_fragment",
        list_selector="tr",
        result_builder=build_row,
        magnet_selector='a[href^="magnet:"]',
    )
