"""
TorrentGalaxy Search Source
"""
from urllib.parse import quote

from .base import SourceDefinition, attr_of, resolve_mirrors, text_of

SOURCE_ID = "torrentgalaxy"

MIRRORS = [
    "https://torrentgalaxy.hair",
]


def build_row(row, page_url: str):
    link = row.select_one(".item-title a")
    return {
        "title": text_of(link),
        "detail_url": attr_of(link, "href"),
        "magnet": attr_of(row.select_one('a[href^="magnet:"]'), "href"),
        "size": text_of(row.select_one(".item-size")),
        "seeders": text_of(row.select_one(".item-seed")),
        "leechers": text_of(row.select_one(".item-leech")),
    }


def definition(settings=None) -> SourceDefinition:
    mirrors = resolve_mirrors(settings, SOURCE_ID, MIRRORS)

    def search_url(query, page, data):
        encoded = quote(query, safe="")
        return [f"{m}/fullsearch?q={encoded}" for m in mirrors]

    return SourceDefinition(
        id=SOURCE_ID,
        name="TorrentGalaxy",
        search_url=search_url,
        list_selector="#torrents tr:not(.list-header)",
        result_builder=build_row,
        magnet_selector='a[href^="magnet:"]',
    )
