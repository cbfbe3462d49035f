"""
torrent9 Search Source
"""
from urllib.parse import quote, urljoin

from .base import SourceDefinition, attr_of, nth, resolve_mirrors, text_of

SOURCE_ID = "torrent9"

MIRRORS = [
    "https://www.torrent9.re",
]


def build_row(row, page_url: str):
    link = row.select_one("td a")
    href = attr_of(link, "href")
    return {
        "title": text_of(link),
        "detail_url": urljoin(page_url, href) if href else None,
        "size": text_of(nth(row, "td", 1)),
        "seeders": text_of(nth(row, "td", 2)),
        "leechers": text_of(nth(row, "td", 3)),
    }


def select_magnet(soup):
    # The page has several magnet-looking buttons; the red one is the real link.
    node = soup.select_one('a.btn.btn-danger[href^="magnet:"]')
    return attr_of(node, "href") or None


def definition(settings=None) -> SourceDefinition:
    mirrors = resolve_mirrors(settings, SOURCE_ID, MIRRORS)

    def search_url(query, page, data):
        encoded = quote(query, safe="")
        return [f"{m}/recherche/{encoded}" for m in mirrors]

    return SourceDefinition(
        id=SOURCE_ID,
        name="torrent9",
        search_url=search_url,
        list_selector="table tbody tr",
        result_builder=build_row,
        magnet_selector=select_magnet,
    )
