"""
1337x Search Source
Listing rows only link to detail pages; the magnet lives on the detail page.
"""
from urllib.parse import quote_plus, urljoin

from .base import SourceDefinition, attr_of, nth, resolve_mirrors, text_of

SOURCE_ID = "1337x"

MIRRORS = [
    "https://www.1337x.to",
    "https://1337x.st",
]


def build_row(row, page_url: str):
    link = nth(row, "td.coll-1 a", -1)
    href = attr_of(link, "href")
    # The size cell also carries a hidden seeders span.
    size_cell = row.select_one("td.coll-4")
    size = ""
    if size_cell is not None:
        size = (size_cell.find(string=True, recursive=False) or size_cell.get_text()).strip()
    return {
        "title": text_of(link),
        "detail_url": urljoin(page_url, href) if href else None,
        "seeders": text_of(row.select_one("td.coll-2")),
        "leechers": text_of(row.select_one("td.coll-3")),
        "size": size,
    }


def definition(settings=None) -> SourceDefinition:
    mirrors = resolve_mirrors(settings, SOURCE_ID, MIRRORS)

    def search_url(query, page, data):
        plus = quote_plus(" ".join(query.split()))
        return [f"{m}/search/{plus}/{page}/" for m in mirrors]

    return SourceDefinition(
        id=SOURCE_ID,
        name="1337x",
        enabled=False,
        search_url=search_url,
        list_selector="table.table-list tbody tr",
        result_builder=build_row,
        magnet_selector='a[href^="magnet:"]',
    )
