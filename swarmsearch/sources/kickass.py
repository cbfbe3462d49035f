"""
KickassTorrents Search Source
"""
from urllib.parse import quote

from .base import SourceDefinition, attr_of, nth, resolve_mirrors, text_of

SOURCE_ID = "kickass"

MIRRORS = [
    "https://kickasst.net",
    "https://kickasstorrents.cc",
]


def build_row(row, page_url: str):
    return {
        "title": text_of(row.select_one("a.cellMainLink")),
        "magnet": attr_of(row.select_one("a.imagnet"), "href"),
        "size": text_of(nth(row, "td", 1)),
        "seeders": text_of(row.select_one("td.green")),
        "leechers": text_of(row.select_one("td.red")),
    }


def definition(settings=None) -> SourceDefinition:
    mirrors = resolve_mirrors(settings, SOURCE_ID, MIRRORS)

    def search_url(query, page, data):
        encoded = quote(query, safe="")
        urls = []
        for m in mirrors:
            # kickasst.net has a music category filter; the rest only a plain search
            if "kickasst.net" in m:
                urls.append(f"{m}/usearch/{encoded}%20category:music/")
            else:
                urls.append(f"{m}/search?query={encoded}")
        return urls

    return SourceDefinition(
        id=SOURCE_ID,
        name="KickassTorrents",
        search_url=search_url,
        list_selector="table.data tr.odd, table.data tr.even",
        result_builder=build_row,
    )
