"""
Row Extraction
Turns listing pages into partial results and resolves magnets from detail pages
"""
from typing import Callable, Dict, List, Optional, Union
from urllib.parse import urljoin, urlparse
import logging
import time

from bs4 import BeautifulSoup

from ..models.magnet import find_infohash_in_url, is_magnet, magnet_from_infohash
from ..models.search_result import PartialResult
from .fetch import FetchError, FetchGateway

logger = logging.getLogger(__name__)

DETAIL_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                  "(KHTML, like Gecko) Chrome/125.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
}
RETRY_STATUSES = (403, 429, 503)
RETRY_PAUSE_SECONDS = 0.35

MagnetSelector = Union[str, Callable[[BeautifulSoup], Union[str, Dict, None]]]


def parse_markup(markup: str, response_type: str = "html") -> BeautifulSoup:
    if response_type == "html_fragment":
        # Bare <tr> fragments are dropped by the parser unless they sit in a table.
        markup = f"<table><tbody>{markup or ''}</tbody></table>"
    return BeautifulSoup(markup or "", "html.parser")


def site_root(url: str) -> str:
    parsed = urlparse(url or "")
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme}://{parsed.netloc}/"


def extract_rows(definition, markup: str, page_url: str) -> List[PartialResult]:
    """Apply a source's row selector and result builder to one listing page."""
    soup = parse_markup(markup, definition.response_type)
    results: List[PartialResult] = []
    for row in soup.select(definition.list_selector):
        try:
            fields = definition.result_builder(row, page_url)
        except Exception as e:
            logger.debug("[%s] Error parsing a row: %s", definition.id, e)
            continue
        if not fields:
            continue
        title = " ".join(str(fields.get("title") or "").split())
        if not title:
            continue

        detail_url = (fields.get("detail_url") or "").strip() or None
        magnet = (fields.get("magnet") or "").strip() or None
        if detail_url and is_magnet(detail_url):
            magnet = magnet or detail_url
            detail_url = None
        if detail_url:
            detail_url = urljoin(page_url, detail_url)

        results.append(PartialResult(
            title=title,
            source=definition.name,
            source_id=definition.id,
            detail_url=detail_url,
            magnet=magnet if is_magnet(magnet) else None,
            size=" ".join(str(fields.get("size") or "").split()),
            seeders=PartialResult.parse_count(fields.get("seeders")),
            leechers=PartialResult.parse_count(fields.get("leechers")),
        ))
    return results


def magnet_from_detail_url(detail_url: Optional[str], title: str = "") -> Optional[str]:
    """Build a magnet when the detail URL already names the infohash."""
    infohash = find_infohash_in_url(detail_url or "")
    if not infohash:
        return None
    return magnet_from_infohash(infohash, title)


def resolve_detail(
    gateway: FetchGateway,
    detail_url: str,
    selector: MagnetSelector,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> Optional[Dict]:
    """
    Fetch a detail page and apply the source's magnet selector.

    Returns ``{"magnet": ..., "seeders"?: int, "leechers"?: int}`` or None.
    One retry after a cookie preflight against the site root is made for
    statuses that usually mean a bot check.
    """
    if not detail_url or selector is None:
        return None

    root = site_root(detail_url)
    request_headers = dict(DETAIL_HEADERS)
    request_headers.update(headers or {})
    if root and "Referer" not in request_headers:
        request_headers["Referer"] = root

    try:
        response = gateway.fetch(detail_url, headers=request_headers, timeout=timeout)
        if not response.ok and response.status in RETRY_STATUSES:
            time.sleep(RETRY_PAUSE_SECONDS)
            retry_headers = dict(request_headers)
            retry_headers["Cache-Control"] = "no-cache"
            if root:
                try:
                    pre = gateway.fetch(root, headers=DETAIL_HEADERS, timeout=timeout)
                    if pre.cookies:
                        retry_headers["Cookie"] = pre.cookie_header
                except FetchError as e:
                    logger.debug("Preflight to %s failed: %s", root, e)
            response = gateway.fetch(detail_url, headers=retry_headers, timeout=timeout)
    except FetchError as e:
        logger.warning("Detail fetch failed for %s: %s", detail_url, e)
        return None

    if not response.ok:
        logger.warning("Failed to fetch %s, status: %s", detail_url, response.status)
        return None

    try:
        soup = BeautifulSoup(response.text or "", "html.parser")
        if callable(selector):
            found = selector(soup)
        else:
            node = soup.select_one(selector)
            found = node.get("href") if node is not None else None
    except Exception as e:
        logger.warning("Magnet selector failed for %s: %s", detail_url, e)
        return None

    if isinstance(found, dict):
        magnet = found.get("magnet")
        if not is_magnet(magnet):
            return None
        out = {"magnet": magnet.strip()}
        for key in ("seeders", "leechers"):
            if found.get(key) is not None:
                out[key] = PartialResult.parse_count(found.get(key))
        return out
    if is_magnet(found):
        return {"magnet": found.strip()}
    return None
