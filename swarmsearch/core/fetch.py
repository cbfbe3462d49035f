"""
Fetch Gateway
requests-backed page fetching with hard per-URL timeouts and mirror fallback
"""
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union
import logging
import threading

import requests

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                  "(KHTML, like Gecko) Chrome/125.0 Safari/537.36",
    "Accept-Language": "en-US,en;q=0.9",
}


class FetchError(Exception):
    pass


class FetchTimeout(FetchError):
    pass


@dataclass
class FetchResponse:
    """What the engine needs from an HTTP response"""
    url: str
    status: int
    text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    # "name=value" pairs from every Set-Cookie seen, redirects included
    cookies: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def cookie_header(self) -> str:
        return "; ".join(self.cookies)


class FetchGateway:
    """
    Network capability consumed by the search engine.

    Every call uses a throwaway requests.Session so cookies never leak
    between sources; session cookies travel explicitly in a Cookie header.
    """

    def __init__(self, max_workers: int = 16, default_timeout: float = 3.0):
        self.default_timeout = float(default_timeout)
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="swarmsearch-fetch")

    def fetch(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        method: str = "GET",
        data: Union[str, bytes, Dict, None] = None,
        timeout: Optional[float] = None,
    ) -> FetchResponse:
        """
        Fetch one URL; the timeout bounds the whole request, not just a socket read.

        The clock starts when a pool worker picks the request up, so time
        spent queued behind other fetches is not charged to this URL.
        """
        timeout = float(timeout or self.default_timeout)
        started = threading.Event()

        def run():
            started.set()
            return self._do_request(url, headers or {}, method, data, timeout)

        future = self._pool.submit(run)
        started.wait()
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            raise FetchTimeout(f"Timed out after {timeout:.1f}s: {url}") from None
        except requests.RequestException as e:
            raise FetchError(f"{url}: {e}") from e

    def try_fetch_any(
        self,
        urls: Iterable[str],
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> FetchResponse:
        """Return the first candidate URL that answers with a success status."""
        errors = []
        for url in urls:
            try:
                response = self.fetch(url, headers=headers, timeout=timeout)
            except FetchError as e:
                errors.append(str(e))
                continue
            if response.ok:
                return response
            errors.append(f"HTTP {response.status} for {url}")
        raise FetchError("; ".join(errors) or "No candidate URLs")

    def _do_request(self, url, headers, method, data, timeout) -> FetchResponse:
        merged = dict(DEFAULT_HEADERS)
        merged.update(headers)
        with requests.Session() as session:
            response = session.request(
                method,
                url,
                headers=merged,
                data=data,
                timeout=timeout,
                allow_redirects=True,
            )
            cookies = []
            for hop in list(response.history) + [response]:
                for cookie in hop.cookies:
                    pair = f"{cookie.name}={cookie.value}"
                    if pair not in cookies:
                        cookies.append(pair)
            return FetchResponse(
                url=response.url,
                status=response.status_code,
                text=response.text,
                headers=dict(response.headers),
                cookies=cookies,
            )

    def shutdown(self):
        self._pool.shutdown(wait=False)
