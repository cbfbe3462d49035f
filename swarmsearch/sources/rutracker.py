"""
RuTracker Search Source
Credentialed tracker: searches need the session cookies from a form login.
"""
from urllib.parse import quote

from ..core.session_manager import LoginError, cookie_handshake_login
from ..models.search_result import PartialResult
from .base import SourceDefinition, attr_of, resolve_mirrors, text_of

SOURCE_ID = "rutracker"

MIRRORS = [
    "https://rutracker.org",
]

RESULTS_PER_PAGE = 50
# Value of the submit button; the login form is posted in cp1251.
LOGIN_BUTTON = "Вход"


def build_row(row, page_url: str, base: str = MIRRORS[0]):
    topic = row.select_one("a.torTopic")
    href = attr_of(topic, "href")
    raw_size = attr_of(row.select_one("td.tor-size"), "data-ts_text")
    size = PartialResult.format_size(int(raw_size)) if raw_size.isdigit() else raw_size
    return {
        "title": text_of(topic),
        "detail_url": f"{base}/forum/{href}" if href else None,
        "size": size,
        "seeders": text_of(row.select_one("td.tor-seed b")),
        "leechers": text_of(row.select_one("td.tor-leech")),
    }


def session_headers(data: dict):
    return {"Cookie": (data or {}).get("cookies") or ""}


def definition(settings=None) -> SourceDefinition:
    mirrors = resolve_mirrors(settings, SOURCE_ID, MIRRORS)
    base = mirrors[0]
    max_attempts = 3
    if settings is not None:
        max_attempts = int(settings.get("max_login_attempts", 3) or 3)

    def search_url(query, page, data):
        encoded = quote(query, safe="")
        start = max(0, (page - 1) * RESULTS_PER_PAGE)
        return [f"{m}/forum/tracker.php?nm={encoded}&start={start}" for m in mirrors]

    def login(gateway, data):
        username = password = ""
        if settings is not None:
            username = (settings.get("rutracker_username", "") or "").strip()
            password = (settings.get("rutracker_password", "") or "").strip()
        if not username or not password:
            raise LoginError("RuTracker username/password are not configured.")
        return cookie_handshake_login(
            gateway,
            f"{base}/forum/login.php",
            {
                "login_username": username,
                "login_password": password,
                "login": LOGIN_BUTTON,
            },
            form_encoding="cp1251",
        )

    return SourceDefinition(
        id=SOURCE_ID,
        name="Rutracker",
        enabled=False,
        search_url=search_url,
        list_selector="tr.hl-tr",
        result_builder=lambda row, page_url: build_row(row, page_url, base),
        magnet_selector="a.magnet-link",
        fetch_headers=session_headers,
        data={"cookies": None, "attempts": 0},
        login=login,
        max_login_attempts=max_attempts,
    )
