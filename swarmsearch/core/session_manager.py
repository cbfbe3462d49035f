"""
Session Manager
Lazy, attempt-limited login state machine for sources that need cookies
"""
from enum import Enum
from typing import Callable, Dict, Optional
from urllib.parse import urlencode, urlparse
import logging
import threading

from .event_bus import EventBus, Events
from .fetch import FetchError, FetchGateway

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                  "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
}


class LoginError(Exception):
    pass


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


def cookie_handshake_login(
    gateway: FetchGateway,
    login_url: str,
    form: Dict[str, str],
    submit_url: Optional[str] = None,
    form_encoding: str = "utf-8",
    timeout: Optional[float] = None,
    min_cookies: int = 2,
) -> str:
    """
    Two-step cookie login.

    GET the login page for an initial session cookie, then POST the
    credentials with it. Returns the merged cookie header; raises LoginError
    when either step does not hand out the expected cookies.
    """
    try:
        pre = gateway.fetch(login_url, headers=BROWSER_HEADERS, timeout=timeout)
    except FetchError as e:
        raise LoginError(f"Failed to GET login page: {e}") from e
    if not pre.ok:
        raise LoginError(f"Failed to GET login page, status={pre.status}")
    if not pre.cookies:
        raise LoginError("Did not receive initial session cookie. Anti-bot may be active.")

    parsed = urlparse(login_url)
    headers = dict(BROWSER_HEADERS)
    headers.update({
        "Content-Type": "application/x-www-form-urlencoded",
        "Cookie": pre.cookie_header,
        "Referer": login_url,
        "Origin": f"{parsed.scheme}://{parsed.netloc}",
    })
    body = urlencode(form, encoding=form_encoding)
    try:
        post = gateway.fetch(submit_url or login_url, headers=headers, method="POST", data=body, timeout=timeout)
    except FetchError as e:
        raise LoginError(f"Login POST failed: {e}") from e
    if not post.ok:
        raise LoginError(f"Login POST failed, status={post.status}")
    if len(post.cookies) < min_cookies:
        raise LoginError(
            "Login failed. Invalid credentials or anti-bot. "
            f"Response preview: {(post.text or '')[:200]}"
        )
    return post.cookie_header


class SessionManager:
    """
    Unauthenticated -> Authenticating -> Authenticated, with at most
    ``max_attempts`` login attempts for the life of the process.

    The lock makes login single-flight: concurrent searches wait for the
    attempt already running and reuse its outcome.
    """

    def __init__(
        self,
        source_id: str,
        login: Callable[[FetchGateway, dict], str],
        data: Optional[dict] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        event_bus: Optional[EventBus] = None,
    ):
        self.source_id = source_id
        self._login = login
        self.data = data if data is not None else {}
        self.data.setdefault("cookies", None)
        self.data.setdefault("attempts", 0)
        self.data["max_attempts"] = int(max_attempts)
        self.event_bus = event_bus
        self.state = SessionState.AUTHENTICATED if self.data.get("cookies") else SessionState.UNAUTHENTICATED
        self.last_error = ""
        self._lock = threading.Lock()

    @property
    def attempts(self) -> int:
        return int(self.data.get("attempts", 0))

    @property
    def max_attempts(self) -> int:
        return int(self.data.get("max_attempts", DEFAULT_MAX_ATTEMPTS))

    @property
    def exhausted(self) -> bool:
        return self.state != SessionState.AUTHENTICATED and self.attempts >= self.max_attempts

    def ensure_session(self, gateway: FetchGateway) -> Optional[str]:
        """Return a usable cookie header, logging in first if needed; None when degraded."""
        with self._lock:
            cookies = self.data.get("cookies")
            if self.state == SessionState.AUTHENTICATED and cookies:
                return cookies
            if self.attempts >= self.max_attempts:
                logger.debug("[%s] Max login attempts reached; continuing unauthenticated.", self.source_id)
                return None

            self.state = SessionState.AUTHENTICATING
            self.data["attempts"] = self.attempts + 1
            logger.info("[%s] Performing login, attempt %d/%d", self.source_id, self.attempts, self.max_attempts)
            try:
                cookies = self._login(gateway, self.data)
                if not cookies:
                    raise LoginError("Login returned no session cookies.")
            except Exception as e:
                self.data["cookies"] = None
                self.state = SessionState.UNAUTHENTICATED
                self.last_error = str(e)
                logger.warning("[%s] Login error: %s", self.source_id, e)
                self._emit(Events.SOURCE_LOGIN_FAILED, {"source": self.source_id, "error": str(e),
                                                        "attempts": self.attempts})
                return None

            self.data["cookies"] = cookies
            self.state = SessionState.AUTHENTICATED
            self.last_error = ""
            logger.info("[%s] Successfully logged in.", self.source_id)
            self._emit(Events.SOURCE_LOGIN_SUCCEEDED, {"source": self.source_id, "attempts": self.attempts})
            return cookies

    def status(self) -> Dict:
        return {
            "state": self.state.value,
            "attempts": self.attempts,
            "maxAttempts": self.max_attempts,
            "lastError": self.last_error,
        }

    def _emit(self, event_type: str, payload: Dict):
        if self.event_bus is not None:
            self.event_bus.emit(event_type, payload)
