"""HTTP session factory and website fetcher used for lead enrichment."""

from __future__ import annotations

import logging
import urllib.robotparser
from collections.abc import Callable
from threading import Lock
from urllib.parse import urlparse

from requests import Session
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from .validation import is_supported_url, polite_sleep

DEFAULT_MAX_PAGE_BYTES = 512_000
HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class RobotsPolicy:
    """Per-origin robots.txt cache."""

    def __init__(self, user_agent: str) -> None:
        self._user_agent = user_agent
        self._parsers: dict[str, urllib.robotparser.RobotFileParser | None] = {}
        self._lock = Lock()

    def _parser_for(self, origin: str) -> urllib.robotparser.RobotFileParser | None:
        with self._lock:
            if origin not in self._parsers:
                parser: urllib.robotparser.RobotFileParser | None
                parser = urllib.robotparser.RobotFileParser()
                parser.set_url(f"{origin}/robots.txt")
                try:
                    parser.read()
                except OSError:
                    parser = None
                self._parsers[origin] = parser
            return self._parsers[origin]

    def allowed(self, url: str) -> bool:
        """Return True if robots policy allows this URL; unreadable robots allow all."""
        if not is_supported_url(url):
            return False
        parsed = urlparse(url)
        parser = self._parser_for(f"{parsed.scheme}://{parsed.netloc}")
        if parser is None:
            return True
        return parser.can_fetch(self._user_agent, url)


def make_retry_session(user_agent: str, *, language: str | None = None) -> Session:
    """Create requests session with retry/backoff defaults."""
    session = Session()
    session.headers.update({"User-Agent": user_agent})
    if language:
        session.headers["Accept-Language"] = f"{language},en;q=0.6"
    retry = Retry(
        total=3,
        backoff_factor=0.6,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=frozenset({"GET"}),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class RequestsFetcher:
    """Fetch company websites as HTML, honouring robots.txt."""

    def __init__(
        self,
        *,
        session: Session,
        robots_policy: RobotsPolicy,
        timeout: float,
        logger: logging.Logger,
        max_bytes: int = DEFAULT_MAX_PAGE_BYTES,
    ) -> None:
        self._session = session
        self._robots_policy = robots_policy
        self._timeout = timeout
        self._logger = logger
        self._max_bytes = max_bytes

    def fetch(self, url: str) -> str:
        if not is_supported_url(url):
            self._logger.debug("Skipping unsupported URL: %s", url)
            return ""
        if not self._robots_policy.allowed(url):
            self._logger.info("Skipping due to robots.txt: %s", url)
            return ""
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except RequestException as exc:
            self._logger.debug("Website fetch failed for %s: %s", url, exc)
            return ""
        content_type = str(response.headers.get("Content-Type", "text/html")).lower()
        if not content_type.startswith(HTML_CONTENT_TYPES):
            self._logger.debug("Skipping non-HTML content at %s (%s)", url, content_type)
            return ""
        return str(response.text)[: self._max_bytes]


class PoliteFetcher:
    """Wraps a fetcher with a randomized pause before every request."""

    def __init__(
        self,
        fetcher: RequestsFetcher,
        min_delay: float,
        max_delay: float,
        sleep_fn: Callable[[float, float], None] = polite_sleep,
    ) -> None:
        self._fetcher = fetcher
        self._min_delay = min_delay
        self._max_delay = max_delay
        self._sleep_fn = sleep_fn

    def fetch(self, url: str) -> str:
        self._sleep_fn(self._min_delay, self._max_delay)
        return self._fetcher.fetch(url)
