"""Runtime configuration model."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass

from .errors import ConfigError
from .validation import validate_runtime_constraints

DEFAULT_USER_AGENT = "LeadSearch/1.0 (+https://example.invalid/lead-search)"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_PAGE_DELAY = 2.0
DEFAULT_MIN_REQUEST_INTERVAL = 0.2
DEFAULT_MAX_PAGES = 3
DEFAULT_MIN_DELAY = 0.5
DEFAULT_MAX_DELAY = 1.5
DEFAULT_LANGUAGE = "es"
DEFAULT_REGION = "es"
DEFAULT_FALLBACK_TERM = "business"
DEFAULT_PROGRESS_BACKEND = "file"
DEFAULT_PROGRESS_TTL = 86400
DEFAULT_PROGRESS_DIR = os.path.join(tempfile.gettempdir(), "lead_search_progress")


@dataclass(frozen=True)
class SearchConfig:
    """Validated configuration used by the search engine."""

    api_key: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    page_delay: float = DEFAULT_PAGE_DELAY
    min_request_interval: float = DEFAULT_MIN_REQUEST_INTERVAL
    max_pages: int = DEFAULT_MAX_PAGES
    language: str = DEFAULT_LANGUAGE
    region: str = DEFAULT_REGION
    fallback_term: str = DEFAULT_FALLBACK_TERM
    enrich_websites: bool = False
    check_mx: bool = False
    min_delay: float = DEFAULT_MIN_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    progress_backend: str = DEFAULT_PROGRESS_BACKEND
    progress_dir: str = DEFAULT_PROGRESS_DIR
    progress_ttl: int = DEFAULT_PROGRESS_TTL
    redis_url: str | None = None

    def __post_init__(self) -> None:
        validate_runtime_constraints(
            request_timeout=self.request_timeout,
            page_delay=self.page_delay,
            min_request_interval=self.min_request_interval,
            max_pages=self.max_pages,
            min_delay=self.min_delay,
            max_delay=self.max_delay,
            progress_backend=self.progress_backend,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> SearchConfig:
        """Build configuration from environment variables; explicit overrides win."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {
            "api_key": env.get("GOOGLE_PLACES_API_KEY") or None,
            "language": env.get("LEAD_SEARCH_LANGUAGE", DEFAULT_LANGUAGE),
            "progress_backend": env.get("LEAD_SEARCH_PROGRESS_BACKEND", DEFAULT_PROGRESS_BACKEND),
            "progress_dir": env.get("LEAD_SEARCH_PROGRESS_DIR", DEFAULT_PROGRESS_DIR),
            "redis_url": env.get("REDIS_URL") or None,
        }
        try:
            values["request_timeout"] = float(
                env.get("LEAD_SEARCH_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)
            )
            values["page_delay"] = float(env.get("LEAD_SEARCH_PAGE_DELAY", DEFAULT_PAGE_DELAY))
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric environment value: {exc}") from exc
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)  # type: ignore[arg-type]
