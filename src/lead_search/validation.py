"""Validation and runtime guardrails."""

from __future__ import annotations

import random
import socket
import time
from urllib.parse import urlparse

import dns.resolver

from .errors import ConfigError, ValidationError
from .models import SearchFilters

MIN_MAX_RESULTS = 1
MAX_MAX_RESULTS = 1000


def pause(seconds: float) -> None:
    """Block the calling thread for a fixed delay."""
    if seconds > 0:
        time.sleep(seconds)


def polite_sleep(min_delay: float, max_delay: float) -> None:
    """Sleep within configured bounds."""
    time.sleep(random.uniform(min_delay, max_delay))


def is_supported_url(url: str) -> bool:
    """Allow only absolute HTTP(S) URLs with a hostname."""
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def normalize_website(value: str | None) -> str | None:
    """Return an absolute http(s) URL for a provider website value, or None."""
    if not value:
        return None
    candidate = value.strip()
    if candidate and "://" not in candidate:
        candidate = f"http://{candidate}"
    return candidate if is_supported_url(candidate) else None


def validate_filters(filters: SearchFilters) -> SearchFilters:
    """Raise ValidationError unless the filters describe a search."""
    if not filters.has_dimension():
        raise ValidationError(
            "Provide at least one filter: keywords, sectors, provinces or regions."
        )
    if not MIN_MAX_RESULTS <= filters.max_results <= MAX_MAX_RESULTS:
        raise ValidationError(
            f"max_results must be between {MIN_MAX_RESULTS} and {MAX_MAX_RESULTS}."
        )
    return filters


def validate_runtime_constraints(
    *,
    request_timeout: float,
    page_delay: float,
    min_request_interval: float,
    max_pages: int,
    min_delay: float,
    max_delay: float,
    progress_backend: str,
) -> None:
    """Validate runtime configuration and raise ConfigError on invalid values."""
    if request_timeout <= 0:
        raise ConfigError("--timeout must be > 0.")
    if page_delay < 0 or min_request_interval < 0:
        raise ConfigError("--page-delay and request interval must be >= 0.")
    if not 1 <= max_pages <= 3:
        raise ConfigError("max_pages must be between 1 and 3.")
    if min_delay < 0 or max_delay < 0:
        raise ConfigError("--min-delay and --max-delay must be >= 0.")
    if min_delay > max_delay:
        raise ConfigError("--min-delay cannot be greater than --max-delay.")
    if progress_backend not in {"memory", "file", "redis"}:
        raise ConfigError("progress backend must be one of: memory, file, redis.")


def mx_check(email: str) -> bool:
    """Return True when target domain has MX or A record."""
    try:
        domain = email.split("@", maxsplit=1)[1]
    except IndexError:
        return False
    try:
        answers = dns.resolver.resolve(domain, "MX", lifetime=8)
        return bool(answers)
    except (dns.resolver.NoAnswer, dns.resolver.NXDOMAIN, dns.resolver.NoNameservers):
        try:
            socket.gethostbyname(domain)
            return True
        except OSError:
            return False
    except dns.exception.DNSException:
        return False
