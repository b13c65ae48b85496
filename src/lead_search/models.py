"""Protocols and lightweight model types."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

UNKNOWN = "unknown"

STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
STATUS_STOPPED = "stopped"
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_FAILED, STATUS_STOPPED})

DEFAULT_MAX_RESULTS = 20


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return tuple()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Iterable):
        return tuple()
    return tuple(str(item).strip() for item in value if str(item).strip())


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class SearchFilters:
    """User supplied search filters. Validate with ``validation.validate_filters``."""

    keywords: str | None = None
    sectors: tuple[str, ...] = ()
    provinces: tuple[str, ...] = ()
    regions: tuple[str, ...] = ()
    revenue_band: str | None = None
    employees_band: str | None = None
    max_results: int = DEFAULT_MAX_RESULTS

    @property
    def locations(self) -> tuple[str, ...]:
        return self.provinces + self.regions

    def has_dimension(self) -> bool:
        """Return True when at least one search dimension is set."""
        if (self.keywords or "").strip():
            return True
        return any(item.strip() for item in self.sectors + self.locations)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SearchFilters:
        """Build filters from a loosely typed payload such as a submitted form."""
        raw_max = data.get("max_results", data.get("maxResults", DEFAULT_MAX_RESULTS))
        try:
            max_results = int(raw_max)
        except (TypeError, ValueError):
            max_results = DEFAULT_MAX_RESULTS
        return cls(
            keywords=_optional_text(data.get("keywords")),
            sectors=_as_tuple(data.get("sectors")),
            provinces=_as_tuple(data.get("provinces")),
            regions=_as_tuple(data.get("regions")),
            revenue_band=_optional_text(data.get("revenue_band", data.get("revenue"))),
            employees_band=_optional_text(data.get("employees_band", data.get("employees"))),
            max_results=max_results,
        )


@dataclass(frozen=True)
class RawResult:
    """One place as returned by a search page."""

    place_id: str
    name: str
    formatted_address: str | None = None
    lat: float | None = None
    lng: float | None = None
    types: tuple[str, ...] = ()
    rating: float | None = None
    review_count: int | None = None
    business_status: str | None = None


@dataclass(frozen=True)
class DetailRecord:
    """Per-place detail lookup result."""

    place_id: str
    phone: str | None = None
    website: str | None = None
    formatted_address: str | None = None
    rating: float | None = None
    review_count: int | None = None


@dataclass(frozen=True)
class PageResult:
    """One page of search results plus the continuation token, if any."""

    results: tuple[RawResult, ...] = ()
    next_page_token: str | None = None


@dataclass(frozen=True)
class Lead:
    """Normalized company lead."""

    company_name: str
    address: str
    phone: str
    email: str
    website: str
    sector: str
    employees_estimate: str
    revenue_estimate: str
    quality_score: float
    source: str
    captured_at: str
    place_id: str = UNKNOWN
    rating: float | None = None
    review_count: int | None = None
    email_source: str = UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RunStats:
    """Aggregate statistics of a search run."""

    total_found: int = 0
    processed: int = 0
    avg_quality: float = 0.0
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class ProgressRecord:
    """Polled status of one search run; each write replaces the previous record."""

    run_id: str
    status: str
    progress: float = 0.0
    message: str = ""
    stats: RunStats = field(default_factory=RunStats)
    updated_at: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProgressRecord:
        stats = data.get("stats") or {}
        return cls(
            run_id=str(data["run_id"]),
            status=str(data["status"]),
            progress=float(data.get("progress", 0.0)),
            message=str(data.get("message", "")),
            stats=RunStats(
                total_found=int(stats.get("total_found", 0)),
                processed=int(stats.get("processed", 0)),
                avg_quality=float(stats.get("avg_quality", 0.0)),
                duration_seconds=float(stats.get("duration_seconds", 0.0)),
            ),
            updated_at=str(data.get("updated_at", "")),
        )


@dataclass(frozen=True)
class RunOutcome:
    """What the orchestrator hands back to its caller."""

    run_id: str
    status: str
    leads: tuple[Lead, ...]
    stats: RunStats


class PlacesProvider(Protocol):
    """Contract for a paginated place search provider."""

    def fetch_page(
        self, query: str, page_token: str | None, filters: SearchFilters
    ) -> PageResult:
        """Return one page of raw results."""

    def fetch_details(self, place_id: str) -> DetailRecord | None:
        """Return place details or None when unavailable."""


class ProgressStore(Protocol):
    """Keyed store of progress records, one per run id."""

    def get(self, run_id: str) -> ProgressRecord | None:
        """Return the current record or None for an unknown run."""

    def set(self, record: ProgressRecord) -> None:
        """Overwrite the record for ``record.run_id``."""

    def exists(self, run_id: str) -> bool:
        """Return True when a record exists for the run."""

    def request_stop(self, run_id: str) -> bool:
        """Ask a running search to stop; return False for unknown or finished runs."""

    def stop_requested(self, run_id: str) -> bool:
        """Return True once a stop was requested for the run."""


class Fetcher(Protocol):
    """Contract for HTML fetchers."""

    def fetch(self, url: str) -> str:
        """Return HTML content for a URL or an empty string."""
