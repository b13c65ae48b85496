"""Places search client: paginated text search plus per-place details."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from requests import Session
from requests.exceptions import RequestException

from .errors import ConfigError, DetailFetchError, ProviderError
from .models import DetailRecord, PageResult, RawResult, SearchFilters
from .taxonomy import fold
from .validation import pause

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
DETAIL_FIELDS = (
    "place_id,formatted_phone_number,international_phone_number,website,"
    "formatted_address,rating,user_ratings_total"
)

STATUS_OK = "OK"
STATUS_ZERO_RESULTS = "ZERO_RESULTS"

PAGE_SIZE = 20
MAX_PAGES = 3

# lat, lng, radius in metres
CITY_COORDINATES: dict[str, tuple[float, float, int]] = {
    "madrid": (40.4168, -3.7038, 30_000),
    "barcelona": (41.3874, 2.1686, 25_000),
    "valencia": (39.4699, -0.3763, 20_000),
    "sevilla": (37.3891, -5.9845, 20_000),
    "zaragoza": (41.6488, -0.8891, 20_000),
    "malaga": (36.7213, -4.4214, 20_000),
    "murcia": (37.9922, -1.1307, 20_000),
    "palma": (39.5696, 2.6502, 15_000),
    "bilbao": (43.2630, -2.9350, 15_000),
    "alicante": (38.3452, -0.4810, 15_000),
    "cordoba": (37.8882, -4.7794, 15_000),
    "valladolid": (41.6523, -4.7245, 15_000),
    "vigo": (42.2406, -8.7207, 15_000),
    "gijon": (43.5322, -5.6611, 15_000),
    "a coruna": (43.3623, -8.4115, 15_000),
    "granada": (37.1773, -3.5986, 15_000),
    "vitoria": (42.8467, -2.6716, 15_000),
    "pamplona": (42.8125, -1.6458, 15_000),
    "santander": (43.4623, -3.8099, 15_000),
    "oviedo": (43.3619, -5.8494, 15_000),
    "las palmas": (28.1235, -15.4363, 15_000),
    "santa cruz de tenerife": (28.4636, -16.2518, 15_000),
    "toledo": (39.8628, -4.0273, 15_000),
    "salamanca": (40.9701, -5.6635, 15_000),
    "cadiz": (36.5271, -6.2886, 15_000),
    "tarragona": (41.1189, 1.2445, 15_000),
    "girona": (41.9794, 2.8214, 15_000),
    "san sebastian": (43.3183, -1.9812, 15_000),
}

SleepFn = Callable[[float], None]
ClockFn = Callable[[], float]


def resolve_location_bias(names: Iterable[str]) -> tuple[float, float, int] | None:
    """Return the coordinates of the first known city among ``names``."""
    for name in names:
        hit = CITY_COORDINATES.get(fold(name))
        if hit is not None:
            return hit
    return None


def _as_float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def parse_raw_result(item: dict[str, Any]) -> RawResult | None:
    """Convert one text-search result object; results without id or name are dropped."""
    place_id = item.get("place_id")
    name = item.get("name")
    if not isinstance(place_id, str) or not isinstance(name, str) or not name.strip():
        return None
    location = (item.get("geometry") or {}).get("location") or {}
    types = item.get("types") or []
    return RawResult(
        place_id=place_id,
        name=name.strip(),
        formatted_address=_as_text(item.get("formatted_address")),
        lat=_as_float(location.get("lat")),
        lng=_as_float(location.get("lng")),
        types=tuple(str(tag) for tag in types if isinstance(tag, str)),
        rating=_as_float(item.get("rating")),
        review_count=_as_int(item.get("user_ratings_total")),
        business_status=_as_text(item.get("business_status")),
    )


def parse_detail(place_id: str, item: dict[str, Any]) -> DetailRecord:
    """Convert a details result; fields of an unexpected type are treated as missing."""
    phone = _as_text(item.get("formatted_phone_number")) or _as_text(
        item.get("international_phone_number")
    )
    return DetailRecord(
        place_id=_as_text(item.get("place_id")) or place_id,
        phone=phone,
        website=_as_text(item.get("website")),
        formatted_address=_as_text(item.get("formatted_address")),
        rating=_as_float(item.get("rating")),
        review_count=_as_int(item.get("user_ratings_total")),
    )


class PlacesClient:
    """Google Places style client. One instance per run; it counts pages per query."""

    def __init__(
        self,
        *,
        session: Session,
        api_key: str | None,
        timeout: float,
        logger: logging.Logger,
        language: str = "es",
        region: str = "es",
        page_delay: float = 2.0,
        min_request_interval: float = 0.0,
        max_pages: int = MAX_PAGES,
        sleep_fn: SleepFn = pause,
        clock: ClockFn = time.monotonic,
    ) -> None:
        if not api_key:
            raise ConfigError("A places API key is required. Set GOOGLE_PLACES_API_KEY.")
        self._session = session
        self._api_key = api_key
        self._timeout = timeout
        self._logger = logger
        self._language = language
        self._region = region
        self._page_delay = page_delay
        self._min_request_interval = min_request_interval
        self._max_pages = min(max_pages, MAX_PAGES)
        self._sleep_fn = sleep_fn
        self._clock = clock
        self._next_request_at = 0.0
        self._pages_fetched = 0

    def _throttle(self) -> None:
        wait = self._next_request_at - self._clock()
        if wait > 0:
            self._sleep_fn(wait)
        self._next_request_at = self._clock() + self._min_request_interval

    def _get_json(
        self, url: str, params: dict[str, str], error_cls: type[Exception]
    ) -> dict[str, Any]:
        self._throttle()
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
            response.raise_for_status()
            payload = response.json()
        except (RequestException, ValueError) as exc:
            raise error_cls(f"Request to {url} failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise error_cls(f"Unexpected payload from {url}")
        return payload

    def fetch_page(
        self, query: str, page_token: str | None, filters: SearchFilters
    ) -> PageResult:
        if page_token is None:
            self._pages_fetched = 0
            params = {
                "query": query,
                "key": self._api_key,
                "language": self._language,
                "region": self._region,
            }
            bias = resolve_location_bias(filters.locations)
            if bias is not None:
                lat, lng, radius = bias
                params["location"] = f"{lat},{lng}"
                params["radius"] = str(radius)
        else:
            if self._pages_fetched >= self._max_pages:
                self._logger.warning("Page ceiling of %d reached; ignoring token.", self._max_pages)
                return PageResult()
            # continuation tokens only become valid after a short delay
            self._sleep_fn(self._page_delay)
            params = {"pagetoken": page_token, "key": self._api_key}

        payload = self._get_json(TEXT_SEARCH_URL, params, ProviderError)
        self._pages_fetched += 1
        status = str(payload.get("status", ""))
        if status == STATUS_ZERO_RESULTS:
            return PageResult()
        if status != STATUS_OK:
            detail = payload.get("error_message") or "no error message"
            raise ProviderError(f"Places search returned {status or 'no status'}: {detail}")

        results: list[RawResult] = []
        for item in (payload.get("results") or [])[:PAGE_SIZE]:
            if isinstance(item, dict):
                parsed = parse_raw_result(item)
                if parsed is not None:
                    results.append(parsed)
        token = payload.get("next_page_token")
        return PageResult(results=tuple(results), next_page_token=token or None)

    def fetch_details(self, place_id: str) -> DetailRecord | None:
        params = {
            "place_id": place_id,
            "fields": DETAIL_FIELDS,
            "key": self._api_key,
            "language": self._language,
        }
        try:
            payload = self._get_json(DETAILS_URL, params, DetailFetchError)
            status = payload.get("status")
            if status != STATUS_OK:
                raise DetailFetchError(f"details status {status}")
        except DetailFetchError as exc:
            self._logger.warning("Place details unavailable for %s: %s", place_id, exc)
            return None
        result = payload.get("result")
        if not isinstance(result, dict):
            return None
        return parse_detail(place_id, result)
