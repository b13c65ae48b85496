import logging
from typing import Any

import pytest
import requests

from lead_search.errors import ConfigError, ProviderError
from lead_search.models import SearchFilters
from lead_search.places import (
    DETAILS_URL,
    TEXT_SEARCH_URL,
    PlacesClient,
    parse_raw_result,
    resolve_location_bias,
)


class FakeResponse:
    def __init__(self, *, status_code: int = 200, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.RequestException(f"http error {self.status_code}")

    def json(self) -> Any:
        return self._payload


class FakeSession:
    def __init__(self, responses: list[FakeResponse | Exception]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, dict[str, str]]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, dict(kwargs.get("params") or {})))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _place(index: int, **extra: Any) -> dict[str, Any]:
    item = {
        "place_id": f"p{index}",
        "name": f"Clinica {index}",
        "formatted_address": f"Calle Mayor {index}, Madrid",
        "geometry": {"location": {"lat": 40.0, "lng": -3.0}},
        "types": ["doctor", "health"],
        "rating": 4.5,
        "user_ratings_total": 12,
    }
    item.update(extra)
    return item


def _client(session: FakeSession, sleeps: list[float] | None = None, **kwargs: Any) -> PlacesClient:
    recorded = sleeps if sleeps is not None else []
    return PlacesClient(
        session=session,  # type: ignore[arg-type]
        api_key="key",
        timeout=5.0,
        logger=logging.getLogger("test"),
        page_delay=2.0,
        sleep_fn=recorded.append,
        clock=lambda: 0.0,
        **kwargs,
    )


def test_first_page_sends_query_and_location_bias() -> None:
    session = FakeSession(
        [FakeResponse(payload={"status": "OK", "results": [_place(1)], "next_page_token": "t1"})]
    )
    page = _client(session).fetch_page("clínica", None, SearchFilters(provinces=("Málaga",)))

    assert [raw.place_id for raw in page.results] == ["p1"]
    assert page.next_page_token == "t1"
    url, params = session.calls[0]
    assert url == TEXT_SEARCH_URL
    assert params["query"] == "clínica"
    assert params["location"] == "36.7213,-4.4214"
    assert params["radius"] == "20000"


def test_unknown_locations_apply_no_bias() -> None:
    session = FakeSession([FakeResponse(payload={"status": "OK", "results": []})])
    _client(session).fetch_page("q", None, SearchFilters(regions=("Atlantis",)))
    assert "location" not in session.calls[0][1]
    assert resolve_location_bias(["Atlantis", "A Coruña"]) == (43.3623, -8.4115, 15_000)


def test_continuation_pauses_before_request() -> None:
    sleeps: list[float] = []
    session = FakeSession(
        [
            FakeResponse(payload={"status": "OK", "results": [_place(1)], "next_page_token": "t1"}),
            FakeResponse(payload={"status": "OK", "results": [_place(2)]}),
        ]
    )
    client = _client(session, sleeps)
    filters = SearchFilters(keywords="q")
    client.fetch_page("q", None, filters)
    page = client.fetch_page("q", "t1", filters)

    assert sleeps == [2.0]
    assert session.calls[1][1] == {"pagetoken": "t1", "key": "key"}
    assert page.next_page_token is None


def test_page_ceiling_ignores_fourth_token() -> None:
    pages = [
        FakeResponse(payload={"status": "OK", "results": [_place(i)], "next_page_token": f"t{i}"})
        for i in range(3)
    ]
    session = FakeSession(pages)
    client = _client(session)
    filters = SearchFilters(keywords="q")
    token = None
    for _ in range(3):
        token = client.fetch_page("q", token, filters).next_page_token
    assert client.fetch_page("q", token, filters).results == ()
    assert len(session.calls) == 3


def test_zero_results_is_an_empty_page() -> None:
    session = FakeSession([FakeResponse(payload={"status": "ZERO_RESULTS", "results": []})])
    page = _client(session).fetch_page("q", None, SearchFilters(keywords="q"))
    assert page.results == ()
    assert page.next_page_token is None


def test_fatal_status_raises_provider_error() -> None:
    session = FakeSession(
        [FakeResponse(payload={"status": "REQUEST_DENIED", "error_message": "bad key"})]
    )
    with pytest.raises(ProviderError, match="REQUEST_DENIED"):
        _client(session).fetch_page("q", None, SearchFilters(keywords="q"))


def test_network_failure_raises_provider_error() -> None:
    session = FakeSession([requests.ConnectionError("down")])
    with pytest.raises(ProviderError):
        _client(session).fetch_page("q", None, SearchFilters(keywords="q"))


def test_fetch_details_parses_result() -> None:
    session = FakeSession(
        [
            FakeResponse(
                payload={
                    "status": "OK",
                    "result": {
                        "formatted_phone_number": "912 345 678",
                        "website": "https://clinica.es/",
                        "user_ratings_total": 80,
                    },
                }
            )
        ]
    )
    detail = _client(session).fetch_details("p1")
    assert detail is not None
    assert detail.place_id == "p1"
    assert detail.phone == "912 345 678"
    assert detail.website == "https://clinica.es/"
    assert detail.review_count == 80
    assert session.calls[0][0] == DETAILS_URL


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=500),
        FakeResponse(payload={"status": "NOT_FOUND"}),
        requests.Timeout("slow"),
    ],
)
def test_fetch_details_is_best_effort(response: Any) -> None:
    assert _client(FakeSession([response])).fetch_details("p1") is None


def test_rate_limit_waits_between_requests() -> None:
    sleeps: list[float] = []
    session = FakeSession([FakeResponse(payload={"status": "NOT_FOUND"})] * 2)
    client = _client(session, sleeps, min_request_interval=0.5)
    client.fetch_details("a")
    client.fetch_details("b")
    assert sleeps == [0.5]


def test_missing_api_key_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        PlacesClient(
            session=FakeSession([]),  # type: ignore[arg-type]
            api_key=None,
            timeout=5.0,
            logger=logging.getLogger("test"),
        )


def test_parse_raw_result_drops_incomplete_items() -> None:
    assert parse_raw_result({"name": "No id"}) is None
    raw = parse_raw_result(_place(3, rating="bad"))
    assert raw is not None
    assert raw.rating is None
    assert raw.types == ("doctor", "health")


def test_null_results_is_an_empty_page() -> None:
    session = FakeSession([FakeResponse(payload={"status": "OK", "results": None})])
    page = _client(session).fetch_page("q", None, SearchFilters(keywords="q"))
    assert page.results == ()


def test_fetch_details_ignores_fields_of_the_wrong_type() -> None:
    session = FakeSession(
        [
            FakeResponse(
                payload={
                    "status": "OK",
                    "result": {
                        "formatted_phone_number": 912345678,
                        "international_phone_number": "+34 912 34 56 78",
                        "website": ["https://clinica.es"],
                        "formatted_address": {"street": "Mayor"},
                    },
                }
            )
        ]
    )
    detail = _client(session).fetch_details("p1")
    assert detail is not None
    assert detail.phone == "+34 912 34 56 78"
    assert detail.website is None
    assert detail.formatted_address is None
