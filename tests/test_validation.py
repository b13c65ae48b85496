import dns.resolver
import pytest

from lead_search.errors import ConfigError, ValidationError
from lead_search.models import SearchFilters
from lead_search.validation import (
    is_supported_url,
    mx_check,
    normalize_website,
    validate_filters,
    validate_runtime_constraints,
)


def _constraints(**overrides: object) -> dict[str, object]:
    values: dict[str, object] = {
        "request_timeout": 10.0,
        "page_delay": 2.0,
        "min_request_interval": 0.0,
        "max_pages": 3,
        "min_delay": 0.5,
        "max_delay": 1.0,
        "progress_backend": "file",
    }
    values.update(overrides)
    return values


def test_validate_filters_requires_a_dimension() -> None:
    with pytest.raises(ValidationError):
        validate_filters(SearchFilters())
    with pytest.raises(ValidationError):
        validate_filters(SearchFilters(keywords="   ", revenue_band="2M-10M"))
    filters = SearchFilters(regions=("Galicia",))
    assert validate_filters(filters) is filters


@pytest.mark.parametrize("max_results", [0, -5, 1001])
def test_validate_filters_bounds_max_results(max_results: int) -> None:
    with pytest.raises(ValidationError):
        validate_filters(SearchFilters(keywords="x", max_results=max_results))


def test_validate_runtime_constraints_accepts_defaults() -> None:
    validate_runtime_constraints(**_constraints())  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "overrides",
    [
        {"request_timeout": 0},
        {"page_delay": -1},
        {"max_pages": 4},
        {"min_delay": 2.0, "max_delay": 1.0},
        {"progress_backend": "sqlite"},
    ],
)
def test_validate_runtime_constraints_rejects_invalid(overrides: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        validate_runtime_constraints(**_constraints(**overrides))  # type: ignore[arg-type]


def test_url_helpers() -> None:
    assert is_supported_url("https://example.com/a") is True
    assert is_supported_url("ftp://example.com/file") is False
    assert normalize_website("clinicasol.es") == "http://clinicasol.es"
    assert normalize_website(" https://a.es ") == "https://a.es"
    assert normalize_website("") is None
    assert normalize_website(None) is None


def test_mx_check_fallback_to_a_record(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_resolve(*_args: object, **_kwargs: object) -> object:
        raise dns.resolver.NoAnswer()

    def fake_gethostbyname(_domain: str) -> str:
        return "127.0.0.1"

    monkeypatch.setattr("lead_search.validation.dns.resolver.resolve", fake_resolve)
    monkeypatch.setattr("lead_search.validation.socket.gethostbyname", fake_gethostbyname)

    assert mx_check("info@example.com") is True


def test_mx_check_invalid_email_and_dns_exception(monkeypatch: pytest.MonkeyPatch) -> None:
    assert mx_check("invalid-email") is False

    def fake_resolve(*_args: object, **_kwargs: object) -> object:
        raise dns.exception.Timeout()

    monkeypatch.setattr("lead_search.validation.dns.resolver.resolve", fake_resolve)
    assert mx_check("info@example.com") is False
