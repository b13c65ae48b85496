import pytest

from lead_search.config import DEFAULT_PAGE_DELAY, SearchConfig
from lead_search.errors import ConfigError


def test_from_env_reads_environment() -> None:
    config = SearchConfig.from_env(
        {
            "GOOGLE_PLACES_API_KEY": "secret",
            "LEAD_SEARCH_TIMEOUT": "12",
            "LEAD_SEARCH_PROGRESS_BACKEND": "memory",
            "LEAD_SEARCH_LANGUAGE": "ca",
        }
    )
    assert config.api_key == "secret"
    assert config.request_timeout == 12.0
    assert config.page_delay == DEFAULT_PAGE_DELAY
    assert config.progress_backend == "memory"
    assert config.language == "ca"


def test_from_env_overrides_win_and_none_is_ignored() -> None:
    config = SearchConfig.from_env(
        {"GOOGLE_PLACES_API_KEY": "env-key"}, api_key=None, progress_dir="/tmp/runs", max_pages=2
    )
    assert config.api_key == "env-key"
    assert config.progress_dir == "/tmp/runs"
    assert config.max_pages == 2


def test_from_env_rejects_bad_numbers() -> None:
    with pytest.raises(ConfigError):
        SearchConfig.from_env({"LEAD_SEARCH_PAGE_DELAY": "soon"})


def test_config_validates_on_construction() -> None:
    with pytest.raises(ConfigError):
        SearchConfig(request_timeout=0)
    with pytest.raises(ConfigError):
        SearchConfig(progress_backend="sqlite")
