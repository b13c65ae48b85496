from lead_search.models import DEFAULT_MAX_RESULTS, ProgressRecord, RunStats, SearchFilters


def test_from_mapping_accepts_form_payload() -> None:
    filters = SearchFilters.from_mapping(
        {
            "keywords": "  proveedores ",
            "sectors": ["salud", " "],
            "provinces": "Madrid",
            "maxResults": "50",
            "revenue": "2M-10M",
            "employees": "",
        }
    )
    assert filters.keywords == "proveedores"
    assert filters.sectors == ("salud",)
    assert filters.provinces == ("Madrid",)
    assert filters.regions == ()
    assert filters.max_results == 50
    assert filters.revenue_band == "2M-10M"
    assert filters.employees_band is None


def test_from_mapping_defaults_bad_max_results() -> None:
    filters = SearchFilters.from_mapping({"keywords": "x", "max_results": "many"})
    assert filters.max_results == DEFAULT_MAX_RESULTS


def test_has_dimension_ignores_blank_values() -> None:
    assert SearchFilters(keywords="  ", sectors=(" ",)).has_dimension() is False
    assert SearchFilters(regions=("Galicia",)).has_dimension() is True


def test_progress_record_dict_round_trip() -> None:
    record = ProgressRecord(
        run_id="abc",
        status="completed",
        progress=100.0,
        message="done",
        stats=RunStats(total_found=12, processed=10, avg_quality=0.84, duration_seconds=3.5),
        updated_at="2026-01-01T00:00:00Z",
    )
    assert ProgressRecord.from_dict(record.to_dict()) == record
    assert record.is_terminal is True
