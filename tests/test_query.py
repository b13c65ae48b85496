import pytest

from lead_search.models import SearchFilters
from lead_search.query import build_query
from lead_search.taxonomy import SectorTaxonomy


def test_keywords_sectors_and_locations_are_combined() -> None:
    filters = SearchFilters(
        keywords="proveedores",
        sectors=("salud", "finanzas"),
        provinces=("Madrid",),
        regions=("Castilla y León",),
    )
    assert build_query(filters) == (
        "proveedores (clínica OR asesoría financiera) in (Madrid OR Castilla y León)"
    )


def test_single_sector_and_location_are_not_grouped() -> None:
    filters = SearchFilters(sectors=("Salud",), provinces=("Sevilla",))
    assert build_query(filters) == "clínica in Sevilla"


def test_location_only_filters_fall_back_to_generic_term() -> None:
    filters = SearchFilters(provinces=("Madrid", "madrid"), regions=("Madrid",))
    assert build_query(filters) == "business in Madrid"
    assert build_query(filters, fallback_term="empresa") == "empresa in Madrid"
    assert build_query(filters, fallback_term="  ") == "business in Madrid"


def test_unknown_sector_is_used_verbatim() -> None:
    filters = SearchFilters(sectors=("apicultura",))
    assert build_query(filters, SectorTaxonomy()) == "apicultura"


@pytest.mark.parametrize(
    "filters",
    [
        SearchFilters(keywords="x"),
        SearchFilters(sectors=("otro",)),
        SearchFilters(provinces=("Nowhere",)),
        SearchFilters(regions=("Galicia",)),
        SearchFilters(keywords="   ", regions=("Galicia",)),
    ],
)
def test_query_is_never_empty(filters: SearchFilters) -> None:
    assert build_query(filters).strip()
