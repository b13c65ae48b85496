"""Provider query construction from search filters."""

from __future__ import annotations

from collections.abc import Iterable

from .config import DEFAULT_FALLBACK_TERM
from .models import SearchFilters
from .taxonomy import SectorTaxonomy, fold


def _dedupe(terms: Iterable[str]) -> list[str]:
    output: list[str] = []
    seen: set[str] = set()
    for term in terms:
        value = term.strip()
        key = fold(value)
        if not value or key in seen:
            continue
        seen.add(key)
        output.append(value)
    return output


def _or_group(terms: list[str]) -> str:
    if len(terms) == 1:
        return terms[0]
    return "(" + " OR ".join(terms) + ")"


def build_query(
    filters: SearchFilters,
    taxonomy: SectorTaxonomy | None = None,
    *,
    fallback_term: str = DEFAULT_FALLBACK_TERM,
) -> str:
    """Build the text query sent to the places provider.

    Keywords come first, then the sectors' search terms OR-joined, then the
    provinces and regions OR-joined. Without keywords or sectors the generic
    ``fallback_term`` stands in so the provider never gets an empty query.
    """
    taxonomy = taxonomy or SectorTaxonomy()
    parts: list[str] = []

    keywords = (filters.keywords or "").strip()
    if keywords:
        parts.append(keywords)

    sector_terms = _dedupe(taxonomy.search_term_for(label) for label in filters.sectors)
    if sector_terms:
        parts.append(_or_group(sector_terms))

    if not parts:
        parts.append(fallback_term.strip() or DEFAULT_FALLBACK_TERM)

    locations = _dedupe(filters.locations)
    if locations:
        parts.append("in " + _or_group(locations))

    return " ".join(parts)
