"""Turn raw place results into normalized leads."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from .extraction import (
    clean_company_name,
    domain_from_url,
    extract_address,
    extract_phone,
    find_contact_link,
    html_to_text,
    pick_email,
)
from .models import UNKNOWN, DetailRecord, Fetcher, Lead, RawResult, SearchFilters
from .scoring import EMPLOYEE_BANDS, REVENUE_BANDS, compute_quality, estimate_band
from .taxonomy import SectorTaxonomy
from .validation import normalize_website

DEFAULT_SOURCE = "Google Places"
EMAIL_FROM_WEBSITE = "website"
EMAIL_DOMAIN_GUESS = "domain_guess"

ClockFn = Callable[[], str]
MxCheckFn = Callable[[str], bool]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _first(*values: str | None) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return UNKNOWN


class LeadExtractor:
    """Builds Lead values; rejects places that miss every requested sector."""

    def __init__(
        self,
        *,
        taxonomy: SectorTaxonomy | None = None,
        logger: logging.Logger | None = None,
        fetcher: Fetcher | None = None,
        mx_checker: MxCheckFn | None = None,
        clock: ClockFn = utc_timestamp,
        source: str = DEFAULT_SOURCE,
        employee_bands: Sequence[tuple[int, str]] = EMPLOYEE_BANDS,
        revenue_bands: Sequence[tuple[int, str]] = REVENUE_BANDS,
    ) -> None:
        self._taxonomy = taxonomy or SectorTaxonomy()
        self._logger = logger or logging.getLogger("lead_search")
        self._fetcher = fetcher
        self._mx_checker = mx_checker
        self._clock = clock
        self._source = source
        self._employee_bands = employee_bands
        self._revenue_bands = revenue_bands

    def enrich_page(self, website: str | None) -> str:
        """Fetch the company homepage, plus its contact page when it shows no email.

        Returns the concatenated HTML or an empty string; never raises.
        """
        url = normalize_website(website)
        if self._fetcher is None or url is None:
            return ""
        html = self._fetcher.fetch(url)
        if not html or pick_email(html, domain_from_url(url)):
            return html
        contact_url = find_contact_link(html, url)
        if contact_url:
            html += "\n" + self._fetcher.fetch(contact_url)
        return html

    def _sector(self, raw: RawResult, filters: SearchFilters) -> str | None:
        if filters.sectors:
            return self._taxonomy.first_match(filters.sectors, raw.name, raw.types)
        return self._taxonomy.sector_for(raw.name, raw.types) or UNKNOWN

    def _email(self, website: str, page_html: str | None) -> tuple[str, str]:
        domain = domain_from_url(website) if website != UNKNOWN else ""
        if page_html:
            found = pick_email(page_html, domain)
            if found:
                return found, EMAIL_FROM_WEBSITE
        if not domain:
            return UNKNOWN, UNKNOWN
        guess = f"info@{domain}"
        if self._mx_checker is not None and not self._mx_checker(guess):
            return UNKNOWN, UNKNOWN
        return guess, EMAIL_DOMAIN_GUESS

    def to_lead(
        self,
        raw: RawResult,
        detail: DetailRecord | None,
        filters: SearchFilters,
        page_html: str | None = None,
    ) -> Lead | None:
        sector = self._sector(raw, filters)
        if sector is None:
            self._logger.debug("Rejected %s: no requested sector matches", raw.name)
            return None

        detail = detail or DetailRecord(place_id=raw.place_id)
        page_text = html_to_text(page_html) if page_html else ""
        phone = _first(detail.phone, extract_phone(page_text))
        website = normalize_website(detail.website) or UNKNOWN
        address = _first(
            detail.formatted_address, raw.formatted_address, extract_address(page_text)
        )
        rating = detail.rating if detail.rating is not None else raw.rating
        review_count = detail.review_count if detail.review_count is not None else raw.review_count
        email, email_source = self._email(website, page_html)

        return Lead(
            company_name=clean_company_name(raw.name) or raw.name,
            address=address,
            phone=phone,
            email=email,
            website=website,
            sector=sector,
            employees_estimate=estimate_band(
                review_count, self._employee_bands, explicit=filters.employees_band
            ),
            revenue_estimate=estimate_band(
                review_count, self._revenue_bands, explicit=filters.revenue_band
            ),
            quality_score=compute_quality(
                phone=phone, website=website, rating=rating, review_count=review_count
            ),
            source=self._source,
            captured_at=self._clock(),
            place_id=raw.place_id,
            rating=rating,
            review_count=review_count,
            email_source=email_source,
        )
