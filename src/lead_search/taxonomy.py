"""Sector labels mapped to provider keywords and category tags."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class Sector:
    search_term: str
    keywords: tuple[str, ...]
    tags: tuple[str, ...] = ()


SECTORS: dict[str, Sector] = {
    "tecnologia": Sector(
        search_term="empresa de software",
        keywords=("software", "desarrollo", "IT", "tecnología", "informática", "digital"),
        tags=("electronics_store",),
    ),
    "construccion": Sector(
        search_term="empresa de construcción",
        keywords=("construcción", "obra", "edificación", "arquitectura", "ingeniería"),
        tags=("general_contractor", "roofing_contractor", "electrician", "plumber"),
    ),
    "salud": Sector(
        search_term="clínica",
        keywords=("salud", "médico", "clínica", "hospital", "sanitario", "farmacia"),
        tags=("hospital", "doctor", "dentist", "pharmacy", "physiotherapist", "health"),
    ),
    "educacion": Sector(
        search_term="academia",
        keywords=("educación", "formación", "academia", "colegio", "universidad"),
        tags=("school", "primary_school", "secondary_school", "university"),
    ),
    "finanzas": Sector(
        search_term="asesoría financiera",
        keywords=("finanzas", "banco", "seguros", "inversión", "financiero"),
        tags=("bank", "accounting", "insurance_agency", "finance"),
    ),
    "retail": Sector(
        search_term="tienda",
        keywords=("comercio", "tienda", "retail", "venta", "distribución"),
        tags=("store", "shopping_mall", "clothing_store", "supermarket"),
    ),
    "industria": Sector(
        search_term="fábrica",
        keywords=("industria", "fabricación", "producción", "manufactura"),
        tags=("storage", "moving_company"),
    ),
    "servicios": Sector(
        search_term="consultoría",
        keywords=("servicios", "consultoría", "asesoría", "gestión"),
        tags=("lawyer", "real_estate_agency", "travel_agency"),
    ),
    "hosteleria": Sector(
        search_term="restaurante",
        keywords=("restaurante", "hotel", "bar", "cafetería"),
        tags=("restaurant", "lodging", "bar", "cafe", "meal_takeaway"),
    ),
}

_SHORT_KEYWORD = 3


def fold(text: str) -> str:
    """Lowercase and strip accents so labels compare loosely."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return stripped.strip().lower()


def _keyword_in(keyword: str, text: str) -> bool:
    if len(keyword) <= _SHORT_KEYWORD:
        return re.search(rf"\b{re.escape(keyword)}\b", text) is not None
    return keyword in text


class SectorTaxonomy:
    """Static sector table lookups; unknown labels act as their own keyword."""

    def __init__(self, sectors: Mapping[str, Sector] | None = None) -> None:
        table = SECTORS if sectors is None else sectors
        self._sectors = {fold(label): sector for label, sector in table.items()}

    def _lookup(self, label: str) -> Sector | None:
        return self._sectors.get(fold(label))

    def keywords_for(self, label: str) -> tuple[str, ...]:
        sector = self._lookup(label)
        if sector is None:
            return (label,)
        return sector.keywords

    def search_term_for(self, label: str) -> str:
        sector = self._lookup(label)
        if sector is None:
            return label
        return sector.search_term

    def matches(self, label: str, name: str, tags: Iterable[str]) -> bool:
        """Case-insensitive match of a sector against a place name and its tags."""
        folded_name = fold(name)
        folded_tags = [fold(tag) for tag in tags]
        sector = self._lookup(label)
        keywords = [fold(keyword) for keyword in self.keywords_for(label)]
        sector_tags = [fold(tag) for tag in sector.tags] if sector else []

        for tag in folded_tags:
            if tag in sector_tags:
                return True
            readable = tag.replace("_", " ")
            if any(_keyword_in(keyword, readable) for keyword in keywords):
                return True
        return any(_keyword_in(keyword, folded_name) for keyword in keywords)

    def first_match(self, labels: Iterable[str], name: str, tags: Iterable[str]) -> str | None:
        """Return the first requested label matching the place, if any."""
        tag_list = list(tags)
        for label in labels:
            if self.matches(label, name, tag_list):
                return label
        return None

    def sector_for(self, name: str, tags: Iterable[str]) -> str | None:
        """Best guess of the known sector a place belongs to."""
        return self.first_match(self._sectors.keys(), name, tags)
