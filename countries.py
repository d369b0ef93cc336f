# countries.py
"""Список стран для поля «Страна» формы идеи.

Сравнение без учёта регистра и диакритики: «Mexico» находит «México».
"""

from __future__ import annotations

import unicodedata

COUNTRY_SUGGESTION_LIMIT = 7

COUNTRIES = (
    "Argentina",
    "Australia",
    "Austria",
    "Belgium",
    "Bolivia",
    "Brazil",
    "Canada",
    "Chile",
    "China",
    "Colombia",
    "Costa Rica",
    "Cuba",
    "Denmark",
    "Dominican Republic",
    "Ecuador",
    "Egypt",
    "El Salvador",
    "Finland",
    "France",
    "Germany",
    "Greece",
    "Guatemala",
    "Honduras",
    "India",
    "Ireland",
    "Italy",
    "Japan",
    "Mexico",
    "Morocco",
    "Netherlands",
    "Nicaragua",
    "Norway",
    "Panamá",
    "Paraguay",
    "Perú",
    "Poland",
    "Portugal",
    "Russia",
    "Singapore",
    "South Korea",
    "Spain",
    "Sweden",
    "Switzerland",
    "Turkey",
    "United Arab Emirates",
    "United Kingdom",
    "United States",
    "Uruguay",
    "Venezuela",
)


def normalize_country(s: str | None) -> str:
    s = unicodedata.normalize("NFD", (s or ""))
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return s.lower().strip()


def search_countries(user_input: str | None, limit: int = COUNTRY_SUGGESTION_LIMIT) -> list[str]:
    ni = normalize_country(user_input)
    if not ni:
        return []
    return [c for c in COUNTRIES if ni in normalize_country(c)][:limit]


def canonical_country(user_input: str | None) -> str | None:
    """Каноническое написание страны или None, если такой в списке нет."""
    ni = normalize_country(user_input)
    if not ni:
        return None
    for c in COUNTRIES:
        if normalize_country(c) == ni:
            return c
    return None


def is_valid_country(user_input: str | None) -> bool:
    return canonical_country(user_input) is not None
