# locations.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Сколько подсказок максимум отдаёт search(); дальше список не нужен в UI
SUGGESTION_LIMIT = 10


class LocationKind(Enum):
    CITY = "city"
    MUNICIPALITY = "municipality"


@dataclass(frozen=True)
class Location:
    """Город или район (municipality) внутри города.

    Для района обязателен parent_city, для города его быть не должно.
    """

    name: str
    kind: LocationKind
    country: str
    parent_city: str | None = None

    def __post_init__(self):
        if self.kind is LocationKind.MUNICIPALITY:
            if not (self.parent_city or "").strip():
                raise ValueError(f"municipality {self.name!r} requires parent_city")
        elif self.parent_city is not None:
            raise ValueError(f"city {self.name!r} must not have parent_city")

    @property
    def is_municipality(self) -> bool:
        return self.kind is LocationKind.MUNICIPALITY


def city(name: str, country: str) -> Location:
    return Location(name, LocationKind.CITY, country)


def municipality(name: str, parent_city: str, country: str) -> Location:
    return Location(name, LocationKind.MUNICIPALITY, country, parent_city)


CITIES = (
    city("New York City", "United States"),
    city("Los Angeles", "United States"),
    city("Chicago", "United States"),
    city("London", "United Kingdom"),
    city("Paris", "France"),
    city("Berlin", "Germany"),
    city("Madrid", "Spain"),
    city("Rome", "Italy"),
    city("Tokyo", "Japan"),
    city("Beijing", "China"),
    city("Seoul", "South Korea"),
    city("Sydney", "Australia"),
    city("São Paulo", "Brazil"),
    city("Mexico City", "Mexico"),
    city("Mumbai", "India"),
    city("Moscow", "Russia"),
    city("Istanbul", "Turkey"),
    city("Dubai", "United Arab Emirates"),
    city("Singapore", "Singapore"),
    city("Toronto", "Canada"),
)

MUNICIPALITIES = (
    municipality("Manhattan", "New York City", "United States"),
    municipality("Brooklyn", "New York City", "United States"),
    municipality("Queens", "New York City", "United States"),
    municipality("Westminster", "London", "United Kingdom"),
    municipality("Camden", "London", "United Kingdom"),
    municipality("Montmartre", "Paris", "France"),
    municipality("Le Marais", "Paris", "France"),
    municipality("Shibuya", "Tokyo", "Japan"),
    municipality("Shinjuku", "Tokyo", "Japan"),
    municipality("Kreuzberg", "Berlin", "Germany"),
    municipality("Prenzlauer Berg", "Berlin", "Germany"),
)

# Единый индекс: сначала города, потом районы. Дубликаты имён допустимы.
LOCATION_INDEX: tuple[Location, ...] = CITIES + MUNICIPALITIES


def norm(s: str | None) -> str:
    return (s or "").strip().lower()


def _matches(loc: Location, nq: str) -> bool:
    if nq in norm(loc.name) or nq in norm(loc.country):
        return True
    return loc.parent_city is not None and nq in norm(loc.parent_city)


def search(user_input: str | None, limit: int = SUGGESTION_LIMIT) -> list[Location]:
    """Подсказки для ввода: подстрока в имени, стране или родительском городе.

    Порядок как в индексе, не больше limit штук. Пустой ввод -> пустой список.
    """
    nq = norm(user_input)
    if not nq:
        return []
    out = []
    for loc in LOCATION_INDEX:
        if _matches(loc, nq):
            out.append(loc)
            if len(out) >= limit:
                break
    return out


def canonical(user_input: str | None) -> Location | None:
    ni = norm(user_input)
    if not ni:
        return None
    for loc in LOCATION_INDEX:
        if norm(loc.name) == ni:
            return loc
    return None

