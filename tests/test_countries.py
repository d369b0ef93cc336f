import countries
import locations
from countries import canonical_country, is_valid_country, normalize_country, search_countries


def test_normalize_strips_accents_and_case():
    assert normalize_country("  Perú ") == "peru"
    assert normalize_country("PANAMÁ") == "panama"
    assert normalize_country(None) == ""


def test_search_accent_insensitive():
    assert search_countries("peru") == ["Perú"]
    assert search_countries("PANAMA") == ["Panamá"]


def test_search_limit_and_empty():
    assert len(search_countries("a")) == countries.COUNTRY_SUGGESTION_LIMIT == 7
    assert search_countries("") == []
    assert search_countries("   ") == []


def test_search_keeps_list_order():
    assert search_countries("united") == ["United Arab Emirates", "United Kingdom", "United States"]


def test_validation():
    assert is_valid_country("france")
    assert canonical_country("peru") == "Perú"
    assert not is_valid_country("Fra")
    assert not is_valid_country("")


def test_every_index_country_is_valid():
    for country in {loc.country for loc in locations.LOCATION_INDEX}:
        assert is_valid_country(country), country
