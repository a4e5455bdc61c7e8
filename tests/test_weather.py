"""Tests for the deterministic mock weather lookup."""

import pytest

from core.models import WeatherData
from core.weather import CONDITION_ICONS, get_weather, list_known_cities, normalize_city


def test_same_city_same_data():
    assert get_weather("Paris") == get_weather("Paris")


@pytest.mark.parametrize("variant", ["paris", "  PARIS ", "PaRiS\t", "\nparis"])
def test_normalised_variants_match(variant):
    assert get_weather(variant) == get_weather("Paris")


def test_internal_whitespace_collapsed():
    assert normalize_city("  New   York ") == "new york"
    assert get_weather("new   york") == get_weather("New York")


def test_display_name_is_canonical():
    assert get_weather("  paris ").city == "Paris"


@pytest.mark.parametrize("city", ["", "   ", "Atlantis", "El Dorado", None])
def test_unknown_or_empty_is_not_found(city):
    assert get_weather(city) is None


def test_cities_differ():
    assert get_weather("Paris") != get_weather("London")


def test_bounds_hold_for_every_city():
    for city in list_known_cities():
        weather = get_weather(city)
        assert 0 <= weather.humidity_pct <= 100
        assert weather.wind_kph >= 0
        assert weather.condition_icon == CONDITION_ICONS[weather.condition]


def test_weather_data_rejects_bad_humidity():
    with pytest.raises(ValueError):
        WeatherData("X", 10.0, "Sunny", "☀️", 101, 5.0)


def test_from_dict_rejects_malformed_payload():
    good = get_weather("Tokyo").to_dict()
    assert WeatherData.from_dict(good) == get_weather("Tokyo")
    with pytest.raises(ValueError):
        WeatherData.from_dict({k: v for k, v in good.items() if k != "city"})
    with pytest.raises(ValueError):
        WeatherData.from_dict({**good, "humidity_pct": "wet"})
    with pytest.raises(ValueError):
        WeatherData.from_dict(["not", "a", "dict"])
