# =============================================================================
# core/weather.py  —  Mock Weather Lookup (deterministic)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Answers "what's the weather in <city>?" with generated, plausible numbers.
#   No network, no API keys.  This is the only place mock-data policy lives.
#
# DETERMINISM:
#   Each city gets its own random.Random seeded from a SHA-256 digest of the
#   normalised name.  Same city in → same WeatherData out, for the whole life
#   of the process (and across runs, since the digest does not depend on
#   PYTHONHASHSEED).  The global `random` module is never touched.
#
# NOT FOUND:
#   Only cities in the gazetteer below are recognised.  An unknown or empty
#   name returns None; there is no fallback city.
# =============================================================================

import hashlib
import random
import re
from dataclasses import dataclass
from typing import Optional

from core.models import WeatherData


# Condition → icon shown on the UI weather card.
CONDITION_ICONS: dict[str, str] = {
    "Sunny": "☀️",
    "Clear": "🌙",
    "Partly Cloudy": "⛅",
    "Overcast": "☁️",
    "Fog": "🌫️",
    "Light Rain": "🌦️",
    "Rain": "🌧️",
    "Thunderstorms": "⛈️",
    "Snow": "🌨️",
    "Windy": "💨",
}


@dataclass(frozen=True)
class _Climate:
    """Baseline a city's generated weather is drawn around."""

    name: str                          # Display name returned to the user
    mean_temp_c: float
    temp_spread_c: float
    humidity_range: tuple[int, int]
    max_wind_kph: float
    conditions: tuple[str, ...]        # Weighted by repetition


_GAZETTEER: dict[str, _Climate] = {
    climate.name.lower(): climate
    for climate in (
        _Climate("Paris", 13.0, 7.0, (55, 85), 30.0,
                 ("Partly Cloudy", "Overcast", "Light Rain", "Sunny", "Partly Cloudy")),
        _Climate("London", 11.5, 6.0, (65, 90), 35.0,
                 ("Overcast", "Light Rain", "Rain", "Partly Cloudy", "Fog")),
        _Climate("New York", 13.5, 10.0, (45, 80), 35.0,
                 ("Sunny", "Partly Cloudy", "Rain", "Overcast", "Windy")),
        _Climate("San Francisco", 15.0, 4.0, (60, 90), 40.0,
                 ("Fog", "Fog", "Partly Cloudy", "Sunny", "Windy")),
        _Climate("Los Angeles", 19.0, 5.0, (35, 70), 20.0,
                 ("Sunny", "Sunny", "Clear", "Partly Cloudy")),
        _Climate("Chicago", 10.0, 12.0, (50, 80), 45.0,
                 ("Windy", "Partly Cloudy", "Snow", "Rain", "Sunny")),
        _Climate("Seattle", 11.0, 6.0, (65, 95), 30.0,
                 ("Light Rain", "Rain", "Overcast", "Overcast", "Partly Cloudy")),
        _Climate("Miami", 25.5, 4.0, (60, 95), 35.0,
                 ("Sunny", "Thunderstorms", "Partly Cloudy", "Rain")),
        _Climate("Tokyo", 16.0, 8.0, (50, 85), 30.0,
                 ("Sunny", "Partly Cloudy", "Rain", "Overcast")),
        _Climate("Sydney", 18.5, 5.0, (50, 80), 35.0,
                 ("Sunny", "Sunny", "Partly Cloudy", "Windy", "Light Rain")),
        _Climate("Berlin", 10.0, 8.0, (55, 85), 30.0,
                 ("Overcast", "Partly Cloudy", "Light Rain", "Snow")),
        _Climate("Madrid", 15.5, 9.0, (25, 65), 25.0,
                 ("Sunny", "Sunny", "Clear", "Partly Cloudy")),
        _Climate("Rome", 16.0, 7.0, (45, 80), 25.0,
                 ("Sunny", "Partly Cloudy", "Light Rain", "Clear")),
        _Climate("Cairo", 23.0, 7.0, (20, 55), 30.0,
                 ("Sunny", "Sunny", "Clear", "Windy")),
        _Climate("Mumbai", 27.5, 3.0, (60, 95), 30.0,
                 ("Rain", "Thunderstorms", "Partly Cloudy", "Sunny")),
        _Climate("Singapore", 27.5, 2.0, (70, 100), 20.0,
                 ("Thunderstorms", "Rain", "Partly Cloudy", "Sunny")),
        _Climate("Toronto", 8.5, 11.0, (50, 85), 35.0,
                 ("Snow", "Partly Cloudy", "Overcast", "Sunny", "Windy")),
        _Climate("Reykjavik", 5.0, 5.0, (65, 95), 55.0,
                 ("Windy", "Overcast", "Snow", "Rain")),
        _Climate("Dubai", 28.5, 6.0, (30, 70), 25.0,
                 ("Sunny", "Sunny", "Clear", "Windy")),
        _Climate("Maui", 25.0, 3.0, (55, 80), 30.0,
                 ("Sunny", "Sunny", "Partly Cloudy", "Light Rain")),
    )
}


def normalize_city(city: str) -> str:
    """Trim, collapse internal whitespace and lowercase a city name."""
    return re.sub(r"\s+", " ", city or "").strip().lower()


def list_known_cities() -> list[str]:
    """Display names of every recognised city, sorted."""
    return sorted(climate.name for climate in _GAZETTEER.values())


def _rng_for(normalized: str) -> random.Random:
    digest = hashlib.sha256(normalized.encode("utf-8")).digest()
    return random.Random(int.from_bytes(digest[:8], "big"))


def get_weather(city: str) -> Optional[WeatherData]:
    """Return mock current weather for ``city``, or None if it is not recognised.

    Args:
        city: Free-form city name from the model (e.g. " paris ", "New  York").

    Returns:
        A WeatherData whose numbers depend only on the normalised name, or
        None for an empty or unknown city.
    """
    normalized = normalize_city(city)
    if not normalized:
        return None

    climate = _GAZETTEER.get(normalized)
    if climate is None:
        return None

    rng = _rng_for(normalized)

    temperature = rng.uniform(
        climate.mean_temp_c - climate.temp_spread_c,
        climate.mean_temp_c + climate.temp_spread_c,
    )
    condition = rng.choice(climate.conditions)
    humidity = rng.randint(*climate.humidity_range)
    wind = rng.uniform(0.0, climate.max_wind_kph)

    # Conditions nudge the numbers the way real weather would.
    if condition in ("Rain", "Thunderstorms", "Light Rain", "Fog"):
        humidity += 10
    if condition == "Windy":
        wind = max(wind, climate.max_wind_kph * 0.7)
    if condition == "Snow":
        temperature = min(temperature, 1.0)

    return WeatherData(
        city=climate.name,
        temperature_c=round(temperature, 1),
        condition=condition,
        condition_icon=CONDITION_ICONS[condition],
        humidity_pct=max(0, min(100, humidity)),
        wind_kph=round(max(0.0, wind), 1),
    )
