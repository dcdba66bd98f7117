"""
Weather lookup for the real-world context of a query.

Fetches hourly weather for a date and position from Open-Meteo (free, no API key):
the historical archive for past days, the forecast API (which also covers the
last weeks) for recent dates. Any failure raises WeatherUnavailableError; callers
treat weather as best-effort.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import httpx

from musebag.core.config import (
    OPEN_METEO_ARCHIVE,
    OPEN_METEO_FORECAST,
    WEATHER_ARCHIVE_LAG_DAYS,
    WEATHER_TIMEOUT,
)
from musebag.core.errors import WeatherUnavailableError

logger = logging.getLogger(__name__)

_HOURLY_FIELDS = "temperature_2m,relative_humidity_2m,wind_speed_10m,weather_code"

# Formats accepted after normalization (2011.06.24 13:45:00)
_NORMALIZED_FORMATS = ("%Y.%m.%d %H:%M:%S.%f", "%Y.%m.%d %H:%M:%S", "%Y.%m.%d %H:%M", "%Y.%m.%d")

# WMO weather codes (abbreviated) for Open-Meteo
_WMO_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


@dataclass(frozen=True)
class WeatherData:
    """One hourly weather sample at the query position."""

    condition: str
    temperature: float
    wind: float
    humidity: float


def normalize_timestamp(timestamp: str) -> str:
    """
    Convert the front-end's ISO timestamp to the lookup format.

    2011-06-24T13:45:00.000Z -> 2011.06.24 13:45:00
    """
    return (timestamp or "").strip().replace("T", " ").replace(".000Z", "").replace("-", ".")


def weather_position(location: str) -> list[float]:
    """
    Derive the lookup position from a space separated position string.

    Keeps latitude and longitude and zeroes every further component (always four
    components). Raises ValueError if fewer than two numeric components are present.
    """
    parts = (location or "").split()
    if len(parts) < 2:
        raise ValueError(f"Position needs latitude and longitude: {location!r}")
    lat, lon = float(parts[0]), float(parts[1])
    return [lat, lon] + [0.0] * max(2, len(parts) - 2)


def _parse_normalized(value: str) -> datetime:
    value = value.rstrip("Z")
    for fmt in _NORMALIZED_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized timestamp: {value!r}")


def _endpoint_for(moment: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    if now - moment > timedelta(days=WEATHER_ARCHIVE_LAG_DAYS):
        return OPEN_METEO_ARCHIVE
    return OPEN_METEO_FORECAST


def _pick_hour(hourly: dict, moment: datetime) -> WeatherData:
    """Select the hourly sample the moment falls into."""
    times = hourly.get("time")
    if not isinstance(times, list):
        raise WeatherUnavailableError("Weather data has no hourly time series")
    wanted = moment.replace(minute=0, second=0, microsecond=0)
    key = wanted.strftime("%Y-%m-%dT%H:%M")
    if key not in times:
        raise WeatherUnavailableError(f"No weather sample for {key}")
    i = times.index(key)
    try:
        temp = hourly["temperature_2m"][i]
        humidity = hourly["relative_humidity_2m"][i]
        wind = hourly["wind_speed_10m"][i]
        code = hourly["weather_code"][i]
    except (KeyError, IndexError, TypeError) as e:
        raise WeatherUnavailableError(f"Incomplete weather data: {e}") from e
    if temp is None or humidity is None or wind is None:
        raise WeatherUnavailableError(f"No weather data recorded for {key}")
    cond = _WMO_CODES.get(code, f"Weather code {code}")
    return WeatherData(condition=cond, temperature=temp, wind=wind, humidity=humidity)


async def fetch_weather(
    timestamp: str,
    position: list[float],
    client: httpx.AsyncClient | None = None,
) -> WeatherData:
    """
    Fetch weather for a query timestamp as sent by the front-end and a position
    (see weather_position). The timestamp is normalized here; times are taken as UTC.

    Raises:
        WeatherUnavailableError: On malformed input, transport failure, timeout,
            non-200 status or when no sample exists for that hour.
    """
    try:
        moment = _parse_normalized(normalize_timestamp(timestamp))
        lat, lon = float(position[0]), float(position[1])
    except (ValueError, TypeError, IndexError) as e:
        raise WeatherUnavailableError(f"Invalid weather lookup input: {e}") from e

    day = moment.strftime("%Y-%m-%d")
    url = _endpoint_for(moment)
    params = {
        "latitude": lat,
        "longitude": lon,
        "start_date": day,
        "end_date": day,
        "hourly": _HOURLY_FIELDS,
        "timezone": "GMT",
    }
    logger.info("[weather:fetch_weather] IN  date=%s lat=%.3f lon=%.3f url=%s", timestamp, lat, lon, url)
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=WEATHER_TIMEOUT) as own_client:
                response = await own_client.get(url, params=params)
        else:
            response = await client.get(url, params=params)
    except httpx.TimeoutException as e:
        raise WeatherUnavailableError("Weather API request timed out.") from e
    except httpx.HTTPError as e:
        raise WeatherUnavailableError(f"Weather lookup failed: {e}") from e

    if response.status_code != 200:
        raise WeatherUnavailableError(f"Weather API error: returned {response.status_code}.")
    try:
        data = response.json()
    except ValueError as e:
        raise WeatherUnavailableError("Weather API returned invalid JSON.") from e

    hourly = data.get("hourly") if isinstance(data, dict) else None
    if not isinstance(hourly, dict):
        raise WeatherUnavailableError("Weather API response has no hourly data.")
    weather = _pick_hour(hourly, moment)
    logger.info("[weather:fetch_weather] OUT condition=%s temp=%s", weather.condition, weather.temperature)
    return weather
