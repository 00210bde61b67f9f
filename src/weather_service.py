# ABOUTME: Fetch adapters for geocoding, current weather, forecast, air pollution and news APIs.
# ABOUTME: One GET per call, status and shape checked, typed errors raised on violation.

from datetime import datetime, timezone

import httpx

from src.derivations import parse_air_quality
from src.errors import LocationNotFoundError, MalformedResponseError, RemoteServiceError
from src.models import (
    AirQuality,
    CurrentConditions,
    CurrentWeatherSnapshot,
    ForecastEntry,
    Location,
    NewsArticle,
)

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

OWM_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
OWM_FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
OWM_AIR_POLLUTION_URL = "https://api.openweathermap.org/data/2.5/air_pollution"

NEWS_URL = "https://newsdata.io/api/1/news"
NEWS_CATEGORY = "environment"


async def _get_json(client: httpx.AsyncClient, service: str, url: str, params: dict):
    """Issue one GET and return the decoded JSON body, mapping failures to dashboard errors."""
    try:
        resp = await client.get(url, params=params)
    except httpx.HTTPStatusError as e:
        # Raised by the retrying transport once its attempts are exhausted.
        raise RemoteServiceError(service, e.response.status_code) from e
    except httpx.HTTPError as e:
        raise RemoteServiceError(service) from e
    if not resp.is_success:
        raise RemoteServiceError(service, resp.status_code)
    try:
        return resp.json()
    except ValueError as e:
        raise MalformedResponseError(service, "body is not JSON") from e


async def geocode(client: httpx.AsyncClient, city_name: str) -> Location:
    """Resolve a city name to coordinates using the Open-Meteo geocoding API."""
    data = await _get_json(
        client,
        "Geocoding",
        GEOCODING_URL,
        {"name": city_name, "count": 1, "language": "en", "format": "json"},
    )
    results = data.get("results") if isinstance(data, dict) else None
    if not results:
        raise LocationNotFoundError("Geocoding", city_name)

    r = results[0]
    try:
        return Location(
            name=r["name"],
            country_code=r.get("country_code") or r.get("country"),
            latitude=r["latitude"],
            longitude=r["longitude"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedResponseError("Geocoding", f"bad result: {e}") from e


async def get_current_weather_by_coords(
    client: httpx.AsyncClient, latitude: float, longitude: float
) -> CurrentWeatherSnapshot:
    """Fetch the Open-Meteo current_weather block for a coordinate pair."""
    data = await _get_json(
        client,
        "Weather",
        OPEN_METEO_FORECAST_URL,
        {"latitude": latitude, "longitude": longitude, "current_weather": "true"},
    )
    current = data.get("current_weather") if isinstance(data, dict) else None
    if not isinstance(current, dict):
        raise MalformedResponseError("Weather", "no current_weather block")
    try:
        return CurrentWeatherSnapshot(
            temperature_c=current["temperature"],
            wind_speed_kmh=current["windspeed"],
            wind_direction_deg=current.get("winddirection"),
            weather_code=current.get("weathercode"),
            time=datetime.fromisoformat(current["time"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedResponseError("Weather", f"bad current_weather block: {e}") from e


async def get_current_weather(
    client: httpx.AsyncClient, city: str, api_key: str
) -> tuple[Location, CurrentConditions]:
    """Fetch current conditions for a city from OpenWeatherMap, in metric units."""
    data = await _get_json(
        client,
        "Weather",
        OWM_WEATHER_URL,
        {"q": city, "appid": api_key, "units": "metric"},
    )
    return parse_location(data), parse_current_conditions(data)


async def get_forecast(client: httpx.AsyncClient, city: str, api_key: str) -> list[ForecastEntry]:
    """Fetch the 5-day / 3-hour forecast for a city from OpenWeatherMap."""
    data = await _get_json(
        client,
        "Forecast",
        OWM_FORECAST_URL,
        {"q": city, "appid": api_key, "units": "metric"},
    )
    return parse_forecast_entries(data)


async def get_air_pollution(
    client: httpx.AsyncClient, latitude: float, longitude: float, api_key: str
) -> AirQuality:
    """Fetch the air pollution summary for a coordinate pair.

    Only the HTTP status is enforced; an empty or odd body is a valid "Unknown" answer.
    """
    data = await _get_json(
        client,
        "Air quality",
        OWM_AIR_POLLUTION_URL,
        {"lat": latitude, "lon": longitude, "appid": api_key},
    )
    return parse_air_quality(data)


async def get_news(client: httpx.AsyncClient, api_key: str, query: str, limit: int = 8) -> list[NewsArticle]:
    """Fetch climate news from newsdata.io."""
    data = await _get_json(
        client,
        "News",
        NEWS_URL,
        {"apikey": api_key, "q": query, "language": "en", "category": NEWS_CATEGORY},
    )
    return parse_news_articles(data)[:limit]


def parse_location(data: dict) -> Location:
    """Pull name, country and coordinates out of an OpenWeatherMap /weather body."""
    try:
        coord = data["coord"]
        return Location(
            name=data.get("name") or "",
            country_code=(data.get("sys") or {}).get("country"),
            latitude=coord["lat"],
            longitude=coord["lon"],
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise MalformedResponseError("Weather", "missing or invalid coord") from e


def parse_current_conditions(data: dict) -> CurrentConditions:
    """Map an OpenWeatherMap /weather body onto CurrentConditions.

    main.temp, main.humidity and a non-empty weather list are required; everything else is optional.
    """
    if not isinstance(data, dict):
        raise MalformedResponseError("Weather", "body is not an object")
    main = data.get("main")
    weather = data.get("weather")
    if not isinstance(main, dict) or "temp" not in main or "humidity" not in main:
        raise MalformedResponseError("Weather", "missing main block")
    if not isinstance(weather, list) or not weather:
        raise MalformedResponseError("Weather", "missing weather conditions")

    condition = weather[0]
    wind = data.get("wind") or {}
    clouds = data.get("clouds") or {}
    sys = data.get("sys") or {}
    try:
        return CurrentConditions(
            temperature_c=main["temp"],
            feels_like_c=main.get("feels_like"),
            humidity_pct=main["humidity"],
            pressure_hpa=main.get("pressure"),
            wind_speed_ms=wind.get("speed", 0.0),
            cloudiness_pct=clouds.get("all"),
            visibility_m=data.get("visibility"),
            condition_main=condition.get("main", ""),
            condition_description=condition.get("description", ""),
            icon_id=condition.get("icon", ""),
            sunrise_epoch=sys.get("sunrise"),
            sunset_epoch=sys.get("sunset"),
            timezone_offset_s=data.get("timezone", 0),
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedResponseError("Weather", str(e)) from e


def parse_forecast_entries(data: dict) -> list[ForecastEntry]:
    """Convert the forecast list into ForecastEntry rows in upstream order."""
    items = data.get("list") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise MalformedResponseError("Forecast", "missing list")

    result = []
    for item in items:
        try:
            condition = (item.get("weather") or [{}])[0]
            result.append(
                ForecastEntry(
                    timestamp=_forecast_timestamp(item),
                    temperature_c=item["main"]["temp"],
                    condition_main=condition.get("main", ""),
                    condition_description=condition.get("description", ""),
                    icon_id=condition.get("icon", ""),
                )
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedResponseError("Forecast", f"bad entry: {e}") from e
    return result


def _forecast_timestamp(item: dict) -> datetime:
    """Prefer the epoch dt field; dt_txt is UTC without an offset."""
    if item.get("dt") is not None:
        return datetime.fromtimestamp(item["dt"], timezone.utc)
    return datetime.fromisoformat(item["dt_txt"]).replace(tzinfo=timezone.utc)


def parse_news_articles(data) -> list[NewsArticle]:
    """Normalise newsdata.io ("results") and NewsAPI-style ("articles") bodies."""
    if not isinstance(data, dict):
        return []
    raw = data.get("articles") or data.get("results") or []
    if not isinstance(raw, list):
        return []

    articles = []
    for a in raw:
        if not isinstance(a, dict):
            continue
        articles.append(
            NewsArticle(
                title=a.get("title") or "Weather Update",
                description=a.get("description") or a.get("content") or "Latest weather information available.",
                url=a.get("url") or a.get("link"),
                published_at=_parse_published(a.get("publishedAt") or a.get("pubDate")),
            )
        )
    return articles


def _parse_published(value) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
