# ABOUTME: Aggregation orchestrator: fans out the weather, forecast and news fetches, then air quality.
# ABOUTME: Mandatory sources abort the search; optional sources degrade to empty/unknown values.

import asyncio
import logging
from datetime import datetime

import httpx

from src.config import Settings
from src.derivations import (
    backdrop_scene,
    estimate_uv,
    greeting_for_hour,
    is_night,
    sun_times,
    temperature_color,
    upcoming_forecast,
    visibility_report,
    weather_advice,
    weather_alerts,
)
from src.errors import WeatherDashboardError
from src.models import AirQuality, CityLookup, NewsArticle, QuickTemperature, WeatherBundle
from src.weather_service import (
    geocode,
    get_air_pollution,
    get_current_weather,
    get_current_weather_by_coords,
    get_forecast,
    get_news,
)

logger = logging.getLogger(__name__)


def resolve_city(raw: str | None, default_city: str) -> str:
    """Trimmed user input, or the default city when blank."""
    city = (raw or "").strip()
    return city or default_city


async def _news_or_empty(client: httpx.AsyncClient, settings: Settings) -> list[NewsArticle]:
    try:
        return await get_news(client, settings.newsdata_api_key, settings.news_query, settings.news_limit)
    except (WeatherDashboardError, httpx.HTTPError) as e:
        logger.warning("News unavailable, continuing without articles: %s", e)
        return []


async def _air_quality_or_unknown(
    client: httpx.AsyncClient, latitude: float, longitude: float, settings: Settings
) -> AirQuality:
    try:
        return await get_air_pollution(client, latitude, longitude, settings.openweather_api_key)
    except (WeatherDashboardError, httpx.HTTPError) as e:
        logger.warning("Air quality unavailable for %s,%s: %s", latitude, longitude, e)
        return AirQuality.unknown()


async def build_weather_bundle(
    client: httpx.AsyncClient,
    city: str,
    settings: Settings,
    now: datetime | None = None,
    enhanced: bool = True,
) -> WeatherBundle:
    """Fetch every source for a city and assemble the render-ready bundle.

    Weather, forecast and news are requested together; air quality follows once the weather
    response supplies coordinates. A weather failure is raised before a forecast failure. News and
    air quality never raise.

    Nothing here cancels an earlier in-flight search, so a slow earlier call can still finish after
    a later one and its result reaches whoever awaits it.
    """
    if now is None:
        now = datetime.now().astimezone()

    weather_result, forecast_result, news = await asyncio.gather(
        get_current_weather(client, city, settings.openweather_api_key),
        get_forecast(client, city, settings.openweather_api_key),
        _news_or_empty(client, settings),
        return_exceptions=True,
    )

    if isinstance(weather_result, BaseException):
        raise weather_result
    if isinstance(forecast_result, BaseException):
        raise forecast_result
    if isinstance(news, BaseException):
        # Only reachable for errors outside the adapter taxonomy (e.g. cancellation).
        raise news

    location, current = weather_result
    air_quality = await _air_quality_or_unknown(client, location.latitude, location.longitude, settings)

    night = is_night(now, current.sunrise_epoch, current.sunset_epoch)
    bundle = WeatherBundle(
        location=location,
        current=current,
        forecast=upcoming_forecast(forecast_result, now, settings.forecast_window),
        air_quality=air_quality,
        news=news,
        greeting=greeting_for_hour(now.hour),
        advice=weather_advice(current.condition_main),
        is_night=night,
        scene=backdrop_scene(current.condition_main, current.wind_speed_ms, night),
        fetched_at=now,
    )
    if enhanced:
        bundle = enrich_bundle(bundle, now)
    logger.info("Built weather bundle for %s", location.display_name)
    return bundle


def enrich_bundle(bundle: WeatherBundle, now: datetime) -> WeatherBundle:
    """Add the advanced-details panel values: UV estimate, visibility, alerts and sun times."""
    current = bundle.current
    return bundle.model_copy(
        update={
            "uv": estimate_uv(now.hour, current.condition_main),
            "visibility": visibility_report(current.visibility_m),
            "alerts": weather_alerts(current),
            "sun": sun_times(current.sunrise_epoch, current.sunset_epoch, current.timezone_offset_s),
        }
    )


async def lookup_city(client: httpx.AsyncClient, name: str) -> CityLookup:
    """Plain lookup: geocode the name, then read the current weather at its coordinates."""
    location = await geocode(client, name.strip())
    current = await get_current_weather_by_coords(client, location.latitude, location.longitude)
    return CityLookup(location=location, current=current)


async def quick_compare(client: httpx.AsyncClient, cities: list[str], api_key: str) -> list[QuickTemperature]:
    """Current temperature for each city, one request at a time. Failed cities show N/A."""
    results = []
    for city in cities:
        try:
            _, current = await get_current_weather(client, city, api_key)
        except (WeatherDashboardError, httpx.HTTPError) as e:
            logger.warning("Quick temperature unavailable for %s: %s", city, e)
            results.append(QuickTemperature(city=city))
            continue
        results.append(
            QuickTemperature(
                city=city,
                temperature_c=current.temperature_c,
                display=f"{round(current.temperature_c)}°C",
                color=temperature_color(current.temperature_c),
            )
        )
    return results
