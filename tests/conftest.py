# ABOUTME: Shared test fixtures for the weather dashboard test suite.
# ABOUTME: Provides canned upstream payloads and a URL-routing mock HTTP client.

from unittest.mock import AsyncMock

import httpx
import pytest

from src.config import Settings
from src.weather_service import (
    NEWS_URL,
    OWM_AIR_POLLUTION_URL,
    OWM_FORECAST_URL,
    OWM_WEATHER_URL,
)

# Sunrise/sunset epochs of the Delhi fixture; 1700000000 is 2023-11-14 22:13:20 UTC.
SUNRISE = 1_700_000_000
SUNSET = 1_700_030_000


def json_response(json_data, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code=status_code, json=json_data, request=httpx.Request("GET", "https://test"))


def routing_client(routes: dict) -> httpx.AsyncClient:
    """Mock client whose get() answers by URL. A route value may be a Response or an exception instance."""
    mock = AsyncMock(spec=httpx.AsyncClient)

    async def _get(url, params=None):
        answer = routes[url]
        if isinstance(answer, Exception):
            raise answer
        return answer

    mock.get.side_effect = _get
    return mock


@pytest.fixture
def settings() -> Settings:
    return Settings(openweather_api_key="owm-key", newsdata_api_key="news-key")


@pytest.fixture
def delhi_weather() -> dict:
    return {
        "coord": {"lat": 28.6, "lon": 77.2},
        "weather": [{"main": "Clear", "description": "clear sky", "icon": "01d"}],
        "main": {"temp": 32.1, "feels_like": 33.0, "humidity": 40, "pressure": 1012},
        "visibility": 10000,
        "wind": {"speed": 3.0},
        "clouds": {"all": 0},
        "sys": {"sunrise": SUNRISE, "sunset": SUNSET, "country": "IN"},
        "timezone": 19800,
        "name": "Delhi",
    }


@pytest.fixture
def delhi_forecast() -> dict:
    # 3-hourly steps starting 1699995600 (2023-11-14 21:00 UTC)
    start = 1_699_995_600
    return {
        "list": [
            {
                "dt": start + i * 10800,
                "main": {"temp": 25.0 + i},
                "weather": [{"main": "Clear", "description": "clear sky", "icon": "01n"}],
                "dt_txt": "ignored",
            }
            for i in range(10)
        ]
    }


@pytest.fixture
def air_payload() -> dict:
    return {"list": [{"main": {"aqi": 4}, "components": {"pm2_5": 81.26, "pm10": 120.04}}]}


@pytest.fixture
def news_payload() -> dict:
    return {
        "results": [
            {
                "title": "Monsoon retreats",
                "description": "The monsoon has withdrawn from north India.",
                "link": "https://example.com/monsoon",
                "pubDate": "2023-11-14 08:30:00",
            }
        ]
    }


@pytest.fixture
def happy_routes(delhi_weather, delhi_forecast, air_payload, news_payload) -> dict:
    return {
        OWM_WEATHER_URL: json_response(delhi_weather),
        OWM_FORECAST_URL: json_response(delhi_forecast),
        OWM_AIR_POLLUTION_URL: json_response(air_payload),
        NEWS_URL: json_response(news_payload),
    }


@pytest.fixture
def respond():
    """Factory for httpx.Response objects carrying JSON."""
    return json_response


@pytest.fixture
def make_client():
    """Factory for URL-routing mock clients."""
    return routing_client
