# ABOUTME: Runtime settings for the dashboard, read from the environment after loading .env.
# ABOUTME: API keys, default city, forecast window and the quick-compare city list live here.

import os

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_COMPARE_CITIES = ("Delhi", "Mumbai", "Bangalore", "Chennai")


class Settings(BaseModel):
    """Dashboard configuration shared by the orchestrator and the web surface."""

    openweather_api_key: str = ""
    newsdata_api_key: str = ""
    default_city: str = "Delhi"
    forecast_window: int = 6
    news_query: str = "weather india"
    news_limit: int = 8
    quick_compare_cities: list[str] = list(DEFAULT_COMPARE_CITIES)
    http_retries: int = 0


def _split_cities(raw: str | None) -> list[str]:
    if not raw:
        return list(DEFAULT_COMPARE_CITIES)
    return [c.strip() for c in raw.split(",") if c.strip()]


def load_settings() -> Settings:
    """Build Settings from environment variables, loading a .env file first if present."""
    load_dotenv()
    return Settings(
        openweather_api_key=os.environ.get("OPENWEATHER_API_KEY", ""),
        newsdata_api_key=os.environ.get("NEWSDATA_API_KEY", ""),
        default_city=os.environ.get("DEFAULT_CITY", "Delhi"),
        forecast_window=int(os.environ.get("FORECAST_WINDOW", "6")),
        news_query=os.environ.get("NEWS_QUERY", "weather india"),
        news_limit=int(os.environ.get("NEWS_LIMIT", "8")),
        quick_compare_cities=_split_cities(os.environ.get("QUICK_COMPARE_CITIES")),
        http_retries=int(os.environ.get("WEATHER_HTTP_RETRIES", "0")),
    )
