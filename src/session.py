# ABOUTME: Dashboard context shared by every caller of the app: current bundle, favorites, render-target boundary.
# ABOUTME: Drives one search into a RenderTarget and keeps share/favorite actions off global state.

import logging
from datetime import datetime, timezone
from typing import Protocol

import httpx

from src.aggregator import build_weather_bundle, resolve_city
from src.config import Settings
from src.errors import WeatherDashboardError
from src.models import FavoriteCity, WeatherBundle

logger = logging.getLogger(__name__)

ERROR_MESSAGE = (
    "Unable to fetch weather data. Please check your internet connection and try again. "
    "Make sure you entered a valid city name."
)


class RenderTarget(Protocol):
    """Whatever draws the dashboard. The orchestrator never touches it directly."""

    def show_loading(self, city: str) -> None: ...

    def show_bundle(self, bundle: WeatherBundle) -> None: ...

    def show_error(self, message: str) -> None: ...


class DashboardSession:
    """State that outlives a single search: the latest bundle and the favorites list.

    One instance serves the whole app, so every client sees the same current city and favorites.
    """

    def __init__(self, settings: Settings, favorites: list[FavoriteCity] | None = None):
        self.settings = settings
        self.current: WeatherBundle | None = None
        self.favorites: list[FavoriteCity] = list(favorites or [])
        self.last_error: WeatherDashboardError | None = None

    async def search(
        self,
        client: httpx.AsyncClient,
        raw_city: str | None,
        target: RenderTarget,
        now: datetime | None = None,
    ) -> WeatherBundle | None:
        """Run one search and hand the outcome to target.

        A mandatory-source failure renders a single error state and leaves `current` untouched.
        """
        city = resolve_city(raw_city, self.settings.default_city)
        target.show_loading(city)
        try:
            bundle = await build_weather_bundle(client, city, self.settings, now=now)
        except WeatherDashboardError as e:
            logger.error("Search for %r failed: %s", city, e)
            self.last_error = e
            target.show_error(ERROR_MESSAGE)
            return None
        self.current = bundle
        self.last_error = None
        target.show_bundle(bundle)
        return bundle

    def _find(self, name: str) -> FavoriteCity | None:
        wanted = name.lower()
        for fav in self.favorites:
            if fav.name.lower() == wanted:
                return fav
        return None

    def is_favorite(self, name: str) -> bool:
        return self._find(name) is not None

    def add_favorite(self, bundle: WeatherBundle, now: datetime | None = None) -> FavoriteCity:
        """Insert or refresh a favorite for the bundle's city (names compare case-insensitively)."""
        now = now or datetime.now(timezone.utc)
        name = bundle.location.name
        existing = self._find(name)
        if existing is not None:
            existing.temp = bundle.current.temperature_c
            existing.condition = bundle.current.condition_main
            existing.last_updated = now
            return existing

        fav = FavoriteCity(
            name=name,
            temp=bundle.current.temperature_c,
            condition=bundle.current.condition_main,
            icon=bundle.current.icon_id,
            last_updated=now,
        )
        self.favorites.append(fav)
        return fav

    def remove_favorite(self, name: str) -> bool:
        before = len(self.favorites)
        self.favorites = [f for f in self.favorites if f.name.lower() != name.lower()]
        return len(self.favorites) != before

    def toggle_favorite(self) -> bool | None:
        """Flip the favorite state of the current city. Returns the new state, or None with no search yet."""
        if self.current is None:
            return None
        name = self.current.location.name
        if self.is_favorite(name):
            self.remove_favorite(name)
            return False
        self.add_favorite(self.current)
        return True

    def favorites_payload(self) -> list[dict]:
        """Favorites as the flat list the browser stores."""
        return [
            {
                "name": f.name,
                "temp": f.temp,
                "condition": f.condition,
                "icon": f.icon,
                "lastUpdated": f.last_updated.isoformat(),
            }
            for f in self.favorites
        ]

    def share_text(self) -> str | None:
        if self.current is None:
            return None
        c = self.current.current
        return (
            f"🌦️ Weather in {self.current.location.name}:\n"
            f"🌡️ {round(c.temperature_c)}°C - {c.condition_description}\n"
            f"💧 Humidity: {c.humidity_pct}%\n"
            f"🌬️ Wind: {c.wind_speed_ms} m/s\n\n"
            "Powered by WeatherIndia 🇮🇳"
        )
