# ABOUTME: Integration tests for the aggregation orchestrator.
# ABOUTME: Exercises the concurrent fan-out, mandatory vs optional failure handling, enrichment and quick compare.

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from src.aggregator import build_weather_bundle, lookup_city, quick_compare, resolve_city
from src.derivations import greeting_for_hour
from src.errors import LocationNotFoundError, MalformedResponseError, RemoteServiceError
from src.models import AirQuality
from src.weather_service import (
    GEOCODING_URL,
    NEWS_URL,
    OPEN_METEO_FORECAST_URL,
    OWM_AIR_POLLUTION_URL,
    OWM_FORECAST_URL,
    OWM_WEATHER_URL,
)

# Between the fixture sunrise (1700000000) and sunset (1700030000).
DAYTIME = datetime.fromtimestamp(1_700_010_000, timezone.utc)
NIGHTTIME = datetime.fromtimestamp(1_700_040_000, timezone.utc)


class TestResolveCity:
    def test_trims_input(self):
        assert resolve_city("  Mumbai ", "Delhi") == "Mumbai"

    def test_blank_uses_default(self):
        assert resolve_city("   ", "Delhi") == "Delhi"
        assert resolve_city(None, "Delhi") == "Delhi"


class TestBuildWeatherBundle:
    @pytest.mark.asyncio
    async def test_delhi_end_to_end(self, make_client, happy_routes, settings):
        """Full successful search for Delhi produces a consistent bundle.

        Implementation: Routes every upstream URL to canned Delhi data, clock pinned between
        sunrise and sunset.
        Passing implies: All sources are combined and the derived fields follow the inputs.
        """
        bundle = await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)

        assert bundle.location.display_name == "Delhi, IN"
        assert bundle.current.temperature_c == 32.1
        assert bundle.greeting == greeting_for_hour(DAYTIME.hour)
        assert bundle.advice == "Sunny day – No rain expected"
        assert bundle.air_quality.label == "Poor"
        assert bundle.alerts == []
        assert bundle.is_night is False
        assert bundle.scene.category == "clear-day"
        assert bundle.scene.windy is False
        assert len(bundle.news) == 1

    @pytest.mark.asyncio
    async def test_after_sunset_is_clear_night(self, make_client, happy_routes, settings):
        bundle = await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=NIGHTTIME)
        assert bundle.is_night is True
        assert bundle.scene.category == "clear-night"

    @pytest.mark.asyncio
    async def test_greeting_follows_clock_hour(self, make_client, happy_routes, settings):
        now = datetime(2023, 11, 15, 8, 0, tzinfo=timezone(timedelta(hours=5, minutes=30)))
        bundle = await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=now)
        assert bundle.greeting.startswith("Good Morning")

    @pytest.mark.asyncio
    async def test_forecast_window(self, make_client, happy_routes, settings):
        """Forecast keeps only the six nearest future steps.

        Implementation: Fixture has ten 3-hourly steps starting before DAYTIME.
        Passing implies: Past steps are dropped and the list is capped at the configured window.
        """
        bundle = await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)

        assert len(bundle.forecast) == 6
        assert all(e.timestamp > DAYTIME for e in bundle.forecast)
        assert bundle.forecast == sorted(bundle.forecast, key=lambda e: e.timestamp)

    @pytest.mark.asyncio
    async def test_enrichment_fields(self, make_client, happy_routes, settings):
        bundle = await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)

        assert bundle.visibility.status == "Excellent"
        assert bundle.uv is not None
        assert bundle.sun.sunrise.timestamp() == 1_700_000_000

    @pytest.mark.asyncio
    async def test_without_enrichment(self, make_client, happy_routes, settings):
        bundle = await build_weather_bundle(
            make_client(happy_routes), "Delhi", settings, now=DAYTIME, enhanced=False
        )
        assert bundle.uv is None
        assert bundle.visibility is None
        assert bundle.sun is None
        assert bundle.advice == "Sunny day – No rain expected"

    @pytest.mark.asyncio
    async def test_alerts_from_conditions(self, make_client, happy_routes, respond, delhi_weather, settings):
        delhi_weather["main"]["temp"] = 44.0
        delhi_weather["wind"]["speed"] = 11.0
        happy_routes[OWM_WEATHER_URL] = respond(delhi_weather)

        bundle = await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)

        assert [a.kind for a in bundle.alerts] == ["heat", "wind"]
        assert bundle.scene.windy is True

    @pytest.mark.asyncio
    async def test_weather_failure_is_fatal(self, make_client, happy_routes, respond, settings):
        happy_routes[OWM_WEATHER_URL] = respond({"message": "city not found"}, status_code=404)
        with pytest.raises(RemoteServiceError) as exc:
            await build_weather_bundle(make_client(happy_routes), "Atlantis", settings, now=DAYTIME)
        assert exc.value.service == "Weather"

    @pytest.mark.asyncio
    async def test_forecast_failure_is_fatal(self, make_client, happy_routes, respond, settings):
        """A failing forecast aborts the search even though weather succeeded.

        Implementation: Forecast route returns 500, everything else succeeds.
        Passing implies: Forecast is mandatory, unlike news and air quality.
        """
        happy_routes[OWM_FORECAST_URL] = respond({}, status_code=500)
        with pytest.raises(RemoteServiceError) as exc:
            await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)
        assert exc.value.service == "Forecast"

    @pytest.mark.asyncio
    async def test_weather_error_reported_before_forecast_error(self, make_client, happy_routes, respond, settings):
        happy_routes[OWM_WEATHER_URL] = respond({}, status_code=401)
        happy_routes[OWM_FORECAST_URL] = respond({}, status_code=500)
        with pytest.raises(RemoteServiceError) as exc:
            await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)
        assert exc.value.service == "Weather"
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_weather_is_fatal(self, make_client, happy_routes, respond, settings):
        happy_routes[OWM_WEATHER_URL] = respond({"name": "Delhi"})
        with pytest.raises(MalformedResponseError):
            await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)

    @pytest.mark.asyncio
    async def test_weather_failure_skips_air_quality(self, make_client, happy_routes, respond, settings):
        happy_routes[OWM_WEATHER_URL] = respond({}, status_code=404)
        client = make_client(happy_routes)
        with pytest.raises(RemoteServiceError):
            await build_weather_bundle(client, "Atlantis", settings, now=DAYTIME)
        called = [c.args[0] for c in client.get.call_args_list]
        assert OWM_AIR_POLLUTION_URL not in called

    @pytest.mark.asyncio
    async def test_news_failure_degrades_to_empty(self, make_client, happy_routes, respond, settings):
        happy_routes[NEWS_URL] = respond({"status": "error"}, status_code=429)
        bundle = await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)

        assert bundle.news == []
        assert bundle.current.temperature_c == 32.1
        assert len(bundle.forecast) == 6

    @pytest.mark.asyncio
    async def test_news_transport_error_degrades_to_empty(self, make_client, happy_routes, settings):
        happy_routes[NEWS_URL] = httpx.ConnectError("offline")
        bundle = await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)
        assert bundle.news == []

    @pytest.mark.asyncio
    async def test_air_quality_failure_degrades_to_unknown(self, make_client, happy_routes, respond, settings):
        """An air-pollution error leaves an Unknown AQI and still renders weather and forecast.

        Implementation: Air pollution route returns 500.
        Passing implies: Air quality is optional and never aborts the search.
        """
        happy_routes[OWM_AIR_POLLUTION_URL] = respond({}, status_code=500)
        bundle = await build_weather_bundle(make_client(happy_routes), "Delhi", settings, now=DAYTIME)

        assert bundle.air_quality == AirQuality.unknown()
        assert bundle.air_quality.label == "Unknown"
        assert bundle.current.temperature_c == 32.1
        assert len(bundle.forecast) == 6

    @pytest.mark.asyncio
    async def test_air_quality_uses_weather_coordinates(self, make_client, happy_routes, settings):
        client = make_client(happy_routes)
        await build_weather_bundle(client, "Delhi", settings, now=DAYTIME)

        air_calls = [c for c in client.get.call_args_list if c.args[0] == OWM_AIR_POLLUTION_URL]
        assert len(air_calls) == 1
        assert air_calls[0].kwargs["params"]["lat"] == 28.6
        assert air_calls[0].kwargs["params"]["lon"] == 77.2


class TestLookupCity:
    @pytest.mark.asyncio
    async def test_geocode_then_current_weather(self, make_client, respond):
        client = make_client(
            {
                GEOCODING_URL: respond(
                    {"results": [{"name": "Pune", "country": "India", "latitude": 18.52, "longitude": 73.86}]}
                ),
                OPEN_METEO_FORECAST_URL: respond(
                    {"current_weather": {"temperature": 27.4, "windspeed": 9.1, "time": "2025-02-01T10:00"}}
                ),
            }
        )
        result = await lookup_city(client, " Pune ")

        assert result.location.display_name == "Pune, India"
        assert result.current.temperature_c == 27.4
        weather_params = client.get.call_args_list[1].kwargs["params"]
        assert weather_params["latitude"] == 18.52

    @pytest.mark.asyncio
    async def test_unknown_city(self, make_client, respond):
        client = make_client({GEOCODING_URL: respond({"results": []})})
        with pytest.raises(LocationNotFoundError):
            await lookup_city(client, "Xyzzy")


class TestQuickCompare:
    @pytest.mark.asyncio
    async def test_mixed_success_and_failure(self, respond, delhi_weather):
        """Each city is fetched on its own; a failure shows N/A without affecting the rest.

        Implementation: Mock answers in sequence: success, 404, transport error.
        Passing implies: Quick compare never raises and preserves the city order.
        """
        client = AsyncMock(spec=httpx.AsyncClient)
        client.get.side_effect = [
            respond(delhi_weather),
            respond({}, status_code=404),
            httpx.ReadTimeout("slow"),
        ]

        rows = await quick_compare(client, ["Delhi", "Mumbai", "Chennai"], "k")

        assert [r.city for r in rows] == ["Delhi", "Mumbai", "Chennai"]
        assert rows[0].display == "32°C"
        assert rows[0].color == "#ef4444"
        assert rows[1].display == "N/A"
        assert rows[1].temperature_c is None
        assert rows[2].color == "#666"

    @pytest.mark.asyncio
    async def test_invalid_coordinates_show_na(self, respond, delhi_weather):
        bad = {**delhi_weather, "coord": {"lat": "n/a", "lon": 77.2}}
        client = AsyncMock(spec=httpx.AsyncClient)
        client.get.side_effect = [respond(bad), respond(delhi_weather)]

        rows = await quick_compare(client, ["Delhi", "Mumbai"], "k")

        assert rows[0].display == "N/A"
        assert rows[1].display == "32°C"
