# ABOUTME: Pure helpers that turn raw weather fields into display values.
# ABOUTME: Greeting, advice, AQI label, day/night, backdrop scene, UV estimate, visibility, alerts, forecast window.

from datetime import datetime, timedelta, timezone

from src.models import (
    AirQuality,
    BackdropScene,
    CurrentConditions,
    ForecastEntry,
    SunTimes,
    UVEstimate,
    VisibilityReport,
    WeatherAlert,
)

AQI_LEVELS = {
    1: ("Good", "#00e400"),
    2: ("Fair", "#ffff00"),
    3: ("Moderate", "#ff7e00"),
    4: ("Poor", "#ff0000"),
    5: ("Very Poor", "#7e0023"),
}
UNKNOWN_AQI = ("Unknown", "#666")

# Wind speed (m/s) above which the wind overlay is shown.
WINDY_THRESHOLD = 4.5

HEAT_ALERT_C = 40
HUMIDITY_ALERT_PCT = 85
WIND_ALERT_MS = 10

NEUTRAL_COLOR = "#666"


def greeting_for_hour(hour: int) -> str:
    """Time-of-day greeting for a local hour (0-23)."""
    if 5 <= hour < 12:
        return "Good Morning ☀️"
    if 12 <= hour < 17:
        return "Good Afternoon 🌞"
    if 17 <= hour < 20:
        return "Good Evening 🌇"
    return "Good Night 🌙"


def weather_advice(condition: str) -> str:
    """One-line advice from a condition string, matched case-insensitively."""
    weather = condition.lower()
    if "rain" in weather:
        return "Rainy – Carry an umbrella!"
    if "cloud" in weather:
        return "Cloudy – May stay dry"
    if "clear" in weather:
        return "Sunny day – No rain expected"
    return "Mild weather – Enjoy your day!"


def aqi_info(level) -> tuple[str, str]:
    """Label and colour for an AQI level; anything outside 1-5 is Unknown."""
    if isinstance(level, bool) or not isinstance(level, int):
        return UNKNOWN_AQI
    return AQI_LEVELS.get(level, UNKNOWN_AQI)


def parse_air_quality(payload: dict | None) -> AirQuality:
    """Summarise an air_pollution response. Missing or malformed data yields AirQuality.unknown()."""
    if not isinstance(payload, dict):
        return AirQuality.unknown()
    entries = payload.get("list")
    if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
        return AirQuality.unknown()

    first = entries[0]
    main = first.get("main")
    if not isinstance(main, dict) or "aqi" not in main:
        return AirQuality.unknown()
    components = first.get("components")
    if not isinstance(components, dict):
        components = {}

    level = main["aqi"]
    label, color = aqi_info(level)
    try:
        return AirQuality(
            aqi=level if isinstance(level, int) and not isinstance(level, bool) else 0,
            label=label,
            color=color,
            pm25=round(float(components.get("pm2_5") or 0), 1),
            pm10=round(float(components.get("pm10") or 0), 1),
        )
    except (TypeError, ValueError):
        return AirQuality.unknown()


def is_night(now: datetime, sunrise: int | None = None, sunset: int | None = None) -> bool:
    """Compare now against sunrise/sunset epochs, or fall back to a 06:00-18:59 local day."""
    if sunrise is None or sunset is None:
        return now.hour < 6 or now.hour > 18
    ts = now.timestamp()
    return ts < sunrise or ts > sunset


def backdrop_scene(condition: str, wind_speed: float, night: bool) -> BackdropScene:
    """Pick the background category and animation layers for a condition.

    Matching order: thunderstorm/storm, rain/drizzle, snow, mist/fog/haze, clear, cloud, then
    a day/night default. The wind overlay is independent of the category.
    """
    weather = condition.lower()
    if "thunderstorm" in weather or "storm" in weather:
        category, animations = "thunderstorm", ["thunderstorm", "rain"]
    elif "rain" in weather or "drizzle" in weather:
        category, animations = "rain", ["rain"]
    elif "snow" in weather:
        category, animations = "snow", ["snow"]
    elif "mist" in weather or "fog" in weather or "haze" in weather:
        category, animations = "mist", ["cloud"]
    elif "clear" in weather:
        category = "clear-night" if night else "clear-day"
        animations = [] if night else ["sun"]
    elif "cloud" in weather:
        category = "clouds-night" if night else "clouds-day"
        animations = ["cloud"]
    else:
        category, animations = ("clear-night" if night else "clear-day"), []

    windy = wind_speed > WINDY_THRESHOLD
    if windy:
        animations = animations + ["wind"]
    return BackdropScene(category=category, animations=animations, windy=windy)


def temperature_color(temp: float) -> str:
    if temp <= 10:
        return "#3b82f6"
    if temp <= 20:
        return "#10b981"
    if temp <= 30:
        return "#f59e0b"
    return "#ef4444"


def estimate_uv(hour: int, condition_main: str) -> UVEstimate:
    """Rough UV index from the local hour and the main condition.

    There is no UV source behind this; the step values are placeholders.
    """
    if 10 <= hour <= 16:
        if condition_main == "Clear":
            index = 8
        elif condition_main == "Clouds":
            index = 5
        else:
            index = 3
    elif 8 <= hour <= 18:
        index = 4
    else:
        index = 0

    if index <= 2:
        return UVEstimate(index=index, level="Low", color="#10b981")
    if index <= 5:
        return UVEstimate(index=index, level="Moderate", color="#f59e0b")
    if index <= 7:
        return UVEstimate(index=index, level="High", color="#ef4444")
    return UVEstimate(index=index, level="Very High", color="#7c2d12")


def visibility_report(meters: int | None) -> VisibilityReport:
    if meters is None:
        return VisibilityReport(distance="N/A", status="N/A")
    if meters >= 10000:
        status = "Excellent"
    elif meters >= 5000:
        status = "Good"
    elif meters >= 2000:
        status = "Moderate"
    else:
        status = "Poor"
    return VisibilityReport(distance=f"{meters / 1000:.1f} km", status=status)


def weather_alerts(current: CurrentConditions) -> list[WeatherAlert]:
    """Threshold alerts in fixed order: heat, humidity, wind, rain."""
    alerts = []
    if current.temperature_c > HEAT_ALERT_C:
        alerts.append(WeatherAlert(kind="heat", message="Extreme heat warning - Stay hydrated!"))
    if current.humidity_pct > HUMIDITY_ALERT_PCT:
        alerts.append(WeatherAlert(kind="humidity", message="High humidity - Thunderstorms possible"))
    if current.wind_speed_ms > WIND_ALERT_MS:
        alerts.append(WeatherAlert(kind="wind", message="Strong winds - Be cautious outdoors"))
    if current.condition_main == "Rain":
        alerts.append(WeatherAlert(kind="rain", message="Rain expected - Carry umbrella"))
    return alerts


def upcoming_forecast(entries: list[ForecastEntry], now: datetime, window: int = 6) -> list[ForecastEntry]:
    """Strictly-future entries in chronological order, truncated to window."""
    future = [e for e in entries if e.timestamp > now]
    future.sort(key=lambda e: e.timestamp)
    return future[:window]


def sun_times(sunrise: int | None, sunset: int | None, tz_offset_s: int = 0) -> SunTimes | None:
    """Sunrise and sunset as datetimes in the city's own UTC offset."""
    if sunrise is None or sunset is None:
        return None
    tz = timezone(timedelta(seconds=tz_offset_s))
    return SunTimes(
        sunrise=datetime.fromtimestamp(sunrise, tz),
        sunset=datetime.fromtimestamp(sunset, tz),
    )
