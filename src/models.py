# ABOUTME: Pydantic BaseModels for upstream weather, air-quality and news data plus derived display values.
# ABOUTME: WeatherBundle is the render-ready result of one dashboard search.

from datetime import datetime

from pydantic import BaseModel


class Location(BaseModel):
    """Resolved place with coordinates, from geocoding or the weather response."""

    name: str
    country_code: str | None = None
    latitude: float
    longitude: float

    @property
    def display_name(self) -> str:
        if self.country_code:
            return f"{self.name}, {self.country_code}"
        return self.name


class CurrentConditions(BaseModel):
    """Current observation from the OpenWeatherMap /weather endpoint (metric units)."""

    temperature_c: float
    feels_like_c: float | None = None
    humidity_pct: int
    pressure_hpa: int | None = None
    wind_speed_ms: float = 0.0
    cloudiness_pct: int | None = None
    visibility_m: int | None = None
    condition_main: str
    condition_description: str = ""
    icon_id: str = ""
    sunrise_epoch: int | None = None
    sunset_epoch: int | None = None
    timezone_offset_s: int = 0


class CurrentWeatherSnapshot(BaseModel):
    """Open-Meteo current_weather block used by the plain city lookup."""

    temperature_c: float
    wind_speed_kmh: float
    wind_direction_deg: float | None = None
    weather_code: int | None = None
    time: datetime


class ForecastEntry(BaseModel):
    """One 3-hourly forecast step."""

    timestamp: datetime
    temperature_c: float
    condition_main: str
    condition_description: str = ""
    icon_id: str = ""


class AirQuality(BaseModel):
    """Air pollution summary. aqi is 0 when the upstream data is missing."""

    aqi: int = 0
    label: str = "Unknown"
    color: str = "#666"
    pm25: float = 0.0
    pm10: float = 0.0

    @classmethod
    def unknown(cls) -> "AirQuality":
        return cls()

    @property
    def is_known(self) -> bool:
        return self.label != "Unknown"


class NewsArticle(BaseModel):
    """Climate news item normalised across the two upstream field conventions."""

    title: str = "Weather Update"
    description: str = "Latest weather information available."
    url: str | None = None
    published_at: datetime | None = None

    def summary(self, limit: int = 150) -> str:
        if len(self.description) <= limit:
            return self.description
        return self.description[:limit] + "..."


class WeatherAlert(BaseModel):
    """Threshold-based warning shown in the alerts panel."""

    kind: str
    message: str


class UVEstimate(BaseModel):
    """Hour-and-condition heuristic, not a measurement."""

    index: int
    level: str
    color: str


class VisibilityReport(BaseModel):
    distance: str
    status: str


class BackdropScene(BaseModel):
    """Background category and the animation layers the page should show."""

    category: str
    animations: list[str] = []
    windy: bool = False


class SunTimes(BaseModel):
    sunrise: datetime
    sunset: datetime


class WeatherBundle(BaseModel):
    """Everything the page needs to render one search result."""

    location: Location
    current: CurrentConditions
    forecast: list[ForecastEntry] = []
    air_quality: AirQuality = AirQuality()
    news: list[NewsArticle] = []
    greeting: str
    advice: str
    is_night: bool
    scene: BackdropScene
    fetched_at: datetime
    uv: UVEstimate | None = None
    visibility: VisibilityReport | None = None
    alerts: list[WeatherAlert] = []
    sun: SunTimes | None = None


class CityLookup(BaseModel):
    """Result of the plain geocode + current-weather lookup."""

    location: Location
    current: CurrentWeatherSnapshot


class QuickTemperature(BaseModel):
    """One cell of the quick comparison strip."""

    city: str
    temperature_c: float | None = None
    display: str = "N/A"
    color: str = "#666"


class FavoriteCity(BaseModel):
    """Saved city entry, same shape as the browser's stored favorites list."""

    name: str
    temp: float
    condition: str
    icon: str
    last_updated: datetime
