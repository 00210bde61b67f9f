# ABOUTME: FastAPI app serving dashboard data as JSON to the browser page.
# ABOUTME: Routes search, lookup, quick-compare, share and favorites requests onto the app's DashboardSession.

import logging

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from src.aggregator import lookup_city, quick_compare
from src.config import Settings, load_settings
from src.deps import DashboardDeps, create_http_client
from src.errors import LocationNotFoundError, WeatherDashboardError
from src.models import WeatherBundle
from src.session import DashboardSession

logger = logging.getLogger(__name__)


class JSONRenderTarget:
    """Collects the outcome of a search so it can be written as one JSON response."""

    def __init__(self):
        self.status = 200
        self.payload: dict | None = None

    def show_loading(self, city: str) -> None:
        logger.debug("Loading weather for %s", city)

    def show_bundle(self, bundle: WeatherBundle) -> None:
        self.status = 200
        self.payload = bundle.model_dump(mode="json")

    def show_error(self, message: str) -> None:
        self.status = 502
        self.payload = {"error": message}


def _deps(request: Request) -> DashboardDeps:
    return request.app.state.deps


def _session(request: Request) -> DashboardSession:
    return request.app.state.session


def create_app(settings: Settings | None = None, client: httpx.AsyncClient | None = None) -> FastAPI:
    """Build the dashboard API around one shared HTTP client and one app-wide session."""
    settings = settings or load_settings()
    client = client or create_http_client(settings.http_retries)

    api = FastAPI(title="Weather Dashboard")
    api.state.deps = DashboardDeps(http_client=client, settings=settings)
    api.state.session = DashboardSession(settings)

    @api.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException):
        body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=body)

    @api.get("/api/weather")
    async def weather(request: Request, city: str = ""):
        session = _session(request)
        target = JSONRenderTarget()
        await session.search(_deps(request).http_client, city, target)
        if target.status != 200 and session.last_error is not None:
            target.payload["kind"] = session.last_error.kind
        return JSONResponse(status_code=target.status, content=target.payload)

    @api.get("/api/lookup")
    async def lookup(request: Request, city: str = ""):
        if not city.strip():
            raise HTTPException(status_code=400, detail="city is required")
        try:
            result = await lookup_city(_deps(request).http_client, city)
        except LocationNotFoundError as e:
            raise HTTPException(status_code=404, detail={"error": "Location not found", "kind": e.kind}) from e
        except WeatherDashboardError as e:
            raise HTTPException(status_code=502, detail={"error": str(e), "kind": e.kind}) from e
        payload = result.model_dump(mode="json")
        payload["display_name"] = result.location.display_name
        return payload

    @api.get("/api/compare")
    async def compare(request: Request):
        deps = _deps(request)
        rows = await quick_compare(
            deps.http_client, deps.settings.quick_compare_cities, deps.settings.openweather_api_key
        )
        return {"cities": [r.model_dump(mode="json") for r in rows]}

    @api.get("/api/share")
    async def share(request: Request):
        text = _session(request).share_text()
        if text is None:
            raise HTTPException(status_code=409, detail="No weather data to share. Search for a city first!")
        return {"text": text}

    @api.get("/api/favorites")
    async def list_favorites(request: Request):
        return {"favorites": _session(request).favorites_payload()}

    @api.post("/api/favorites")
    async def toggle_favorite(request: Request):
        session = _session(request)
        state = session.toggle_favorite()
        if state is None:
            raise HTTPException(status_code=409, detail="Search for a city first!")
        return {"is_favorite": state, "favorites": session.favorites_payload()}

    return api


app = create_app()
