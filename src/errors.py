# ABOUTME: Exception types raised by the fetch adapters and the aggregation orchestrator.
# ABOUTME: Mandatory-source failures surface as these; optional sources never raise them to callers.


class WeatherDashboardError(Exception):
    """Base class for failures that abort a dashboard search."""

    kind = "dashboard_error"

    def __init__(self, service: str, message: str):
        super().__init__(message)
        self.service = service


class RemoteServiceError(WeatherDashboardError):
    """An upstream API answered with a non-2xx status or could not be reached.

    status_code is None when the request never produced a response (DNS, connect, timeout).
    """

    kind = "remote_service"

    def __init__(self, service: str, status_code: int | None = None):
        if status_code is None:
            message = f"{service} API unreachable"
        else:
            message = f"{service} API error: {status_code}"
        super().__init__(service, message)
        self.status_code = status_code


class MalformedResponseError(WeatherDashboardError):
    """An upstream API answered 2xx but the body lacks the fields we need."""

    kind = "malformed_response"

    def __init__(self, service: str, detail: str = "unexpected response shape"):
        super().__init__(service, f"{service} API returned malformed data: {detail}")
        self.detail = detail


class LocationNotFoundError(MalformedResponseError):
    """Geocoding returned no results for the requested name."""

    kind = "location_not_found"

    def __init__(self, service: str, name: str):
        super().__init__(service, f"no results for {name!r}")
        self.name = name
