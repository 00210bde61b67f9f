# ABOUTME: Dependency container and HTTP client factory for the dashboard.
# ABOUTME: Holds the shared httpx.AsyncClient and Settings handed to the orchestrator and web surface.

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic_ai.retries import AsyncTenacityTransport, RetryConfig, wait_retry_after
from tenacity import retry_if_exception_type, stop_after_attempt

from src.config import Settings


class DashboardDeps(BaseModel):
    """Collaborators shared by every search: the HTTP client and the settings."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.AsyncClient
    settings: Settings


def create_http_client(retries: int = 0) -> httpx.AsyncClient:
    """Create the httpx client used by the fetch adapters.

    With retries=0 (the default) every adapter call is exactly one request. A positive value wraps
    the transport in tenacity so connection errors, timeouts, and 429/5xx responses are retried
    with exponential backoff, up to `retries` extra attempts.
    """
    if retries <= 0:
        return httpx.AsyncClient()

    transport = AsyncTenacityTransport(
        RetryConfig(
            retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout, httpx.HTTPStatusError)),
            wait=wait_retry_after(max_wait=30),
            stop=stop_after_attempt(retries + 1),
            reraise=True,
        ),
        validate_response=_raise_for_retryable_status,
    )
    return httpx.AsyncClient(transport=transport)


def _raise_for_retryable_status(response: httpx.Response) -> None:
    # 4xx other than 429 goes straight back to the adapter, which maps it to RemoteServiceError.
    if response.status_code == 429 or response.status_code >= 500:
        response.raise_for_status()
