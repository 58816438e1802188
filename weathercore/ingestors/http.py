"""Shared HTTP plumbing for provider ingestors.

Every provider call goes through :func:`get_json` so that transport, status
and payload failures surface with the same exception types regardless of
which endpoint produced them.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from weathercore.config import settings
from weathercore.errors import DecodingError, InvalidURL, NetworkError, RequestTimeout, ServerError

logger = logging.getLogger("weathercore.ingestors.http")

ModelT = TypeVar("ModelT", bound=BaseModel)


class ProviderClient:
    """Base for ingestors that talk JSON over HTTP GET."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self.user_agent = user_agent or settings.user_agent
        self.transport = transport

    @property
    def headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "User-Agent": self.user_agent}

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport, headers=self.headers
        )

    async def get_json(
        self, url: str, *, params: Optional[Mapping[str, Any]] = None, label: str = "provider"
    ) -> Any:
        async with self.client() as client:
            return await get_json(client, url, params=params, label=label)


def require_http_url(url: str | None, *, label: str) -> str:
    """Return ``url`` if it is an absolute http(s) URL, else raise InvalidURL."""

    if not url or not url.startswith(("http://", "https://")):
        raise InvalidURL(f"{label} URL is missing or not http(s): {url!r}")
    return url


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    label: str = "provider",
) -> Any:
    """Issue a GET and return the decoded JSON body.

    Raises RequestTimeout, InvalidURL, NetworkError, ServerError or
    DecodingError; httpx exceptions never escape this function.
    """

    try:
        response = await client.get(url, params=params)
    except httpx.TimeoutException as exc:
        logger.debug("%s request timed out: %s", label, exc)
        raise RequestTimeout(f"{label} request timed out") from exc
    except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
        logger.debug("%s request URL rejected: %s", label, exc)
        raise InvalidURL(f"{label} URL is invalid: {url!r}") from exc
    except httpx.RequestError as exc:
        logger.debug("%s request failed: %s", label, exc)
        raise NetworkError(f"{label} request failed: {exc}") from exc

    if not response.is_success:
        logger.debug(
            "%s returned error: status=%s body=%s",
            label,
            response.status_code,
            response.text[:200],
        )
        raise ServerError(response.status_code, f"{label} returned HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as exc:
        raise DecodingError(f"{label} response is not valid JSON") from exc


def decode(model_type: Type[ModelT], payload: Any, *, label: str = "provider") -> ModelT:
    """Validate a JSON payload against ``model_type``, raising DecodingError on mismatch."""

    try:
        return model_type.model_validate(payload)
    except ValidationError as exc:
        raise DecodingError(
            f"{label} response did not match {model_type.__name__}: {exc.error_count()} error(s)"
        ) from exc


__all__ = ["ProviderClient", "decode", "get_json", "require_http_url"]
