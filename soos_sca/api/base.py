"""Async HTTP transport shared by the SOOS API clients.

No retries happen here: a failed call is normalised into
:class:`~soos_sca.services.SoosApiError` and propagated to the caller.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from soos_sca.constants import API_KEY_HEADER
from soos_sca.services import SoosApiError

log = structlog.get_logger("soos_sca.api")

# 403 responses only surface the coded message for licence/client problems.
_LICENSE_ERROR_CODES = frozenset(
    {
        "ClientLimitRequired",
        "InvalidClientContext",
        "InvalidLicense",
        "LicenseExpired",
        "LicenseScanTypeRequired",
        "TrialExpired",
    }
)

_STATUS_MESSAGES: dict[int, tuple[str, str]] = {
    401: ("Unauthorized", "Please verify your API Key and Client ID."),
    403: (
        "Forbidden",
        "Please verify your API Key and Client ID, ensuring they align with an "
        "appropriate Role within SOOS to run scans.",
    ),
    429: ("TooManyRequests", "You have been rate limited."),
    502: (
        "BadGateway",
        "Unable to connect to SOOS. Please verify your connection and try again "
        "in a few minutes.",
    ),
    503: ("ServiceUnavailable", "We are down for maintenance. Please try again in a few minutes."),
}


class SoosApiClient:
    """Thin async wrapper around a single SOOS API host."""

    client_name = "SOOS API"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={API_KEY_HEADER: api_key, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> SoosApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── internal ───────────────────────────────────────────────────────────

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        log.debug("api.request", client=self.client_name, method=method, url=url)
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            raise SoosApiError(
                f"An unexpected error occurred: {exc} ({self.client_name} - {method} {url})"
            ) from exc

        if response.is_error:
            raise self._to_api_error(response)

        log.debug(
            "api.response",
            client=self.client_name,
            method=method,
            url=url,
            status=response.status_code,
        )
        return response

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        response = await self._request(method, url, **kwargs)
        if not response.content:
            return None
        return response.json()

    def _to_api_error(self, response: httpx.Response) -> SoosApiError:
        """Map an error response onto a user-facing :class:`SoosApiError`."""
        status = response.status_code
        request = response.request
        where = f"{self.client_name} - {request.method} {request.url}"

        try:
            body = response.json()
        except ValueError:
            body = None

        code = body.get("code") if isinstance(body, dict) else None
        message = body.get("message") if isinstance(body, dict) else None
        if (
            status != 401
            and code
            and message
            and (status != 403 or code in _LICENSE_ERROR_CODES)
        ):
            return SoosApiError(
                f"{message} ({status} {code} - {where})", status_code=status, code=code
            )

        known = _STATUS_MESSAGES.get(status)
        if known is not None:
            label, text = known
            return SoosApiError(f"{text} ({label} - {where})", status_code=status, code=code)

        return SoosApiError(
            f"Unexpected error response. ({status} - {where})", status_code=status, code=code
        )
