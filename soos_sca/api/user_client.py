"""User API client: application-wide status banners."""

from __future__ import annotations

import structlog

from soos_sca.api.base import SoosApiClient
from soos_sca.api.schemas import ApplicationStatus, ApplicationStatusMessage
from soos_sca.constants import APPLICATION_STATUS_FALLBACK_MESSAGE
from soos_sca.enums import SeverityEnum
from soos_sca.services import SoosApiError

log = structlog.get_logger("soos_sca.api")


class UserApiClient(SoosApiClient):
    client_name = "User API"

    async def get_application_status(self, client_id: str) -> ApplicationStatus:
        """Return the status banners for *client_id*.

        The banner is advisory, so a failed call is turned into a fixed
        "verify your credentials" message instead of raising.
        """
        try:
            data = await self._request_json("GET", f"clients/{client_id}/application-status")
            return ApplicationStatus.model_validate(data or {})
        except SoosApiError as exc:
            log.debug("api.application_status_failed", error=str(exc))
            return ApplicationStatus(
                status_message=ApplicationStatusMessage(
                    message=APPLICATION_STATUS_FALLBACK_MESSAGE,
                    severity=SeverityEnum.High.value,
                    is_dismissible=False,
                    url="",
                    link_text="",
                ),
            )
