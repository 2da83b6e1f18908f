"""Projects API client."""

from __future__ import annotations

from soos_sca.api.base import SoosApiClient
from soos_sca.api.schemas import ProjectSettings


class ProjectsApiClient(SoosApiClient):
    client_name = "Projects API"

    async def get_project_settings(self, client_id: str, project_hash: str) -> ProjectSettings:
        data = await self._request_json(
            "GET",
            f"clients/{client_id}/projects/{project_hash}/settings",
            params={"fallback": "true"},
        )
        return ProjectSettings.model_validate(data or {})
