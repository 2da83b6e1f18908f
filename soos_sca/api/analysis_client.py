"""Scan (Analysis) API client."""

from __future__ import annotations

from typing import Any

from soos_sca.api.base import SoosApiClient
from soos_sca.api.schemas import (
    CreateScanRequest,
    CreateScanResponse,
    PackageManagerScanFileFormats,
    ScanStatusResponse,
    UpdateScanStatusRequest,
    UploadManifestFilesResponse,
)
from soos_sca.enums import OutputFormat, ScanStatus, ScanType
from soos_sca.models import ScanStatusSnapshot


class AnalysisApiClient(SoosApiClient):
    """Create, feed, start and observe scans."""

    client_name = "Analysis API"

    async def create_scan(
        self,
        client_id: str,
        scan_type: ScanType,
        request: CreateScanRequest,
    ) -> CreateScanResponse:
        data = await self._request_json(
            "POST",
            f"clients/{client_id}/scan-types/{scan_type.value}/scans",
            json=request.to_wire(),
        )
        return CreateScanResponse.model_validate(data)

    async def get_supported_scan_file_formats(
        self, client_id: str
    ) -> list[PackageManagerScanFileFormats]:
        data = await self._request_json(
            "GET", f"clients/{client_id}/scan-types/sca/supported-scan-file-formats"
        )
        return [PackageManagerScanFileFormats.model_validate(item) for item in data or []]

    async def upload_manifest_files(
        self,
        client_id: str,
        project_hash: str,
        branch_hash: str,
        analysis_id: str,
        *,
        files: list[tuple[str, tuple[str, bytes]]],
        data: dict[str, str],
    ) -> UploadManifestFilesResponse:
        """POST one multipart batch of manifest files."""
        payload = await self._request_json(
            "POST",
            f"clients/{client_id}/projects/{project_hash}/branches/{branch_hash}"
            f"/scan-types/sca/scans/{analysis_id}/manifests",
            files=files,
            data=data,
        )
        return UploadManifestFilesResponse.model_validate(payload)

    async def start_scan(self, client_id: str, project_hash: str, analysis_id: str) -> None:
        await self._request(
            "PUT", f"clients/{client_id}/projects/{project_hash}/analysis/{analysis_id}"
        )

    async def get_scan_status(self, scan_status_url: str) -> ScanStatusSnapshot:
        data = await self._request_json("GET", scan_status_url)
        return ScanStatusSnapshot.from_response(ScanStatusResponse.model_validate(data))

    async def update_scan_status(
        self,
        client_id: str,
        project_hash: str,
        branch_hash: str,
        scan_type: ScanType,
        scan_id: str,
        status: ScanStatus,
        message: str,
    ) -> None:
        body = UpdateScanStatusRequest(status=status.value, message=message)
        await self._request(
            "PATCH",
            f"clients/{client_id}/projects/{project_hash}/branches/{branch_hash}"
            f"/scan-types/{scan_type.value}/scans/{scan_id}",
            json=body.to_wire(),
        )

    async def get_formatted_scan_result(
        self,
        client_id: str,
        project_hash: str,
        branch_hash: str,
        scan_type: ScanType,
        scan_id: str,
        output_format: OutputFormat,
    ) -> Any:
        return await self._request_json(
            "GET",
            f"clients/{client_id}/projects/{project_hash}/branches/{branch_hash}"
            f"/scan-types/{scan_type.value}/scans/{scan_id}/formats/{output_format.value.lower()}",
        )
