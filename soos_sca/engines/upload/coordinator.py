"""UploadCoordinator: cap, group by package manager, upload each group."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import structlog

from soos_sca.api.analysis_client import AnalysisApiClient
from soos_sca.constants import MAX_MANIFESTS, UPLOAD_ERROR_MESSAGE
from soos_sca.engines.file_discovery.models import ManifestFile
from soos_sca.engines.upload.models import UploadFailure, UploadOutcome, UploadReport
from soos_sca.enums import ManifestStatus, ScanStatus
from soos_sca.models import ScanContext
from soos_sca.services import ManifestUploadError
from soos_sca.utils.strings import pluralize_template

log = structlog.get_logger("soos_sca.upload")


class ScanStatusUpdater(Protocol):
    async def update_scan_status(
        self,
        context: ScanContext,
        status: ScanStatus,
        message: str,
        scan_status_url: str | None = None,
    ) -> None: ...


def parent_folder(path: Path | str, working_directory: Path | str) -> str:
    """Directory of *path* relative to *working_directory*, as sent to the service.

    ``/work/src/package.json`` under ``/work`` gives ``/src``; a file directly
    in the working directory gives ``""``. A relative *path* is taken relative
    to *working_directory*. A file outside it keeps its absolute folder.
    """
    wd = Path(working_directory).resolve()
    file_path = Path(path)
    if not file_path.is_absolute():
        file_path = wd / file_path

    for candidate in (file_path, file_path.resolve()):
        try:
            rel = candidate.parent.relative_to(wd)
        except ValueError:
            continue
        return "" if rel == Path(".") else os.sep + str(rel)
    return str(file_path.parent)


def build_form(
    files: Sequence[ManifestFile], working_directory: Path | str
) -> tuple[list[tuple[str, tuple[str, bytes]]], dict[str, str]]:
    """Multipart fields for one group: ``file``, ``file1``, ... and matching ``parentFolder*``."""
    form_files: list[tuple[str, tuple[str, bytes]]] = []
    data: dict[str, str] = {}
    for index, manifest in enumerate(files):
        suffix = str(index) if index > 0 else ""
        form_files.append((f"file{suffix}", (manifest.name, Path(manifest.path).read_bytes())))
        data[f"parentFolder{suffix}"] = parent_folder(manifest.path, working_directory)
    return form_files, data


def group_by_package_manager(files: Sequence[ManifestFile]) -> dict[str, list[ManifestFile]]:
    groups: dict[str, list[ManifestFile]] = {}
    for manifest in files:
        groups.setdefault(manifest.package_manager, []).append(manifest)
    return groups


class UploadCoordinator:
    """Upload discovered manifests, tolerating failure of individual groups.

    Groups are uploaded one after another so the log reads in a stable order.
    The run only fails when every group failed; in that case the scan is
    first marked Incomplete through *status_updater*.
    """

    def __init__(
        self,
        analysis_client: AnalysisApiClient,
        status_updater: ScanStatusUpdater,
        max_manifests: int = MAX_MANIFESTS,
    ) -> None:
        self._analysis_client = analysis_client
        self._status_updater = status_updater
        self._max_manifests = max_manifests

    async def upload(
        self,
        context: ScanContext,
        manifest_files: Sequence[ManifestFile],
        working_directory: Path | str,
    ) -> UploadReport:
        working_directory = Path(working_directory).resolve()
        to_upload = list(manifest_files[: self._max_manifests])
        skipped = list(manifest_files[self._max_manifests :])
        if skipped:
            log.info(
                "upload.max_manifests_exceeded",
                max_manifests=self._max_manifests,
                summary=(
                    f"{pluralize_template(len(manifest_files), 'file was', 'files were')} "
                    f"detected, and {pluralize_template(len(skipped), 'file')} "
                    "will not be uploaded"
                ),
            )
            for manifest in skipped:
                log.info("upload.manifest_skipped", name=manifest.name, path=str(manifest.path))

        report = UploadReport(skipped=skipped)
        for package_manager, files in group_by_package_manager(to_upload).items():
            report.results.append(
                await self._upload_group(context, package_manager, files, working_directory)
            )

        if report.all_failed:
            await self._status_updater.update_scan_status(
                context,
                ScanStatus.Incomplete,
                UPLOAD_ERROR_MESSAGE,
                scan_status_url=context.scan_status_url,
            )
            raise ManifestUploadError(UPLOAD_ERROR_MESSAGE)

        return report

    async def _upload_group(
        self,
        context: ScanContext,
        package_manager: str,
        files: list[ManifestFile],
        working_directory: Path | str,
    ) -> UploadOutcome | UploadFailure:
        try:
            form_files, data = await asyncio.to_thread(build_form, files, working_directory)
            response = await self._analysis_client.upload_manifest_files(
                context.client_id,
                context.project_hash,
                context.branch_hash,
                context.analysis_id,
                files=form_files,
                data=data,
            )
        except Exception as exc:
            # Other package managers are still uploaded.
            log.warning("upload.group_failed", package_manager=package_manager, error=str(exc))
            return UploadFailure(package_manager=package_manager, files=files, error=str(exc))

        log.info(
            "upload.group_uploaded",
            package_manager=package_manager,
            message=response.message,
            manifests=[
                f"{m.name}: {m.status_message}" for m in response.manifests or []
            ],
        )
        for manifest in response.manifests or []:
            if manifest.status and manifest.status != ManifestStatus.Valid.value:
                log.warning(
                    "upload.manifest_not_valid",
                    package_manager=package_manager,
                    name=manifest.name,
                    status=manifest.status,
                    message=manifest.status_message,
                )
        return UploadOutcome(package_manager=package_manager, files=files, response=response)
