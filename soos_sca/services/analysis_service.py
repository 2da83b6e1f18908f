"""AnalysisService: drive one scan from creation to its settled status."""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

import click
import httpx
import structlog

from soos_sca.api.analysis_client import AnalysisApiClient
from soos_sca.api.projects_client import ProjectsApiClient
from soos_sca.api.schemas import (
    ApplicationStatusMessage,
    ContributingDeveloperAudit,
    CreateScanRequest,
)
from soos_sca.api.user_client import UserApiClient
from soos_sca.constants import (
    FILE_ENCODING,
    NO_MANIFESTS_MESSAGE,
    SARIF_OUTPUT_FILENAME,
    STATUS_DELAY_SECONDS,
)
from soos_sca.engines.content_hasher import search_hashable_files, write_hashes_manifests
from soos_sca.engines.file_discovery import (
    ManifestFile,
    filter_package_managers,
    find_analysis_files,
    search_manifest_files,
)
from soos_sca.engines.upload import UploadCoordinator, UploadReport
from soos_sca.enums import (
    ContributingDeveloperSource,
    FileMatchTypeEnum,
    IntegrationName,
    OutputFormat,
    ScanStatus,
    ScanType,
    SeverityEnum,
)
from soos_sca.models import ScanContext, ScanSetupParams
from soos_sca.services import NoManifestsFoundError, ScanCancelledError
from soos_sca.services.report import get_final_scan_status_message
from soos_sca.utils.strings import from_camel_to_title_case, pluralize_template

log = structlog.get_logger("soos_sca.scan")

SleepFn = Callable[[float], Awaitable[None]]

# CI variable that names the developer who triggered the build.
CONTRIBUTING_DEVELOPER_ENV: dict[IntegrationName, str] = {
    IntegrationName.AzureDevOps: "Build.RequestedFor",
    IntegrationName.AWSCodeBuild: "CODEBUILD_BUILD_INITIATOR",
    IntegrationName.Bamboo: "bamboo_planRepository_1_username",
    IntegrationName.BitBucket: "BITBUCKET_STEP_TRIGGERER_UUID",
    IntegrationName.CircleCI: "CIRCLE_USERNAME",
    IntegrationName.CodeShip: "CI_COMMITTER_USERNAME",
    IntegrationName.GitHub: "GITHUB_ACTOR",
    IntegrationName.GitLab: "GITLAB_USER_LOGIN",
    IntegrationName.Jenkins: "CHANGE_AUTHOR",
    IntegrationName.SoosCsa: "SOOS_CONTRIBUTING_DEVELOPER",
    IntegrationName.SoosDast: "SOOS_CONTRIBUTING_DEVELOPER",
    IntegrationName.SoosSast: "SOOS_CONTRIBUTING_DEVELOPER",
    IntegrationName.SoosSca: "SOOS_CONTRIBUTING_DEVELOPER",
    IntegrationName.SoosSbom: "SOOS_CONTRIBUTING_DEVELOPER",
    IntegrationName.TeamCity: "TEAMCITY_BUILD_TRIGGEREDBY_USERNAME",
    IntegrationName.TravisCI: "TRAVIS_COMMIT",
    IntegrationName.VisualStudio: "SOOS_CONTRIBUTING_DEVELOPER",
    IntegrationName.VisualStudioCode: "SOOS_CONTRIBUTING_DEVELOPER",
}

_INFO_SEVERITIES = frozenset(
    s.value
    for s in (SeverityEnum.Unknown, SeverityEnum.None_, SeverityEnum.Info, SeverityEnum.Low)
)
_WARNING_SEVERITIES = frozenset({SeverityEnum.Medium.value, SeverityEnum.High.value})

_FAILED_UPDATE_STATUSES = frozenset({ScanStatus.Incomplete, ScanStatus.Error})


def detect_contributing_developer(
    integration_name: IntegrationName,
) -> ContributingDeveloperAudit | None:
    """Read the contributing developer from the CI environment, if set."""
    env_name = CONTRIBUTING_DEVELOPER_ENV.get(integration_name)
    if env_name is None:
        return None
    developer = os.environ.get(env_name)
    if not developer:
        return None
    return ContributingDeveloperAudit(
        source=ContributingDeveloperSource.EnvironmentVariable.value,
        source_name=env_name,
        contributing_developer_id=developer,
    )


class AnalysisService:
    """Scan lifecycle over the Analysis, Projects and User APIs.

    ``sleep`` and ``status_delay`` are injectable so polling can be driven
    without real delays.
    """

    def __init__(
        self,
        analysis_client: AnalysisApiClient,
        projects_client: ProjectsApiClient,
        user_client: UserApiClient,
        *,
        status_delay: float = STATUS_DELAY_SECONDS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.analysis_client = analysis_client
        self.projects_client = projects_client
        self.user_client = user_client
        self._status_delay = status_delay
        self._sleep = sleep

    @classmethod
    def create(
        cls,
        api_key: str,
        api_url: str,
        *,
        timeout: float = 60.0,
        status_delay: float = STATUS_DELAY_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> AnalysisService:
        """Build the service with one client per API host derived from *api_url*."""
        projects_url = api_url.replace("api.", "api-projects.", 1)
        user_url = api_url.replace("api.", "api-user.", 1)
        return cls(
            AnalysisApiClient(api_key, api_url, timeout=timeout, transport=transport),
            ProjectsApiClient(api_key, projects_url, timeout=timeout, transport=transport),
            UserApiClient(api_key, user_url, timeout=timeout, transport=transport),
            status_delay=status_delay,
        )

    async def close(self) -> None:
        await self.analysis_client.close()
        await self.projects_client.close()
        await self.user_client.close()

    async def __aenter__(self) -> AnalysisService:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── setup ─────────────────────────────────────────────────────────────

    @staticmethod
    def _log_status_message(message: ApplicationStatusMessage | None) -> None:
        if message is None:
            return

        if message.severity in _WARNING_SEVERITIES:
            log.warning("status.message", message=message.message, severity=message.severity)
        elif message.severity == SeverityEnum.Critical.value:
            log.error("status.message", message=message.message, severity=message.severity)
        else:
            if message.severity not in _INFO_SEVERITIES:
                log.debug("status.unknown_severity", severity=message.severity)
            log.info("status.message", message=message.message, severity=message.severity)

        if message.url:
            link_text = f"[{message.link_text}]" if message.link_text else ""
            log.info("status.link", link=f"{link_text}({message.url})")

    async def setup_scan(self, params: ScanSetupParams) -> ScanContext:
        """Surface the application banners, then create the scan record."""
        log.info("scan.checking_status", client_id=params.client_id)
        application_status = await self.user_client.get_application_status(params.client_id)
        self._log_status_message(application_status.status_message)
        self._log_status_message(application_status.client_message)

        log.info(
            "scan.creating",
            scan_type=params.scan_type.value,
            project_name=params.project_name,
            branch_name=params.branch_name,
        )

        audit = list(params.contributing_developer_audit)
        if not audit:
            log.info("scan.integration", integration_name=params.integration_name.value)
            detected = detect_contributing_developer(params.integration_name)
            if detected is not None:
                audit.append(detected)

        request = CreateScanRequest(
            project_name=params.project_name,
            commit_hash=params.commit_hash,
            branch=params.branch_name,
            build_version=params.build_version,
            build_uri=params.build_uri,
            branch_uri=params.branch_uri,
            integration_type=params.integration_type.value,
            operating_environment=params.operating_environment,
            integration_name=params.integration_name.value,
            app_version=params.app_version,
            script_version=params.script_version,
            contributing_developer_audit=audit,
            tool_name=params.tool_name,
            tool_version=params.tool_version,
        )
        response = await self.analysis_client.create_scan(
            params.client_id, params.scan_type, request
        )

        context = ScanContext(
            client_id=params.client_id,
            project_hash=response.project_hash,
            branch_hash=response.branch_hash,
            analysis_id=response.scan_id or response.analysis_id,
            scan_type=params.scan_type,
            scan_url=response.scan_url,
            scan_status_url=response.scan_status_url,
        )
        log.info(
            "scan.created",
            project_hash=context.project_hash,
            branch_hash=context.branch_hash,
            scan_id=context.analysis_id,
        )
        return context

    # ── files ─────────────────────────────────────────────────────────────

    async def find_manifest_files(
        self,
        context: ScanContext,
        source_code_path: Path | str,
        *,
        files_to_exclude: Sequence[str] | None = None,
        directories_to_exclude: Sequence[str] | None = None,
        package_managers: Sequence[str] | None = None,
        file_match_type: FileMatchTypeEnum = FileMatchTypeEnum.Manifest,
    ) -> list[ManifestFile]:
        """Discover manifests and/or hash manifests under *source_code_path*.

        Nothing found marks the scan Incomplete and raises
        :class:`NoManifestsFoundError`.
        """
        formats = await self.analysis_client.get_supported_scan_file_formats(context.client_id)
        formats = filter_package_managers(formats, package_managers)
        settings = await self.projects_client.get_project_settings(
            context.client_id, context.project_hash
        )
        base_dir = Path(source_code_path).resolve()
        log.info("scan.searching_files", source_code_path=str(base_dir))

        found: list[ManifestFile] = []
        if file_match_type in (FileMatchTypeEnum.Manifest, FileMatchTypeEnum.ManifestAndFileHash):
            found.extend(
                await asyncio.to_thread(
                    search_manifest_files,
                    base_dir,
                    formats,
                    bool(settings.use_lock_file),
                    files_to_exclude,
                    directories_to_exclude,
                )
            )
        if file_match_type in (FileMatchTypeEnum.FileHash, FileMatchTypeEnum.ManifestAndFileHash):
            hashes = await asyncio.to_thread(
                search_hashable_files, base_dir, formats, files_to_exclude, directories_to_exclude
            )
            found.extend(await asyncio.to_thread(write_hashes_manifests, base_dir, hashes))

        log.info("scan.files_found", summary=pluralize_template(len(found), "manifest file"))

        if not found:
            await self.update_scan_status(
                context,
                ScanStatus.Incomplete,
                NO_MANIFESTS_MESSAGE,
                scan_status_url=context.scan_status_url,
            )
            raise NoManifestsFoundError(NO_MANIFESTS_MESSAGE)
        return found

    async def find_analysis_files(
        self,
        scan_type: ScanType,
        path: Path | str,
        pattern: str,
        files_to_exclude: Sequence[str] | None = None,
        directories_to_exclude: Sequence[str] | None = None,
        max_files: int = 0,
    ) -> tuple[list[Path], bool]:
        return await asyncio.to_thread(
            find_analysis_files,
            scan_type,
            Path(path),
            pattern,
            files_to_exclude,
            directories_to_exclude,
            max_files,
        )

    async def add_manifest_files_to_scan(
        self,
        context: ScanContext,
        manifest_files: Sequence[ManifestFile],
        working_directory: Path | str,
    ) -> UploadReport:
        coordinator = UploadCoordinator(self.analysis_client, self)
        return await coordinator.upload(context, manifest_files, working_directory)

    # ── analysis ──────────────────────────────────────────────────────────

    async def start_scan(self, context: ScanContext) -> None:
        log.info("scan.starting", scan_type=context.scan_type.value)
        await self.analysis_client.start_scan(
            context.client_id, context.project_hash, context.analysis_id
        )
        log.info("scan.started", scan_url=context.scan_url)

    async def _pause(self, cancel_event: asyncio.Event | None) -> None:
        if cancel_event is None:
            await self._sleep(self._status_delay)
            return

        sleeper = asyncio.ensure_future(self._sleep(self._status_delay))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
        if cancel_event.is_set():
            raise ScanCancelledError("status polling was cancelled")

    async def wait_for_scan_to_finish(
        self,
        context: ScanContext,
        *,
        cancel_event: asyncio.Event | None = None,
        colorize: bool = True,
    ) -> ScanStatus:
        """Poll until the scan reports complete on two consecutive checks.

        There is no attempt ceiling; pass *cancel_event* (or wrap the call
        in a timeout) to stop early. Returns the settled status.
        """
        confirming = False
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise ScanCancelledError("status polling was cancelled")

            snapshot = await self.analysis_client.get_scan_status(context.scan_status_url)
            if not snapshot.is_complete:
                confirming = False
                status = from_camel_to_title_case(snapshot.status.value)
                log.info("scan.status", status=f"{status}...")
                await self._pause(cancel_event)
                continue

            if not confirming:
                # A first "complete" may not carry settled counts yet.
                confirming = True
                await self._pause(cancel_event)
                continue
            break

        if snapshot.errors:
            log.warning("scan.errors", errors=[e.to_wire() for e in snapshot.errors])

        click.echo(
            get_final_scan_status_message(snapshot, context.scan_type, context.scan_url, colorize)
        )
        return snapshot.status

    async def update_scan_status(
        self,
        context: ScanContext,
        status: ScanStatus,
        message: str,
        scan_status_url: str | None = None,
    ) -> None:
        """Push *status* unless the remote scan already completed.

        The remote status is only checked when *scan_status_url* is given.
        """
        if scan_status_url is not None:
            current = await self.analysis_client.get_scan_status(scan_status_url)
            if current.is_complete:
                log.debug(
                    "scan.status_update_skipped",
                    requested=status.value,
                    current=current.status.value,
                )
                return

        await self.analysis_client.update_scan_status(
            context.client_id,
            context.project_hash,
            context.branch_hash,
            context.scan_type,
            context.analysis_id,
            status,
            message,
        )
        if status in _FAILED_UPDATE_STATUSES:
            log.error("scan.status_updated", status=status.value, message=message)
        else:
            log.info("scan.status_updated", status=status.value, message=message)

    # ── output ────────────────────────────────────────────────────────────

    async def generate_formatted_output(
        self,
        context: ScanContext,
        project_name: str,
        output_format: OutputFormat,
        working_directory: Path | str | None,
    ) -> Path | None:
        """Fetch the scan result in *output_format* and write it to the working directory.

        Returns the written path, or ``None`` when nothing was written.
        """
        log.info("output.generating", output_format=output_format.value, project_name=project_name)
        output = await self.analysis_client.get_formatted_scan_result(
            context.client_id,
            context.project_hash,
            context.branch_hash,
            context.scan_type,
            context.analysis_id,
            output_format,
        )
        if not output:
            log.warning("output.empty", output_format=output_format.value)
            return None

        rendered = json.dumps(output, indent=2)
        log.debug("output.generated", output_format=output_format.value, output=rendered)
        if not working_directory:
            return None

        path = Path(working_directory) / SARIF_OUTPUT_FILENAME
        await asyncio.to_thread(path.write_text, rendered, encoding=FILE_ENCODING)
        log.info("output.written", output_format=output_format.value, path=str(path))
        return path
