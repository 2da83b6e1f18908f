"""ScaScanRunner: the full SCA pipeline on top of AnalysisService."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from soos_sca.constants import SCAN_ERROR_MESSAGE
from soos_sca.engines.upload import UploadReport
from soos_sca.enums import FileMatchTypeEnum, OutputFormat, ScanStatus
from soos_sca.models import ScanContext, ScanSetupParams
from soos_sca.services import ConfigurationError
from soos_sca.services.analysis_service import AnalysisService

log = structlog.get_logger("soos_sca.runner")


@dataclass
class ScaScanOptions:
    """Everything one SCA run needs besides the API credentials."""

    setup: ScanSetupParams
    source_code_path: Path
    working_directory: Path
    files_to_exclude: list[str] = field(default_factory=list)
    directories_to_exclude: list[str] = field(default_factory=list)
    package_managers: list[str] = field(default_factory=list)
    file_match_type: FileMatchTypeEnum = FileMatchTypeEnum.Manifest
    output_format: OutputFormat | None = None
    colorize: bool = True


@dataclass
class ScaScanResult:
    context: ScanContext
    status: ScanStatus
    upload: UploadReport | None = None
    output_path: Path | None = None

    @property
    def is_success(self) -> bool:
        return self.status == ScanStatus.Finished


class ScaScanRunner:
    """setup -> find files -> upload -> start -> wait -> optional formatted output."""

    def __init__(self, analysis_service: AnalysisService) -> None:
        self._service = analysis_service

    async def run(
        self,
        options: ScaScanOptions,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ScaScanResult:
        """Run one scan end to end.

        Any failure after the scan record exists marks the scan Error
        (unless it already settled) and is re-raised.
        """
        if not Path(options.source_code_path).is_dir():
            raise ConfigurationError(
                f"source code path is not a directory: {options.source_code_path}"
            )

        context = await self._service.setup_scan(options.setup)

        try:
            files = await self._service.find_manifest_files(
                context,
                options.source_code_path,
                files_to_exclude=options.files_to_exclude,
                directories_to_exclude=options.directories_to_exclude,
                package_managers=options.package_managers,
                file_match_type=options.file_match_type,
            )
            upload = await self._service.add_manifest_files_to_scan(
                context, files, options.working_directory
            )
            await self._service.start_scan(context)
            status = await self._service.wait_for_scan_to_finish(
                context, cancel_event=cancel_event, colorize=options.colorize
            )

            output_path = None
            if options.output_format is not None:
                output_path = await self._service.generate_formatted_output(
                    context,
                    options.setup.project_name,
                    options.output_format,
                    options.working_directory,
                )
        except Exception as exc:
            log.error("scan.failed", scan_id=context.analysis_id, error=str(exc))
            try:
                await self._service.update_scan_status(
                    context,
                    ScanStatus.Error,
                    SCAN_ERROR_MESSAGE,
                    scan_status_url=context.scan_status_url,
                )
            except Exception as update_exc:
                log.warning("scan.error_status_not_recorded", error=str(update_exc))
            raise

        return ScaScanResult(
            context=context, status=status, upload=upload, output_path=output_path
        )
