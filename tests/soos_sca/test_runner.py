"""Tests for ScaScanRunner (AnalysisService mocked)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from structlog.testing import capture_logs

from soos_sca.engines.upload import UploadReport
from soos_sca.enums import OutputFormat, ScanStatus
from soos_sca.models import ScanSetupParams
from soos_sca.runner import ScaScanOptions, ScaScanResult, ScaScanRunner
from soos_sca.services import ConfigurationError, NoManifestsFoundError, SoosApiError


@pytest.fixture
def service(context):
    s = AsyncMock()
    s.setup_scan.return_value = context
    s.find_manifest_files.return_value = ["manifest"]
    s.add_manifest_files_to_scan.return_value = UploadReport()
    s.wait_for_scan_to_finish.return_value = ScanStatus.Finished
    s.generate_formatted_output.return_value = Path("/work/results.sarif.json")
    return s


@pytest.fixture
def options(tmp_path):
    return ScaScanOptions(
        setup=ScanSetupParams(client_id="client-1", project_name="app"),
        source_code_path=tmp_path,
        working_directory=tmp_path,
        files_to_exclude=["**/*.min.js"],
        package_managers=["NPM"],
        colorize=False,
    )


def _called(service) -> list[str]:
    return [name for name, _, _ in service.mock_calls]


class TestScaScanRunner:
    @pytest.mark.anyio
    async def test_runs_steps_in_order(self, service, options, context, tmp_path):
        result = await ScaScanRunner(service).run(options)

        assert _called(service) == [
            "setup_scan",
            "find_manifest_files",
            "add_manifest_files_to_scan",
            "start_scan",
            "wait_for_scan_to_finish",
        ]
        find = service.find_manifest_files.await_args
        assert find.args == (context, tmp_path)
        assert find.kwargs["files_to_exclude"] == ["**/*.min.js"]
        assert find.kwargs["package_managers"] == ["NPM"]
        service.add_manifest_files_to_scan.assert_awaited_once_with(
            context, ["manifest"], tmp_path
        )
        assert service.wait_for_scan_to_finish.await_args.kwargs["colorize"] is False

        assert isinstance(result, ScaScanResult)
        assert result.is_success
        assert result.output_path is None

    @pytest.mark.anyio
    async def test_formatted_output_when_requested(self, service, options, context, tmp_path):
        options.output_format = OutputFormat.SARIF

        result = await ScaScanRunner(service).run(options)

        service.generate_formatted_output.assert_awaited_once_with(
            context, "app", OutputFormat.SARIF, tmp_path
        )
        assert result.output_path == Path("/work/results.sarif.json")

    @pytest.mark.anyio
    async def test_non_finished_status_is_not_success(self, service, options):
        service.wait_for_scan_to_finish.return_value = ScanStatus.FailedWithIssues
        result = await ScaScanRunner(service).run(options)
        assert not result.is_success
        service.update_scan_status.assert_not_awaited()

    @pytest.mark.anyio
    async def test_failure_marks_scan_error_and_reraises(self, service, options, context):
        service.start_scan.side_effect = SoosApiError("start failed")

        with capture_logs() as logs, pytest.raises(SoosApiError, match="start failed"):
            await ScaScanRunner(service).run(options)

        service.update_scan_status.assert_awaited_once_with(
            context,
            ScanStatus.Error,
            "Error while performing scan.",
            scan_status_url=context.scan_status_url,
        )
        service.wait_for_scan_to_finish.assert_not_awaited()
        assert any(e["event"] == "scan.failed" for e in logs)

    @pytest.mark.anyio
    async def test_status_update_failure_keeps_original_error(self, service, options):
        service.find_manifest_files.side_effect = NoManifestsFoundError("nothing")
        service.update_scan_status.side_effect = SoosApiError("api down")

        with capture_logs() as logs, pytest.raises(NoManifestsFoundError):
            await ScaScanRunner(service).run(options)

        warning = next(e for e in logs if e["event"] == "scan.error_status_not_recorded")
        assert warning["error"] == "api down"

    @pytest.mark.anyio
    async def test_setup_failure_is_not_marked(self, service, options):
        service.setup_scan.side_effect = SoosApiError("unauthorized")

        with pytest.raises(SoosApiError):
            await ScaScanRunner(service).run(options)
        service.update_scan_status.assert_not_awaited()

    @pytest.mark.anyio
    async def test_missing_source_path(self, service, options, tmp_path):
        options.source_code_path = tmp_path / "missing"

        with pytest.raises(ConfigurationError):
            await ScaScanRunner(service).run(options)
        service.setup_scan.assert_not_awaited()
