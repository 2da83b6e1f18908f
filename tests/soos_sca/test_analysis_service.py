"""Tests for AnalysisService (API clients mocked, no real delays)."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from structlog.testing import capture_logs

from soos_sca.api.schemas import (
    ApplicationStatus,
    ApplicationStatusMessage,
    CreateScanResponse,
    HashableFileRule,
    HashAlgorithmRule,
    PackageManagerScanFileFormats,
    ProjectSettings,
    UploadManifestFilesResponse,
)
from soos_sca.engines.file_discovery import ManifestFile
from soos_sca.enums import (
    FileMatchTypeEnum,
    IntegrationName,
    OutputFormat,
    ScanStatus,
    ScanType,
)
from soos_sca.models import ScanSetupParams
from soos_sca.services import NoManifestsFoundError, ScanCancelledError
from soos_sca.services.analysis_service import AnalysisService, detect_contributing_developer


@pytest.fixture
def analysis():
    return AsyncMock()


@pytest.fixture
def projects():
    p = AsyncMock()
    p.get_project_settings.return_value = ProjectSettings()
    return p


@pytest.fixture
def user():
    u = AsyncMock()
    u.get_application_status.return_value = ApplicationStatus()
    return u


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def service(analysis, projects, user, sleep):
    return AnalysisService(analysis, projects, user, status_delay=5.0, sleep=sleep)


def _create_response(**overrides):
    data = {
        "client_hash": "client-1",
        "project_hash": "proj-1",
        "branch_hash": "branch-1",
        "analysis_id": "analysis-1",
        "scan_type": "Sca",
        "scan_url": "https://app.soos.io/scan",
        "scan_status_url": "https://api.soos.io/status",
    }
    data.update(overrides)
    return CreateScanResponse(**data)


# ── create ────────────────────────────────────────────────────────────────


class TestCreate:
    @pytest.mark.anyio
    async def test_derives_api_hosts(self):
        service = AnalysisService.create("key", "https://api.soos.io/api/")
        try:
            assert service.analysis_client.base_url == "https://api.soos.io/api/"
            assert service.projects_client.base_url == "https://api-projects.soos.io/api/"
            assert service.user_client.base_url == "https://api-user.soos.io/api/"
        finally:
            await service.close()


# ── setup_scan ────────────────────────────────────────────────────────────


class TestSetupScan:
    @pytest.mark.anyio
    async def test_creates_scan_and_returns_context(self, service, analysis):
        analysis.create_scan.return_value = _create_response(scan_id="scan-9")

        params = ScanSetupParams(client_id="client-1", project_name="app")
        context = await service.setup_scan(params)

        assert context.project_hash == "proj-1"
        assert context.branch_hash == "branch-1"
        assert context.analysis_id == "scan-9"
        assert context.scan_type is ScanType.SCA
        assert context.scan_status_url == "https://api.soos.io/status"
        client_id, scan_type, request = analysis.create_scan.await_args.args
        assert (client_id, scan_type) == ("client-1", ScanType.SCA)
        assert request.project_name == "app"

    @pytest.mark.anyio
    async def test_falls_back_to_analysis_id(self, service, analysis):
        analysis.create_scan.return_value = _create_response()
        context = await service.setup_scan(ScanSetupParams(client_id="c", project_name="app"))
        assert context.analysis_id == "analysis-1"

    @pytest.mark.anyio
    async def test_banners_routed_by_severity(self, service, analysis, user):
        analysis.create_scan.return_value = _create_response()
        user.get_application_status.return_value = ApplicationStatus(
            status_message=ApplicationStatusMessage(
                message="Maintenance tonight",
                severity="High",
                url="https://status.soos.io",
                link_text="Status",
            ),
            client_message=ApplicationStatusMessage(message="License expired", severity="Critical"),
        )

        with capture_logs() as logs:
            await service.setup_scan(ScanSetupParams(client_id="c", project_name="app"))

        banners = [e for e in logs if e["event"] == "status.message"]
        assert [(e["message"], e["log_level"]) for e in banners] == [
            ("Maintenance tonight", "warning"),
            ("License expired", "error"),
        ]
        link = next(e for e in logs if e["event"] == "status.link")
        assert link["link"] == "[Status](https://status.soos.io)"

    @pytest.mark.anyio
    @pytest.mark.parametrize("severity", ["Unknown", "None", "Info", "Low"])
    async def test_low_severities_logged_at_info(self, service, analysis, user, severity):
        analysis.create_scan.return_value = _create_response()
        user.get_application_status.return_value = ApplicationStatus(
            status_message=ApplicationStatusMessage(message="hello", severity=severity)
        )
        with capture_logs() as logs:
            await service.setup_scan(ScanSetupParams(client_id="c", project_name="app"))
        banner = next(e for e in logs if e["event"] == "status.message")
        assert banner["log_level"] == "info"
        assert not any(e["event"] == "status.unknown_severity" for e in logs)

    @pytest.mark.anyio
    async def test_contributing_developer_from_environment(self, service, analysis, monkeypatch):
        monkeypatch.setenv("GITHUB_ACTOR", "octocat")
        analysis.create_scan.return_value = _create_response()

        await service.setup_scan(
            ScanSetupParams(
                client_id="c", project_name="app", integration_name=IntegrationName.GitHub
            )
        )

        request = analysis.create_scan.await_args.args[2]
        audit = request.contributing_developer_audit
        assert len(audit) == 1
        assert audit[0].source == "EnvironmentVariable"
        assert audit[0].source_name == "GITHUB_ACTOR"
        assert audit[0].contributing_developer_id == "octocat"

    def test_no_developer_when_variable_unset(self, monkeypatch):
        monkeypatch.delenv("SOOS_CONTRIBUTING_DEVELOPER", raising=False)
        assert detect_contributing_developer(IntegrationName.SoosSca) is None


# ── wait_for_scan_to_finish ───────────────────────────────────────────────


class TestWaitForScanToFinish:
    @pytest.mark.anyio
    async def test_requires_two_consecutive_complete_snapshots(
        self, service, analysis, sleep, context, make_snapshot
    ):
        analysis.get_scan_status.side_effect = [
            make_snapshot("Queued"),
            make_snapshot("Finished"),
            make_snapshot("Finished"),
        ]

        status = await service.wait_for_scan_to_finish(context, colorize=False)

        assert status is ScanStatus.Finished
        assert analysis.get_scan_status.await_count == 3
        assert sleep.await_count == 2
        sleep.assert_awaited_with(5.0)

    @pytest.mark.anyio
    async def test_incomplete_snapshot_resets_confirmation(
        self, service, analysis, sleep, context, make_snapshot
    ):
        analysis.get_scan_status.side_effect = [
            make_snapshot("Running"),
            make_snapshot("Finished"),
            make_snapshot("LocatingIssues"),
            make_snapshot("Finished"),
            make_snapshot("Finished"),
        ]

        await service.wait_for_scan_to_finish(context, colorize=False)

        assert analysis.get_scan_status.await_count == 5
        assert sleep.await_count == 4

    @pytest.mark.anyio
    async def test_returns_status_of_confirming_snapshot(
        self, service, analysis, context, make_snapshot
    ):
        analysis.get_scan_status.side_effect = [
            make_snapshot("Finished"),
            make_snapshot("FailedWithIssues"),
        ]
        status = await service.wait_for_scan_to_finish(context, colorize=False)
        assert status is ScanStatus.FailedWithIssues

    @pytest.mark.anyio
    async def test_logs_title_cased_status_while_waiting(
        self, service, analysis, context, make_snapshot
    ):
        analysis.get_scan_status.side_effect = [
            make_snapshot("LocatingIssues"),
            make_snapshot("Finished"),
            make_snapshot("Finished"),
        ]
        with capture_logs() as logs:
            await service.wait_for_scan_to_finish(context, colorize=False)
        waiting = [e["status"] for e in logs if e["event"] == "scan.status"]
        assert waiting == ["Locating Issues..."]

    @pytest.mark.anyio
    async def test_renders_report_and_logs_errors(
        self, service, analysis, context, make_snapshot, capsys
    ):
        final = make_snapshot(
            "Error",
            issues={"Vulnerability": {"count": 2}},
            errors=[{"code": "ParseError", "message": "bad lock file"}],
        )
        analysis.get_scan_status.side_effect = [final, final]

        with capture_logs() as logs:
            status = await service.wait_for_scan_to_finish(context, colorize=False)

        assert status is ScanStatus.Error
        errors = next(e for e in logs if e["event"] == "scan.errors")
        assert errors["errors"] == [{"code": "ParseError", "message": "bad lock file"}]
        out = capsys.readouterr().out
        assert "Scan failed because of:" in out
        assert "2 vulnerabilities" in out
        assert context.scan_url in out

    @pytest.mark.anyio
    async def test_cancel_before_polling(self, service, analysis, context):
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(ScanCancelledError):
            await service.wait_for_scan_to_finish(context, cancel_event=cancel)
        analysis.get_scan_status.assert_not_awaited()

    @pytest.mark.anyio
    async def test_cancel_during_delay(self, analysis, projects, user, context, make_snapshot):
        cancel = asyncio.Event()

        async def sleep(delay):
            cancel.set()

        service = AnalysisService(analysis, projects, user, sleep=sleep)
        analysis.get_scan_status.return_value = make_snapshot("Running")

        with pytest.raises(ScanCancelledError):
            await service.wait_for_scan_to_finish(context, cancel_event=cancel)
        assert analysis.get_scan_status.await_count == 1


# ── update_scan_status ────────────────────────────────────────────────────


class TestUpdateScanStatus:
    @pytest.mark.anyio
    async def test_noop_when_remote_already_complete(
        self, service, analysis, context, make_snapshot
    ):
        analysis.get_scan_status.return_value = make_snapshot("Finished")

        await service.update_scan_status(
            context, ScanStatus.Error, "late", scan_status_url=context.scan_status_url
        )

        analysis.get_scan_status.assert_awaited_once_with(context.scan_status_url)
        analysis.update_scan_status.assert_not_awaited()

    @pytest.mark.anyio
    async def test_updates_when_remote_still_running(
        self, service, analysis, context, make_snapshot
    ):
        analysis.get_scan_status.return_value = make_snapshot("Running")

        with capture_logs() as logs:
            await service.update_scan_status(
                context, ScanStatus.Incomplete, "broken", scan_status_url=context.scan_status_url
            )

        analysis.update_scan_status.assert_awaited_once_with(
            "client-1",
            "proj-1",
            "branch-1",
            ScanType.SCA,
            "scan-1",
            ScanStatus.Incomplete,
            "broken",
        )
        assert logs[-1]["event"] == "scan.status_updated"
        assert logs[-1]["log_level"] == "error"

    @pytest.mark.anyio
    async def test_without_status_url_skips_check(self, service, analysis, context):
        with capture_logs() as logs:
            await service.update_scan_status(context, ScanStatus.Finished, "done")

        analysis.get_scan_status.assert_not_awaited()
        analysis.update_scan_status.assert_awaited_once()
        assert logs[-1]["log_level"] == "info"


# ── find_manifest_files ───────────────────────────────────────────────────


class TestFindManifestFiles:
    @pytest.mark.anyio
    async def test_uses_project_lock_file_setting(
        self, service, analysis, projects, context, source_tree, npm_rules
    ):
        analysis.get_supported_scan_file_formats.return_value = npm_rules
        projects.get_project_settings.return_value = ProjectSettings(use_lock_file=True)

        found = await service.find_manifest_files(context, source_tree)

        assert [m.name for m in found] == ["package-lock.json"]
        projects.get_project_settings.assert_awaited_once_with("client-1", "proj-1")

    @pytest.mark.anyio
    async def test_package_manager_filter(
        self, service, analysis, context, source_tree, npm_rules
    ):
        analysis.get_supported_scan_file_formats.return_value = npm_rules
        found = await service.find_manifest_files(context, source_tree, package_managers=["NuGet"])
        assert [m.name for m in found] == ["App.csproj"]

    @pytest.mark.anyio
    async def test_file_hash_mode_writes_hash_manifest(
        self, service, analysis, context, tmp_path
    ):
        (tmp_path / "lib.jar").write_bytes(b"abc")
        analysis.get_supported_scan_file_formats.return_value = [
            PackageManagerScanFileFormats(
                package_manager="Java",
                hashable_files=[
                    HashableFileRule(
                        hash_algorithms=[
                            HashAlgorithmRule(
                                hash_algorithm="Sha1",
                                buffer_encoding="Binary",
                                digest_encoding="Hex",
                            )
                        ],
                        archive_file_extensions=[".jar"],
                    )
                ],
            )
        ]

        found = await service.find_manifest_files(
            context, tmp_path, file_match_type=FileMatchTypeEnum.FileHash
        )

        assert [m.name for m in found] == ["Java_soos_hashes.json"]
        assert (tmp_path / "Java_soos_hashes.json").exists()

    @pytest.mark.anyio
    async def test_nothing_found_marks_incomplete_and_raises(
        self, service, analysis, context, tmp_path, npm_rules, make_snapshot
    ):
        analysis.get_supported_scan_file_formats.return_value = npm_rules
        analysis.get_scan_status.return_value = make_snapshot("Queued")

        with pytest.raises(NoManifestsFoundError):
            await service.find_manifest_files(context, tmp_path)

        call = analysis.update_scan_status.await_args
        assert call.args[5] is ScanStatus.Incomplete
        assert call.args[6].startswith("No valid files found")


# ── upload / start / output ───────────────────────────────────────────────


class TestScanSteps:
    @pytest.mark.anyio
    async def test_add_manifest_files_delegates_to_coordinator(
        self, service, analysis, context, tmp_path
    ):
        path = tmp_path / "package.json"
        path.write_text("{}")
        analysis.upload_manifest_files.return_value = UploadManifestFilesResponse(message="ok")

        report = await service.add_manifest_files_to_scan(
            context, [ManifestFile("NPM", "package.json", path)], tmp_path
        )

        assert not report.all_failed
        analysis.upload_manifest_files.assert_awaited_once()

    @pytest.mark.anyio
    async def test_start_scan(self, service, analysis, context):
        await service.start_scan(context)
        analysis.start_scan.assert_awaited_once_with("client-1", "proj-1", "scan-1")

    @pytest.mark.anyio
    async def test_generate_formatted_output_writes_sarif(
        self, service, analysis, context, tmp_path
    ):
        sarif = {"version": "2.1.0", "runs": []}
        analysis.get_formatted_scan_result.return_value = sarif

        path = await service.generate_formatted_output(context, "app", OutputFormat.SARIF, tmp_path)

        assert path == tmp_path / "results.sarif.json"
        assert json.loads(path.read_text()) == sarif
        assert analysis.get_formatted_scan_result.await_args.args[-1] is OutputFormat.SARIF

    @pytest.mark.anyio
    async def test_generate_formatted_output_empty(self, service, analysis, context, tmp_path):
        analysis.get_formatted_scan_result.return_value = None
        assert (
            await service.generate_formatted_output(context, "app", OutputFormat.SARIF, tmp_path)
            is None
        )
        assert not (tmp_path / "results.sarif.json").exists()
