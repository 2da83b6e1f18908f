"""Shared fixtures for soos_sca tests (no network required)."""

from pathlib import Path

import pytest

from soos_sca.api.schemas import (
    PackageManagerScanFileFormats,
    ScanStatusResponse,
    SupportedManifest,
)
from soos_sca.enums import ScanType
from soos_sca.models import ScanContext, ScanStatusSnapshot


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def context():
    return ScanContext(
        client_id="client-1",
        project_hash="proj-1",
        branch_hash="branch-1",
        analysis_id="scan-1",
        scan_type=ScanType.SCA,
        scan_url="https://app.soos.io/research/scan-1",
        scan_status_url="https://api.soos.io/api/clients/client-1/scans/scan-1/status",
    )


@pytest.fixture
def npm_rules():
    return [
        PackageManagerScanFileFormats(
            package_manager="NPM",
            supported_manifests=[
                SupportedManifest(pattern="package.json", is_lock_file=False),
                SupportedManifest(pattern="package-lock.json", is_lock_file=True),
            ],
        ),
        PackageManagerScanFileFormats(
            package_manager="NuGet",
            supported_manifests=[SupportedManifest(pattern=".csproj", is_lock_file=False)],
        ),
    ]


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """A small project tree with manifests in several places.

    root/
      package.json
      package-lock.json
      web/Package.JSON
      app/App.csproj
      node_modules/left-pad/package.json
      soos/package.json
    """
    root = tmp_path / "root"
    files = {
        "package.json": "{}",
        "package-lock.json": "{}",
        "web/Package.JSON": '{"name": "web"}',
        "app/App.csproj": "<Project />",
        "node_modules/left-pad/package.json": "{}",
        "soos/package.json": "{}",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


def _make_snapshot(status: str, **kwargs) -> ScanStatusSnapshot:
    return ScanStatusSnapshot.from_response(ScanStatusResponse(status=status, **kwargs))


@pytest.fixture
def make_snapshot():
    """Factory: ``make_snapshot("Finished", issues={...})``."""
    return _make_snapshot
