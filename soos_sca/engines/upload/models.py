"""Data models for the upload coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field

from soos_sca.api.schemas import UploadManifestFilesResponse
from soos_sca.engines.file_discovery.models import ManifestFile


@dataclass
class UploadOutcome:
    """A package-manager group the service accepted."""

    package_manager: str
    files: list[ManifestFile]
    response: UploadManifestFilesResponse


@dataclass
class UploadFailure:
    """A package-manager group whose upload raised."""

    package_manager: str
    files: list[ManifestFile]
    error: str


@dataclass
class UploadReport:
    results: list[UploadOutcome | UploadFailure] = field(default_factory=list)
    skipped: list[ManifestFile] = field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        # No groups at all counts as every group failing.
        return all(isinstance(r, UploadFailure) for r in self.results)

    @property
    def outcomes(self) -> list[UploadOutcome]:
        return [r for r in self.results if isinstance(r, UploadOutcome)]

    @property
    def failures(self) -> list[UploadFailure]:
        return [r for r in self.results if isinstance(r, UploadFailure)]
