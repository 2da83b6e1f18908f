"""Upload coordinator engine: push manifest groups to a scan."""

from soos_sca.engines.upload.coordinator import (
    ScanStatusUpdater,
    UploadCoordinator,
    build_form,
    parent_folder,
)
from soos_sca.engines.upload.models import UploadFailure, UploadOutcome, UploadReport

__all__ = [
    "ScanStatusUpdater",
    "UploadCoordinator",
    "UploadFailure",
    "UploadOutcome",
    "UploadReport",
    "build_form",
    "parent_folder",
]
