"""File discovery engine: locate manifest files by package-manager pattern."""

from soos_sca.engines.file_discovery.discovery import (
    filter_package_managers,
    find_analysis_files,
    search_manifest_files,
)
from soos_sca.engines.file_discovery.matcher import SourceTree, match_files, normalize_pattern
from soos_sca.engines.file_discovery.models import ManifestFile

__all__ = [
    "ManifestFile",
    "SourceTree",
    "filter_package_managers",
    "find_analysis_files",
    "match_files",
    "normalize_pattern",
    "search_manifest_files",
]
