"""Manifest discovery: match service-provided patterns against a source tree."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import structlog

from soos_sca.api.schemas import PackageManagerScanFileFormats
from soos_sca.engines.file_discovery.matcher import SourceTree, exclusion_spec, normalize_pattern
from soos_sca.engines.file_discovery.models import ManifestFile
from soos_sca.enums import ScanType
from soos_sca.utils.strings import are_equal_ignore_case, format_bytes, pluralize_template

log = structlog.get_logger("soos_sca.discovery")


def filter_package_managers(
    formats: Sequence[PackageManagerScanFileFormats],
    package_managers: Sequence[str] | None,
) -> list[PackageManagerScanFileFormats]:
    """Keep only the rules for *package_managers* (case-insensitive).

    An empty or missing filter keeps every rule.
    """
    if not package_managers:
        return list(formats)
    wanted = [pm.strip() for pm in package_managers if pm.strip()]
    return [
        f
        for f in formats
        if any(are_equal_ignore_case(f.package_manager, pm) for pm in wanted)
    ]


def search_manifest_files(
    base_dir: Path,
    package_manager_manifests: Sequence[PackageManagerScanFileFormats],
    use_lock_file: bool,
    files_to_exclude: Sequence[str] | None = None,
    directories_to_exclude: Sequence[str] | None = None,
) -> list[ManifestFile]:
    """Find the manifest files for every package manager under *base_dir*.

    Only patterns whose ``is_lock_file`` equals *use_lock_file* are
    searched. Matches are returned in rule order, then pattern order, then
    walk order.
    """
    base_dir = Path(base_dir).resolve()
    tree = SourceTree(base_dir, exclusion_spec(files_to_exclude, directories_to_exclude))
    log.info(
        "discovery.lock_file_setting",
        use_lock_file=use_lock_file,
        note="only lock files are searched" if use_lock_file else "lock files are ignored",
    )

    found: list[ManifestFile] = []
    for rule in package_manager_manifests:
        for manifest in rule.supported_manifests:
            if manifest.is_lock_file != use_lock_file:
                continue
            pattern = normalize_pattern(manifest.pattern)
            paths = tree.match(pattern)

            if paths:
                log.info(
                    "discovery.pattern_matched",
                    package_manager=rule.package_manager,
                    pattern=pattern,
                    matches=len(paths),
                )
            else:
                log.debug(
                    "discovery.pattern_matched",
                    package_manager=rule.package_manager,
                    pattern=pattern,
                    matches=0,
                )

            for path in paths:
                log.info(
                    "discovery.manifest_found",
                    package_manager=rule.package_manager,
                    path=str(path),
                    size=format_bytes(path.stat().st_size),
                )
                found.append(
                    ManifestFile(package_manager=rule.package_manager, name=path.name, path=path)
                )
    return found


def find_analysis_files(
    scan_type: ScanType,
    base_dir: Path,
    pattern: str,
    files_to_exclude: Sequence[str] | None = None,
    directories_to_exclude: Sequence[str] | None = None,
    max_files: int = 0,
) -> tuple[list[Path], bool]:
    """Single-pattern search used by the non-manifest scan types.

    Returns ``(paths, has_more_than_maximum)``. A *max_files* of 0 means no cap.
    """
    tree = SourceTree(base_dir, exclusion_spec(files_to_exclude, directories_to_exclude))
    paths = tree.match(pattern)
    log.info(
        "discovery.analysis_files_found",
        scan_type=scan_type.value,
        pattern=pattern,
        summary=pluralize_template(len(paths), "file"),
    )
    for path in paths:
        log.info(
            "discovery.analysis_file_found",
            scan_type=scan_type.value,
            path=str(path),
            size=format_bytes(path.stat().st_size),
        )

    has_more = 0 < max_files < len(paths)
    if has_more:
        for skipped in paths[max_files:]:
            log.info("discovery.analysis_file_skipped", path=str(skipped))
        log.warning(
            "discovery.analysis_files_truncated",
            scan_type=scan_type.value,
            max_files=max_files,
            skipped=len(paths) - max_files,
        )
        paths = paths[:max_files]
    return paths, has_more
