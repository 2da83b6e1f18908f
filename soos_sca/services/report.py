"""Render the final scan summary shown once polling has settled."""

from __future__ import annotations

import click
import structlog

from soos_sca.constants import GENERATED_SCAN_TYPES, REPORT_LABEL_WIDTH
from soos_sca.enums import ScanType, SeverityEnum
from soos_sca.models import ScanStatusSnapshot
from soos_sca.utils.strings import pluralize_template

log = structlog.get_logger("soos_sca.report")

# (issue category on the wire, label, singular, plural, severity)
_GENERATED_CATEGORIES = (
    ("Vulnerability", "Vulnerabilities", "vulnerability", "vulnerabilities", SeverityEnum.High),
    ("Violation", "Violations", "violation", None, SeverityEnum.Medium),
    (
        "DependencySubstitution",
        "Dependency Substitutions",
        "dependency substitution",
        None,
        SeverityEnum.High,
    ),
    ("DependencyTypo", "Dependency Typos", "dependency typo", None, SeverityEnum.High),
    ("UnknownPackage", "Unknown Packages", "unknown package", None, SeverityEnum.Low),
)
_DAST_CATEGORIES = (
    ("Dast", "Web Vulnerabilities", "web vulnerability", "web vulnerabilities", SeverityEnum.High),
)
_SAST_CATEGORIES = (("Sast", "Code Issues", "code issue", None, SeverityEnum.High),)


def severity_color(severity: SeverityEnum | str) -> str | None:
    """Terminal colour for *severity*; ``None`` means unstyled.

    Unrecognised values are reported and rendered without colour.
    """
    try:
        value = SeverityEnum(severity)
    except ValueError:
        log.warning("report.unknown_severity", severity=str(severity))
        return None

    if value is SeverityEnum.Critical:
        return "red"
    if value is SeverityEnum.High:
        return "bright_red"
    if value is SeverityEnum.Medium:
        return "yellow"
    if value is SeverityEnum.Low:
        return "cyan"
    if value is SeverityEnum.Info:
        return "blue"
    return None


def _categories_for(scan_type: ScanType) -> tuple:
    if scan_type in GENERATED_SCAN_TYPES:
        return _GENERATED_CATEGORIES
    if scan_type is ScanType.DAST:
        return _DAST_CATEGORIES
    if scan_type is ScanType.SAST:
        return _SAST_CATEGORIES
    return ()


def _line(label: str, value: str) -> str:
    return f"{label + ':':<{REPORT_LABEL_WIDTH}}{value}"


def get_final_scan_status_message(
    snapshot: ScanStatusSnapshot,
    scan_type: ScanType,
    scan_url: str,
    colorize: bool = True,
) -> str:
    """Multi-line pass/fail report for a settled scan.

    Only the issue categories relevant to *scan_type* are listed. A category
    with a non-zero count is coloured by its severity when *colorize* is set.
    """
    headline = "Scan passed, with:" if snapshot.is_success else "Scan failed because of:"
    if colorize:
        headline = click.style(headline, fg="green" if snapshot.is_success else "red", bold=True)

    lines = [headline]
    for category, label, singular, plural, severity in _categories_for(scan_type):
        count = snapshot.issue_count(category)
        line = _line(label, pluralize_template(count, singular, plural))
        color = severity_color(severity) if colorize and count > 0 else None
        lines.append(click.style(line, fg=color) if color else line)

    lines.append(_line("View the results here", scan_url))
    return "\n".join(lines)
