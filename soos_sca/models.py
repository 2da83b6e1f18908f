"""Domain models for a single scan lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, field

from soos_sca.api.schemas import CodedMessage, ContributingDeveloperAudit, ScanStatusResponse
from soos_sca.constants import COMPLETED_SCAN_STATUSES
from soos_sca.enums import IntegrationName, IntegrationType, ScanStatus, ScanType


@dataclass(frozen=True)
class ScanContext:
    """Identifies one in-flight scan. Created by ``setup_scan``."""

    client_id: str
    project_hash: str
    branch_hash: str
    analysis_id: str
    scan_type: ScanType
    scan_url: str
    scan_status_url: str


@dataclass
class ScanSetupParams:
    """Inputs for creating a scan record."""

    client_id: str
    project_name: str
    scan_type: ScanType = ScanType.SCA
    branch_name: str | None = None
    commit_hash: str | None = None
    build_version: str | None = None
    build_uri: str | None = None
    branch_uri: str | None = None
    integration_type: IntegrationType = IntegrationType.Script
    operating_environment: str = ""
    integration_name: IntegrationName = IntegrationName.SoosSca
    app_version: str | None = None
    script_version: str | None = None
    contributing_developer_audit: list[ContributingDeveloperAudit] = field(default_factory=list)
    tool_name: str | None = None
    tool_version: str | None = None


@dataclass
class ScanStatusSnapshot:
    """A single observation of the remote scan status."""

    status: ScanStatus
    is_complete: bool
    is_success: bool
    violations: int = 0
    vulnerabilities: int = 0
    issues: dict[str, int] = field(default_factory=dict)
    errors: list[CodedMessage] = field(default_factory=list)

    @classmethod
    def from_response(cls, response: ScanStatusResponse) -> ScanStatusSnapshot:
        status = ScanStatus(response.status)
        issues = {
            category: (issue.count if issue is not None else 0)
            for category, issue in (response.issues or {}).items()
        }
        return cls(
            status=status,
            is_complete=status in COMPLETED_SCAN_STATUSES,
            is_success=status == ScanStatus.Finished,
            violations=response.violations.count if response.violations else 0,
            vulnerabilities=response.vulnerabilities.count if response.vulnerabilities else 0,
            issues=issues,
            errors=list(response.errors or []),
        )

    def issue_count(self, category: str) -> int:
        return self.issues.get(category, 0)
