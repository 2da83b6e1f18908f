"""Request/response schemas for the SOOS APIs (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SoosModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class CodedMessage(SoosModel):
    code: str | None = None
    message: str | None = None


# ── user / application status ─────────────────────────────────────────────


class ApplicationStatusMessage(SoosModel):
    message: str
    severity: str = "Unknown"
    is_dismissible: bool = False
    url: str | None = None
    link_text: str | None = None


class ApplicationStatus(SoosModel):
    status_message: ApplicationStatusMessage | None = None
    client_message: ApplicationStatusMessage | None = None


# ── scans ─────────────────────────────────────────────────────────────────


class ContributingDeveloperAudit(SoosModel):
    source: str | None = None
    source_name: str | None = None
    contributing_developer_id: str | None = None


class CreateScanRequest(SoosModel):
    project_name: str
    commit_hash: str | None = None
    branch: str | None = None
    build_version: str | None = None
    build_uri: str | None = None
    branch_uri: str | None = None
    integration_type: str
    operating_environment: str
    integration_name: str | None = None
    app_version: str | None = None
    script_version: str | None = None
    contributing_developer_audit: list[ContributingDeveloperAudit] = []
    tool_name: str | None = None
    tool_version: str | None = None


class CreateScanResponse(SoosModel):
    client_hash: str
    project_hash: str
    branch_hash: str
    scan_id: str | None = None
    analysis_id: str
    scan_type: str
    scan_url: str
    scan_status_url: str
    errors: list[CodedMessage] | None = None


class UpdateScanStatusRequest(SoosModel):
    status: str
    message: str


class IssueCount(SoosModel):
    count: int = 0


class ScanStatusResponse(SoosModel):
    status: str
    violations: IssueCount | None = None
    vulnerabilities: IssueCount | None = None
    issues: dict[str, IssueCount | None] | None = None
    errors: list[CodedMessage] | None = None


# ── supported file formats ────────────────────────────────────────────────


class SupportedManifest(SoosModel):
    pattern: str
    is_lock_file: bool = False


class HashAlgorithmRule(SoosModel):
    hash_algorithm: str
    buffer_encoding: str
    digest_encoding: str


class HashableFileRule(SoosModel):
    hash_algorithms: list[HashAlgorithmRule] = []
    archive_file_extensions: list[str] | None = None
    archive_content_file_extensions: list[str] | None = None


class PackageManagerScanFileFormats(SoosModel):
    package_manager: str
    supported_manifests: list[SupportedManifest] = []
    hashable_files: list[HashableFileRule] | None = None


# ── projects ──────────────────────────────────────────────────────────────


class ProjectSettings(SoosModel):
    # Many settings are returned; only the lock-file preference is consumed.
    use_lock_file: bool | None = None


# ── manifest upload ───────────────────────────────────────────────────────


class UploadedManifest(SoosModel):
    name: str
    filename: str | None = None
    package_manager: str | None = None
    status: str | None = None
    status_message: str | None = None


class UploadManifestFilesResponse(SoosModel):
    message: str
    manifests: list[UploadedManifest] | None = None
