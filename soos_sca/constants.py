"""Fixed values shared across the SDK."""

from __future__ import annotations

from soos_sca.enums import ScanStatus, ScanType

# ── API ───────────────────────────────────────────────────────────────────

DEFAULT_API_URL = "https://api.soos.io/api/"
API_KEY_HEADER = "x-soos-apikey"

# ── environment ───────────────────────────────────────────────────────────

ENV_API_KEY = "SOOS_API_KEY"
ENV_CLIENT_ID = "SOOS_CLIENT_ID"
ENV_API_URL = "SOOS_API_URL"

# ── files ─────────────────────────────────────────────────────────────────

MAX_MANIFESTS = 50
FILE_ENCODING = "utf-8"
SOOS_PACKAGE_DIR_TO_EXCLUDE = "**/soos/**"
HASHES_MANIFEST_SUFFIX = "_soos_hashes.json"
SARIF_OUTPUT_FILENAME = "results.sarif.json"

# ── status polling ────────────────────────────────────────────────────────

STATUS_DELAY_SECONDS = 5.0

COMPLETED_SCAN_STATUSES = frozenset(
    {
        ScanStatus.Error,
        ScanStatus.Incomplete,
        ScanStatus.FailedWithIssues,
        ScanStatus.Finished,
    }
)

GENERATED_SCAN_TYPES = frozenset({ScanType.CSA, ScanType.SBOM, ScanType.SCA})

# ── messages ──────────────────────────────────────────────────────────────

UPLOAD_ERROR_MESSAGE = "Error uploading manifests."
SCAN_ERROR_MESSAGE = "Error while performing scan."
NO_MANIFESTS_MESSAGE = (
    "No valid files found, cannot continue. For more help, please visit "
    "https://kb.soos.io/help/error-no-valid-manifests-found"
)
APPLICATION_STATUS_FALLBACK_MESSAGE = (
    "Please verify your API Key and Client ID. "
    "Contact support@soos.io if you continue to receive this error."
)

# Width of the label column in the final scan report.
REPORT_LABEL_WIDTH = 28
