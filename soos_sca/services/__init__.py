"""Service layer: scan lifecycle orchestration and its error types."""

from __future__ import annotations


class SoosError(Exception):
    """Base exception for all soos-sca errors."""


class ConfigurationError(SoosError):
    """Raised for missing or invalid caller input (never retried)."""


class SoosApiError(SoosError):
    """Raised when a SOOS API call fails.

    Carries the HTTP status and the service's error code when the response
    body used the coded message model.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class NoManifestsFoundError(SoosError):
    """Raised when discovery finds nothing to upload."""


class ManifestUploadError(SoosError):
    """Raised when every package-manager upload group failed."""


class ScanCancelledError(SoosError):
    """Raised when status polling is cancelled by the caller."""
