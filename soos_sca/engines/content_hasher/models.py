"""Hash manifest artifact written to disk and uploaded like a manifest."""

from __future__ import annotations

from soos_sca.api.schemas import SoosModel


class FileDigest(SoosModel):
    hash_algorithm: str
    digest: str


class FileHash(SoosModel):
    filename: str
    path: str
    digests: list[FileDigest] = []


class HashesManifest(SoosModel):
    """One per package manager; only produced when at least one file matched."""

    package_manager: str
    file_hashes: list[FileHash] = []
