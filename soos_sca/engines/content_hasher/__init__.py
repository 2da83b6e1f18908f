"""Content hasher engine: fingerprint files that have no manifest format."""

from soos_sca.engines.content_hasher.hasher import (
    compute_digests,
    search_hashable_files,
    write_hashes_manifests,
)
from soos_sca.engines.content_hasher.models import FileDigest, FileHash, HashesManifest

__all__ = [
    "FileDigest",
    "FileHash",
    "HashesManifest",
    "compute_digests",
    "search_hashable_files",
    "write_hashes_manifests",
]
