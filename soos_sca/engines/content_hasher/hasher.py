"""Compute content digests for hashable files and materialise hash manifests."""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Sequence
from pathlib import Path

import structlog

from soos_sca.api.schemas import HashAlgorithmRule, PackageManagerScanFileFormats
from soos_sca.constants import FILE_ENCODING, HASHES_MANIFEST_SUFFIX
from soos_sca.engines.content_hasher.models import FileDigest, FileHash, HashesManifest
from soos_sca.engines.file_discovery.matcher import SourceTree, exclusion_spec, normalize_pattern
from soos_sca.engines.file_discovery.models import ManifestFile
from soos_sca.enums import HashAlgorithmEnum, HashEncodingEnum
from soos_sca.utils.strings import format_bytes

log = structlog.get_logger("soos_sca.hasher")

_HASHLIB_NAMES: dict[HashAlgorithmEnum, str] = {
    HashAlgorithmEnum.Md5: "md5",
    HashAlgorithmEnum.Sha1: "sha1",
    HashAlgorithmEnum.Sha256: "sha256",
    HashAlgorithmEnum.Sha512: "sha512",
}


def _encode_buffer(data: bytes, encoding: HashEncodingEnum) -> bytes:
    """Render raw file bytes in the declared input encoding before hashing."""
    if encoding is HashEncodingEnum.Binary:
        return data
    if encoding is HashEncodingEnum.Utf8:
        return data.decode(FILE_ENCODING, errors="replace").encode(FILE_ENCODING)
    if encoding is HashEncodingEnum.Base64:
        return base64.b64encode(data)
    return data.hex().encode("ascii")


def _encode_digest(digest: bytes, encoding: HashEncodingEnum) -> str:
    if encoding is HashEncodingEnum.Hex:
        return digest.hex()
    if encoding is HashEncodingEnum.Base64:
        return base64.b64encode(digest).decode("ascii")
    if encoding is HashEncodingEnum.Binary:
        return digest.decode("latin-1")
    return digest.decode(FILE_ENCODING, errors="replace")


def compute_digest(data: bytes, rule: HashAlgorithmRule) -> FileDigest:
    """Hash *data* according to one algorithm rule.

    Raises :class:`ValueError` for an algorithm or encoding the service
    declared but this client does not know.
    """
    algorithm = HashAlgorithmEnum(rule.hash_algorithm)
    name = _HASHLIB_NAMES.get(algorithm)
    if name is None:
        raise ValueError(f"unsupported hash algorithm: {rule.hash_algorithm}")

    buffer = _encode_buffer(data, HashEncodingEnum(rule.buffer_encoding))
    digest = hashlib.new(name, buffer).digest()
    return FileDigest(
        hash_algorithm=algorithm.value,
        digest=_encode_digest(digest, HashEncodingEnum(rule.digest_encoding)),
    )


def compute_digests(path: Path, rules: Sequence[HashAlgorithmRule]) -> list[FileDigest]:
    """Every configured digest for the file at *path*, in rule order."""
    data = Path(path).read_bytes()
    return [compute_digest(data, rule) for rule in rules]


def search_hashable_files(
    base_dir: Path,
    rules: Sequence[PackageManagerScanFileFormats],
    files_to_exclude: Sequence[str] | None = None,
    directories_to_exclude: Sequence[str] | None = None,
) -> list[HashesManifest]:
    """Build one :class:`HashesManifest` per package manager with matches.

    Archive extensions and archive-content extensions are matched the same
    way manifest patterns are, including exclusions.
    """
    base_dir = Path(base_dir).resolve()
    tree = SourceTree(base_dir, exclusion_spec(files_to_exclude, directories_to_exclude))

    manifests: list[HashesManifest] = []
    for rule in rules:
        seen: set[Path] = set()
        file_hashes: list[FileHash] = []
        for hashable in rule.hashable_files or []:
            extensions = [
                *(hashable.archive_file_extensions or []),
                *(hashable.archive_content_file_extensions or []),
            ]
            for extension in extensions:
                pattern = normalize_pattern(extension)
                paths = tree.match(pattern)
                log.debug(
                    "hasher.pattern_matched",
                    package_manager=rule.package_manager,
                    pattern=pattern,
                    matches=len(paths),
                )
                for path in paths:
                    if path in seen:
                        continue
                    seen.add(path)
                    log.info(
                        "hasher.file_found",
                        package_manager=rule.package_manager,
                        path=str(path),
                        size=format_bytes(path.stat().st_size),
                    )
                    file_hashes.append(
                        FileHash(
                            filename=path.name,
                            path=str(path),
                            digests=compute_digests(path, hashable.hash_algorithms),
                        )
                    )

        if file_hashes:
            manifests.append(
                HashesManifest(package_manager=rule.package_manager, file_hashes=file_hashes)
            )
    return manifests


def write_hashes_manifests(
    base_dir: Path, manifests: Sequence[HashesManifest]
) -> list[ManifestFile]:
    """Write each manifest as ``<packageManager>_soos_hashes.json`` into *base_dir*."""
    base_dir = Path(base_dir).resolve()
    written: list[ManifestFile] = []
    for manifest in manifests:
        if not manifest.file_hashes:
            continue
        filename = f"{manifest.package_manager}{HASHES_MANIFEST_SUFFIX}"
        path = base_dir / filename
        path.write_text(
            manifest.model_dump_json(by_alias=True, indent=2), encoding=FILE_ENCODING
        )
        log.info(
            "hasher.manifest_written",
            package_manager=manifest.package_manager,
            path=str(path),
            files=len(manifest.file_hashes),
        )
        written.append(
            ManifestFile(package_manager=manifest.package_manager, name=filename, path=path)
        )
    return written
