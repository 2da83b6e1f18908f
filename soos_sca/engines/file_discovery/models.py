"""Data models for the file discovery engine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ManifestFile:
    """A file on disk that matched a manifest (or generated hash) rule.

    ``path`` is always absolute.
    """

    package_manager: str
    name: str
    path: Path
