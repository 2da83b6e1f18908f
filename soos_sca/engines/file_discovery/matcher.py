"""Case-insensitive recursive glob matching relative to an explicit base directory."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

import pathspec

from soos_sca.constants import SOOS_PACKAGE_DIR_TO_EXCLUDE


def normalize_pattern(pattern: str) -> str:
    """Turn a service manifest pattern into a recursive glob.

    A leading ``.`` means "file name ends with" (``.csproj`` -> ``**/*.csproj``);
    anything else is used verbatim (``package.json`` -> ``**/package.json``).
    """
    glob = f"*{pattern}" if pattern.startswith(".") else pattern
    return f"**/{glob}"


def compile_spec(patterns: Iterable[str]) -> pathspec.GitIgnoreSpec:
    """Compile gitignore-style patterns, lower-cased for case-insensitive matching."""
    lines = [p.strip().lower() for p in patterns if p and p.strip()]
    return pathspec.GitIgnoreSpec.from_lines(lines)


def exclusion_spec(
    files_to_exclude: Sequence[str] | None = None,
    directories_to_exclude: Sequence[str] | None = None,
) -> pathspec.GitIgnoreSpec:
    """Caller exclusions plus the reserved ``soos`` package directory."""
    return compile_spec(
        [*(files_to_exclude or []), *(directories_to_exclude or []), SOOS_PACKAGE_DIR_TO_EXCLUDE]
    )


def _names_hidden_file(pattern: str) -> bool:
    return pattern.rstrip("/").rsplit("/", 1)[-1].startswith(".")


class SourceTree:
    """A single pruned walk of *base_dir*, shared by every pattern of a discovery pass.

    Hidden directories are never entered and excluded directories are pruned.
    Excluded files are dropped. Hidden files are kept in the listing but only
    match a pattern whose last segment itself starts with ``.``.
    """

    def __init__(
        self, base_dir: Path | str, exclusions: pathspec.PathSpec | None = None
    ) -> None:
        self.root = Path(base_dir).resolve()
        self._exclude = exclusions if exclusions is not None else exclusion_spec()
        self._files: list[tuple[str, Path]] | None = None

    @property
    def files(self) -> list[tuple[str, Path]]:
        """``(lower-cased relative posix path, absolute path)`` in walk order."""
        if self._files is None:
            self._files = list(self._walk())
        return self._files

    def _walk(self) -> Iterator[tuple[str, Path]]:
        for dirpath, dirnames, filenames in os.walk(self.root):
            current = Path(dirpath)
            rel_dir = current.relative_to(self.root).as_posix()
            prefix = "" if rel_dir == "." else f"{rel_dir}/"

            dirnames[:] = sorted(
                d
                for d in dirnames
                if not d.startswith(".")
                and not self._exclude.match_file(f"{prefix}{d}/".lower())
            )
            for name in sorted(filenames):
                rel = f"{prefix}{name}".lower()
                if not self._exclude.match_file(rel):
                    yield rel, current / name

    def match(self, pattern: str) -> list[Path]:
        """Absolute paths matching *pattern* (already normalised, e.g. ``**/package.json``)."""
        include = compile_spec([pattern])
        allow_hidden = _names_hidden_file(pattern)
        return [
            path
            for rel, path in self.files
            if (allow_hidden or not path.name.startswith(".")) and include.match_file(rel)
        ]


def match_files(
    base_dir: Path,
    pattern: str,
    exclusions: pathspec.PathSpec | None = None,
) -> list[Path]:
    """Return absolute paths under *base_dir* matching *pattern*.

    Walks the tree for this one pattern; use :class:`SourceTree` to match
    several patterns against one walk. Results are in walk order
    (directories and names alphabetically).
    """
    return SourceTree(base_dir, exclusions).match(pattern)
