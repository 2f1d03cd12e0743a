"""Manifest discovery and the expected repository set."""

import fnmatch
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from .config import Config
from .errors import FilterPatternError, ManifestError, ReconcileError
from .git_sync.remote_utils import repository_basename
from .results import RunReport

GIT_DIR = ".git"

_UNSAFE_NAMES = {"", ".", ".."}


def read_manifest(path: Union[str, Path]) -> List[str]:
    """
    Read the remote identifiers listed in a manifest.

    Blank lines and lines starting with ``#`` are skipped; everything else
    is returned trimmed and in file order, duplicates included.

    Raises:
        ManifestError: The file cannot be read or decoded
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"cannot read manifest: {e}", str(path))

    identifiers = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        identifiers.append(line)
    return identifiers


def _translate_segment(segment: str, pattern: str) -> str:
    """
    Check one pattern segment and rewrite it for ``fnmatchcase``.

    ``\\c`` matches ``c`` literally and ``[^...]`` is a negated class like
    ``[!...]``.
    """
    parts = []
    i = 0
    while i < len(segment):
        char = segment[i]
        if char == "\\":
            if i + 1 >= len(segment):
                raise FilterPatternError(f"malformed path filter {pattern!r}: trailing backslash")
            escaped = segment[i + 1]
            parts.append(f"[{escaped}]" if escaped in "*?[" else escaped)
            i += 2
            continue
        if char == "[":
            j = i + 1
            if j < len(segment) and segment[j] in "!^":
                j += 1
            if j < len(segment) and segment[j] == "]":
                j += 1
            while j < len(segment) and segment[j] != "]":
                j += 1
            if j >= len(segment):
                raise FilterPatternError(f"malformed path filter {pattern!r}: unterminated character class")
            char_class = segment[i:j + 1]
            if char_class.startswith("[^"):
                char_class = "[!" + char_class[2:]
            parts.append(char_class)
            i = j + 1
            continue
        parts.append(char)
        i += 1
    return "".join(parts)


class PathFilter:
    """
    Glob filter on local paths.

    Matching is done per path segment: ``*``, ``?`` and ``[...]`` never
    cross a ``/`` and the pattern must have as many segments as the path.
    ``[^...]`` is accepted as a negated class alongside ``[!...]`` and a
    backslash escapes the next character.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern
        self._segments = [_translate_segment(segment, pattern) for segment in pattern.strip("/").split("/")]

    def __repr__(self) -> str:
        return f"PathFilter({self.pattern!r})"

    def matches(self, local_path: str) -> bool:
        parts = local_path.strip("/").split("/")
        if len(parts) != len(self._segments):
            return False
        return all(fnmatch.fnmatchcase(part, segment) for part, segment in zip(parts, self._segments))


def build_path_filter(pattern: Optional[str]) -> Optional[PathFilter]:
    """PathFilter for a configured pattern, None when no filter is set."""
    if not pattern:
        return None
    return PathFilter(pattern)


def local_path_for(manifest_dir: str, identifier: str) -> Optional[str]:
    """
    Local path of an identifier listed in a manifest.

    Args:
        manifest_dir: Directory of the manifest relative to root, "." for root
        identifier: Remote identifier

    Returns:
        POSIX style relative path, or None if the identifier has no usable name
    """
    name = repository_basename(identifier)
    if name in _UNSAFE_NAMES:
        return None
    if manifest_dir in ("", "."):
        return name
    return f"{manifest_dir}/{name}"


def raise_walk_error(error: OSError) -> None:
    raise ReconcileError(f"cannot walk directory: {error.strerror or error}", error.filename)


def collect_expected_repositories(config: Config, report: Optional[RunReport] = None) -> Dict[str, str]:
    """
    Walk the root tree and build the expected set from every manifest.

    ``.git`` directories are never entered. Directories are visited in
    sorted order, so when two manifests produce the same local path the
    later one wins deterministically; if they name different remotes a
    warning is logged and added to ``report``.

    Args:
        config: Run configuration
        report: Receives collision and invalid identifier warnings

    Returns:
        Mapping of local path (relative to root, ``/`` separated) to remote identifier

    Raises:
        FilterPatternError: The path filter is malformed
        ManifestError: A manifest cannot be read
        ReconcileError: The tree cannot be walked
    """
    logger = logging.getLogger('gitjoin.manifest')
    path_filter = build_path_filter(config.paths)
    root = str(config.root)

    expected: Dict[str, str] = {}
    manifest_count = 0

    for dirpath, dirnames, filenames in os.walk(root, onerror=raise_walk_error):
        dirnames[:] = sorted(d for d in dirnames if d != GIT_DIR)

        if config.manifest_name not in filenames:
            continue

        manifest_path = os.path.join(dirpath, config.manifest_name)
        manifest_dir = Path(os.path.relpath(dirpath, root)).as_posix()
        manifest_count += 1

        for identifier in read_manifest(manifest_path):
            local_path = local_path_for(manifest_dir, identifier)
            if local_path is None:
                message = f"{manifest_dir}/{config.manifest_name}: invalid repository identifier {identifier!r}"
                logger.warning(message)
                if report is not None:
                    report.add_warning(manifest_dir, message)
                continue

            if path_filter is not None and not path_filter.matches(local_path):
                logger.debug(f"Filtered out {local_path}")
                continue

            previous = expected.get(local_path)
            if previous is not None and previous != identifier:
                message = f"{local_path}: declared as both {previous} and {identifier}, using {identifier}"
                logger.warning(message)
                if report is not None:
                    report.add_warning(local_path, message)

            expected[local_path] = identifier

    logger.info(f"Found {len(expected)} repositories in {manifest_count} manifests")
    return expected
