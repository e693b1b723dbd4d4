"""Workspace discovery: expanding workspace globs into packages."""

import logging
import re
from collections.abc import Sequence
from pathlib import Path

from .errors import IneffectiveIgnoreFilterError, NoManifestError, NotAWorkspaceError
from .manifest import MANIFEST_FILENAME
from .package import Package

logger = logging.getLogger(__name__)

GLOB_CHARACTERS = ("*", "?", "[")
IGNORED_DIRECTORY = "node_modules"


def get_packages(
    root: Path | str,
    ignore_packages: Sequence[str] = (),
    ignore_package_patterns: Sequence[re.Pattern] = (),
    ignore_paths: Sequence[str] = (),
    ignore_path_patterns: Sequence[re.Pattern] = (),
) -> list[Package]:
    """Find every package in a workspace, including the root package.

    Nested workspaces are followed. Packages come back in discovery order:
    the root first, then depth-first in the order patterns are declared.

    Args:
        root: Path to the workspace root
        ignore_packages: Package names to leave out
        ignore_package_patterns: Regexes of package names to leave out
        ignore_paths: Substrings of workspace-relative paths to leave out
        ignore_path_patterns: Regexes of workspace-relative paths to leave out

    Returns:
        List of packages

    Raises:
        NoManifestError: If the root has no package.json
        NotAWorkspaceError: If the root package.json declares no workspaces
        IneffectiveIgnoreFilterError: If an ignore option matches no package
    """
    root = Path(root).resolve()
    if not Package.exists(root):
        raise NoManifestError(f"No {MANIFEST_FILENAME} found at provided path.")

    root_package = Package(root, root)
    if not root_package.workspace_patterns:
        raise NotAWorkspaceError("Package at provided path has no workspaces specified.")

    packages = _accumulate_packages(root, root, ["."])
    logger.debug(f"Discovered {len(packages)} packages under {root}")

    for ignore_package in ignore_packages:
        if not any(package.name == ignore_package for package in packages):
            raise IneffectiveIgnoreFilterError(
                f"Specified option '--ignore-package {ignore_package}', but no such package detected in workspace."
            )

    for pattern in ignore_package_patterns:
        if not any(pattern.search(package.name) for package in packages):
            raise IneffectiveIgnoreFilterError(
                f"Specified option '--ignore-package-pattern {pattern.pattern}', but no matching packages detected in workspace."
            )

    for ignore_path in ignore_paths:
        if not any(ignore_path in package.path_relative for package in packages):
            raise IneffectiveIgnoreFilterError(
                f"Specified option '--ignore-path {ignore_path}', but no matching paths detected in workspace."
            )

    for pattern in ignore_path_patterns:
        if not any(pattern.search(package.path_relative) for package in packages):
            raise IneffectiveIgnoreFilterError(
                f"Specified option '--ignore-path-pattern {pattern.pattern}', but no matching paths detected in workspace."
            )

    if ignore_packages or ignore_package_patterns or ignore_paths or ignore_path_patterns:
        packages = [
            package
            for package in packages
            if not _is_ignored(
                package, ignore_packages, ignore_package_patterns, ignore_paths, ignore_path_patterns
            )
        ]

    return packages


def _is_ignored(
    package: Package,
    ignore_packages,
    ignore_package_patterns,
    ignore_paths,
    ignore_path_patterns,
) -> bool:
    return (
        package.name in ignore_packages
        or any(pattern.search(package.name) for pattern in ignore_package_patterns)
        or any(ignore_path in package.path_relative for ignore_path in ignore_paths)
        or any(pattern.search(package.path_relative) for pattern in ignore_path_patterns)
    )


def _accumulate_packages(workspace_root: Path, base: Path, paths: list[str]) -> list[Package]:
    packages: list[Package] = []
    seen: set[Path] = set()

    def visit(base: Path, paths: list[str]) -> None:
        for relative_path in paths:
            path = (base / relative_path).resolve()
            if path in seen or not Package.exists(path):
                continue
            seen.add(path)

            package = Package(path, workspace_root)
            packages.append(package)
            if package.workspace_patterns and path != base:
                logger.debug(f"Following nested workspace at {package.path_relative}")
            visit(path, expand_workspace_patterns(path, package.workspace_patterns))

    visit(base, paths)
    return packages


def expand_workspace_patterns(base: Path, patterns: list[str]) -> list[str]:
    """Expand workspace patterns into paths relative to base.

    Patterns without glob characters are returned as-is. Glob patterns match
    existing directories only, never anything inside node_modules, and no
    hidden directories unless the pattern names them literally.
    """
    paths: list[str] = []
    for pattern in patterns:
        pattern = pattern.rstrip("/")
        if not any(char in pattern for char in GLOB_CHARACTERS):
            paths.append(pattern)
            continue

        matches = sorted(
            match.relative_to(base).as_posix()
            for match in Path(base).glob(pattern)
            if match.is_dir() and not _is_excluded_match(match.relative_to(base).parts, pattern)
        )
        logger.debug(f"Pattern '{pattern}' matched {len(matches)} directories")
        paths.extend(matches)

    return paths


def _is_excluded_match(parts: tuple[str, ...], pattern: str) -> bool:
    if IGNORED_DIRECTORY in parts:
        return True
    literal_parts = set(pattern.split("/"))
    return any(part.startswith(".") and part not in literal_parts for part in parts)
