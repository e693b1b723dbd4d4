"""Checking a workspace for inconsistent dependency versions."""

import logging
import re
from pathlib import Path

from .dependency_versions import (
    calculate_dependencies_and_versions,
    calculate_versions_for_each_dependency,
    filter_out_ignored_dependencies,
    fix_versions_mismatching,
)
from .errors import InvalidDependencyTypeError
from .models import DEFAULT_DEP_TYPES, DependencyInfo, DependencyType, Options
from .workspace import get_packages

logger = logging.getLogger(__name__)


def parse_dep_types(dep_types) -> list[DependencyType]:
    """Convert dependency type names into DependencyType members.

    Falls back to DEFAULT_DEP_TYPES when none are given.

    Raises:
        InvalidDependencyTypeError: If a name is not a known dependency type
    """
    if not dep_types:
        return list(DEFAULT_DEP_TYPES)

    choices = [dep_type.value for dep_type in DependencyType]
    parsed = []
    for dep_type in dep_types:
        try:
            parsed.append(DependencyType(dep_type))
        except ValueError:
            raise InvalidDependencyTypeError(
                f"Invalid depType provided. Choices are: {', '.join(choices)}."
            ) from None
    return parsed


def check(path: Path | str, options: Options | None = None) -> dict[str, DependencyInfo]:
    """Check a workspace for inconsistencies, optionally fixing them.

    Args:
        path: Path to the workspace root
        options: Which dependency types to check, what to ignore, and
            whether to fix (using the highest version present)

    Returns:
        Mapping of every dependency in the workspace to what is known about
        it, including the versions found of it
    """
    options = options or Options()
    dep_types = parse_dep_types(options.dep_type)
    ignore_dep_patterns = [re.compile(p) for p in options.ignore_dep_pattern]

    packages = get_packages(
        path,
        options.ignore_package,
        [re.compile(p) for p in options.ignore_package_pattern],
        options.ignore_path,
        [re.compile(p) for p in options.ignore_path_pattern],
    )

    dependencies_and_versions = calculate_dependencies_and_versions(
        calculate_versions_for_each_dependency(packages, dep_types)
    )
    mismatching = [d for d in dependencies_and_versions if d.is_mismatching]

    dependencies_without_ignored = filter_out_ignored_dependencies(
        dependencies_and_versions, options.ignore_dep, ignore_dep_patterns
    )
    mismatching_without_ignored = filter_out_ignored_dependencies(
        mismatching, options.ignore_dep, ignore_dep_patterns
    )
    logger.info(
        f"Found {len(mismatching_without_ignored)} mismatching dependencies in {len(packages)} packages"
    )

    # Always run the fixer so that fixability is known; only write when fixing.
    fix_result = fix_versions_mismatching(
        packages, mismatching_without_ignored, dry_run=not options.fix, dep_types=dep_types
    )
    mismatching_names = {d.dependency for d in mismatching_without_ignored}

    return {
        d.dependency: DependencyInfo(
            is_fixable=d.dependency in fix_result.fixed_versions,
            is_mismatching=d.dependency in mismatching_names,
            versions=d.versions,
            fixed_version=fix_result.fixed_versions.get(d.dependency),
        )
        for d in dependencies_without_ignored
    }
