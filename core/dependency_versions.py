"""Collecting, comparing and fixing dependency versions across packages."""

import logging
import re
from collections.abc import Sequence
from functools import cmp_to_key

from .errors import IneffectiveIgnoreFilterError, InvalidVersionError
from .manifest import edit_manifest, escape_key
from .models import (
    DEFAULT_DEP_TYPES,
    DependencyAndVersions,
    DependencyType,
    FixResult,
    VersionObservation,
    VersionUsage,
)
from .package import Package
from .semver import (
    coerce,
    compare_version_ranges_safe,
    get_highest_range_type,
    get_increased_latest_version,
    satisfies,
    version_range_to_range,
)

logger = logging.getLogger(__name__)

WORKSPACE_PROTOCOL = "workspace:"

# "//" is a common way to add comments to package.json files.
HARDCODED_IGNORED_DEPENDENCIES = frozenset({"//"})

DependenciesToVersionsSeen = dict[str, list[VersionObservation]]


def calculate_versions_for_each_dependency(
    packages: Sequence[Package],
    dep_types: Sequence[DependencyType] = DEFAULT_DEP_TYPES,
) -> DependenciesToVersionsSeen:
    """Map each dependency in the workspace to every version seen of it.

    A package's own name and version are recorded too, flagged as its local
    package version, so that consumers of a workspace package can be checked
    against the version it actually has.
    """
    dependencies_to_versions_seen: DependenciesToVersionsSeen = {}
    for package in packages:
        _record_dependency_versions_for_package(dependencies_to_versions_seen, package, dep_types)
    logger.debug(
        f"Recorded versions for {len(dependencies_to_versions_seen)} dependencies across {len(packages)} packages"
    )
    return dependencies_to_versions_seen


def _record_dependency_versions_for_package(
    dependencies_to_versions_seen: DependenciesToVersionsSeen,
    package: Package,
    dep_types: Sequence[DependencyType],
) -> None:
    name = package.package_json.get("name")
    version = package.package_json.get("version")
    if name and version:
        dependencies_to_versions_seen.setdefault(name, []).append(
            VersionObservation(package=package, version=version, is_local_package_version=True)
        )

    for dep_type in DependencyType:
        if dep_type not in dep_types:
            continue
        for dependency, dependency_version in package.dependencies(dep_type).items():
            # Empty strings are placeholders, not constraints.
            if not dependency_version or not isinstance(dependency_version, str):
                continue
            dependencies_to_versions_seen.setdefault(dependency, []).append(
                VersionObservation(package=package, version=dependency_version)
            )


def calculate_dependencies_and_versions(
    dependencies_to_versions_seen: DependenciesToVersionsSeen,
) -> list[DependencyAndVersions]:
    """Reduce the versions seen of each dependency to its distinct versions.

    Dependencies are returned sorted by name, and their versions sorted from
    lowest to highest. Any dependency with more than one version is
    mismatching.
    """
    results = []
    for dependency in sorted(dependencies_to_versions_seen):
        observations = dependencies_to_versions_seen[dependency]

        versions = [o.version for o in observations if not o.is_local_package_version]
        local_package_versions = [o.version for o in observations if o.is_local_package_version]

        if len(local_package_versions) == 1:
            local_package_version = local_package_versions[0]
            # The workspace protocol always resolves to the local version.
            all_versions_have_workspace_prefix = all(
                version.startswith(WORKSPACE_PROTOCOL) for version in versions
            )
            has_incompatibility_with_local_package_version = any(
                not satisfies(local_package_version, version) for version in versions
            )
            if not all_versions_have_workspace_prefix and has_incompatibility_with_local_package_version:
                versions.append(local_package_version)

        unique_versions = sorted(dict.fromkeys(versions), key=cmp_to_key(compare_version_ranges_safe))

        results.append(
            DependencyAndVersions(
                dependency=dependency,
                versions=[
                    VersionUsage(
                        version=version,
                        packages=sorted(
                            (o.package for o in observations if o.version == version),
                            key=Package.sort_key,
                        ),
                    )
                    for version in unique_versions
                ],
            )
        )

    return results


def filter_out_ignored_dependencies(
    dependencies_and_versions: Sequence[DependencyAndVersions],
    ignored_dependencies: Sequence[str] = (),
    ignored_dependency_patterns: Sequence[re.Pattern] = (),
) -> list[DependencyAndVersions]:
    """Drop ignored dependencies.

    Raises:
        IneffectiveIgnoreFilterError: If an ignored name or pattern matches
            none of the given dependencies
    """
    for ignored_dependency in ignored_dependencies:
        if not any(d.dependency == ignored_dependency for d in dependencies_and_versions):
            raise IneffectiveIgnoreFilterError(
                f"Specified option '--ignore-dep {ignored_dependency}', but no version mismatches detected for this dependency."
            )

    for pattern in ignored_dependency_patterns:
        if not any(pattern.search(d.dependency) for d in dependencies_and_versions):
            raise IneffectiveIgnoreFilterError(
                f"Specified option '--ignore-dep-pattern {pattern.pattern}', but no matching dependencies with version mismatches detected."
            )

    return [
        d
        for d in dependencies_and_versions
        if d.dependency not in ignored_dependencies
        and not any(pattern.search(d.dependency) for pattern in ignored_dependency_patterns)
        and d.dependency not in HARDCODED_IGNORED_DEPENDENCIES
    ]


def _calculate_fixed_version(
    packages: Sequence[Package], mismatching_version: DependencyAndVersions
) -> str | None:
    """Return the version to fix a dependency to, or None if it can't be fixed."""
    versions = [usage.version for usage in mismatching_version.versions]
    try:
        fixed_version = get_increased_latest_version(versions)

        local_package = next(
            (p for p in packages if p.name == mismatching_version.dependency), None
        )
        if local_package is None or not local_package.version:
            return fixed_version

        fixed_core = coerce(fixed_version)
        if fixed_core is None:
            raise InvalidVersionError(fixed_version)
        local_core = coerce(local_package.version)
        if local_core is None:
            raise InvalidVersionError(local_package.version)

        # Never require a version of a local package that doesn't exist yet.
        if fixed_core > local_core:
            logger.debug(
                f"Not fixing {mismatching_version.dependency}: {fixed_version} is higher than local version {local_package.version}"
            )
            return None
    except InvalidVersionError as e:
        logger.debug(f"Not fixing {mismatching_version.dependency}: {e}")
        return None

    if local_package.version == fixed_version:
        highest_range_type_seen = get_highest_range_type(
            [version_range_to_range(version) for version in versions]
        )
        fixed_version = f"{highest_range_type_seen}{coerce(fixed_version)}"

    return fixed_version


def fix_versions_mismatching(
    packages: Sequence[Package],
    mismatching_versions: Sequence[DependencyAndVersions],
    dry_run: bool = False,
    dep_types: Sequence[DependencyType] = DEFAULT_DEP_TYPES,
) -> FixResult:
    """Converge each mismatching dependency on a single version.

    Each dependency is fixed to the highest version present, keeping the
    widest compatible range prefix. Dependencies whose versions can't be
    compared, or whose fix would exceed the local package's own version, are
    returned as not fixable.

    Args:
        packages: Packages of the workspace
        mismatching_versions: Dependencies with more than one version
        dry_run: Compute the result without writing any package.json
        dep_types: Manifest sections to update

    Returns:
        Fixed and not fixable dependencies, with their pre-fix versions
    """
    result = FixResult()
    for mismatching_version in mismatching_versions:
        fixed_version = _calculate_fixed_version(packages, mismatching_version)
        if fixed_version is None:
            result.not_fixable.append(mismatching_version)
            continue

        is_fixed = False
        for package in packages:
            for dep_type in DependencyType:
                if dep_type not in dep_types:
                    continue
                current_version = package.dependencies(dep_type).get(mismatching_version.dependency)
                if not isinstance(current_version, str) or not current_version or current_version == fixed_version:
                    continue

                if not dry_run:
                    edit_manifest(
                        package.package_json_path,
                        f"{dep_type.value}.{escape_key(mismatching_version.dependency)}",
                        fixed_version,
                        package.package_json_ends_in_newline,
                    )
                logger.info(
                    f"{'Would fix' if dry_run else 'Fixed'} {mismatching_version.dependency} in {package.path_relative} "
                    f"({dep_type.value}): {current_version} -> {fixed_version}"
                )
                is_fixed = True

        if is_fixed:
            result.fixable.append(mismatching_version)
            result.fixed_versions[mismatching_version.dependency] = fixed_version

    return result
