"""Core data models for DepAlign."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .package import Package


class DependencyType(str, Enum):
    """Manifest sections that can declare dependency versions."""

    DEPENDENCIES = "dependencies"
    DEV_DEPENDENCIES = "devDependencies"
    OPTIONAL_DEPENDENCIES = "optionalDependencies"
    PEER_DEPENDENCIES = "peerDependencies"
    RESOLUTIONS = "resolutions"


# peerDependencies are opt-in: they usually declare deliberately wide ranges.
DEFAULT_DEP_TYPES: tuple[DependencyType, ...] = (
    DependencyType.DEPENDENCIES,
    DependencyType.DEV_DEPENDENCIES,
    DependencyType.OPTIONAL_DEPENDENCIES,
    DependencyType.RESOLUTIONS,
)


@dataclass
class VersionObservation:
    """A single version literal seen for a dependency."""

    package: Package
    version: str
    is_local_package_version: bool = False


@dataclass
class VersionUsage:
    """A distinct version of a dependency and the packages using it."""

    version: str
    packages: list[Package]


@dataclass
class DependencyAndVersions:
    """A dependency and every distinct version of it in the workspace."""

    dependency: str
    versions: list[VersionUsage]

    @property
    def is_mismatching(self) -> bool:
        return len(self.versions) > 1


@dataclass
class FixResult:
    """Outcome of a fix pass, split into fixed and unfixable dependencies."""

    fixable: list[DependencyAndVersions] = field(default_factory=list)
    not_fixable: list[DependencyAndVersions] = field(default_factory=list)
    fixed_versions: dict[str, str] = field(default_factory=dict)


@dataclass
class DependencyInfo:
    """Everything the check pipeline knows about one dependency."""

    is_fixable: bool
    is_mismatching: bool
    versions: list[VersionUsage]
    fixed_version: str | None = None


@dataclass
class Dependency:
    """Public view of a dependency, with packages as relative paths."""

    name: str
    is_fixable: bool
    is_mismatching: bool
    versions: list[tuple[str, list[str]]]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "is_fixable": self.is_fixable,
            "is_mismatching": self.is_mismatching,
            "versions": [
                {"version": version, "packages": packages}
                for version, packages in self.versions
            ],
        }


@dataclass
class Options:
    """Options accepted by the check pipeline."""

    fix: bool = False
    dep_type: list[DependencyType | str] = field(default_factory=list)
    ignore_dep: list[str] = field(default_factory=list)
    ignore_dep_pattern: list[str] = field(default_factory=list)
    ignore_package: list[str] = field(default_factory=list)
    ignore_package_pattern: list[str] = field(default_factory=list)
    ignore_path: list[str] = field(default_factory=list)
    ignore_path_pattern: list[str] = field(default_factory=list)
