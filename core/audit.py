"""Public API for auditing a workspace's dependency versions."""

from pathlib import Path

from rich.console import Group

from .check import check
from .models import Dependency, Options
from .output import dependencies_to_fixed_summary, dependencies_to_mismatch_summary


class WorkspaceAudit:
    """Dependency version consistency of a workspace.

    Checking (and fixing, when ``options.fix`` is set) happens on
    construction; the instance then answers questions about the result.
    """

    def __init__(self, path: Path | str, options: Options | None = None):
        self.path = Path(path)
        self.options = options or Options()
        self._dependencies = check(self.path, self.options)

    def get_dependencies(self) -> list[Dependency]:
        return [self.get_dependency(name) for name in self._dependencies]

    def get_dependency(self, name: str) -> Dependency:
        """Return the public view of a dependency. Raises KeyError if unknown."""
        info = self._dependencies[name]
        return Dependency(
            name=name,
            is_fixable=info.is_fixable,
            is_mismatching=info.is_mismatching,
            versions=[
                (usage.version, [package.path_relative for package in usage.packages])
                for usage in info.versions
            ],
        )

    @property
    def has_mismatching_dependencies(self) -> bool:
        return any(info.is_mismatching for info in self._dependencies.values())

    @property
    def has_mismatching_dependencies_fixable(self) -> bool:
        return any(info.is_mismatching and info.is_fixable for info in self._dependencies.values())

    @property
    def has_mismatching_dependencies_not_fixable(self) -> bool:
        return any(
            info.is_mismatching and not info.is_fixable for info in self._dependencies.values()
        )

    def to_mismatch_summary(self, include_fixable: bool = True) -> Group:
        return dependencies_to_mismatch_summary(self._dependencies, include_fixable)

    def to_fixed_summary(self) -> str:
        return dependencies_to_fixed_summary(self._dependencies)
