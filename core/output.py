"""Human-readable summaries of dependency version checks."""

from rich import box
from rich.console import Group
from rich.table import Table
from rich.text import Text

from .models import DependencyInfo

MAX_PACKAGES_LISTED = 3


def _pluralize(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _packages_cell(names: list[str]) -> str:
    if len(names) <= MAX_PACKAGES_LISTED:
        return ", ".join(names)
    others = len(names) - MAX_PACKAGES_LISTED
    listed = ", ".join(names[:MAX_PACKAGES_LISTED])
    return f"{listed}, and {others} {_pluralize(others, 'other', 'others')}"


def _dependency_table(dependency: str, info: DependencyInfo) -> Table:
    table = Table(box=box.DOUBLE_EDGE, show_lines=True)
    table.add_column(Text(dependency, style="bold"))
    table.add_column("Usages")
    table.add_column("Packages")

    counts = [len(usage.packages) for usage in info.versions]
    most_used = max(counts)
    most_used_is_unique = counts.count(most_used) == 1

    # Highest version first.
    for usage in reversed(info.versions):
        count = len(usage.packages)
        table.add_row(
            Text(usage.version, style="red"),
            Text(str(count), style="bold" if most_used_is_unique and count == most_used else ""),
            _packages_cell([package.name for package in usage.packages]),
        )
    return table


def dependencies_to_mismatch_summary(
    dependencies: dict[str, DependencyInfo], include_fixable: bool = True
) -> Group:
    """Render a table of versions for every mismatching dependency.

    Args:
        dependencies: Result of a check
        include_fixable: Also list mismatches that a fix would resolve

    Raises:
        ValueError: If there are no mismatching dependencies to show
    """
    mismatching = {
        name: info
        for name, info in dependencies.items()
        if info.is_mismatching and (include_fixable or not info.is_fixable)
    }
    if not mismatching:
        raise ValueError("No mismatching versions to output.")

    count = len(mismatching)
    header = Text(
        f"Found {count} {_pluralize(count, 'dependency', 'dependencies')} "
        "with mismatching versions across the workspace. Fix with `--fix`."
    )
    return Group(header, *(_dependency_table(name, info) for name, info in mismatching.items()))


def dependencies_to_fixed_summary(dependencies: dict[str, DependencyInfo]) -> str:
    """Summarize the dependencies a fix converged, with the version used.

    Raises:
        ValueError: If nothing was fixed
    """
    fixed = [
        f"{name}@{info.fixed_version}"
        for name, info in sorted(dependencies.items())
        if info.is_mismatching and info.is_fixable
    ]
    if not fixed:
        raise ValueError("No fixes to output.")

    count = len(fixed)
    return (
        f"Fixed versions for {count} {_pluralize(count, 'dependency', 'dependencies')}: "
        f"{', '.join(fixed)}"
    )
