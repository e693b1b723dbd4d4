"""CLI application for DepAlign."""

import json
import logging
from importlib.metadata import PackageNotFoundError, version

import typer
from rich.console import Console
from rich.logging import RichHandler

from core.audit import WorkspaceAudit
from core.models import DEFAULT_DEP_TYPES, DependencyType, Options

console = Console()
err_console = Console(stderr=True)


def get_current_version() -> str:
    try:
        return version("depalign")
    except PackageNotFoundError:
        return "0.0.0"


def format_json_output(audit: WorkspaceAudit) -> str:
    """Format JSON output."""
    return json.dumps(
        {
            "dependencies": [dependency.to_dict() for dependency in audit.get_dependencies()],
            "has_mismatching_dependencies": audit.has_mismatching_dependencies,
            "has_mismatching_dependencies_fixable": audit.has_mismatching_dependencies_fixable,
            "has_mismatching_dependencies_not_fixable": audit.has_mismatching_dependencies_not_fixable,
        },
        indent=2,
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    if value:
        console.print(get_current_version())
        raise typer.Exit()


app = typer.Typer(
    name="depalign",
    help="DepAlign - Check that dependencies are on consistent versions across a monorepo / npm/pnpm/Yarn workspace",
    add_completion=False,
)


@app.command()
def check(
    path: str = typer.Argument(".", help="Path to workspace root"),
    dep_type: list[DependencyType] | None = typer.Option(
        None,
        "--dep-type",
        help=f"Type of dependency to check (default: {', '.join(d.value for d in DEFAULT_DEP_TYPES)}) (option can be repeated)",
    ),
    fix: bool = typer.Option(False, "--fix", help="Whether to autofix inconsistencies (using highest version present)"),
    ignore_dep: list[str] | None = typer.Option(
        None, "--ignore-dep", help="Dependency to ignore (option can be repeated)"
    ),
    ignore_dep_pattern: list[str] | None = typer.Option(
        None, "--ignore-dep-pattern", help="RegExp of dependency names to ignore (option can be repeated)"
    ),
    ignore_package: list[str] | None = typer.Option(
        None, "--ignore-package", help="Workspace package to ignore (option can be repeated)"
    ),
    ignore_package_pattern: list[str] | None = typer.Option(
        None, "--ignore-package-pattern", help="RegExp of package names to ignore (option can be repeated)"
    ),
    ignore_path: list[str] | None = typer.Option(
        None, "--ignore-path", help="Workspace-relative path of packages to ignore (option can be repeated)"
    ),
    ignore_path_pattern: list[str] | None = typer.Option(
        None,
        "--ignore-path-pattern",
        help="RegExp of workspace-relative path of packages to ignore (option can be repeated)",
    ),
    format_type: str = typer.Option("table", "--format", help="Output format: table or json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    show_version: bool = typer.Option(
        False, "--version", callback=version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """DepAlign - Check dependency versions across a workspace, optionally fixing them."""
    configure_logging(verbose)

    try:
        if format_type not in ("table", "json"):
            console.print(f"Error: Unsupported format: {format_type}", style="red", markup=False)
            raise typer.Exit(1)

        options = Options(
            fix=fix,
            dep_type=list(dep_type or []),
            ignore_dep=list(ignore_dep or []),
            ignore_dep_pattern=list(ignore_dep_pattern or []),
            ignore_package=list(ignore_package or []),
            ignore_package_pattern=list(ignore_package_pattern or []),
            ignore_path=list(ignore_path or []),
            ignore_path_pattern=list(ignore_path_pattern or []),
        )
        audit = WorkspaceAudit(path, options)

        if format_type == "json":
            typer.echo(format_json_output(audit))
            still_mismatching = (
                audit.has_mismatching_dependencies_not_fixable if fix else audit.has_mismatching_dependencies
            )
            if still_mismatching:
                raise typer.Exit(1)
            return

        if fix:
            # Show output for dependencies we fixed.
            if audit.has_mismatching_dependencies_fixable:
                console.print(audit.to_fixed_summary(), markup=False)

            # Show output for dependencies that still have mismatches.
            if audit.has_mismatching_dependencies_not_fixable:
                console.print(audit.to_mismatch_summary(include_fixable=False))
                raise typer.Exit(1)
        elif audit.has_mismatching_dependencies:
            console.print(audit.to_mismatch_summary())
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"Error: {e}", style="red", markup=False)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
