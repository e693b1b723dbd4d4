"""A package in a workspace, backed by its package.json."""

from pathlib import Path

from .errors import InvalidWorkspaceError, PackageMissingNameError
from .manifest import MANIFEST_FILENAME, manifest_exists, read_manifest, read_pnpm_workspace_packages
from .models import DependencyType

ROOT_PACKAGE_NAME = "(Root)"


class Package:
    """Everything needed to know about one package in a workspace."""

    def __init__(self, path: Path, workspace_root: Path):
        self.path = Path(path).resolve()
        self.workspace_root = Path(workspace_root).resolve()
        self.package_json_path = self.path / MANIFEST_FILENAME

        manifest = read_manifest(self.path)
        if manifest is None:
            raise FileNotFoundError(f"No {MANIFEST_FILENAME} found in {self.path}")
        self.package_json: dict = manifest.data
        self.package_json_ends_in_newline = manifest.ends_with_newline
        self.workspace_patterns = self._read_workspace_patterns()

    def __repr__(self) -> str:
        return f"Package({self.path_relative!r})"

    @property
    def name(self) -> str:
        name = self.package_json.get("name")
        if not name:
            if self.workspace_patterns:
                return ROOT_PACKAGE_NAME
            raise PackageMissingNameError(f"{self.package_json_path} missing `name`")
        return name

    @property
    def version(self) -> str | None:
        return self.package_json.get("version") or None

    @property
    def path_relative(self) -> str:
        return self.path.relative_to(self.workspace_root).as_posix()

    def dependencies(self, dep_type: DependencyType) -> dict[str, str]:
        """Return the dependency map of one manifest section, or {} if absent."""
        section = self.package_json.get(dep_type.value)
        return section if isinstance(section, dict) else {}

    def _read_workspace_patterns(self) -> list[str]:
        workspaces = self.package_json.get("workspaces")
        if workspaces is not None:
            # Yarn also accepts {"packages": [...], "nohoist": [...]}.
            if isinstance(workspaces, dict):
                workspaces = workspaces.get("packages", [])
            if not isinstance(workspaces, list) or not all(isinstance(w, str) for w in workspaces):
                raise InvalidWorkspaceError(
                    f"{self.package_json_path} `workspaces` is not a string array."
                )
            return workspaces

        return read_pnpm_workspace_packages(self.path) or []

    @staticmethod
    def exists(path: Path) -> bool:
        return manifest_exists(Path(path))

    @staticmethod
    def sort_key(package: "Package") -> str:
        return package.name
