"""Tests for workspace package records."""

import pytest

from core.errors import PackageMissingNameError
from core.models import DependencyType
from core.package import ROOT_PACKAGE_NAME, Package


class TestPackage:
    """Test reading package details from package.json."""

    def test_missing_name_raises(self, make_workspace):
        root = make_workspace({
            "package.json": {"workspaces": ["*"]},
            "package1": {"package.json": {"version": "1.0.0"}},
        })
        package = Package(root / "package1", root)

        with pytest.raises(PackageMissingNameError, match="missing `name`"):
            package.name

    def test_nameless_workspace_root(self, make_workspace):
        root = make_workspace({"package.json": {"workspaces": ["*"]}})

        assert Package(root, root).name == ROOT_PACKAGE_NAME

    def test_nameless_pnpm_workspace_root(self, make_workspace):
        root = make_workspace({
            "package.json": {},
            "pnpm-workspace.yaml": "packages:\n  - '*'\n",
        })

        assert Package(root, root).name == ROOT_PACKAGE_NAME

    def test_pnpm_workspace_without_packages_field(self, make_workspace):
        root = make_workspace({
            "package.json": {"name": "root"},
            "pnpm-workspace.yaml": "onlyBuiltDependencies:\n  - esbuild\n",
        })

        assert Package(root, root).workspace_patterns == []

    def test_paths_and_newline(self, make_workspace):
        root = make_workspace({
            "package.json": {"workspaces": ["packages/*"]},
            "packages": {"a": {"package.json": '{"name": "a"}'}},
        })
        package = Package(root / "packages" / "a", root)

        assert package.path_relative == "packages/a"
        assert package.package_json_path == root.resolve() / "packages" / "a" / "package.json"
        assert package.package_json_ends_in_newline is False
        assert Package(root, root).path_relative == "."
        assert Package(root, root).package_json_ends_in_newline is True

    def test_dependencies(self, make_workspace):
        root = make_workspace({
            "package.json": {"workspaces": ["*"], "devDependencies": {"foo": "^1.0.0"}},
        })
        package = Package(root, root)

        assert package.dependencies(DependencyType.DEV_DEPENDENCIES) == {"foo": "^1.0.0"}
        assert package.dependencies(DependencyType.DEPENDENCIES) == {}
