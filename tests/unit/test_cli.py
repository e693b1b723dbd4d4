"""Tests for CLI functionality."""

import json
from unittest.mock import patch

from typer.testing import CliRunner

from apps.cli.main import app
from tests.conftest import read_json


class TestCLI:
    """Test CLI command interface."""

    def setup_method(self):
        """Setup test fixtures."""
        self.runner = CliRunner()

    def test_cli_help_command(self):
        """Should display help when called with --help."""
        result = self.runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "workspace" in result.output.lower()
        assert "--fix" in result.output

    def test_version(self):
        """Should print the installed version and exit."""
        with patch("apps.cli.main.get_current_version", return_value="1.2.3"):
            result = self.runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "1.2.3" in result.output

    def test_consistent_workspace(self, consistent_workspace):
        """Should exit cleanly with no output when nothing mismatches."""
        result = self.runner.invoke(app, [str(consistent_workspace)])

        assert result.exit_code == 0
        assert result.output.strip() == ""

    def test_inconsistent_workspace(self, inconsistent_workspace):
        """Should list mismatches and exit with an error."""
        result = self.runner.invoke(app, [str(inconsistent_workspace)])

        assert result.exit_code == 1
        assert "Found 3 dependencies with mismatching versions" in result.output
        assert "package1" in result.output
        assert "~3.1.0" in result.output
        assert read_json(inconsistent_workspace / "package.json")["devDependencies"]["foo"] == "^1.0.0"

    def test_fix(self, inconsistent_workspace):
        """Should fix what it can and still fail on what it can't."""
        result = self.runner.invoke(app, [str(inconsistent_workspace), "--fix"])

        assert result.exit_code == 1
        assert "Fixed versions for 2 dependencies: bar@3.2.0, foo@^2.0.0" in result.output
        assert "Found 1 dependency with mismatching versions" in result.output
        assert read_json(inconsistent_workspace / "package.json")["devDependencies"]["foo"] == "^2.0.0"
        package1 = read_json(inconsistent_workspace / "packages" / "package1" / "package.json")
        assert package1["dependencies"]["bar"] == "3.2.0"

    def test_fix_everything(self, inconsistent_workspace):
        """Should exit cleanly once every remaining mismatch is fixed."""
        result = self.runner.invoke(
            app, [str(inconsistent_workspace), "--fix", "--ignore-dep", "package1"]
        )

        assert result.exit_code == 0
        assert "Fixed versions for 2 dependencies" in result.output
        assert "mismatching" not in result.output

        rerun = self.runner.invoke(app, [str(inconsistent_workspace), "--ignore-dep", "package1"])
        assert rerun.exit_code == 0

    def test_ignore_options(self, inconsistent_workspace):
        """Should pass ignore options through to the check."""
        result = self.runner.invoke(
            app,
            [
                str(inconsistent_workspace),
                "--ignore-dep-pattern", "^(foo|bar)$",
                "--ignore-package", "package2",
            ],
        )

        assert result.exit_code == 0

    def test_dep_type(self, make_workspace):
        """Should only check the requested dependency types."""
        root = make_workspace({
            "package.json": {"workspaces": ["*"]},
            "a": {"package.json": {"name": "a", "peerDependencies": {"react": "^17.0.0"}}},
            "b": {"package.json": {"name": "b", "peerDependencies": {"react": "^18.0.0"}}},
        })

        assert self.runner.invoke(app, [str(root)]).exit_code == 0
        result = self.runner.invoke(app, [str(root), "--dep-type", "peerDependencies"])
        assert result.exit_code == 1
        assert "react" in result.output

    def test_invalid_dep_type(self, consistent_workspace):
        """Should reject unknown dependency types."""
        result = self.runner.invoke(app, [str(consistent_workspace), "--dep-type", "fooDependencies"])

        assert result.exit_code == 2

    def test_json_format(self, inconsistent_workspace):
        """Should output JSON format when requested."""
        result = self.runner.invoke(app, [str(inconsistent_workspace), "--format", "json"])

        assert result.exit_code == 1
        output_data = json.loads(result.stdout)
        assert output_data["has_mismatching_dependencies"] is True
        assert output_data["has_mismatching_dependencies_not_fixable"] is True
        foo = next(d for d in output_data["dependencies"] if d["name"] == "foo")
        assert foo == {
            "name": "foo",
            "is_fixable": True,
            "is_mismatching": True,
            "versions": [
                {"version": "^1.0.0", "packages": ["."]},
                {"version": "^2.0.0", "packages": ["packages/package1"]},
            ],
        }

    def test_json_format_consistent(self, consistent_workspace):
        """Should exit cleanly with JSON output when nothing mismatches."""
        result = self.runner.invoke(app, [str(consistent_workspace), "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["has_mismatching_dependencies"] is False

    def test_unsupported_format(self, consistent_workspace):
        """Should reject unknown output formats."""
        result = self.runner.invoke(app, [str(consistent_workspace), "--format", "xml"])

        assert result.exit_code == 1
        assert "Unsupported format: xml" in result.output

    def test_not_a_workspace(self, tmp_path):
        """Should print errors and exit with an error."""
        result = self.runner.invoke(app, [str(tmp_path)])

        assert result.exit_code == 1
        assert "Error: No package.json found at provided path." in result.output

    def test_ineffective_ignore(self, inconsistent_workspace):
        """Should fail when an ignore option matches nothing."""
        result = self.runner.invoke(app, [str(inconsistent_workspace), "--ignore-dep", "nope"])

        assert result.exit_code == 1
        assert "--ignore-dep nope" in result.output
