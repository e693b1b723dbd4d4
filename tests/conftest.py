"""Pytest configuration and fixtures."""

import json

import pytest


def write_tree(base, tree):
    """Write a nested dict as files; dict values for *.json names become JSON."""
    base.mkdir(parents=True, exist_ok=True)
    for name, content in tree.items():
        path = base / name
        if isinstance(content, dict) and not name.endswith(".json"):
            write_tree(path, content)
        elif isinstance(content, (dict, list)):
            path.write_text(json.dumps(content, indent=2) + "\n")
        else:
            path.write_text(content)


def read_json(path):
    return json.loads(path.read_text())


@pytest.fixture
def make_workspace(tmp_path):
    """Create a workspace from a nested dict and return its root."""

    def _make_workspace(tree, name="workspace"):
        root = tmp_path / name
        write_tree(root, tree)
        return root

    return _make_workspace


@pytest.fixture
def inconsistent_workspace(make_workspace):
    """Workspace where foo, bar and a local package disagree on versions."""
    return make_workspace({
        "package.json": {
            "name": "root",
            "workspaces": ["packages/*"],
            "devDependencies": {"foo": "^1.0.0"},
        },
        "packages": {
            "package1": {
                "package.json": {
                    "name": "package1",
                    "version": "1.0.0",
                    "dependencies": {"foo": "^2.0.0", "bar": "~3.1.0"},
                },
            },
            "package2": {
                "package.json": {
                    "name": "package2",
                    "dependencies": {"bar": "3.2.0", "package1": "^2.0.0"},
                },
            },
        },
    })


@pytest.fixture
def consistent_workspace(make_workspace):
    """Workspace with no version mismatches."""
    return make_workspace({
        "package.json": {"workspaces": ["packages/*"], "devDependencies": {"foo": "^1.0.0"}},
        "packages": {
            "a": {"package.json": {"name": "a", "version": "1.2.0", "dependencies": {"foo": "^1.0.0"}}},
            "b": {"package.json": {"name": "b", "dependencies": {"a": "^1.0.0"}}},
        },
    })
