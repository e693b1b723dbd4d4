"""Reading and editing package.json manifests and pnpm workspace files."""

import json
import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

import yaml

from .errors import InvalidWorkspaceError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "package.json"
PNPM_WORKSPACE_FILENAME = "pnpm-workspace.yaml"

DEFAULT_INDENT = 2

_INDENT_RE = re.compile(r"^([ \t]+)\S", re.MULTILINE)


@dataclass
class Manifest:
    """A parsed package.json and the formatting details needed to rewrite it."""

    path: Path
    data: dict
    ends_with_newline: bool


def manifest_exists(directory: Path) -> bool:
    return (Path(directory) / MANIFEST_FILENAME).is_file()


def read_manifest(directory: Path) -> Manifest | None:
    """Read the package.json in a directory.

    Returns:
        The parsed manifest, or None if the directory has no package.json
    """
    path = Path(directory) / MANIFEST_FILENAME
    if not path.is_file():
        return None

    content = path.read_text(encoding="utf-8")
    return Manifest(
        path=path,
        data=json.loads(content),
        ends_with_newline=content.endswith("\n"),
    )


def read_pnpm_workspace_packages(directory: Path) -> list[str] | None:
    """Read the `packages` list of a pnpm-workspace.yaml.

    Returns:
        The declared patterns, an empty list if the file has no `packages`
        field, or None if there is no pnpm-workspace.yaml at all

    Raises:
        InvalidWorkspaceError: If the file or its `packages` field is malformed
    """
    path = Path(directory) / PNPM_WORKSPACE_FILENAME
    if not path.is_file():
        return None

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InvalidWorkspaceError(f"{path} is not valid YAML: {e}") from e

    if data is None:
        return []
    if not isinstance(data, dict):
        raise InvalidWorkspaceError(f"{path} is not a mapping.")

    packages = data.get("packages")
    if packages is None:
        return []
    if not isinstance(packages, list) or not all(isinstance(p, str) for p in packages):
        raise InvalidWorkspaceError(f"{path} `packages` is not a string array.")

    return packages


def escape_key(key: str) -> str:
    """Escape dots so a key is not split into nested properties."""
    return key.replace(".", "\\.")


def split_key_path(key_path: str) -> list[str]:
    """Split a dot-separated key path, honouring escaped dots."""
    keys = []
    current = []
    index = 0
    while index < len(key_path):
        char = key_path[index]
        if char == "\\" and key_path[index + 1 : index + 2] == ".":
            current.append(".")
            index += 2
            continue
        if char == ".":
            keys.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    keys.append("".join(current))
    return keys


def _detect_indent(content: str) -> str | int:
    match = _INDENT_RE.search(content)
    if not match:
        return DEFAULT_INDENT
    indent = match.group(1)
    return indent if "\t" in indent else len(indent)


def edit_manifest(path: Path, key_path: str, value: str, ends_with_newline: bool) -> None:
    """Set a single value in a package.json file in place.

    The whole document is re-serialized with json.dumps: key order, the
    detected indentation and the trailing newline state are kept, but other
    formatting such as compact inline arrays or objects is not. The file is
    written to a temporary sibling first and then moved over the original.

    Args:
        path: Path to the package.json file
        key_path: Dot-separated key path, with literal dots escaped
        value: The new string value
        ends_with_newline: Whether the written file should end with a newline
    """
    path = Path(path)
    content = path.read_text(encoding="utf-8")
    data = json.loads(content)

    keys = split_key_path(key_path)
    target = data
    for key in keys[:-1]:
        if not isinstance(target.get(key), dict):
            target[key] = {}
        target = target[key]
    target[keys[-1]] = value

    output = json.dumps(data, indent=_detect_indent(content), ensure_ascii=False)
    if ends_with_newline:
        output += "\n"

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(output)
        shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except BaseException:
        os.unlink(temp_path)
        raise

    logger.debug(f"Set {key_path}={value} in {path}")
