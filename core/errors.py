"""Error types raised by DepAlign."""


class DepAlignError(Exception):
    """Base class for all DepAlign errors."""


class NoManifestError(DepAlignError):
    """No package.json exists at the workspace root."""


class NotAWorkspaceError(DepAlignError):
    """The root package.json does not declare any workspaces."""


class InvalidWorkspaceError(DepAlignError):
    """Workspace declarations are present but malformed."""


class PackageMissingNameError(DepAlignError):
    """A non-root package.json has no `name` field."""


class InvalidDependencyTypeError(DepAlignError):
    """An unknown dependency type was requested."""


class IneffectiveIgnoreFilterError(DepAlignError):
    """An ignore option did not match anything it could ignore."""


class InvalidVersionError(DepAlignError, ValueError):
    """A version literal could not be coerced to a semver version."""

    def __init__(self, version: str):
        super().__init__(f"Invalid Version: {version}")
        self.version = version
