"""Exceptions raised while loading, checking, and rendering content"""


class ContentError(Exception):
    """Base class for content store failures."""


class FrontmatterError(ContentError, ValueError):
    """A document's front-matter block is not a valid YAML mapping with unique keys."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class LayoutError(ContentError, LookupError):
    """A layout name does not resolve to a usable template."""
