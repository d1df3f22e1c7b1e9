"""
Structured filesystem locations.

PURPOSE: Typed handle for a filesystem item, the counterpart of a raw path.
AI CONTEXT: FileManager accepts either a path string or a Location; the
temporary directory helpers always produce and pass Locations.

DESIGN:
- Frozen dataclass: value semantics, hashable, safe to share across tasks
- Always a local file location (scheme "file"); the scheme is carried so
  callers can assert on it, not to support remote backends
- Implements os.PathLike so it can be handed to any os/shutil call

USAGE:
    loc = Location.from_path("/tmp/work")
    child = loc.appending_path_component("a.txt")
    child.last_path_component  # 'a.txt'
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePath
from urllib.parse import unquote, urlparse

FILE_SCHEME = "file"


@dataclass(frozen=True)
class Location:
    """
    A local file location.

    Attributes:
        path: Filesystem path exactly as given (not normalized). Both this
            path and the Location itself denote the same item.
        scheme: Always "file" for locations produced by this package.
        is_directory: Optional hint recorded when the location was built
            for a directory. Informational only; never consulted by
            FileManager implementations.
    """

    path: str
    scheme: str = FILE_SCHEME
    is_directory: bool | None = None

    @classmethod
    def from_path(cls, path: str | os.PathLike[str], is_directory: bool | None = None) -> Location:
        """
        Build a Location from a path string or path-like object.

        Args:
            path: Any str or os.PathLike (pathlib.Path, another Location).
            is_directory: Optional directory hint.

        Returns:
            Location wrapping os.fspath(path).

        Example:
            >>> Location.from_path(Path("/tmp")).path
            '/tmp'
        """
        return cls(os.fspath(path), is_directory=is_directory)

    @classmethod
    def from_uri(cls, uri: str) -> Location:
        """
        Parse a ``file://`` URI into a Location.

        Args:
            uri: URI such as 'file:///tmp/a%20b.txt'.

        Returns:
            Location with the percent-decoded path.

        Raises:
            ValueError: If the URI scheme is not 'file'.
        """
        parsed = urlparse(uri)
        if parsed.scheme != FILE_SCHEME:
            raise ValueError(f"Not a file URI: {uri}")
        return cls(unquote(parsed.path), is_directory=parsed.path.endswith("/") or None)

    def __fspath__(self) -> str:
        return self.path

    def __str__(self) -> str:
        return self.path

    @property
    def is_file_url(self) -> bool:
        """True when the location refers to the local filesystem."""
        return self.scheme == FILE_SCHEME

    @property
    def last_path_component(self) -> str:
        """
        Final path component, ignoring trailing separators.

        Example:
            >>> Location("/tmp/work/").last_path_component
            'work'
        """
        return PurePath(self.path).name or self.path

    @property
    def path_extension(self) -> str:
        """Extension of the last component without the dot, or ''."""
        return PurePath(self.path).suffix.lstrip(".")

    @property
    def parent(self) -> Location:
        return self.deleting_last_path_component()

    def appending_path_component(self, component: str, is_directory: bool | None = None) -> Location:
        """
        Return a child location.

        Args:
            component: Name (or relative subpath) to append.
            is_directory: Optional directory hint for the child.

        Returns:
            New Location; self is unchanged.

        Example:
            >>> Location("/tmp").appending_path_component("a/b.txt").path
            '/tmp/a/b.txt'
        """
        return Location(os.path.join(self.path, component), self.scheme, is_directory)

    def deleting_last_path_component(self) -> Location:
        return Location(str(PurePath(self.path).parent), self.scheme, True)

    def standardized(self) -> Location:
        """Collapse '.', '..' and duplicate separators without touching disk."""
        return Location(os.path.normpath(self.path), self.scheme, self.is_directory)

    def resolving_symlinks(self) -> Location:
        """
        Resolve symbolic links against the host filesystem.

        Components that do not exist are kept as-is, so resolving a location
        that was already removed is safe.
        """
        return Location(os.path.realpath(self.path), self.scheme, self.is_directory)

    def as_uri(self) -> str:
        """
        Render as a ``file://`` URI. Relative paths are made absolute first.

        Example:
            >>> Location("/tmp/a b").as_uri()
            'file:///tmp/a%20b'
        """
        return Path(os.path.abspath(self.path)).as_uri()
