"""
Lazy, forward-only directory enumeration.

PURPOSE: The object returned by FileManager.enumerator() and
enumerator_at_path().
AI CONTEXT: Recursive pre-order walk that opens one directory at a time, so
callers can prune a subtree with skip_descendants() right after seeing it.

DESIGN:
- The enumerator never touches the filesystem directly. It is driven by a
  `scan` callable returning (name, is_directory) pairs for one directory,
  so RealFileManager and in-memory test doubles share the same walk.
- Symbolic links to directories are reported but never descended into.
- A directory is opened only when the walk moves past it, never when it
  is yielded.

ERROR POLICY:
- With an error_handler: the handler receives (location, error) for each
  directory that cannot be opened. Returning True skips that directory and
  continues; returning False halts enumeration. A handler may also raise to
  abort the walk with that exception.
- Without an error_handler: the unreadable directory is skipped and the
  walk continues.

USAGE:
    for relative in fm.enumerator_at_path("/data"):
        print(relative)        # 'a.txt', 'sub', 'sub/b.txt'
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from .enums import DirectoryEnumerationOptions, FileAttributes
from .location import Location

ScanFunction = Callable[[str], Iterable[tuple[str, bool]]]
"""Lists one directory: path -> (entry name, entry is a real directory)."""

AttributesFunction = Callable[[str], FileAttributes]

ErrorHandler = Callable[[Location, OSError], bool]
"""(failed directory, error) -> True to continue, False to halt."""


@dataclass
class _Frame:
    path: str
    relative: str
    level: int
    entries: Iterator[tuple[str, bool]]


class DirectoryEnumerator(Iterator[str | Location]):
    """
    Iterator over every item beneath a root directory.

    Yields relative path strings ('sub/b.txt') by default, or Locations when
    built with yields_locations=True. The root itself is never yielded.
    Entry order within a directory is whatever `scan` returns.

    Honors DirectoryEnumerationOptions:
    - SKIPS_SUBDIRECTORY_DESCENDANTS: list only the root's direct children
    - SKIPS_HIDDEN_FILES: ignore names starting with '.' (and their subtrees)
    - INCLUDES_DIRECTORIES_POST_ORDER: yield each directory a second time
      after its contents; is_enumerating_directory_post_order is True then
    """

    def __init__(
        self,
        root: str,
        scan: ScanFunction,
        *,
        yields_locations: bool = False,
        options: DirectoryEnumerationOptions = DirectoryEnumerationOptions.NONE,
        error_handler: ErrorHandler | None = None,
        attributes_of: AttributesFunction | None = None,
    ) -> None:
        """
        Prepare an enumeration. Nothing is read until the first next().

        Args:
            root: Directory to enumerate.
            scan: Callable listing one directory; must raise OSError on
                failure and return a finite iterable.
            yields_locations: Yield Location objects instead of relative
                path strings.
            options: Enumeration flags.
            error_handler: Callback for directories that cannot be opened.
            attributes_of: Attribute query used by file_attributes.
        """
        self._scan = scan
        self._yields_locations = yields_locations
        self._options = options
        self._error_handler = error_handler
        self._attributes_of = attributes_of

        self._frames: list[_Frame] = []
        self._pending: tuple[str, str, int] | None = (root, "", 0)
        self._halted = False

        self._current_path: str | None = None
        self._level = 0
        self._post_order = False

    # -------------------------------------------------------------------------
    # Iterator protocol
    # -------------------------------------------------------------------------

    def __iter__(self) -> DirectoryEnumerator:
        return self

    def __next__(self) -> str | Location:
        while not self._halted:
            if self._pending is not None:
                path, relative, level = self._pending
                self._pending = None
                self._open(path, relative, level)
                continue

            if not self._frames:
                break

            frame = self._frames[-1]
            entry = next(frame.entries, None)
            if entry is None:
                self._frames.pop()
                if self._includes_post_order and frame.level > 0:
                    return self._emit(frame.path, frame.relative, frame.level, True, post_order=True)
                continue

            name, is_directory = entry
            if self._skips_hidden and name.startswith("."):
                continue

            path = os.path.join(frame.path, name)
            relative = os.path.join(frame.relative, name) if frame.relative else name
            level = frame.level + 1
            if is_directory and not self._skips_descendants:
                self._pending = (path, relative, level)
            return self._emit(path, relative, level, is_directory)

        raise StopIteration

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def next_object(self) -> str | Location | None:
        """
        Return the next item, or None when the enumeration is exhausted.

        Example:
            >>> while (item := enumerator.next_object()) is not None:
            ...     print(item)
        """
        return next(self, None)

    def all_objects(self) -> list[str | Location]:
        """Drain and return every remaining item."""
        return list(self)

    def skip_descendants(self) -> None:
        """
        Do not descend into the directory most recently returned.

        Has no effect when the last item was not a directory or when its
        contents are already being enumerated.
        """
        self._pending = None

    @property
    def level(self) -> int:
        """Depth of the last returned item; direct children are level 1."""
        return self._level

    @property
    def is_enumerating_directory_post_order(self) -> bool:
        return self._post_order

    @property
    def file_attributes(self) -> FileAttributes | None:
        """
        Attributes of the last returned item, read now from disk.

        Returns:
            Attribute mapping, or None before the first item or when the
            enumerator was built without an attribute query.
        """
        if self._current_path is None or self._attributes_of is None:
            return None
        return self._attributes_of(self._current_path)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @property
    def _skips_hidden(self) -> bool:
        return DirectoryEnumerationOptions.SKIPS_HIDDEN_FILES in self._options

    @property
    def _skips_descendants(self) -> bool:
        return DirectoryEnumerationOptions.SKIPS_SUBDIRECTORY_DESCENDANTS in self._options

    @property
    def _includes_post_order(self) -> bool:
        return DirectoryEnumerationOptions.INCLUDES_DIRECTORIES_POST_ORDER in self._options

    def _open(self, path: str, relative: str, level: int) -> None:
        try:
            entries = list(self._scan(path))
        except OSError as e:
            if self._error_handler is not None and not self._error_handler(
                Location(path, is_directory=True), e
            ):
                self._halted = True
            return
        self._frames.append(_Frame(path, relative, level, iter(entries)))

    def _emit(
        self,
        path: str,
        relative: str,
        level: int,
        is_directory: bool,
        post_order: bool = False,
    ) -> str | Location:
        self._current_path = path
        self._level = level
        self._post_order = post_order
        if self._yields_locations:
            return Location(path, is_directory=is_directory)
        return relative
