"""
Pytest configuration and shared fixtures for file manager tests.

This module contains:
- MockFileManager: In-memory FileManager for testing without actual I/O
- Shared fixtures available to all test modules
"""

from __future__ import annotations

import errno
import os
import posixpath
import shutil
import uuid
from collections.abc import Collection, Iterator
from datetime import UTC, datetime
from typing import Any

import pytest

from file_manager_protocol.enumerator import DirectoryEnumerator, ErrorHandler
from file_manager_protocol.enums import (
    DirectoryEnumerationOptions,
    FileAttributeKey,
    FileAttributes,
    FileAttributeType,
    SearchPathDirectory,
    SearchPathDomainMask,
)
from file_manager_protocol.filesystem import FileManager, default_file_manager
from file_manager_protocol.location import Location


def _not_found(path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)


def _exists(path: str) -> FileExistsError:
    return FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), path)


class MockFileManager:
    """
    In-memory file manager for testing.

    Simulates a POSIX tree using dictionaries:
    - _files: path -> bytearray (hard links share one bytearray)
    - _dirs: set of directory paths ('/' always exists)
    - _links: symlink path -> stored destination
    - _modes: path -> permission bits
    - _undeletable: paths whose removal raises PermissionError

    FEATURES:
    - No actual I/O operations
    - Same OSError subclasses as the host for the same failures
    - Home-directory queries (satisfies UserHomeFileManager)
    - Removal failure simulation via deny_removal()
    """

    def __init__(self, temporary_root: str = "/tmp", users: Collection[str] = ("mock",)) -> None:
        """
        Initialize a mock tree containing '/', the temporary root and /home.

        Args:
            temporary_root: Path reported by temporary_directory.
            users: Known user names for home_directory().
        """
        self._files: dict[str, bytearray] = {}
        self._dirs: set[str] = {"/"}
        self._links: dict[str, str] = {}
        self._modes: dict[str, int] = {}
        self._mtimes: dict[str, datetime] = {}
        self._undeletable: set[str] = set()
        self._users = set(users)
        self._cwd = "/"
        self._temporary_root = temporary_root
        self._make_tree(temporary_root)
        for user in self._users:
            self._make_tree(f"/home/{user}")

    # =========================================================================
    # PATH HELPERS
    # =========================================================================

    def _abs(self, path: str) -> str:
        return posixpath.normpath(posixpath.join(self._cwd, path))

    def _resolve(self, path: str) -> str:
        """Follow symlinks (at most 40 hops, like the kernel)."""
        path = self._abs(path)
        for _ in range(40):
            if path not in self._links:
                return path
            path = self._abs(posixpath.join(posixpath.dirname(path), self._links[path]))
        raise OSError(errno.ELOOP, os.strerror(errno.ELOOP), path)

    def _lexists(self, path: str) -> bool:
        return path in self._files or path in self._dirs or path in self._links

    def _make_tree(self, path: str) -> None:
        path = self._abs(path)
        while path not in self._dirs:
            self._dirs.add(path)
            self._touch(path)
            path = posixpath.dirname(path)

    def _touch(self, path: str) -> None:
        self._mtimes[path] = datetime.now(UTC)

    def _children(self, path: str) -> list[str]:
        prefix = path.rstrip("/") + "/"
        names = {
            p[len(prefix) :]
            for p in (*self._files, *self._dirs, *self._links)
            if p.startswith(prefix) and "/" not in p[len(prefix) :] and p != path
        }
        return sorted(names)

    def _subtree(self, path: str) -> list[str]:
        prefix = path.rstrip("/") + "/"
        return [p for p in (*self._files, *self._dirs, *self._links) if p == path or p.startswith(prefix)]

    def _scan(self, path: str) -> list[tuple[str, bool]]:
        path = self._abs(path)
        if path in self._files or path in self._links:
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), path)
        if path not in self._dirs:
            raise _not_found(path)
        if self._modes.get(path, 0o755) & 0o400 == 0:
            raise PermissionError(errno.EACCES, os.strerror(errno.EACCES), path)
        return [(name, posixpath.join(path, name) in self._dirs) for name in self._children(path)]

    def _require_parent(self, path: str) -> None:
        parent = posixpath.dirname(path)
        if parent not in self._dirs:
            raise _not_found(parent)

    # =========================================================================
    # QUERY
    # =========================================================================

    @property
    def current_directory_path(self) -> str:
        return self._cwd

    @property
    def temporary_directory(self) -> Location:
        return Location(self._temporary_root, is_directory=True)

    @property
    def home_directory_for_current_user(self) -> Location:
        return Location("/home/mock", is_directory=True)

    def home_directory(self, user_name: str) -> Location | None:
        if user_name not in self._users:
            return None
        return Location(f"/home/{user_name}", is_directory=True)

    def file_exists(self, path: str) -> bool:
        return self.file_exists_and_is_directory(path)[0]

    def file_exists_and_is_directory(self, path: str) -> tuple[bool, bool]:
        try:
            target = self._resolve(path)
        except OSError:
            return False, False
        if target in self._dirs:
            return True, True
        return target in self._files, False

    def is_readable_file(self, path: str) -> bool:
        return self.file_exists(path) and bool(self._modes.get(self._resolve(path), 0o644) & 0o400)

    def is_writable_file(self, path: str) -> bool:
        return self.file_exists(path) and bool(self._modes.get(self._resolve(path), 0o644) & 0o200)

    def is_executable_file(self, path: str) -> bool:
        if not self.file_exists(path):
            return False
        target = self._resolve(path)
        default = 0o755 if target in self._dirs else 0o644
        return bool(self._modes.get(target, default) & 0o100)

    def is_deletable_file(self, path: str) -> bool:
        path = self._abs(path)
        return self._lexists(path) and path not in self._undeletable

    def contents_equal(self, path1: str, path2: str) -> bool:
        a, b = self._abs(path1), self._abs(path2)
        if a in self._links or b in self._links:
            return a in self._links and b in self._links and self._links[a] == self._links[b]
        if a in self._files and b in self._files:
            return bytes(self._files[a]) == bytes(self._files[b])
        if a in self._dirs and b in self._dirs:
            names = self._children(a)
            return names == self._children(b) and all(
                self.contents_equal(posixpath.join(a, n), posixpath.join(b, n)) for n in names
            )
        return False

    def attributes_of_item(self, path: str) -> FileAttributes:
        path = self._abs(path)
        if path in self._links:
            kind, size = FileAttributeType.SYMBOLIC_LINK, len(self._links[path])
        elif path in self._dirs:
            kind, size = FileAttributeType.DIRECTORY, 0
        elif path in self._files:
            kind, size = FileAttributeType.REGULAR, len(self._files[path])
        else:
            raise _not_found(path)
        default_mode = 0o755 if kind is FileAttributeType.DIRECTORY else 0o644
        return {
            FileAttributeKey.SIZE: size,
            FileAttributeKey.TYPE: kind,
            FileAttributeKey.POSIX_PERMISSIONS: self._modes.get(path, default_mode),
            FileAttributeKey.MODIFICATION_DATE: self._mtimes.get(path, datetime.now(UTC)),
        }

    def attributes_of_file_system(self, path: str) -> FileAttributes:
        if not self._lexists(self._abs(path)):
            raise _not_found(path)
        used = sum(len(data) for data in self._files.values())
        return {
            FileAttributeKey.SYSTEM_SIZE: 1 << 30,
            FileAttributeKey.SYSTEM_FREE_SIZE: (1 << 30) - used,
            FileAttributeKey.SYSTEM_NUMBER: 1,
        }

    def display_name(self, path: str) -> str:
        return posixpath.basename(posixpath.normpath(path)) or path

    def components_to_display(self, path: str) -> list[str] | None:
        path = self._abs(path)
        if not self._lexists(path):
            return None
        return ["/", *[part for part in path.split("/") if part]]

    def destination_of_symbolic_link(self, path: str) -> str:
        path = self._abs(path)
        if path in self._links:
            return self._links[path]
        if not self._lexists(path):
            raise _not_found(path)
        raise OSError(errno.EINVAL, os.strerror(errno.EINVAL), path)

    def contents(self, path: str) -> bytes | None:
        try:
            target = self._resolve(path)
        except OSError:
            return None
        if target not in self._files or not self.is_readable_file(target):
            return None
        return bytes(self._files[target])

    def string_with_file_system_representation(self, raw: bytes, length: int) -> str:
        return os.fsdecode(bytes(raw[:length]))

    # =========================================================================
    # ENUMERATE
    # =========================================================================

    def contents_of_directory_at_path(self, path: str) -> list[str]:
        return [name for name, _ in self._scan(path)]

    def contents_of_directory(
        self,
        location: Location,
        including_properties_for_keys: Collection[str] | None = None,
        options: DirectoryEnumerationOptions = DirectoryEnumerationOptions.NONE,
    ) -> list[Location]:
        skips_hidden = DirectoryEnumerationOptions.SKIPS_HIDDEN_FILES in options
        return [
            location.appending_path_component(name, is_directory)
            for name, is_directory in self._scan(location.path)
            if not (skips_hidden and name.startswith("."))
        ]

    def subpaths_of_directory(self, path: str) -> list[str]:
        def fail(location: Location, error: OSError) -> bool:
            raise error

        return [os.fspath(item) for item in DirectoryEnumerator(self._abs(path), self._scan, error_handler=fail)]

    def subpaths(self, path: str) -> list[str] | None:
        try:
            return self.subpaths_of_directory(path)
        except OSError:
            return None

    def enumerator_at_path(self, path: str) -> DirectoryEnumerator | None:
        if self._abs(path) not in self._dirs:
            return None
        return DirectoryEnumerator(self._abs(path), self._scan, attributes_of=self.attributes_of_item)

    def enumerator(
        self,
        location: Location,
        including_properties_for_keys: Collection[str] | None = None,
        options: DirectoryEnumerationOptions = DirectoryEnumerationOptions.NONE,
        error_handler: ErrorHandler | None = None,
    ) -> DirectoryEnumerator | None:
        if self._abs(location.path) not in self._dirs:
            return None
        return DirectoryEnumerator(
            location.path,
            self._scan,
            yields_locations=True,
            options=options,
            error_handler=error_handler,
            attributes_of=self.attributes_of_item,
        )

    # =========================================================================
    # MUTATE
    # =========================================================================

    def create_directory(
        self,
        location: Location,
        with_intermediate_directories: bool,
        attributes: FileAttributes | None = None,
    ) -> None:
        self.create_directory_at_path(location.path, with_intermediate_directories, attributes)

    def create_directory_at_path(
        self,
        path: str,
        with_intermediate_directories: bool,
        attributes: FileAttributes | None = None,
    ) -> None:
        """
        Create a mock directory.

        Raises:
            FileExistsError: If a file or link occupies the path, or the
                directory exists and intermediates are disabled.
            FileNotFoundError: If the parent is missing and intermediates
                are disabled.
        """
        path = self._abs(path)
        if attributes:
            self._check_settable(attributes)
        if path in self._files or path in self._links:
            raise _exists(path)
        if with_intermediate_directories:
            for ancestor in self._ancestors(path):
                if ancestor in self._files or ancestor in self._links:
                    raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), ancestor)
            self._make_tree(path)
        else:
            if path in self._dirs:
                raise _exists(path)
            self._require_parent(path)
            self._dirs.add(path)
            self._touch(path)
        if attributes:
            self.set_attributes(attributes, path)

    def _ancestors(self, path: str) -> list[str]:
        ancestors = []
        while path != "/":
            path = posixpath.dirname(path)
            ancestors.append(path)
        return ancestors

    def create_file(
        self,
        path: str,
        contents: bytes | None = None,
        attributes: FileAttributes | None = None,
    ) -> bool:
        """
        Write a mock file. Existing files are rewritten in place, so hard
        links observe the new bytes.
        """
        path = self._abs(path)
        if attributes:
            try:
                self._check_settable(attributes)
            except ValueError:
                return False
        if path in self._dirs or posixpath.dirname(path) not in self._dirs:
            return False
        if path in self._files:
            if not self.is_writable_file(path):
                return False
            self._files[path][:] = contents or b""
        else:
            self._files[path] = bytearray(contents or b"")
        self._touch(path)
        if attributes:
            self.set_attributes(attributes, path)
        return True

    def copy_item_at_path(self, src: str, dst: str) -> None:
        src, dst = self._abs(src), self._abs(dst)
        self._check_transfer(src, dst)
        for item in sorted(self._subtree(src)):
            target = dst + item[len(src) :]
            if item in self._dirs:
                self._dirs.add(target)
            elif item in self._links:
                self._links[target] = self._links[item]
            else:
                self._files[target] = bytearray(self._files[item])
            if item in self._modes:
                self._modes[target] = self._modes[item]
            self._touch(target)

    def copy_item(self, src: Location, dst: Location) -> None:
        self.copy_item_at_path(src.path, dst.path)

    def move_item_at_path(self, src: str, dst: str) -> None:
        src, dst = self._abs(src), self._abs(dst)
        self._check_transfer(src, dst)
        for item in sorted(self._subtree(src)):
            target = dst + item[len(src) :]
            tables: tuple[dict[str, Any], ...] = (self._files, self._links, self._modes, self._mtimes)
            for table in tables:
                if item in table:
                    table[target] = table.pop(item)
            if item in self._dirs:
                self._dirs.discard(item)
                self._dirs.add(target)

    def move_item(self, src: Location, dst: Location) -> None:
        self.move_item_at_path(src.path, dst.path)

    def link_item_at_path(self, src: str, dst: str) -> None:
        """Hard link: both paths share one bytearray."""
        src, dst = self._abs(src), self._abs(dst)
        self._check_transfer(src, dst)
        for item in sorted(self._subtree(src)):
            target = dst + item[len(src) :]
            if item in self._dirs:
                self._dirs.add(target)
            elif item in self._links:
                self._links[target] = self._links[item]
            else:
                self._files[target] = self._files[item]
            self._touch(target)

    def link_item(self, src: Location, dst: Location) -> None:
        self.link_item_at_path(src.path, dst.path)

    def _check_transfer(self, src: str, dst: str) -> None:
        if not self._lexists(src):
            raise _not_found(src)
        if self._lexists(dst):
            raise _exists(dst)
        self._require_parent(dst)

    def remove_item_at_path(self, path: str) -> None:
        """
        Remove a mock item recursively.

        Raises:
            FileNotFoundError: If nothing exists at path.
            PermissionError: If path (or anything beneath it) was passed to
                deny_removal().
        """
        path = self._abs(path)
        if not self._lexists(path):
            raise _not_found(path)
        subtree = self._subtree(path)
        for item in subtree:
            if item in self._undeletable:
                raise PermissionError(errno.EPERM, os.strerror(errno.EPERM), item)
        for item in subtree:
            self._files.pop(item, None)
            self._links.pop(item, None)
            self._modes.pop(item, None)
            self._mtimes.pop(item, None)
            self._dirs.discard(item)

    def remove_item(self, location: Location) -> None:
        self.remove_item_at_path(location.path)

    def create_symbolic_link_at_path(self, path: str, destination_path: str) -> None:
        path = self._abs(path)
        if self._lexists(path):
            raise _exists(path)
        self._require_parent(path)
        self._links[path] = destination_path
        self._touch(path)

    def create_symbolic_link(self, location: Location, destination: Location) -> None:
        self.create_symbolic_link_at_path(location.path, destination.path)

    def _check_settable(self, attributes: FileAttributes) -> None:
        settable = {FileAttributeKey.POSIX_PERMISSIONS, FileAttributeKey.MODIFICATION_DATE}
        unsupported = [key for key in attributes if key not in settable]
        if unsupported:
            raise ValueError(f"Attributes cannot be set: {unsupported}")

    def set_attributes(self, attributes: FileAttributes, path: str) -> None:
        self._check_settable(attributes)
        target = self._resolve(path)
        if not self._lexists(target):
            raise _not_found(path)
        for key, value in attributes.items():
            if key == FileAttributeKey.POSIX_PERMISSIONS:
                self._modes[target] = int(value)
            else:
                self._mtimes[target] = value

    def change_current_directory_path(self, path: str) -> bool:
        path = self._abs(path)
        if path not in self._dirs:
            return False
        self._cwd = path
        return True

    # =========================================================================
    # WELL-KNOWN LOCATIONS
    # =========================================================================

    def urls(self, directory: SearchPathDirectory, domain_mask: SearchPathDomainMask) -> list[Location]:
        if directory is SearchPathDirectory.ITEM_REPLACEMENT or SearchPathDomainMask.USER not in domain_mask:
            return []
        return [Location(f"/home/mock/{directory.value}", is_directory=True)]

    def url(
        self,
        directory: SearchPathDirectory,
        domain: SearchPathDomainMask,
        appropriate_for: Location | None = None,
        create: bool = False,
    ) -> Location:
        if directory is SearchPathDirectory.ITEM_REPLACEMENT:
            if appropriate_for is None:
                raise ValueError("ITEM_REPLACEMENT requires appropriate_for")
            location = self.temporary_directory.appending_path_component(f"item-replacement-{uuid.uuid4()}")
            self.create_directory(location, with_intermediate_directories=True)
            return location
        candidates = self.urls(directory, domain)
        if not candidates:
            raise _not_found(directory.value)
        if create:
            self.create_directory(candidates[0], with_intermediate_directories=True)
        return candidates[0]

    # =========================================================================
    # TEST HELPERS
    # =========================================================================

    def set_file(self, path: str, content: bytes) -> None:
        """Create a file and any missing parent directories."""
        path = self._abs(path)
        self._make_tree(posixpath.dirname(path))
        self.create_file(path, content)

    def deny_removal(self, path: str) -> None:
        """Make remove_item() raise PermissionError for path."""
        self._undeletable.add(self._abs(path))

    def list_files(self) -> list[str]:
        return sorted(self._files)

    def list_dirs(self) -> list[str]:
        return sorted(self._dirs)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def mock_fm() -> MockFileManager:
    """Fresh in-memory file manager."""
    return MockFileManager()


@pytest.fixture
def file_manager() -> FileManager:
    """Production file manager for the host."""
    return default_file_manager()


@pytest.fixture
def test_directory(file_manager: FileManager) -> Iterator[Location]:
    """
    Per-test scratch directory on the real filesystem.

    Created through the file manager under test; removed with shutil so a
    broken remove_item() cannot leak it.
    """
    directory = file_manager.temporary_directory.appending_path_component(
        f"FileManagerProtocolTests-{uuid.uuid4()}", is_directory=True
    )
    file_manager.create_directory(directory, with_intermediate_directories=True)
    yield directory
    shutil.rmtree(directory.path, ignore_errors=True)


@pytest.fixture
def restore_cwd() -> Iterator[str]:
    """Restore the process working directory after the test."""
    original = os.getcwd()
    yield original
    os.chdir(original)


def path_in(directory: Location, name: str) -> str:
    """Path string of name inside directory."""
    return directory.appending_path_component(name).path


