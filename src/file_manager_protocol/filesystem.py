"""
FileManager abstraction.

PURPOSE: Injectable file manager interface mirroring the host's native API.
AI CONTEXT: Code that touches the filesystem depends on the FileManager
protocol, never on os/shutil directly, so tests can substitute an in-memory
double without changing the code under test.

DESIGN:
- FileManager (Protocol) declares every filesystem primitive, in path-string
  and Location forms where the native API offers both
- UserHomeFileManager (Protocol) adds home-directory queries; defined only on
  hosts with a user database (POSIX), so callers elsewhere cannot ask for it
- RealFileManager forwards every call to os/shutil/pathlib
- PosixFileManager extends RealFileManager with the home-directory queries,
  account names and inode statistics
- MockFileManager in tests/conftest.py keeps state in memory for tests

ERROR HANDLING:
Mutating calls raise the host's OSError subclass unchanged
(FileNotFoundError, FileExistsError, PermissionError, IsADirectoryError,
NotADirectoryError, OSError with ENOTEMPTY/EXDEV, ...). Nothing is retried or
normalized. Calls that the native API defines as non-throwing
(create_file, contents, subpaths, change_current_directory_path, the is_*
checks, contents_equal) report failure as False/None.

USAGE:
    # Production
    fm = default_file_manager()
    fm.create_directory_at_path("/srv/data/cache", with_intermediate_directories=True)

    # Tests (MockFileManager from conftest.py)
    service = CacheService(file_manager=mock_fm)  # pytest fixture
"""

from __future__ import annotations

import errno
import filecmp
import logging
import os
import shutil
import stat
import sys
import tempfile
from collections.abc import Collection
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .config import Config
from .enumerator import DirectoryEnumerator, ErrorHandler
from .enums import (
    DirectoryEnumerationOptions,
    FileAttributeKey,
    FileAttributes,
    FileAttributeType,
    SearchPathDirectory,
    SearchPathDomainMask,
)
from .location import Location

if sys.platform != "win32":
    import grp
    import pwd

__all__ = ["FileManager", "RealFileManager", "default_file_manager"]

logger = logging.getLogger(__name__)


@runtime_checkable
class FileManager(Protocol):
    """
    Protocol for file manager operations.

    Mirrors the native file manager one call per primitive. Paths are
    strings; structured locations are Location values. Implementations
    include RealFileManager/PosixFileManager for production and
    MockFileManager for testing.

    Business context: Filesystem access through a global object cannot be
    replaced in tests. Declaring the capability set as a protocol lets
    dependents receive a file manager by injection and lets tests pass a
    deterministic fake that honors the same contract.
    """

    # =========================================================================
    # QUERY
    # =========================================================================

    @property
    def current_directory_path(self) -> str:
        """Absolute path of the process's current directory."""
        ...

    @property
    def temporary_directory(self) -> Location:
        """
        Host temporary-storage root for the current user.

        Returns:
            Location of the temporary root as reported by the host. It may
            be a symbolic alias (macOS /var -> /private/var); use
            make_temporary_directory() for a canonical child.
        """
        ...

    def file_exists(self, path: str) -> bool:
        """
        Check if an item exists at path.

        Symbolic links are followed, so a dangling link reports False.

        Args:
            path: Path to check.

        Returns:
            True for an existing file or directory. Never raises.

        Example:
            >>> fm.file_exists('/tmp')
            True
        """
        ...

    def file_exists_and_is_directory(self, path: str) -> tuple[bool, bool]:
        """
        Check existence and report whether the item is a directory.

        Args:
            path: Path to check (symbolic links followed).

        Returns:
            (exists, is_directory). is_directory is False when the item
            does not exist. Never raises.

        Example:
            >>> fm.file_exists_and_is_directory('/tmp')
            (True, True)
        """
        ...

    def is_readable_file(self, path: str) -> bool:
        """True if the current process may read the item at path."""
        ...

    def is_writable_file(self, path: str) -> bool:
        """True if the current process may write the item at path."""
        ...

    def is_executable_file(self, path: str) -> bool:
        """True if the current process may execute (or search) the item."""
        ...

    def is_deletable_file(self, path: str) -> bool:
        """
        Check whether the item at path could be removed.

        Business context: Lets callers skip cleanup they cannot perform
        instead of catching PermissionError. Decided by write and search
        permission on the parent directory.

        Args:
            path: Path of the item.

        Returns:
            True if the item exists and its parent directory permits
            removal. Never raises.
        """
        ...

    def contents_equal(self, path1: str, path2: str) -> bool:
        """
        Compare two items byte for byte.

        Files compare by content, directories by entry names and
        recursively by content, symbolic links by target.

        Args:
            path1: First item.
            path2: Second item.

        Returns:
            True if both exist and are equal; False otherwise, including
            when either item is missing or of a different type.
        """
        ...

    def attributes_of_item(self, path: str) -> FileAttributes:
        """
        Read the attribute mapping of an item.

        A final symbolic link is not followed: its own attributes are
        returned with TYPE == FileAttributeType.SYMBOLIC_LINK. Values are
        read at call time; nothing is cached.

        Args:
            path: Path of the item.

        Returns:
            Mapping FileAttributeKey -> value (see FileAttributeKey for
            value types).

        Raises:
            FileNotFoundError: If nothing exists at path.

        Example:
            >>> fm.attributes_of_item('/tmp/a.txt')[FileAttributeKey.SIZE]
            5
        """
        ...

    def attributes_of_file_system(self, path: str) -> FileAttributes:
        """
        Read space statistics of the volume containing path.

        Returns:
            Mapping with at least SYSTEM_SIZE, SYSTEM_FREE_SIZE and
            SYSTEM_NUMBER.

        Raises:
            FileNotFoundError: If nothing exists at path.
        """
        ...

    def display_name(self, path: str) -> str:
        """User-visible name of the item: its last path component."""
        ...

    def components_to_display(self, path: str) -> list[str] | None:
        """
        Break a path into its user-visible components.

        Args:
            path: Path to split (made absolute first).

        Returns:
            Components from the volume root down, e.g. ['/', 'tmp', 'a'].
            None if nothing exists at path.
        """
        ...

    def destination_of_symbolic_link(self, path: str) -> str:
        """
        Read the target of a symbolic link, exactly as stored.

        Raises:
            FileNotFoundError: If nothing exists at path.
            OSError: If the item is not a symbolic link (EINVAL).
        """
        ...

    def contents(self, path: str) -> bytes | None:
        """
        Read a file's raw bytes.

        Args:
            path: Path of the file.

        Returns:
            The file's contents, or None if it cannot be read for any
            reason (missing, directory, permission denied).

        Example:
            >>> fm.contents('/tmp/a.txt')
            b'hello'
        """
        ...

    def string_with_file_system_representation(self, raw: bytes, length: int) -> str:
        """
        Decode a raw platform path into a path string.

        Args:
            raw: Path bytes in the host filesystem encoding.
            length: Number of bytes of raw to use.

        Returns:
            Decoded path; undecodable bytes survive as surrogate escapes.
        """
        ...

    # =========================================================================
    # ENUMERATE
    # =========================================================================

    def contents_of_directory_at_path(self, path: str) -> list[str]:
        """
        List entry names of a directory (non-recursive).

        Args:
            path: Directory to list.

        Returns:
            Entry names in host order, without '.' and '..'.

        Raises:
            FileNotFoundError: If the directory does not exist.
            NotADirectoryError: If path is a file.

        Example:
            >>> fm.contents_of_directory_at_path('/data')
            ['a.txt', 'sub']
        """
        ...

    def contents_of_directory(
        self,
        location: Location,
        including_properties_for_keys: Collection[str] | None = None,
        options: DirectoryEnumerationOptions = DirectoryEnumerationOptions.NONE,
    ) -> list[Location]:
        """
        List a directory as child Locations (non-recursive).

        Args:
            location: Directory to list.
            including_properties_for_keys: Prefetch hint; accepted for
                parity with the native call and otherwise ignored.
            options: SKIPS_HIDDEN_FILES is honored.

        Returns:
            Child locations in host order.

        Raises:
            FileNotFoundError: If the directory does not exist.
        """
        ...

    def subpaths_of_directory(self, path: str) -> list[str]:
        """
        Recursively list every item beneath path as relative paths.

        Raises:
            FileNotFoundError: If the directory does not exist.
            OSError: If any directory in the tree cannot be read.

        Example:
            >>> fm.subpaths_of_directory('/data')
            ['a.txt', 'sub', 'sub/b.txt']
        """
        ...

    def subpaths(self, path: str) -> list[str] | None:
        """Like subpaths_of_directory(), but returns None instead of raising."""
        ...

    def enumerator_at_path(self, path: str) -> DirectoryEnumerator | None:
        """
        Lazily enumerate every item beneath path.

        Returns:
            Enumerator yielding relative path strings, or None if path is
            not an existing directory.
        """
        ...

    def enumerator(
        self,
        location: Location,
        including_properties_for_keys: Collection[str] | None = None,
        options: DirectoryEnumerationOptions = DirectoryEnumerationOptions.NONE,
        error_handler: ErrorHandler | None = None,
    ) -> DirectoryEnumerator | None:
        """
        Lazily enumerate every item beneath location as Locations.

        Business context: Large trees are walked one directory at a time;
        the caller can prune with skip_descendants() and decide per error
        whether to continue.

        Args:
            location: Root directory.
            including_properties_for_keys: Prefetch hint, ignored.
            options: DirectoryEnumerationOptions flags.
            error_handler: Called as handler(location, error) for each
                directory that cannot be opened. True continues, False
                halts. Without a handler unreadable directories are skipped.

        Returns:
            Enumerator yielding Locations, or None if location is not an
            existing directory.
        """
        ...

    # =========================================================================
    # MUTATE
    # =========================================================================

    def create_directory(
        self,
        location: Location,
        with_intermediate_directories: bool,
        attributes: FileAttributes | None = None,
    ) -> None:
        """Location form of create_directory_at_path()."""
        ...

    def create_directory_at_path(
        self,
        path: str,
        with_intermediate_directories: bool,
        attributes: FileAttributes | None = None,
    ) -> None:
        """
        Create a directory.

        Business context: Equivalent to `mkdir` or, with intermediates,
        `mkdir -p`. Attributes (e.g. POSIX_PERMISSIONS) are applied to the
        new directory before returning.

        Args:
            path: Directory to create.
            with_intermediate_directories: Create missing parents and
                succeed if the directory already exists.
            attributes: Optional attributes for the new directory.

        Raises:
            FileNotFoundError: If a parent is missing and intermediates
                are disabled.
            FileExistsError: If the item exists (intermediates disabled) or
                a file occupies the path.
            PermissionError: If the parent is not writable.
            ValueError: If an attribute key cannot be set. Checked before
                anything is created.
        """
        ...

    def create_file(
        self,
        path: str,
        contents: bytes | None = None,
        attributes: FileAttributes | None = None,
    ) -> bool:
        """
        Create (or overwrite) a file with the given bytes.

        Args:
            path: File to write.
            contents: Bytes to store; None creates an empty file.
            attributes: Optional attributes applied after writing.

        Returns:
            True on success, False if the host rejected the write (missing
            parent, permission denied, path is a directory) or an attribute
            key cannot be set. Nothing is written in the latter case.

        Example:
            >>> fm.create_file('/tmp/a.txt', b'hello')
            True
        """
        ...

    def copy_item_at_path(self, src: str, dst: str) -> None:
        """
        Copy a file, link, or directory tree to a new path.

        Raises:
            FileNotFoundError: If src does not exist.
            FileExistsError: If dst already exists.
        """
        ...

    def copy_item(self, src: Location, dst: Location) -> None:
        """Location form of copy_item_at_path()."""
        ...

    def move_item_at_path(self, src: str, dst: str) -> None:
        """
        Move an item to a new path, across volumes if needed.

        Raises:
            FileNotFoundError: If src does not exist.
            FileExistsError: If dst already exists.
        """
        ...

    def move_item(self, src: Location, dst: Location) -> None:
        """Location form of move_item_at_path()."""
        ...

    def link_item_at_path(self, src: str, dst: str) -> None:
        """
        Create a hard link at dst referring to src.

        Directories cannot be hard-linked: the tree is recreated at dst and
        every file in it is hard-linked.

        Raises:
            FileNotFoundError: If src does not exist.
            FileExistsError: If dst already exists.
            OSError: EXDEV if src and dst are on different volumes.
        """
        ...

    def link_item(self, src: Location, dst: Location) -> None:
        """Location form of link_item_at_path()."""
        ...

    def remove_item_at_path(self, path: str) -> None:
        """
        Remove a file, link, or directory tree.

        Raises:
            FileNotFoundError: If nothing exists at path.
            PermissionError: If the host refuses removal.
        """
        ...

    def remove_item(self, location: Location) -> None:
        """Location form of remove_item_at_path()."""
        ...

    def create_symbolic_link_at_path(self, path: str, destination_path: str) -> None:
        """
        Create a symbolic link at path pointing to destination_path.

        The destination is stored verbatim and need not exist.

        Raises:
            FileExistsError: If path already exists.
        """
        ...

    def create_symbolic_link(self, location: Location, destination: Location) -> None:
        """Location form of create_symbolic_link_at_path()."""
        ...

    def set_attributes(self, attributes: FileAttributes, path: str) -> None:
        """
        Set attributes on an existing item.

        Args:
            attributes: Mapping of settable keys: POSIX_PERMISSIONS,
                MODIFICATION_DATE, and where supported OWNER_ACCOUNT_ID,
                GROUP_OWNER_ACCOUNT_ID, OWNER_ACCOUNT_NAME,
                GROUP_OWNER_ACCOUNT_NAME.
            path: Item to modify.

        Raises:
            ValueError: If a key is read-only or unsupported; nothing is
                modified in that case.
            FileNotFoundError: If nothing exists at path.

        Example:
            >>> fm.set_attributes({FileAttributeKey.POSIX_PERMISSIONS: 0o600}, '/tmp/a.txt')
        """
        ...

    def change_current_directory_path(self, path: str) -> bool:
        """
        Change the process's current directory.

        Returns:
            True on success, False if path is not an accessible directory.
        """
        ...

    # =========================================================================
    # WELL-KNOWN LOCATIONS
    # =========================================================================

    def urls(
        self,
        directory: SearchPathDirectory,
        domain_mask: SearchPathDomainMask,
    ) -> list[Location]:
        """
        Resolve a well-known directory role in one or more domains.

        Args:
            directory: Role such as CACHES or DOCUMENTS.
            domain_mask: Domains to search, combined with '|'.

        Returns:
            Candidate locations, best first (user domain before local,
            network, system). Candidates need not exist. Empty if the role
            is unknown on this host.

        Example:
            >>> fm.urls(SearchPathDirectory.CACHES, SearchPathDomainMask.USER)
            [Location(path='/home/me/.cache', ...)]
        """
        ...

    def url(
        self,
        directory: SearchPathDirectory,
        domain: SearchPathDomainMask,
        appropriate_for: Location | None = None,
        create: bool = False,
    ) -> Location:
        """
        Resolve the single best location for a role, optionally creating it.

        Args:
            directory: Role to resolve. ITEM_REPLACEMENT always creates a
                fresh directory on the same volume as appropriate_for.
            domain: Exactly one domain.
            appropriate_for: Item a replacement directory is staged for;
                required with ITEM_REPLACEMENT, ignored otherwise.
            create: Create the resolved directory (with parents) if missing.

        Returns:
            The resolved location.

        Raises:
            ValueError: If domain combines several domains, or
                ITEM_REPLACEMENT is requested without appropriate_for.
            FileNotFoundError: If the role has no location in the domain.
            OSError: If creation fails.
        """
        ...


if sys.platform != "win32":

    @runtime_checkable
    class UserHomeFileManager(FileManager, Protocol):
        """
        FileManager with per-user home directory queries.

        Only defined on hosts with a user database. Callers that need home
        directories depend on this protocol explicitly.
        """

        @property
        def home_directory_for_current_user(self) -> Location:
            """Home directory of the user running the process."""
            ...

        def home_directory(self, user_name: str) -> Location | None:
            """
            Home directory of a named user.

            Args:
                user_name: Login name to look up.

            Returns:
                The user's home directory, or None if no such user exists.

            Example:
                >>> fm.home_directory('root')
                Location(path='/root', ...)
            """
            ...

    __all__ += ["UserHomeFileManager", "PosixFileManager"]


def _scan_directory(path: str) -> list[tuple[str, bool]]:
    with os.scandir(path) as entries:
        return [(entry.name, entry.is_dir(follow_symlinks=False)) for entry in entries]


def _attribute_type(mode: int) -> FileAttributeType:
    if stat.S_ISREG(mode):
        return FileAttributeType.REGULAR
    if stat.S_ISDIR(mode):
        return FileAttributeType.DIRECTORY
    if stat.S_ISLNK(mode):
        return FileAttributeType.SYMBOLIC_LINK
    if stat.S_ISCHR(mode):
        return FileAttributeType.CHARACTER_SPECIAL
    if stat.S_ISBLK(mode):
        return FileAttributeType.BLOCK_SPECIAL
    if stat.S_ISSOCK(mode):
        return FileAttributeType.SOCKET
    return FileAttributeType.UNKNOWN


def _is_real_directory(path: str) -> bool:
    return os.path.isdir(path) and not os.path.islink(path)


def _raise_enumeration_error(location: Location, error: OSError) -> bool:
    raise error


def _refuse_existing(dst: str) -> None:
    if os.path.lexists(dst):
        raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), dst)


class RealFileManager:
    """
    File manager backed by the host filesystem.

    This is the production implementation. Each method delegates to the
    corresponding os, shutil, or pathlib call and lets host errors
    propagate untouched.

    Business context: Used wherever code runs against real disks. Holds no
    state, so one instance can be shared freely, including across asyncio
    tasks and threads.
    """

    _SETTABLE_KEYS: frozenset[FileAttributeKey] = frozenset(
        {FileAttributeKey.POSIX_PERMISSIONS, FileAttributeKey.MODIFICATION_DATE}
    )

    # =========================================================================
    # QUERY
    # =========================================================================

    @property
    def current_directory_path(self) -> str:
        return os.getcwd()

    @property
    def temporary_directory(self) -> Location:
        return Location(tempfile.gettempdir(), is_directory=True)

    def file_exists(self, path: str) -> bool:
        return os.path.exists(path)

    def file_exists_and_is_directory(self, path: str) -> tuple[bool, bool]:
        """Single stat call, so both answers describe the same moment."""
        try:
            mode = os.stat(path).st_mode
        except (OSError, ValueError):
            return False, False
        return True, stat.S_ISDIR(mode)

    def is_readable_file(self, path: str) -> bool:
        return os.access(path, os.R_OK)

    def is_writable_file(self, path: str) -> bool:
        return os.access(path, os.W_OK)

    def is_executable_file(self, path: str) -> bool:
        return os.access(path, os.X_OK)

    def is_deletable_file(self, path: str) -> bool:
        if not os.path.lexists(path):
            return False
        parent = os.path.dirname(os.path.abspath(path))
        return os.access(parent, os.W_OK | os.X_OK)

    def contents_equal(self, path1: str, path2: str) -> bool:
        """
        Compare two items without following a final symbolic link.

        Uses filecmp.cmp(shallow=False) for regular files so equal sizes
        with different bytes are detected.
        """
        try:
            st1, st2 = os.lstat(path1), os.lstat(path2)
            if os.path.samestat(st1, st2):
                return True
            if stat.S_IFMT(st1.st_mode) != stat.S_IFMT(st2.st_mode):
                return False
            if stat.S_ISLNK(st1.st_mode):
                return os.readlink(path1) == os.readlink(path2)
            if stat.S_ISDIR(st1.st_mode):
                names = sorted(os.listdir(path1))
                if names != sorted(os.listdir(path2)):
                    return False
                return all(
                    self.contents_equal(os.path.join(path1, n), os.path.join(path2, n))
                    for n in names
                )
            if stat.S_ISREG(st1.st_mode):
                return st1.st_size == st2.st_size and filecmp.cmp(path1, path2, shallow=False)
        except OSError:
            return False
        return False

    def attributes_of_item(self, path: str) -> FileAttributes:
        st = os.lstat(path)
        attributes: FileAttributes = {
            FileAttributeKey.SIZE: st.st_size,
            FileAttributeKey.TYPE: _attribute_type(st.st_mode),
            FileAttributeKey.POSIX_PERMISSIONS: stat.S_IMODE(st.st_mode),
            FileAttributeKey.MODIFICATION_DATE: datetime.fromtimestamp(st.st_mtime, UTC),
            FileAttributeKey.CREATION_DATE: datetime.fromtimestamp(
                getattr(st, "st_birthtime", st.st_ctime), UTC
            ),
            FileAttributeKey.REFERENCE_COUNT: st.st_nlink,
            FileAttributeKey.SYSTEM_NUMBER: st.st_dev,
            FileAttributeKey.SYSTEM_FILE_NUMBER: st.st_ino,
            FileAttributeKey.OWNER_ACCOUNT_ID: st.st_uid,
            FileAttributeKey.GROUP_OWNER_ACCOUNT_ID: st.st_gid,
        }
        attributes.update(self._account_names(st))
        return attributes

    def attributes_of_file_system(self, path: str) -> FileAttributes:
        usage = shutil.disk_usage(path)
        return {
            FileAttributeKey.SYSTEM_SIZE: usage.total,
            FileAttributeKey.SYSTEM_FREE_SIZE: usage.free,
            FileAttributeKey.SYSTEM_NUMBER: os.stat(path).st_dev,
        }

    def display_name(self, path: str) -> str:
        return os.path.basename(os.path.normpath(path)) or path

    def components_to_display(self, path: str) -> list[str] | None:
        if not os.path.lexists(path):
            return None
        return list(Path(os.path.abspath(path)).parts)

    def destination_of_symbolic_link(self, path: str) -> str:
        return os.readlink(path)

    def contents(self, path: str) -> bytes | None:
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.debug(f"Cannot read {path}: {e}")
            return None

    def string_with_file_system_representation(self, raw: bytes, length: int) -> str:
        return os.fsdecode(bytes(raw[:length]))

    # =========================================================================
    # ENUMERATE
    # =========================================================================

    def contents_of_directory_at_path(self, path: str) -> list[str]:
        return os.listdir(path)

    def contents_of_directory(
        self,
        location: Location,
        including_properties_for_keys: Collection[str] | None = None,
        options: DirectoryEnumerationOptions = DirectoryEnumerationOptions.NONE,
    ) -> list[Location]:
        skips_hidden = DirectoryEnumerationOptions.SKIPS_HIDDEN_FILES in options
        return [
            location.appending_path_component(name, is_directory)
            for name, is_directory in _scan_directory(location.path)
            if not (skips_hidden and name.startswith("."))
        ]

    def subpaths_of_directory(self, path: str) -> list[str]:
        walk = DirectoryEnumerator(path, _scan_directory, error_handler=_raise_enumeration_error)
        return [os.fspath(item) for item in walk]

    def subpaths(self, path: str) -> list[str] | None:
        try:
            return self.subpaths_of_directory(path)
        except OSError as e:
            logger.debug(f"Cannot list subpaths of {path}: {e}")
            return None

    def enumerator_at_path(self, path: str) -> DirectoryEnumerator | None:
        if not os.path.isdir(path):
            return None
        return DirectoryEnumerator(path, _scan_directory, attributes_of=self.attributes_of_item)

    def enumerator(
        self,
        location: Location,
        including_properties_for_keys: Collection[str] | None = None,
        options: DirectoryEnumerationOptions = DirectoryEnumerationOptions.NONE,
        error_handler: ErrorHandler | None = None,
    ) -> DirectoryEnumerator | None:
        if not os.path.isdir(location.path):
            return None
        return DirectoryEnumerator(
            location.path,
            _scan_directory,
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
        if attributes:
            self._check_settable(attributes)
        if with_intermediate_directories:
            os.makedirs(path, exist_ok=True)
        else:
            os.mkdir(path)
        if attributes:
            self.set_attributes(attributes, path)

    def create_file(
        self,
        path: str,
        contents: bytes | None = None,
        attributes: FileAttributes | None = None,
    ) -> bool:
        if attributes:
            try:
                self._check_settable(attributes)
            except ValueError as e:
                logger.debug(f"Refusing to create file {path}: {e}")
                return False
        try:
            with open(path, "wb") as f:
                f.write(contents or b"")
            if attributes:
                self.set_attributes(attributes, path)
        except OSError as e:
            logger.debug(f"Failed to create file {path}: {e}")
            return False
        return True

    def copy_item_at_path(self, src: str, dst: str) -> None:
        _refuse_existing(dst)
        if _is_real_directory(src):
            shutil.copytree(src, dst, symlinks=True)
        else:
            shutil.copy2(src, dst, follow_symlinks=False)

    def copy_item(self, src: Location, dst: Location) -> None:
        self.copy_item_at_path(src.path, dst.path)

    def move_item_at_path(self, src: str, dst: str) -> None:
        os.lstat(src)
        _refuse_existing(dst)
        shutil.move(src, dst)

    def move_item(self, src: Location, dst: Location) -> None:
        self.move_item_at_path(src.path, dst.path)

    def link_item_at_path(self, src: str, dst: str) -> None:
        _refuse_existing(dst)
        if _is_real_directory(src):
            shutil.copytree(src, dst, symlinks=True, copy_function=os.link)
        else:
            os.link(src, dst)

    def link_item(self, src: Location, dst: Location) -> None:
        self.link_item_at_path(src.path, dst.path)

    def remove_item_at_path(self, path: str) -> None:
        if _is_real_directory(path):
            shutil.rmtree(path)
        else:
            os.remove(path)

    def remove_item(self, location: Location) -> None:
        self.remove_item_at_path(location.path)

    def create_symbolic_link_at_path(self, path: str, destination_path: str) -> None:
        os.symlink(destination_path, path, target_is_directory=os.path.isdir(destination_path))

    def create_symbolic_link(self, location: Location, destination: Location) -> None:
        self.create_symbolic_link_at_path(location.path, destination.path)

    def set_attributes(self, attributes: FileAttributes, path: str) -> None:
        self._check_settable(attributes)
        for key, value in attributes.items():
            self._set_attribute(FileAttributeKey(key), value, path)

    def change_current_directory_path(self, path: str) -> bool:
        try:
            os.chdir(path)
        except OSError as e:
            logger.debug(f"Cannot change directory to {path}: {e}")
            return False
        return True

    # =========================================================================
    # WELL-KNOWN LOCATIONS
    # =========================================================================

    def urls(
        self,
        directory: SearchPathDirectory,
        domain_mask: SearchPathDomainMask,
    ) -> list[Location]:
        if directory is SearchPathDirectory.ITEM_REPLACEMENT:
            return []
        templates = Config.search_path_templates(directory, domain_mask)
        return [Location(Config.expand_template(t), is_directory=True) for t in templates]

    def url(
        self,
        directory: SearchPathDirectory,
        domain: SearchPathDomainMask,
        appropriate_for: Location | None = None,
        create: bool = False,
    ) -> Location:
        if domain not in Config.SEARCH_DOMAIN_ORDER:
            raise ValueError(f"Expected exactly one domain, got {domain}")
        if directory is SearchPathDirectory.ITEM_REPLACEMENT:
            return self._item_replacement_directory(appropriate_for)

        candidates = self.urls(directory, domain)
        if not candidates:
            raise FileNotFoundError(
                errno.ENOENT, f"No {directory.value} directory in domain {domain.name}"
            )
        location = candidates[0]
        if create:
            self.create_directory(location, with_intermediate_directories=True)
        return location

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _check_settable(self, attributes: FileAttributes) -> None:
        """Raise ValueError naming every key this manager cannot set."""
        unsupported = [key for key in attributes if key not in self._SETTABLE_KEYS]
        if unsupported:
            names = ", ".join(sorted(FileAttributeKey(key).value for key in unsupported))
            raise ValueError(f"Attributes cannot be set: {names}")

    def _item_replacement_directory(self, appropriate_for: Location | None) -> Location:
        """
        Create a staging directory on the same volume as appropriate_for.

        The temporary root is preferred; when it lives on another volume the
        directory is created next to the item instead, so the final rename
        of a safe-save never crosses devices.
        """
        if appropriate_for is None:
            raise ValueError("ITEM_REPLACEMENT requires appropriate_for")
        parent = os.path.dirname(os.path.abspath(appropriate_for.path))
        staging_root = tempfile.gettempdir()
        if os.stat(parent).st_dev != os.stat(staging_root).st_dev:
            staging_root = parent
        path = tempfile.mkdtemp(prefix=Config.ITEM_REPLACEMENT_PREFIX, dir=staging_root)
        logger.debug(f"Created item replacement directory {path} for {appropriate_for}")
        return Location(path, is_directory=True)

    def _set_attribute(self, key: FileAttributeKey, value: Any, path: str) -> None:
        if key is FileAttributeKey.POSIX_PERMISSIONS:
            os.chmod(path, int(value))
        elif key is FileAttributeKey.MODIFICATION_DATE:
            atime = os.stat(path).st_atime
            os.utime(path, (atime, value.timestamp()))

    def _account_names(self, st: os.stat_result) -> FileAttributes:
        return {}


if sys.platform != "win32":

    class PosixFileManager(RealFileManager):
        """
        RealFileManager for hosts with a user database.

        Adds home-directory lookups (UserHomeFileManager), owner and group
        names in attributes_of_item(), inode counts in
        attributes_of_file_system(), and ownership changes through
        set_attributes().
        """

        _SETTABLE_KEYS = RealFileManager._SETTABLE_KEYS | {
            FileAttributeKey.OWNER_ACCOUNT_ID,
            FileAttributeKey.GROUP_OWNER_ACCOUNT_ID,
            FileAttributeKey.OWNER_ACCOUNT_NAME,
            FileAttributeKey.GROUP_OWNER_ACCOUNT_NAME,
        }

        @property
        def home_directory_for_current_user(self) -> Location:
            return Location(os.path.expanduser("~"), is_directory=True)

        def home_directory(self, user_name: str) -> Location | None:
            """
            Look up a user's home directory in the password database.

            Args:
                user_name: Login name.

            Returns:
                Home directory location, or None for an unknown user.

            Example:
                >>> PosixFileManager().home_directory('root')
                Location(path='/root', scheme='file', is_directory=True)
            """
            try:
                entry = pwd.getpwnam(user_name)
            except KeyError:
                return None
            return Location(entry.pw_dir, is_directory=True)

        def attributes_of_file_system(self, path: str) -> FileAttributes:
            vfs = os.statvfs(path)
            return {
                FileAttributeKey.SYSTEM_SIZE: vfs.f_blocks * vfs.f_frsize,
                FileAttributeKey.SYSTEM_FREE_SIZE: vfs.f_bavail * vfs.f_frsize,
                FileAttributeKey.SYSTEM_NODES: vfs.f_files,
                FileAttributeKey.SYSTEM_FREE_NODES: vfs.f_ffree,
                FileAttributeKey.SYSTEM_NUMBER: os.stat(path).st_dev,
            }

        def _set_attribute(self, key: FileAttributeKey, value: Any, path: str) -> None:
            if key is FileAttributeKey.OWNER_ACCOUNT_ID:
                os.lchown(path, int(value), -1)
            elif key is FileAttributeKey.GROUP_OWNER_ACCOUNT_ID:
                os.lchown(path, -1, int(value))
            elif key is FileAttributeKey.OWNER_ACCOUNT_NAME:
                os.lchown(path, pwd.getpwnam(value).pw_uid, -1)
            elif key is FileAttributeKey.GROUP_OWNER_ACCOUNT_NAME:
                os.lchown(path, -1, grp.getgrnam(value).gr_gid)
            else:
                super()._set_attribute(key, value, path)

        def _account_names(self, st: os.stat_result) -> FileAttributes:
            names: FileAttributes = {}
            try:
                names[FileAttributeKey.OWNER_ACCOUNT_NAME] = pwd.getpwuid(st.st_uid).pw_name
            except KeyError:
                pass
            try:
                names[FileAttributeKey.GROUP_OWNER_ACCOUNT_NAME] = grp.getgrgid(st.st_gid).gr_name
            except KeyError:
                pass
            return names


def default_file_manager() -> FileManager:
    """
    Create the richest file manager the host supports.

    Returns:
        PosixFileManager on POSIX hosts (also a UserHomeFileManager),
        RealFileManager elsewhere.

    Example:
        >>> fm = default_file_manager()
        >>> fm.file_exists('/')
        True
    """
    if sys.platform != "win32":
        return PosixFileManager()
    return RealFileManager()
