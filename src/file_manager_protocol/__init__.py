"""
File Manager Protocol.

PURPOSE: Substitutable file manager interface plus scoped temporary directories.
AI CONTEXT: Depend on FileManager instead of os/shutil; inject
default_file_manager() in production and a fake in tests.

PACKAGE STRUCTURE:
- filesystem.py: FileManager protocol, RealFileManager, PosixFileManager
- location.py: Location, the structured location value
- enums.py: attribute keys, search-path roles/domains, enumeration options
- enumerator.py: DirectoryEnumerator, lazy recursive enumeration
- temporary.py: make_temporary_directory / run_in_temporary_directory
- config.py: Configuration constants and well-known directory tables

QUICK START:
    from file_manager_protocol import default_file_manager, run_in_temporary_directory

    fm = default_file_manager()

    async def work(tmp):
        fm.create_file(tmp.appending_path_component("a.txt").path, b"hello")
        return fm.contents_of_directory_at_path(tmp.path)

    names = await run_in_temporary_directory(fm, work)   # ['a.txt'], tmp removed
"""

import sys

from file_manager_protocol.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __version__,
    __version_date__,
)
from file_manager_protocol.enumerator import DirectoryEnumerator, ErrorHandler
from file_manager_protocol.enums import (
    DirectoryEnumerationOptions,
    FileAttributeKey,
    FileAttributes,
    FileAttributeType,
    SearchPathDirectory,
    SearchPathDomainMask,
)
from file_manager_protocol.filesystem import FileManager, RealFileManager, default_file_manager
from file_manager_protocol.location import Location
from file_manager_protocol.temporary import (
    make_temporary_directory,
    run_in_temporary_directory,
    temporary_directory,
)

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
    "DirectoryEnumerationOptions",
    "DirectoryEnumerator",
    "ErrorHandler",
    "FileAttributeKey",
    "FileAttributeType",
    "FileAttributes",
    "FileManager",
    "Location",
    "RealFileManager",
    "SearchPathDirectory",
    "SearchPathDomainMask",
    "default_file_manager",
    "make_temporary_directory",
    "run_in_temporary_directory",
    "temporary_directory",
]

if sys.platform != "win32":
    from file_manager_protocol.filesystem import PosixFileManager, UserHomeFileManager

    __all__ += ["PosixFileManager", "UserHomeFileManager"]
