"""
Enumerations shared by the file manager protocol.

PURPOSE: Typed keys and option sets mirroring the native file manager API.
AI CONTEXT: Every value a caller passes to or receives from FileManager that
is not a path, a Location, or raw bytes is defined here.

CONTENTS:
- FileAttributeKey: Keys of the attribute mapping (item and file system)
- FileAttributeType: Value of FileAttributeKey.TYPE
- SearchPathDirectory: Well-known directory roles (caches, documents, ...)
- SearchPathDomainMask: Domains a role is resolved in (user, local, ...)
- DirectoryEnumerationOptions: Flags controlling directory enumeration
"""

from __future__ import annotations

from enum import Enum, Flag, auto
from typing import Any


class FileAttributeKey(str, Enum):
    """
    Keys of the attribute mapping returned by attributes_of_item().

    The mapping is dynamically typed; each key documents the type callers
    should expect for its value:

    - SIZE, REFERENCE_COUNT, SYSTEM_NUMBER, SYSTEM_FILE_NUMBER: int
    - POSIX_PERMISSIONS: int (permission bits only, e.g. 0o644)
    - TYPE: FileAttributeType
    - MODIFICATION_DATE, CREATION_DATE: timezone-aware datetime (UTC)
    - OWNER_ACCOUNT_ID, GROUP_OWNER_ACCOUNT_ID: int
    - OWNER_ACCOUNT_NAME, GROUP_OWNER_ACCOUNT_NAME: str
    - SYSTEM_SIZE, SYSTEM_FREE_SIZE, SYSTEM_NODES, SYSTEM_FREE_NODES: int
      (only in attributes_of_file_system())
    """

    SIZE = "size"
    TYPE = "type"
    POSIX_PERMISSIONS = "posix_permissions"
    MODIFICATION_DATE = "modification_date"
    CREATION_DATE = "creation_date"
    REFERENCE_COUNT = "reference_count"
    SYSTEM_NUMBER = "system_number"
    SYSTEM_FILE_NUMBER = "system_file_number"
    OWNER_ACCOUNT_ID = "owner_account_id"
    GROUP_OWNER_ACCOUNT_ID = "group_owner_account_id"
    OWNER_ACCOUNT_NAME = "owner_account_name"
    GROUP_OWNER_ACCOUNT_NAME = "group_owner_account_name"

    SYSTEM_SIZE = "system_size"
    SYSTEM_FREE_SIZE = "system_free_size"
    SYSTEM_NODES = "system_nodes"
    SYSTEM_FREE_NODES = "system_free_nodes"


FileAttributes = dict[FileAttributeKey, Any]
"""Attribute mapping: attribute kind -> dynamically typed value."""


class FileAttributeType(str, Enum):
    """Kind of filesystem item, reported under FileAttributeKey.TYPE."""

    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMBOLIC_LINK = "symbolic_link"
    CHARACTER_SPECIAL = "character_special"
    BLOCK_SPECIAL = "block_special"
    SOCKET = "socket"
    UNKNOWN = "unknown"


class SearchPathDirectory(str, Enum):
    """
    Symbolic directory roles resolvable through FileManager.urls().

    ITEM_REPLACEMENT is special: it is never listed by urls() and only
    resolves through url() with an appropriate_for location, producing a
    fresh directory suitable for staging a safe-save replacement.
    """

    APPLICATION_SUPPORT = "application_support"
    CACHES = "caches"
    DOCUMENTS = "documents"
    DOWNLOADS = "downloads"
    DESKTOP = "desktop"
    MUSIC = "music"
    MOVIES = "movies"
    PICTURES = "pictures"
    LIBRARY = "library"
    USER = "user"
    ITEM_REPLACEMENT = "item_replacement"


class SearchPathDomainMask(Flag):
    """Domains in which a SearchPathDirectory is looked up."""

    USER = auto()
    LOCAL = auto()
    NETWORK = auto()
    SYSTEM = auto()
    ALL = USER | LOCAL | NETWORK | SYSTEM


class DirectoryEnumerationOptions(Flag):
    """
    Options for contents_of_directory() and enumerator().

    NONE is the default (no options). SKIPS_HIDDEN_FILES is honored by both
    calls; the other two only affect enumerator().
    """

    NONE = 0
    SKIPS_SUBDIRECTORY_DESCENDANTS = auto()
    SKIPS_HIDDEN_FILES = auto()
    INCLUDES_DIRECTORIES_POST_ORDER = auto()
