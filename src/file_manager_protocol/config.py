"""
Configuration for the file manager protocol.

PURPOSE: Centralized constants and platform tables.
AI CONTEXT: All tunable values live here - modify this file to change behavior.

CONFIGURATION CATEGORIES:
- Temporary directories: name format and platform alias rewriting
- Well-known directories: role -> candidate paths, per platform and domain

ENVIRONMENT VARIABLES (Linux well-known directories):
- XDG_CACHE_HOME: caches root (default: ~/.cache)
- XDG_DATA_HOME: application support root (default: ~/.local/share)
- XDG_CONFIG_HOME: library root (default: ~/.config)
- XDG_DOCUMENTS_DIR, XDG_DOWNLOAD_DIR, XDG_DESKTOP_DIR, XDG_MUSIC_DIR,
  XDG_VIDEOS_DIR, XDG_PICTURES_DIR: user folders (default: ~/<Folder>)

USAGE:
    from file_manager_protocol.config import Config
    separator = Config.TEMPORARY_NAME_SEPARATOR
    candidates = Config.search_path_templates(SearchPathDirectory.CACHES, SearchPathDomainMask.USER)
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import ClassVar

from .enums import SearchPathDirectory, SearchPathDomainMask

_D = SearchPathDirectory
_M = SearchPathDomainMask

# Template entries are either a literal path ("~" expanded) or
# "$VAR|default", meaning the environment variable VAR when set and
# non-empty, else the default.
_SearchTable = dict[SearchPathDirectory, dict[SearchPathDomainMask, tuple[str, ...]]]


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for the file manager protocol.

    DESIGN: Frozen dataclass of class-level constants - no instance creation
    needed. Platform tables are keyed by Config.platform_key().

    SEARCH TABLE SHAPE:
        {role: {domain: (template, ...)}}
    Domains are the single-bit members of SearchPathDomainMask. Roles a
    platform has no concept of are simply absent, so urls() returns [].
    """

    # =========================================================================
    # TEMPORARY DIRECTORIES
    # =========================================================================
    TEMPORARY_NAME_SEPARATOR: ClassVar[str] = "-"
    """Joins the caller prefix and the unique token: <prefix>-<uuid4>."""

    DARWIN_TEMPORARY_ALIAS: ClassVar[str] = "/var/"
    DARWIN_CANONICAL_PREFIX: ClassVar[str] = "/private"
    """
    On macOS /var is a symlink to /private/var. Temporary locations under
    /var/ are rewritten to /private/var/ so path comparisons by callers
    (e.g. against os.getcwd() after chdir) are stable.
    """

    ITEM_REPLACEMENT_PREFIX: ClassVar[str] = "item-replacement-"

    # =========================================================================
    # WELL-KNOWN DIRECTORIES
    # =========================================================================
    SEARCH_PATHS: ClassVar[dict[str, _SearchTable]] = {
        "darwin": {
            _D.APPLICATION_SUPPORT: {
                _M.USER: ("~/Library/Application Support",),
                _M.LOCAL: ("/Library/Application Support",),
            },
            _D.CACHES: {
                _M.USER: ("~/Library/Caches",),
                _M.LOCAL: ("/Library/Caches",),
                _M.SYSTEM: ("/System/Library/Caches",),
            },
            _D.LIBRARY: {
                _M.USER: ("~/Library",),
                _M.LOCAL: ("/Library",),
                _M.NETWORK: ("/Network/Library",),
                _M.SYSTEM: ("/System/Library",),
            },
            _D.DOCUMENTS: {_M.USER: ("~/Documents",)},
            _D.DOWNLOADS: {_M.USER: ("~/Downloads",)},
            _D.DESKTOP: {_M.USER: ("~/Desktop",)},
            _D.MUSIC: {_M.USER: ("~/Music",)},
            _D.MOVIES: {_M.USER: ("~/Movies",)},
            _D.PICTURES: {_M.USER: ("~/Pictures",)},
            _D.USER: {_M.LOCAL: ("/Users",), _M.NETWORK: ("/Network/Users",)},
        },
        "linux": {
            _D.APPLICATION_SUPPORT: {
                _M.USER: ("$XDG_DATA_HOME|~/.local/share",),
                _M.LOCAL: ("/usr/local/share",),
                _M.SYSTEM: ("/usr/share",),
            },
            _D.CACHES: {
                _M.USER: ("$XDG_CACHE_HOME|~/.cache",),
                _M.LOCAL: ("/var/cache",),
            },
            _D.LIBRARY: {
                _M.USER: ("$XDG_CONFIG_HOME|~/.config",),
                _M.LOCAL: ("/etc",),
            },
            _D.DOCUMENTS: {_M.USER: ("$XDG_DOCUMENTS_DIR|~/Documents",)},
            _D.DOWNLOADS: {_M.USER: ("$XDG_DOWNLOAD_DIR|~/Downloads",)},
            _D.DESKTOP: {_M.USER: ("$XDG_DESKTOP_DIR|~/Desktop",)},
            _D.MUSIC: {_M.USER: ("$XDG_MUSIC_DIR|~/Music",)},
            _D.MOVIES: {_M.USER: ("$XDG_VIDEOS_DIR|~/Videos",)},
            _D.PICTURES: {_M.USER: ("$XDG_PICTURES_DIR|~/Pictures",)},
            _D.USER: {_M.LOCAL: ("/home",)},
        },
        "win32": {
            _D.APPLICATION_SUPPORT: {
                _M.USER: ("$APPDATA|~/AppData/Roaming",),
                _M.LOCAL: ("$PROGRAMDATA|C:/ProgramData",),
            },
            _D.CACHES: {_M.USER: ("$LOCALAPPDATA|~/AppData/Local",)},
            _D.LIBRARY: {_M.USER: ("$LOCALAPPDATA|~/AppData/Local",)},
            _D.DOCUMENTS: {_M.USER: ("~/Documents",)},
            _D.DOWNLOADS: {_M.USER: ("~/Downloads",)},
            _D.DESKTOP: {_M.USER: ("~/Desktop",)},
            _D.MUSIC: {_M.USER: ("~/Music",)},
            _D.MOVIES: {_M.USER: ("~/Videos",)},
            _D.PICTURES: {_M.USER: ("~/Pictures",)},
            _D.USER: {_M.LOCAL: ("$PUBLIC|C:/Users/Public",)},
        },
    }

    SEARCH_DOMAIN_ORDER: ClassVar[tuple[SearchPathDomainMask, ...]] = (
        _M.USER,
        _M.LOCAL,
        _M.NETWORK,
        _M.SYSTEM,
    )
    """Order in which domains contribute candidates; first is the best."""

    @classmethod
    def platform_key(cls) -> str:
        """
        Select the search table for the running host.

        Returns:
            'darwin', 'win32', or 'linux' (every other POSIX host uses the
            XDG layout).

        Example:
            >>> Config.platform_key() in Config.SEARCH_PATHS
            True
        """
        if sys.platform == "darwin":
            return "darwin"
        if sys.platform == "win32":
            return "win32"
        return "linux"

    @classmethod
    def search_path_templates(
        cls,
        directory: SearchPathDirectory,
        domain_mask: SearchPathDomainMask,
        platform: str | None = None,
    ) -> list[str]:
        """
        Collect unexpanded templates for a role across the requested domains.

        Args:
            directory: Well-known directory role.
            domain_mask: One or more domains, combined with '|'.
            platform: Table key; defaults to platform_key().

        Returns:
            Templates in SEARCH_DOMAIN_ORDER. Empty when the role is unknown
            on the platform or in every requested domain.
        """
        table = cls.SEARCH_PATHS[platform or cls.platform_key()]
        by_domain = table.get(directory, {})
        templates: list[str] = []
        for domain in cls.SEARCH_DOMAIN_ORDER:
            if domain in domain_mask:
                templates.extend(by_domain.get(domain, ()))
        return templates

    @staticmethod
    def expand_template(template: str) -> str:
        """
        Expand one search template into a concrete absolute path.

        Args:
            template: Literal path or '$VAR|default'.

        Returns:
            Path with environment override applied and '~' expanded.

        Example:
            >>> os.environ["XDG_CACHE_HOME"] = "/srv/cache"
            >>> Config.expand_template("$XDG_CACHE_HOME|~/.cache")
            '/srv/cache'
        """
        if template.startswith("$"):
            var, _, default = template[1:].partition("|")
            template = os.environ.get(var) or default
        return os.path.expanduser(template)
