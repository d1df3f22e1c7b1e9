"""Version information for file-manager-protocol."""

__version__ = "1.0.0"
__version_date__ = "2026-10-19"

__title__ = "file_manager_protocol"
__description__ = "Injectable file manager protocol with scoped temporary directories"

__author__ = "Mark Grandau"

__license__ = "MIT"
__copyright__ = "Copyright 2026 Mark Grandau"

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
]
