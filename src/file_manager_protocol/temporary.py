"""
Scoped temporary directories.

PURPOSE: Leak-free temporary directory usage on top of any FileManager.
AI CONTEXT: The only logic in this package that is not a pass-through to the
host. Uses nothing but FileManager.temporary_directory, create_directory()
and remove_item(), so it works the same with a MockFileManager.

LIFECYCLE (per call):
    start -> directory created -> work running -> {succeeded, failed}
          -> cleanup attempted -> {return value, re-raise original error}

CLEANUP GUARANTEE:
- Removal runs in a `finally` block: on return, on exception, and on
  asyncio.CancelledError (cleanup is synchronous, so a cancelled task still
  completes it before the cancellation propagates).
- Removal failures (any Exception) are logged at WARNING and discarded; the
  caller only ever sees the work's result or the work's own exception.

USAGE:
    fm = default_file_manager()

    async def build(workdir: Location) -> bytes:
        ...

    artifact = await run_in_temporary_directory(fm, build, prefix="build")

    async with temporary_directory(fm) as workdir:
        ...
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, TypeVar

from .config import Config
from .location import Location

if TYPE_CHECKING:
    from .filesystem import FileManager

__all__ = ["make_temporary_directory", "run_in_temporary_directory", "temporary_directory"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _canonical_temporary_root(file_manager: FileManager) -> Location:
    """
    Temporary root with the macOS /var alias rewritten to /private/var.

    Business context: Callers compare paths they got back from the host
    (os.getcwd() after chdir, realpath results) with the Location handed to
    their work. Those report /private/var/..., so the helper must too.
    """
    path = file_manager.temporary_directory.path
    if sys.platform == "darwin" and path.startswith(Config.DARWIN_TEMPORARY_ALIAS):
        path = Config.DARWIN_CANONICAL_PREFIX + path
    return Location(path, is_directory=True)


def make_temporary_directory(file_manager: FileManager, prefix: str | None = None) -> Location:
    """
    Create a uniquely named directory under the host temporary root.

    The caller owns the directory and removes it when done (manual mode).

    Args:
        file_manager: File manager used to create the directory.
        prefix: Name prefix. Defaults to a fresh UUID, so the name is then
            two UUIDs joined by '-'.

    Returns:
        Location named '<prefix>-<uuid4>' that exists on return.

    Raises:
        OSError: Whatever create_directory() raises (permission denied,
            disk full, ...).

    Example:
        >>> tmp = make_temporary_directory(fm, prefix="TestPrefix")
        >>> tmp.last_path_component.startswith("TestPrefix-")
        True
    """
    if prefix is None:
        prefix = str(uuid.uuid4())
    name = f"{prefix}{Config.TEMPORARY_NAME_SEPARATOR}{uuid.uuid4()}"
    directory = _canonical_temporary_root(file_manager).appending_path_component(
        name, is_directory=True
    )
    file_manager.create_directory(directory, with_intermediate_directories=True)
    logger.debug(f"Created temporary directory: {directory}")
    return directory


def _remove_quietly(file_manager: FileManager, directory: Location) -> None:
    try:
        file_manager.remove_item(directory)
        logger.debug(f"Removed temporary directory: {directory}")
    except Exception as e:
        logger.warning(f"Failed to remove temporary directory {directory}: {e!r}")


@asynccontextmanager
async def temporary_directory(
    file_manager: FileManager, prefix: str | None = None
) -> AsyncIterator[Location]:
    """
    Async context manager form of run_in_temporary_directory().

    Args:
        file_manager: File manager used for creation and removal.
        prefix: Name prefix passed to make_temporary_directory().

    Yields:
        Location of the freshly created directory. It is removed
        recursively when the block exits, however it exits.

    Raises:
        OSError: If the directory cannot be created. Errors raised inside
            the block propagate unchanged.
    """
    directory = make_temporary_directory(file_manager, prefix)
    try:
        yield directory
    finally:
        _remove_quietly(file_manager, directory)


async def run_in_temporary_directory(
    file_manager: FileManager,
    work: Callable[[Location], Awaitable[T]],
    prefix: str | None = None,
) -> T:
    """
    Run async work inside a fresh temporary directory, then remove it.

    Business context: Tests and build steps need scratch space that never
    outlives them. The directory is removed whether the work returns,
    raises, or is cancelled, and a failed removal never hides the outcome.

    Args:
        file_manager: File manager used for creation and removal.
        work: Coroutine function receiving the directory Location.
        prefix: Name prefix passed to make_temporary_directory().

    Returns:
        Whatever work returned, even if removal failed.

    Raises:
        OSError: If the directory cannot be created (work is not run).
        BaseException: The exact exception raised by work, including
            asyncio.CancelledError.

    Example:
        >>> async def count(tmp: Location) -> int:
        ...     fm.create_file(tmp.appending_path_component("a.txt").path, b"hi")
        ...     return len(fm.contents_of_directory_at_path(tmp.path))
        >>> await run_in_temporary_directory(fm, count)
        1
    """
    async with temporary_directory(file_manager, prefix) as directory:
        return await work(directory)
