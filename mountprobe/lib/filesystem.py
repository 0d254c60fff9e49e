"""Filesystem utilities for checks."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mountprobe.core.context import Context


class FileError(Exception):
    """Error accessing a file."""

    pass


def read_file(
    path: str,
    context: "Context | None" = None,
) -> str:
    """
    Read file contents.

    Args:
        path: Path to file
        context: Execution context (for testing)

    Returns:
        File contents

    Raises:
        FileError: If file can't be read
    """
    if context is None:
        from mountprobe.core.context import Context
        context = Context()

    try:
        return context.read_file(path)
    except FileNotFoundError:
        raise FileError(f"File not found: {path}")
    except OSError as e:
        raise FileError(f"Unable to read {path}: {e}") from e


def strip_trailing_slash(path: str) -> str:
    """Normalize a mount point path; the root directory stays "/"."""
    stripped = path.rstrip("/")
    return stripped or ("/" if path.startswith("/") else path)
