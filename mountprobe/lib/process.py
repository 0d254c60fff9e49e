"""Process utilities for checks."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mountprobe.core.context import Context


class CommandError(Exception):
    """Error running a command."""

    pass


def run_command(
    cmd: list[str],
    context: "Context | None" = None,
    check: bool = False,
    timeout: int | None = 60,
) -> str:
    """
    Run a command and return its output.

    Args:
        cmd: Command and arguments
        context: Execution context (for testing)
        check: Raise on non-zero exit
        timeout: Timeout in seconds

    Returns:
        Command stdout

    Raises:
        CommandError: If the command can't be run, times out, or
            check=True and it exits non-zero
    """
    if context is None:
        from mountprobe.core.context import Context
        context = Context()

    try:
        result = context.run(cmd, check=check, timeout=timeout)
    except Exception as e:
        raise CommandError(f"Command failed: {cmd}") from e
    return result.stdout


def check_tool(
    name: str,
    context: "Context | None" = None,
) -> bool:
    """
    Check if a tool exists in PATH.

    Args:
        name: Tool name to check
        context: Execution context (for testing)

    Returns:
        True if tool exists
    """
    if context is None:
        from mountprobe.core.context import Context
        context = Context()

    return context.check_tool(name)
