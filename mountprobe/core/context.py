"""Execution context for testability."""

import os
import shutil
import socket
import subprocess
import tempfile
import time
from pathlib import Path


class Context:
    """
    Wraps external calls for testability.

    In production: executes real commands and touches the real filesystem
    In tests: can be replaced with MockContext
    """

    def check_tool(self, name: str) -> bool:
        """Check if a tool exists in PATH."""
        return shutil.which(name) is not None

    def run(
        self,
        cmd: list[str],
        check: bool = False,
        timeout: int | None = 60,
        **kwargs,
    ) -> subprocess.CompletedProcess:
        """
        Run a command and return result.

        Args:
            cmd: Command and arguments as list
            check: Raise on non-zero exit code
            timeout: Timeout in seconds
            **kwargs: Additional subprocess.run arguments

        Returns:
            CompletedProcess with stdout, stderr, returncode
        """
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=check,
            timeout=timeout,
            **kwargs,
        )

    def spawn(self, cmd: list[str]) -> subprocess.Popen:
        """
        Start a command without waiting for it.

        The child gets no stdin and its output is discarded, so a probe
        blocked in the kernel cannot stall us on a pipe.
        """
        return subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def read_file(self, path: str) -> str:
        """Read file contents."""
        return Path(path).read_text()

    def file_exists(self, path: str) -> bool:
        """Check if file exists."""
        return Path(path).exists()

    def is_dir(self, path: str) -> bool:
        """Check if path is a directory."""
        return os.path.isdir(path)

    def is_symlink(self, path: str) -> bool:
        """Check if path is a symbolic link."""
        return os.path.islink(path)

    def write_temp(self, content: str, prefix: str = "mountprobe.") -> str:
        """Write content to a new scratch file and return its path."""
        fd, path = tempfile.mkstemp(prefix=prefix)
        with os.fdopen(fd, "w") as f:
            f.write(content)
        return path

    def remove_file(self, path: str) -> None:
        """Remove a file, ignoring one that is already gone."""
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass

    def hostname(self) -> str:
        """Get the short host name."""
        return socket.gethostname().split(".")[0]

    def monotonic(self) -> float:
        """Monotonic clock in seconds."""
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        """Sleep for the given number of seconds."""
        time.sleep(seconds)
