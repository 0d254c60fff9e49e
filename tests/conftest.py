"""Shared test fixtures."""

import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

# Add project root to path for package imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@dataclass
class ProbeBehavior:
    """How a fake probe process behaves."""

    finishes_after: float | None = 0.0
    returncode: int = 0
    ignores_sigterm: bool = False


class FakeProcess:
    """Stand-in for subprocess.Popen driven by the mock clock."""

    def __init__(self, cmd: list[str], context: "MockContext", behavior: ProbeBehavior):
        self.args = cmd
        self.context = context
        self.behavior = behavior
        self.started = context.now
        self.returncode: int | None = None
        self.terminated = False

    def poll(self) -> int | None:
        if self.returncode is not None:
            return self.returncode
        if self.terminated and not self.behavior.ignores_sigterm:
            self.returncode = -15
        elif (
            self.behavior.finishes_after is not None
            # tolerance for float drift of the summed poll sleeps
            and self.context.now - self.started >= self.behavior.finishes_after - 1e-9
        ):
            self.returncode = self.behavior.returncode
        return self.returncode

    def terminate(self) -> None:
        self.terminated = True

    def wait(self, timeout: float | None = None) -> int:
        if self.poll() is None:
            raise subprocess.TimeoutExpired(self.args, timeout)
        return self.returncode


class MockContext:
    """Mock Context for testing checks without real system access."""

    def __init__(
        self,
        tools_available: list[str] | None = None,
        command_outputs: dict[tuple, str | Exception | subprocess.CompletedProcess] | None = None,
        file_contents: dict[str, str] | None = None,
        directories: list[str] | None = None,
        symlinks: list[str] | None = None,
        probes: dict[str, ProbeBehavior | Exception] | None = None,
        host: str = "testhost",
    ):
        self.tools_available = set(tools_available or [])
        self.command_outputs = command_outputs or {}
        self.file_contents = dict(file_contents or {})
        self.directories = set(directories or [])
        self.symlinks = set(symlinks or [])
        self.probes = probes or {}
        self.host = host
        self.now = 0.0
        self.commands_run: list[list[str]] = []
        self.spawned: list[FakeProcess] = []
        self.temp_files: list[str] = []
        self.removed_files: list[str] = []

    def check_tool(self, name: str) -> bool:
        """Check if tool is in mocked available list."""
        return name in self.tools_available

    def run(
        self,
        cmd: list[str],
        check: bool = False,
        **kwargs,
    ) -> subprocess.CompletedProcess:
        """Return mocked command output."""
        self.commands_run.append(cmd)
        key = tuple(cmd)
        if key not in self.command_outputs:
            raise KeyError(f"No mock output for command: {cmd}")

        output = self.command_outputs[key]
        if isinstance(output, Exception):
            raise output
        if isinstance(output, subprocess.CompletedProcess):
            return output

        return subprocess.CompletedProcess(
            cmd,
            returncode=0,
            stdout=output,
            stderr="",
        )

    def spawn(self, cmd: list[str]) -> FakeProcess:
        """Start a fake probe; behavior is looked up by program name."""
        behavior = self.probes.get(cmd[0], ProbeBehavior())
        if isinstance(behavior, Exception):
            raise behavior
        proc = FakeProcess(cmd, self, behavior)
        self.spawned.append(proc)
        return proc

    def read_file(self, path: str) -> str:
        """Return mocked file content."""
        if path not in self.file_contents:
            raise FileNotFoundError(f"No mock content for: {path}")
        return self.file_contents[path]

    def file_exists(self, path: str) -> bool:
        """Check if path is in mocked files or directories."""
        return path in self.file_contents or path in self.directories

    def is_dir(self, path: str) -> bool:
        """Check if path is a mocked directory."""
        return path in self.directories

    def is_symlink(self, path: str) -> bool:
        """Check if path is a mocked symlink."""
        return path in self.symlinks

    def write_temp(self, content: str, prefix: str = "mountprobe.") -> str:
        """Store scratch content under a fake temp path."""
        path = f"/tmp/{prefix}{len(self.temp_files)}"
        self.file_contents[path] = content
        self.temp_files.append(path)
        return path

    def remove_file(self, path: str) -> None:
        """Forget a mocked file."""
        self.file_contents.pop(path, None)
        self.removed_files.append(path)

    def hostname(self) -> str:
        """Return mocked host name."""
        return self.host

    def monotonic(self) -> float:
        """Return the mock clock."""
        return self.now

    def sleep(self, seconds: float) -> None:
        """Advance the mock clock."""
        self.now += seconds

    @property
    def leaked_temp_files(self) -> list[str]:
        """Scratch files created but never removed."""
        return [p for p in self.temp_files if p not in self.removed_files]


@pytest.fixture
def mock_context():
    """Factory fixture for creating MockContext instances."""
    def _create(**kwargs) -> MockContext:
        return MockContext(**kwargs)
    return _create


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to test fixtures directory."""
    return FIXTURES_DIR


def load_fixture(category: str, name: str) -> str:
    """Load a fixture file by category and name."""
    fixture_path = FIXTURES_DIR / category / name
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture not found: {fixture_path}")
    return fixture_path.read_text()
