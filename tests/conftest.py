from collections.abc import Sequence
from pathlib import Path

import anyio
import pytest
import sse_starlette
from packaging import version

from github_commit_mcp.shell import CommandOutput, ShellRunner


@pytest.fixture
def anyio_backend():
    return "asyncio"


SSE_STARLETTE_VERSION = version.parse(sse_starlette.__version__)
NEEDS_RESET = SSE_STARLETTE_VERSION < version.parse("3.0.0")


@pytest.fixture(autouse=True)
def reset_sse_app_status():
    """Reset sse-starlette's global AppStatus singleton before each test.

    AppStatus.should_exit_event is a global event that gets bound to an event
    loop. Versions 3.0+ use context-local events and need no reset.
    """
    if not NEEDS_RESET:
        yield
        return

    from sse_starlette.sse import AppStatus

    AppStatus.should_exit_event = anyio.Event()  # type: ignore[attr-defined]

    yield

    AppStatus.should_exit_event = anyio.Event()  # type: ignore[attr-defined]


class RecordingRunner(ShellRunner):
    """Shell runner that records commands and answers from a script.

    ``responses`` maps a command prefix (the git subcommand and its flags) to
    the stdout to return; unmatched commands return empty output.
    """

    def __init__(self, responses: dict[tuple[str, ...], str] | None = None):
        self.responses = responses or {}
        self.calls: list[tuple[Path, tuple[str, ...]]] = []

    async def run(self, working_directory, *args: str) -> CommandOutput:
        self.calls.append((Path(working_directory), args))
        for prefix, stdout in self.responses.items():
            if args[1 : 1 + len(prefix)] == prefix:
                return CommandOutput(stdout=stdout, stderr="")
        return CommandOutput(stdout="", stderr="")

    @property
    def commands(self) -> list[Sequence[str]]:
        return [args for _, args in self.calls]


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()
