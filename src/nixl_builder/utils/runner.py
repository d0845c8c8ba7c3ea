"""External process runner interface.

Every step talks to the outside world (processes and filesystem probes) through a
``CommandRunner`` so tests can substitute a recording fake.
"""

import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from nixl_builder.exceptions import CommandError
from nixl_builder.utils.subprocess_executor import SubprocessExecutor

# Exit code reported by shells when a command cannot be found
COMMAND_NOT_FOUND = 127
# Exit code reported by shells when a command exists but cannot be started
COMMAND_NOT_EXECUTABLE = 126


class CommandResult(BaseModel):
    """Exit status and captured output of an external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def tail(self, lines: int = 20) -> str:
        """Last lines of combined output, for error reports."""
        combined = "\n".join(part for part in (self.stdout, self.stderr) if part)
        return "\n".join(combined.splitlines()[-lines:])


class CommandRunner(Protocol):
    """Capability interface for running external commands."""

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> CommandResult: ...

    def which(self, name: str, env: Mapping[str, str] | None = None) -> str | None: ...

    def path_exists(self, path: Path) -> bool: ...


class SystemCommandRunner:
    """Runs commands on the host with SubprocessExecutor."""

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> CommandResult:
        argv = [command, *[str(a) for a in args]]
        env_arg = dict(env) if env is not None else None
        try:
            if stream:
                streamed = SubprocessExecutor.run_streaming(*argv, cwd=cwd, env=env_arg)
                return CommandResult(returncode=streamed.returncode, stdout=streamed.stdout)
            result = SubprocessExecutor.run_sync(*argv, cwd=cwd, env=env_arg)
        except FileNotFoundError as e:
            return CommandResult(returncode=COMMAND_NOT_FOUND, stderr=str(e))
        except OSError as e:
            return CommandResult(returncode=COMMAND_NOT_EXECUTABLE, stderr=str(e))
        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout.decode("utf-8", errors="replace") if result.stdout else "",
            stderr=result.stderr.decode("utf-8", errors="replace") if result.stderr else "",
        )

    def which(self, name: str, env: Mapping[str, str] | None = None) -> str | None:
        path = env.get("PATH") if env is not None else None
        return shutil.which(name, path=path)

    def path_exists(self, path: Path) -> bool:
        return Path(path).exists()


def run_checked(
    runner: CommandRunner,
    command: str,
    args: Sequence[str] = (),
    cwd: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    stream: bool = False,
) -> CommandResult:
    """Run a command and raise CommandError if it fails."""
    result = runner.run(command, args, cwd=cwd, env=env, stream=stream)
    if not result.ok:
        raise CommandError([command, *[str(a) for a in args]], result.returncode, result.stdout, result.stderr)
    return result
