from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import pytest

from nixl_builder.logger import configure_logging
from nixl_builder.models.config import BuildConfig
from nixl_builder.utils.runner import CommandResult


@dataclass
class Call:
    command: str
    args: tuple[str, ...]
    cwd: Path | None
    env: Mapping[str, str] | None
    stream: bool

    @property
    def line(self) -> str:
        return " ".join([self.command, *self.args])


class RecordingRunner:
    """CommandRunner fake that records every call and simulates a few filesystem effects.

    ``results`` maps a command line prefix to the result to return; the longest
    matching prefix wins and anything unmatched succeeds. Successful ``git clone``,
    ``mkdir -p`` and ``rm -rf`` calls update the set of existing paths.
    """

    def __init__(
        self,
        tools: set[str] | None = None,
        existing: Sequence[Path] = (),
        results: Mapping[str, CommandResult] | None = None,
    ) -> None:
        self.calls: list[Call] = []
        self.tools = tools  # None: every tool resolves
        self.existing: set[Path] = {Path(p) for p in existing}
        self.results: dict[str, CommandResult] = dict(results or {})
        # Paths relative to a clone target that a successful clone creates
        self.clone_creates: list[str] = []

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> CommandResult:
        call = Call(command, tuple(str(a) for a in args), Path(cwd) if cwd else None, env, stream)
        self.calls.append(call)
        result = self._result_for(call.line)
        if result.ok:
            self._apply(call)
        return result

    def which(self, name: str, env: Mapping[str, str] | None = None) -> str | None:
        if self.tools is None or name in self.tools:
            return f"/usr/bin/{name}"
        return None

    def path_exists(self, path: Path) -> bool:
        return Path(path) in self.existing

    # Inspection helpers

    @property
    def lines(self) -> list[str]:
        return [c.line for c in self.calls]

    def ran(self, prefix: str) -> bool:
        return any(line == prefix or line.startswith(prefix + " ") for line in self.lines)

    def index(self, prefix: str) -> int:
        return next(i for i, line in enumerate(self.lines) if line == prefix or line.startswith(prefix + " "))

    def _result_for(self, line: str) -> CommandResult:
        matches = [k for k in self.results if line == k or line.startswith(k + " ")]
        if not matches:
            return CommandResult(returncode=0)
        return self.results[max(matches, key=len)]

    def _apply(self, call: Call) -> None:
        if call.command == "git" and call.args[:1] == ("clone",):
            target = Path(call.args[-1])
            self.existing.add(target)
            self.existing.update(target / rel for rel in self.clone_creates)
        elif call.command == "mkdir":
            self.existing.add(Path(call.args[-1]))
        elif call.command == "rm":
            removed = Path(call.args[-1])
            self.existing = {p for p in self.existing if p != removed and removed not in p.parents}


@pytest.fixture(autouse=True)
def plain_logging() -> None:
    configure_logging("DEBUG", colors=False)


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def config(tmp_path: Path) -> BuildConfig:
    return BuildConfig(project_root=tmp_path, arch="x86_64", jobs=4)
