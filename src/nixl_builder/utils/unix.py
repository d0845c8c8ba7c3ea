"""
Unix-specific utilities: privileged install with unprivileged fallback, shared
library cache refresh and ld.so.conf.d registration.

All commands go through a CommandRunner. Elevation uses ``sudo``; when it is not
available or refuses, callers fall back to running the command directly.
"""
from __future__ import annotations

import shlex
from collections.abc import Mapping, Sequence
from pathlib import Path

from nixl_builder.logger import get_logger
from nixl_builder.utils.runner import CommandResult, CommandRunner

logger = get_logger(__name__)

LD_SO_CONF_DIR = Path("/etc/ld.so.conf.d")


class PrivilegeHelper:
    """Helper to run commands with elevated privileges via sudo."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def run_privileged(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> CommandResult:
        return self.runner.run("sudo", [command, *args], cwd=cwd, env=env, stream=stream)

    def run_with_fallback(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Path | str | None = None,
        env: Mapping[str, str] | None = None,
        stream: bool = True,
    ) -> CommandResult:
        """Run ``sudo <command>``; on failure run ``<command>`` unprivileged.

        The unprivileged outcome decides the result when the privileged attempt fails.
        """
        privileged = self.run_privileged(command, args, cwd=cwd, env=env, stream=stream)
        if privileged.ok:
            return privileged

        cmd_str = " ".join([command, *args])
        logger.warning(f"Privileged '{cmd_str}' failed, retrying without sudo")
        return self.runner.run(command, args, cwd=cwd, env=env, stream=stream)

    def refresh_library_cache(self) -> bool:
        """Run ``sudo ldconfig``; failures are logged and ignored."""
        result = self.run_privileged("ldconfig")
        if not result.ok:
            logger.debug(f"ldconfig failed (exit code {result.returncode}), ignoring")
        return result.ok

    def register_library_dirs(self, conf_name: str, directories: Sequence[Path]) -> bool:
        """
        Write ``/etc/ld.so.conf.d/<conf_name>.conf`` listing the given directories.

        Args:
            conf_name: Base name of the conf file
            directories: Library directories, one per line

        Returns:
            True if the file was written
        """
        conf_file = LD_SO_CONF_DIR / f"{conf_name}.conf"
        lines = " ".join(shlex.quote(str(d)) for d in directories)
        script = f"printf '%s\\n' {lines} > {shlex.quote(str(conf_file))}"
        result = self.run_privileged("sh", ["-c", script])
        if not result.ok:
            logger.debug(f"Could not write {conf_file}, ignoring")
        return result.ok
