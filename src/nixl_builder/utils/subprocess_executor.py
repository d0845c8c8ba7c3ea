"""Subprocess execution utilities with automatic logging."""

import subprocess
from collections import deque
from pathlib import Path

from nixl_builder.logger import get_logger

logger = get_logger(__name__)


def is_progress_line(line: str) -> bool:
    """
    Check if a line appears to be a progress update (e.g., contains control characters
    like \r, \b, or ANSI escape sequences).
    """
    return "\r" in line or "\b" in line or "\033[" in line


class SubprocessExecutor:
    """Executes subprocess commands with automatic debug logging."""

    @staticmethod
    def run_sync(
        *args: str,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """
        Execute a synchronous subprocess command with automatic debug logging.

        Args:
            *args: Command arguments
            cwd: Working directory
            env: Environment variables

        Returns:
            subprocess.CompletedProcess object

        Raises:
            OSError: If the process cannot be started
        """
        cmd_str = " ".join(args)
        logger.debug(f"Executing sync subprocess: {cmd_str}")
        if cwd:
            logger.debug(f"Working directory: {cwd}")

        cwd_arg = str(cwd) if cwd else None

        try:
            result = subprocess.run(args, check=False, capture_output=True, cwd=cwd_arg, env=env)

            # Log outputs at debug level
            if result.stdout:
                stdout_str = result.stdout.decode("utf-8", errors="replace")
                logger.debug(f"Subprocess stdout: {stdout_str}")
            if result.stderr:
                stderr_str = result.stderr.decode("utf-8", errors="replace")
                logger.debug(f"Subprocess stderr: {stderr_str}")

            return result

        except OSError as e:
            logger.debug(f"Subprocess could not start: {cmd_str} - {e}")
            raise

    @staticmethod
    def run_streaming(
        *args: str,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        max_buffer_lines: int | None = 200,
    ) -> subprocess.CompletedProcess[str]:
        """
        Execute a subprocess and log its merged output line by line as it runs.

        Used for long-running builds. Only the last ``max_buffer_lines`` lines are kept
        for the returned result. Output is decoded as UTF-8; consecutive progress lines
        (containing \r, \b or ANSI escapes) overwrite each other in the buffer and
        only the text after the last carriage return is kept.

        Args:
            *args: Command arguments
            cwd: Working directory
            env: Environment variables
            max_buffer_lines: Size of the tail buffer, None keeps everything

        Returns:
            CompletedProcess with the buffered output as stdout
        """
        cmd_str = " ".join(args)
        logger.debug(f"Executing subprocess with streaming: {cmd_str}")
        if cwd:
            logger.debug(f"Working directory: {cwd}")

        output_lines: deque[str] | list[str]
        if max_buffer_lines is not None:
            output_lines = deque(maxlen=max_buffer_lines)
        else:
            output_lines = []

        with subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=str(cwd) if cwd else None,
            env=env,
        ) as process:
            assert process.stdout is not None
            previous_progress = False
            # Read bytes so carriage returns reach us instead of becoming newlines
            for raw in process.stdout:
                text = raw.decode("utf-8", errors="replace").rstrip("\n")
                progress = is_progress_line(text)
                line = text.rstrip("\r").split("\r")[-1]
                if progress and previous_progress and output_lines:
                    output_lines[-1] = line
                else:
                    output_lines.append(line)
                previous_progress = progress
                logger.debug(f"Subprocess: {line}")
            returncode = process.wait()

        if returncode != 0:
            buffer_note = f" (last {max_buffer_lines} lines)" if max_buffer_lines is not None else ""
            logger.debug(f"Subprocess exited with code {returncode}: {cmd_str}{buffer_note}")

        return subprocess.CompletedProcess(args, returncode, "\n".join(output_lines), "")
