"""Centralized exception hierarchy for nixl-builder.

Errors carry a message key and formatting parameters so the console output and
the step results share the same wording.
"""

MESSAGES: dict[str, str] = {
    "config.invalid_value": "Invalid value for {field}: {value}",
    "config.unreadable_file": "Could not read config file {path}: {error}",
    "cli.unknown_option": "Unknown option: {option}",
    "prerequisites.missing_tools": "Missing required tools: {tools}",
    "component.source_missing": "{component} source directory not found at {path}",
    "component.step_failed": "{component} {phase} failed (exit code {returncode})",
    "command.failed": "Command {command} failed with exit code {returncode}",
    "download.failed": "Failed to download {url}: {error}",
}


class NixlBuildError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(
        self,
        message_key: str,
        exit_code: int = 1,
        retriable: bool = False,
        **params: object,
    ) -> None:
        """
        Initialize the error.

        Args:
            message_key: Key in MESSAGES (e.g., 'component.source_missing')
            exit_code: Process exit code to use if the error ends the run
            retriable: Whether the operation can be retried
            **params: Parameters for string formatting
        """
        super().__init__(message_key)
        self.message_key = message_key
        self.exit_code = exit_code
        self.retriable = retriable
        self.params = params

    def __str__(self) -> str:
        template = MESSAGES.get(self.message_key)
        if template is None:
            params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
            return f"[{self.message_key}] {params_str}"
        try:
            return template.format(**self.params)
        except KeyError:
            return template


class ConfigurationError(NixlBuildError):
    """Raised when a configuration value (file, environment or CLI) is invalid."""

    def __init__(self, message_key: str, **params: object) -> None:
        super().__init__(message_key, exit_code=1, **params)


class PrerequisiteError(NixlBuildError):
    """Raised when required build tools are missing."""

    def __init__(self, message_key: str, **params: object) -> None:
        super().__init__(message_key, exit_code=1, **params)


class ResourceNotFoundError(NixlBuildError):
    """Raised when a required directory or artifact does not exist."""

    def __init__(self, message_key: str, **params: object) -> None:
        super().__init__(message_key, exit_code=1, **params)


class OperationalError(NixlBuildError):
    """Raised when an external command or download fails."""

    def __init__(self, message_key: str, retriable: bool = False, **params: object) -> None:
        super().__init__(message_key, exit_code=1, retriable=retriable, **params)


class CommandError(OperationalError):
    """Raised by the runner when a checked command exits non-zero."""

    def __init__(self, command: list[str], returncode: int, stdout: str = "", stderr: str = "") -> None:
        super().__init__("command.failed", command=" ".join(command), returncode=returncode)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
