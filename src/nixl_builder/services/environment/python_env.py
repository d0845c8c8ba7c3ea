"""Python virtual environment setup with uv."""

import tempfile
from collections.abc import Callable
from pathlib import Path

import httpx

from nixl_builder.exceptions import OperationalError
from nixl_builder.logger import get_logger, log_section
from nixl_builder.models.build import StepResult
from nixl_builder.models.config import BuildConfig
from nixl_builder.utils.paths import load_resource_json
from nixl_builder.utils.runner import CommandRunner

logger = get_logger(__name__)

STEP_NAME = "python-env"
UV_INSTALLER_URL = "https://astral.sh/uv/install.sh"


def download_installer(url: str, timeout: float = 60.0) -> str:
    """
    Download an installer script.

    Args:
        url: Script URL
        timeout: Request timeout in seconds

    Returns:
        Script text

    Raises:
        OperationalError: If the download fails
    """
    try:
        response = httpx.get(
            url,
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": "nixl-builder"},
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise OperationalError("download.failed", retriable=True, url=url, error=str(e)) from e
    return response.text


class PythonEnvironmentBuilder:
    """Ensures uv, a virtual environment under the build dir and the meson build tooling.

    Package installation failures are reported as warnings only. The meson based
    builds assume meson is present, so a failure here can surface later as a
    configure failure of NIXL or NIXLBench.
    """

    def __init__(
        self,
        runner: CommandRunner,
        fetch_installer: Callable[[str], str] = download_installer,
        packages: list[str] | None = None,
        home: Path | None = None,
    ) -> None:
        self.runner = runner
        self.fetch_installer = fetch_installer
        self.packages = packages if packages is not None else load_resource_json("build_dependencies.json")["python"]
        self.home = home or Path.home()

    def setup(self, config: BuildConfig) -> StepResult:
        log_section(logger, "Setting Up Python Environment")
        warnings: list[str] = []

        extra_path = self._ensure_uv(config, warnings)
        config = config.model_copy(update={"extra_path": extra_path})
        env = config.command_environment()

        venv_path = config.venv_path
        venv_ready = self.runner.path_exists(venv_path)
        if not venv_ready:
            logger.info("Creating Python virtual environment...")
            result = self.runner.run("uv", ["venv", str(venv_path), "--python", config.python_version], env=env)
            venv_ready = result.ok
            if not result.ok:
                logger.warning(f"Could not create virtual environment at {venv_path}")
                warnings.append(f"uv venv failed (exit code {result.returncode})")

        updates: dict[str, object] = {"extra_path": extra_path}
        if venv_ready:
            updates["virtual_env"] = venv_path
            env = config.model_copy(update={"virtual_env": venv_path}).command_environment()

        logger.info("Installing Python dependencies...")
        result = self.runner.run("uv", ["pip", "install", *self.packages], env=env, stream=True)
        if not result.ok:
            logger.warning("Some Python packages failed to install; meson based builds may fail later")
            warnings.append(f"uv pip install failed (exit code {result.returncode})")

        logger.info("Python environment ready", status="ok")
        return StepResult.ok(STEP_NAME, updates=updates, warnings=warnings)

    def _ensure_uv(self, config: BuildConfig, warnings: list[str]) -> tuple[str, ...]:
        """Install uv if missing; return the extra PATH entries to use afterwards."""
        extra_path = config.extra_path
        if self.runner.which("uv", config.command_environment()):
            logger.info("uv already installed", status="ok")
            return extra_path

        logger.info("Installing uv...")
        try:
            script = self.fetch_installer(UV_INSTALLER_URL)
        except OperationalError as e:
            logger.warning(str(e))
            warnings.append(str(e))
            return extra_path

        with tempfile.NamedTemporaryFile("w", suffix=".sh", encoding="utf-8") as f:
            f.write(script)
            f.flush()
            result = self.runner.run("sh", [f.name])

        if not result.ok:
            logger.warning(f"uv installer exited with code {result.returncode}")
            warnings.append(f"uv installer failed (exit code {result.returncode})")
            return extra_path

        # The installer puts uv in ~/.local/bin (older releases used ~/.cargo/bin)
        for bin_dir in (self.home / ".local" / "bin", self.home / ".cargo" / "bin"):
            if str(bin_dir) not in extra_path:
                extra_path = (*extra_path, str(bin_dir))
        logger.info("uv installed", status="ok")
        return extra_path
