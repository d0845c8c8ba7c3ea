"""Git repository service."""

from collections.abc import Callable
from pathlib import Path

from nixl_builder.logger import get_logger
from nixl_builder.utils.runner import CommandRunner

logger = get_logger(__name__)

# Best-effort update of an existing checkout; returns warnings
UpdateStrategy = Callable[[Path], list[str]]


class GitService:
    """Manages git repository operations."""

    def __init__(self, runner: CommandRunner, git_exec: str = "git") -> None:
        self.runner = runner
        self.git_exec = git_exec

    def clone_or_update(
        self,
        repo_url: str,
        target_dir: Path,
        ref: str | None = None,
        shallow: bool = True,
        clean: bool = False,
        update: UpdateStrategy | None = None,
    ) -> list[str]:
        """
        Clone repository, or update it if it exists.

        Args:
            repo_url: Repository URL
            target_dir: Target directory
            ref: Branch or tag to clone
            shallow: Try a shallow clone first, falling back to a full clone
            clean: Delete an existing checkout and clone again
            update: Update strategy for an existing checkout, defaults to ``git pull``

        Returns:
            Warnings from best-effort operations. A failed clone is not an error here;
            callers check that ``target_dir`` exists afterwards.
        """
        if self.runner.path_exists(target_dir):
            if not clean:
                logger.info("Updating repository...", path=str(target_dir))
                return (update or self.pull)(target_dir)
            logger.info(f"Removing existing directory {target_dir}...")
            self.remove(target_dir)

        logger.info(f"Cloning {repo_url}...")
        self.clone(repo_url, target_dir, ref=ref, shallow=shallow)
        return []

    def clone(self, repo_url: str, target_dir: Path, ref: str | None = None, shallow: bool = True) -> bool:
        """Clone, trying ``--depth 1`` first when shallow is requested."""
        if shallow:
            cmd = ["clone", "--depth", "1"]
            if ref:
                cmd += ["-b", ref]
            result = self.runner.run(self.git_exec, [*cmd, repo_url, str(target_dir)], stream=True)
            if result.ok:
                return True
            logger.warning("Shallow clone failed, retrying with a full clone")

        result = self.runner.run(self.git_exec, ["clone", repo_url, str(target_dir)], stream=True)
        if not result.ok:
            logger.warning(f"git clone failed (exit code {result.returncode})")
        return result.ok

    def pull(self, repo_dir: Path) -> list[str]:
        result = self.runner.run(self.git_exec, ["pull"], cwd=repo_dir, stream=True)
        if result.ok:
            return []
        logger.warning(f"git pull failed in {repo_dir}, but continuing...")
        return [f"git pull failed in {repo_dir}"]

    def fetch(self, repo_dir: Path, *args: str) -> bool:
        result = self.runner.run(self.git_exec, ["fetch", *args], cwd=repo_dir, stream=True)
        if not result.ok:
            logger.warning(f"git fetch {' '.join(args)} failed in {repo_dir}, but continuing...")
        return result.ok

    def checkout(self, repo_dir: Path, ref: str) -> bool:
        result = self.runner.run(self.git_exec, ["checkout", ref], cwd=repo_dir)
        return result.ok

    def remove(self, target_dir: Path) -> bool:
        result = self.runner.run("rm", ["-rf", str(target_dir)])
        return result.ok
