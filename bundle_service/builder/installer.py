"""Dependency installation for ephemeral projects.

Runs the configured package-manager command inside a scaffolded project and
turns a non-zero exit, a timeout or a missing binary into a
``DependencyInstallError`` carrying the tool's diagnostic output verbatim.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from ..config import BuildConfig
from ..errors import DependencyInstallError
from ..utils import preview, run_command

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Outcome of a successful install run."""

    command: list[str]
    duration_seconds: float
    stdout: str = ""
    stderr: str = ""


class DependencyInstaller:
    """Installs the dependencies declared in a project's ``package.json``."""

    def __init__(self, config: BuildConfig) -> None:
        self.command = list(config.install_command)
        self.timeout = config.install_timeout

    async def install(self, project_root: str | Path) -> InstallResult:
        """Run the install command with *project_root* as working directory.

        Returns:
            InstallResult with the captured output.

        Raises:
            DependencyInstallError: On non-zero exit, timeout, or when the
                package manager cannot be started.
        """
        root = Path(project_root)
        logger.info("Installing dependencies in %s: %s", root.name, " ".join(self.command))
        start = time.monotonic()

        try:
            returncode, stdout, stderr = await run_command(
                self.command, cwd=root, timeout=self.timeout
            )
        except FileNotFoundError as exc:
            raise DependencyInstallError(
                f"Package manager not found: '{self.command[0]}'", stderr=str(exc)
            ) from exc
        except PermissionError as exc:
            raise DependencyInstallError(
                f"Permission denied executing: '{self.command[0]}'", stderr=str(exc)
            ) from exc

        elapsed = time.monotonic() - start

        if returncode != 0:
            diagnostic = stderr or stdout
            logger.error(
                "Dependency installation failed in %s (exit %s): %s",
                root.name,
                returncode,
                preview(diagnostic),
            )
            raise DependencyInstallError(
                "Dependency installation failed", stderr=diagnostic, exit_code=returncode
            )

        logger.info("Dependencies installed in %s (%.1fs)", root.name, elapsed)
        return InstallResult(
            command=self.command, duration_seconds=elapsed, stdout=stdout, stderr=stderr
        )
