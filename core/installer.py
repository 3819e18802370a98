"""Installation of updated requirements through the composer binary."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Protocol

from .errors import ResolverFailed

logger = logging.getLogger(__name__)


class Installer(Protocol):
    """Re-resolves and installs packages after the manifest changed."""

    def install(
        self,
        manifest_path: Path,
        scope: list[str],
        dev_mode: bool = False,
        verbose: bool = False,
        prefer_source: bool = False,
    ) -> bool:
        ...


class ComposerInstaller:
    """Runs `composer update` restricted to the touched packages."""

    def __init__(self, binary: str = "composer", timeout: float | None = None):
        self.binary = binary
        self.timeout = timeout

    def build_command(
        self,
        scope: list[str],
        dev_mode: bool = False,
        verbose: bool = False,
        prefer_source: bool = False,
    ) -> list[str]:
        command = [self.binary, "update", *scope, "--no-interaction"]
        if not dev_mode:
            command.append("--no-dev")
        if prefer_source:
            command.append("--prefer-source")
        if verbose:
            command.append("-v")
        return command

    def install(
        self,
        manifest_path: Path,
        scope: list[str],
        dev_mode: bool = False,
        verbose: bool = False,
        prefer_source: bool = False,
    ) -> bool:
        """Update only the packages in scope.

        Args:
            manifest_path: Manifest the installer should read
            scope: Package names allowed to change
            dev_mode: Install development requirements too
            verbose: Ask composer for verbose output
            prefer_source: Install from package sources when possible

        Returns:
            True if composer exited successfully

        Raises:
            ResolverFailed: If composer could not be started or timed out
        """
        command = self.build_command(scope, dev_mode, verbose, prefer_source)
        env = dict(os.environ, COMPOSER=manifest_path.name)
        logger.info("Running %s", " ".join(command))

        try:
            result = subprocess.run(
                command,
                cwd=manifest_path.parent,
                env=env,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ResolverFailed(f"{self.binary} timed out after {self.timeout}s") from e
        except OSError as e:
            raise ResolverFailed(f"Could not run {self.binary}: {e}") from e

        if result.returncode != 0:
            logger.warning("%s exited with code %d", self.binary, result.returncode)
            return False

        return True
