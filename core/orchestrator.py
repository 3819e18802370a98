"""Sequencing of a require operation: parse, merge, persist, install."""

import asyncio
import logging
from pathlib import Path

from .config import Settings
from .errors import ResolverFailed
from .installer import ComposerInstaller, Installer
from .json_patch import try_patch
from .json_rewrite import rewrite
from .manifest_io import check_manifest, read_manifest, split_bom, write_manifest
from .models import Applied, OperationOutcome, RequirementEntry
from .parse_requirements import parse_requirements
from .registry import PackagistRegistry

logger = logging.getLogger(__name__)

REQUIRE = "require"
REQUIRE_DEV = "require-dev"


class UpdateOrchestrator:
    """Adds requirements to a manifest and installs them."""

    def __init__(
        self,
        settings: Settings,
        registry: PackagistRegistry | None = None,
        installer: Installer | None = None,
    ):
        self.settings = settings
        self.registry = registry or PackagistRegistry(
            base_url=settings.registry_url,
            timeout=settings.registry_timeout,
            max_concurrency=settings.max_concurrency,
        )
        self.installer = installer or ComposerInstaller(
            binary=settings.composer_binary,
            timeout=settings.install_timeout,
        )

    @property
    def manifest_path(self) -> Path:
        return Path(self.settings.manifest_path)

    def update_manifest(self, section: str, entries: list[RequirementEntry]) -> str:
        """Merge entries into the manifest and write it once.

        Returns:
            The strategy used, "patch" or "rewrite"
        """
        path = self.manifest_path
        bom, content = split_bom(read_manifest(path))

        result = try_patch(content, section, entries)
        if isinstance(result, Applied):
            write_manifest(path, bom + result.text)
            return "patch"

        logger.info("Rewriting %s: %s", path, result.reason)
        write_manifest(path, bom + rewrite(content, section, entries))
        return "rewrite"

    def install(self, outcome: OperationOutcome, dev: bool, verbose: bool, prefer_source: bool) -> None:
        """Run the installer for the touched packages, recording the result on the outcome."""
        try:
            outcome.install_succeeded = self.installer.install(
                self.manifest_path,
                outcome.scope,
                dev_mode=dev,
                verbose=verbose,
                prefer_source=prefer_source,
            )
        except ResolverFailed as e:
            logger.error("Installation failed: %s", e)
            outcome.install_succeeded = False
            outcome.install_error = str(e)
            return

        if not outcome.install_succeeded:
            outcome.install_error = "Installer reported failure"

    def run(
        self,
        tokens: list[str],
        dev: bool = False,
        verbose: bool = False,
        prefer_source: bool = False,
    ) -> OperationOutcome:
        """Add the requested packages to the manifest, then install them.

        Args:
            tokens: Package tokens such as ``acme/widget:^1.0``
            dev: Target require-dev instead of require
            verbose: Pass verbosity to the installer
            prefer_source: Ask the installer to install from sources

        Returns:
            Outcome with the manifest and install results reported separately

        Raises:
            ManifestError: If anything fails before the manifest is written;
                the manifest is left untouched
        """
        section = REQUIRE_DEV if dev else REQUIRE
        path = self.manifest_path
        check_manifest(path)

        entries = parse_requirements(tokens)
        if not all(entry.resolved for entry in entries):
            entries = asyncio.run(self.registry.complete_entries(entries))

        strategy = self.update_manifest(section, entries)
        logger.info("%s has been updated (%s)", path, strategy)

        outcome = OperationOutcome(
            manifest_path=str(path),
            section=section,
            requirements=entries,
            strategy=strategy,
        )
        self.install(outcome, dev, verbose, prefer_source)
        return outcome
