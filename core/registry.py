"""Default version constraints looked up from the Packagist registry."""

import asyncio
import logging

import httpx
from packaging.version import InvalidVersion, Version

from .errors import PackageNotFound, RegistryUnavailable
from .models import RequirementEntry

logger = logging.getLogger(__name__)


class PackagistRegistry:
    """Registry client supplying constraints for requirements given without one."""

    def __init__(
        self,
        base_url: str = "https://repo.packagist.org",
        timeout: float = 30.0,
        max_concurrency: int = 6,
    ):
        """Initialize registry client.

        Args:
            base_url: Base URL of the Packagist metadata API
            timeout: Request timeout in seconds
            max_concurrency: Maximum concurrent requests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self._cache: dict[str, dict] = {}

    async def get_latest_version(self, package_name: str) -> str:
        """Get the highest stable version of a package.

        Args:
            package_name: Name of the package

        Returns:
            Version string as tagged in the registry
        """
        metadata = await self._fetch_package_metadata(package_name)
        if not metadata:
            raise PackageNotFound(f"Package {package_name} not found")

        releases = metadata.get("packages", {}).get(package_name, [])
        stable = self._stable_versions(releases)
        if not stable:
            raise PackageNotFound(f"No stable releases found for package {package_name}")

        _, tag = max(stable)
        return tag

    async def default_constraint(self, package_name: str) -> str:
        """Get the recommended constraint for a package, e.g. ^1.2."""
        latest = await self.get_latest_version(package_name)
        constraint = self.recommended_constraint(latest)
        logger.info("Using version %s for %s", constraint, package_name)
        return constraint

    async def complete_entries(self, entries: list[RequirementEntry]) -> list[RequirementEntry]:
        """Fill in the constraint of every entry that has none, concurrently.

        Args:
            entries: Parsed requirement entries

        Returns:
            New entries, all with a constraint, in the same order
        """
        # Semaphores bind to the running event loop
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def complete(entry: RequirementEntry) -> RequirementEntry:
            if entry.resolved:
                return entry
            async with semaphore:
                constraint = await self.default_constraint(entry.name)
            return RequirementEntry(name=entry.name, constraint=constraint)

        return list(await asyncio.gather(*(complete(entry) for entry in entries)))

    @staticmethod
    def recommended_constraint(version: str) -> str:
        """Turn a release version into a caret constraint.

        1.2.3 becomes ^1.2 and 0.4.1 becomes ^0.4; 0.0.x releases are
        pinned to their patch level since any change there may break.
        """
        release = Version(version).release + (0, 0)
        major, minor, patch = release[:3]
        if major == 0 and minor == 0:
            return f"^0.0.{patch}"
        return f"^{major}.{minor}"

    def _stable_versions(self, releases: list[dict]) -> list[tuple[Version, str]]:
        """Pick parseable stable versions from registry release entries."""
        stable = []
        for release in releases:
            tag = release.get("version", "")
            try:
                version = Version(tag)
            except InvalidVersion:
                continue  # dev branches and non-semantic tags
            if version.is_prerelease:
                continue
            stable.append((version, tag))
        return stable

    async def _fetch_package_metadata(self, package_name: str) -> dict | None:
        """Fetch package metadata from Packagist.

        Args:
            package_name: Name of the package

        Returns:
            Package metadata dict or None if not found
        """
        # Check cache first
        if package_name in self._cache:
            return self._cache[package_name]

        url = f"{self.base_url}/p2/{package_name}.json"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url)
                if response.status_code == 404:
                    return None
                response.raise_for_status()

                metadata = response.json()
                self._cache[package_name] = metadata
                return metadata

        except httpx.TimeoutException as e:
            raise RegistryUnavailable(f"Timeout fetching metadata for {package_name}") from e
        except httpx.HTTPStatusError as e:
            raise RegistryUnavailable(f"HTTP error fetching {package_name}: {e}") from e
        except httpx.HTTPError as e:
            raise RegistryUnavailable(f"Network error fetching {package_name}: {e}") from e
        except ValueError as e:
            raise RegistryUnavailable(f"Invalid metadata for {package_name}: {e}") from e
