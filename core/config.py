"""Runtime settings for depadd.

Values come from keyword arguments, then environment variables prefixed
with ``DEPADD_``. The manifest path also honours ``COMPOSER``, the variable
composer itself reads.
"""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings passed explicitly into the orchestrator and its collaborators.

    Attributes:
        manifest_path: Manifest to update.
        registry_url: Base URL of the Packagist metadata API.
        registry_timeout: Registry request timeout in seconds.
        max_concurrency: Maximum concurrent registry requests.
        composer_binary: Executable used to install updated packages.
        install_timeout: Installer timeout in seconds, None for no limit.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEPADD_",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    manifest_path: Path = Field(
        default=Path("composer.json"),
        validation_alias=AliasChoices("DEPADD_MANIFEST_PATH", "COMPOSER"),
    )
    registry_url: str = "https://repo.packagist.org"
    registry_timeout: float = 30.0
    max_concurrency: int = 6
    composer_binary: str = "composer"
    install_timeout: float | None = None
