"""Pytest configuration and fixtures."""


import pytest


@pytest.fixture
def sample_manifest():
    """Sample composer.json content for testing."""
    return """{
    "name": "acme/app",
    "description": "Sample application",
    "require": {
        "php": ">=8.1",
        "acme/widget": "^1.0"
    },
    "extra": {
        "branch-alias": {"dev-main": "1.x-dev"}
    }
}
"""


@pytest.fixture
def empty_require_manifest():
    """Manifest with an empty require section."""
    return """{
    "name": "acme/app",
    "require": {},
    "license": "MIT"
}
"""


@pytest.fixture
def manifest_file(tmp_path, sample_manifest):
    """Create a temporary composer.json for testing."""
    manifest = tmp_path / "composer.json"
    manifest.write_text(sample_manifest)
    return manifest
