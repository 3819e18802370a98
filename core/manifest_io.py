"""Whole-file reads and writes of the manifest."""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from .errors import (
    MalformedDocument,
    ManifestNotFound,
    ManifestNotReadable,
    ManifestNotWritable,
)

logger = logging.getLogger(__name__)

UTF8_BOM = "\ufeff"


def check_manifest(path: Path) -> None:
    """Fail fast unless the manifest exists and can be read and written."""
    if not path.exists():
        raise ManifestNotFound(f"{path} not found.")
    if not path.is_file() or not os.access(path, os.R_OK):
        raise ManifestNotReadable(f"{path} is not readable.")
    if not os.access(path, os.W_OK):
        raise ManifestNotWritable(f"{path} is not writable.")


def split_bom(content: str) -> tuple[str, str]:
    """Split a leading byte order mark off the content, returning (bom, body)."""
    if content.startswith(UTF8_BOM):
        return UTF8_BOM, content[len(UTF8_BOM):]
    return "", content


def read_manifest(path: Path) -> str:
    """Read the manifest as UTF-8 without translating line endings."""
    try:
        data = path.read_bytes()
    except FileNotFoundError as e:
        raise ManifestNotFound(f"{path} not found.") from e
    except OSError as e:
        raise ManifestNotReadable(f"{path} is not readable: {e}") from e

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedDocument(f"{path} is not valid UTF-8: {e}") from e


def write_manifest(path: Path, content: str) -> None:
    """Replace the manifest contents in one step.

    The new content goes to a temporary file next to the manifest which is
    then renamed over it, so readers see either the old or the new document.
    """
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content.encode("utf-8"))
        shutil.copymode(path, temp_name)
        os.replace(temp_name, path)
    except OSError as e:
        Path(temp_name).unlink(missing_ok=True)
        raise ManifestNotWritable(f"Could not write {path}: {e}") from e

    logger.debug("Wrote %d bytes to %s", len(content), path)
