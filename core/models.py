"""Core data models for depadd."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RequirementEntry:
    """A single package requirement requested by the user."""

    name: str
    constraint: str = ""  # empty until the registry supplies a default

    @property
    def resolved(self) -> bool:
        return bool(self.constraint)


@dataclass
class Section:
    """A named link section of a manifest, e.g. require or require-dev."""

    name: str
    links: dict[str, Any] = field(default_factory=dict)

    def find(self, package: str) -> str | None:
        """Return the key stored for a package, matching case-insensitively."""
        wanted = package.lower()
        for key in self.links:
            if key.lower() == wanted:
                return key
        return None

    def merge(self, entries: list[RequirementEntry]) -> "Section":
        """Return a new section with the entries added or updated.

        Existing keys keep their spelling and position; new keys are
        appended in request order. Other case variants of an updated key
        are dropped so each package is listed once.
        """
        links = dict(self.links)
        merged = Section(name=self.name, links=links)
        for entry in entries:
            key = merged.find(entry.name) or entry.name
            links[key] = entry.constraint
            for other in [k for k in links if k != key and k.lower() == key.lower()]:
                del links[other]
        return merged


@dataclass(frozen=True)
class Applied:
    """The patch engine produced a clean edit."""

    text: str


@dataclass(frozen=True)
class Rejected:
    """The patch engine could not guarantee a clean edit."""

    reason: str


PatchResult = Applied | Rejected


@dataclass
class OperationOutcome:
    """Result of one require operation."""

    manifest_path: str
    section: str
    requirements: list[RequirementEntry]
    strategy: str  # patch, rewrite
    install_succeeded: bool = False
    install_error: str | None = None

    @property
    def scope(self) -> list[str]:
        return [entry.name for entry in self.requirements]

    @property
    def failed_stage(self) -> str | None:
        # Manifest-stage failures are raised before an outcome exists
        if not self.install_succeeded:
            return "resolver"
        return None

    @property
    def exit_code(self) -> int:
        return 0 if self.failed_stage is None else 1
