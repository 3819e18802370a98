"""Parsing of package requirement tokens given on the command line."""

import re

from .errors import MalformedRequirement
from .models import RequirementEntry

# Name, then one separator run, then everything else as the constraint
TOKEN_PATTERN = re.compile(
    r"^(?P<name>[^\s:=]+)(?P<separator>\s*[:=]\s*|\s+)?(?P<constraint>.*)$",
    re.DOTALL,
)


class RequirementTokenParser:
    """Parser for `name`, `name:constraint`, `name=constraint` and `name constraint` tokens."""

    def __init__(self):
        # Package names accepted in a link section
        self.name_patterns = [
            r"^[a-z0-9]([_.-]?[a-z0-9]+)*/[a-z0-9](([_.]?|-{0,2})[a-z0-9]+)*$",  # vendor/package
            r"^php(-64bit|-ipv6|-zts|-debug)?$",  # PHP runtime
            r"^hhvm$",
            r"^composer(-plugin|-runtime)?-api$",
            r"^(ext|lib)-[a-z0-9]([_.-]?[a-z0-9]+)*$",  # Extensions and system libraries
        ]

    def _is_valid_name(self, name: str) -> bool:
        """Check if a name is an acceptable package name."""
        return any(re.match(pattern, name) for pattern in self.name_patterns)

    def _parse_token(self, token: str) -> RequirementEntry:
        """Parse a single token into a requirement entry."""
        stripped = token.strip()
        if not stripped:
            raise MalformedRequirement("Empty package requirement")

        match = TOKEN_PATTERN.match(stripped)
        if not match:
            raise MalformedRequirement(f"Missing package name in requirement '{token}'")

        name = match.group("name").lower()
        constraint = match.group("constraint").strip()

        if not self._is_valid_name(name):
            raise MalformedRequirement(f"Invalid package name '{match.group('name')}'")

        if match.group("separator") and not constraint:
            raise MalformedRequirement(
                f"Requirement '{token}' has a separator but no version constraint"
            )

        if ":" in constraint:
            raise MalformedRequirement(
                f"Requirement '{token}' contains more than one name/constraint separator"
            )

        return RequirementEntry(name=name, constraint=constraint)

    def parse(self, tokens: list[str]) -> list[RequirementEntry]:
        """Parse tokens into requirement entries, later duplicates winning."""
        if not tokens:
            raise MalformedRequirement("No packages given")

        entries: dict[str, RequirementEntry] = {}
        for token in tokens:
            entry = self._parse_token(token)
            if entry.name in entries:
                entries[entry.name].constraint = entry.constraint
            else:
                entries[entry.name] = entry

        return list(entries.values())


def parse_requirements(tokens: list[str]) -> list[RequirementEntry]:
    """Parse raw package tokens into normalized requirement entries.

    Args:
        tokens: Tokens such as ``acme/widget:^1.0`` or ``"acme/widget ^1.0"``

    Returns:
        Requirement entries in first-seen order; an empty constraint means
        the registry should supply a default

    Raises:
        MalformedRequirement: If any token cannot be parsed
    """
    parser = RequirementTokenParser()
    return parser.parse(tokens)
