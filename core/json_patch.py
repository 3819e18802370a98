"""Format-preserving edits of a link section inside a JSON manifest.

The manifest text is scanned just enough to find the byte spans of the
top-level members and of the target section's members. Edits are spliced
into the original text so that everything outside the touched spans stays
byte-identical. Anything the scanner cannot bound with confidence is
rejected so the caller can fall back to a full rewrite.
"""

import json
import logging
import re
from dataclasses import dataclass, field

from .errors import MalformedDocument, PatchRejected
from .json_rewrite import load_document, merged_document
from .models import Applied, PatchResult, Rejected, RequirementEntry

logger = logging.getLogger(__name__)

WHITESPACE = " \t\r\n"
LITERAL_PATTERN = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null")
DEFAULT_INDENT = "    "


@dataclass
class Member:
    """Spans of one key/value pair. Ends are exclusive."""

    key: str
    key_start: int
    key_end: int
    value_start: int
    value_end: int


@dataclass
class ObjectSpan:
    """Span of a JSON object from its opening to just past its closing brace."""

    start: int
    end: int
    members: list[Member] = field(default_factory=list)


class JsonScanner:
    """Bounds JSON values in raw text without building a tree."""

    def __init__(self, text: str):
        self.text = text

    def _skip_whitespace(self, pos: int) -> int:
        while pos < len(self.text) and self.text[pos] in WHITESPACE:
            pos += 1
        return pos

    def _expect(self, pos: int, char: str) -> None:
        if pos >= len(self.text):
            raise PatchRejected(f"Unexpected end of document, expected '{char}'")
        if self.text[pos] != char:
            raise PatchRejected(
                f"Unexpected '{self.text[pos]}' at offset {pos}, expected '{char}'"
            )

    def scan_string(self, pos: int) -> int:
        """Return the offset just past the string starting at pos."""
        self._expect(pos, '"')
        pos += 1
        while pos < len(self.text):
            char = self.text[pos]
            if char == "\\":
                pos += 2
                continue
            if char == '"':
                return pos + 1
            if char < " ":
                raise PatchRejected(f"Control character inside string at offset {pos}")
            pos += 1
        raise PatchRejected("Unterminated string")

    def _scan_key(self, pos: int, inspect: bool) -> tuple[str, int]:
        end = self.scan_string(pos)
        key = self.text[pos + 1:end - 1]
        if inspect and "\\" in key:
            raise PatchRejected(f"Escape sequence in key {self.text[pos:end]}")
        return key, end

    def scan_value(self, pos: int) -> int:
        """Return the offset just past the value starting at pos."""
        if pos >= len(self.text):
            raise PatchRejected("Unexpected end of document, expected a value")

        char = self.text[pos]
        if char == '"':
            return self.scan_string(pos)
        if char == "{":
            return self.scan_object(pos).end
        if char == "[":
            return self.scan_array(pos)

        match = LITERAL_PATTERN.match(self.text, pos)
        if not match:
            raise PatchRejected(f"Unrecognized value at offset {pos}")
        return match.end()

    def scan_array(self, pos: int) -> int:
        self._expect(pos, "[")
        pos = self._skip_whitespace(pos + 1)
        if pos < len(self.text) and self.text[pos] == "]":
            return pos + 1

        while True:
            pos = self._skip_whitespace(self.scan_value(pos))
            if pos < len(self.text) and self.text[pos] == ",":
                pos = self._skip_whitespace(pos + 1)
                continue
            self._expect(pos, "]")
            return pos + 1

    def scan_object(self, pos: int, inspect: bool = False) -> ObjectSpan:
        """Scan the object starting at pos.

        With inspect set, keys are checked for escapes since they will be
        compared against package or section names.
        """
        self._expect(pos, "{")
        span = ObjectSpan(start=pos, end=pos)
        pos = self._skip_whitespace(pos + 1)
        if pos < len(self.text) and self.text[pos] == "}":
            span.end = pos + 1
            return span

        while True:
            key_start = pos
            key, key_end = self._scan_key(pos, inspect)
            pos = self._skip_whitespace(key_end)
            self._expect(pos, ":")
            value_start = self._skip_whitespace(pos + 1)
            value_end = self.scan_value(value_start)
            span.members.append(Member(key, key_start, key_end, value_start, value_end))

            pos = self._skip_whitespace(value_end)
            if pos < len(self.text) and self.text[pos] == ",":
                pos = self._skip_whitespace(pos + 1)
                continue
            self._expect(pos, "}")
            span.end = pos + 1
            return span

    def scan_document(self) -> ObjectSpan:
        """Scan the root object and make sure nothing but whitespace follows it."""
        root = self.scan_object(self._skip_whitespace(0), inspect=True)
        if self._skip_whitespace(root.end) != len(self.text):
            raise PatchRejected("Trailing content after the root object")
        return root


def _encode(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _indent_before(text: str, pos: int) -> str | None:
    """Return the indentation of pos, or None if something precedes it on its line."""
    prefix = text[text.rfind("\n", 0, pos) + 1:pos]
    if prefix.strip(" \t"):
        return None
    return prefix


def _insert_member(text: str, obj: ObjectSpan, key: str, value: str) -> str:
    """Append a member after the last member of a non-empty object."""
    last = obj.members[-1]
    separator = text[last.key_end:last.value_start]

    if len(obj.members) > 1:
        # Same comma, line break and indentation as between the last two members
        gap = text[obj.members[-2].value_end:last.key_start]
    else:
        indent = _indent_before(text, last.key_start)
        gap = ", " if indent is None else "," + _newline(text) + indent

    insertion = gap + key + separator + value
    return text[:last.value_end] + insertion + text[last.value_end:]


def _object_text(text: str, anchor: Member, key: str, value: str) -> str:
    """Format a one-entry object laid out relative to a top-level member."""
    separator = text[anchor.key_end:anchor.value_start]
    indent = _indent_before(text, anchor.key_start)
    if indent is None:
        return "{" + key + separator + value + "}"

    newline = _newline(text)
    entry_indent = indent + (indent or DEFAULT_INDENT)
    return "{" + newline + entry_indent + key + separator + value + newline + indent + "}"


def _apply_entry(text: str, section_name: str, entry: RequirementEntry) -> str:
    """Return text with one entry added or updated, or raise PatchRejected."""
    scanner = JsonScanner(text)
    root = scanner.scan_document()
    if not root.members:
        raise PatchRejected("Empty root object gives no formatting to follow")

    key = _encode(entry.name)
    value = _encode(entry.constraint)

    candidates = [member for member in root.members if member.key == section_name]
    if len(candidates) > 1:
        raise PatchRejected(f"Section '{section_name}' appears more than once")

    if not candidates:
        section_value = _object_text(text, root.members[-1], key, value)
        return _insert_member(text, root, _encode(section_name), section_value)

    section_member = candidates[0]
    if text[section_member.value_start] != "{":
        raise PatchRejected(f"Section '{section_name}' is not an object")

    section = scanner.scan_object(section_member.value_start, inspect=True)
    existing = [
        member for member in section.members if member.key.lower() == entry.name.lower()
    ]
    if len(existing) > 1:
        raise PatchRejected(f"Package '{entry.name}' appears more than once in '{section_name}'")

    if existing:
        member = existing[0]
        return text[:member.value_start] + value + text[member.value_end:]

    if section.members:
        return _insert_member(text, section, key, value)

    replacement = _object_text(text, section_member, key, value)
    return text[:section.start] + replacement + text[section.end:]


def _verify(original: str, patched: str, section_name: str, entries: list[RequirementEntry]) -> None:
    """Check the patched text holds exactly the original content with the merge applied."""
    try:
        expected = merged_document(load_document(original), section_name, entries)
        actual = load_document(patched)
    except MalformedDocument as e:
        raise PatchRejected(str(e)) from e

    if actual != expected:
        raise PatchRejected("Patched document does not match the merged content")


def try_patch(text: str, section_name: str, entries: list[RequirementEntry]) -> PatchResult:
    """Add or update entries in a manifest section without reformatting it.

    Existing keys get their value replaced in place; new keys are appended
    after the last entry using the neighbouring entries' layout. A missing
    section is appended as the last top-level member. The batch is
    all-or-nothing.

    Args:
        text: Current manifest content
        section_name: Target section, e.g. "require" or "require-dev"
        entries: Requirements to add or update

    Returns:
        Applied with the new text, or Rejected with the reason
    """
    patched = text
    try:
        for entry in entries:
            patched = _apply_entry(patched, section_name, entry)
        _verify(text, patched, section_name, entries)
    except PatchRejected as e:
        logger.debug("Patch of '%s' rejected: %s", section_name, e)
        return Rejected(reason=str(e))

    return Applied(text=patched)
