"""Full parse, merge and re-serialize of a JSON manifest."""

import json

from .errors import MalformedDocument
from .models import RequirementEntry, Section


def load_document(text: str) -> dict:
    """Parse manifest text into an insertion-ordered dict.

    Raises:
        MalformedDocument: If the text is not JSON or its root is not an object
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedDocument(f"Manifest is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise MalformedDocument("Manifest root must be a JSON object")

    return document


def load_section(document: dict, name: str) -> Section:
    """Extract a link section, treating an absent section as empty."""
    links = document.get(name, {})

    # PHP encodes an empty map as []
    if links == []:
        links = {}

    if not isinstance(links, dict):
        raise MalformedDocument(f"Section '{name}' must be a JSON object")

    return Section(name=name, links=links)


def dump_document(document: dict) -> str:
    """Serialize a manifest the way composer writes it."""
    return json.dumps(document, indent=4, ensure_ascii=False) + "\n"


def merged_document(document: dict, section_name: str, entries: list[RequirementEntry]) -> dict:
    """Return a copy of the document with the entries merged into a section."""
    section = load_section(document, section_name).merge(entries)
    merged = dict(document)
    merged[section_name] = section.links
    return merged


def rewrite(text: str, section_name: str, entries: list[RequirementEntry]) -> str:
    """Merge entries into a section and re-serialize the whole manifest.

    Untouched keys keep their order; a missing section is appended at the
    end. Original formatting is not preserved.

    Args:
        text: Current manifest content
        section_name: Target section, e.g. "require" or "require-dev"
        entries: Requirements to add or update

    Returns:
        The new manifest content

    Raises:
        MalformedDocument: If the manifest cannot be parsed
    """
    document = load_document(text)
    return dump_document(merged_document(document, section_name, entries))
