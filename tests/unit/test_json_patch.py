"""Tests for format-preserving manifest patching."""

import json

import pytest

from core.errors import PatchRejected
from core.json_patch import JsonScanner, try_patch
from core.models import Applied, Rejected, RequirementEntry


def entry(name, constraint):
    return RequirementEntry(name=name, constraint=constraint)


class TestTryPatch:
    """Test in-place edits of link sections."""

    def test_add_to_empty_section(self, empty_require_manifest):
        """Should expand an empty section with one indented entry."""
        result = try_patch(empty_require_manifest, "require", [entry("acme/widget", "^1.0")])

        assert isinstance(result, Applied)
        assert result.text == empty_require_manifest.replace(
            '"require": {}',
            '"require": {\n        "acme/widget": "^1.0"\n    }',
        )
        assert json.loads(result.text)["require"] == {"acme/widget": "^1.0"}

    def test_update_existing_value_in_place(self, sample_manifest):
        """Should replace only the value of an existing key."""
        result = try_patch(sample_manifest, "require", [entry("acme/widget", "^2.0")])

        assert isinstance(result, Applied)
        assert result.text == sample_manifest.replace('"^1.0"', '"^2.0"')

    def test_add_new_key_after_last_entry(self, sample_manifest):
        """Should append new keys using the neighbouring entries' layout."""
        result = try_patch(sample_manifest, "require", [entry("acme/gadget", "^3.1")])

        assert isinstance(result, Applied)
        assert result.text == sample_manifest.replace(
            '"acme/widget": "^1.0"',
            '"acme/widget": "^1.0",\n        "acme/gadget": "^3.1"',
        )
        assert list(json.loads(result.text)["require"]) == ["php", "acme/widget", "acme/gadget"]

    def test_missing_section_is_synthesized(self, sample_manifest):
        """Should append a missing section as the last top-level member."""
        result = try_patch(sample_manifest, "require-dev", [entry("phpunit/phpunit", "^10.5")])

        assert isinstance(result, Applied)
        assert result.text == sample_manifest.replace(
            '"1.x-dev"}\n    }\n}',
            '"1.x-dev"}\n    },\n    "require-dev": {\n        "phpunit/phpunit": "^10.5"\n    }\n}',
        )

    def test_unrelated_regions_are_byte_identical(self, sample_manifest):
        """Should leave everything outside the section untouched."""
        result = try_patch(
            sample_manifest,
            "require",
            [entry("acme/widget", "^2.0"), entry("acme/gadget", "^3.1")],
        )

        assert isinstance(result, Applied)
        head = sample_manifest.split('"require"')[0]
        tail = sample_manifest[sample_manifest.index('    "extra"'):]
        assert result.text.startswith(head)
        assert result.text.endswith(tail)

        document = json.loads(result.text)
        original = json.loads(sample_manifest)
        assert document["require"] == {"php": ">=8.1", "acme/widget": "^2.0", "acme/gadget": "^3.1"}
        assert {k: v for k, v in document.items() if k != "require"} == {
            k: v for k, v in original.items() if k != "require"
        }

    def test_second_application_is_noop(self, sample_manifest):
        """Should produce identical text when the same update is applied twice."""
        entries = [entry("acme/gadget", "^3.1")]
        first = try_patch(sample_manifest, "require", entries)
        second = try_patch(first.text, "require", entries)

        assert isinstance(second, Applied)
        assert second.text == first.text

    def test_case_insensitive_key_match(self):
        """Should update an existing key whose case differs."""
        content = '{\n    "require": {\n        "Acme/Widget": "^1.0"\n    }\n}\n'
        result = try_patch(content, "require", [entry("acme/widget", "^2.0")])

        assert isinstance(result, Applied)
        assert result.text == content.replace('"^1.0"', '"^2.0"')

    def test_inline_section(self):
        """Should keep single-line sections on one line."""
        content = '{"name": "acme/app", "require": {"php": ">=8.1"}}'
        result = try_patch(content, "require", [entry("acme/widget", "^1.0")])

        assert isinstance(result, Applied)
        assert result.text == '{"name": "acme/app", "require": {"php": ">=8.1", "acme/widget": "^1.0"}}'

    def test_inline_document_missing_section(self):
        """Should synthesize a section inline in a single-line document."""
        content = '{"name": "acme/app"}'
        result = try_patch(content, "require-dev", [entry("phpunit/phpunit", "^10.5")])

        assert isinstance(result, Applied)
        assert result.text == '{"name": "acme/app", "require-dev": {"phpunit/phpunit": "^10.5"}}'

    def test_tab_indentation_preserved(self):
        """Should indent new entries with the document's tabs."""
        content = '{\n\t"name": "acme/app",\n\t"require": {}\n}\n'
        result = try_patch(content, "require", [entry("acme/widget", "^1.0")])

        assert isinstance(result, Applied)
        assert result.text == '{\n\t"name": "acme/app",\n\t"require": {\n\t\t"acme/widget": "^1.0"\n\t}\n}\n'

    def test_crlf_line_endings_preserved(self):
        """Should insert entries with the document's line endings."""
        content = '{\r\n    "require": {\r\n        "php": ">=8.1"\r\n    }\r\n}\r\n'
        result = try_patch(content, "require", [entry("acme/widget", "^1.0")])

        assert isinstance(result, Applied)
        assert result.text == (
            '{\r\n    "require": {\r\n        "php": ">=8.1",\r\n'
            '        "acme/widget": "^1.0"\r\n    }\r\n}\r\n'
        )

    def test_compact_separator_preserved(self):
        """Should copy the existing key/value separator style."""
        content = '{\n  "require":{\n    "php":">=8.1"\n  }\n}'
        result = try_patch(content, "require", [entry("acme/widget", "^1.0")])

        assert isinstance(result, Applied)
        assert result.text == '{\n  "require":{\n    "php":">=8.1",\n    "acme/widget":"^1.0"\n  }\n}'

    def test_escaped_key_outside_section_is_allowed(self):
        """Should only check keys it has to compare."""
        content = '{\n    "extra": {"caf\\u00e9": 1},\n    "require": {}\n}\n'
        result = try_patch(content, "require", [entry("acme/widget", "^1.0")])

        assert isinstance(result, Applied)

    @pytest.mark.parametrize(
        "content",
        [
            '{\n    "require": {\n        "acme/widget": "^1.0",\n        "acme/widget": "^1.1"\n    }\n}',
            '{\n    "require": {\n        "acme/widget": "^1.0",\n        "ACME/widget": "^1.1"\n    }\n}',
            '{"require": {"php": ">=8.1"}, "require": {}}',
            '{"require": {"php": ">=8.1"}',
            '{"require": {"php": ">=8.1",}}',
            '{"require": {"acme\\/widget": "^1.0"}}',
            '{"require": []}',
            '{"require": "acme/widget"}',
            '{}',
            '{"require": {}} trailing',
            '{"name": "acme/app", "require": {"php": ">=8.1"',
            'not json at all',
        ],
    )
    def test_rejects_unsafe_documents(self, content):
        """Should reject anything it cannot edit cleanly."""
        result = try_patch(content, "require", [entry("acme/widget", "^2.0")])

        assert isinstance(result, Rejected)
        assert result.reason

    def test_batch_is_all_or_nothing(self):
        """Should discard earlier edits when a later entry fails."""
        content = (
            '{\n    "require": {\n        "acme/widget": "^1.0",\n'
            '        "acme/dup": "^1.0",\n        "acme/dup": "^1.1"\n    }\n}\n'
        )
        result = try_patch(
            content,
            "require",
            [entry("acme/widget", "^2.0"), entry("acme/dup", "^3.0")],
        )

        assert isinstance(result, Rejected)
        assert "acme/dup" in result.reason

    def test_rejects_when_unrelated_content_is_invalid(self):
        """Should reject documents that only fail full JSON validation."""
        content = '{"require": {}, "description": "bad \\q escape"}'
        result = try_patch(content, "require", [entry("acme/widget", "^1.0")])

        assert isinstance(result, Rejected)


class TestJsonScanner:
    """Test span detection."""

    def test_member_spans(self):
        """Should record key and value spans of each member."""
        text = '{"a": [1, {"b": null}], "c" : "d"}'
        root = JsonScanner(text).scan_document()

        assert [member.key for member in root.members] == ["a", "c"]
        first, second = root.members
        assert text[first.value_start:first.value_end] == '[1, {"b": null}]'
        assert text[second.key_end:second.value_start] == " : "
        assert text[second.value_start:second.value_end] == '"d"'
        assert root.end == len(text)

    def test_string_with_escaped_quote(self):
        """Should not end a string at an escaped quote."""
        text = '"say \\"hi\\"" tail'
        end = JsonScanner(text).scan_string(0)
        assert text[:end] == '"say \\"hi\\""'

    def test_unterminated_string(self):
        """Should reject strings that never close."""
        with pytest.raises(PatchRejected):
            JsonScanner('"open').scan_string(0)
