"""Tests for package token parsing."""

import pytest

from core.errors import MalformedRequirement
from core.models import RequirementEntry
from core.parse_requirements import parse_requirements


class TestRequirementParser:
    """Test name/constraint token parsing."""

    @pytest.mark.parametrize(
        "token",
        ["acme/widget:^1.0", "acme/widget=^1.0", "acme/widget ^1.0", "acme/widget : ^1.0"],
    )
    def test_separators(self, token):
        """Should accept colon, equals and space separators."""
        assert parse_requirements([token]) == [RequirementEntry("acme/widget", "^1.0")]

    def test_name_only(self):
        """Should leave the constraint empty for lookup."""
        entries = parse_requirements(["acme/widget"])

        assert entries == [RequirementEntry("acme/widget", "")]
        assert not entries[0].resolved

    def test_constraint_with_spaces_and_operators(self):
        """Should keep everything after the first separator as the constraint."""
        entries = parse_requirements(["acme/widget >=1.0 <2.0", "acme/gadget:=1.2.3", "acme/tool==1.0"])

        assert entries == [
            RequirementEntry("acme/widget", ">=1.0 <2.0"),
            RequirementEntry("acme/gadget", "=1.2.3"),
            RequirementEntry("acme/tool", "=1.0"),
        ]

    def test_names_are_lowercased(self):
        """Should normalize package names."""
        assert parse_requirements(["Acme/Widget:^1.0"])[0].name == "acme/widget"

    def test_platform_packages(self):
        """Should accept platform requirements."""
        entries = parse_requirements(["php:>=8.1", "ext-json:*", "lib-curl:*"])

        assert [entry.name for entry in entries] == ["php", "ext-json", "lib-curl"]

    def test_later_duplicate_wins(self):
        """Should keep one entry per package, with the last constraint."""
        entries = parse_requirements(["acme/widget:^1.0", "acme/gadget", "acme/widget:^2.0"])

        assert entries == [
            RequirementEntry("acme/widget", "^2.0"),
            RequirementEntry("acme/gadget", ""),
        ]

    @pytest.mark.parametrize(
        "token",
        [
            "",
            "   ",
            ":^1.0",
            "acme/widget:",
            "acme/widget:1.0:2.0",
            "acme/widget::1.0",
            "widget",
            "acme widget",
        ],
    )
    def test_malformed_tokens(self, token):
        """Should reject tokens it cannot interpret."""
        with pytest.raises(MalformedRequirement):
            parse_requirements([token])

    def test_no_tokens(self):
        """Should reject an empty package list."""
        with pytest.raises(MalformedRequirement):
            parse_requirements([])
