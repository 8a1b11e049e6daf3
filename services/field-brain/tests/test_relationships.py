"""Tests for relationship inference between fields."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import make_field
from relationships import anchor_tokens, link_related_fields


class TestAnchorTokens:
    def test_lowercase_whitespace_split(self):
        assert anchor_tokens("Emergency  Contact\tName:") == {"emergency", "contact", "name:"}


class TestLinkRelatedFields:
    def test_no_shared_tokens_not_linked(self):
        fields = link_related_fields([
            make_field("first_name", "First Name:"),
            make_field("phone", "Phone Number:"),
        ])
        assert all(f.relationships == [] for f in fields)

    def test_two_shared_tokens_linked_both_ways(self):
        fields = link_related_fields([
            make_field("ec_name", "Emergency Contact Name:"),
            make_field("ec_phone", "Emergency Contact Phone:"),
        ])
        assert fields[0].relationships == ["ec_phone"]
        assert fields[1].relationships == ["ec_name"]

    def test_one_shared_token_not_linked(self):
        fields = link_related_fields([
            make_field("first", "First Name:"),
            make_field("last", "Last Name:"),
        ])
        assert all(f.relationships == [] for f in fields)

    def test_case_insensitive(self):
        fields = link_related_fields([
            make_field("a", "MAILING ADDRESS line"),
            make_field("b", "mailing address city"),
        ])
        assert fields[0].relationships == ["b"]

    def test_group_of_three(self):
        fields = link_related_fields([
            make_field("street", "Home Address Street"),
            make_field("city", "Home Address City"),
            make_field("zip", "Home Address Zip"),
            make_field("email", "Email:"),
        ])
        assert fields[0].relationships == ["city", "zip"]
        assert fields[1].relationships == ["street", "zip"]
        assert fields[2].relationships == ["street", "city"]
        assert fields[3].relationships == []

    def test_inputs_not_mutated(self):
        original = [
            make_field("ec_name", "Emergency Contact Name:"),
            make_field("ec_phone", "Emergency Contact Phone:"),
        ]
        linked = link_related_fields(original)
        assert original[0].relationships == []
        assert linked[0] is not original[0]

    def test_empty(self):
        assert link_related_fields([]) == []
