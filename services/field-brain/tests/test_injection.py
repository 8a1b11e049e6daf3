"""Tests for placeholder injection and the one-shot guard."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import make_field
from injection import InjectionOutcome, PlaceholderInjector, build_anchor_pattern, inject_placeholders


class TestBuildAnchorPattern:
    def test_special_characters_escaped(self):
        pattern, _ = build_anchor_pattern([make_field("amount", "Amount ($):")])
        assert pattern.search("Total Amount ($): 10")
        assert not pattern.search("Amount X: 10")

    def test_longest_anchor_first(self):
        pattern, _ = build_anchor_pattern([
            make_field("name", "Name:"),
            make_field("ec_name", "Contact Name:"),
        ])
        assert pattern.search("Contact Name: ____").group(0) == "Contact Name:"

    def test_empty_anchors_ignored(self):
        pattern, by_anchor = build_anchor_pattern([make_field("x", "")])
        assert pattern is None
        assert by_anchor == {}


class TestInjectPlaceholders:
    def test_appends_placeholder_after_anchor(self):
        fields = [make_field("full_name", "Full Name:", placeholder="[[FULL_NAME]]")]
        assert inject_placeholders("Full Name: ____", fields) == "Full Name: [[FULL_NAME]] ____"

    def test_every_occurrence(self):
        fields = [make_field("initials", "Initials:", placeholder="[[INITIALS]]")]
        result = inject_placeholders("Initials: __ page 1. Initials: __ page 2.", fields)
        assert result.count("Initials: [[INITIALS]]") == 2

    def test_multiple_fields_single_pass(self):
        fields = [
            make_field("full_name", "Full Name:", placeholder="[[FULL_NAME]]"),
            make_field("email", "Email:", placeholder="[[EMAIL]]"),
        ]
        result = inject_placeholders("Full Name: ____\nEmail: ____", fields)
        assert result == "Full Name: [[FULL_NAME]] ____\nEmail: [[EMAIL]] ____"

    def test_rest_of_content_unchanged(self):
        fields = [make_field("email", "Email:", placeholder="[[EMAIL]]")]
        content = "Intro text.\n\n  Email: ____  \nOutro & more <3"
        assert inject_placeholders(content, fields) == "Intro text.\n\n  Email: [[EMAIL]] ____  \nOutro & more <3"

    def test_no_match_returns_content(self):
        fields = [make_field("email", "Email:")]
        assert inject_placeholders("Nothing to see", fields) == "Nothing to see"

    def test_no_fields(self):
        assert inject_placeholders("Full Name: ____", []) == "Full Name: ____"

    def test_angle_brackets_in_plain_text_untouched(self):
        fields = [make_field("email", "Email:", placeholder="[[EMAIL]]")]
        content = "Email: ____ <optional> Notes <name> and <3x"
        assert inject_placeholders(content, fields) == "Email: [[EMAIL]] ____ <optional> Notes <name> and <3x"

    def test_markup_text_nodes_only(self):
        fields = [make_field("name", "name", placeholder="[[NAME]]")]
        html = '<p class="name"><span data-name="name">Your name</span></p>'
        result = inject_placeholders(html, fields, markup=True)
        assert result == '<p class="name"><span data-name="name">Your name [[NAME]]</span></p>'

    def test_markup_multiple_nodes(self):
        fields = [
            make_field("full_name", "Full Name:", placeholder="[[FULL_NAME]]"),
            make_field("email", "Email:", placeholder="[[EMAIL]]"),
        ]
        html = "<div><p>Full Name: ____</p><p>Email: ____</p></div>"
        assert inject_placeholders(html, fields, markup=True) == (
            "<div><p>Full Name: [[FULL_NAME]] ____</p><p>Email: [[EMAIL]] ____</p></div>"
        )

    def test_markup_kept_verbatim(self):
        fields = [
            make_field("full_name", "Full Name:", placeholder="[[FULL_NAME]]"),
            make_field("email", "Email:", placeholder="[[EMAIL]]"),
        ]
        html = "<P CLASS=x>Full Name: ____<br>Email: ____ &amp; more</P>"
        assert inject_placeholders(html, fields, markup=True) == (
            "<P CLASS=x>Full Name: [[FULL_NAME]] ____<br>Email: [[EMAIL]] ____ &amp; more</P>"
        )

    def test_markup_across_lines(self):
        fields = [
            make_field("full_name", "Full Name:", placeholder="[[FULL_NAME]]"),
            make_field("email", "Email:", placeholder="[[EMAIL]]"),
        ]
        html = "<div>\n  <p>Full Name: ____</p>\n  <!-- Email: -->\n  <p>Email: ____</p>\n</div>\n"
        assert inject_placeholders(html, fields, markup=True) == (
            "<div>\n  <p>Full Name: [[FULL_NAME]] ____</p>\n  <!-- Email: -->\n"
            "  <p>Email: [[EMAIL]] ____</p>\n</div>\n"
        )

    def test_markup_skips_script(self):
        fields = [make_field("email", "Email:", placeholder="[[EMAIL]]")]
        html = '<script>var label = "Email:";</script><p>Email: ____</p>'
        assert inject_placeholders(html, fields, markup=True) == (
            '<script>var label = "Email:";</script><p>Email: [[EMAIL]] ____</p>'
        )


class TestPlaceholderInjector:
    def test_second_apply_reports_already_applied(self):
        fields = [make_field("full_name", "Full Name:", placeholder="[[FULL_NAME]]")]
        injector = PlaceholderInjector()

        first = injector.apply("Full Name: ____", fields)
        assert first.outcome is InjectionOutcome.APPLIED
        assert first.content == "Full Name: [[FULL_NAME]] ____"
        assert first.applied == 1

        second = injector.apply(first.content, fields)
        assert second.outcome is InjectionOutcome.ALREADY_APPLIED
        assert second.content == first.content
        assert second.content.count("[[FULL_NAME]]") == 1

    def test_reset_rearms_guard(self):
        fields = [make_field("email", "Email:", placeholder="[[EMAIL]]")]
        injector = PlaceholderInjector()
        injector.apply("Email: ____", fields)
        injector.reset()
        assert not injector.applied
        assert injector.apply("Email: ____", fields).outcome is InjectionOutcome.APPLIED

    def test_no_fields_does_not_arm_guard(self):
        injector = PlaceholderInjector()
        result = injector.apply("Email: ____", [])
        assert result.outcome is InjectionOutcome.NO_FIELDS
        assert result.content == "Email: ____"
        assert not injector.applied

    def test_guard_is_per_instance(self):
        fields = [make_field("email", "Email:", placeholder="[[EMAIL]]")]
        PlaceholderInjector().apply("Email: ____", fields)
        assert PlaceholderInjector().apply("Email: ____", fields).outcome is InjectionOutcome.APPLIED

    def test_markup_apply_leaves_attributes(self):
        fields = [make_field("email", "Email:", placeholder="[[EMAIL]]")]
        result = PlaceholderInjector().apply('<p title="Email:">Email: ____</p>', fields, markup=True)
        assert result.content == '<p title="Email:">Email: [[EMAIL]] ____</p>'
        assert result.applied == 1
