"""
Mailcraft Merge Tags — Resolver Tests

resolve() substitutes literal values, translate() rewrites into an ESP's
syntax, and unknown tags always survive untouched.
"""

import pytest

from mailcraft.kernel.merge_tags import (
    ESP_MERGE_TAGS,
    find_tags,
    merge_tag_defaults,
    resolve,
    resolve_for_export,
    translate,
)
from mailcraft.kernel.types import Variable


class TestResolve:
    def test_substitutes_known_keys(self):
        assert resolve("Hi {{firstName}} from {{company}}", {"firstName": "Ana", "company": "Acme"}) == "Hi Ana from Acme"

    def test_unknown_key_left_intact(self):
        assert resolve("Hi {{firstName}}, code {{promo}}", {"firstName": "Ana"}) == "Hi Ana, code {{promo}}"

    def test_none_counts_as_absent(self):
        assert resolve("Hi {{firstName}}", {"firstName": None}) == "Hi {{firstName}}"

    def test_non_string_values(self):
        assert resolve("{{count}} items", {"count": 3}) == "3 items"

    def test_idempotent_on_resolved_text(self):
        data = {"firstName": "Ana"}
        once = resolve("Hi {{firstName}}", data)
        assert resolve(once, data) == once

    def test_round_trip_every_tag(self):
        data = {"a": "1", "b": "2", "c": "3"}
        out = resolve("{{a}}-{{b}}-{{c}}", data)
        assert out == "1-2-3"
        assert "{{" not in out

    def test_empty_text(self):
        assert resolve("", {"x": "y"}) == ""

    def test_spaces_inside_braces_are_not_tags(self):
        assert resolve("{{ firstName }}", {"firstName": "Ana"}) == "{{ firstName }}"


class TestTranslate:
    @pytest.mark.parametrize(
        "esp,expected",
        [
            ("mailchimp", "Hi *|FNAME|*"),
            ("activecampaign", "Hi %FIRSTNAME%"),
            ("convertkit", "Hi {{ subscriber.first_name }}"),
            ("sendgrid", "Hi {{first_name}}"),
        ],
    )
    def test_first_name_per_esp(self, esp, expected):
        assert translate("Hi {{firstName}}", esp) == expected

    def test_every_esp_maps_the_same_keys(self):
        assert {frozenset(tags) for tags in ESP_MERGE_TAGS.values()} == {
            frozenset({"firstName", "lastName", "email", "company"})
        }

    def test_unmapped_key_kept(self):
        assert translate("Code {{promo}}", "mailchimp") == "Code {{promo}}"

    def test_unknown_esp_is_identity(self):
        assert translate("Hi {{firstName}}", "postmark") == "Hi {{firstName}}"

    def test_no_esp_is_identity(self):
        assert translate("Hi {{firstName}}", None) == "Hi {{firstName}}"


class TestResolveForExport:
    def test_literal_first_then_esp(self):
        out = resolve_for_export("{{firstName}} at {{company}}", {"company": "Acme"}, "mailchimp")
        assert out == "*|FNAME|* at Acme"


class TestHelpers:
    def test_find_tags_distinct_in_order(self):
        assert find_tags("{{b}} {{a}} {{b}} {{c}}") == ["b", "a", "c"]

    def test_find_tags_none(self):
        assert find_tags("plain text") == []

    def test_defaults_from_variables(self):
        variables = [
            Variable(key="firstName", default_value="Friend"),
            Variable(key="company"),
            Variable(key="count", type="number", default_value=0),
        ]
        assert merge_tag_defaults(variables) == {"firstName": "Friend", "count": 0}
