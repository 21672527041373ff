"""
Mailcraft Defaults — Default Content Table Tests

Every ComponentType must have a default; a freshly created node must carry
the content variant its type calls for and draw its styles from the tokens.
"""

import pytest

from mailcraft.kernel.defaults import (
    COMPONENT_DEFAULTS,
    DEFAULT_GLOBAL_STYLES,
    create_component,
    default_global_styles,
    empty_template,
)
from mailcraft.kernel.types import COMPONENT_TYPES, GLOBAL_STYLE_GROUPS, content_class


class TestTableCompleteness:
    def test_every_type_has_defaults(self):
        assert set(COMPONENT_DEFAULTS) == set(COMPONENT_TYPES)

    @pytest.mark.parametrize("type", sorted(COMPONENT_TYPES))
    def test_content_variant_matches_type(self, type):
        node = create_component(type)
        assert isinstance(node.content, content_class(type))
        assert node.children == []

    def test_unknown_type_raises(self):
        with pytest.raises(KeyError):
            create_component("hologram")


class TestDefaultContent:
    def test_text_placeholder_with_merge_tag(self):
        assert "{{firstName}}" in create_component("text").content.text

    def test_button_uses_primary_color(self):
        gs = default_global_styles()
        gs["colors"]["primary"] = "#ff00ff"
        node = create_component("button", gs)
        assert node.styles["backgroundColor"] == "#ff00ff"
        assert node.content.href == "https://example.com"

    def test_social_has_three_links(self):
        node = create_component("social")
        assert [item.type for item in node.content.items] == ["facebook", "twitter", "instagram"]
        assert len({item.id for item in node.content.items}) == 3

    def test_footer_copyright(self):
        assert "All rights reserved" in create_component("footer").content.text

    def test_widget_has_title(self):
        assert create_component("pricing").content.title == "Pro Plan"

    def test_display_name(self):
        assert create_component("text").name == "Text Component"

    def test_missing_token_falls_back(self):
        node = create_component("divider", {"colors": {}})
        assert node.styles["backgroundColor"] == DEFAULT_GLOBAL_STYLES["colors"]["border"]


class TestEmptyTemplate:
    def test_fields(self):
        template = empty_template(timestamp="2026-01-15T10:00:00Z")
        assert template.name == "Untitled Email"
        assert template.components == []
        assert template.metadata.components == 0
        assert template.created == template.last_modified == "2026-01-15T10:00:00Z"
        assert template.id.startswith("tpl_")

    def test_global_style_groups(self):
        assert set(GLOBAL_STYLE_GROUPS) <= set(empty_template().global_styles)

    def test_styles_not_shared(self):
        a, b = empty_template(), empty_template()
        a.global_styles["colors"]["primary"] = "#000000"
        assert b.global_styles["colors"]["primary"] == "#2563eb"
