"""
Mailcraft Renderer — Determinism and Document Shell Tests

Same template + same options → identical string. Also covers the document
shell (width, background, direction, preheader) and post-processing.
"""

import dataclasses

from mailcraft.kernel.defaults import empty_template
from mailcraft.kernel.library import starter_templates
from mailcraft.kernel.reducer import add_component, update_component, update_template
from mailcraft.kernel.renderer import export_filename, render
from mailcraft.kernel.types import RenderOptions


def sample():
    template = empty_template("Spring Sale", template_id="tpl_det", timestamp="2026-01-15T10:00:00Z")
    template = update_template(template, subject="Sale starts now", preheader="Up to 40% off", timestamp="t")
    for t in ("header", "text", "image", "button", "divider", "social", "footer"):
        template = add_component(template, t, timestamp="t").template
    return template


class TestDeterminism:
    def test_render_twice_identical(self):
        template = sample()
        assert render(template) == render(template)

    def test_render_does_not_modify_template(self):
        template = sample()
        before = template.to_dict()
        render(template, RenderOptions(inline_css=False, format="amp"))
        assert template.to_dict() == before

    def test_starters_render_identically_across_builds(self):
        first = [render(t) for t in starter_templates()]
        second = [render(t) for t in starter_templates()]
        assert first == second


class TestShell:
    def test_doctype_and_width(self):
        html = render(sample())
        assert html.startswith("<!DOCTYPE html>")
        assert 'width="600"' in html
        assert "max-width: 600px" in html

    def test_settings_drive_shell(self):
        template = update_template(sample(), settings={"width": 640, "backgroundColor": "#eeeeee", "direction": "rtl"})
        html = render(template)
        assert 'width="640"' in html
        assert "background-color: #eeeeee" in html
        assert 'dir="rtl"' in html

    def test_subject_is_title(self):
        assert "<title>Sale starts now</title>" in render(sample())

    def test_preheader_hidden_div(self):
        html = render(sample())
        assert '<div style="display: none; max-height: 0; overflow: hidden;">Up to 40% off</div>' in html

    def test_preheader_omitted_when_disabled(self):
        html = render(sample(), RenderOptions(include_preheader=False))
        assert "Up to 40% off" not in html

    def test_custom_css_appended(self):
        template = sample()
        template = dataclasses.replace(template, global_styles={**template.global_styles, "customCSS": ".promo { color: red; }"})
        assert ".promo { color: red; }" in render(template)

    def test_dark_mode_block(self):
        html = render(sample(), RenderOptions(include_dark_mode=True))
        assert "prefers-color-scheme: dark" in html
        assert "prefers-color-scheme" not in render(sample())


class TestPostprocess:
    def test_remove_comments(self):
        assert "<!-- Email body -->" in render(sample())
        assert "<!--" not in render(sample(), RenderOptions(remove_comments=True))

    def test_minify_collapses_whitespace(self):
        html = render(sample(), RenderOptions(minify=True))
        assert "\n" not in html
        assert "> <" not in html
        assert html == html.strip()

    def test_minify_keeps_content(self):
        html = render(sample(), RenderOptions(minify=True))
        assert "Sale starts now" in html
        assert "Click Here" in html


class TestMergeTagsInRender:
    def test_unresolved_tag_left_literal(self):
        template = sample()
        text_id = template.components[1].id
        template = update_component(template, text_id, {"content": {"text": "Hi {{nickname}}"}})
        assert "Hi {{nickname}}" in render(template)

    def test_esp_translation(self):
        template = sample()
        text_id = template.components[1].id
        template = update_component(template, text_id, {"content": {"text": "Hi {{firstName}}"}})
        assert "Hi *|FNAME|*" in render(template, RenderOptions(esp_id="mailchimp"))

    def test_literal_data_beats_esp_translation(self):
        template = sample()
        text_id = template.components[1].id
        template = update_component(template, text_id, {"content": {"text": "Hi {{firstName}}"}})
        html = render(template, RenderOptions(esp_id="mailchimp"), {"firstName": "Ana"})
        assert "Hi Ana" in html
        assert "*|FNAME|*" not in html

    def test_header_title_resolved(self):
        template = sample()
        header_id = template.components[0].id
        template = update_component(template, header_id, {"content": {"title": "Welcome {{company}}"}})
        assert "Welcome Acme" in render(template, data={"company": "Acme"})


class TestExportFilename:
    def test_html_name(self):
        assert export_filename(sample()) == "spring-sale.html"

    def test_amp_name(self):
        assert export_filename(sample(), "amp") == "spring-sale.amp.html"
