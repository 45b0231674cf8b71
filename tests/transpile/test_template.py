"""Tests for the template interpreter."""

from __future__ import annotations

import pytest

from orbita.transpile.template import (
    TemplateError,
    render_template,
    resolve_conditionals,
    substitute,
    unguarded_inputs,
)

# ---------------------------------------------------------------------------
# Pass 1: conditional blocks
# ---------------------------------------------------------------------------


class TestResolveConditionals:
    def test_true_block_kept_and_tag_lines_removed(self):
        text = "a\n{{#if x}}\nb\n{{/if}}\nc\n"
        assert resolve_conditionals(text, {"x": True}) == "a\nb\nc\n"

    def test_false_block_dropped(self):
        text = "a\n{{#if x}}\nb\n{{/if}}\nc\n"
        assert resolve_conditionals(text, {"x": False}) == "a\nc\n"

    def test_else_branch(self):
        text = "{{#if x}}\nyes\n{{else}}\nno\n{{/if}}\n"
        assert resolve_conditionals(text, {"x": True}) == "yes\n"
        assert resolve_conditionals(text, {"x": False}) == "no\n"

    def test_nesting(self):
        text = (
            "{{#if a}}\n"
            "A\n"
            "{{#if b}}\n"
            "AB\n"
            "{{else}}\n"
            "A-not-B\n"
            "{{/if}}\n"
            "{{else}}\n"
            "{{#if b}}\n"
            "B\n"
            "{{/if}}\n"
            "{{/if}}\n"
        )
        assert resolve_conditionals(text, {"a": True, "b": True}) == "A\nAB\n"
        assert resolve_conditionals(text, {"a": True, "b": False}) == "A\nA-not-B\n"
        assert resolve_conditionals(text, {"a": False, "b": True}) == "B\n"
        assert resolve_conditionals(text, {"a": False, "b": False}) == ""

    def test_inline_tags_keep_surrounding_text(self):
        text = "x = {{#if a}}1{{else}}2{{/if}}\n"
        assert resolve_conditionals(text, {"a": True}) == "x = 1\n"
        assert resolve_conditionals(text, {"a": False}) == "x = 2\n"

    def test_indented_tag_lines_removed(self):
        text = "if c:\n    {{#if a}}\n    go()\n    {{/if}}\n    pass\n"
        assert resolve_conditionals(text, {"a": True}) == "if c:\n    go()\n    pass\n"

    def test_text_without_tags_is_unchanged(self):
        text = "a = {{value}}\n"
        assert resolve_conditionals(text, {}) == text

    def test_unknown_condition_raises_even_in_dropped_block(self):
        text = "{{#if a}}\n{{#if mystery}}\nx\n{{/if}}\n{{/if}}\n"
        with pytest.raises(TemplateError, match="Unknown condition 'mystery'") as exc_info:
            resolve_conditionals(text, {"a": False})
        assert exc_info.value.line == 2

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("{{#if a}}\nx\n", "Unclosed"),
            ("x\n{{/if}}\n", "without a matching"),
            ("{{else}}\n", "without a matching"),
            ("{{#if a}}\n{{else}}\n{{else}}\n{{/if}}\n", "Second"),
        ],
    )
    def test_unbalanced_tags_raise(self, text, message):
        with pytest.raises(TemplateError, match=message):
            resolve_conditionals(text, {"a": True})


# ---------------------------------------------------------------------------
# Pass 2: placeholder substitution
# ---------------------------------------------------------------------------


class TestSubstitute:
    def test_plain_names(self):
        out = substitute("{{var_name}}_x = {{pin}}\n", {"var_name": "n_a", "pin": "4"}, {})
        assert out == "n_a_x = 4\n"

    def test_whitespace_inside_braces(self):
        assert substitute("{{ pin }}", {"pin": "4"}, {}) == "4"

    def test_missing_name_raises_with_line(self):
        with pytest.raises(TemplateError, match=r"No value for placeholder \{\{gone\}\}") as exc_info:
            substitute("ok\nx = {{gone}}\n", {}, {})
        assert exc_info.value.line == 2

    def test_substituted_text_is_not_rescanned(self):
        out = substitute("{{a}}", {"a": "'{{b}}'", "b": "boom"}, {})
        assert out == "'{{b}}'"


class TestInlineChoice:
    @pytest.mark.parametrize(
        ("mode", "expected"),
        [("above", "x > 5"), ("below", "x < 5")],
    )
    def test_equality_choice(self, mode, expected):
        text = 'x {{mode == "above" ? ">" : "<"}} 5'
        assert substitute(text, {}, {"mode": mode}) == expected

    def test_inequality_and_single_quotes(self):
        text = "{{state != 'on' ? 'off_branch' : 'on_branch'}}"
        assert substitute(text, {}, {"state": "on"}) == "on_branch"
        assert substitute(text, {}, {"state": "off"}) == "off_branch"

    def test_truthiness_and_bare_literals(self):
        text = "{{enabled ? True : 0}}"
        assert substitute(text, {}, {"enabled": True}) == "True"
        assert substitute(text, {}, {"enabled": False}) == "0"

    def test_numeric_comparison(self):
        text = "{{count == 3 ? 'three' : 'other'}}"
        assert substitute(text, {}, {"count": 3}) == "three"
        assert substitute(text, {}, {"count": 4}) == "other"

    def test_escaped_quote_in_string(self):
        text = r'{{a ? "say \"hi\"" : ""}}'
        assert substitute(text, {}, {"a": True}) == 'say "hi"'

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("{{nope ? 'a' : 'b'}}", "Unknown name 'nope'"),
            ("{{mode == 'x' 'a' : 'b'}}", "Expected '\\?'"),
            ("{{mode ? 'a' 'b'}}", "Expected ':'"),
            ("{{mode ? 'a' : 'b' extra}}", "Expected end of expression"),
            ("{{mode ? 'a' : 'b}}", "Unterminated string literal"),
            ("{{mode == ? 'a' : 'b'}}", "Expected a literal"),
            ("{{#if mode}}", "Expected a name"),
        ],
    )
    def test_malformed_expressions_raise(self, text, message):
        with pytest.raises(TemplateError, match=message):
            substitute(text, {}, {"mode": "x"})


# ---------------------------------------------------------------------------
# Both passes
# ---------------------------------------------------------------------------


class TestRenderTemplate:
    def test_conditionals_resolve_before_substitution(self):
        text = "{{#if input_a}}\nv = {{input_a}}\n{{else}}\nv = {{fallback}}\n{{/if}}\n"
        connected = render_template(
            text,
            flags={"input_a": True},
            literals={"input_a": "n_src_value"},
            values={},
        )
        assert connected == "v = n_src_value\n"
        unconnected = render_template(
            text,
            flags={"input_a": False},
            literals={"input_a": "None", "fallback": "0"},
            values={},
        )
        assert unconnected == "v = 0\n"

    def test_dropped_block_may_reference_unavailable_names(self):
        text = "{{#if action_x}}\ny = {{action_x_level}}\n{{/if}}\nz = 1\n"
        out = render_template(text, flags={"action_x": False}, literals={}, values={})
        assert out == "z = 1\n"

    def test_render_is_deterministic(self):
        text = "{{#if a}}\n{{var_name}} = {{mode == 'm' ? 1 : 2}}\n{{/if}}\n"
        kwargs = dict(flags={"a": True}, literals={"var_name": "n_x"}, values={"mode": "m"})
        assert render_template(text, **kwargs) == render_template(text, **kwargs) == "n_x = 1\n"


class TestUnguardedInputs:
    def test_guarded_reference(self):
        assert unguarded_inputs("{{#if input_a}}\n{{input_a}}\n{{/if}}\n") == []

    def test_unguarded_reference(self):
        assert unguarded_inputs("x = {{input_a}}\n") == ["input_a"]

    def test_wrong_guard_or_else_branch(self):
        assert unguarded_inputs("{{#if input_b}}\n{{input_a}}\n{{/if}}\n") == ["input_a"]
        text = "{{#if input_a}}\npass\n{{else}}\n{{input_a}}\n{{/if}}\n"
        assert unguarded_inputs(text) == ["input_a"]

    def test_nested_guard(self):
        text = "{{#if input_a}}\n{{#if input_b}}\n{{input_a}} {{input_b}}\n{{/if}}\n{{/if}}\n"
        assert unguarded_inputs(text) == []
