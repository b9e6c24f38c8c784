"""
Unit tests for template variable preservation
"""
import pytest

from app.services.variable_preservation import (
    extract_variables,
    get_variable_names,
    preserve_variables_in_translation,
    replace_variables_with_placeholders,
    restore_variables_from_placeholders,
    translate_with_variable_preservation,
    validate_variables,
)


def test_extract_variables_in_order():
    variables = extract_variables("Hi {{name}}, you have {{ count }} items")
    assert [v.name for v in variables] == ["name", "count"]
    assert variables[1].full_match == "{{ count }}"
    assert variables[0].index == 3


def test_get_variable_names_unique():
    assert get_variable_names("{{a}} and {{b}} and {{a}}") == ["a", "b"]
    assert get_variable_names("") == []


def test_placeholders_numbered_right_to_left():
    text = "Hi {{name}}, you have {{count}} items"
    sanitized, variable_map = replace_variables_with_placeholders(text, extract_variables(text))
    assert sanitized == "Hi <VAR1>, you have <VAR0> items"
    assert variable_map == {0: "{{count}}", 1: "{{name}}"}


def test_placeholder_round_trip_restores_text():
    text = "Hi {{name}}, you have {{count}} items in {{name}}'s cart"
    sanitized, variable_map = replace_variables_with_placeholders(text, extract_variables(text))
    assert "{{" not in sanitized
    assert restore_variables_from_placeholders(sanitized, variable_map) == text


def test_restore_keeps_backslashes_literal():
    restored = restore_variables_from_placeholders("path <VAR0>", {0: r"{{dir\name}}"})
    assert restored == r"path {{dir\name}}"


def test_no_variables_is_identity():
    assert replace_variables_with_placeholders("Plain text", []) == ("Plain text", {})


def test_validate_variables_reports_missing_and_extra():
    result = validate_variables("Hello {{name}}", "Bonjour {{nom}}")
    assert not result.is_valid
    assert result.missing_variables == ["name"]
    assert result.extra_variables == ["nom"]
    assert len(result.warnings) == 2


def test_validate_variables_case_difference_warns_only():
    result = validate_variables("Hello {{Name}}", "Bonjour {{name}}")
    assert result.is_valid
    assert result.warnings == ["Variable names may have been modified (case differences)"]


def test_preserve_variables_repairs_altered_names():
    repaired = preserve_variables_in_translation(
        "Hello {{userName}}",
        "Bonjour {{ the_username_value }}",
    )
    assert repaired == "Bonjour {{userName}}"


def test_preserve_variables_leaves_matching_text():
    assert preserve_variables_in_translation("Hi {{name}}", "Salut {{name}}") == "Salut {{name}}"


@pytest.mark.asyncio
async def test_translate_with_variable_preservation_hides_variables():
    """The provider never sees {{...}} tokens"""
    seen = []

    async def fake_translate(text):
        seen.append(text)
        return text.replace("Hi", "Salut").replace("items", "articles")

    result = await translate_with_variable_preservation(
        "Hi {{name}}, you have {{count}} items", fake_translate
    )
    assert seen == ["Hi <VAR1>, you have <VAR0> items"]
    assert result == "Salut {{name}}, you have {{count}} articles"


@pytest.mark.asyncio
async def test_translate_with_variable_preservation_repairs_mangled_placeholders():
    async def mangling_translate(text):
        return "Bonjour {{ the name }}"

    result = await translate_with_variable_preservation("Hello {{name}}", mangling_translate)
    assert result == "Bonjour {{name}}"


@pytest.mark.asyncio
async def test_translate_without_variables_passes_through():
    async def upper(text):
        return text.upper()

    assert await translate_with_variable_preservation("hello", upper) == "HELLO"
