"""
Template variable preservation for machine translation.

Variables look like ``{{name}}``. Before text goes to a translation provider
each variable is swapped for an opaque ``<VARk>`` placeholder, and swapped
back afterwards. If the provider mangled a placeholder, a best-effort pass
repairs residual ``{{...}}`` tokens by name.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

_VARIABLE_PATTERN = re.compile(r'\{\{([^}]+)\}\}')


@dataclass
class VariableInfo:
    name: str
    full_match: str
    index: int


@dataclass
class VariableValidationResult:
    is_valid: bool
    missing_variables: List[str] = field(default_factory=list)
    extra_variables: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "is_valid": self.is_valid,
            "missing_variables": list(self.missing_variables),
            "extra_variables": list(self.extra_variables),
            "warnings": list(self.warnings),
        }


def extract_variables(text: str) -> List[VariableInfo]:
    """Find every {{ variable }} in text, in order of appearance."""
    if not text:
        return []
    return [
        VariableInfo(name=match.group(1).strip(), full_match=match.group(0), index=match.start())
        for match in _VARIABLE_PATTERN.finditer(text)
    ]


def get_variable_names(text: str) -> List[str]:
    """Unique variable names in first-seen order."""
    names: List[str] = []
    for variable in extract_variables(text):
        if variable.name not in names:
            names.append(variable.name)
    return names


def replace_variables_with_placeholders(
    text: str,
    variables: List[VariableInfo],
) -> Tuple[str, Dict[int, str]]:
    """
    Replace variables with <VARk> placeholders.

    Variables are replaced right to left so earlier indexes stay valid;
    k counts up in that order, so the last variable in the text is <VAR0>.

    Returns:
        (sanitized_text, {k: original variable text})
    """
    if not variables:
        return text, {}

    sanitized = text
    variable_map: Dict[int, str] = {}
    for k, variable in enumerate(sorted(variables, key=lambda v: v.index, reverse=True)):
        placeholder = f"<VAR{k}>"
        variable_map[k] = variable.full_match
        sanitized = (
            sanitized[:variable.index]
            + placeholder
            + sanitized[variable.index + len(variable.full_match):]
        )
    return sanitized, variable_map


def restore_variables_from_placeholders(text: str, variable_map: Dict[int, str]) -> str:
    """Put original variables back wherever a <VARk> placeholder survived."""
    restored = text
    for k in sorted(variable_map):
        original = variable_map[k]
        # lambda keeps backslashes in the variable text literal
        restored = re.sub(re.escape(f"<VAR{k}>"), lambda _m, value=original: value, restored)
    return restored


def preserve_variables_in_translation(source_text: str, translated_text: str) -> str:
    """
    Repair variables a provider altered, e.g. ``{{ Name }}`` -> ``{{name}}``.

    Each residual {{...}} token in the translation is matched to a source
    variable case-insensitively: exact name first, then the first source
    name (in source order) contained in the token. Unmatched tokens are
    left alone and missing variables are not reinserted.
    """
    source_variables = extract_variables(source_text)
    if not source_variables:
        return translated_text

    source_names = {v.name.lower() for v in source_variables}
    translated_names = {v.name.lower() for v in extract_variables(translated_text)}
    if source_names == translated_names:
        return translated_text

    canonical: Dict[str, str] = {}
    for variable in source_variables:
        canonical.setdefault(variable.name, variable.full_match)

    def _repair(match: "re.Match[str]") -> str:
        token_name = match.group(1).strip().lower()
        for name, full_match in canonical.items():
            if token_name == name.lower():
                return full_match
        for name, full_match in canonical.items():
            if name.lower() in token_name:
                return full_match
        return match.group(0)

    return _VARIABLE_PATTERN.sub(_repair, translated_text)


def validate_variables(source_text: str, translated_text: str) -> VariableValidationResult:
    """
    Compare the variables of a source text and its translation.

    Membership is case-insensitive; a casing-only difference is valid but
    produces a warning.
    """
    source_vars = get_variable_names(source_text)
    translated_vars = get_variable_names(translated_text)

    source_lower = {v.lower() for v in source_vars}
    translated_lower = {v.lower() for v in translated_vars}

    missing = [v for v in source_vars if v.lower() not in translated_lower]
    extra = [v for v in translated_vars if v.lower() not in source_lower]

    warnings: List[str] = []
    if missing:
        warnings.append(f"Missing variables in translation: {', '.join(missing)}")
    if extra:
        warnings.append(f"Extra variables found in translation: {', '.join(extra)}")
    if not missing and not extra and set(source_vars) != set(translated_vars):
        warnings.append("Variable names may have been modified (case differences)")

    return VariableValidationResult(
        is_valid=not missing and not extra,
        missing_variables=missing,
        extra_variables=extra,
        warnings=warnings,
    )


async def translate_with_variable_preservation(
    text: str,
    translate_fn: Callable[[str], Awaitable[str]],
) -> str:
    """
    Translate text through translate_fn without losing its variables.

    Provider errors propagate; a variable mismatch never raises, it only
    triggers the repair pass.
    """
    variables = extract_variables(text)
    if not variables:
        return await translate_fn(text)

    sanitized, variable_map = replace_variables_with_placeholders(text, variables)
    translated = await translate_fn(sanitized)
    restored = restore_variables_from_placeholders(translated, variable_map)

    validation = validate_variables(text, restored)
    if not validation.is_valid:
        logger.debug(
            "Placeholder restoration incomplete, repairing variables",
            extra={"missing_variables": validation.missing_variables,
                   "extra_variables": validation.extra_variables},
        )
        restored = preserve_variables_in_translation(text, restored)
    return restored
