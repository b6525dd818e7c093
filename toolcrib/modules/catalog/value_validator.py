"""Dynamic value validator — checks custom attribute values against definitions.

Returns a :class:`ValidationResult` rather than raising, so callers can report
every failing field in one round-trip.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

from toolcrib.models.enums import AttributeType
from toolcrib.modules.catalog.attribute_rules import (
    AttributeRule,
    BooleanRule,
    DateRule,
    NumberRule,
    SelectRule,
    TextRule,
    build_rule,
)


class AttributeDefinitionLike(Protocol):
    name: str
    label: str
    attribute_type: AttributeType
    is_required: bool
    options: list | None
    validation_rules: dict | None


@dataclass
class ValidationResult:
    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)
    # Submitted keys with no matching definition (e.g. the definition was deleted)
    orphaned_keys: list[str] = field(default_factory=list)


def _validate_text(rule: TextRule, label: str, value: Any) -> str | None:
    if not isinstance(value, str):
        return f"{label} must be text"
    error = None
    if rule.min_length is not None and len(value) < rule.min_length:
        error = f"{label} must be at least {rule.min_length} characters"
    if rule.max_length is not None and len(value) > rule.max_length:
        error = f"{label} must be at most {rule.max_length} characters"
    if rule.pattern is not None and re.fullmatch(rule.pattern, value) is None:
        error = f"{label} does not match the required format"
    return error


def _is_multiple_of(value: int | float, step: int | float) -> bool:
    # Decimal on the shortest repr: 3.0 is a multiple of 0.1, 3.05 is not
    try:
        return Decimal(str(value)) % Decimal(str(step)) == 0
    except (InvalidOperation, ValueError):
        # Too large for the decimal context, or too many digits to stringify
        return False


def _validate_number(rule: NumberRule, label: str, value: Any) -> str | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return f"{label} must be a number"
    # Ints are exact at any size; only floats can be nan or inf
    if isinstance(value, float) and not math.isfinite(value):
        return f"{label} must be a number"
    error = None
    if rule.minimum is not None and value < rule.minimum:
        error = f"{label} must be at least {rule.minimum}"
    if rule.maximum is not None and value > rule.maximum:
        error = f"{label} must be at most {rule.maximum}"
    if rule.step is not None and not _is_multiple_of(value, rule.step):
        error = f"{label} must be a multiple of {rule.step}"
    return error


def _validate_boolean(rule: BooleanRule, label: str, value: Any) -> str | None:
    if not isinstance(value, bool):
        return f"{label} must be a boolean"
    return None


def _parse_iso_date(value: str) -> bool:
    for parse in (date.fromisoformat, datetime.fromisoformat):
        try:
            parse(value)
        except ValueError:
            continue
        return True
    return False


def _validate_date(rule: DateRule, label: str, value: Any) -> str | None:
    if isinstance(value, (date, datetime)):
        return None
    if not isinstance(value, str) or not _parse_iso_date(value):
        return f"{label} must be a valid date"
    return None


def _validate_select(rule: SelectRule, label: str, value: Any) -> str | None:
    if not rule.options:
        return f"No options defined for {label}"
    if not rule.multiple:
        if not isinstance(value, str) or value not in rule.options:
            return f"{label} must be one of: {', '.join(rule.options)}"
        return None
    if not isinstance(value, list):
        return f"{label} must be a list"
    invalid = [v for v in value if not isinstance(v, str) or v not in rule.options]
    if invalid:
        return f"{label} contains invalid values: {', '.join(str(v) for v in invalid)}"
    return None


_VALIDATORS: dict[AttributeType, Callable[[Any, str, Any], str | None]] = {
    AttributeType.TEXT: _validate_text,
    AttributeType.NUMBER: _validate_number,
    AttributeType.BOOLEAN: _validate_boolean,
    AttributeType.DATE: _validate_date,
    AttributeType.SELECT_SINGLE: _validate_select,
    AttributeType.SELECT_MULTI: _validate_select,
}


def validate_value(definition: AttributeDefinitionLike, value: Any) -> str | None:
    """Validate a single present value. Returns the error message, or None."""
    attribute_type = AttributeType(definition.attribute_type)
    rule: AttributeRule = build_rule(attribute_type, definition.validation_rules, definition.options)
    return _VALIDATORS[attribute_type](rule, definition.label, value)


def validate_values(
    definitions: Iterable[AttributeDefinitionLike],
    values: Mapping[str, Any],
) -> ValidationResult:
    """Validate *values* against *definitions*, in definition order.

    Absent (or ``None``) values are skipped unless the definition is required.
    Errors map field name to one message; a later definition with the same
    name overwrites an earlier one.
    """
    errors: dict[str, str] = {}
    known: set[str] = set()

    for definition in definitions:
        name = definition.name
        known.add(name)
        value = values.get(name)

        if value is None:
            if definition.is_required:
                errors[name] = f"{definition.label} is required"
            continue

        error = validate_value(definition, value)
        if error is not None:
            errors[name] = error

    orphaned = [key for key in values if key not in known]
    return ValidationResult(is_valid=not errors, errors=errors, orphaned_keys=orphaned)
