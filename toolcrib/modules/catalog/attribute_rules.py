"""Attribute rules — typed per-attribute-type rule objects and their JSON shapes.

``validation_rules`` and ``options`` are free-form JSON at the storage
boundary. This module checks that JSON against a per-type JSON Schema
(Draft 7) when a definition is written, and turns it into one of the typed
rule objects below when values are validated.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Union

from jsonschema import Draft7Validator

from toolcrib.exceptions import InvalidArgumentException
from toolcrib.models.enums import SELECT_ATTRIBUTE_TYPES, AttributeType


@dataclass(frozen=True)
class TextRule:
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None


@dataclass(frozen=True)
class NumberRule:
    minimum: int | float | None = None
    maximum: int | float | None = None
    step: int | float | None = None


@dataclass(frozen=True)
class BooleanRule:
    pass


@dataclass(frozen=True)
class DateRule:
    pass


@dataclass(frozen=True)
class SelectRule:
    options: tuple[str, ...] = ()
    multiple: bool = False


AttributeRule = Union[TextRule, NumberRule, BooleanRule, DateRule, SelectRule]


_EMPTY_RULES_SCHEMA: dict = {"type": "object", "maxProperties": 0}

RULE_SCHEMAS: dict[AttributeType, dict] = {
    AttributeType.TEXT: {
        "type": "object",
        "properties": {
            "minLength": {"type": "integer", "minimum": 0},
            "maxLength": {"type": "integer", "minimum": 0},
            "pattern": {"type": "string", "minLength": 1},
        },
        "additionalProperties": False,
    },
    AttributeType.NUMBER: {
        "type": "object",
        "properties": {
            "min": {"type": "number"},
            "max": {"type": "number"},
            "step": {"type": "number", "exclusiveMinimum": 0},
        },
        "additionalProperties": False,
    },
    AttributeType.BOOLEAN: _EMPTY_RULES_SCHEMA,
    AttributeType.DATE: _EMPTY_RULES_SCHEMA,
    AttributeType.SELECT_SINGLE: _EMPTY_RULES_SCHEMA,
    AttributeType.SELECT_MULTI: _EMPTY_RULES_SCHEMA,
}


def check_rules_shape(attribute_type: AttributeType, rules: dict | None) -> None:
    """Check that *rules* has the shape *attribute_type* expects.

    Raises :class:`InvalidArgumentException` with per-key detail on failure.
    """
    if rules is None:
        return

    validator = Draft7Validator(RULE_SCHEMAS[attribute_type])
    errors = sorted(validator.iter_errors(rules), key=lambda e: list(e.absolute_path))
    if errors:
        details = [
            {"field": ".".join(str(p) for p in error.absolute_path) or "validation_rules", "message": error.message}
            for error in errors
        ]
        raise InvalidArgumentException(
            message=f"Validation rules do not match attribute type {attribute_type.value}",
            details=details,
        )

    if attribute_type == AttributeType.TEXT:
        min_length, max_length = rules.get("minLength"), rules.get("maxLength")
        if min_length is not None and max_length is not None and min_length > max_length:
            raise InvalidArgumentException("minLength cannot be greater than maxLength")
        if "pattern" in rules:
            try:
                re.compile(rules["pattern"])
            except re.error as exc:
                raise InvalidArgumentException(f"Invalid pattern: {exc}") from exc
    elif attribute_type == AttributeType.NUMBER:
        minimum, maximum = rules.get("min"), rules.get("max")
        if minimum is not None and maximum is not None and minimum > maximum:
            raise InvalidArgumentException("min cannot be greater than max")


def check_options(attribute_type: AttributeType, options: list[dict] | None) -> None:
    """SELECT types need a non-empty, duplicate-free option list; other types take none."""
    if attribute_type in SELECT_ATTRIBUTE_TYPES:
        if not options:
            raise InvalidArgumentException(
                f"Options are required for {attribute_type.value} attributes"
            )
        values = option_values(options)
        duplicates = sorted({v for v in values if values.count(v) > 1})
        if duplicates:
            raise InvalidArgumentException(
                f"Duplicate option values: {', '.join(duplicates)}"
            )
    elif options:
        raise InvalidArgumentException(
            f"Options are only allowed for select attributes, not {attribute_type.value}"
        )


def option_values(options: Iterable[dict] | None) -> list[str]:
    return [opt["value"] for opt in options or () if isinstance(opt, dict) and "value" in opt]


def build_rule(
    attribute_type: AttributeType,
    validation_rules: dict | None,
    options: list[dict] | None,
) -> AttributeRule:
    """Build the typed rule for a definition from its stored JSON.

    Lenient about unknown keys so that rows written before a shape change
    still validate.
    """
    rules: dict[str, Any] = validation_rules or {}

    if attribute_type == AttributeType.TEXT:
        return TextRule(
            min_length=rules.get("minLength"),
            max_length=rules.get("maxLength"),
            pattern=rules.get("pattern"),
        )
    if attribute_type == AttributeType.NUMBER:
        step = rules.get("step")
        return NumberRule(
            minimum=rules.get("min"),
            maximum=rules.get("max"),
            step=step if step else None,
        )
    if attribute_type == AttributeType.BOOLEAN:
        return BooleanRule()
    if attribute_type == AttributeType.DATE:
        return DateRule()
    return SelectRule(
        options=tuple(option_values(options)),
        multiple=attribute_type == AttributeType.SELECT_MULTI,
    )
