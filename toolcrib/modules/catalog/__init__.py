"""Catalog module — category tree, attribute groups and definitions, schema resolution."""

from toolcrib.modules.catalog.attribute_group_service import AttributeGroupService
from toolcrib.modules.catalog.attribute_service import AttributeService
from toolcrib.modules.catalog.category_service import CategoryService
from toolcrib.modules.catalog.schema_resolver import EffectiveSchema, SchemaResolver
from toolcrib.modules.catalog.value_validator import ValidationResult, validate_values

__all__ = [
    "AttributeGroupService",
    "AttributeService",
    "CategoryService",
    "EffectiveSchema",
    "SchemaResolver",
    "ValidationResult",
    "validate_values",
]
