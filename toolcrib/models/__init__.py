# Import all models so SQLAlchemy metadata is populated for Alembic and create_all
from toolcrib.models.attribute_definition import AttributeDefinition
from toolcrib.models.attribute_group import AttributeGroup
from toolcrib.models.audit import AuditLog
from toolcrib.models.category import Category
from toolcrib.models.enums import AttributeType, AuditOperation, UserRole
from toolcrib.models.tool import Tool

__all__ = [
    "AttributeDefinition",
    "AttributeGroup",
    "AttributeType",
    "AuditLog",
    "AuditOperation",
    "Category",
    "Tool",
    "UserRole",
]
