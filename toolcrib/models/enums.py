import enum


class AttributeType(str, enum.Enum):
    TEXT = "TEXT"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    SELECT_SINGLE = "SELECT_SINGLE"
    SELECT_MULTI = "SELECT_MULTI"


SELECT_ATTRIBUTE_TYPES = frozenset({AttributeType.SELECT_SINGLE, AttributeType.SELECT_MULTI})


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    USER = "USER"


class AuditOperation(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
