"""Tool module constants."""

TOOL_NUMBER_PREFIX = "TOOL-"
TOOL_NUMBER_DIGITS = 5

DEFAULT_UNIT_OF_MEASURE = "pcs"

# Entity type recorded in the audit log
AUDIT_ENTITY_TYPE = "Tool"
