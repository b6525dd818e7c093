"""Catalog module constants — attribute naming and effective schema layout."""

ATTRIBUTE_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"
ATTRIBUTE_NAME_MAX_LENGTH = 50
ATTRIBUTE_LABEL_MAX_LENGTH = 100

# Synthetic trailing group for definitions without a group in the merged set
UNGROUPED_GROUP_ID = "no_group"
UNGROUPED_GROUP_NAME = "General"
UNGROUPED_SORT_ORDER = 999

# Redis key namespace for cached effective schemas
CACHE_PREFIX = "effective_schema"
