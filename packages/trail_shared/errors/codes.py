"""Shared error code constants.

These constants are stable machine-readable identifiers for version capture,
storage, and reification failures.
"""

# Validation
INVALID_ARGUMENT = "INVALID_ARGUMENT"
INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
UNKNOWN_ATTRIBUTE = "UNKNOWN_ATTRIBUTE"
UNKNOWN_EVENT = "UNKNOWN_EVENT"
RESERVED_COLUMN = "RESERVED_COLUMN"

# Not found
NOT_FOUND = "NOT_FOUND"
NOTHING_TO_REIFY = "NOTHING_TO_REIFY"
UNKNOWN_ITEM_TYPE = "UNKNOWN_ITEM_TYPE"

# Dependency / external system
STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

# Internal
UNDECODABLE_OBJECT = "UNDECODABLE_OBJECT"
