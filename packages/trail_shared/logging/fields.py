"""Canonical logging field names for version capture and navigation.

Keeping names centralized keeps structured log lines stable between the
capture hooks, the store, and the reification paths.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Version item identity fields.
ITEM_TYPE = "item_type"
ITEM_ID = "item_id"
VERSION_ID = "version_id"
WHODUNNIT = "whodunnit"

# Capture outcome fields.
SKIP_REASON = "skip_reason"
DROPPED_KEYS = "dropped_keys"
ERROR_CATEGORY = "error_category"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
