"""
Central configuration for pocketsync.

Path resolution lives in pocketsync.workspace.Workspace, which provides a
single workspace root with computed path properties for all data locations.

See pocketsync.workspace for details on how paths are resolved:
  1. Explicit --data-dir CLI option
  2. POCKETSYNC_DATA environment variable
  3. Current working directory
"""

# Duplicate scoring
DUPLICATE_THRESHOLD = 65
SUGGESTION_THRESHOLD = 40
AMOUNT_TOLERANCE = 0.01

# Cleaned-duplicate ledger and tombstone checks
CLEANUP_RETENTION_DAYS = 7
RECENTLY_DELETED_DAYS = 7
DEFAULT_MAX_TO_DELETE = 100
SAFE_CLEANUP_MAX_TO_DELETE = 50

# Manual sync
EXPORT_VERSION = "2.0"
EXPORT_TYPE = "manual_export"
MAX_STATUS_ERRORS = 20
STALE_SYNC_DAYS = 7
LARGE_DATASET_THRESHOLD = 1000

REMOTE_REST_PATH = "/rest/v1"
