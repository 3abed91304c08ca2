"""sync-rsync service configuration

Service-level constants. Per-workspace behaviour (sites, toggles) lives in the
settings file and is loaded by ``syncrsync.settings``.

Groups:
- settings file lookup
- watch/debounce
- output channel
- runner
- web host
- logging / metrics
"""

import os

# === Settings file ===
SETTINGS_SECTION = "sync-rsync"  # key prefix in the settings file
SETTINGS_FILE_CANDIDATES = (
    ".vscode/settings.json",
    "sync-rsync.json",
)

# === Watch config ===
WATCH_DEBOUNCE_SECONDS = 1.0  # quiet period after the last change before syncing

# === Output channel ===
OUTPUT_CHANNEL_NAME = "Sync-Rsync"
OUTPUT_MAX_CHUNKS = 5000  # ring buffer size for replaying output to new clients

# === Runner ===
STREAM_READ_SIZE = 4096  # bytes per pipe read

# === Status indicator ===
STATUS_PREFIX = "Rsync"
STATUS_RUNNING_COLOR = "mediumseagreen"
STATUS_ERROR_COLOR = "red"

# === Web host ===
SERVER_HOST = os.environ.get("SYNC_RSYNC_HOST", "127.0.0.1")
SERVER_PORT = int(os.environ.get("SYNC_RSYNC_PORT", "8766"))
CLIENT_TIMEOUT = None  # seconds; syncs can run arbitrarily long

# === Logging ===
LOG_LEVEL = os.environ.get("SYNC_RSYNC_LOG_LEVEL", "INFO")
LOG_MAX_CMD_LEN = 120  # command line truncation in log records

# === Metrics ===
METRICS_ENABLED = True
