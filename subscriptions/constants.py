"""
Fixed values used by the subscription manager.
"""

# Fetcher
MAX_ATTEMPTS = 10
BACKOFF_BASE = 2  # seconds, raised to the attempt number
MAX_BACKOFF = 15  # seconds
READ_TIMEOUT = 10  # seconds per attempt
CONNECT_TIMEOUT = 5  # seconds, covers the TLS handshake too
CHUNK_SIZE = 64 * 1024
# Statuses above this are only retried when they are server errors (>= 500)
LAST_RETRYABLE_CLIENT_STATUS = 404

# Headers sent with every request unless the subscription overrides them
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/117.0.0.0 Safari/537.36 Edg/117.0.2045.31"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8,"
        "application/signed-exchange;v=b3;q=0.7"
    ),
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8,en-GB;q=0.7,en-US;q=0.6,zh-TW;q=0.5",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

# Swap
BACKUP_TIME_FORMAT = "%Y%m%d-%H%M%S"
BACKUP_SUFFIX = ".backup"

# Scheduler
MIN_SLEEP = 0.001  # seconds, keeps past-due entries from busy-looping

# Engine
BUILTIN_TARGETS = {"DIRECT", "REJECT", "REJECT-DROP", "PASS", "COMPATIBLE", "GLOBAL"}
