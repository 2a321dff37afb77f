"""HTTP constants for the request lifecycle.

Centralizes status codes, caps and header names shared across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300

# Redirect handling
REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})
MAX_REDIRECTS = 10

# Retry handling
MAX_ERROR_RETRIES = 5
DEFAULT_BASE_DELAY_MS = 100
DEFAULT_JITTER_MS = 100

# Default ports per protocol
DEFAULT_HTTPS_PORT = 443
DEFAULT_HTTP_PORT = 80

# Request timeout (seconds)
DEFAULT_TIMEOUT_SECONDS = 30.0

# Header names (lowercase)
HEADER_CONTENT_TYPE = "content-type"
HEADER_CONTENT_LENGTH = "content-length"
HEADER_LOCATION = "location"
HEADER_NEXT_RANGE = "next-range"
HEADER_RANGE = "range"
HEADER_USER_AGENT = "user-agent"

JSON_MEDIA_TYPE = "application/json"

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

# Package identity for the default user-agent
PACKAGE_NAME = "http-call"
PACKAGE_VERSION = "1.0.0"
