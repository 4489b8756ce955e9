from __future__ import annotations

# REST calls
GH_TIMEOUT_SECONDS = 30.0

# Idempotent GET retry policy; mutations are never retried
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

# Page size for list endpoints
GH_PAGE_SIZE = 100
