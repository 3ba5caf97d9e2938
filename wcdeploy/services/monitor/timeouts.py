from __future__ import annotations

# Outer poll loop: 60 attempts x 30 s ~= 30 minutes nominal.
POLL_INTERVAL_SECONDS = 30.0
MAX_POLL_ATTEMPTS = 60

# Status request retry policy (network failures only)
STATUS_RETRY_ATTEMPTS = 3
STATUS_RETRY_DELAY_SECONDS = 5.0

# Single HTTP round trip
HTTP_TIMEOUT_SECONDS = 30.0

# Longest API error body quoted in error messages
ERROR_BODY_EXCERPT_CHARS = 200

# Notification / speech / browser helpers
NOTIFIER_TIMEOUT_SECONDS = 15.0
