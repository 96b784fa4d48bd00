"""Shared application constants.

Centralizes repeat values used across fetching and aggregation logic so we
can document and adjust them in one place.
"""

# Longest span (days) the measurements endpoint accepts before answering 400
MAX_RANGE_DAYS = 90

# Spans at least this long are retried with FALLBACK_RANGE_DAYS on a 400
FALLBACK_MIN_SPAN_DAYS = 60
FALLBACK_RANGE_DAYS = 30

# Refresh the upstream token this many seconds before it expires
TOKEN_EXPIRY_SKEW_S = 60

# Variant label used when a measurement carries none
DEFAULT_VARIANT = "Standard"
