"""Attendance policy constants."""
from datetime import timedelta

# Default lifetime of a lecture QR code when the teacher does not pick one.
DEFAULT_VALIDITY_MINUTES = 60

# A scan more than this long after the scheduled start is classified late.
LATE_THRESHOLD = timedelta(minutes=15)

DEFAULT_SECTION = 'A'

# Bytes of randomness behind a session token (256 bits).
SESSION_TOKEN_BYTES = 32

# Longest validity window a teacher may choose (one day).
MAX_VALIDITY_MINUTES = 24 * 60

# Scanned QR data longer than this is rejected before parsing.
MAX_QR_DATA_LENGTH = 2048

# Institution timezone used when none is configured.
DEFAULT_TIMEZONE = 'UTC'
