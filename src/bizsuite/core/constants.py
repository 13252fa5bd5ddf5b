"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_LATE_THRESHOLD = time(9, 0)
STANDARD_WORKDAY_MINUTES = 480
DEFAULT_PASSING_SCORE = 70
CERTIFICATE_PREFIX = "CERT"
QUOTATION_PREFIX = "QUO"
INVOICE_DUE_DAYS = 30
CERTIFICATE_EXPIRY_WARNING_DAYS = 30
DEFAULT_HISTORY_LIMIT = 30
SUPPORT_AGENT_ROLE = "support_agent"
QUOTATION_VALIDITY_DAYS = 30
DEFAULT_CURRENCY = "USD"
