"""Application-wide constants.

This module centralizes magic numbers used across the statistics
services. For environment-specific configuration, see config.py.
"""

# =============================================================================
# Firestore Layout
# =============================================================================

USERS_COLLECTION: str = "users"
TRANSACTIONS_SUBCOLLECTION: str = "transactions"
CREATED_AT_FIELD: str = "createdAt"

# =============================================================================
# Transactions
# =============================================================================

DEFAULT_CURRENCY: str = "USD"

# Currency filter value meaning "no filtering"
ALL_CURRENCIES: str = "ALL"

# A transaction is a payout if its type is one of these...
PAYOUT_TYPES: frozenset[str] = frozenset({"payout", "withdrawal"})

# ...or if its status is this one
PAYOUT_STATUS: str = "sent"

# Defaults for the recent transactions table
DEFAULT_TRANSACTION_STATUS: str = "completed"
DEFAULT_TRANSACTION_TYPE: str = "transfer"
UNKNOWN_CUSTOMER: str = "Unknown"
MISSING_EMAIL: str = "No email"

# =============================================================================
# Periods
# =============================================================================

# Default comparison window when no start date is requested: days 31-60 ago
DEFAULT_PREVIOUS_PERIOD_END_DAYS: int = 30
DEFAULT_PREVIOUS_PERIOD_START_DAYS: int = 60

# Volume over time covers the last 12 months by default
DEFAULT_VOLUME_MONTHS: int = 12

# =============================================================================
# Pagination Defaults
# =============================================================================

DEFAULT_TRANSACTIONS_LIMIT: int = 10
MAX_TRANSACTIONS_LIMIT: int = 100

# Per-user over-fetch factor, leaves headroom for currency filtering
TRANSACTIONS_FETCH_MULTIPLIER: int = 2

# =============================================================================
# Currency Distribution
# =============================================================================

TOP_CURRENCIES_COUNT: int = 4
OTHER_CURRENCY_BUCKET: str = "OTHER"
