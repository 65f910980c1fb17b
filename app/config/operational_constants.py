"""
Operational constants for the commission engine.

Technical/operational constants used across the application.
Includes hierarchy limits, batch sizes and task retry configurations.
"""

# =============================================================================
# HIERARCHY LIMITS
# =============================================================================

# Maximum sponsor hops above any partner. Every ancestor walk stops here.
MAX_HIERARCHY_LEVELS = 10

# Partners audited per batch by the reconciliation sweep
RECONCILIATION_BATCH_SIZE = 500


# =============================================================================
# RETRY CONFIGURATIONS
# =============================================================================

# Default retry count for most operations
DEFAULT_MAX_RETRIES = 3

# Retry count for commission payout jobs
PAYOUT_MAX_RETRIES = 5


# =============================================================================
# DRAMATIQ TASK TIME LIMITS (milliseconds)
# =============================================================================

# Medium tasks (2 minutes) - single deal payout
DRAMATIQ_TIME_LIMIT_MEDIUM = 120_000

# Long tasks (15 minutes) - full hierarchy sweep
DRAMATIQ_TIME_LIMIT_LONG = 900_000
