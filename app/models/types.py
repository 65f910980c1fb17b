"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for deal values, pools and payouts
# Precision: 12 digits total, 2 after decimal point (GBP pennies)
# Range: up to 9,999,999,999.99
MoneyType = DECIMAL(12, 2)

# Rate type for shares of a commission pool
# Precision: 7 digits total, 6 after decimal point
# Suitable for: 0.600000, 0.200000, 0.025000
# Range: 0.000000 to 9.999999
RateType = DECIMAL(7, 6)
