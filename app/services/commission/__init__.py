"""
Commission services package.

- calculator: Deal -> commission pool and per-level schedule
- distributor: Writes ledger entries for a deal's submitter and sponsors
"""

from app.services.commission.calculator import (
    CommissionCalculator,
    CommissionPool,
)
from app.services.commission.distributor import CommissionDistributor


__all__ = [
    "CommissionCalculator",
    "CommissionPool",
    "CommissionDistributor",
]
