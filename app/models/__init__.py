"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.commission_ledger_entry import CommissionLedgerEntry
from app.models.deal import Deal
from app.models.enums import DealStatus, LedgerEntryKind, ProductCategory
from app.models.hierarchy_edge import HierarchyEdge

# Core Models
from app.models.partner import Partner

__all__ = [
    # Base
    "Base",
    # Enums
    "DealStatus",
    "LedgerEntryKind",
    "ProductCategory",
    # Core Models
    "Partner",
    "HierarchyEdge",
    "Deal",
    "CommissionLedgerEntry",
]
