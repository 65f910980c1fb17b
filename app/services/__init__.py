"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)

# Commission
from app.services.commission import (
    CommissionCalculator,
    CommissionDistributor,
    CommissionPool,
)

# Hierarchy
from app.services.hierarchy import (
    CycleGuard,
    HierarchyChainManager,
    HierarchyReconciler,
    ReconciliationReport,
    RepairPlan,
    TeamStatisticsManager,
    UplineEntry,
    UplineResolver,
)

# Entry point
from app.services.partner_service import PartnerService


__all__ = [
    # Base
    "BaseService",
    "transaction",
    "log_operation",
    # Commission
    "CommissionCalculator",
    "CommissionDistributor",
    "CommissionPool",
    # Hierarchy
    "CycleGuard",
    "HierarchyChainManager",
    "HierarchyReconciler",
    "ReconciliationReport",
    "RepairPlan",
    "TeamStatisticsManager",
    "UplineEntry",
    "UplineResolver",
    # Entry point
    "PartnerService",
]
