"""
Partner hierarchy services package.

Contains modular services for the sponsor tree:
- cycle_guard: Rejects links that would create a cycle
- upline_resolver: Ordered ancestor chains (closure table or pointer walk)
- chain_manager: Partner creation and sponsor links with closure rows
- reconciliation: Drift audit and repair
- statistics: Team size and revenue aggregates
"""

from app.services.hierarchy.chain_manager import HierarchyChainManager
from app.services.hierarchy.cycle_guard import CycleGuard
from app.services.hierarchy.reconciliation import (
    EdgeRef,
    HierarchyReconciler,
    PlannedEdge,
    ReconciliationReport,
    RepairPlan,
)
from app.services.hierarchy.statistics import TeamStatisticsManager
from app.services.hierarchy.upline_resolver import UplineEntry, UplineResolver


__all__ = [
    # Guards and resolution
    "CycleGuard",
    "UplineEntry",
    "UplineResolver",
    # Managers
    "HierarchyChainManager",
    "TeamStatisticsManager",
    # Reconciliation
    "HierarchyReconciler",
    "RepairPlan",
    "EdgeRef",
    "PlannedEdge",
    "ReconciliationReport",
]
