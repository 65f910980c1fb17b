"""
HierarchyEdge model.

Closure table of partner ancestry: one row per (partner, ancestor).
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class HierarchyEdge(Base):
    """
    HierarchyEdge entity.

    For a given child, the ancestor rows must match the sponsor pointer
    chain exactly: level 1 is the sponsor, level N is N hops up, and each
    ancestor appears once. Rows are never updated; drift is repaired by
    delete-and-reinsert (see HierarchyReconciler).

    Attributes:
        id: Primary key
        child_id: Partner whose ancestry this row describes
        ancestor_id: Ancestor partner
        level: Hop count from child to ancestor (1 = immediate sponsor)
        created_at: Insert time
    """

    __tablename__ = "partner_hierarchy"
    __table_args__ = (
        # One row per level: a partner can only be linked once
        UniqueConstraint(
            "child_id", "level", name="uq_partner_hierarchy_child_level"
        ),
        CheckConstraint(
            "level >= 1", name="check_partner_hierarchy_level_positive"
        ),
        CheckConstraint(
            "child_id <> ancestor_id",
            name="check_partner_hierarchy_not_self",
        ),
        Index("idx_partner_hierarchy_ancestor_level", "ancestor_id", "level"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    child_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    ancestor_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<HierarchyEdge(child_id={self.child_id}, "
            f"ancestor_id={self.ancestor_id}, level={self.level})>"
        )
