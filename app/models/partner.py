"""
Partner model.

Represents a referral partner and the denormalized pointer to its sponsor.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.models.base import Base
from app.utils.exceptions import SponsorAlreadyAssigned

if TYPE_CHECKING:
    from app.models.deal import Deal


class Partner(Base):
    """
    Partner model - referral partners.

    The sponsor pointer is the fast path for display. The closure table
    (HierarchyEdge) is authoritative for ancestor/descendant queries; both
    are written together by HierarchyChainManager only.

    Attributes:
        id: Primary key
        partner_code: Shareable code used as a referral code (e.g. "ds001")
        sponsor_id: Immediate sponsor; set at most once, never changed
        first_name: First name
        last_name: Last name
        email: Contact email
        is_active: False once deactivated (partners are never deleted)
        created_at: Signup time
        updated_at: Last modification time
    """

    __tablename__ = "partners"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    partner_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )

    # Sponsor pointer (denormalized)
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("partners.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    # Identity
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )

    # Status flags
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    sponsor: Mapped[Optional["Partner"]] = relationship(
        "Partner",
        remote_side=[id],
        back_populates="recruits",
        foreign_keys=[sponsor_id],
    )
    recruits: Mapped[list["Partner"]] = relationship(
        "Partner",
        back_populates="sponsor",
        foreign_keys=[sponsor_id],
    )
    deals: Mapped[list["Deal"]] = relationship(
        "Deal",
        back_populates="submitting_partner",
    )

    @validates("sponsor_id")
    def validate_sponsor_id(self, key: str, value: int | None) -> int | None:
        """Reject re-sponsoring: the pointer is write-once."""
        current = self.sponsor_id
        if current is not None and value != current:
            raise SponsorAlreadyAssigned(self.id, current)
        return value

    @property
    def full_name(self) -> str:
        """First and last name for display."""
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Partner(id={self.id}, code={self.partner_code}, "
            f"sponsor_id={self.sponsor_id})>"
        )
