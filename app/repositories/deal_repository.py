"""
Deal repository.

Data access layer for Deal model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.deal import Deal
from app.repositories.base import BaseRepository


class DealRepository(BaseRepository[Deal]):
    """Deal repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize deal repository."""
        super().__init__(Deal, session)
