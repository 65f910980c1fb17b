"""
Shared fixtures for engine tests.

Partners are registered through PartnerService so every fixture chain
has consistent sponsor pointers and closure rows.
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from app.models import Deal, DealStatus, HierarchyEdge, ProductCategory
from app.repositories.partner_repository import PartnerRepository
from app.services.partner_service import PartnerService


@pytest.fixture
def partner_service(db_session):
    """PartnerService on the in-memory database."""
    return PartnerService(db_session)


@pytest.fixture
def register(db_session, partner_service):
    """
    Register a partner under a sponsor given by ID.

    Returns:
        Async callable (first_name, last_name, sponsor_id=None) -> partner ID
    """
    async def _register(
        first_name: str, last_name: str, sponsor_id: int | None = None
    ) -> int:
        sponsor_code = None
        if sponsor_id is not None:
            sponsor = await PartnerRepository(db_session).get_by_id(sponsor_id)
            sponsor_code = sponsor.partner_code

        email = f"{first_name}.{last_name}@example.com".lower()
        return await partner_service.register_partner(
            first_name, last_name, email, sponsor_code=sponsor_code
        )

    return _register


@pytest.fixture
def make_deal(db_session):
    """
    Insert a deal and commit it.

    Returns:
        Async callable returning the deal ID
    """
    async def _make_deal(
        partner_id: int,
        value: Decimal = Decimal("50000"),
        category: ProductCategory = ProductCategory.CARD_PROCESSING,
        status: DealStatus = DealStatus.COMPLETED,
        locations: int = 1,
    ) -> int:
        deal = Deal(
            submitting_partner_id=partner_id,
            business_name="Corner Cafe Ltd",
            product_category=category.value,
            value=value,
            locations=locations,
            status=status.value,
        )
        db_session.add(deal)
        await db_session.commit()
        return deal.id

    return _make_deal


@pytest_asyncio.fixture
async def chain(register):
    """Root -> Mid -> Leaf, returned as a dict of partner IDs."""
    root_id = await register("Rita", "Root")
    mid_id = await register("Mark", "Middle", sponsor_id=root_id)
    leaf_id = await register("Lena", "Leaf", sponsor_id=mid_id)
    return {"root": root_id, "mid": mid_id, "leaf": leaf_id}


@pytest.fixture
def add_edge(db_session):
    """Write a closure row directly, bypassing the chain manager."""
    async def _add_edge(child_id: int, ancestor_id: int, level: int) -> int:
        edge = HierarchyEdge(
            child_id=child_id, ancestor_id=ancestor_id, level=level
        )
        db_session.add(edge)
        await db_session.commit()
        return edge.id

    return _add_edge
