"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- CommissionCalculator with the default schedule
- Mock deal objects
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.models.enums import DealStatus, ProductCategory
from app.services.commission.calculator import CommissionCalculator


@pytest.fixture
def calculator():
    """
    Create CommissionCalculator with the default schedule.

    Default schedule: 60% direct, 20% level 1, 10% level 2.

    Returns:
        CommissionCalculator: Calculator instance for testing
    """
    return CommissionCalculator(
        direct_rate=Decimal("0.60"),
        first_override_rate=Decimal("0.20"),
        decay_factor=Decimal("0.5"),
        max_override_depth=2,
        location_step=Decimal("0.3"),
    )


@pytest.fixture
def mock_deal():
    """
    Create mock deal object with default values.

    Default values:
    - id: 1
    - submitting_partner_id: 100
    - product_category: card_processing
    - value: 50000 (monthly card volume)
    - locations: 1
    - status: completed

    Returns:
        MagicMock: Mock deal object
    """
    deal = MagicMock()
    deal.id = 1
    deal.submitting_partner_id = 100
    deal.product_category = ProductCategory.CARD_PROCESSING.value
    deal.value = Decimal("50000")
    deal.locations = 1
    deal.status = DealStatus.COMPLETED.value
    return deal
