"""Create partner hierarchy and commission ledger tables.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create partners, partner_hierarchy, deals and commission_ledger."""

    # Partners with write-once sponsor pointer
    op.create_table(
        'partners',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('partner_code', sa.String(20), nullable=False, comment='Shareable referral code, e.g. ds001'),
        sa.Column('sponsor_id', sa.Integer(), nullable=True, comment='Immediate sponsor, set at most once'),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['sponsor_id'], ['partners.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_partners_partner_code', 'partners', ['partner_code'], unique=True)
    op.create_index('ix_partners_email', 'partners', ['email'], unique=True)
    op.create_index('ix_partners_sponsor_id', 'partners', ['sponsor_id'])

    # Closure table: one row per (partner, ancestor)
    op.create_table(
        'partner_hierarchy',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('child_id', sa.Integer(), nullable=False),
        sa.Column('ancestor_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, comment='Sponsor hops from child to ancestor'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['child_id'], ['partners.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['ancestor_id'], ['partners.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('child_id', 'level', name='uq_partner_hierarchy_child_level'),
        sa.CheckConstraint('level >= 1', name='check_partner_hierarchy_level_positive'),
        sa.CheckConstraint('child_id <> ancestor_id', name='check_partner_hierarchy_not_self'),
    )
    op.create_index('ix_partner_hierarchy_child_id', 'partner_hierarchy', ['child_id'])
    op.create_index('ix_partner_hierarchy_ancestor_id', 'partner_hierarchy', ['ancestor_id'])
    op.create_index('idx_partner_hierarchy_ancestor_level', 'partner_hierarchy', ['ancestor_id', 'level'])

    # Deals
    op.create_table(
        'deals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('submitting_partner_id', sa.Integer(), nullable=False),
        sa.Column('business_name', sa.String(255), nullable=True),
        sa.Column('product_category', sa.String(50), nullable=False, comment='card_processing, funding, insurance, utilities'),
        sa.Column('value', sa.DECIMAL(12, 2), nullable=False),
        sa.Column('locations', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.String(50), nullable=False, server_default='submitted'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['submitting_partner_id'], ['partners.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('value >= 0', name='check_deal_value_non_negative'),
        sa.CheckConstraint('locations >= 1', name='check_deal_locations_positive'),
    )
    op.create_index('ix_deals_submitting_partner_id', 'deals', ['submitting_partner_id'])
    op.create_index('ix_deals_product_category', 'deals', ['product_category'])
    op.create_index('ix_deals_status', 'deals', ['status'])

    # Commission ledger
    op.create_table(
        'commission_ledger',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('deal_id', sa.Integer(), nullable=False),
        sa.Column('payee_partner_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, comment='0 = submitter, N = sponsor N hops up'),
        sa.Column('amount', sa.DECIMAL(12, 2), nullable=False),
        sa.Column('rate', sa.DECIMAL(7, 6), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False, comment='direct or override'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['deal_id'], ['deals.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['payee_partner_id'], ['partners.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('deal_id', 'payee_partner_id', 'level', name='uq_commission_ledger_deal_payee_level'),
        sa.CheckConstraint('amount > 0', name='check_commission_ledger_amount_positive'),
        sa.CheckConstraint('level >= 0', name='check_commission_ledger_level_non_negative'),
    )
    op.create_index('ix_commission_ledger_deal_id', 'commission_ledger', ['deal_id'])
    op.create_index('ix_commission_ledger_payee_partner_id', 'commission_ledger', ['payee_partner_id'])
    op.create_index('idx_commission_ledger_payee_level', 'commission_ledger', ['payee_partner_id', 'level'])


def downgrade() -> None:
    """Drop commission engine tables."""
    op.drop_table('commission_ledger')
    op.drop_table('deals')
    op.drop_table('partner_hierarchy')
    op.drop_table('partners')
