"""Create users, portfolios and transactions tables.

Revision ID: 001_portfolio_sync_tables
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_portfolio_sync_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


TRANSACTION_TYPES = (
    'IPO', 'FPO', 'AUCTION', 'RIGHTS',
    'SECONDARY_BUY', 'SECONDARY_SELL',
    'BONUS', 'DIVIDEND',
)


def upgrade() -> None:
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table('portfolios',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('color', sa.String(length=20), nullable=False, server_default='#00E676'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_portfolios_user_id', 'portfolios', ['user_id'], unique=False)

    op.create_table('transactions',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('portfolio_id', sa.String(length=64), nullable=False),
        sa.Column('stock_symbol', sa.String(length=20), nullable=False),
        sa.Column('type', sa.Enum(*TRANSACTION_TYPES, name='transaction_type'), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=24, scale=8), nullable=False),
        sa.Column('price', sa.Numeric(precision=18, scale=8), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['portfolio_id'], ['portfolios.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_transactions_quantity_positive'),
        sa.CheckConstraint('price >= 0', name='ck_transactions_price_non_negative'),
    )
    op.create_index('ix_transactions_portfolio_id', 'transactions', ['portfolio_id'], unique=False)
    op.create_index('ix_transactions_portfolio_id_date', 'transactions', ['portfolio_id', 'date'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_transactions_portfolio_id_date', table_name='transactions')
    op.drop_index('ix_transactions_portfolio_id', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_portfolios_user_id', table_name='portfolios')
    op.drop_table('portfolios')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    sa.Enum(name='transaction_type').drop(op.get_bind(), checkfirst=True)
