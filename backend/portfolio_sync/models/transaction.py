"""Transaction model."""

import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, Numeric, String

from portfolio_sync.core.timeutils import utcnow
from portfolio_sync.models import Base
from portfolio_sync.models.portfolio import ENTITY_ID_LENGTH


class TransactionType(str, enum.Enum):
    IPO = "IPO"
    FPO = "FPO"
    AUCTION = "AUCTION"
    RIGHTS = "RIGHTS"
    SECONDARY_BUY = "SECONDARY_BUY"
    SECONDARY_SELL = "SECONDARY_SELL"
    BONUS = "BONUS"
    DIVIDEND = "DIVIDEND"


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_portfolio_id_date", "portfolio_id", "date"),
        CheckConstraint("quantity > 0", name="ck_transactions_quantity_positive"),
        CheckConstraint("price >= 0", name="ck_transactions_price_non_negative"),
    )

    id = Column(String(ENTITY_ID_LENGTH), primary_key=True)
    portfolio_id = Column(
        String(ENTITY_ID_LENGTH), ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False, index=True
    )
    stock_symbol = Column(String(20), nullable=False)
    type = Column(Enum(TransactionType, name="transaction_type"), nullable=False)
    quantity = Column(Numeric(precision=24, scale=8), nullable=False)
    price = Column(Numeric(precision=18, scale=8), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
