"""SQLAlchemy models."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models so Base.metadata.create_all() picks them up
from portfolio_sync.models.user import User  # noqa: E402, F401
from portfolio_sync.models.portfolio import Portfolio  # noqa: E402, F401
from portfolio_sync.models.transaction import Transaction, TransactionType  # noqa: E402, F401
