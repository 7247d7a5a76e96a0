"""Portfolio model."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid

from portfolio_sync.core.timeutils import utcnow
from portfolio_sync.models import Base

# Client-generated ids; UUID4 strings in practice but treated as opaque.
ENTITY_ID_LENGTH = 64


class Portfolio(Base):
    __tablename__ = "portfolios"

    id = Column(String(ENTITY_ID_LENGTH), primary_key=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    color = Column(String(20), nullable=False, default="#00E676")
    # Timestamps are set explicitly by the sync services so replicated rows
    # keep the time of their last real change.
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
