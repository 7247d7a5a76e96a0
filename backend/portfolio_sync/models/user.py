"""User model.

Rows are provisioned by the identity service; the sync engine only reads them.
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Uuid

from portfolio_sync.core.timeutils import utcnow
from portfolio_sync.models import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
