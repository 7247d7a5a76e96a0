"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from portfolio_sync.core.config import settings

# Create limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.rate_limit_storage,
    strategy="fixed-window",
)

# Specific rate limits for different endpoint types
RATE_LIMITS = {
    # Destructive / heavy sync operations
    "bulk_import": "10/minute",
    "sync_replace": "10/minute",
}
