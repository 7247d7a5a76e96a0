"""Minimal conftest for unit tests - no database, no app dependencies."""

import os

# Set required env vars before any app imports
os.environ.setdefault("SECRET_KEY", "testsecretkey_for_unit_tests_only_1234567890")
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
