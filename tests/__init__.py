"""
OmniDash Test Suite.

This package contains:
- unit/: Unit tests (temporary SQLite files, mocked HTTP transport)
- integration/: Capture-then-persist flow across client, store and API
"""
