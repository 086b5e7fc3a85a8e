# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL PocketBase logic: the HTTP client, the session
# store, the services (auth, collections, records, users, files), the error
# taxonomy and output formatting.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP.  Every service takes a
#   PocketBaseClient and returns a plain dict (or raises), so it can be
#   exercised in a bare REPL or in tests with an httpx.MockTransport.
# =============================================================================
