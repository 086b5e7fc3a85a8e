# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP wrappers.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP and core/.  Each tool:
#     1. Resolves the client (credential) for the call
#     2. Calls a core/ service
#     3. Turns any exception into the failure envelope
#     4. Renders the envelope as JSON or YAML
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT talk HTTP themselves (that's core/client.py)
#   - They do NOT classify errors (that's core/errors.py)
#
# TOOL CONTRACT QUALITY:
#   The docstring of each tool is what the model reads to decide WHEN to
#   call it and WHAT to pass, so every tool documents its arguments and
#   the envelope it returns.
# =============================================================================
