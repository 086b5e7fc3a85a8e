# =============================================================================
# pocketbase_mcp
# =============================================================================
# An MCP server that lets a language model manage a PocketBase backend:
# authentication, collections, records, users, files and raw API calls.
#
#   core/   PocketBase client, session store, services, errors (no MCP imports)
#   tools/  the FastMCP server: tools and prompts
# =============================================================================

__version__ = "1.0.0"
