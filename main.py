# =============================================================================
# main.py  —  Run the PocketBase MCP server from a source checkout
# =============================================================================
#
#   python main.py
#
# The entry point itself lives in pocketbase_mcp/main.py, which is also what
# the installed `pocketbase-mcp` console script runs.
# =============================================================================

from pocketbase_mcp.main import main

if __name__ == "__main__":
    main()
