# =============================================================================
# pocketbase_mcp/main.py  —  Entry Point for the PocketBase MCP Server
# =============================================================================
#
# HOW TO RUN:
#   pocketbase-mcp            (console script installed by pyproject.toml)
#   python -m pocketbase_mcp.main
#   python main.py            (thin wrapper at the repository root)
#
# WHAT HAPPENS:
#   1. Loads .env (POCKETBASE_URL, POCKETBASE_ADMIN_TOKEN, ...)
#   2. Optionally auto-authenticates as admin from email + password
#   3. Starts the FastMCP server on stdio (tools/mcp_server.py)
#
# AUTO-AUTHENTICATION:
#   With POCKETBASE_ADMIN_EMAIL and POCKETBASE_ADMIN_PASSWORD set, and no
#   POCKETBASE_ADMIN_TOKEN, we log in once at startup and put the token
#   into the environment, where every tool finds it as the fallback
#   credential.  A failure is logged and the server starts anyway: tools
#   can still be used with a per-call adminToken or after authenticate_*.
# =============================================================================

import logging

from dotenv import load_dotenv

# Load environment variables from .env BEFORE importing the server, so the
# logging level and output format settings are already in place.
load_dotenv()

from pocketbase_mcp.core.auth import authenticate_admin
from pocketbase_mcp.core.config import get_admin_credentials, get_env_admin_token, get_env_url, set_env_admin_token
from pocketbase_mcp.core.models import AuthCredentials
from pocketbase_mcp.tools.mcp_server import mcp

logger = logging.getLogger("pocketbase_mcp")


def auto_authenticate_admin() -> bool:
    """Log in as admin from the environment, if configured.

    Returns:
        True when a fresh token was obtained and stored in the environment.
    """
    credentials = get_admin_credentials()
    if credentials is None:
        return False

    if get_env_admin_token():
        logger.info("Admin token already set, skipping auto-authentication")
        return False

    email, password = credentials
    try:
        logger.info(f"Attempting auto-authentication as admin ({email})...")
        result = authenticate_admin(AuthCredentials(email, password), get_env_url())
    except Exception as exc:
        logger.warning(f"Auto-authentication failed: {exc}")
        logger.warning("Tools requiring admin access will fail unless a valid token is provided per-request")
        return False

    set_env_admin_token(result.token)
    logger.info("Successfully auto-authenticated as admin")
    return True


def main() -> None:
    auto_authenticate_admin()
    logger.info("PocketBase MCP server ready")
    mcp.run()


if __name__ == "__main__":
    main()
