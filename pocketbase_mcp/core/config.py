# =============================================================================
# core/config.py  —  Environment-driven settings
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads every setting the server understands from environment variables.
#   The .env file is loaded once by main.py (python-dotenv) before any of
#   these accessors run, so a local .env behaves exactly like exported vars.
#
# WHY FUNCTIONS INSTEAD OF MODULE CONSTANTS?
#   The admin token can change while the process is running: startup
#   auto-authentication writes a fresh token into os.environ.  Reading
#   lazily means every tool call sees the current value.
#
# VARIABLES:
#   POCKETBASE_URL             default base URL
#   POCKETBASE_ADMIN_TOKEN     process-wide admin bearer token
#   POCKETBASE_ADMIN_EMAIL     startup auto-authentication (with password)
#   POCKETBASE_ADMIN_PASSWORD
#   POCKETBASE_TIMEOUT         HTTP timeout in seconds
#   MCP_OUTPUT_FORMAT          "json" (default) or "yaml"
#   MCP_LOG_LEVEL              logging level name (default INFO)
# =============================================================================

import os

DEFAULT_POCKETBASE_URL = "http://127.0.0.1:8090"
DEFAULT_TIMEOUT_SECONDS = 30.0

ENV_URL = "POCKETBASE_URL"
ENV_ADMIN_TOKEN = "POCKETBASE_ADMIN_TOKEN"
ENV_ADMIN_EMAIL = "POCKETBASE_ADMIN_EMAIL"
ENV_ADMIN_PASSWORD = "POCKETBASE_ADMIN_PASSWORD"
ENV_TIMEOUT = "POCKETBASE_TIMEOUT"
ENV_OUTPUT_FORMAT = "MCP_OUTPUT_FORMAT"
ENV_LOG_LEVEL = "MCP_LOG_LEVEL"


def get_env_url() -> str | None:
    """The configured base URL, or None when unset or blank."""
    return os.environ.get(ENV_URL) or None


def get_env_admin_token() -> str | None:
    """The process-wide admin token, or None when unset or blank."""
    return os.environ.get(ENV_ADMIN_TOKEN) or None


def set_env_admin_token(token: str) -> None:
    os.environ[ENV_ADMIN_TOKEN] = token


def get_admin_credentials() -> tuple[str, str] | None:
    """Email/password for startup auto-authentication, if both are set."""
    email = os.environ.get(ENV_ADMIN_EMAIL)
    password = os.environ.get(ENV_ADMIN_PASSWORD)
    if not email or not password:
        return None
    return email, password


def get_timeout() -> float:
    raw = os.environ.get(ENV_TIMEOUT)
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS


def get_output_format() -> str:
    """Either "yaml" or "json".  Anything unrecognised means JSON."""
    fmt = (os.environ.get(ENV_OUTPUT_FORMAT) or "").strip().lower()
    return "yaml" if fmt == "yaml" else "json"


def get_log_level() -> str:
    return (os.environ.get(ENV_LOG_LEVEL) or "INFO").upper()
