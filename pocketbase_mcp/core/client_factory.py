# =============================================================================
# core/client_factory.py  —  URL resolution & client construction
# =============================================================================
#
# URL PRECEDENCE:
#   explicit argument  >  POCKETBASE_URL  >  http://127.0.0.1:8090
#
# Every URL is normalized by stripping trailing slashes, so that
# "http://h:8090", "http://h:8090/" and "http://h:8090///" all map to the
# same SessionStore key.  No other well-formedness check is done here; a
# malformed URL surfaces from httpx when the first request is made.
# =============================================================================

import re

import httpx

from pocketbase_mcp.core.client import PocketBaseClient
from pocketbase_mcp.core.config import DEFAULT_POCKETBASE_URL, get_env_admin_token, get_env_url

_TRAILING_SLASHES = re.compile(r"/+$")


def normalize_url(url: str) -> str:
    return _TRAILING_SLASHES.sub("", url)


def get_pocketbase_url(explicit_url: str | None = None) -> str:
    """Resolve the base URL to use, normalized (no trailing slash)."""
    url = explicit_url or get_env_url() or DEFAULT_POCKETBASE_URL
    return normalize_url(url)


def create_client(
    base_url: str | None = None,
    admin_token: str | None = None,
    user_token: str | None = None,
    *,
    http: httpx.Client | None = None,
    transport: httpx.BaseTransport | None = None,
) -> PocketBaseClient:
    """Create a client, optionally seeded with a bare token.

    When both tokens are given the admin token wins.
    """
    client = PocketBaseClient(get_pocketbase_url(base_url), http=http, transport=transport)
    token = admin_token or user_token
    if token:
        client.save_auth(token)
    return client


def create_admin_client(
    base_url: str | None = None,
    admin_token: str | None = None,
    *,
    http: httpx.Client | None = None,
    transport: httpx.BaseTransport | None = None,
) -> PocketBaseClient:
    """Client seeded with the given admin token, else POCKETBASE_ADMIN_TOKEN."""
    return create_client(
        base_url,
        admin_token=admin_token or get_env_admin_token(),
        http=http,
        transport=transport,
    )


def create_user_client(
    base_url: str | None = None,
    user_token: str | None = None,
    *,
    http: httpx.Client | None = None,
    transport: httpx.BaseTransport | None = None,
) -> PocketBaseClient:
    """Client seeded only with a user token; the env admin token is ignored."""
    return create_client(base_url, user_token=user_token, http=http, transport=transport)
