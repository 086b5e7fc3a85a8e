# =============================================================================
# core/session_store.py  —  Session Store & credential precedence
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Keeps the "latest known credential per PocketBase instance" for the
#   life of the process.  One PocketBaseClient per normalized base URL;
#   authenticate_admin / authenticate_user store into it, logout clears
#   it, and every other tool borrows it.
#
# CREDENTIAL PRECEDENCE (exactly one source wins per call, never merged):
#   1. adminToken passed to this call
#   2. the stored session for the URL, if its token is still valid
#   3. POCKETBASE_ADMIN_TOKEN from the environment
#
#   Sources 1 and 3 are served by a TRANSIENT client: a fresh handle that
#   carries only that token and is never put in the store.  A per-call
#   override therefore cannot leak into the stored session or into another
#   concurrent call for the same URL.
#
# LIFECYCLE:
#   Entries are created lazily and never evicted.  Logout mutates the
#   stored handle in place instead of removing it, so resolve() keeps
#   returning the same instance for a URL.
#
# CONCURRENCY:
#   The map is guarded by a lock; each handle guards its own credential
#   slot (PocketBaseClient.lock).  Last write wins on credential updates.
# =============================================================================

import logging
import threading

import httpx

from pocketbase_mcp.core.client import PocketBaseClient
from pocketbase_mcp.core.client_factory import get_pocketbase_url
from pocketbase_mcp.core.config import get_env_admin_token, get_timeout
from pocketbase_mcp.core.errors import AuthExpiredError, AuthRequiredError

logger = logging.getLogger(__name__)

NO_CREDENTIAL_MESSAGE = (
    "PocketBase admin token is required. Provide it as parameter, authenticate "
    "first, or set POCKETBASE_ADMIN_TOKEN environment variable."
)


class SessionStore:
    """Process-wide map: normalized base URL -> PocketBaseClient."""

    def __init__(
        self,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = None,
    ):
        self._clients: dict[str, PocketBaseClient] = {}
        self._lock = threading.Lock()
        self._http = httpx.Client(
            timeout=timeout if timeout is not None else get_timeout(),
            transport=transport,
        )

    def __contains__(self, base_url: str) -> bool:
        return get_pocketbase_url(base_url) in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._clients)

    def close(self) -> None:
        self._http.close()

    # -------------------------------------------------------------------------
    # resolve / put
    # -------------------------------------------------------------------------
    def new_client(self, base_url: str | None = None, token: str | None = None) -> PocketBaseClient:
        """A client sharing this store's connection pool, NOT stored."""
        client = PocketBaseClient(get_pocketbase_url(base_url), http=self._http)
        if token:
            client.save_auth(token)
        return client

    def resolve(self, base_url: str | None = None) -> PocketBaseClient:
        """The stored client for the URL, created unauthenticated on first use.

        Repeated calls for the same normalized URL return the same instance.
        """
        url = get_pocketbase_url(base_url)
        with self._lock:
            client = self._clients.get(url)
            if client is None:
                logger.debug("session store: new client for %s", url)
                client = self.new_client(url)
                self._clients[url] = client
            return client

    def put(self, base_url: str | None, client: PocketBaseClient) -> None:
        """Replace whatever client occupies the URL slot."""
        url = get_pocketbase_url(base_url)
        with self._lock:
            self._clients[url] = client
        logger.debug("session store: saved client for %s (keys=%s)", url, list(self._clients))

    # -------------------------------------------------------------------------
    # PUBLIC API: client_for_call
    # -------------------------------------------------------------------------
    def client_for_call(
        self,
        admin_token: str | None = None,
        base_url: str | None = None,
        require_credential: bool = False,
    ) -> PocketBaseClient:
        """Pick the client (and therefore the credential) for one tool call.

        Args:
            admin_token: Token supplied with this call; wins over everything.
            base_url: Target instance; resolved via get_pocketbase_url().
            require_credential: When True and no credential is available,
                raise instead of returning an anonymous client.

        Raises:
            AuthExpiredError: the stored token expired and nothing else applies.
            AuthRequiredError: no credential at all and one is required.
        """
        url = get_pocketbase_url(base_url)

        if admin_token:
            logger.debug("credentials for %s: explicit token", url)
            return self.new_client(url, admin_token)

        stored = self.resolve(url)
        if stored.auth_store.is_valid:
            logger.debug("credentials for %s: stored session", url)
            return stored

        env_token = get_env_admin_token()
        if env_token:
            logger.debug("credentials for %s: POCKETBASE_ADMIN_TOKEN", url)
            return self.new_client(url, env_token)

        if require_credential:
            if stored.auth_store.is_expired:
                raise AuthExpiredError(
                    f"The stored session for {url} has expired. Authenticate again."
                )
            raise AuthRequiredError(NO_CREDENTIAL_MESSAGE)

        logger.debug("credentials for %s: none (anonymous)", url)
        return stored


_default_store: SessionStore | None = None
_default_lock = threading.Lock()


def default_store() -> SessionStore:
    """The process-wide store used by the MCP tools."""
    global _default_store
    with _default_lock:
        if _default_store is None:
            _default_store = SessionStore()
        return _default_store


def set_default_store(store: SessionStore | None) -> None:
    """Swap the process-wide store (None resets it to a fresh one on next use)."""
    global _default_store
    with _default_lock:
        _default_store = store
