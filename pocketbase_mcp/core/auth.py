# =============================================================================
# core/auth.py  —  Authentication Service
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Exchanges email + password for a PocketBase token, for one of two
#   credential classes:
#     - ADMIN  (superuser): always the reserved "_superusers" collection;
#       the identity is always isAdmin=True and verified=True.
#     - USER: any auth collection (default "users"); isAdmin is always
#       False and "verified" comes from the backend.
#
#   Plus the pure queries over a client's credential slot used by the
#   logout / check_auth_status tools and the collection privilege gate.
#
# SESSION PERSISTENCE:
#   authenticate_* never touch the SessionStore.  login() does, and only
#   when save_session is True: a fresh client carrying the token and the
#   identity replaces whatever was stored for the URL.  With
#   save_session=False the caller gets a one-off token and the current
#   session is left alone.
#
# "DOES THIS TOKEN BELONG TO AN ADMIN?"
#   admin_status() answers with a tri-state.  A login gives us a cached
#   identity, so we KNOW.  A bare token (adminToken parameter, env var)
#   carries no identity: it is UNVERIFIED and we let the backend decide.
#   This is a low-confidence heuristic used only to fail early, never a
#   security boundary.
# =============================================================================

import logging
from typing import Any

from pocketbase_mcp.core.client import PocketBaseClient
from pocketbase_mcp.core.client_factory import create_client, get_pocketbase_url
from pocketbase_mcp.core.errors import AUTH_ERROR, AuthError, ErrorCode
from pocketbase_mcp.core.models import AdminStatus, AuthCredentials, AuthResult
from pocketbase_mcp.core.session_store import SessionStore

logger = logging.getLogger(__name__)

SUPERUSERS_COLLECTION = "_superusers"
DEFAULT_AUTH_COLLECTION = "users"

_USER_SYSTEM_FIELDS = {
    "id",
    "email",
    "verified",
    "collectionId",
    "collectionName",
    "created",
    "updated",
    "emailVisibility",
    "username",
}


def _extract_user_fields(record: dict[str, Any]) -> dict[str, Any]:
    fields = {
        key: value
        for key, value in record.items()
        if key not in _USER_SYSTEM_FIELDS and not key.startswith("_")
    }
    if record.get("username"):
        fields["username"] = record["username"]
    return fields


def _admin_identity(record: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": record.get("id"),
        "collectionName": SUPERUSERS_COLLECTION,
        "email": record.get("email"),
        "verified": True,
        "isAdmin": True,
        "created": record.get("created"),
        "updated": record.get("updated"),
    }


def _user_identity(record: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": record.get("id"),
        "email": record.get("email"),
        "verified": bool(record.get("verified", False)),
        "isAdmin": False,
        "collectionId": record.get("collectionId"),
        "collectionName": record.get("collectionName"),
        "created": record.get("created"),
        "updated": record.get("updated"),
        **_extract_user_fields(record),
    }


def _auth_error(error: Exception, default_message: str) -> AuthError:
    status = getattr(error, "status", None)
    message = getattr(error, "message", None) or str(error)

    if status in (400, 401):
        return AuthError(
            message or "Invalid credentials",
            code=ErrorCode.AUTH_INVALID,
            status=status,
            details=getattr(error, "data", None) or None,
            original_error=error,
        )

    lowered = (message or "").lower()
    if "fetch" in lowered or "network" in lowered or "connect" in lowered:
        return AuthError(
            "Unable to connect to PocketBase server",
            code=ErrorCode.NETWORK_ERROR,
            original_error=error,
        )

    return AuthError(message or default_message, code=AUTH_ERROR, status=status, original_error=error)


def _password_auth(client: PocketBaseClient, collection: str, credentials: AuthCredentials) -> dict[str, Any]:
    return client.auth_with_password(collection, credentials.email, credentials.password)


# =============================================================================
# PUBLIC API: authenticate
# =============================================================================
def authenticate_admin(
    credentials: AuthCredentials,
    base_url: str | None = None,
    client: PocketBaseClient | None = None,
) -> AuthResult:
    """Authenticate as a superuser.

    Args:
        credentials: Admin email and password.
        base_url: Target instance when no client is given.
        client: Existing client to send the request through.  Its
            credential slot is not modified.

    Raises:
        AuthError: code AUTH_INVALID, NETWORK_ERROR or AUTH_ERROR.
    """
    pb = client or create_client(get_pocketbase_url(base_url))
    try:
        data = _password_auth(pb, SUPERUSERS_COLLECTION, credentials)
    except Exception as exc:
        raise _auth_error(exc, "Admin authentication failed") from exc
    finally:
        if client is None:
            pb.close()
    return AuthResult(token=data.get("token") or "", user=_admin_identity(data.get("record") or {}))


def authenticate_user(
    credentials: AuthCredentials,
    collection: str = DEFAULT_AUTH_COLLECTION,
    base_url: str | None = None,
    client: PocketBaseClient | None = None,
) -> AuthResult:
    """Authenticate as a regular user of an auth collection."""
    pb = client or create_client(get_pocketbase_url(base_url))
    try:
        data = _password_auth(pb, collection or DEFAULT_AUTH_COLLECTION, credentials)
    except Exception as exc:
        raise _auth_error(exc, "User authentication failed") from exc
    finally:
        if client is None:
            pb.close()
    return AuthResult(token=data.get("token") or "", user=_user_identity(data.get("record") or {}))


def login(
    store: SessionStore,
    credentials: AuthCredentials,
    *,
    admin: bool,
    base_url: str | None = None,
    collection: str = DEFAULT_AUTH_COLLECTION,
    save_session: bool = True,
) -> AuthResult:
    """Authenticate through ``store`` and optionally persist the session.

    The request goes through a transient client, so a failed or unsaved
    login never disturbs the stored session for the URL.
    """
    url = get_pocketbase_url(base_url)
    transient = store.new_client(url)
    if admin:
        result = authenticate_admin(credentials, client=transient)
    else:
        result = authenticate_user(credentials, collection, client=transient)

    if save_session:
        session = store.new_client(url)
        session.save_auth(result.token, result.user)
        store.put(url, session)
        logger.info("Saved %s session for %s", "admin" if admin else "user", url)
    return result


# =============================================================================
# Credential slot queries
# =============================================================================
def logout(client: PocketBaseClient) -> None:
    """Clear the credential slot.  Safe to call when already logged out."""
    client.clear_auth()


def is_authenticated(client: PocketBaseClient) -> bool:
    return client.auth_store.is_valid


def get_token(client: PocketBaseClient) -> str | None:
    if not client.auth_store.is_valid:
        return None
    return client.auth_store.token or None


def get_current_user(client: PocketBaseClient) -> dict[str, Any] | None:
    """The cached identity, or None when not authenticated or token-only."""
    token, record = client.snapshot_auth()
    if not token or not client.auth_store.is_valid or not record:
        return None

    is_admin = record.get("collectionName") == SUPERUSERS_COLLECTION or record.get("isAdmin") is True
    user = {
        "id": record.get("id"),
        "email": record.get("email"),
        "isAdmin": is_admin,
        "verified": True if is_admin else bool(record.get("verified", False)),
    }
    if not is_admin:
        extra = _extract_user_fields(record)
        extra.pop("isAdmin", None)
        user.update(extra)
    return user


def get_auth_status(client: PocketBaseClient) -> dict[str, Any]:
    authenticated = is_authenticated(client)
    return {
        "isAuthenticated": authenticated,
        "user": get_current_user(client),
        "token": client.auth_store.token if authenticated else None,
    }


def admin_status(client: PocketBaseClient) -> AdminStatus:
    token, record = client.snapshot_auth()
    if not token:
        return AdminStatus.ANONYMOUS
    if record:
        if record.get("collectionName") == SUPERUSERS_COLLECTION or record.get("isAdmin") is True:
            return AdminStatus.KNOWN_ADMIN
        return AdminStatus.KNOWN_NON_ADMIN
    return AdminStatus.UNVERIFIED


def is_admin_authenticated(client: PocketBaseClient) -> bool:
    """True for a known admin AND for an unverified bare token."""
    return admin_status(client) in (AdminStatus.KNOWN_ADMIN, AdminStatus.UNVERIFIED)
