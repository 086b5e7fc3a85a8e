# =============================================================================
# core/users.py  —  User Service
# =============================================================================
#
# Same five operations as the Record Service, scoped to an auth collection
# (default "users").  The only difference is the item shape: a user always
# carries email, emailVisibility and verified, even when the backend hides
# them (e.g. emailVisibility=false for a non-owner), so callers never have
# to test for their presence.
#
# Permissions are PocketBase's business: listing other users as a regular
# user simply returns what the collection's listRule allows.
# =============================================================================

from typing import Any

from pocketbase_mcp.core.client import PocketBaseClient
from pocketbase_mcp.core.models import QueryOptions
from pocketbase_mcp.core.records import (
    RECORD_SYSTEM_FIELDS,
    extract_record_fields,
    full_list_response,
    paged_response,
)

DEFAULT_USERS_COLLECTION = "users"

USER_SYSTEM_FIELDS = RECORD_SYSTEM_FIELDS + ("email", "emailVisibility", "verified")


def transform_user(record: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": record.get("id"),
        "collectionId": record.get("collectionId"),
        "collectionName": record.get("collectionName"),
        "email": record.get("email") or "",
        "emailVisibility": bool(record.get("emailVisibility", False)),
        "verified": bool(record.get("verified", False)),
        "created": record.get("created"),
        "updated": record.get("updated"),
        **extract_record_fields(record, USER_SYSTEM_FIELDS),
    }


def _view_params(options: QueryOptions) -> dict[str, Any]:
    return {k: v for k, v in options.to_params(paged=False).items() if k in ("expand", "fields")}


def list_users(
    client: PocketBaseClient,
    collection: str = DEFAULT_USERS_COLLECTION,
    options: QueryOptions | None = None,
) -> dict[str, Any]:
    options = options or QueryOptions()
    result = client.get_list(
        collection, options.page, options.perPage, options.to_params(paged=False), options.headers
    )
    return paged_response(result, transform_user)


def get_all_users(
    client: PocketBaseClient,
    collection: str = DEFAULT_USERS_COLLECTION,
    options: QueryOptions | None = None,
) -> dict[str, Any]:
    options = options or QueryOptions()
    items = client.get_full_list(collection, options.to_params(paged=False), options.headers)
    return full_list_response(items, transform_user)


def get_user(
    client: PocketBaseClient,
    collection: str,
    user_id: str,
    options: QueryOptions | None = None,
) -> dict[str, Any]:
    options = options or QueryOptions()
    record = client.get_one(collection, user_id, _view_params(options), options.headers)
    return {"success": True, "user": transform_user(record)}


def create_user(
    client: PocketBaseClient,
    collection: str,
    data: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Create a user.  ``data`` must hold email, password and passwordConfirm."""
    record = client.create(collection, data, headers=headers)
    return {"success": True, "user": transform_user(record)}


def update_user(
    client: PocketBaseClient,
    collection: str,
    user_id: str,
    data: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    record = client.update(collection, user_id, data, headers=headers)
    return {"success": True, "user": transform_user(record)}


def delete_user(
    client: PocketBaseClient,
    collection: str,
    user_id: str,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    client.delete(collection, user_id, headers=headers)
    return {"success": True}
