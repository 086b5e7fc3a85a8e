# =============================================================================
# core/records.py  —  Record Service
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   CRUD over the records of any collection.  No client-side validation:
#   data goes straight to PocketBase, whose own schema and API rules decide,
#   and whatever it rejects comes back as a ClientResponseError.
#
# FIELD SHAPING:
#   Every item carries the system fields (id, collectionId, collectionName,
#   created, updated) first, then every other field the backend returned,
#   verbatim.  Keys starting with "_" are dropped; "expand" is kept.
#
# FILTER / SORT:
#   Passed through untouched; this layer never parses PocketBase's filter
#   grammar.
# =============================================================================

from typing import Any

from pocketbase_mcp.core.client import PocketBaseClient
from pocketbase_mcp.core.errors import ClientResponseError
from pocketbase_mcp.core.models import QueryOptions

RECORD_SYSTEM_FIELDS = ("id", "collectionId", "collectionName", "created", "updated")


def extract_record_fields(record: dict[str, Any], system_fields=RECORD_SYSTEM_FIELDS) -> dict[str, Any]:
    """Everything but the system fields and "_"-prefixed keys."""
    fields = {
        key: value
        for key, value in record.items()
        if key not in system_fields and key != "expand" and not key.startswith("_")
    }
    if record.get("expand"):
        fields["expand"] = record["expand"]
    return fields


def transform_record(record: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": record.get("id"),
        "collectionId": record.get("collectionId"),
        "collectionName": record.get("collectionName"),
        "created": record.get("created"),
        "updated": record.get("updated"),
        **extract_record_fields(record),
    }


def paged_response(result: dict[str, Any], transform) -> dict[str, Any]:
    return {
        "success": True,
        "page": result.get("page", 1),
        "perPage": result.get("perPage", 0),
        "totalItems": result.get("totalItems", 0),
        "totalPages": result.get("totalPages", 0),
        "items": [transform(item) for item in result.get("items") or []],
    }


def full_list_response(items: list[dict[str, Any]], transform) -> dict[str, Any]:
    return {
        "success": True,
        "page": 1,
        "perPage": len(items),
        "totalItems": len(items),
        "totalPages": 1,
        "items": [transform(item) for item in items],
    }


# =============================================================================
# PUBLIC API
# =============================================================================
def list_records(
    client: PocketBaseClient,
    collection: str,
    options: QueryOptions | None = None,
) -> dict[str, Any]:
    """One page of records.

    Args:
        client: Handle whose credential is used.
        collection: Collection name or id.
        options: filter / sort / page / perPage / expand / fields / headers.

    Returns:
        ``{"success", "page", "perPage", "totalItems", "totalPages", "items"}``
    """
    options = options or QueryOptions()
    params = options.to_params(paged=False)
    result = client.get_list(collection, options.page, options.perPage, params, options.headers)
    return paged_response(result, transform_record)


def get_all_records(
    client: PocketBaseClient,
    collection: str,
    options: QueryOptions | None = None,
) -> dict[str, Any]:
    """Every matching record; paging options are ignored."""
    options = options or QueryOptions()
    items = client.get_full_list(collection, options.to_params(paged=False), options.headers)
    return full_list_response(items, transform_record)


def get_record(
    client: PocketBaseClient,
    collection: str,
    record_id: str,
    options: QueryOptions | None = None,
) -> dict[str, Any]:
    options = options or QueryOptions()
    params = {k: v for k, v in options.to_params(paged=False).items() if k in ("expand", "fields")}
    record = client.get_one(collection, record_id, params, options.headers)
    return {"success": True, "record": transform_record(record)}


def create_record(
    client: PocketBaseClient,
    collection: str,
    data: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    record = client.create(collection, data, headers=headers)
    return {"success": True, "record": transform_record(record)}


def update_record(
    client: PocketBaseClient,
    collection: str,
    record_id: str,
    data: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    record = client.update(collection, record_id, data, headers=headers)
    return {"success": True, "record": transform_record(record)}


def delete_record(
    client: PocketBaseClient,
    collection: str,
    record_id: str,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    client.delete(collection, record_id, headers=headers)
    return {"success": True}


def get_first_record(
    client: PocketBaseClient,
    collection: str,
    filter: str,
    options: QueryOptions | None = None,
) -> dict[str, Any] | None:
    """The first record matching ``filter``, or None when nothing matches."""
    options = options or QueryOptions()
    params = {k: v for k, v in options.to_params(paged=False).items() if k in ("expand", "fields")}
    try:
        record = client.get_first_list_item(collection, filter, params, options.headers)
    except ClientResponseError as exc:
        if exc.status == 404:
            return None
        raise
    return {"success": True, "record": transform_record(record)}
