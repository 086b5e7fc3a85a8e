# =============================================================================
# core/collections.py  —  Collection Service & schema validation
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   List / get / create / update / delete PocketBase collections, with two
#   client-side checks that run BEFORE any network call on mutations:
#
#   1. PRIVILEGE GATE (auth.admin_status):
#        ANONYMOUS        → AuthRequiredError   (nothing to send)
#        KNOWN_NON_ADMIN  → ForbiddenError      (logged-in regular user)
#        UNVERIFIED       → go ahead, the backend decides
#        KNOWN_ADMIN      → go ahead
#      PocketBase enforces the same rule; the gate only fails earlier.
#
#   2. SCHEMA VALIDATION: name pattern/length/reserved names, field names,
#      field types, the "required" flag, duplicate field names, and the
#      view-collection query.  Every violation is collected and reported
#      in ONE ValidationError; we never stop at the first problem.
#
# NAMING:
#   PocketBase calls a collection's field list "fields"; the tools expose it
#   as "schema".  Translation happens here in both directions.
# =============================================================================

import re
from typing import Any

from pocketbase_mcp.core.auth import admin_status
from pocketbase_mcp.core.client import PocketBaseClient
from pocketbase_mcp.core.errors import AuthRequiredError, ForbiddenError, ValidationError
from pocketbase_mcp.core.models import (
    AdminStatus,
    CollectionSchema,
    CollectionUpdate,
    FieldError,
    SchemaField,
)

VALID_FIELD_TYPES = (
    "text",
    "number",
    "bool",
    "email",
    "url",
    "date",
    "select",
    "file",
    "relation",
    "json",
    "editor",
    "autodate",
)

VALID_COLLECTION_TYPES = ("base", "auth", "view")

RESERVED_COLLECTION_NAMES = ("_superusers", "_authOrigins", "_externalAuths", "_mfas", "_otps")

_IDENTIFIER = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")

ADMIN_REQUIRED_MESSAGE = "Admin authentication required for collection management"


# =============================================================================
# Validation
# =============================================================================
def validate_collection_name(name: Any) -> list[FieldError]:
    if not name or not isinstance(name, str):
        return [FieldError("name", "required", "Collection name is required")]

    errors: list[FieldError] = []
    if len(name) < 3:
        errors.append(FieldError("name", "min_length", "Collection name must be at least 3 characters"))
    if len(name) > 100:
        errors.append(FieldError("name", "max_length", "Collection name must be at most 100 characters"))
    if not _IDENTIFIER.match(name):
        errors.append(FieldError(
            "name",
            "invalid_format",
            "Collection name must start with a letter and contain only letters, numbers, and underscores",
        ))
    if name in RESERVED_COLLECTION_NAMES:
        errors.append(FieldError("name", "reserved", f"Collection name '{name}' is reserved"))
    return errors


def validate_collection_type(collection_type: Any) -> list[FieldError]:
    if collection_type not in VALID_COLLECTION_TYPES:
        return [FieldError("type", "invalid_type", "Collection type must be 'base', 'auth', or 'view'")]
    return []


def validate_schema_field(field: SchemaField, index: int) -> list[FieldError]:
    errors: list[FieldError] = []
    prefix = f"schema[{index}]"

    if not field.name or not isinstance(field.name, str):
        errors.append(FieldError(f"{prefix}.name", "required", f"Field name is required at index {index}"))
    elif not _IDENTIFIER.match(field.name):
        errors.append(FieldError(
            f"{prefix}.name",
            "invalid_format",
            f"Field name '{field.name}' must start with a letter and contain only "
            "letters, numbers, and underscores",
        ))

    if not field.type or not isinstance(field.type, str):
        errors.append(FieldError(f"{prefix}.type", "required", f"Field type is required at index {index}"))
    elif field.type not in VALID_FIELD_TYPES:
        errors.append(FieldError(
            f"{prefix}.type",
            "invalid_type",
            f"Invalid field type '{field.type}'. Valid types: {', '.join(VALID_FIELD_TYPES)}",
        ))

    if not isinstance(field.required, bool):
        errors.append(FieldError(
            f"{prefix}.required",
            "invalid_type",
            f"Field 'required' must be a boolean at index {index}",
        ))
    return errors


def validate_schema_fields(fields: Any) -> list[FieldError]:
    """Per-field checks plus case-sensitive duplicate-name detection."""
    if not isinstance(fields, list):
        return [FieldError("schema", "required", "Schema fields array is required")]

    errors: list[FieldError] = []
    seen: set[str] = set()
    for index, field in enumerate(fields):
        errors.extend(validate_schema_field(field, index))
        if isinstance(field.name, str) and field.name:
            if field.name in seen:
                errors.append(FieldError(
                    f"schema[{index}].name",
                    "duplicate",
                    f"Duplicate field name '{field.name}'",
                ))
            seen.add(field.name)
    return errors


def validate_collection_schema(schema: CollectionSchema) -> list[FieldError]:
    errors = validate_collection_name(schema.name)
    errors.extend(validate_collection_type(schema.type))

    # View collections derive their fields from the SQL query.
    if schema.type == "view":
        if not (schema.options or {}).get("query"):
            errors.append(FieldError(
                "options.query",
                "required",
                "View collections require options.query with a SQL SELECT statement",
            ))
        return errors

    errors.extend(validate_schema_fields(schema.schema))
    return errors


def validate_collection_update(update: CollectionUpdate) -> list[FieldError]:
    provided = update.provided()
    errors: list[FieldError] = []
    if "name" in provided:
        errors.extend(validate_collection_name(provided["name"]))
    if "type" in provided:
        errors.extend(validate_collection_type(provided["type"]))
    if "schema" in provided:
        if not isinstance(provided["schema"], list):
            errors.append(FieldError("schema", "invalid_type", "Schema must be an array"))
        else:
            errors.extend(validate_schema_fields(provided["schema"]))
    return errors


def require_admin(client: PocketBaseClient) -> None:
    """Privilege gate for collection mutations (no network call)."""
    status = admin_status(client)
    if status is AdminStatus.ANONYMOUS:
        raise AuthRequiredError("Authentication is required for collection management")
    if status is AdminStatus.KNOWN_NON_ADMIN:
        raise ForbiddenError(ADMIN_REQUIRED_MESSAGE)


# =============================================================================
# Shaping
# =============================================================================
def _field_to_pocketbase(field: SchemaField) -> dict[str, Any]:
    return {
        "name": field.name,
        "type": field.type,
        "required": field.required,
        "options": field.options or {},
    }


def transform_collection(collection: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": collection.get("id"),
        "name": collection.get("name"),
        "type": collection.get("type"),
        "schema": [
            {
                "id": field.get("id"),
                "name": field.get("name"),
                "type": field.get("type"),
                "required": bool(field.get("required", False)),
                "options": field.get("options"),
            }
            for field in collection.get("fields") or []
        ],
        "listRule": collection.get("listRule"),
        "viewRule": collection.get("viewRule"),
        "createRule": collection.get("createRule"),
        "updateRule": collection.get("updateRule"),
        "deleteRule": collection.get("deleteRule"),
        "created": collection.get("created"),
        "updated": collection.get("updated"),
        "options": collection.get("options"),
    }


def transform_collection_list_item(collection: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": collection.get("id"),
        "name": collection.get("name"),
        "type": collection.get("type"),
        "created": collection.get("created"),
        "updated": collection.get("updated"),
    }


# =============================================================================
# PUBLIC API
# =============================================================================
def list_collections(client: PocketBaseClient) -> dict[str, Any]:
    collections = client.get_collections_full_list()
    return {
        "success": True,
        "collections": [transform_collection_list_item(c) for c in collections],
    }


def get_collection(client: PocketBaseClient, id_or_name: str) -> dict[str, Any]:
    return {"success": True, "collection": transform_collection(client.get_collection(id_or_name))}


def create_collection(client: PocketBaseClient, schema: CollectionSchema) -> dict[str, Any]:
    """Create a collection after the privilege gate and schema validation.

    Raises:
        AuthRequiredError / ForbiddenError: from the gate, before any request.
        ValidationError: every schema violation at once.
        ClientResponseError: the backend rejected the request.
    """
    require_admin(client)

    violations = validate_collection_schema(schema)
    if violations:
        raise ValidationError(violations, "Invalid collection schema")

    body: dict[str, Any] = {
        "name": schema.name,
        "type": schema.type,
        "listRule": schema.listRule,
        "viewRule": schema.viewRule,
    }
    if schema.type == "view":
        body["viewQuery"] = (schema.options or {}).get("query", "")
    else:
        body["fields"] = [_field_to_pocketbase(f) for f in schema.schema or []]
        body["createRule"] = schema.createRule
        body["updateRule"] = schema.updateRule
        body["deleteRule"] = schema.deleteRule
        if schema.options:
            body["options"] = schema.options

    return {"success": True, "collection": transform_collection(client.create_collection(body))}


def update_collection(client: PocketBaseClient, id_or_name: str, update: CollectionUpdate) -> dict[str, Any]:
    """Partial update: only attributes the caller provided are sent."""
    require_admin(client)

    violations = validate_collection_update(update)
    if violations:
        raise ValidationError(violations, "Invalid collection schema update")

    body = update.provided()
    if "schema" in body:
        body["fields"] = [_field_to_pocketbase(f) for f in body.pop("schema")]

    return {"success": True, "collection": transform_collection(client.update_collection(id_or_name, body))}


def delete_collection(client: PocketBaseClient, id_or_name: str) -> dict[str, Any]:
    require_admin(client)
    client.delete_collection(id_or_name)
    return {"success": True}
