# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines every MCP tool a model can call against PocketBase.  Each tool
#   is a thin wrapper around a core/ function: it picks the client (and so
#   the credential) for the call, runs the service, and renders the result.
#
# HOW A CALL FLOWS:
#   1. The model calls a tool by name (e.g. "list_records")
#   2. FastMCP routes the call to the decorated function below
#   3. The function asks the SessionStore for a client:
#        adminToken param  >  stored session  >  POCKETBASE_ADMIN_TOKEN
#   4. The core/ service does the HTTP work and returns an envelope dict
#   5. ANY exception is caught here and turned into the failure envelope
#      by handle_error(); no exception ever escapes a tool
#   6. The envelope is rendered by format_output() (JSON or YAML)
#
# TOOL GROUPS:
#   - auth:         authenticate_admin, authenticate_user, logout, check_auth_status
#   - collections:  list / get / create / update / delete_collection
#                   (always need a credential; mutations are admin-only)
#   - records:      list / get / create / update / delete_record
#   - users:        list / get / create / update / delete_user
#   - files:        get_file_urls
#   - escape hatch: send_custom_request
#
#   Record, user, file and custom tools fall back to an anonymous client
#   when no credential is available: PocketBase's API rules decide what an
#   anonymous caller may see.
#
# PARAMETER NAMES:
#   camelCase (baseUrl, adminToken, perPage, ...) because they are the
#   public tool contract that clients and models already use.
#
# RUNNING THIS SERVER:
#   a) Via the entry point:  pocketbase-mcp   (or: python main.py)
#   b) Standalone:           python -m pocketbase_mcp.tools.mcp_server
# =============================================================================

import json
import logging
import sys
from typing import Any, Literal

from fastmcp import FastMCP

# The tools layer depends on core/ and nothing else.
from pocketbase_mcp.core import auth, collections, files, records, users
from pocketbase_mcp.core.client import PocketBaseClient
from pocketbase_mcp.core.config import get_log_level
from pocketbase_mcp.core.errors import FileError, handle_error
from pocketbase_mcp.core.models import (
    UNSET,
    AuthCredentials,
    CollectionSchema,
    CollectionUpdate,
    QueryOptions,
    SchemaField,
)
from pocketbase_mcp.core.output import format_output
from pocketbase_mcp.core.session_store import default_store
from pocketbase_mcp.tools.prompts import register_prompts

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because MCP talks over STDOUT (stdio transport).  A log
# line on stdout would corrupt the JSON-RPC stream.
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for response envelopes
#     - YELLOW for intermediate status messages
#
# SECRETS:
#   Passwords and tokens never reach the log.  Request parameters and
#   response envelopes go through _mask() first.
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

_SECRET_KEYS = {"password", "passwordConfirm", "oldPassword", "adminToken", "token", "Authorization"}


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: ("***" if k in _SECRET_KEYS and v else _mask(v))
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_mask(v) for v in value]
    return value


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its (masked) parameters in CYAN."""
    shown = _mask({k: v for k, v in params.items() if v is not None})
    param_str = ", ".join(f"{k}={v!r}" for k, v in shown.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> str:
    """Log the envelope as compact JSON in GREEN, then render it."""
    compact = json.dumps(_mask(result), separators=(",", ":"), default=str)
    logging.info(f"{_GREEN}  ← {tool_name} response: {compact}{_RESET}")
    return format_output(result)


def _failure(tool_name: str, exc: Exception, context: str | None = None) -> dict:
    envelope = handle_error(exc, context)
    _log_status(f"{tool_name} failed: {envelope['code']}")
    return envelope


def _client(
    admin_token: str | None,
    base_url: str | None,
    require_credential: bool = False,
) -> PocketBaseClient:
    return default_store().client_for_call(admin_token, base_url, require_credential)


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP("pocketbase-mcp")


# =============================================================================
# AUTHENTICATION TOOLS
# =============================================================================
# authenticate_* store the session per base URL (unless saveSession=False).
# Every later tool call against that URL uses it until logout, unless the
# call passes its own adminToken.
# =============================================================================
@mcp.tool()
def authenticate_admin(
    email: str,
    password: str,
    baseUrl: str | None = None,
    saveSession: bool = True,
) -> str:
    """Authenticate with PocketBase as an admin (superuser).

    Admin credentials give full access to all collections, users and settings.

    Args:
        email: Admin email address.
        password: Admin password.
        baseUrl: PocketBase base URL (or POCKETBASE_URL, default http://127.0.0.1:8090).
        saveSession: Keep the session for subsequent calls (default True).  Set
            to False to get a token without replacing the current session.

    Returns:
        {success, message, token, user, sessionSaved}
    """
    _log_request("authenticate_admin", email=email, password=password, baseUrl=baseUrl, saveSession=saveSession)
    try:
        result = auth.login(
            default_store(),
            AuthCredentials(email, password),
            admin=True,
            base_url=baseUrl,
            save_session=saveSession,
        )
        envelope = {
            "success": True,
            "message": "Successfully authenticated as admin "
            + ("(session saved)" if saveSession else "(session not saved)"),
            "token": result.token,
            "user": result.user,
            "sessionSaved": saveSession,
        }
    except Exception as exc:
        envelope = _failure("authenticate_admin", exc)
    return _log_response("authenticate_admin", envelope)


@mcp.tool()
def authenticate_user(
    email: str,
    password: str,
    collection: str = "users",
    baseUrl: str | None = None,
    saveSession: bool = True,
) -> str:
    """Authenticate with PocketBase as a regular user of an auth collection.

    User permissions are decided by the collections' API rules.

    Args:
        email: User email address.
        password: User password.
        collection: Auth collection name (default "users").
        baseUrl: PocketBase base URL.
        saveSession: Keep the session for subsequent calls (default True).

    Returns:
        {success, message, token, user, sessionSaved}; user.isAdmin is False.
    """
    _log_request("authenticate_user", email=email, password=password, collection=collection, baseUrl=baseUrl)
    try:
        result = auth.login(
            default_store(),
            AuthCredentials(email, password),
            admin=False,
            base_url=baseUrl,
            collection=collection,
            save_session=saveSession,
        )
        envelope = {
            "success": True,
            "message": "Successfully authenticated as user "
            + ("(session saved)" if saveSession else "(session not saved)"),
            "token": result.token,
            "user": result.user,
            "sessionSaved": saveSession,
        }
    except Exception as exc:
        envelope = _failure("authenticate_user", exc)
    return _log_response("authenticate_user", envelope)


@mcp.tool()
def logout(baseUrl: str | None = None) -> str:
    """Clear the stored PocketBase session for a base URL.

    Returns:
        {success, message, wasAuthenticated}
    """
    _log_request("logout", baseUrl=baseUrl)
    try:
        client = default_store().resolve(baseUrl)
        was_authenticated = auth.is_authenticated(client)
        auth.logout(client)
        envelope = {
            "success": True,
            "message": "Successfully logged out" if was_authenticated else "No active session to logout from",
            "wasAuthenticated": was_authenticated,
        }
    except Exception as exc:
        envelope = _failure("logout", exc)
    return _log_response("logout", envelope)


@mcp.tool()
def check_auth_status(baseUrl: str | None = None) -> str:
    """Report whether a valid session is stored for a base URL, and for whom.

    Returns:
        {success, isAuthenticated, user, hasToken}
    """
    _log_request("check_auth_status", baseUrl=baseUrl)
    try:
        status = auth.get_auth_status(default_store().resolve(baseUrl))
        envelope = {
            "success": True,
            "isAuthenticated": status["isAuthenticated"],
            "user": status["user"],
            "hasToken": status["token"] is not None,
        }
    except Exception as exc:
        envelope = _failure("check_auth_status", exc)
    return _log_response("check_auth_status", envelope)


# =============================================================================
# COLLECTION TOOLS
# =============================================================================
# All five need a credential.  Mutations also pass the privilege gate in
# core/collections.py: a session known to belong to a regular user fails
# with FORBIDDEN before any request is made.
# =============================================================================
@mcp.tool()
def list_collections(adminToken: str | None = None, baseUrl: str | None = None) -> str:
    """List all PocketBase collections with their type and timestamps.

    Returns:
        {success, collections: [{id, name, type, created, updated}]}
    """
    _log_request("list_collections", adminToken=adminToken, baseUrl=baseUrl)
    try:
        client = _client(adminToken, baseUrl, require_credential=True)
        envelope = collections.list_collections(client)
        _log_status(f"{len(envelope['collections'])} collections")
    except Exception as exc:
        envelope = _failure("list_collections", exc, "Failed to list collections")
    return _log_response("list_collections", envelope)


@mcp.tool()
def get_collection(
    collectionName: str,
    adminToken: str | None = None,
    baseUrl: str | None = None,
) -> str:
    """Get one collection's full definition: schema fields, options and the
    five access rules (listRule, viewRule, createRule, updateRule, deleteRule).

    Args:
        collectionName: Name or ID of the collection.
    """
    _log_request("get_collection", collectionName=collectionName, adminToken=adminToken, baseUrl=baseUrl)
    try:
        client = _client(adminToken, baseUrl, require_credential=True)
        envelope = collections.get_collection(client, collectionName)
    except Exception as exc:
        envelope = _failure("get_collection", exc, f"Failed to get collection '{collectionName}'")
    return _log_response("get_collection", envelope)


@mcp.tool()
def create_collection(
    name: str,
    type: Literal["base", "auth", "view"],
    schema: list[dict[str, Any]],
    listRule: str | None = None,
    viewRule: str | None = None,
    createRule: str | None = None,
    updateRule: str | None = None,
    deleteRule: str | None = None,
    options: dict[str, Any] | None = None,
    adminToken: str | None = None,
    baseUrl: str | None = None,
) -> str:
    """Create a new collection.  Requires admin authentication.

    The definition is validated first and EVERY problem is reported at once.

    Args:
        name: 3-100 chars, starts with a letter, letters/numbers/underscores only.
        type: "base" for data, "auth" for users, "view" for a SQL view.
        schema: Field definitions: [{name, type, required, options?}].  Field
            types: text, number, bool, email, url, date, select, file,
            relation, json, editor, autodate.  Ignored for views.
        listRule..deleteRule: Access rules.  null = admin only, "" = public.
        options: Extra options; views need {"query": "SELECT ..."}.
    """
    _log_request("create_collection", name=name, type=type, fields=len(schema or []), adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl, require_credential=True)
        definition = CollectionSchema(
            name=name,
            type=type,
            schema=[SchemaField.from_dict(f) for f in schema or []],
            listRule=listRule,
            viewRule=viewRule,
            createRule=createRule,
            updateRule=updateRule,
            deleteRule=deleteRule,
            options=options,
        )
        envelope = collections.create_collection(client, definition)
    except Exception as exc:
        envelope = _failure("create_collection", exc, f"Failed to create collection '{name}'")
    return _log_response("create_collection", envelope)


@mcp.tool()
def update_collection(
    collectionName: str,
    name: str | None = None,
    type: Literal["base", "auth", "view"] | None = None,
    schema: list[dict[str, Any]] | None = None,
    listRule: str | None = UNSET,
    viewRule: str | None = UNSET,
    createRule: str | None = UNSET,
    updateRule: str | None = UNSET,
    deleteRule: str | None = UNSET,
    options: dict[str, Any] | None = None,
    adminToken: str | None = None,
    baseUrl: str | None = None,
) -> str:
    """Update an existing collection.  Requires admin authentication.

    Only the attributes you pass are changed.  A new schema REPLACES the
    existing field list.

    Args:
        collectionName: Name or ID of the collection to update.
        listRule..deleteRule: Left out = unchanged, null = admin only,
            "" = public.
    """
    _log_request("update_collection", collectionName=collectionName, name=name, type=type, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl, require_credential=True)
        update = CollectionUpdate(
            name=UNSET if name is None else name,
            type=UNSET if type is None else type,
            schema=UNSET if schema is None else [SchemaField.from_dict(f) for f in schema],
            listRule=listRule,
            viewRule=viewRule,
            createRule=createRule,
            updateRule=updateRule,
            deleteRule=deleteRule,
            options=UNSET if options is None else options,
        )
        envelope = collections.update_collection(client, collectionName, update)
    except Exception as exc:
        envelope = _failure("update_collection", exc, f"Failed to update collection '{collectionName}'")
    return _log_response("update_collection", envelope)


@mcp.tool()
def delete_collection(
    collectionName: str,
    adminToken: str | None = None,
    baseUrl: str | None = None,
) -> str:
    """Delete a collection AND all of its records.  Requires admin authentication."""
    _log_request("delete_collection", collectionName=collectionName, adminToken=adminToken, baseUrl=baseUrl)
    try:
        client = _client(adminToken, baseUrl, require_credential=True)
        envelope = {
            **collections.delete_collection(client, collectionName),
            "message": f"Collection '{collectionName}' has been deleted",
        }
    except Exception as exc:
        envelope = _failure("delete_collection", exc, f"Failed to delete collection '{collectionName}'")
    return _log_response("delete_collection", envelope)


# =============================================================================
# RECORD TOOLS
# =============================================================================
# filter / sort are PocketBase syntax, passed through as-is.  headers are
# forwarded verbatim on the underlying request.
# =============================================================================
@mcp.tool()
def list_records(
    collection: str,
    filter: str | None = None,
    sort: str | None = None,
    page: int = 1,
    perPage: int = 30,
    expand: str | None = None,
    fields: str | None = None,
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """List records of a collection with optional filter, sort and paging.

    Args:
        collection: Collection name or ID.
        filter: PocketBase filter, e.g. "status='active' && created>'2024-01-01'".
        sort: e.g. "-created,title" (newest first, then by title).
        page: 1-based page number (default 1).
        perPage: Page size (default 30, max 500).
        expand: Relations to expand, e.g. "author,comments".
        fields: Fields to return, e.g. "id,title,created".
        headers: Extra HTTP headers for the request.

    Returns:
        {success, page, perPage, totalItems, totalPages, items}
    """
    _log_request("list_records", collection=collection, filter=filter, sort=sort,
                 page=page, perPage=perPage, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        options = QueryOptions(filter=filter, sort=sort, page=page, perPage=perPage,
                               expand=expand, fields=fields, headers=headers)
        envelope = records.list_records(client, collection, options)
        _log_status(f"page {envelope['page']}/{envelope['totalPages']}, {len(envelope['items'])} items")
    except Exception as exc:
        envelope = _failure("list_records", exc, f"Failed to list records from '{collection}'")
    return _log_response("list_records", envelope)


@mcp.tool()
def get_record(
    collection: str,
    id: str,
    expand: str | None = None,
    fields: str | None = None,
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Get one record by ID with all of its fields."""
    _log_request("get_record", collection=collection, id=id, expand=expand, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        options = QueryOptions(expand=expand, fields=fields, headers=headers)
        envelope = records.get_record(client, collection, id, options)
    except Exception as exc:
        envelope = _failure("get_record", exc, f"Failed to get record '{id}' from '{collection}'")
    return _log_response("get_record", envelope)


@mcp.tool()
def create_record(
    collection: str,
    data: dict[str, Any],
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Create a record.  PocketBase validates data against the collection schema.

    Returns:
        {success, record} with the assigned id.
    """
    _log_request("create_record", collection=collection, data=data, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        envelope = records.create_record(client, collection, data, headers)
    except Exception as exc:
        envelope = _failure("create_record", exc, f"Failed to create record in '{collection}'")
    return _log_response("create_record", envelope)


@mcp.tool()
def update_record(
    collection: str,
    id: str,
    data: dict[str, Any],
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Update a record.  Only the fields present in data are changed."""
    _log_request("update_record", collection=collection, id=id, data=data, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        envelope = records.update_record(client, collection, id, data, headers)
    except Exception as exc:
        envelope = _failure("update_record", exc, f"Failed to update record '{id}' in '{collection}'")
    return _log_response("update_record", envelope)


@mcp.tool()
def delete_record(
    collection: str,
    id: str,
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Delete a record and any files attached to it."""
    _log_request("delete_record", collection=collection, id=id, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        envelope = {
            **records.delete_record(client, collection, id, headers),
            "message": f"Record '{id}' has been deleted from '{collection}'",
        }
    except Exception as exc:
        envelope = _failure("delete_record", exc, f"Failed to delete record '{id}' from '{collection}'")
    return _log_response("delete_record", envelope)


# =============================================================================
# USER TOOLS
# =============================================================================
# Same shapes as the record tools, scoped to an auth collection.  User items
# always carry email, emailVisibility and verified.
# =============================================================================
@mcp.tool()
def list_users(
    collection: str = "users",
    filter: str | None = None,
    sort: str | None = None,
    page: int = 1,
    perPage: int = 30,
    expand: str | None = None,
    fields: str | None = None,
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """List users of an auth collection (default "users") with paging.

    Returns:
        {success, page, perPage, totalItems, totalPages, items}
    """
    _log_request("list_users", collection=collection, filter=filter, page=page, perPage=perPage,
                 adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        options = QueryOptions(filter=filter, sort=sort, page=page, perPage=perPage,
                               expand=expand, fields=fields, headers=headers)
        envelope = users.list_users(client, collection, options)
    except Exception as exc:
        envelope = _failure("list_users", exc, f"Failed to list users from '{collection}'")
    return _log_response("list_users", envelope)


@mcp.tool()
def get_user(
    id: str,
    collection: str = "users",
    expand: str | None = None,
    fields: str | None = None,
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Get one user by ID from an auth collection."""
    _log_request("get_user", collection=collection, id=id, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        envelope = users.get_user(client, collection, id, QueryOptions(expand=expand, fields=fields, headers=headers))
    except Exception as exc:
        envelope = _failure("get_user", exc, f"Failed to get user '{id}' from '{collection}'")
    return _log_response("get_user", envelope)


@mcp.tool()
def create_user(
    email: str,
    password: str,
    passwordConfirm: str,
    collection: str = "users",
    emailVisibility: bool | None = None,
    verified: bool | None = None,
    name: str | None = None,
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Create a user in an auth collection.

    Args:
        email: User email address.
        password: At least 8 characters.
        passwordConfirm: Must match password.
        emailVisibility: Whether other users can see the email (default False).
        verified: Mark the user as verified (admin only).
        name: Display name.
    """
    _log_request("create_user", collection=collection, email=email, password=password,
                 passwordConfirm=passwordConfirm, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        data = {"email": email, "password": password, "passwordConfirm": passwordConfirm}
        for key, value in (("emailVisibility", emailVisibility), ("verified", verified), ("name", name)):
            if value is not None:
                data[key] = value
        envelope = users.create_user(client, collection, data, headers)
    except Exception as exc:
        envelope = _failure("create_user", exc, f"Failed to create user in '{collection}'")
    return _log_response("create_user", envelope)


@mcp.tool()
def update_user(
    id: str,
    collection: str = "users",
    email: str | None = None,
    password: str | None = None,
    passwordConfirm: str | None = None,
    oldPassword: str | None = None,
    emailVisibility: bool | None = None,
    verified: bool | None = None,
    name: str | None = None,
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Update a user.  Only the attributes you pass are changed.

    Args:
        oldPassword: Current password; required when a non-admin changes
            their own password.
    """
    _log_request("update_user", collection=collection, id=id, password=password, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        candidates = {
            "email": email,
            "password": password,
            "passwordConfirm": passwordConfirm,
            "oldPassword": oldPassword,
            "emailVisibility": emailVisibility,
            "verified": verified,
            "name": name,
        }
        data = {k: v for k, v in candidates.items() if v is not None}
        envelope = users.update_user(client, collection, id, data, headers)
    except Exception as exc:
        envelope = _failure("update_user", exc, f"Failed to update user '{id}' in '{collection}'")
    return _log_response("update_user", envelope)


@mcp.tool()
def delete_user(
    id: str,
    collection: str = "users",
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Permanently delete a user account."""
    _log_request("delete_user", collection=collection, id=id, adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        envelope = {
            **users.delete_user(client, collection, id, headers),
            "message": f"User '{id}' has been deleted from '{collection}'",
        }
    except Exception as exc:
        envelope = _failure("delete_user", exc, f"Failed to delete user '{id}' from '{collection}'")
    return _log_response("delete_user", envelope)


# =============================================================================
# FILE TOOL
# =============================================================================
# Fetches the record, then builds URLs for its files.  Nothing is
# downloaded; the model gets links it can hand to the user.
# =============================================================================
@mcp.tool()
def get_file_urls(
    collection: str,
    id: str,
    field: str | None = None,
    fileFields: list[str] | None = None,
    withToken: bool = False,
    thumb: str | None = None,
    adminToken: str | None = None,
    baseUrl: str | None = None,
    headers: dict[str, str] | None = None,
) -> str:
    """Get download URLs for the files attached to a record.

    Args:
        collection: Collection name or ID.
        id: Record ID.
        field: Only this file field.  Without it, file fields are detected
            automatically (or taken from fileFields).
        fileFields: Explicit list of file field names to use.
        withToken: Append the current token (?token=) for protected files.
        thumb: Thumbnail size for images, e.g. "100x100".

    Returns:
        {success, files: [{url, filename, field}], collectionId, recordId}
    """
    _log_request("get_file_urls", collection=collection, id=id, field=field, withToken=withToken,
                 adminToken=adminToken)
    try:
        client = _client(adminToken, baseUrl)
        record = client.get_one(collection, id, headers=headers)
        if field:
            envelope = files.get_field_file_urls(client, record, field, withToken, thumb)
        else:
            envelope = files.get_all_file_urls(client, record, fileFields, withToken, thumb)
        _log_status(f"{len(envelope['files'])} file URLs")
    except FileError as exc:
        envelope = files.handle_file_error(exc)
        _log_status(f"get_file_urls failed: {envelope['code']}")
    except Exception as exc:
        envelope = _failure("get_file_urls", exc, f"Failed to get file URLs for record '{id}' in '{collection}'")
    return _log_response("get_file_urls", envelope)


# =============================================================================
# ESCAPE HATCH: send_custom_request
# =============================================================================
# Any PocketBase endpoint the other tools do not cover (settings, backups,
# logs, realtime subscriptions setup, ...) through the same credential
# resolution as everything else.
# =============================================================================
_BODY_METHODS = ("POST", "PUT", "PATCH")


@mcp.tool()
def send_custom_request(
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"],
    endpoint: str,
    body: Any = None,
    queryParams: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    baseUrl: str | None = None,
    adminToken: str | None = None,
) -> str:
    """Send a raw HTTP request to any PocketBase API endpoint.

    Works for admins, regular users and anonymous callers alike, using the
    current session unless adminToken is given.

    Args:
        method: HTTP method.
        endpoint: API path, e.g. "/api/collections/posts/records" or "/api/health".
        body: Request body for POST/PUT/PATCH (sent as JSON unless it is a string).
        queryParams: URL query parameters.
        headers: Extra HTTP headers.

    Returns:
        {success, method, endpoint, statusCode, data, headers}
    """
    _log_request("send_custom_request", method=method, endpoint=endpoint, adminToken=adminToken, baseUrl=baseUrl)
    try:
        client = _client(adminToken, baseUrl)
        path = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        status, data, response_headers = client.send_raw(
            path,
            method,
            params=queryParams,
            body=body if method in _BODY_METHODS else None,
            headers=headers,
        )
        _log_status(f"{method} {path} → {status}")
        envelope = {
            "success": True,
            "method": method,
            "endpoint": endpoint,
            "statusCode": status,
            "data": data,
            "headers": response_headers,
        }
    except Exception as exc:
        envelope = {**_failure("send_custom_request", exc), "method": method, "endpoint": endpoint}
    return _log_response("send_custom_request", envelope)


register_prompts(mcp)


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    mcp.run()
