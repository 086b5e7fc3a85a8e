# =============================================================================
# core/files.py  —  File URL helper
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   PocketBase serves uploaded files at
#
#       {base}/api/files/{collectionId}/{recordId}/{filename}?thumb=..&token=..
#
#   A file field in a record only holds the filename(s).  These helpers
#   turn a record plus a filename (or a field name, or "every file-looking
#   field") into full URLs.  No request is made; it is pure URL building.
#
# PROTECTED FILES:
#   with_token=True appends the handle's current token as ?token=.  With no
#   token on the handle the parameter is simply left out.
#
# ERRORS:
#   Problems raise FileError, whose code is a FileErrorType (or, for an
#   unexpected failure, the general classification).  A FileError raised
#   by an inner helper propagates untouched, so the outer helper never
#   re-wraps it.  handle_file_error() turns any of them into an envelope.
# =============================================================================

import re
from typing import Any
from urllib.parse import urlsplit

from pocketbase_mcp.core.client import PocketBaseClient
from pocketbase_mcp.core.errors import FileError, FileErrorType, handle_error

_FILE_EXTENSION = re.compile(r"\.[a-zA-Z0-9]{2,5}$")
_FILE_PATH = re.compile(r"^/api/files/[a-zA-Z0-9_]+/[a-zA-Z0-9]+/.+$")

_SKIPPED_FIELDS = ("id", "collectionId", "collectionName", "created", "updated", "expand")
_DEFAULT_PORTS = {"http": 80, "https": 443}

FILE_SUGGESTIONS = {
    FileErrorType.FILE_NOT_FOUND: "Verify that the filename exists in the record and is spelled correctly.",
    FileErrorType.INVALID_FILE_FIELD: "Check that the field name is correct and contains file data.",
    FileErrorType.FILE_ACCESS_DENIED: "Ensure you have proper authentication and permissions to access this file.",
    FileErrorType.FILE_OPERATION_FAILED: "Check the record data and try the operation again.",
}

_FILE_HINT = "If this is a file operation issue, verify the file exists and you have proper permissions."


def create_file_error(error_type: FileErrorType, message: str) -> FileError:
    return FileError(message, code=error_type, suggestion=FILE_SUGGESTIONS[error_type])


def handle_file_error(error: Any, context: str | None = None) -> dict[str, Any]:
    """Envelope for a failed file operation.

    404-ish failures become FILE_NOT_FOUND, 401/403-ish become
    FILE_ACCESS_DENIED; anything else is classified by handle_error() with
    a file hint appended to the suggestion.
    """
    if isinstance(error, FileError):
        code = error.code.value if isinstance(error.code, FileErrorType) else error.code
        return {
            "success": False,
            "error": error.message,
            "code": code,
            "suggestion": error.suggestion or FILE_SUGGESTIONS[FileErrorType.FILE_OPERATION_FAILED],
        }

    status = getattr(error, "status", None)
    message = (getattr(error, "message", None) or str(error) or "").lower()

    if status == 404 or "not found" in message or "does not exist" in message:
        return handle_file_error(create_file_error(
            FileErrorType.FILE_NOT_FOUND,
            f"{context}: File not found" if context else "The requested file was not found",
        ))
    if status in (401, 403) or "unauthorized" in message or "forbidden" in message:
        return handle_file_error(create_file_error(
            FileErrorType.FILE_ACCESS_DENIED,
            f"{context}: Access denied" if context else "Access to the file was denied",
        ))

    response = handle_error(error, context)
    if "file" not in (response.get("suggestion") or ""):
        response["suggestion"] = f"{response.get('suggestion') or ''} {_FILE_HINT}".strip()
    return response


def _as_file_error(error: Exception, context: str) -> FileError:
    envelope = handle_file_error(error, context)
    return FileError(envelope["error"], code=envelope["code"], suggestion=envelope["suggestion"], original_error=error)


def _check_record(record: Any) -> None:
    if (
        not isinstance(record, dict)
        or not record.get("id")
        or not (record.get("collectionId") or record.get("collectionName"))
    ):
        raise create_file_error(
            FileErrorType.FILE_OPERATION_FAILED, "Invalid record: missing id or collectionId"
        )


def _collection_of(record: dict[str, Any]) -> str:
    return record.get("collectionId") or record.get("collectionName")


def _filenames(value: Any, pattern_only: bool = False) -> list[str]:
    if isinstance(value, str):
        candidates = [value]
    elif isinstance(value, list):
        candidates = [v for v in value if isinstance(v, str)]
    else:
        return []
    if pattern_only:
        return [v for v in candidates if _FILE_EXTENSION.search(v)]
    return [v for v in candidates if v]


# =============================================================================
# PUBLIC API
# =============================================================================
def get_file_url(
    client: PocketBaseClient,
    record: dict[str, Any],
    filename: str,
    with_token: bool = False,
    thumb: str | None = None,
) -> dict[str, Any]:
    """Build the URL of one file of ``record``.

    Args:
        client: Handle supplying the base URL (and the token for with_token).
        record: Must carry ``id`` and ``collectionId`` (or collectionName).
        filename: Stored filename, e.g. "photo_abc123.jpg".
        with_token: Append ``?token=`` when the handle holds a token.
        thumb: Thumbnail size such as "100x100".

    Raises:
        FileError: FILE_OPERATION_FAILED for a bad record, FILE_NOT_FOUND
            for an empty filename.
    """
    try:
        _check_record(record)
        if not isinstance(filename, str) or not filename.strip():
            raise create_file_error(
                FileErrorType.FILE_NOT_FOUND, "Filename is required and must be a non-empty string"
            )

        query: dict[str, str] = {}
        if thumb:
            query["thumb"] = thumb
        if with_token:
            token, _ = client.snapshot_auth()
            if token:
                query["token"] = token

        return {
            "success": True,
            "url": client.files_url(record, filename, query),
            "filename": filename,
            "collectionId": _collection_of(record),
            "recordId": record["id"],
        }
    except FileError:
        raise
    except Exception as exc:
        raise _as_file_error(exc, f"Failed to generate URL for file '{filename}'") from exc


def get_field_file_urls(
    client: PocketBaseClient,
    record: dict[str, Any],
    field_name: str,
    with_token: bool = False,
    thumb: str | None = None,
) -> dict[str, Any]:
    """URLs for every file stored in one field (single or multi-file)."""
    try:
        _check_record(record)
        value = record.get(field_name)
        if value is None:
            raise create_file_error(
                FileErrorType.INVALID_FILE_FIELD,
                f"Field '{field_name}' does not exist or is empty in the record",
            )

        files = [
            {
                "url": get_file_url(client, record, filename, with_token, thumb)["url"],
                "filename": filename,
                "field": field_name,
            }
            for filename in _filenames(value)
        ]
        return {
            "success": True,
            "files": files,
            "collectionId": _collection_of(record),
            "recordId": record["id"],
        }
    except FileError:
        raise
    except Exception as exc:
        raise _as_file_error(exc, f"Failed to generate URLs for field '{field_name}'") from exc


def detect_file_fields(
    record: dict[str, Any] | None,
    file_field_names: list[str] | None = None,
) -> list[dict[str, Any]]:
    """Find the fields of ``record`` that hold filenames.

    With ``file_field_names`` only those fields are looked at (any string
    value counts).  Otherwise every non-system field is scanned and a value
    counts when it ends in a short alphanumeric extension.
    """
    if not record:
        return []

    detected = []
    if file_field_names:
        for name in file_field_names:
            filenames = _filenames(record.get(name))
            if filenames:
                detected.append({"field": name, "filenames": filenames, "urls": []})
        return detected

    for key, value in record.items():
        if key in _SKIPPED_FIELDS or key.startswith("_"):
            continue
        filenames = _filenames(value, pattern_only=True)
        if filenames:
            detected.append({"field": key, "filenames": filenames, "urls": []})
    return detected


def get_all_file_urls(
    client: PocketBaseClient,
    record: dict[str, Any],
    file_field_names: list[str] | None = None,
    with_token: bool = False,
    thumb: str | None = None,
) -> dict[str, Any]:
    try:
        _check_record(record)
        files = []
        for info in detect_file_fields(record, file_field_names):
            for filename in info["filenames"]:
                files.append({
                    "url": get_file_url(client, record, filename, with_token, thumb)["url"],
                    "filename": filename,
                    "field": info["field"],
                })
        return {
            "success": True,
            "files": files,
            "collectionId": _collection_of(record),
            "recordId": record["id"],
        }
    except FileError:
        raise
    except Exception as exc:
        raise _as_file_error(exc, "Failed to get all file URLs from record") from exc


def _origin(parts) -> tuple:
    return parts.scheme, parts.hostname, parts.port or _DEFAULT_PORTS.get(parts.scheme)


def is_valid_file_url(url: Any, base_url: Any) -> bool:
    """Same origin as ``base_url`` and a /api/files/{c}/{r}/{name} path."""
    if not url or not isinstance(url, str) or not isinstance(base_url, str):
        return False
    try:
        parsed = urlsplit(url)
        base = urlsplit(base_url)
        if not parsed.scheme or not parsed.netloc:
            return False
        if _origin(parsed) != _origin(base):
            return False
    except ValueError:
        return False
    return bool(_FILE_PATH.match(parsed.path))
