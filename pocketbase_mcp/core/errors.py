# =============================================================================
# core/errors.py  —  Error Taxonomy & Envelopes
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Every failure in this server ends up as the same envelope:
#
#       {"success": False, "error": "...", "code": "NOT_FOUND",
#        "details": {...}, "suggestion": "..."}
#
#   This module owns the fixed set of classification codes, the exception
#   types the services raise, and handle_error(), which turns ANY exception
#   (ours, the HTTP client's, or a plain ValueError) into that envelope.
#
# CLASSIFICATION PRECEDENCE (first match wins):
#   network → rate limit → not found → validation → auth → 5xx → unknown
#
#   Order matters: a 404 whose message happens to contain "token" is still
#   NOT_FOUND, and a connection failure is NETWORK_ERROR even if the
#   message also says "unauthorized".
#
# ACCEPTED INPUTS:
#   The predicates accept exceptions, dicts, or any object exposing
#   status / code / message / data.  The tool layer catches *everything*
#   at its boundary, so the classifier can never assume a specific type.
# =============================================================================

from collections.abc import Mapping
from dataclasses import asdict
from enum import Enum
from typing import Any

from pocketbase_mcp.core.models import FieldError


class ErrorCode(str, Enum):
    """Fixed classification set.  str-valued so envelopes serialize cleanly."""

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID = "AUTH_INVALID"
    AUTH_EXPIRED = "AUTH_EXPIRED"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_CODE_VALUES = {code.value for code in ErrorCode}

# Generic authentication failure (neither bad credentials nor transport).
AUTH_ERROR = "AUTH_ERROR"


class FileErrorType(str, Enum):
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    INVALID_FILE_FIELD = "INVALID_FILE_FIELD"
    FILE_ACCESS_DENIED = "FILE_ACCESS_DENIED"
    FILE_OPERATION_FAILED = "FILE_OPERATION_FAILED"


_CANNED_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_REQUIRED: "Authentication is required for this operation",
    ErrorCode.AUTH_INVALID: "Invalid credentials provided",
    ErrorCode.AUTH_EXPIRED: "Authentication token has expired",
    ErrorCode.FORBIDDEN: "You do not have permission to perform this operation",
    ErrorCode.VALIDATION_ERROR: "Validation failed for the provided data",
    ErrorCode.NOT_FOUND: "The requested resource was not found",
    ErrorCode.NETWORK_ERROR: "Unable to connect to PocketBase server",
    ErrorCode.SERVER_ERROR: "PocketBase server encountered an error",
    ErrorCode.RATE_LIMITED: "Too many requests - please try again later",
}

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"

SUGGEST_NETWORK = "Check that PocketBase is running and accessible at the configured URL."
SUGGEST_AUTH_REQUIRED = (
    "Authentication is required. Please authenticate using "
    "authenticate_admin or authenticate_user first."
)
SUGGEST_FORBIDDEN = (
    "You do not have permission for this operation. "
    "Check that you have the required role or permissions."
)
SUGGEST_AUTH_RETRY = "Check your credentials and try authenticating again."
SUGGEST_VALIDATION = "Check the field values and ensure they meet the schema requirements."
SUGGEST_NOT_FOUND = "Verify that the resource exists and the ID or name is correct."
SUGGEST_RATE_LIMIT = "Too many requests. Please wait before trying again."
SUGGEST_FALLBACK = "If the problem persists, check the PocketBase logs for more details."


# =============================================================================
# Exception types
# =============================================================================
class PocketBaseMCPError(Exception):
    """Base for every error this server raises.

    ``code`` is None when the error should be classified from its status and
    message (backend responses); subclasses that already know their
    classification set it.
    """

    code: Any = None

    def __init__(
        self,
        message: str = "",
        *,
        code: Any = None,
        status: int | None = None,
        data: Any = None,
        details: Any = None,
        suggestion: str | None = None,
        original_error: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.status = status
        self.data = data
        self.details = details
        self.suggestion = suggestion
        self.original_error = original_error


class ClientResponseError(PocketBaseMCPError):
    """A failed HTTP exchange with PocketBase.

    ``status`` is 0 when the request never got a response (connection
    refused, DNS failure, timeout); ``data`` is the backend's per-field
    payload for 400 responses.
    """

    def __init__(
        self,
        message: str = "",
        *,
        status: int = 0,
        data: Any = None,
        url: str | None = None,
        original_error: BaseException | None = None,
    ):
        super().__init__(
            message or "Something went wrong while processing your request.",
            status=status,
            data=data if data is not None else {},
            original_error=original_error,
        )
        self.url = url
        self.response = {"status": status, "message": self.message, "data": self.data}


class ValidationError(PocketBaseMCPError):
    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, fields: list[FieldError], message: str | None = None):
        super().__init__(
            message or _CANNED_MESSAGES[ErrorCode.VALIDATION_ERROR],
            status=400,
            details={"fields": [asdict(f) for f in fields]},
            suggestion=SUGGEST_VALIDATION,
        )
        self.fields = fields


class ForbiddenError(PocketBaseMCPError):
    code = ErrorCode.FORBIDDEN

    def __init__(self, message: str | None = None):
        super().__init__(
            message or _CANNED_MESSAGES[ErrorCode.FORBIDDEN],
            status=403,
            suggestion=SUGGEST_FORBIDDEN,
        )


class AuthRequiredError(PocketBaseMCPError):
    code = ErrorCode.AUTH_REQUIRED

    def __init__(self, message: str | None = None):
        super().__init__(
            message or _CANNED_MESSAGES[ErrorCode.AUTH_REQUIRED],
            status=401,
            suggestion=SUGGEST_AUTH_REQUIRED,
        )


class AuthExpiredError(PocketBaseMCPError):
    code = ErrorCode.AUTH_EXPIRED

    def __init__(self, message: str | None = None):
        super().__init__(
            message or _CANNED_MESSAGES[ErrorCode.AUTH_EXPIRED],
            status=401,
            suggestion=SUGGEST_AUTH_RETRY,
        )


class AuthError(PocketBaseMCPError):
    """Raised by the authentication service.

    ``code`` is AUTH_INVALID, NETWORK_ERROR or the generic AUTH_ERROR.
    """


class FileError(PocketBaseMCPError):
    """Raised by the file helpers; ``code`` is a FileErrorType."""


# =============================================================================
# Attribute access that works on exceptions, dicts and plain objects
# =============================================================================
def _get(error: Any, name: str) -> Any:
    if isinstance(error, Mapping):
        return error.get(name)
    return getattr(error, name, None)


def _code(error: Any) -> str | None:
    code = _get(error, "code")
    if isinstance(code, Enum):
        return code.value
    return code if isinstance(code, str) else None


def _status(error: Any) -> int | None:
    status = _get(error, "status")
    return status if isinstance(status, int) and not isinstance(status, bool) else None


def _raw_message(error: Any) -> str:
    message = _get(error, "message")
    if isinstance(message, str) and message:
        return message
    if isinstance(error, BaseException) and error.args and isinstance(error.args[0], str):
        return error.args[0]
    return ""


def _message(error: Any) -> str:
    return _raw_message(error).lower()


def _is_object(error: Any) -> bool:
    return error is not None and not isinstance(error, (str, bytes, int, float, bool))


# =============================================================================
# Predicates
# =============================================================================
_NETWORK_PATTERNS = (
    "network",
    "fetch",
    "econnrefused",
    "connection refused",
    "timeout",
    "timed out",
    "dns",
    "unreachable",
)

_AUTH_PATTERNS = (
    "unauthorized",
    "unauthenticated",
    "authentication",
    "not authenticated",
    "invalid credentials",
    "token",
)

_AUTH_CODES = {
    ErrorCode.AUTH_REQUIRED.value,
    ErrorCode.AUTH_INVALID.value,
    ErrorCode.AUTH_EXPIRED.value,
    ErrorCode.FORBIDDEN.value,
}


def is_network_error(error: Any) -> bool:
    if not _is_object(error):
        return False
    if _code(error) == ErrorCode.NETWORK_ERROR.value:
        return True
    message = _message(error)
    return any(pattern in message for pattern in _NETWORK_PATTERNS)


def is_rate_limit_error(error: Any) -> bool:
    if not _is_object(error):
        return False
    if _status(error) == 429 or _code(error) == ErrorCode.RATE_LIMITED.value:
        return True
    message = _message(error)
    return "rate limit" in message or "too many requests" in message


def is_not_found_error(error: Any) -> bool:
    if not _is_object(error):
        return False
    if _status(error) == 404 or _code(error) == ErrorCode.NOT_FOUND.value:
        return True
    message = _message(error)
    return (
        "not found" in message
        or "doesn't exist" in message
        or "does not exist" in message
    )


def is_validation_error(error: Any) -> bool:
    """400 carrying a field-keyed payload, or an explicit VALIDATION_ERROR."""
    if not _is_object(error):
        return False
    if _status(error) == 400 and isinstance(_get(error, "data"), Mapping):
        return True
    return _code(error) == ErrorCode.VALIDATION_ERROR.value


def is_auth_error(error: Any) -> bool:
    if not _is_object(error):
        return False
    if _status(error) in (401, 403):
        return True
    if _code(error) in _AUTH_CODES:
        return True
    message = _message(error)
    return any(pattern in message for pattern in _AUTH_PATTERNS)


# =============================================================================
# Classification, messages, suggestions
# =============================================================================
def get_error_code(error: Any) -> ErrorCode:
    if is_network_error(error):
        return ErrorCode.NETWORK_ERROR
    if is_rate_limit_error(error):
        return ErrorCode.RATE_LIMITED
    if is_not_found_error(error):
        return ErrorCode.NOT_FOUND
    if is_validation_error(error):
        return ErrorCode.VALIDATION_ERROR
    if is_auth_error(error):
        code = _code(error)
        if _status(error) == 403 or code == ErrorCode.FORBIDDEN.value:
            return ErrorCode.FORBIDDEN
        if code == ErrorCode.AUTH_EXPIRED.value:
            return ErrorCode.AUTH_EXPIRED
        if code == ErrorCode.AUTH_REQUIRED.value:
            return ErrorCode.AUTH_REQUIRED
        message = _message(error)
        if "not authenticated" in message or "authentication required" in message:
            return ErrorCode.AUTH_REQUIRED
        return ErrorCode.AUTH_INVALID
    status = _status(error)
    if status is not None and status >= 500:
        return ErrorCode.SERVER_ERROR
    return ErrorCode.UNKNOWN_ERROR


def get_error_message(error: Any, default_message: str = DEFAULT_ERROR_MESSAGE) -> str:
    """Human-readable message: the error's own, else a canned one per code."""
    if not error and not isinstance(error, BaseException):
        return default_message
    if isinstance(error, str):
        return error
    message = _raw_message(error)
    if message:
        return message
    response = _get(error, "response")
    if isinstance(response, Mapping) and isinstance(response.get("message"), str) and response["message"]:
        return response["message"]
    return _CANNED_MESSAGES.get(get_error_code(error), default_message)


def get_suggestion(error: Any) -> str:
    if is_network_error(error):
        return SUGGEST_NETWORK
    if is_auth_error(error):
        status, code = _status(error), _code(error)
        if status == 401 or code == ErrorCode.AUTH_REQUIRED.value:
            return SUGGEST_AUTH_REQUIRED
        if status == 403 or code == ErrorCode.FORBIDDEN.value:
            return SUGGEST_FORBIDDEN
        return SUGGEST_AUTH_RETRY
    if is_validation_error(error):
        return SUGGEST_VALIDATION
    if is_not_found_error(error):
        return SUGGEST_NOT_FOUND
    if is_rate_limit_error(error):
        return SUGGEST_RATE_LIMIT
    return SUGGEST_FALLBACK


def extract_validation_errors(error: Any) -> list[FieldError]:
    """Per-field failures from a PocketBase 400 payload.

    PocketBase answers ``{"data": {"title": {"code": "...", "message": "..."}}}``;
    plain string values are accepted too.
    """
    if not _is_object(error):
        return []
    data = _get(error, "data")
    if not isinstance(data, Mapping):
        response = _get(error, "response")
        data = response.get("data") if isinstance(response, Mapping) else None
    if not isinstance(data, Mapping):
        return []

    field_errors: list[FieldError] = []
    for field_name, field_error in data.items():
        if isinstance(field_error, Mapping):
            field_errors.append(FieldError(
                field=str(field_name),
                code=field_error.get("code") or "validation_failed",
                message=field_error.get("message") or f"Validation failed for field: {field_name}",
            ))
        elif isinstance(field_error, str):
            field_errors.append(FieldError(
                field=str(field_name),
                code="validation_failed",
                message=field_error,
            ))
    return field_errors


# =============================================================================
# PUBLIC API: handle_error — any exception → envelope
# =============================================================================
def handle_error(error: Any, context: str | None = None) -> dict[str, Any]:
    """Transform any error into the standard failure envelope.

    Errors raised by our own services keep their code, details and
    suggestion; everything else is classified from status and message.

    Args:
        error: Whatever was caught at the tool boundary.
        context: Optional operation description, prefixed to the message.

    Returns:
        ``{"success": False, "error", "code", "suggestion", "details"?}``
    """
    own_code = _code(error) if isinstance(error, PocketBaseMCPError) else None
    code = ErrorCode(own_code) if own_code in _CODE_VALUES else get_error_code(error)

    message = get_error_message(error)
    if context:
        message = f"{context}: {message}"

    suggestion = _get(error, "suggestion") if isinstance(error, PocketBaseMCPError) else None
    response: dict[str, Any] = {
        "success": False,
        "error": message,
        "code": code.value,
        "suggestion": suggestion or get_suggestion(error),
    }

    own_details = _get(error, "details") if isinstance(error, PocketBaseMCPError) else None
    if own_details:
        response["details"] = own_details
    elif code is ErrorCode.VALIDATION_ERROR:
        fields = extract_validation_errors(error)
        if fields:
            response["details"] = {"fields": [asdict(f) for f in fields]}
    else:
        data = _get(error, "data")
        if data:
            response["details"] = data
    return response


def create_auth_required_error(operation: str | None = None) -> dict[str, Any]:
    message = (
        f"Authentication is required for {operation}"
        if operation
        else _CANNED_MESSAGES[ErrorCode.AUTH_REQUIRED]
    )
    return {
        "success": False,
        "error": message,
        "code": ErrorCode.AUTH_REQUIRED.value,
        "suggestion": "Please authenticate using authenticate_admin or authenticate_user first.",
    }


def create_validation_error(field_errors: list[FieldError], message: str | None = None) -> dict[str, Any]:
    return {
        "success": False,
        "error": message or _CANNED_MESSAGES[ErrorCode.VALIDATION_ERROR],
        "code": ErrorCode.VALIDATION_ERROR.value,
        "details": {"fields": [asdict(f) for f in field_errors]},
        "suggestion": SUGGEST_VALIDATION,
    }


def create_not_found_error(resource_type: str, identifier: str) -> dict[str, Any]:
    return {
        "success": False,
        "error": f"{resource_type} '{identifier}' was not found",
        "code": ErrorCode.NOT_FOUND.value,
        "suggestion": f"Verify that the {resource_type.lower()} exists and the ID or name is correct.",
    }


def create_network_error(url: str | None = None) -> dict[str, Any]:
    return {
        "success": False,
        "error": f"Unable to connect to PocketBase at {url}" if url else _CANNED_MESSAGES[ErrorCode.NETWORK_ERROR],
        "code": ErrorCode.NETWORK_ERROR.value,
        "suggestion": SUGGEST_NETWORK,
    }
