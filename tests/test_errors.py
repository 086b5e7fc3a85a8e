"""Tests for error classification and envelopes."""

import pytest

from pocketbase_mcp.core.errors import (
    AuthRequiredError,
    ClientResponseError,
    ErrorCode,
    ForbiddenError,
    ValidationError,
    create_auth_required_error,
    create_network_error,
    create_not_found_error,
    create_validation_error,
    extract_validation_errors,
    get_error_code,
    get_error_message,
    get_suggestion,
    handle_error,
    is_auth_error,
    is_network_error,
    is_validation_error,
)
from pocketbase_mcp.core.models import FieldError


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        ({"status": 400, "data": {"title": {"code": "validation_required", "message": "Missing"}}},
         ErrorCode.VALIDATION_ERROR),
        ({"status": 400, "data": {}}, ErrorCode.VALIDATION_ERROR),
        ({"status": 401}, ErrorCode.AUTH_INVALID),
        ({"status": 403}, ErrorCode.FORBIDDEN),
        ({"status": 404}, ErrorCode.NOT_FOUND),
        ({"status": 429}, ErrorCode.RATE_LIMITED),
        ({"status": 500}, ErrorCode.SERVER_ERROR),
        ({"status": 503}, ErrorCode.SERVER_ERROR),
    ],
)
def test_status_classification(error, expected):
    assert get_error_code(error) is expected


def test_400_without_payload_is_not_validation():
    assert not is_validation_error({"status": 400})
    assert get_error_code({"status": 400}) is ErrorCode.UNKNOWN_ERROR


def test_network_wins_over_auth_message():
    error = ClientResponseError("Network error: failed to fetch http://x (unauthorized)", status=0)
    assert is_network_error(error)
    assert is_auth_error(error)
    assert get_error_code(error) is ErrorCode.NETWORK_ERROR


def test_not_found_wins_over_token_message():
    assert get_error_code({"status": 404, "message": "token record not found"}) is ErrorCode.NOT_FOUND


def test_auth_required_from_message():
    assert get_error_code({"status": 401, "message": "Not authenticated"}) is ErrorCode.AUTH_REQUIRED


def test_explicit_codes_are_honoured():
    assert get_error_code({"code": "AUTH_EXPIRED"}) is ErrorCode.AUTH_EXPIRED
    assert get_error_code(ForbiddenError()) is ErrorCode.FORBIDDEN


def test_predicates_reject_non_objects():
    for value in (None, "", "error", 404, True):
        assert get_error_code(value) is ErrorCode.UNKNOWN_ERROR


def test_message_falls_back_to_canned_text():
    assert get_error_message({"status": 404}) == "The requested resource was not found"
    assert get_error_message({"status": 418}) == "An unexpected error occurred"
    assert get_error_message(None) == "An unexpected error occurred"
    assert get_error_message(ValueError("boom")) == "boom"


def test_suggestions_follow_classification():
    assert "running" in get_suggestion({"message": "fetch failed"})
    assert "authenticate" in get_suggestion({"status": 401})
    assert "permission" in get_suggestion({"status": 403})
    assert "schema" in get_suggestion({"status": 400, "data": {}})
    assert "exists" in get_suggestion({"status": 404})
    assert "wait" in get_suggestion({"status": 429})


def test_extract_validation_errors():
    error = ClientResponseError("Failed to create record.", status=400, data={
        "title": {"code": "validation_required", "message": "Cannot be blank."},
        "slug": "Must be unique",
        "ignored": 42,
    })
    fields = extract_validation_errors(error)
    assert fields == [
        FieldError("title", "validation_required", "Cannot be blank."),
        FieldError("slug", "validation_failed", "Must be unique"),
    ]


@pytest.mark.parametrize("status", [400, 401, 403, 404, 429, 500])
def test_handle_error_envelope_is_total(status):
    envelope = handle_error(ClientResponseError("", status=status, data={}))
    assert envelope["success"] is False
    assert envelope["error"]
    assert envelope["code"] in {code.value for code in ErrorCode}
    assert envelope["suggestion"]


def test_handle_error_adds_fields_for_validation():
    error = ClientResponseError("Failed to create record.", status=400, data={
        "title": {"code": "validation_required", "message": "Cannot be blank."},
    })
    envelope = handle_error(error, "Failed to create record in 'posts'")
    assert envelope["code"] == "VALIDATION_ERROR"
    assert envelope["error"] == "Failed to create record in 'posts': Failed to create record."
    assert envelope["details"]["fields"][0]["field"] == "title"


def test_handle_error_keeps_own_classification():
    error = ValidationError([FieldError("name", "reserved", "Collection name '_otps' is reserved")], "Invalid collection schema")
    envelope = handle_error(error)
    assert envelope["code"] == "VALIDATION_ERROR"
    assert envelope["details"] == {"fields": [{"field": "name", "code": "reserved", "message": "Collection name '_otps' is reserved"}]}

    envelope = handle_error(AuthRequiredError())
    assert envelope["code"] == "AUTH_REQUIRED"
    assert "authenticate_admin" in envelope["suggestion"]


def test_handle_error_on_plain_exception():
    envelope = handle_error(RuntimeError("something odd"))
    assert envelope == {
        "success": False,
        "error": "something odd",
        "code": "UNKNOWN_ERROR",
        "suggestion": "If the problem persists, check the PocketBase logs for more details.",
    }


def test_builders():
    assert create_auth_required_error("deleting posts")["error"] == "Authentication is required for deleting posts"
    assert create_not_found_error("Collection", "posts")["code"] == "NOT_FOUND"
    assert "http://h:8090" in create_network_error("http://h:8090")["error"]
    envelope = create_validation_error([FieldError("name", "required", "Collection name is required")])
    assert envelope["details"]["fields"][0]["code"] == "required"
