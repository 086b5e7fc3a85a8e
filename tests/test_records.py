"""Tests for the record and user services."""

import json

import pytest

from pocketbase_mcp.core import records, users
from pocketbase_mcp.core.errors import ClientResponseError
from pocketbase_mcp.core.models import QueryOptions


@pytest.fixture
def posts(backend):
    backend.add_collection("posts", fields=[{"name": "title", "type": "text", "required": True}])
    for i in range(5):
        backend.add_record("posts", {"id": f"post{i:011d}", "title": f"Post {i}", "_internal": "x"})
    return backend


def test_list_records_pages_and_passes_options(admin_client, posts):
    options = QueryOptions(filter="title ~ 'Post'", sort="-created", page=2, perPage=2, expand="author")
    result = records.list_records(admin_client, "posts", options)

    assert result["success"] is True
    assert (result["page"], result["perPage"], result["totalItems"], result["totalPages"]) == (2, 2, 5, 3)
    assert [r["id"] for r in result["items"]] == ["post00000000002", "post00000000003"]

    params = posts.last_request.url.params
    assert params["filter"] == "title ~ 'Post'"
    assert params["sort"] == "-created"
    assert params["expand"] == "author"


def test_record_shape_keeps_system_and_custom_fields(admin_client, posts):
    record = records.get_record(admin_client, "posts", "post00000000000")["record"]
    assert list(record)[:5] == ["id", "collectionId", "collectionName", "created", "updated"]
    assert record["title"] == "Post 0"
    assert "_internal" not in record


def test_expand_is_passed_through():
    record = records.transform_record({"id": "1", "expand": {"author": {"id": "a"}}, "title": "x"})
    assert record["expand"] == {"author": {"id": "a"}}


def test_get_all_records(admin_client, posts):
    result = records.get_all_records(admin_client, "posts", QueryOptions(page=3, perPage=1))
    assert result["totalPages"] == 1
    assert result["perPage"] == result["totalItems"] == len(result["items"]) == 5


def test_create_update_delete(admin_client, posts):
    created = records.create_record(admin_client, "posts", {"title": "Hello"})["record"]
    assert created["title"] == "Hello"

    updated = records.update_record(admin_client, "posts", created["id"], {"title": "Bye"})["record"]
    assert updated["title"] == "Bye"
    assert posts.last_request.method == "PATCH"

    assert records.delete_record(admin_client, "posts", created["id"]) == {"success": True}
    with pytest.raises(ClientResponseError) as excinfo:
        records.get_record(admin_client, "posts", created["id"])
    assert excinfo.value.status == 404


def test_backend_validation_surfaces(admin_client, posts):
    with pytest.raises(ClientResponseError) as excinfo:
        records.create_record(admin_client, "posts", {})
    assert excinfo.value.status == 400
    assert excinfo.value.data == {"title": {"code": "validation_required", "message": "Cannot be blank."}}


def test_custom_headers_are_forwarded(admin_client, posts, backend):
    records.create_record(admin_client, "posts", {"title": "H"}, headers={"X-Trace": "abc"})
    assert backend.last_request.headers["X-Trace"] == "abc"
    assert json.loads(backend.last_request.content) == {"title": "H"}


def test_get_first_record(admin_client, posts, backend):
    found = records.get_first_record(admin_client, "posts", "title = 'Post 0'")
    assert found["record"]["id"] == "post00000000000"
    assert backend.last_request.url.params["perPage"] == "1"

    backend.records["posts"].clear()
    assert records.get_first_record(admin_client, "posts", "title = 'none'") is None


# =============================================================================
# Users
# =============================================================================
def test_user_shape_has_defaults(admin_client, backend):
    backend.add_record("users", {"id": "bare00000000001"})
    result = users.list_users(admin_client)

    bare = next(u for u in result["items"] if u["id"] == "bare00000000001")
    assert bare["email"] == ""
    assert bare["emailVisibility"] is False
    assert bare["verified"] is False

    jane = next(u for u in result["items"] if u["id"] == "user00000000001")
    assert jane["name"] == "Jane"


def test_user_crud(admin_client, backend):
    created = users.create_user(
        admin_client, "users", {"email": "new@example.com", "password": "12345678", "passwordConfirm": "12345678"}
    )["user"]
    assert created["email"] == "new@example.com"
    assert "password" not in created

    updated = users.update_user(admin_client, "users", created["id"], {"name": "New"})["user"]
    assert updated["name"] == "New"

    fetched = users.get_user(admin_client, "users", created["id"])["user"]
    assert fetched["name"] == "New"

    assert users.get_all_users(admin_client)["totalItems"] == 2
    assert users.delete_user(admin_client, "users", created["id"]) == {"success": True}
