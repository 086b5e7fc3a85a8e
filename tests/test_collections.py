"""Tests for collection validation, the privilege gate and collection CRUD."""

import json

import pytest

from pocketbase_mcp.core import collections
from pocketbase_mcp.core.errors import AuthRequiredError, ClientResponseError, ForbiddenError, ValidationError
from pocketbase_mcp.core.models import CollectionSchema, CollectionUpdate, SchemaField


def _schema(name="posts", fields=None, **kwargs):
    fields = fields if fields is not None else [SchemaField("title", "text", True), SchemaField("views", "number")]
    return CollectionSchema(name=name, schema=fields, **kwargs)


# =============================================================================
# Validation
# =============================================================================
@pytest.mark.parametrize(
    ("name", "codes"),
    [
        ("", ["required"]),
        ("ab", ["min_length"]),
        ("x" * 101, ["max_length"]),
        ("1posts", ["invalid_format"]),
        ("my-posts", ["invalid_format"]),
        ("_mfas", ["invalid_format", "reserved"]),
        ("blog_posts2", []),
    ],
)
def test_collection_name_rules(name, codes):
    assert [e.code for e in collections.validate_collection_name(name)] == codes


def test_field_rules():
    errors = collections.validate_schema_field(SchemaField("9lives", "color", "yes"), 2)
    assert [(e.field, e.code) for e in errors] == [
        ("schema[2].name", "invalid_format"),
        ("schema[2].type", "invalid_type"),
        ("schema[2].required", "invalid_type"),
    ]


def test_all_violations_are_reported_together():
    schema = _schema(
        name="1bad",
        fields=[
            SchemaField("title", "text"),
            SchemaField("title", "text"),
            SchemaField("cover", "image"),
        ],
    )
    errors = collections.validate_collection_schema(schema)
    assert [(e.field, e.code) for e in errors] == [
        ("name", "invalid_format"),
        ("schema[1].name", "duplicate"),
        ("schema[2].type", "invalid_type"),
    ]


def test_duplicate_check_is_case_sensitive():
    schema = _schema(fields=[SchemaField("Title", "text"), SchemaField("title", "text")])
    assert collections.validate_collection_schema(schema) == []


def test_view_needs_query_and_skips_fields():
    view = CollectionSchema(name="stats", type="view", schema=[SchemaField("", "bogus")])
    assert [(e.field, e.code) for e in collections.validate_collection_schema(view)] == [
        ("options.query", "required"),
    ]
    view.options = {"query": "SELECT id FROM posts"}
    assert collections.validate_collection_schema(view) == []


def test_update_validates_only_provided_attributes():
    assert collections.validate_collection_update(CollectionUpdate(listRule="")) == []
    errors = collections.validate_collection_update(CollectionUpdate(name="no", schema="nope"))
    assert [e.code for e in errors] == ["min_length", "invalid_type"]


# =============================================================================
# Privilege gate
# =============================================================================
@pytest.mark.parametrize(
    "operation",
    [
        lambda pb: collections.create_collection(pb, _schema()),
        lambda pb: collections.update_collection(pb, "users", CollectionUpdate(listRule="")),
        lambda pb: collections.delete_collection(pb, "users"),
    ],
)
def test_non_admin_is_rejected_without_request(user_client, backend, operation):
    with pytest.raises(ForbiddenError):
        operation(user_client)
    assert backend.requests == []


def test_anonymous_gets_auth_required(client, backend):
    with pytest.raises(AuthRequiredError):
        collections.delete_collection(client, "users")
    assert backend.requests == []


def test_unverified_token_reaches_backend(client, backend):
    client.save_auth(backend.user_token)
    with pytest.raises(ClientResponseError) as excinfo:
        collections.delete_collection(client, "users")
    assert excinfo.value.status == 403
    assert len(backend.requests) == 1


def test_invalid_schema_fails_before_request(admin_client, backend):
    with pytest.raises(ValidationError) as excinfo:
        collections.create_collection(admin_client, _schema(name="x"))
    assert excinfo.value.message == "Invalid collection schema"
    assert backend.requests == []


# =============================================================================
# CRUD
# =============================================================================
def test_list_collections(admin_client):
    result = collections.list_collections(admin_client)
    assert result["success"] is True
    assert [c["name"] for c in result["collections"]] == ["users"]
    assert set(result["collections"][0]) == {"id", "name", "type", "created", "updated"}


def test_create_get_delete_round_trip(admin_client, backend):
    created = collections.create_collection(admin_client, _schema(listRule=""))
    assert backend.last_request.method == "POST"
    assert created["collection"]["listRule"] == ""

    fetched = collections.get_collection(admin_client, "posts")["collection"]
    assert fetched["type"] == "base"
    assert {f["name"] for f in fetched["schema"]} == {"title", "views"}
    assert fetched["schema"][0]["required"] is True

    assert collections.delete_collection(admin_client, "posts") == {"success": True}
    with pytest.raises(ClientResponseError) as excinfo:
        collections.get_collection(admin_client, "posts")
    assert excinfo.value.status == 404


def test_view_collection_sends_query(admin_client, backend):
    view = CollectionSchema(name="post_stats", type="view", options={"query": "SELECT id FROM posts"})
    collections.create_collection(admin_client, view)

    body = json.loads(backend.last_request.content)
    assert body["viewQuery"] == "SELECT id FROM posts"
    assert "fields" not in body


def test_update_sends_only_provided_attributes(admin_client, backend):
    collections.create_collection(admin_client, _schema())

    result = collections.update_collection(
        admin_client, "posts", CollectionUpdate(listRule=None, schema=[SchemaField("headline", "text")])
    )

    body = json.loads(backend.last_request.content)
    assert body == {"listRule": None, "fields": [{"name": "headline", "type": "text", "required": False, "options": {}}]}
    assert [f["name"] for f in result["collection"]["schema"]] == ["headline"]
