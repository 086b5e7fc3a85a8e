"""Shared fixtures: an in-memory PocketBase served through httpx.MockTransport."""

import json
import time
import uuid

import httpx
import jwt
import pytest

from pocketbase_mcp.core.session_store import SessionStore, set_default_store

BASE_URL = "http://pb.test:8090"

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass-123"
USER_EMAIL = "jane@example.com"
USER_PASSWORD = "user-pass-123"

_ENV_VARS = (
    "POCKETBASE_URL",
    "POCKETBASE_ADMIN_TOKEN",
    "POCKETBASE_ADMIN_EMAIL",
    "POCKETBASE_ADMIN_PASSWORD",
    "POCKETBASE_TIMEOUT",
    "MCP_OUTPUT_FORMAT",
)


def make_token(subject: str = "abc123", expires_in: int = 3600) -> str:
    """A PocketBase-like JWT; only ``exp`` matters to the server under test."""
    payload = {"id": subject, "type": "auth", "exp": int(time.time()) + expires_in}
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def _error(status: int, message: str, data: dict | None = None) -> httpx.Response:
    return httpx.Response(status, json={"status": status, "message": message, "data": data or {}})


def _new_id() -> str:
    return uuid.uuid4().hex[:15]


class FakePocketBase:
    """Just enough of the PocketBase REST API for the services and tools."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.collections: dict[str, dict] = {}
        self.records: dict[str, dict[str, dict]] = {}
        self.admin_token = make_token("admin0000000001")
        self.user_token = make_token("user00000000001")
        self.add_collection("users", "auth", [{"name": "name", "type": "text"}])
        self.add_record("users", {
            "id": "user00000000001",
            "email": USER_EMAIL,
            "emailVisibility": True,
            "verified": True,
            "name": "Jane",
        })

    # -- seeding ---------------------------------------------------------------
    def add_collection(self, name: str, type: str = "base", fields: list | None = None) -> dict:
        collection = {
            "id": "pbc_" + _new_id(),
            "name": name,
            "type": type,
            "system": False,
            "fields": [{"id": _new_id(), "required": False, **f} for f in fields or []],
            "listRule": None,
            "viewRule": None,
            "createRule": None,
            "updateRule": None,
            "deleteRule": None,
            "created": "2024-01-01 00:00:00.000Z",
            "updated": "2024-01-01 00:00:00.000Z",
        }
        self.collections[name] = collection
        self.records.setdefault(name, {})
        return collection

    def add_record(self, collection: str, data: dict) -> dict:
        meta = self.collections[collection]
        record = {
            "id": data.get("id") or _new_id(),
            "collectionId": meta["id"],
            "collectionName": collection,
            "created": "2024-01-02 00:00:00.000Z",
            "updated": "2024-01-02 00:00:00.000Z",
            **{k: v for k, v in data.items() if k not in ("password", "passwordConfirm")},
        }
        self.records[collection][record["id"]] = record
        return record

    # -- inspection ------------------------------------------------------------
    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def tokens_seen(self) -> list[str | None]:
        return [r.headers.get("Authorization") for r in self.requests]

    # -- routing ---------------------------------------------------------------
    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = [p for p in request.url.path.split("/") if p]
        body = json.loads(request.content) if request.content else None
        method = request.method

        if parts == ["api", "health"]:
            return httpx.Response(200, json={"code": 200, "message": "API is healthy.", "data": {}})

        if parts[:2] != ["api", "collections"]:
            return _error(404, "The requested resource wasn't found.")

        if len(parts) == 4 and parts[3] == "auth-with-password":
            return self._auth(parts[2], body or {})

        if len(parts) >= 4 and parts[3] == "records":
            return self._records(method, parts[2], parts[4] if len(parts) > 4 else None, request, body)

        if not request.headers.get("Authorization"):
            return _error(401, "The request requires valid record authorization token.")
        if request.headers["Authorization"] == self.user_token:
            return _error(403, "The authorized record is not allowed to perform this action.")
        return self._collections(method, parts[2] if len(parts) > 2 else None, body)

    def _auth(self, collection: str, body: dict) -> httpx.Response:
        identity, password = body.get("identity"), body.get("password")
        if collection == "_superusers" and (identity, password) == (ADMIN_EMAIL, ADMIN_PASSWORD):
            return httpx.Response(200, json={
                "token": self.admin_token,
                "record": {
                    "id": "admin0000000001",
                    "collectionId": "pbc_3142635823",
                    "collectionName": "_superusers",
                    "email": ADMIN_EMAIL,
                    "created": "2024-01-01 00:00:00.000Z",
                    "updated": "2024-01-01 00:00:00.000Z",
                },
            })
        if collection == "users" and (identity, password) == (USER_EMAIL, USER_PASSWORD):
            return httpx.Response(200, json={
                "token": self.user_token,
                "record": self.records["users"]["user00000000001"],
            })
        return _error(400, "Failed to authenticate.")

    def _collections(self, method: str, name: str | None, body: dict | None) -> httpx.Response:
        if name is None and method == "GET":
            items = list(self.collections.values())
            return httpx.Response(200, json={
                "page": 1, "perPage": len(items), "totalItems": len(items), "totalPages": 1, "items": items,
            })
        if name is None and method == "POST":
            if body["name"] in self.collections:
                return _error(400, "Failed to create collection.", {
                    "name": {"code": "validation_collection_name_exists", "message": "Collection name must be unique."},
                })
            created = self.add_collection(body["name"], body.get("type", "base"), body.get("fields"))
            for rule in ("listRule", "viewRule", "createRule", "updateRule", "deleteRule"):
                created[rule] = body.get(rule)
            if "viewQuery" in body:
                created["viewQuery"] = body["viewQuery"]
            return httpx.Response(200, json=created)

        collection = self.collections.get(name) or next(
            (c for c in self.collections.values() if c["id"] == name), None
        )
        if collection is None:
            return _error(404, "The requested resource wasn't found.")
        if method == "GET":
            return httpx.Response(200, json=collection)
        if method == "PATCH":
            updates = dict(body or {})
            if "fields" in updates:
                updates["fields"] = [{"id": _new_id(), **f} for f in updates["fields"]]
            collection.update(updates)
            if collection["name"] != name:
                self.collections[collection["name"]] = self.collections.pop(name)
            return httpx.Response(200, json=collection)
        if method == "DELETE":
            del self.collections[collection["name"]]
            self.records.pop(collection["name"], None)
            return httpx.Response(204)
        return _error(405, "Method not allowed.")

    def _records(self, method, collection, record_id, request, body) -> httpx.Response:
        if collection not in self.collections:
            return _error(404, "Missing collection context.")
        store = self.records[collection]

        if record_id is None and method == "GET":
            items = list(store.values())
            page = int(request.url.params.get("page", 1))
            per_page = int(request.url.params.get("perPage", 30))
            chunk = items[(page - 1) * per_page: page * per_page]
            return httpx.Response(200, json={
                "page": page,
                "perPage": per_page,
                "totalItems": len(items),
                "totalPages": max(1, -(-len(items) // per_page)),
                "items": chunk,
            })
        if record_id is None and method == "POST":
            missing = {
                f["name"]: {"code": "validation_required", "message": "Cannot be blank."}
                for f in self.collections[collection]["fields"]
                if f.get("required") and not (body or {}).get(f["name"])
            }
            if missing:
                return _error(400, "Failed to create record.", missing)
            return httpx.Response(200, json=self.add_record(collection, body or {}))

        record = store.get(record_id)
        if record is None:
            return _error(404, "The requested resource wasn't found.")
        if method == "GET":
            return httpx.Response(200, json=record)
        if method == "PATCH":
            record.update({k: v for k, v in (body or {}).items() if k not in ("password", "passwordConfirm", "oldPassword")})
            return httpx.Response(200, json=record)
        if method == "DELETE":
            del store[record_id]
            return httpx.Response(204)
        return _error(405, "Method not allowed.")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """No test sees the developer's PocketBase settings."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def backend() -> FakePocketBase:
    return FakePocketBase()


@pytest.fixture
def transport(backend) -> httpx.MockTransport:
    return httpx.MockTransport(backend.handler)


@pytest.fixture
def store(transport):
    """A SessionStore wired to the fake backend and installed as the default."""
    session_store = SessionStore(transport=transport)
    set_default_store(session_store)
    yield session_store
    set_default_store(None)
    session_store.close()


@pytest.fixture
def client(store):
    """An anonymous client for BASE_URL."""
    return store.new_client(BASE_URL)


@pytest.fixture
def admin_client(store, backend):
    """A client holding an admin session with a known identity."""
    pb = store.new_client(BASE_URL)
    pb.save_auth(backend.admin_token, {"id": "admin0000000001", "collectionName": "_superusers", "isAdmin": True})
    return pb


@pytest.fixture
def user_client(store, backend):
    """A client holding a regular user's session with a known identity."""
    pb = store.new_client(BASE_URL)
    pb.save_auth(backend.user_token, {"id": "user00000000001", "collectionName": "users", "isAdmin": False})
    return pb


def call_tool(tool, **kwargs) -> dict:
    """Invoke an MCP tool function directly and decode its JSON output."""
    fn = getattr(tool, "fn", tool)
    return json.loads(fn(**kwargs))
