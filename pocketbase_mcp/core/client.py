# =============================================================================
# core/client.py  —  PocketBaseClient (one connection to one backend)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   A PocketBaseClient is this server's handle on ONE PocketBase instance:
#     - a normalized base URL
#     - an AuthStore (the credential slot: token + cached identity)
#     - an httpx.Client used to talk to the REST API
#
#   It knows the REST routes (/api/collections/..., /api/files/...) and
#   turns every non-2xx answer or transport failure into a
#   ClientResponseError.  It does NOT envelope or classify anything; that
#   is the services' and errors.py's job.
#
# SHARED HTTP CLIENT:
#   Handles created by the SessionStore share the store's httpx.Client
#   (one connection pool per process).  A handle created on its own owns
#   its httpx.Client and closes it in close().
#
# TOKEN VALIDITY:
#   PocketBase tokens are JWTs.  An AuthStore is valid when it holds a
#   token that is not expired.  We read "exp" with PyJWT without verifying
#   the signature (we do not have the secret, and the backend re-checks on
#   every call anyway).  Tokens that are not JWTs are opaque to us and are
#   treated as valid.
# =============================================================================

import logging
import threading
import time
from typing import Any
from urllib.parse import quote, urlencode

import httpx
import jwt

from pocketbase_mcp.core.config import get_timeout
from pocketbase_mcp.core.errors import ClientResponseError

logger = logging.getLogger(__name__)

FULL_LIST_BATCH = 500


def is_token_expired(token: str, leeway: float = 0) -> bool:
    """True when ``token`` is a JWT whose ``exp`` lies in the past."""
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return False
    exp = payload.get("exp") if isinstance(payload, dict) else None
    if not isinstance(exp, (int, float)):
        return False
    return exp - leeway <= time.time()


class AuthStore:
    """The credential slot of a client handle."""

    def __init__(self, token: str = "", record: dict[str, Any] | None = None):
        self.token = token or ""
        self.record = record

    @property
    def is_valid(self) -> bool:
        return bool(self.token) and not is_token_expired(self.token)

    @property
    def is_expired(self) -> bool:
        return bool(self.token) and is_token_expired(self.token)

    def save(self, token: str, record: dict[str, Any] | None = None) -> None:
        self.token = token or ""
        self.record = record

    def clear(self) -> None:
        self.token = ""
        self.record = None

    def __repr__(self) -> str:
        state = "valid" if self.is_valid else ("expired" if self.token else "empty")
        return f"AuthStore({state}, identity={'yes' if self.record else 'no'})"


class PocketBaseClient:
    """Handle on a single PocketBase instance."""

    def __init__(
        self,
        base_url: str,
        *,
        http: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_store = AuthStore()
        # Guards reads/writes of auth_store within one call.
        self.lock = threading.RLock()
        self._owns_http = http is None
        self._http = http or httpx.Client(
            timeout=timeout if timeout is not None else get_timeout(),
            transport=transport,
        )

    def __repr__(self) -> str:
        return f"PocketBaseClient({self.base_url!r}, {self.auth_store!r})"

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    # -------------------------------------------------------------------------
    # Credential slot
    # -------------------------------------------------------------------------
    def save_auth(self, token: str, record: dict[str, Any] | None = None) -> None:
        with self.lock:
            self.auth_store.save(token, record)

    def clear_auth(self) -> None:
        with self.lock:
            self.auth_store.clear()

    def snapshot_auth(self) -> tuple[str, dict[str, Any] | None]:
        with self.lock:
            return self.auth_store.token, self.auth_store.record

    # -------------------------------------------------------------------------
    # Low-level transport
    # -------------------------------------------------------------------------
    def build_url(self, path: str, params: dict[str, Any] | None = None) -> str:
        url = self.base_url + ("" if path.startswith("/") else "/") + path
        if params:
            url += ("&" if "?" in url else "?") + urlencode(params)
        return url

    def _request(
        self,
        path: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[httpx.Response, Any]:
        # Read the token once so the whole call sees one credential.
        token, _ = self.snapshot_auth()
        request_headers: dict[str, str] = {}
        if token:
            request_headers["Authorization"] = token
        if headers:
            request_headers.update(headers)

        url = self.build_url(path)
        query = {k: v for k, v in (params or {}).items() if v is not None}
        kwargs: dict[str, Any] = {"params": query, "headers": request_headers}
        if body is not None:
            if isinstance(body, (str, bytes)):
                kwargs["content"] = body
            else:
                kwargs["json"] = body

        logger.debug("%s %s auth=%s", method, url, "yes" if token else "no")
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise ClientResponseError(
                f"Network error: failed to fetch {url} ({exc})",
                status=0,
                url=url,
                original_error=exc,
            ) from exc

        data = _decode_body(response)
        if response.is_error:
            payload = data if isinstance(data, dict) else {}
            raise ClientResponseError(
                payload.get("message") or "",
                status=response.status_code,
                data=payload.get("data") if isinstance(payload.get("data"), dict) else {},
                url=url,
            )
        return response, data

    def send(
        self,
        path: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Issue one request and return the decoded JSON body (None for 204)."""
        _, data = self._request(path, method, params, body, headers)
        return data

    def send_raw(
        self,
        path: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[int, Any, dict[str, str]]:
        """Like send(), but also returns the status code and response headers."""
        response, data = self._request(path, method, params, body, headers)
        return response.status_code, data, dict(response.headers)

    # -------------------------------------------------------------------------
    # Record routes
    # -------------------------------------------------------------------------
    @staticmethod
    def records_path(collection: str, record_id: str | None = None) -> str:
        path = f"/api/collections/{quote(collection, safe='')}/records"
        if record_id is not None:
            path += f"/{quote(record_id, safe='')}"
        return path

    def get_list(
        self,
        collection: str,
        page: int = 1,
        per_page: int = 30,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        query = dict(params or {})
        query["page"] = page
        query["perPage"] = per_page
        return self.send(self.records_path(collection), params=query, headers=headers)

    def get_full_list(
        self,
        collection: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        batch: int = FULL_LIST_BATCH,
    ) -> list[dict[str, Any]]:
        return self._collect_pages(
            lambda page: self.get_list(
                collection, page, batch, {**(params or {}), "skipTotal": 1}, headers
            ),
            batch,
        )

    def get_first_list_item(
        self,
        collection: str,
        filter: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        query = {**(params or {}), "filter": filter, "skipTotal": 1}
        result = self.get_list(collection, 1, 1, query, headers)
        items = result.get("items") or []
        if not items:
            raise ClientResponseError(
                "The requested resource wasn't found.",
                status=404,
                url=self.build_url(self.records_path(collection)),
            )
        return items[0]

    def get_one(
        self,
        collection: str,
        record_id: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return self.send(self.records_path(collection, record_id), params=params, headers=headers)

    def create(
        self,
        collection: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return self.send(self.records_path(collection), "POST", params, body, headers)

    def update(
        self,
        collection: str,
        record_id: str,
        body: dict[str, Any],
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return self.send(self.records_path(collection, record_id), "PATCH", params, body, headers)

    def delete(
        self,
        collection: str,
        record_id: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.send(self.records_path(collection, record_id), "DELETE", headers=headers)

    def auth_with_password(self, collection: str, identity: str, password: str) -> dict[str, Any]:
        """POST auth-with-password and return ``{"token", "record"}``.

        The handle's own credential slot is left untouched; callers decide
        whether the token is kept.
        """
        path = f"/api/collections/{quote(collection, safe='')}/auth-with-password"
        return self.send(path, "POST", body={"identity": identity, "password": password})

    # -------------------------------------------------------------------------
    # Collection routes
    # -------------------------------------------------------------------------
    @staticmethod
    def collections_path(id_or_name: str | None = None) -> str:
        if id_or_name is None:
            return "/api/collections"
        return f"/api/collections/{quote(id_or_name, safe='')}"

    def get_collections_full_list(self, batch: int = FULL_LIST_BATCH) -> list[dict[str, Any]]:
        return self._collect_pages(
            lambda page: self.send(
                self.collections_path(),
                params={"page": page, "perPage": batch, "skipTotal": 1},
            ),
            batch,
        )

    def get_collection(self, id_or_name: str) -> dict[str, Any]:
        return self.send(self.collections_path(id_or_name))

    def create_collection(self, body: dict[str, Any]) -> dict[str, Any]:
        return self.send(self.collections_path(), "POST", body=body)

    def update_collection(self, id_or_name: str, body: dict[str, Any]) -> dict[str, Any]:
        return self.send(self.collections_path(id_or_name), "PATCH", body=body)

    def delete_collection(self, id_or_name: str) -> None:
        self.send(self.collections_path(id_or_name), "DELETE")

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------
    def files_url(
        self,
        record: dict[str, Any],
        filename: str,
        query: dict[str, str] | None = None,
    ) -> str:
        collection = record.get("collectionId") or record.get("collectionName") or ""
        parts = ("api", "files", collection, record.get("id", ""), filename)
        path = "/" + "/".join(quote(str(part), safe="") for part in parts)
        return self.build_url(path, query)

    # -------------------------------------------------------------------------
    def _collect_pages(self, fetch_page, batch: int) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            result = fetch_page(page) or {}
            chunk = result.get("items") or []
            items.extend(chunk)
            if len(chunk) < batch:
                return items
            page += 1


def _decode_body(response: httpx.Response) -> Any:
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
