# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of the typed inputs that flow from the
# tool layer into the services, plus the few typed results the services
# hand back (authentication results, field-level validation failures).
#
# WHAT IS *NOT* MODELLED HERE:
#   Records.  A PocketBase record is an open bag of fields: the system
#   fields (id, collectionId, collectionName, created, updated) plus
#   whatever the collection schema declares.  This adapter is deliberately
#   schema-agnostic about those, so records travel as plain dicts.
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# -----------------------------------------------------------------------------
# AdminStatus — what we know about the privilege of the held credential
# -----------------------------------------------------------------------------
# A credential obtained through authenticate_admin/authenticate_user has a
# cached identity, so we KNOW whether it is an admin.  A bare token handed
# in via adminToken or POCKETBASE_ADMIN_TOKEN has no identity attached: it
# is UNVERIFIED and the backend decides on every call.
# -----------------------------------------------------------------------------
class AdminStatus(str, Enum):
    KNOWN_ADMIN = "known_admin"
    KNOWN_NON_ADMIN = "known_non_admin"
    UNVERIFIED = "unverified"
    ANONYMOUS = "anonymous"


@dataclass
class AuthCredentials:
    """Email + password pair used for password authentication."""

    email: str
    password: str

    def __repr__(self) -> str:
        return f"AuthCredentials(email={self.email!r}, password='***')"


@dataclass
class AuthResult:
    """Successful authentication: the bearer token and normalized identity.

    ``user`` always carries id, email, verified and isAdmin; user logins also
    carry collectionId/collectionName, created/updated and any custom fields.
    """

    token: str
    user: dict[str, Any]


@dataclass
class FieldError:
    """One field-level validation failure."""

    field: str
    code: str
    message: str


@dataclass
class SchemaField:
    name: str
    type: str
    required: bool = False
    options: dict[str, Any] = field(default_factory=dict)
    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SchemaField":
        # Values are kept as given: validation reports wrong types instead
        # of coercing them away.
        return cls(
            name=data.get("name"),
            type=data.get("type"),
            required=data.get("required"),
            options=data.get("options") or {},
            id=data.get("id"),
        )


# -----------------------------------------------------------------------------
# CollectionSchema — a collection definition as sent by create_collection
# -----------------------------------------------------------------------------
# Access rules: None means "superusers only", "" means "anyone".
# For update_collection every attribute is optional; UNSET marks the ones
# the caller did not provide so that an explicit None rule ("admin only")
# can still be sent.  The marker survives copy/deepcopy, so it also works
# as a tool parameter default.
# -----------------------------------------------------------------------------
class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Unset":
        return self

    def __deepcopy__(self, memo: dict) -> "_Unset":
        return self


UNSET: Any = _Unset()


@dataclass
class CollectionSchema:
    name: str
    type: str = "base"
    schema: list[SchemaField] | None = field(default_factory=list)
    listRule: str | None = None
    viewRule: str | None = None
    createRule: str | None = None
    updateRule: str | None = None
    deleteRule: str | None = None
    options: dict[str, Any] | None = None


@dataclass
class CollectionUpdate:
    """Partial collection definition; attributes left as UNSET are not sent."""

    name: Any = UNSET
    type: Any = UNSET
    schema: Any = UNSET
    listRule: Any = UNSET
    viewRule: Any = UNSET
    createRule: Any = UNSET
    updateRule: Any = UNSET
    deleteRule: Any = UNSET
    options: Any = UNSET

    def provided(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in self.__dict__.items()
            if value is not UNSET
        }


@dataclass
class QueryOptions:
    """List/get query options.  filter and sort are passed through untouched."""

    filter: str | None = None
    sort: str | None = None
    page: int = 1
    perPage: int = 30
    expand: str | None = None
    fields: str | None = None
    headers: dict[str, str] | None = None

    def to_params(self, paged: bool = True) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if paged:
            params["page"] = self.page
            params["perPage"] = self.perPage
        for key in ("filter", "sort", "expand", "fields"):
            value = getattr(self, key)
            if value:
                params[key] = value
        return params
