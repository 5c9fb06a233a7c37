"""Permission and authorization records for the platform's access model.

A :class:`Permission` pairs an :class:`Action` with a :class:`Resource`.
An :class:`Authorization` bundles a token with an ordered list of granted
permissions. Both are immutable once built; they are created and deleted
only through the platform's authorization service.

Subsumption
-----------
``held.allows(requested)`` accepts the requested permission when actions
and resource kinds are equal and the held resource is at least as broad:

- a held resource with an ``id`` matches only that id;
- a held resource without an ``id`` matches every resource of its kind,
  restricted to its ``org_id`` when one is set.

Example
-------
::

    held = Permission(Action.WRITE, Resource(ResourceKind.BUCKETS, org_id="o1"))
    assert held.allows(write_bucket_permission("b1", org_id="o1"))
    assert not held.allows(write_bucket_permission("b1", org_id="o2"))
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Action(str, Enum):
    """Operations a permission can grant."""

    READ = "read"
    WRITE = "write"
    CREATE = "create"
    DELETE = "delete"


class ResourceKind(str, Enum):
    """Resource kinds known to the platform's permission model."""

    USERS = "users"
    ORGS = "orgs"
    BUCKETS = "buckets"
    TASKS = "tasks"
    AUTHORIZATIONS = "authorizations"


class AuthorizationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def _parse_enum(enum_cls: type[Enum], raw: object, label: str) -> Enum:
    try:
        return enum_cls(str(raw))
    except ValueError as exc:
        valid = sorted(member.value for member in enum_cls)  # type: ignore[attr-defined]
        raise ValueError(f"Unknown {label} {raw!r}. Valid: {valid}.") from exc


def _optional_id(raw: object) -> str | None:
    # Only an absent or empty id means "unscoped"; 0 is a real id.
    if raw is None or raw == "":
        return None
    return str(raw)


# ---------------------------------------------------------------------------
# Resource
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Resource:
    """Reference to one resource, or to every resource of a kind.

    Attributes
    ----------
    kind:
        The resource kind.
    id:
        Identifier of a single resource. ``None`` means any resource of
        ``kind``.
    org_id:
        Organization the reference is scoped to. ``None`` means unscoped.
    """

    kind: ResourceKind
    id: str | None = None
    org_id: str | None = None

    def subsumes(self, other: Resource) -> bool:
        """Return True if every resource *other* names is also named here."""
        if self.kind != other.kind:
            return False
        if self.id is not None:
            if self.id != other.id:
                return False
            # An exact id pins the resource; only a conflicting org disqualifies it.
            return (
                self.org_id is None
                or other.org_id is None
                or self.org_id == other.org_id
            )
        if self.org_id is not None:
            return self.org_id == other.org_id
        return True

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Resource:
        """Build a Resource from its wire form ``{"type", "id", "orgID"}``."""
        kind = _parse_enum(ResourceKind, data.get("type", ""), "resource type")
        raw_id = data.get("id")
        raw_org = data.get("orgID")
        return cls(
            kind=kind,  # type: ignore[arg-type]
            id=_optional_id(raw_id),
            org_id=_optional_id(raw_org),
        )

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"type": self.kind.value}
        if self.id is not None:
            data["id"] = self.id
        if self.org_id is not None:
            data["orgID"] = self.org_id
        return data

    def __str__(self) -> str:
        path = self.kind.value
        if self.org_id is not None:
            path = f"orgs/{self.org_id}/{path}"
        if self.id is not None:
            path = f"{path}/{self.id}"
        return path


# ---------------------------------------------------------------------------
# Permission
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Permission:
    """An (action, resource) pair describing one allowed operation."""

    action: Action
    resource: Resource

    def allows(self, requested: Permission) -> bool:
        """Return True if holding this permission satisfies *requested*."""
        return self.action == requested.action and self.resource.subsumes(
            requested.resource
        )

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Permission:
        """Build a Permission from ``{"action": ..., "resource": {...}}``.

        Raises
        ------
        ValueError
            If the action or resource type is unknown, or ``resource`` is
            not a mapping.
        """
        action = _parse_enum(Action, data.get("action", ""), "action")
        raw_resource = data.get("resource")
        if not isinstance(raw_resource, dict):
            raise ValueError(
                f"Permission.resource must be a mapping; got {raw_resource!r}."
            )
        return cls(action=action, resource=Resource.from_dict(raw_resource))  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, object]:
        return {"action": self.action.value, "resource": self.resource.to_dict()}

    def __str__(self) -> str:
        return f"{self.action.value}:{self.resource}"


def read_bucket_permission(bucket_id: str, org_id: str | None = None) -> Permission:
    """Permission to read from a single bucket."""
    return Permission(Action.READ, Resource(ResourceKind.BUCKETS, bucket_id, org_id))


def write_bucket_permission(bucket_id: str, org_id: str | None = None) -> Permission:
    """Permission to write to a single bucket."""
    return Permission(Action.WRITE, Resource(ResourceKind.BUCKETS, bucket_id, org_id))


def create_task_permission(org_id: str) -> Permission:
    """Permission to create tasks in an organization."""
    return Permission(Action.CREATE, Resource(ResourceKind.TASKS, org_id=org_id))


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Authorization:
    """An issued credential and the permissions granted with it.

    Attributes
    ----------
    id:
        Identifier assigned by the platform.
    token:
        Secret presented on requests made with this authorization.
    user_id:
        Owning user.
    permissions:
        Granted permissions, in the order the platform returned them.
    status:
        Inactive authorizations satisfy nothing.
    description:
        Free-form label.
    """

    id: str
    token: str
    user_id: str
    permissions: tuple[Permission, ...] = field(default_factory=tuple)
    status: AuthorizationStatus = AuthorizationStatus.ACTIVE
    description: str = ""

    @property
    def is_active(self) -> bool:
        return self.status is AuthorizationStatus.ACTIVE

    def allowed(self, requested: Permission) -> bool:
        """Return True if this authorization is active and grants *requested*."""
        if not self.is_active:
            return False
        return any(held.allows(requested) for held in self.permissions)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Authorization:
        """Build an Authorization from the platform's JSON representation."""
        raw_permissions: list[dict[str, object]] = list(
            data.get("permissions") or []  # type: ignore[arg-type]
        )
        status = _parse_enum(
            AuthorizationStatus, data.get("status") or "active", "authorization status"
        )
        return cls(
            id=str(data.get("id", "")),
            token=str(data.get("token", "")),
            user_id=str(data.get("userID", "")),
            permissions=tuple(Permission.from_dict(p) for p in raw_permissions),
            status=status,  # type: ignore[arg-type]
            description=str(data.get("description") or ""),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "token": self.token,
            "userID": self.user_id,
            "status": self.status.value,
            "description": self.description,
            "permissions": [p.to_dict() for p in self.permissions],
        }

    def __str__(self) -> str:
        granted = ", ".join(str(p) for p in self.permissions) or "<none>"
        return f"Authorization {self.id} ({self.status.value}): {granted}"
