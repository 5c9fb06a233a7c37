"""Service wrappers over the platform's v2 REST endpoints.

Each service holds an explicit :class:`PlatformClient`; nothing is shared
through module globals. Lookup-by-name methods raise
:class:`PlatformNotFoundError` when the platform returns no match.

Example
-------
::

    client = PlatformClient("http://localhost:9999", token)
    users = UserService(client)
    user = users.create_user("demo-user-alice")
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from platform_demo.client.base import PlatformClient
from platform_demo.client.errors import PlatformAPIError, PlatformNotFoundError
from platform_demo.client.resources import Bucket, Organization, Task, User
from platform_demo.permissions.model import Authorization, Permission

logger = logging.getLogger(__name__)


def _first(payload: Any, key: str, what: str) -> dict[str, Any]:
    items = payload.get(key, []) if isinstance(payload, dict) else []
    if not items:
        raise PlatformNotFoundError(f"{what} not found")
    return items[0]


class UserService:
    def __init__(self, client: PlatformClient) -> None:
        self._client = client

    def find_user(self, name: str) -> User:
        payload = self._client.get_json("/api/v2/users", params={"name": name})
        return User.from_dict(_first(payload, "users", f"User {name!r}"))

    def create_user(self, name: str) -> User:
        return User.from_dict(self._client.post_json("/api/v2/users", {"name": name}))

    def delete_user(self, user_id: str) -> None:
        self._client.delete(f"/api/v2/users/{user_id}")


class OrganizationService:
    def __init__(self, client: PlatformClient) -> None:
        self._client = client

    def find_organization(self, name: str) -> Organization:
        payload = self._client.get_json("/api/v2/orgs", params={"org": name})
        return Organization.from_dict(_first(payload, "orgs", f"Organization {name!r}"))

    def create_organization(self, name: str) -> Organization:
        return Organization.from_dict(
            self._client.post_json("/api/v2/orgs", {"name": name})
        )

    def delete_organization(self, org_id: str) -> None:
        self._client.delete(f"/api/v2/orgs/{org_id}")


class BucketService:
    def __init__(self, client: PlatformClient) -> None:
        self._client = client

    def find_bucket(self, name: str, org_name: str) -> Bucket:
        payload = self._client.get_json(
            "/api/v2/buckets", params={"name": name, "org": org_name}
        )
        return Bucket.from_dict(
            _first(payload, "buckets", f"Bucket {name!r} in org {org_name!r}")
        )

    def create_bucket(self, name: str, org_id: str, retention_seconds: int) -> Bucket:
        """Create a bucket; a retention of 0 keeps data forever."""
        rules = (
            [{"type": "expire", "everySeconds": retention_seconds}]
            if retention_seconds
            else []
        )
        payload = {"name": name, "orgID": org_id, "retentionRules": rules}
        return Bucket.from_dict(self._client.post_json("/api/v2/buckets", payload))

    def delete_bucket(self, bucket_id: str) -> None:
        self._client.delete(f"/api/v2/buckets/{bucket_id}")


class AuthorizationService:
    def __init__(self, client: PlatformClient) -> None:
        self._client = client

    def find_authorizations(self, user_id: str) -> list[Authorization]:
        """Return every authorization owned by *user_id*, in platform order.

        Records that grant an action or resource type this client does not
        know are skipped with a warning, so they can never be matched.
        """
        payload = self._client.get_json(
            "/api/v2/authorizations", params={"userID": user_id}
        )
        raw = payload.get("authorizations", []) if isinstance(payload, dict) else []
        authorizations: list[Authorization] = []
        for record in raw:
            try:
                authorizations.append(Authorization.from_dict(record))
            except ValueError as exc:
                logger.warning(
                    "Skipping authorization %s: %s", record.get("id"), exc
                )
        return authorizations

    def create_authorization(
        self,
        user_id: str,
        permissions: Iterable[Permission],
        *,
        org_id: str | None = None,
        description: str = "",
    ) -> Authorization:
        payload: dict[str, Any] = {
            "userID": user_id,
            "permissions": [p.to_dict() for p in permissions],
            "description": description,
        }
        if org_id is not None:
            payload["orgID"] = org_id
        return Authorization.from_dict(
            self._client.post_json("/api/v2/authorizations", payload)
        )

    def delete_authorization(self, authorization_id: str) -> None:
        self._client.delete(f"/api/v2/authorizations/{authorization_id}")


class TaskService:
    def __init__(self, client: PlatformClient) -> None:
        self._client = client

    def create_task(self, org_id: str, owner_id: str, flux: str) -> Task:
        payload = {"orgID": org_id, "ownerID": owner_id, "flux": flux, "status": "active"}
        return Task.from_dict(self._client.post_json("/api/v2/tasks", payload))


class QueryService:
    """Runs Flux queries and returns the annotated CSV response verbatim."""

    _DIALECT = {
        "header": True,
        "annotations": ["datatype", "group", "default"],
    }

    def __init__(self, client: PlatformClient) -> None:
        self._client = client

    def query(self, org_id: str, flux: str) -> str:
        resp = self._client.request(
            "POST",
            "/api/v2/query",
            params={"orgID": org_id},
            json={"query": flux, "type": "flux", "dialect": self._DIALECT},
            headers={"Accept": "application/csv"},
        )
        return resp.text


class WriteService:
    """Writes line protocol to a bucket."""

    def __init__(self, client: PlatformClient) -> None:
        self._client = client

    def write(self, org: str, bucket: str, line_protocol: str) -> None:
        """Write one batch; anything but 204 No Content is an error."""
        resp = self._client.request(
            "POST",
            "/api/v2/write",
            params={"org": org, "bucket": bucket},
            content=line_protocol,
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )
        if resp.status_code != 204:
            raise PlatformAPIError(
                resp.status_code,
                f"Unexpected response status code from write: {resp.status_code}",
                response_body=resp.text,
            )
