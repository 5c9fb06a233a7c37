"""Shared fixtures: an in-memory platform served through httpx.MockTransport."""
from __future__ import annotations

import itertools
import json
from collections.abc import Iterator
from typing import Any

import httpx
import pytest

from platform_demo.client.base import PlatformClient
from platform_demo.demo import PlatformServices

OPERATOR_TOKEN = "operator-token"
BASE_URL = "http://platform.test"

QUERY_CSV = (
    "#datatype,string,long,dateTime:RFC3339,double,string,string\n"
    "#group,false,false,false,false,true,true\n"
    "#default,_result,,,,,\n"
    ",result,table,_time,_value,_field,_measurement\n"
    ",,0,2024-01-01T00:00:00Z,3,n,counter\n"
)


class FakePlatform:
    """Just enough of the v2 API for the demo commands.

    Attributes
    ----------
    failures:
        ``(method, path)`` pairs mapped to a status code to return instead
        of handling the request.
    requests:
        Every request seen, in order.
    """

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.orgs: dict[str, dict[str, Any]] = {}
        self.buckets: dict[str, dict[str, Any]] = {}
        self.authorizations: dict[str, dict[str, Any]] = {}
        self.tasks: dict[str, dict[str, Any]] = {}
        self.writes: list[dict[str, str]] = []
        self.queries: list[dict[str, Any]] = []
        self.failures: dict[tuple[str, str], int] = {}
        self.requests: list[httpx.Request] = []
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids):04d}"

    def add_user(self, name: str) -> dict[str, Any]:
        user = {"id": self._next_id("u"), "name": name}
        self.users[user["id"]] = user
        return user

    def add_org(self, name: str) -> dict[str, Any]:
        org = {"id": self._next_id("o"), "name": name}
        self.orgs[org["id"]] = org
        return org

    def add_bucket(self, name: str, org_id: str) -> dict[str, Any]:
        bucket = {"id": self._next_id("b"), "name": name, "orgID": org_id, "retentionRules": []}
        self.buckets[bucket["id"]] = bucket
        return bucket

    def add_authorization(
        self,
        user_id: str,
        permissions: list[dict[str, Any]],
        status: str = "active",
    ) -> dict[str, Any]:
        auth_id = self._next_id("a")
        auth = {
            "id": auth_id,
            "token": f"token-{auth_id}",
            "userID": user_id,
            "status": status,
            "description": "",
            "permissions": permissions,
        }
        self.authorizations[auth_id] = auth
        return auth

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method = request.method
        path = request.url.path
        params = request.url.params

        status = self.failures.get((method, path))
        if status is not None:
            return httpx.Response(status, json={"message": f"injected {status}"})

        if not request.headers.get("Authorization", "").startswith("Token "):
            return httpx.Response(401, json={"message": "unauthorized"})

        body: Any = None
        if request.content and request.headers.get("Content-Type", "").startswith(
            "application/json"
        ):
            body = json.loads(request.content)

        parts = path.strip("/").split("/")
        if parts[:2] != ["api", "v2"] or len(parts) < 3:
            return httpx.Response(404, json={"message": "not found"})
        collection = parts[2]
        item_id = parts[3] if len(parts) > 3 else None

        if collection == "users":
            return self._crud(method, item_id, self.users, "users", body, params.get("name"), "u")
        if collection == "orgs":
            return self._crud(method, item_id, self.orgs, "orgs", body, params.get("org"), "o")
        if collection == "buckets":
            return self._buckets(method, item_id, body, params)
        if collection == "authorizations":
            return self._authorizations(method, item_id, body, params)
        if collection == "tasks" and method == "POST":
            task = {"id": self._next_id("t"), **body}
            self.tasks[task["id"]] = task
            return httpx.Response(201, json=task)
        if collection == "query" and method == "POST":
            self.queries.append(
                {
                    "token": request.headers["Authorization"].split(" ", 1)[1],
                    "orgID": params.get("orgID"),
                    "query": body["query"],
                }
            )
            return httpx.Response(200, text=QUERY_CSV, headers={"Content-Type": "text/csv"})
        if collection == "write" and method == "POST":
            self.writes.append(
                {
                    "token": request.headers["Authorization"].split(" ", 1)[1],
                    "org": params.get("org", ""),
                    "bucket": params.get("bucket", ""),
                    "body": request.content.decode("utf-8"),
                }
            )
            return httpx.Response(204)
        return httpx.Response(404, json={"message": "not found"})

    def _crud(
        self,
        method: str,
        item_id: str | None,
        store: dict[str, dict[str, Any]],
        key: str,
        body: Any,
        name: str | None,
        prefix: str,
    ) -> httpx.Response:
        if method == "GET":
            items = [i for i in store.values() if name is None or i["name"] == name]
            return httpx.Response(200, json={key: items})
        if method == "POST":
            if any(i["name"] == body["name"] for i in store.values()):
                return httpx.Response(409, json={"message": f"{body['name']} already exists"})
            item = {"id": self._next_id(prefix), "name": body["name"]}
            store[item["id"]] = item
            return httpx.Response(201, json=item)
        if method == "DELETE" and item_id in store:
            del store[item_id]
            if key == "users":
                for auth_id in [
                    a["id"] for a in self.authorizations.values() if a["userID"] == item_id
                ]:
                    del self.authorizations[auth_id]
            if key == "orgs":
                for bucket_id in [
                    b["id"] for b in self.buckets.values() if b["orgID"] == item_id
                ]:
                    del self.buckets[bucket_id]
            return httpx.Response(204)
        return httpx.Response(404, json={"message": "not found"})

    def _buckets(
        self, method: str, item_id: str | None, body: Any, params: httpx.QueryParams
    ) -> httpx.Response:
        if method == "GET":
            org_ids = {o["id"] for o in self.orgs.values() if o["name"] == params.get("org")}
            items = [
                b
                for b in self.buckets.values()
                if b["name"] == params.get("name") and b["orgID"] in org_ids
            ]
            return httpx.Response(200, json={"buckets": items})
        if method == "POST":
            bucket = {"id": self._next_id("b"), **body}
            self.buckets[bucket["id"]] = bucket
            return httpx.Response(201, json=bucket)
        if method == "DELETE" and item_id in self.buckets:
            del self.buckets[item_id]
            return httpx.Response(204)
        return httpx.Response(404, json={"message": "not found"})

    def _authorizations(
        self, method: str, item_id: str | None, body: Any, params: httpx.QueryParams
    ) -> httpx.Response:
        if method == "GET":
            user_id = params.get("userID")
            items = [a for a in self.authorizations.values() if a["userID"] == user_id]
            return httpx.Response(200, json={"authorizations": items})
        if method == "POST":
            auth = self.add_authorization(body["userID"], body["permissions"])
            auth["description"] = body.get("description", "")
            if "orgID" in body:
                auth["orgID"] = body["orgID"]
            return httpx.Response(201, json=auth)
        if method == "DELETE" and item_id in self.authorizations:
            del self.authorizations[item_id]
            return httpx.Response(204)
        return httpx.Response(404, json={"message": "not found"})


@pytest.fixture()
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture()
def http_client(platform: FakePlatform) -> Iterator[httpx.Client]:
    with httpx.Client(transport=httpx.MockTransport(platform.handler)) as client:
        yield client


@pytest.fixture()
def client(http_client: httpx.Client) -> PlatformClient:
    return PlatformClient(BASE_URL, OPERATOR_TOKEN, http_client=http_client)


@pytest.fixture()
def services(client: PlatformClient) -> PlatformServices:
    return PlatformServices.from_client(client)
