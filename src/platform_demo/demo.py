"""Demo operations against a running platform.

:class:`DemoRunner` provisions, exercises and tears down the resources of
one :class:`~platform_demo.naming.Namespace`. Service handles are passed in
explicitly through :class:`PlatformServices`; the runner never reaches for
module-level clients.

Every command that acts as the demo user first lists the user's
authorizations and picks one with
:func:`~platform_demo.permissions.find_authorization`. When none fits, the
examined authorizations are logged and
:class:`~platform_demo.permissions.PermissionNotSatisfied` propagates to
the caller.

Example
-------
::

    services = PlatformServices.from_client(PlatformClient(api, token))
    runner = DemoRunner(Namespace("alice"), services)
    runner.bootstrap()
    print(runner.read_in().csv)
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from platform_demo.client.base import PlatformClient
from platform_demo.client.errors import PlatformAPIError
from platform_demo.client.resources import Bucket, Organization, Task, User
from platform_demo.client.services import (
    AuthorizationService,
    BucketService,
    OrganizationService,
    QueryService,
    TaskService,
    UserService,
    WriteService,
)
from platform_demo.config import DemoConfig
from platform_demo.flux import counter_point, downsample_query, downsample_task, read_query
from platform_demo.naming import Namespace
from platform_demo.permissions.matcher import find_authorization
from platform_demo.permissions.model import (
    Authorization,
    Permission,
    create_task_permission,
    read_bucket_permission,
    write_bucket_permission,
)

logger = logging.getLogger(__name__)


class DemoError(RuntimeError):
    """A demo step failed; the platform error is chained as ``__cause__``."""


# ---------------------------------------------------------------------------
# Service bundle and results
# ---------------------------------------------------------------------------


@dataclass
class PlatformServices:
    """The operator-token services the runner provisions with."""

    client: PlatformClient
    users: UserService
    orgs: OrganizationService
    buckets: BucketService
    auths: AuthorizationService

    @classmethod
    def from_client(cls, client: PlatformClient) -> PlatformServices:
        return cls(
            client=client,
            users=UserService(client),
            orgs=OrganizationService(client),
            buckets=BucketService(client),
            auths=AuthorizationService(client),
        )


@dataclass(frozen=True)
class BootstrapResult:
    user: User
    org: Organization
    bucket_in: Bucket
    bucket_out: Bucket
    authorizations: tuple[Authorization, ...]


@dataclass
class NamespaceListing:
    """What exists for a namespace; missing entities are ``None``."""

    user: User | None = None
    org: Organization | None = None
    bucket_in: Bucket | None = None
    bucket_out: Bucket | None = None
    authorizations: list[Authorization] = field(default_factory=list)


@dataclass(frozen=True)
class QueryOutput:
    query: str
    csv: str


@dataclass
class DestroyReport:
    deleted: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class DemoRunner:
    """Runs the demo commands for one namespace.

    Parameters
    ----------
    namespace:
        Namespace whose resources are created, used and destroyed.
    services:
        Services authenticated with the operator (bootstrap) token.
    config:
        Demo settings; defaults apply when omitted.
    sleep:
        Called between writes. Tests substitute a no-op.
    clock:
        Returns the current Unix time; used to name tasks.
    """

    def __init__(
        self,
        namespace: Namespace,
        services: PlatformServices,
        config: DemoConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ns = namespace
        self._services = services
        self._config = config or DemoConfig()
        self._sleep = sleep
        self._clock = clock

    @property
    def namespace(self) -> Namespace:
        return self._ns

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _must_user(self) -> User:
        try:
            return self._services.users.find_user(self._ns.user)
        except PlatformAPIError as exc:
            raise DemoError(f"Failed to find user {self._ns.user!r}: {exc}") from exc

    def _must_org(self) -> Organization:
        try:
            return self._services.orgs.find_organization(self._ns.org)
        except PlatformAPIError as exc:
            raise DemoError(f"Failed to find org {self._ns.org!r}: {exc}") from exc

    def _must_bucket(self, name: str) -> Bucket:
        try:
            return self._services.buckets.find_bucket(name, self._ns.org)
        except PlatformAPIError as exc:
            raise DemoError(f"Failed to find bucket {name!r}: {exc}") from exc

    def _user_authorizations(self, user: User) -> list[Authorization]:
        try:
            return self._services.auths.find_authorizations(user.id)
        except PlatformAPIError as exc:
            raise DemoError(
                f"Failed to find authorizations for user with ID {user.id}: {exc}"
            ) from exc

    def _select_authorization(
        self,
        user: User,
        required: list[Permission],
        purpose: str,
    ) -> Authorization:
        authorizations = self._user_authorizations(user)
        match = find_authorization(authorizations, required)
        if match:
            return match.unwrap()

        logger.error(
            "Unable to find existing auth for user %r to %s.", self._ns.user, purpose
        )
        logger.error("Found authorizations:")
        for authorization in match.examined:
            logger.error("\t%s", authorization)
        raise match.error()

    @staticmethod
    def _org_scope(bucket: Bucket) -> str | None:
        return bucket.org_id or None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def bootstrap(self) -> BootstrapResult:
        """Create the user, org, buckets and authorizations for the namespace.

        Authorizations created, in order:

        1. write to the input bucket
        2. read from the input bucket
        3. read input, write output, create tasks in the org
        4. read from the output bucket

        Raises
        ------
        DemoError
            On the first platform call that fails. Resources created
            before the failure are left in place; run :meth:`destroy`.
        """
        svc = self._services
        ns = self._ns
        retention = self._config.buckets

        try:
            user = svc.users.create_user(ns.user)
        except PlatformAPIError as exc:
            raise DemoError(f"Failed to create user: {exc}") from exc
        logger.info("Created user %r with ID %s", user.name, user.id)

        try:
            org = svc.orgs.create_organization(ns.org)
        except PlatformAPIError as exc:
            raise DemoError(f"Failed to create org: {exc}") from exc
        logger.info("Created org %r with ID %s", org.name, org.id)

        buckets: list[Bucket] = []
        for name, seconds in (
            (ns.bucket_in, retention.input_retention_seconds),
            (ns.bucket_out, retention.output_retention_seconds),
        ):
            try:
                bucket = svc.buckets.create_bucket(name, org.id, seconds)
            except PlatformAPIError as exc:
                raise DemoError(f"Failed to create bucket {name!r}: {exc}") from exc
            logger.info("Created bucket %r with ID %s", bucket.name, bucket.id)
            buckets.append(bucket)
        bucket_in, bucket_out = buckets

        grants: list[tuple[str, list[Permission]]] = [
            (
                f"write to bucket {bucket_in.name}",
                [write_bucket_permission(bucket_in.id, org.id)],
            ),
            (
                f"read from bucket {bucket_in.name}",
                [read_bucket_permission(bucket_in.id, org.id)],
            ),
            (
                f"read from bucket {bucket_in.name}, write to bucket "
                f"{bucket_out.name}, and create tasks in org {org.name!r}",
                [
                    read_bucket_permission(bucket_in.id, org.id),
                    write_bucket_permission(bucket_out.id, org.id),
                    create_task_permission(org.id),
                ],
            ),
            (
                f"read from bucket {bucket_out.name}",
                [read_bucket_permission(bucket_out.id, org.id)],
            ),
        ]

        created: list[Authorization] = []
        for purpose, permissions in grants:
            try:
                authorization = svc.auths.create_authorization(
                    user.id, permissions, org_id=org.id, description=f"demo: {purpose}"
                )
            except PlatformAPIError as exc:
                raise DemoError(
                    f"Failed to create authorization to {purpose}: {exc}"
                ) from exc
            logger.info("Created authorization to %s", purpose)
            created.append(authorization)

        return BootstrapResult(user, org, bucket_in, bucket_out, tuple(created))

    def list_entities(self) -> NamespaceListing:
        """Look up everything the namespace owns; missing pieces are skipped."""
        svc = self._services
        ns = self._ns
        listing = NamespaceListing()

        try:
            listing.user = svc.users.find_user(ns.user)
            logger.info("User %r with ID %s", ns.user, listing.user.id)
        except PlatformAPIError:
            logger.warning("Could not find user %r; continuing...", ns.user)

        try:
            listing.org = svc.orgs.find_organization(ns.org)
            logger.info("Org %r with ID %s", ns.org, listing.org.id)
        except PlatformAPIError:
            logger.warning("Could not find org %r; continuing...", ns.org)

        for attr, name in (("bucket_in", ns.bucket_in), ("bucket_out", ns.bucket_out)):
            try:
                bucket = svc.buckets.find_bucket(name, ns.org)
            except PlatformAPIError:
                logger.warning("Could not find bucket %r; continuing...", name)
                continue
            setattr(listing, attr, bucket)
            logger.info("Bucket %r with ID %s", name, bucket.id)

        if listing.user is None:
            return listing

        try:
            listing.authorizations = svc.auths.find_authorizations(listing.user.id)
        except PlatformAPIError:
            logger.warning(
                "Could not find authorizations for user %r; continuing...", ns.user
            )
        return listing

    def write(self, count: int | None = None, interval: float | None = None) -> int:
        """Write ``counter n=<i>`` points to the input bucket.

        Parameters
        ----------
        count:
            Number of points to write. ``None`` writes until interrupted.
        interval:
            Seconds between points; defaults to the configured interval.

        Returns
        -------
        int
            Number of points written. Ctrl-C stops the loop and returns
            the count so far.
        """
        if count is not None and count < 0:
            raise ValueError("count must be >= 0")
        pause = self._config.write.interval_seconds if interval is None else interval

        user = self._must_user()
        bucket = self._must_bucket(self._ns.bucket_in)
        authorization = self._select_authorization(
            user,
            [write_bucket_permission(bucket.id, self._org_scope(bucket))],
            f"write to bucket {bucket.name!r}",
        )
        writer = WriteService(self._services.client.with_token(authorization.token))

        written = 0
        try:
            while count is None or written < count:
                if written:
                    self._sleep(pause)
                point = counter_point(
                    self._config.write.measurement, self._config.write.field, written
                )
                try:
                    writer.write(self._ns.org, bucket.name, point)
                except PlatformAPIError as exc:
                    raise DemoError(f"Failed to write batch: {exc}") from exc
                logger.info(
                    "Successfully wrote %r to bucket %r in org %r",
                    point,
                    bucket.name,
                    self._ns.org,
                )
                written += 1
        except KeyboardInterrupt:
            logger.info("Interrupted after %d point(s)", written)
        return written

    def read_once(self, bucket_name: str, start: str) -> QueryOutput:
        """Query *bucket_name* from *start* until now and return the CSV."""
        org = self._must_org()
        bucket = self._must_bucket(bucket_name)
        user = self._must_user()
        authorization = self._select_authorization(
            user,
            [read_bucket_permission(bucket.id, self._org_scope(bucket))],
            f"read from bucket {bucket_name!r}",
        )
        query = read_query(bucket_name, start)
        return self._run_query(authorization, org, query)

    def read_in(self) -> QueryOutput:
        return self.read_once(self._ns.bucket_in, self._config.ranges.read_in)

    def read_out(self) -> QueryOutput:
        return self.read_once(self._ns.bucket_out, self._config.ranges.read_out)

    def downsample_once(self, start: str | None = None) -> QueryOutput:
        """Copy the latest input point into the output bucket once."""
        start = start or self._config.ranges.downsample
        org = self._must_org()
        bucket_in = self._must_bucket(self._ns.bucket_in)
        bucket_out = self._must_bucket(self._ns.bucket_out)
        user = self._must_user()
        authorization = self._select_authorization(
            user,
            [
                read_bucket_permission(bucket_in.id, self._org_scope(bucket_in)),
                write_bucket_permission(bucket_out.id, self._org_scope(bucket_out)),
            ],
            f"read from bucket {bucket_in.name!r} AND write to bucket "
            f"{bucket_out.name!r}",
        )
        query = downsample_query(bucket_in.name, bucket_out.name, self._ns.org, start)
        return self._run_query(authorization, org, query)

    def create_task(self) -> Task:
        """Create a task that downsamples input to output continuously."""
        org = self._must_org()
        bucket_in = self._must_bucket(self._ns.bucket_in)
        bucket_out = self._must_bucket(self._ns.bucket_out)
        user = self._must_user()
        authorization = self._select_authorization(
            user,
            [
                read_bucket_permission(bucket_in.id, self._org_scope(bucket_in)),
                write_bucket_permission(bucket_out.id, self._org_scope(bucket_out)),
                create_task_permission(org.id),
            ],
            f"read from bucket {bucket_in.name!r} AND write to bucket "
            f"{bucket_out.name!r} AND create tasks in org {org.id}",
        )

        name = f"demo-{int(self._clock())}"
        flux = downsample_task(
            name,
            self._config.task_every,
            bucket_in.name,
            bucket_out.name,
            self._ns.org,
            self._config.ranges.downsample,
        )
        tasks = TaskService(self._services.client.with_token(authorization.token))
        try:
            task = tasks.create_task(org.id, user.id, flux)
        except PlatformAPIError as exc:
            raise DemoError(f"Failed to create task: {exc}") from exc
        logger.info("Created task with ID %s", task.id)
        return task

    def destroy(self) -> DestroyReport:
        """Delete the demo user and org. Failures are logged, never raised.

        Deleting the org removes its buckets, and deleting the user removes
        the user's authorizations.
        """
        svc = self._services
        ns = self._ns
        report = DestroyReport()

        try:
            user = svc.users.find_user(ns.user)
        except PlatformAPIError:
            logger.warning("Could not find user %r; continuing...", ns.user)
            report.missing.append(ns.user)
        else:
            try:
                svc.users.delete_user(user.id)
            except PlatformAPIError as exc:
                logger.error("Failed to delete user with ID %s: %s", user.id, exc)
                report.failed.append(ns.user)
            else:
                logger.info("Deleted user %r", ns.user)
                report.deleted.append(ns.user)

        try:
            org = svc.orgs.find_organization(ns.org)
        except PlatformAPIError:
            logger.warning("Could not find org %r; continuing...", ns.org)
            report.missing.append(ns.org)
        else:
            try:
                svc.orgs.delete_organization(org.id)
            except PlatformAPIError as exc:
                logger.error("Failed to delete org with ID %s: %s", org.id, exc)
                report.failed.append(ns.org)
            else:
                logger.info("Deleted org %r", ns.org)
                report.deleted.append(ns.org)

        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run_query(
        self, authorization: Authorization, org: Organization, query: str
    ) -> QueryOutput:
        querier = QueryService(self._services.client.with_token(authorization.token))
        try:
            csv_text = querier.query(org.id, query)
        except PlatformAPIError as exc:
            raise DemoError(f"Failed to query: {exc}") from exc
        logger.info("Executed query: %s", query)
        return QueryOutput(query=query, csv=csv_text)
