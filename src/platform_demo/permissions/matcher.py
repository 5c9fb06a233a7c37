"""Select a usable authorization for a set of required permissions.

Authorizations are scanned in caller order and the first one whose
granted permissions satisfy every required permission wins. There is no
best-match ranking: an earlier, broader authorization beats a later,
tighter one.

Example
-------
::

    match = find_authorization(
        authorizations,
        [read_bucket_permission(in_id), write_bucket_permission(out_id)],
    )
    if match:
        token = match.authorization.token
    else:
        raise match.error()
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from platform_demo.permissions.model import Authorization, Permission

logger = logging.getLogger(__name__)


class PermissionNotSatisfied(LookupError):
    """Raised when no authorization grants every required permission.

    Attributes
    ----------
    required:
        The permissions that had to be satisfied together.
    examined:
        Every authorization that was considered, in scan order.
    """

    def __init__(
        self,
        required: tuple[Permission, ...],
        examined: tuple[Authorization, ...],
    ) -> None:
        self.required = required
        self.examined = examined
        wanted = ", ".join(str(p) for p in required)
        super().__init__(
            f"None of {len(examined)} authorization(s) grants all of: {wanted}"
        )


@dataclass(frozen=True)
class AuthorizationMatch:
    """Outcome of a matcher scan.

    Attributes
    ----------
    authorization:
        The first satisfying authorization, or ``None`` when nothing matched.
    required:
        The required permissions, deduplicated, in first-seen order.
    examined:
        The authorizations scanned, in order, up to and including the
        match. Every supplied authorization when nothing matched.
    """

    authorization: Authorization | None
    required: tuple[Permission, ...]
    examined: tuple[Authorization, ...]

    def __bool__(self) -> bool:
        """Return True if an authorization was found."""
        return self.authorization is not None

    def error(self) -> PermissionNotSatisfied:
        return PermissionNotSatisfied(self.required, self.examined)

    def unwrap(self) -> Authorization:
        """Return the matched authorization or raise PermissionNotSatisfied."""
        if self.authorization is None:
            raise self.error()
        return self.authorization


def _normalise_required(
    required: Permission | Iterable[Permission],
) -> tuple[Permission, ...]:
    if isinstance(required, Permission):
        return (required,)
    # dict.fromkeys keeps first-seen order while dropping duplicates.
    return tuple(dict.fromkeys(required))


def satisfies(authorization: Authorization, required: Iterable[Permission]) -> bool:
    """Return True if *authorization* grants every permission in *required*."""
    return all(authorization.allowed(p) for p in required)


def find_authorization(
    authorizations: Iterable[Authorization],
    required: Permission | Iterable[Permission],
) -> AuthorizationMatch:
    """Return the first authorization that grants all *required* permissions.

    Parameters
    ----------
    authorizations:
        Candidates in priority order. May be empty.
    required:
        One permission or a non-empty collection of permissions that must
        all be granted by the same authorization.

    Returns
    -------
    AuthorizationMatch
        Falsy when nothing matched.

    Raises
    ------
    ValueError
        If *required* is empty.
    """
    wanted = _normalise_required(required)
    if not wanted:
        raise ValueError("At least one required permission must be given.")

    examined: list[Authorization] = []
    for candidate in authorizations:
        examined.append(candidate)
        if satisfies(candidate, wanted):
            logger.debug(
                "Authorization %s satisfies %s",
                candidate.id,
                ", ".join(str(p) for p in wanted),
            )
            return AuthorizationMatch(candidate, wanted, tuple(examined))

    logger.debug(
        "No authorization among %d satisfies %s",
        len(examined),
        ", ".join(str(p) for p in wanted),
    )
    return AuthorizationMatch(None, wanted, tuple(examined))


def require_authorization(
    authorizations: Iterable[Authorization],
    required: Permission | Iterable[Permission],
) -> Authorization:
    """Like :func:`find_authorization` but raise when nothing matches.

    Raises
    ------
    PermissionNotSatisfied
        If no authorization grants every required permission.
    """
    return find_authorization(authorizations, required).unwrap()
