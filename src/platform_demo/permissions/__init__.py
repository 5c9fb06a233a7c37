"""Permission model and authorization matching for the platform demo.

Example
-------
::

    from platform_demo.permissions import (
        find_authorization,
        read_bucket_permission,
    )

    match = find_authorization(authorizations, read_bucket_permission(bucket_id))
    token = match.unwrap().token
"""
from __future__ import annotations

from platform_demo.permissions.matcher import (
    AuthorizationMatch,
    PermissionNotSatisfied,
    find_authorization,
    require_authorization,
    satisfies,
)
from platform_demo.permissions.model import (
    Action,
    Authorization,
    AuthorizationStatus,
    Permission,
    Resource,
    ResourceKind,
    create_task_permission,
    read_bucket_permission,
    write_bucket_permission,
)

__all__ = [
    # Model
    "Action",
    "Authorization",
    "AuthorizationStatus",
    "Permission",
    "Resource",
    "ResourceKind",
    "create_task_permission",
    "read_bucket_permission",
    "write_bucket_permission",
    # Matcher
    "AuthorizationMatch",
    "PermissionNotSatisfied",
    "find_authorization",
    "require_authorization",
    "satisfies",
]
