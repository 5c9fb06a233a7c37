"""HTTP client for the time-series platform's v2 API."""
from __future__ import annotations

from platform_demo.client.base import PlatformClient, raise_for_status
from platform_demo.client.errors import (
    PlatformAPIError,
    PlatformAuthError,
    PlatformConflictError,
    PlatformNotFoundError,
    PlatformTimeoutError,
)
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

__all__ = [
    "PlatformClient",
    "raise_for_status",
    # Errors
    "PlatformAPIError",
    "PlatformAuthError",
    "PlatformConflictError",
    "PlatformNotFoundError",
    "PlatformTimeoutError",
    # Records
    "Bucket",
    "Organization",
    "Task",
    "User",
    # Services
    "AuthorizationService",
    "BucketService",
    "OrganizationService",
    "QueryService",
    "TaskService",
    "UserService",
    "WriteService",
]
