"""platform-demo: provision, exercise and tear down demo resources on a
time-series platform through its HTTP API.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import platform_demo as demo
>>> match = demo.find_authorization([], demo.read_bucket_permission("b1"))
>>> bool(match)
False
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------
from platform_demo.permissions.matcher import (
    AuthorizationMatch,
    PermissionNotSatisfied,
    find_authorization,
    require_authorization,
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

# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
from platform_demo.client.base import PlatformClient
from platform_demo.client.errors import PlatformAPIError, PlatformNotFoundError

# ---------------------------------------------------------------------------
# Demo
# ---------------------------------------------------------------------------
from platform_demo.config import ConfigError, ConfigLoader, DemoConfig
from platform_demo.demo import DemoError, DemoRunner, PlatformServices
from platform_demo.naming import Namespace

__all__ = [
    "__version__",
    # Permissions
    "Action",
    "Authorization",
    "AuthorizationMatch",
    "AuthorizationStatus",
    "Permission",
    "PermissionNotSatisfied",
    "Resource",
    "ResourceKind",
    "create_task_permission",
    "find_authorization",
    "read_bucket_permission",
    "require_authorization",
    "write_bucket_permission",
    # Client
    "PlatformAPIError",
    "PlatformClient",
    "PlatformNotFoundError",
    # Demo
    "ConfigError",
    "ConfigLoader",
    "DemoConfig",
    "DemoError",
    "DemoRunner",
    "Namespace",
    "PlatformServices",
]
