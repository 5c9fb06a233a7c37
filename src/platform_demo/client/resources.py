"""Records returned by the platform's resource endpoints."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> User:
        return cls(id=str(data.get("id", "")), name=str(data.get("name", "")))


@dataclass(frozen=True)
class Organization:
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Organization:
        return cls(id=str(data.get("id", "")), name=str(data.get("name", "")))


@dataclass(frozen=True)
class Bucket:
    """A bucket and its retention period in seconds (0 means infinite)."""

    id: str
    name: str
    org_id: str
    retention_seconds: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Bucket:
        retention = 0
        rules = data.get("retentionRules") or []
        for rule in rules:  # type: ignore[attr-defined]
            if isinstance(rule, dict) and rule.get("type") == "expire":
                retention = int(rule.get("everySeconds", 0))
                break
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            org_id=str(data.get("orgID", "")),
            retention_seconds=retention,
        )


@dataclass(frozen=True)
class Task:
    id: str
    org_id: str
    flux: str
    status: str = "active"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Task:
        return cls(
            id=str(data.get("id", "")),
            org_id=str(data.get("orgID", "")),
            flux=str(data.get("flux", "")),
            status=str(data.get("status") or "active"),
        )
