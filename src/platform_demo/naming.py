"""Names of the demo resources owned by one namespace."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Namespace:
    """A suffix that keeps one operator's demo resources apart from another's.

    Example
    -------
    >>> Namespace("alice").bucket_in
    'demo-bucket-in-alice'
    """

    name: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Namespace must not be empty.")
        if self.name != self.name.strip():
            raise ValueError(
                f"Namespace {self.name!r} must not start or end with whitespace."
            )

    @property
    def user(self) -> str:
        return f"demo-user-{self.name}"

    @property
    def org(self) -> str:
        return f"demo-org-{self.name}"

    @property
    def bucket_in(self) -> str:
        return f"demo-bucket-in-{self.name}"

    @property
    def bucket_out(self) -> str:
        return f"demo-bucket-out-{self.name}"

    def __str__(self) -> str:
        return self.name
