"""Flux scripts issued by the demo.

Strings are quoted with :func:`json.dumps`, which yields a valid Flux
string literal for any bucket or org name. Non-ASCII characters are kept
as they are; Flux has no ``\\u`` escape.
"""
from __future__ import annotations

import json


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def read_query(bucket: str, start: str) -> str:
    """Return every point written to *bucket* since *start*."""
    return f"from(bucket:{_quote(bucket)}) |> range(start:{start})"


def downsample_query(bucket_in: str, bucket_out: str, org: str, start: str) -> str:
    """Copy the last point of each series in *bucket_in* into *bucket_out*."""
    return (
        f"from(bucket:{_quote(bucket_in)}) |> range(start:{start}) |> last() "
        f"|> to(bucket:{_quote(bucket_out)}, org:{_quote(org)}) |> yield()"
    )


def downsample_task(
    name: str,
    every: str,
    bucket_in: str,
    bucket_out: str,
    org: str,
    start: str = "-5s",
) -> str:
    """Wrap :func:`downsample_query` in a task that runs every *every*."""
    return (
        f"option task = {{ name: {_quote(name)}, every: {every} }} "
        + downsample_query(bucket_in, bucket_out, org, start)
    )


def counter_point(measurement: str, field: str, value: int) -> str:
    """Line protocol for one counter point, e.g. ``counter n=3``."""
    return f"{measurement} {field}={value}"
