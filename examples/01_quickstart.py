#!/usr/bin/env python3
"""Example: Quickstart for platform-demo

Pick the first authorization that grants every permission an operation
needs, the same way the demo commands choose which token to act with.
Runs offline; no platform server is required.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install platform-demo
"""
from __future__ import annotations

import platform_demo as demo


def main() -> None:
    print(f"platform-demo version: {demo.__version__}")

    # Step 1: The authorizations bootstrap would create, in creation order
    authorizations = [
        demo.Authorization(
            id="a1",
            token="token-a1",
            user_id="u1",
            permissions=(demo.write_bucket_permission("in", "o1"),),
        ),
        demo.Authorization(
            id="a2",
            token="token-a2",
            user_id="u1",
            permissions=(demo.read_bucket_permission("in", "o1"),),
        ),
        demo.Authorization(
            id="a3",
            token="token-a3",
            user_id="u1",
            permissions=(
                demo.read_bucket_permission("in", "o1"),
                demo.write_bucket_permission("out", "o1"),
                demo.create_task_permission("o1"),
            ),
        ),
    ]

    # Step 2: Ask for what each operation needs
    operations = {
        "write": [demo.write_bucket_permission("in", "o1")],
        "read-in": [demo.read_bucket_permission("in", "o1")],
        "downsample": [
            demo.read_bucket_permission("in", "o1"),
            demo.write_bucket_permission("out", "o1"),
        ],
        "read-out": [demo.read_bucket_permission("out", "o1")],
    }

    print("\nAuthorization selection:")
    for name, required in operations.items():
        match = demo.find_authorization(authorizations, required)
        if match:
            print(f"  [OK]   {name:<10} -> {match.authorization.id}")
        else:
            print(f"  [NONE] {name:<10} examined {len(match.examined)}")

    # Step 3: require_authorization raises when nothing fits
    try:
        demo.require_authorization(authorizations, demo.read_bucket_permission("out", "o1"))
    except demo.PermissionNotSatisfied as exc:
        print(f"\nGiving up: {exc}")


if __name__ == "__main__":
    main()
