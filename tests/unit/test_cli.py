"""Tests for the platform-demo click CLI."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
import pytest
from click.testing import CliRunner, Result

from platform_demo.cli.main import cli

if TYPE_CHECKING:
    from conftest import FakePlatform

ENV = {"BOOTSTRAP_TOKEN": "operator-token", "PLATFORM_DEMO_API": "http://platform.test"}


@pytest.fixture(autouse=True)
def _restore_root_logger(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    # The group callback reconfigures root logging; keep it from leaking.
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def invoke(runner: CliRunner, http_client: httpx.Client) -> Any:
    def _invoke(*args: str, env: dict[str, str] | None = None) -> Result:
        return runner.invoke(
            cli,
            list(args),
            obj={"http_client": http_client},
            env=ENV if env is None else env,
        )

    return _invoke


class TestGroupOptions:
    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("bootstrap", "write", "read-in", "downsample-once", "destroy"):
            assert command in result.output

    def test_version_command(self, invoke: Any) -> None:
        result = invoke("version")
        assert result.exit_code == 0
        assert "platform-demo" in result.output

    def test_missing_token_is_usage_error(self, invoke: Any, platform: FakePlatform) -> None:
        result = invoke("bootstrap", "ns", env={"BOOTSTRAP_TOKEN": ""})
        assert result.exit_code == 2
        assert "BOOTSTRAP_TOKEN must be set" in result.output
        assert platform.requests == []

    def test_blank_namespace_rejected(self, invoke: Any) -> None:
        result = invoke("bootstrap", " ")
        assert result.exit_code == 2
        assert "Namespace must not be empty" in result.output

    def test_bad_api_is_usage_error(self, invoke: Any) -> None:
        result = invoke("--api", "localhost:9999", "list", "ns")
        assert result.exit_code == 2

    def test_namespace_required(self, invoke: Any) -> None:
        result = invoke("bootstrap")
        assert result.exit_code == 2

    def test_config_file_option(
        self, invoke: Any, platform: FakePlatform, tmp_path: Path
    ) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text("buckets:\n  input_retention_seconds: 120\n", encoding="utf-8")

        result = invoke("--config", str(path), "bootstrap", "ns")

        assert result.exit_code == 0, result.output
        bucket_in = next(
            b for b in platform.buckets.values() if b["name"] == "demo-bucket-in-ns"
        )
        assert bucket_in["retentionRules"] == [{"type": "expire", "everySeconds": 120}]


class TestCommands:
    def test_bootstrap(self, invoke: Any, platform: FakePlatform) -> None:
        result = invoke("bootstrap", "ns")
        assert result.exit_code == 0, result.output
        assert "Bootstrapped" in result.output
        assert [u["name"] for u in platform.users.values()] == ["demo-user-ns"]
        assert len(platform.authorizations) == 4

    def test_bootstrap_twice_fails(self, invoke: Any) -> None:
        invoke("bootstrap", "ns")
        result = invoke("bootstrap", "ns")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_list(self, invoke: Any) -> None:
        invoke("bootstrap", "ns")
        result = invoke("list", "ns")
        assert result.exit_code == 0, result.output
        assert "demo-user-ns" in result.output
        assert "Authorizations" in result.output

    def test_list_empty_namespace(self, invoke: Any) -> None:
        result = invoke("list", "nobody")
        assert result.exit_code == 0
        assert "No authorizations found." in result.output

    def test_write_count(self, invoke: Any, platform: FakePlatform) -> None:
        invoke("bootstrap", "ns")
        result = invoke("write", "ns", "--count", "2", "--interval", "0")
        assert result.exit_code == 0, result.output
        assert [w["body"] for w in platform.writes] == ["counter n=0", "counter n=1"]

    def test_negative_count_rejected(self, invoke: Any) -> None:
        result = invoke("write", "ns", "--count", "-1")
        assert result.exit_code == 2

    def test_read_in_prints_csv(self, invoke: Any, platform: FakePlatform) -> None:
        invoke("bootstrap", "ns")
        result = invoke("read-in", "ns")
        assert result.exit_code == 0, result.output
        assert ",result,table,_time,_value,_field,_measurement" in result.output
        assert platform.queries[0]["query"].startswith('from(bucket:"demo-bucket-in-ns")')

    def test_downsample_once(self, invoke: Any, platform: FakePlatform) -> None:
        invoke("bootstrap", "ns")
        result = invoke("downsample-once", "ns")
        assert result.exit_code == 0, result.output
        assert "to(bucket:" in platform.queries[0]["query"]

    def test_create_task(self, invoke: Any, platform: FakePlatform) -> None:
        invoke("bootstrap", "ns")
        result = invoke("create-task", "ns")
        assert result.exit_code == 0, result.output
        (task_id,) = platform.tasks
        assert task_id in result.output

    def test_missing_authorization_gives_up(
        self, invoke: Any, platform: FakePlatform
    ) -> None:
        invoke("bootstrap", "ns")
        platform.authorizations.clear()

        result = invoke("read-out", "ns")

        assert result.exit_code == 1
        assert "Giving up:" in result.output
        assert platform.queries == []

    def test_list_with_unknown_grant(self, invoke: Any, platform: FakePlatform) -> None:
        invoke("bootstrap", "ns")
        user = next(iter(platform.users.values()))
        platform.add_authorization(
            user["id"], [{"action": "read", "resource": {"type": "dashboards"}}]
        )

        result = invoke("list", "ns")

        assert result.exit_code == 0, result.output
        assert "Authorizations" in result.output

    def test_read_with_only_unknown_grant_gives_up(
        self, invoke: Any, platform: FakePlatform
    ) -> None:
        invoke("bootstrap", "ns")
        user = next(iter(platform.users.values()))
        platform.authorizations.clear()
        platform.add_authorization(
            user["id"], [{"action": "read", "resource": {"type": "dashboards"}}]
        )

        result = invoke("read-in", "ns")

        assert result.exit_code == 1
        assert "Giving up:" in result.output

    def test_missing_user_is_error(self, invoke: Any) -> None:
        result = invoke("write", "ns", "--count", "1")
        assert result.exit_code == 1
        assert "Failed to find user" in result.output

    def test_destroy(self, invoke: Any, platform: FakePlatform) -> None:
        invoke("bootstrap", "ns")
        result = invoke("destroy", "ns")
        assert result.exit_code == 0, result.output
        assert "Deleted: 2" in result.output
        assert platform.users == {}
        assert platform.buckets == {}

    def test_destroy_nothing(self, invoke: Any) -> None:
        result = invoke("destroy", "ns")
        assert result.exit_code == 0
        assert "Not found" in result.output
