"""Pytest configuration providing a session report and shared fixtures."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

# Logging and config resolve their directories from this variable on first
# use, so it has to point somewhere disposable before any import below.
os.environ.setdefault("MONERO_BLOCKS_HOME", tempfile.mkdtemp(prefix="monero-blocks-tests-"))

from monero_blocks.config import ConfigLocator, ConfigRepository, GlobalConfig, PoolConfig, PoolKind  # noqa: E402
from monero_blocks.engine.block import Block  # noqa: E402
from monero_blocks.engine.fetcher import PoolHttpClient  # noqa: E402
from monero_blocks.engine.store import PoolStore  # noqa: E402
from monero_blocks.infra import Throttle  # noqa: E402
from monero_blocks.pools import PoolAdapter  # noqa: E402


class QAPlugin:
    """Collect test outcomes and write a summary report."""

    def __init__(self, config: pytest.Config) -> None:
        self.config = config
        self.failed_cases: list[str] = []
        self.passed = 0

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:  # pragma: no cover
        if report.when != "call":
            return
        if report.failed:
            self.failed_cases.append(report.nodeid)
        elif report.passed:
            self.passed += 1

    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:  # pragma: no cover
        reports_dir = Path(self.config.rootpath) / "reports"
        reports_dir.mkdir(parents=True, exist_ok=True)
        report_payload = {
            "passed": self.passed,
            "failed_cases": self.failed_cases,
            "exit_status": int(exitstatus),
        }
        (reports_dir / "test_report.json").write_text(
            json.dumps(report_payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


def pytest_configure(config: pytest.Config) -> None:  # pragma: no cover
    plugin = QAPlugin(config)
    config.pluginmanager.register(plugin, "qa-plugin")
    config._qa_plugin = plugin  # type: ignore[attr-defined]


def pytest_unconfigure(config: pytest.Config) -> None:  # pragma: no cover
    plugin = getattr(config, "_qa_plugin", None)
    if plugin is not None:
        config.pluginmanager.unregister(plugin)
        delattr(config, "_qa_plugin")


def block_id(value: int) -> bytes:
    return value.to_bytes(32, "big")


def make_block(height: int, ident: int | None = None, **overrides: Any) -> Block:
    base: dict[str, Any] = {
        "id": block_id(height if ident is None else ident),
        "height": height,
        "timestamp": 1_700_000_000 + height,
        "reward": 600_000_000_000,
        "valid": True,
    }
    base.update(overrides)
    return Block(**base)


def make_store(name: str, heights: Iterable[int], **overrides: Any) -> PoolStore:
    return PoolStore(name, [make_block(height, **overrides) for height in heights])


class NoThrottle(Throttle):
    def __init__(self) -> None:
        super().__init__(0.0)

    def wait(self) -> float:
        return 0.0


@pytest.fixture
def block_factory() -> Callable[..., Block]:
    return make_block


@pytest.fixture
def store_factory() -> Callable[..., PoolStore]:
    return make_store


@pytest.fixture
def sample_pool_config() -> Callable[..., PoolConfig]:
    def _builder(**overrides: Any) -> PoolConfig:
        base: dict[str, Any] = {
            "name": "example.pool",
            "kind": PoolKind.CRYPTONOTE,
            "api_url": "https://pool.example/api",
            "interval": 0.0,
            "timeout": 5.0,
        }
        base.update(overrides)
        return PoolConfig(**base)

    return _builder


@pytest.fixture
def adapter_factory(sample_pool_config) -> Callable[..., PoolAdapter]:
    """Build an adapter whose HTTP traffic is answered by ``handler``."""

    clients: list[PoolHttpClient] = []

    def _builder(adapter_cls: type[PoolAdapter], handler: Callable, **overrides: Any) -> PoolAdapter:
        config = sample_pool_config(**overrides)
        client = PoolHttpClient(
            config,
            transport=httpx.MockTransport(handler),
            throttle=NoThrottle(),
        )
        clients.append(client)
        return adapter_cls(config, client)

    yield _builder
    for client in clients:
        client.close()


@pytest.fixture
def sample_global_config(tmp_path: Path) -> GlobalConfig:
    return GlobalConfig(
        floor_height=100,
        output=tmp_path / "blocks.csv",
        pools=[
            PoolConfig(name="alpha", kind=PoolKind.CRYPTONOTE, api_url="https://alpha.example/api", interval=0),
            PoolConfig(name="beta", kind=PoolKind.P2POOL, api_url="https://beta.example", interval=0),
        ],
    )


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("MONERO_BLOCKS_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository
