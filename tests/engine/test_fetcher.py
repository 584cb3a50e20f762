from __future__ import annotations

import json

import httpx
import pytest

from monero_blocks.engine.fetcher import DaemonClient, PoolHttpClient
from monero_blocks.errors import FetchError


class CountingThrottle:
    def __init__(self) -> None:
        self.calls = 0

    def wait(self) -> float:
        self.calls += 1
        return 0.0


def _client(sample_pool_config, handler, **overrides) -> tuple[PoolHttpClient, CountingThrottle]:
    throttle = CountingThrottle()
    client = PoolHttpClient(
        sample_pool_config(**overrides),
        user_agent="tests/1.0",
        transport=httpx.MockTransport(handler),
        throttle=throttle,  # type: ignore[arg-type]
    )
    return client, throttle


def test_get_json_sends_headers_and_params(sample_pool_config) -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers["User-Agent"]
        seen["height"] = request.url.params["height"]
        return httpx.Response(200, json=[1, 2])

    client, throttle = _client(sample_pool_config, handler)
    assert client.get_json("https://pool.example/api/get_blocks", params={"height": 5}) == [1, 2]
    client.close()
    assert seen == {"ua": "tests/1.0", "height": "5"}
    assert throttle.calls == 1


def test_get_json_retries_bad_status(sample_pool_config) -> None:
    answers = iter([httpx.Response(502), httpx.Response(200, json={"ok": True})])
    client, throttle = _client(sample_pool_config, lambda request: next(answers), retries=1)
    assert client.get_json("https://pool.example/api") == {"ok": True}
    client.close()
    assert throttle.calls == 2


def test_get_json_gives_up_after_retries(sample_pool_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client, throttle = _client(sample_pool_config, handler, retries=2)
    with pytest.raises(FetchError) as excinfo:
        client.get_json("https://pool.example/api")
    client.close()
    assert throttle.calls == 3
    assert excinfo.value.url == "https://pool.example/api"


def test_get_json_rejects_non_json(sample_pool_config) -> None:
    client, _ = _client(sample_pool_config, lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(FetchError):
        client.get_json("https://pool.example/api")
    client.close()


def test_daemon_block_header() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/json_rpc"
        body = json.loads(request.content)
        assert body["method"] == "get_block_header_by_height"
        assert body["params"] == {"height": 3000000}
        return httpx.Response(
            200,
            json={
                "result": {
                    "status": "OK",
                    "block_header": {
                        "height": 3000000,
                        "timestamp": 1_700_000_000,
                        "reward": 600_000_000_000,
                        "hash": "ab" * 32,
                    },
                }
            },
        )

    daemon = DaemonClient("http://node.example:18081", transport=httpx.MockTransport(handler))
    header = daemon.block_header(3000000)
    daemon.close()
    assert header == {
        "status": "OK",
        "height": 3000000,
        "timestamp": 1_700_000_000,
        "reward": 600_000_000_000,
        "hash": "ab" * 32,
    }


def test_daemon_error_raises_fetch_error() -> None:
    daemon = DaemonClient(
        "http://node.example:18081/json_rpc",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"error": {"code": -2}})),
    )
    with pytest.raises(FetchError):
        daemon.block_header(1)
    daemon.close()
