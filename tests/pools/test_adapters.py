from __future__ import annotations

import httpx
import pytest

from monero_blocks.config import PoolKind
from monero_blocks.engine.block import hash_from_string
from monero_blocks.pools import PageToken, build_adapter
from monero_blocks.pools.base import as_list, resume_after
from monero_blocks.pools.c3pool import C3Pool
from monero_blocks.pools.cryptonote import CryptonotePool
from monero_blocks.pools.kryptex import KryptexPool
from monero_blocks.pools.nanopool import NanopoolPool
from monero_blocks.pools.p2pool import P2PoolObserver
from monero_blocks.pools.rplant import RplantPool
from monero_blocks.pools.solopool import SoloPool
from monero_blocks.pools.twominers import TwoMinersPool


def hex_id(value: int) -> str:
    return value.to_bytes(32, "big").hex()


def test_cryptonote_pages_down_by_height(adapter_factory) -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        height = request.url.params["height"]
        requested.append(height)
        if height == str(2**31 - 1):
            return httpx.Response(
                200,
                json=[
                    f"{hex_id(1)}:1700000100:300000000000:1:0:600000000000", 101,
                    f"{hex_id(2)}:1700000050:300000000000:1:1:600000000000", 100,
                    f"{hex_id(3)}:1700000200:300000000000:1", 102,
                ],
            )
        if height == "100":
            return httpx.Response(200, json=[f"{hex_id(4)}:1700000000:3:1:0:5", 99])
        return httpx.Response(200, json=[])

    adapter = adapter_factory(CryptonotePool, handler)
    page, token = adapter.fetch_page(None)
    assert [(block.height, block.valid) for block in page] == [(101, True), (100, False)]
    assert page[0].reward == 600_000_000_000
    assert isinstance(token, PageToken)

    page, token = adapter.fetch_page(token)
    assert [block.height for block in page] == [99]

    page, token = adapter.fetch_page(token)
    assert page == [] and token is None
    assert requested == [str(2**31 - 1), "100", "99"]


def test_cryptonote_odd_payload_fails_page(adapter_factory) -> None:
    adapter = adapter_factory(CryptonotePool, lambda request: httpx.Response(200, json=["x"]))
    assert adapter.fetch_page(None) == ([], None)


def test_network_failure_yields_empty_page(adapter_factory) -> None:
    adapter = adapter_factory(NanopoolPool, lambda request: httpx.Response(503))
    assert adapter.fetch_page(None) == ([], None)


def test_p2pool_single_page_with_miners(adapter_factory) -> None:
    payload = [
        {
            "main_block": {"id": hex_id(7), "height": 3000007, "timestamp": 1700000007, "reward": 6},
            "miner_address": "4Miner",
        },
        {"main_block": {"id": "bad", "height": 1, "timestamp": 1, "reward": 1}},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/found_blocks"
        assert request.url.params["limit"] == "1000"
        return httpx.Response(200, json=payload)

    adapter = adapter_factory(P2PoolObserver, handler, kind=PoolKind.P2POOL, api_url="https://p2pool.example")
    page, token = adapter.fetch_page(None)
    assert token is None
    assert len(page) == 1
    assert page[0].miner == "4Miner"
    assert page[0].id == hash_from_string(hex_id(7))


def test_nanopool_converts_reward_and_status(adapter_factory) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/pool/blocks/0/500"):
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "data": [
                        {"block_number": 10, "hash": hex_id(10), "date": 1700000010, "value": 0.6, "status": 0, "miner": "4Nano"},
                        {"block_number": 9, "hash": hex_id(9), "date": 1700000009, "value": 0.61, "status": 1},
                    ],
                },
            )
        return httpx.Response(200, json={"status": True, "data": []})

    adapter = adapter_factory(NanopoolPool, handler, kind=PoolKind.NANOPOOL)
    page, token = adapter.fetch_page(None)
    assert [(block.reward, block.valid) for block in page] == [(600_000_000_000, True), (610_000_000_000, False)]
    assert page[0].miner == "4Nano"
    assert token == PageToken(page=1, last_id=page[-1].id, last_height=9)
    assert adapter.fetch_page(token) == ([], None)


def test_c3pool_resumes_after_overlap(adapter_factory) -> None:
    pages = {
        "0": [
            {"ts": 1700000005000, "hash": hex_id(5), "height": 5, "value": 7, "valid": True},
            {"ts": 1700000004000, "hash": hex_id(4), "height": 4, "value": 7, "valid": False},
        ],
        "1": [
            {"ts": 1700000004000, "hash": hex_id(4), "height": 4, "value": 7, "valid": False},
            {"ts": 1700000003000, "hash": hex_id(3), "height": 3, "value": 7, "valid": True},
        ],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=pages.get(request.url.params["page"], []))

    adapter = adapter_factory(C3Pool, handler, kind=PoolKind.C3POOL)
    first, token = adapter.fetch_page(None)
    assert [block.height for block in first] == [5, 4]
    second, token = adapter.fetch_page(token)
    assert [block.height for block in second] == [3]
    assert adapter.fetch_page(token) == ([], None)


def test_twominers_reads_matured_blocks(adapter_factory) -> None:
    payload = {
        "matured": [
            {"height": 8, "hash": hex_id(8), "timestamp": 1700000008, "reward": 5, "orphan": False},
            {"height": 7, "hash": hex_id(7), "timestamp": 1700000007, "reward": 5, "orphan": True},
        ],
        "immature": [{"height": 9, "hash": hex_id(9), "timestamp": 1, "reward": 1}],
    }
    adapter = adapter_factory(TwoMinersPool, lambda request: httpx.Response(200, json=payload), kind=PoolKind.TWOMINERS)
    page, token = adapter.fetch_page(None)
    assert token is None
    assert [(block.height, block.valid) for block in page] == [(8, True), (7, False)]


def test_solopool_merges_sections_in_height_order(adapter_factory) -> None:
    payload = {
        "candidates": [{"height": 12, "hash": hex_id(12), "timestamp": 12, "reward": 7_000_000, "miner": "4Solo"}],
        "immatured": [{"height": 10, "hash": hex_id(10), "timestamp": 10, "reward": 5_000_000}],
        "matured": [
            {"height": 11, "hash": hex_id(11), "timestamp": 11, "reward": 6_000_000, "orphan": True}
        ],
    }
    adapter = adapter_factory(SoloPool, lambda request: httpx.Response(200, json=payload), kind=PoolKind.SOLOPOOL)
    page, _ = adapter.fetch_page(None)
    assert [block.height for block in page] == [12, 11, 10]
    assert [block.reward for block in page] == [7, 6, 5]
    assert page[1].valid is False
    assert page[0].miner == "4Solo"


def test_kryptex_keeps_only_blocks(adapter_factory) -> None:
    payload = {
        "last_blocks_found": [
            {"kind": "BLOCK", "hash": hex_id(3), "height": 3, "date": 1700000003},
            {"kind": "UNCLE", "hash": hex_id(2), "height": 2, "date": 1700000002},
        ]
    }
    adapter = adapter_factory(KryptexPool, lambda request: httpx.Response(200, json=payload), kind=PoolKind.KRYPTEX)
    page, _ = adapter.fetch_page(None)
    assert [(block.height, block.valid) for block in page] == [(3, True)]


def test_rplant_parses_colon_records(adapter_factory) -> None:
    payload = {
        "blocks": [
            f"{hex_id(6)}:x:6:4Rplant:1700000006:confirmed:600",
            f"{hex_id(5)}:x:5:4Rplant:1700000005:orphan:600",
            "short:record",
        ]
    }
    adapter = adapter_factory(
        RplantPool,
        lambda request: httpx.Response(200, json=payload),
        kind=PoolKind.RPLANT,
        api_url="https://rplant.example/api2/poolminer2/monero/0/0",
    )
    page, _ = adapter.fetch_page(None)
    assert [(block.height, block.valid, block.miner) for block in page] == [
        (6, True, "4Rplant"),
        (5, False, "4Rplant"),
    ]


def test_resume_after_skips_seen_tail(block_factory) -> None:
    blocks = [block_factory(h) for h in (10, 9, 8, 7)]
    token = PageToken(page=1, last_id=blocks[1].id, last_height=9)
    assert [block.height for block in resume_after(blocks, token)] == [8, 7]
    unseen = PageToken(page=1, last_id=block_factory(99).id, last_height=9)
    assert [block.height for block in resume_after(blocks, unseen)] == [8, 7]
    assert resume_after(blocks, PageToken()) == blocks


def test_as_list_validates_shape() -> None:
    assert as_list({"data": None}, "data") == []
    with pytest.raises(TypeError):
        as_list({"data": "oops"}, "data")
    with pytest.raises(TypeError):
        as_list([], "data")


def test_build_adapter_picks_class(sample_pool_config) -> None:
    adapter = build_adapter(sample_pool_config(kind=PoolKind.SOLOPOOL, name="solo.example"))
    assert isinstance(adapter, SoloPool)
    assert adapter.name == "solo.example"
    adapter.close()
