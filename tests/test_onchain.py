from __future__ import annotations

import pytest
import requests

from staking_airdrop import config as cfg
from staking_airdrop import onchain
from staking_airdrop.fixed_point import RAY

ADDR_A = "0x" + "a" * 40
ADDR_B = "0x" + "b" * 40
ADDR_C = "0x" + "c" * 40


class DummyResponse:
    headers: dict[str, str] = {}

    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


class RpcSession:
    """Answers eth_call batches from a {address: balance | Exception} table."""

    def __init__(self, balances: dict, fail_batches: set[int] | None = None):
        self.balances = balances
        self.fail_batches = fail_batches or set()
        self.batches: list[list[dict]] = []

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        batch_index = len(self.batches)
        self.batches.append(json)
        if batch_index in self.fail_batches:
            return DummyResponse({}, status_code=400)
        answers = []
        for call in json:
            data = call["params"][0]["data"]
            address = "0x" + data[-40:]
            value = self.balances.get(address)
            if isinstance(value, Exception):
                answers.append({"jsonrpc": "2.0", "id": call["id"], "error": {"message": str(value)}})
            elif value is None:
                answers.append({"jsonrpc": "2.0", "id": call["id"], "result": "0x"})
            else:
                answers.append(
                    {"jsonrpc": "2.0", "id": call["id"], "result": "0x" + format(value, "064x")}
                )
        return DummyResponse(answers)


@pytest.fixture(autouse=True)
def rpc_env(monkeypatch, tmp_path):
    monkeypatch.setattr(cfg, "RAW_DATA_DIR", tmp_path)
    monkeypatch.setattr(cfg, "ETHEREUM_RPC_URL", "https://rpc.example")


def _install(monkeypatch, session):
    monkeypatch.setattr(onchain, "_rpc_session", lambda: session)
    return session


def test_encode_stake_of_pads_address():
    data = onchain.encode_stake_of("0xABCDEF" + "0" * 34)
    assert data.startswith("0x" + onchain.STAKE_OF_SELECTOR)
    assert len(data) == 2 + 8 + 64
    assert data.endswith("abcdef" + "0" * 34)


def test_decode_uint256():
    assert onchain.decode_uint256("0x" + "0" * 63 + "f") == 15
    assert onchain.decode_uint256("0x") is None
    assert onchain.decode_uint256(None) is None
    assert onchain.decode_uint256("0xzz") is None


def test_batch_lookup_tolerates_per_address_failures(monkeypatch):
    session = _install(
        monkeypatch,
        RpcSession({ADDR_A: 1500 * RAY, ADDR_B: RuntimeError("execution reverted")}),
    )

    balances = onchain.fetch_stake_balances([ADDR_A.upper().replace("0X", "0x"), ADDR_B, ADDR_C])

    assert balances == {ADDR_A: 1500 * RAY}
    # One round trip for all three addresses.
    assert len(session.batches) == 1
    assert len(session.batches[0]) == 3
    assert session.batches[0][0]["method"] == "eth_call"
    assert session.batches[0][0]["params"][0]["to"] == cfg.SEIG_MANAGER_ADDRESS.lower()


def test_failed_chunk_does_not_fail_other_chunks(monkeypatch):
    session = _install(
        monkeypatch,
        RpcSession({ADDR_A: 1, ADDR_B: 2, ADDR_C: 3}, fail_batches={0}),
    )

    balances = onchain.fetch_stake_balances([ADDR_A, ADDR_B, ADDR_C], batch_size=2)

    assert balances == {ADDR_C: 3}
    assert len(session.batches) == 2


class HtmlResponse(DummyResponse):
    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


class FixedSession:
    def __init__(self, response):
        self.response = response
        self.calls = 0

    def request(self, *args, **kwargs):
        self.calls += 1
        return self.response


def test_non_json_body_drops_chunk(monkeypatch):
    session = _install(monkeypatch, FixedSession(HtmlResponse(None)))

    assert onchain.fetch_stake_balances([ADDR_A]) == {}
    assert session.calls == 1


def test_non_object_batch_items_are_skipped(monkeypatch):
    good = {"jsonrpc": "2.0", "id": 1, "result": "0x" + format(9, "064x")}
    _install(monkeypatch, FixedSession(DummyResponse([None, "oops", good])))

    assert onchain.fetch_stake_balances([ADDR_A, ADDR_B]) == {ADDR_B: 9}


def test_duplicate_and_invalid_addresses_are_skipped(monkeypatch):
    session = _install(monkeypatch, RpcSession({ADDR_A: 7}))

    balances = onchain.fetch_stake_balances([ADDR_A, ADDR_A.upper().replace("0X", "0x"), "not-an-address"])

    assert balances == {ADDR_A: 7}
    assert len(session.batches[0]) == 1


def test_missing_rpc_url_returns_empty(monkeypatch):
    monkeypatch.setattr(cfg, "ETHEREUM_RPC_URL", None)
    session = _install(monkeypatch, RpcSession({ADDR_A: 7}))

    assert onchain.fetch_stake_balances([ADDR_A]) == {}
    assert session.batches == []


def test_no_addresses_makes_no_request(monkeypatch):
    session = _install(monkeypatch, RpcSession({}))
    assert onchain.fetch_stake_balances([]) == {}
    assert session.batches == []
