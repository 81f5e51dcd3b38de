from __future__ import annotations

import asyncio
import random
from collections import Counter

import aiohttp
import pytest

from raffle_rng import (
    MODE_LOCAL,
    MODE_REMOTE,
    SOURCE_FALLBACK,
    SOURCE_LOCAL,
    SOURCE_REMOTE,
    SOURCE_RIGGED,
    RandomnessProvider,
    RemoteRandomError,
    parse_qrng_payload,
    rigged_index,
)


class FakeResponse:
    def __init__(self, status: int = 200, payload=None, json_error: Exception | None = None) -> None:
        self.status = status
        self.payload = payload
        self.json_error = json_error

    async def json(self, content_type=None):
        if self.json_error:
            raise self.json_error
        return self.payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None, **kwargs) -> None:
        self.response = response
        self.error = error
        self.kwargs = kwargs
        self.requests: list[str] = []

    def get(self, url: str):
        self.requests.append(url)
        if self.error:
            raise self.error
        return self.response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


def session_factory(response=None, error=None, sessions=None):
    def factory(**kwargs):
        session = FakeSession(response=response, error=error, **kwargs)
        if sessions is not None:
            sessions.append(session)
        return session

    return factory


def select(provider, n, mode=MODE_LOCAL, rigged_row=None):
    return asyncio.run(provider.select_winner(n, mode, rigged_row))


FAILING_FACTORIES = [
    session_factory(error=aiohttp.ClientConnectionError("connection refused")),
    session_factory(error=asyncio.TimeoutError()),
    session_factory(response=FakeResponse(status=503, payload={"success": True, "data": [5]})),
    session_factory(response=FakeResponse(payload={"success": False})),
    session_factory(response=FakeResponse(payload={"success": True, "data": []})),
    session_factory(response=FakeResponse(payload={"success": True, "data": ["12"]})),
    session_factory(response=FakeResponse(payload=[1, 2, 3])),
    session_factory(response=FakeResponse(json_error=ValueError("Expecting value"))),
]


def test_rigged_row_wins_in_every_mode_even_when_remote_fails():
    for factory in FAILING_FACTORIES:
        provider = RandomnessProvider(rng=random.Random(1), session_factory=factory)
        for mode in (MODE_LOCAL, MODE_REMOTE):
            for _ in range(5):
                selection = select(provider, 5, mode, rigged_row=3)
                assert selection.index == 2
                assert selection.row_number == 3
                assert selection.source == SOURCE_RIGGED


def test_rigged_row_does_not_touch_the_network():
    sessions = []
    provider = RandomnessProvider(session_factory=session_factory(sessions=sessions))
    select(provider, 10, MODE_REMOTE, rigged_row=10)
    assert sessions == []


@pytest.mark.parametrize("rigged_row", [None, 0, -1, 6, 2.5, "abc", True, ""])
def test_out_of_range_rigged_row_is_ignored(rigged_row):
    assert rigged_index(rigged_row, 5) is None
    provider = RandomnessProvider(rng=random.Random(3))
    selection = select(provider, 5, MODE_LOCAL, rigged_row)
    assert selection.source == SOURCE_LOCAL
    assert 0 <= selection.index < 5


def test_rigged_row_accepts_numeric_strings_and_whole_floats():
    assert rigged_index("4", 5) == 3
    assert rigged_index(4.0, 5) == 3


def test_local_mode_is_roughly_uniform():
    provider = RandomnessProvider(rng=random.Random(2024))

    async def draw_many():
        return [(await provider.select_winner(100)).index for _ in range(20000)]

    counts = Counter(asyncio.run(draw_many()))
    assert set(counts) == set(range(100))
    # Expected 200 per bucket.
    assert max(counts.values()) < 300
    assert min(counts.values()) > 120


def test_local_mode_single_slot():
    provider = RandomnessProvider(rng=random.Random(9))
    assert {select(provider, 1).index for _ in range(20)} == {0}


def test_remote_value_is_taken_modulo_n():
    sessions = []
    factory = session_factory(response=FakeResponse(payload={"success": True, "data": [65535]}), sessions=sessions)
    provider = RandomnessProvider(session_factory=factory, timeout=2.5)
    selection = select(provider, 7, MODE_REMOTE)
    assert selection.source == SOURCE_REMOTE
    assert selection.raw_value == 65535
    assert selection.index == 65535 % 7
    assert sessions[0].requests == [provider.url]
    assert sessions[0].kwargs["timeout"].total == 2.5


@pytest.mark.parametrize("factory", FAILING_FACTORIES)
def test_remote_failures_fall_back_to_local(factory):
    provider = RandomnessProvider(rng=random.Random(5), session_factory=factory)
    selection = select(provider, 9, MODE_REMOTE)
    assert selection.source == SOURCE_FALLBACK
    assert 0 <= selection.index < 9
    assert selection.raw_value is None
    assert selection.error


def test_select_winner_rejects_empty_and_unknown_mode():
    provider = RandomnessProvider()
    with pytest.raises(ValueError):
        select(provider, 0)
    with pytest.raises(ValueError):
        select(provider, 3, "dice")


def test_sync_wrapper_returns_selection():
    provider = RandomnessProvider(rng=random.Random(0))
    selection = provider.select_winner_sync(4, MODE_LOCAL, rigged_row=2)
    assert selection.index == 1


def test_parse_qrng_payload():
    assert parse_qrng_payload({"type": "uint16", "length": 1, "data": [4242], "success": True}) == 4242
    for bad in ({"success": True, "data": [70000]}, {"success": True, "data": [True]}, {"data": [1]}, None):
        with pytest.raises(RemoteRandomError):
            parse_qrng_payload(bad)
