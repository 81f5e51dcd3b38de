#!/usr/bin/env python3
"""Winner selection: rigged override, local PRNG or the ANU quantum service."""

from __future__ import annotations

import asyncio
import logging
import math
import random
from dataclasses import dataclass
from typing import Any

import aiohttp

logger = logging.getLogger(__name__)

QRNG_URL = "https://qrng.anu.edu.au/API/jsonI.php?length=1&type=uint16"
UINT16_MAX = 65535

MODE_LOCAL = "local"
MODE_REMOTE = "remote"

SOURCE_RIGGED = "rigged"
SOURCE_LOCAL = "local"
SOURCE_REMOTE = "remote"
SOURCE_FALLBACK = "local-fallback"

SOURCE_LABELS = {
    SOURCE_RIGGED: "Rigged row",
    SOURCE_LOCAL: "Local RNG",
    SOURCE_REMOTE: "ANU Quantum Origin",
    SOURCE_FALLBACK: "Local RNG (quantum fallback)",
}


class RemoteRandomError(Exception):
    """The quantum service could not produce a usable number."""


@dataclass(frozen=True)
class Selection:
    index: int
    source: str
    raw_value: int | None = None
    error: str | None = None

    @property
    def row_number(self) -> int:
        return self.index + 1

    @property
    def label(self) -> str:
        return SOURCE_LABELS.get(self.source, self.source)


def rigged_index(rigged_row: Any, n: int) -> int | None:
    """0-based index forced by ``rigged_row`` (1-based), or None when unset/out of range."""
    if rigged_row is None or isinstance(rigged_row, bool):
        return None
    if isinstance(rigged_row, float):
        if not rigged_row.is_integer():
            return None
        row = int(rigged_row)
    else:
        try:
            row = int(str(rigged_row).strip())
        except ValueError:
            return None
    if 1 <= row <= n:
        return row - 1
    return None


def parse_qrng_payload(payload: Any) -> int:
    """Extract the uint16 from an ANU response body."""
    if not isinstance(payload, dict):
        raise RemoteRandomError("Response is not a JSON object.")
    if not payload.get("success"):
        raise RemoteRandomError("Service reported success=false.")
    data = payload.get("data")
    if not isinstance(data, list) or not data:
        raise RemoteRandomError("Response has no data array.")
    value = data[0]
    if isinstance(value, bool) or not isinstance(value, int):
        raise RemoteRandomError(f"Unexpected value in data array: {value!r}")
    if not 0 <= value <= UINT16_MAX:
        raise RemoteRandomError(f"Value {value} is outside the uint16 range.")
    return value


class RandomnessProvider:
    """Chooses the winning index for a spin.

    ``session_factory`` builds the aiohttp session for each remote request so
    tests can substitute a fake one.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        url: str = QRNG_URL,
        timeout: float = 5.0,
        session_factory: Any = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.url = url
        self.timeout = timeout
        self.session_factory = session_factory or aiohttp.ClientSession

    def local_index(self, n: int) -> int:
        # Guard against a custom Random returning exactly 1.0.
        return min(int(math.floor(self.rng.random() * n)), n - 1)

    async def fetch_uint16(self) -> int:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with self.session_factory(timeout=timeout) as session:
            async with session.get(self.url) as response:
                if response.status < 200 or response.status >= 300:
                    raise RemoteRandomError(f"HTTP status {response.status}")
                try:
                    payload = await response.json(content_type=None)
                except ValueError as exc:
                    raise RemoteRandomError(f"Invalid JSON: {exc}") from exc
        return parse_qrng_payload(payload)

    async def select_winner(self, n: int, mode: str = MODE_LOCAL, rigged_row: Any = None) -> Selection:
        if n < 1:
            raise ValueError("Cannot select a winner from an empty slot list.")
        if mode not in (MODE_LOCAL, MODE_REMOTE):
            raise ValueError(f"Unknown randomness mode: {mode}")

        forced = rigged_index(rigged_row, n)
        if forced is not None:
            logger.info("Rigged winner: row %s", forced + 1)
            return Selection(forced, SOURCE_RIGGED)

        if mode == MODE_LOCAL:
            return Selection(self.local_index(n), SOURCE_LOCAL)

        try:
            value = await self.fetch_uint16()
        except (aiohttp.ClientError, asyncio.TimeoutError, RemoteRandomError) as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning("Quantum RNG unavailable (%s), falling back to local generator", message)
            return Selection(self.local_index(n), SOURCE_FALLBACK, error=message)

        # value % n is slightly biased unless n divides 65536; accepted for a raffle.
        index = value % n
        logger.info("Quantum RNG value %s -> row %s of %s", value, index + 1, n)
        return Selection(index, SOURCE_REMOTE, raw_value=value)

    def select_winner_sync(self, n: int, mode: str = MODE_LOCAL, rigged_row: Any = None) -> Selection:
        """Blocking wrapper for worker threads and the console runner."""
        return asyncio.run(self.select_winner(n, mode, rigged_row))
