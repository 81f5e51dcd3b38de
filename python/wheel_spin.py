#!/usr/bin/env python3
"""Spin geometry and the Idle/Spinning state machine for the number wheel.

The wheel is a vertical strip of N slots, ``ITEM_SIZE`` pixels each. A spin
travels forward through whole laps of the strip and settles with the target
slot centred in the viewport. Everything here is a pure function of time so
the Tk canvas, the console runner and the tests can all drive it.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

ITEM_SIZE = 120
MIN_TRAVEL_SLOTS = 100


def ease_out_quartic(progress: float) -> float:
    """Map normalised time to normalised travel; strong braking near the end."""
    if progress <= 0.0:
        return 0.0
    if progress >= 1.0:
        return 1.0
    return 1 - (1 - progress) ** 4


def track_length(n: int, item_size: float = ITEM_SIZE) -> float:
    return n * item_size


def forward_distance(
    current_offset: float,
    target_index: int,
    n: int,
    item_size: float = ITEM_SIZE,
    min_travel: float = MIN_TRAVEL_SLOTS * ITEM_SIZE,
) -> float:
    """Distance to travel forward from ``current_offset`` so the strip rests on ``target_index``.

    Whole laps are added until the distance reaches ``min_travel``.
    """
    if n < 1:
        raise ValueError("The wheel needs at least one slot.")
    track = track_length(n, item_size)
    target_offset = target_index * item_size
    distance = target_offset - math.fmod(current_offset, track)
    if distance < 0:
        distance += track
    while distance < min_travel:
        distance += track
    return distance


def center_offset(viewport: float, item_size: float = ITEM_SIZE) -> float:
    return viewport / 2 - item_size / 2


def visible_slots(
    wrapped_offset: float,
    n: int,
    item_size: float = ITEM_SIZE,
    viewport: float = 600,
) -> list[tuple[int, float]]:
    """Return ``(slot_index, top_y)`` pairs for every slot that touches the viewport.

    Indices wrap modulo ``n`` so the strip reads as a circle: slot N-1 is drawn
    directly above slot 0 and no frame ever shows the end of the list.
    """
    if n < 1:
        return []
    top_of_center = center_offset(viewport, item_size)
    first = math.floor((wrapped_offset - top_of_center) / item_size) - 1
    last = math.ceil((wrapped_offset - top_of_center + viewport) / item_size) + 1
    slots = []
    for virtual_index in range(first, last + 1):
        y = top_of_center + virtual_index * item_size - wrapped_offset
        if y + item_size < 0 or y > viewport:
            continue
        slots.append((virtual_index % n, y))
    return slots


@dataclass(frozen=True)
class SpinFrame:
    progress: float
    virtual_offset: float
    wrapped_offset: float
    center_index: int

    @property
    def settled(self) -> bool:
        return self.progress >= 1.0

    def translate_y(self, viewport: float, item_size: float = ITEM_SIZE) -> float:
        """Strip translation that puts ``wrapped_offset`` in the selection window."""
        return -(self.wrapped_offset - center_offset(viewport, item_size))


@dataclass(frozen=True)
class SpinPlan:
    target_index: int
    n: int
    item_size: float
    start_time: float
    start_offset: float
    distance: float
    duration: float
    slowdown: float

    @property
    def target_offset(self) -> float:
        return self.target_index * self.item_size

    def offset_at(self, now: float) -> SpinFrame:
        track = track_length(self.n, self.item_size)
        if self.duration <= 0:
            progress = 1.0
        else:
            progress = min(max((now - self.start_time) / self.duration, 0.0), 1.0)
        if progress >= 1.0:
            # Snap so float drift can never leave a neighbouring slot centred.
            return SpinFrame(1.0, self.start_offset + self.distance, self.target_offset, self.target_index)
        virtual_offset = self.start_offset + self.distance * ease_out_quartic(progress)
        wrapped = math.fmod(virtual_offset, track)
        if wrapped < 0:
            wrapped += track
        center_index = int(math.floor(wrapped / self.item_size + 0.5)) % self.n
        return SpinFrame(progress, virtual_offset, wrapped, center_index)


class SpinAnimator:
    """Number wheel that lands exactly on a requested slot after a fixed duration."""

    IDLE = "idle"
    SPINNING = "spinning"

    def __init__(
        self,
        item_size: float = ITEM_SIZE,
        min_travel_slots: int = MIN_TRAVEL_SLOTS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.item_size = item_size
        self.min_travel_slots = min_travel_slots
        self.clock = clock
        self.slot_count = 0
        self.offset = 0.0
        self.phase = self.IDLE
        self.plan: SpinPlan | None = None
        self.on_settle: Callable[[int], None] | None = None
        self.last_frame: SpinFrame | None = None

    @property
    def is_spinning(self) -> bool:
        return self.phase == self.SPINNING

    @property
    def min_travel(self) -> float:
        return self.min_travel_slots * self.item_size

    def reset(self, slot_count: int) -> None:
        """Rebuild the strip for ``slot_count`` slots, resting on slot 1."""
        if self.is_spinning:
            raise RuntimeError("Cannot rebuild the wheel while it is spinning.")
        self.slot_count = max(0, int(slot_count))
        self.offset = 0.0
        self.plan = None
        self.last_frame = None

    def current_frame(self) -> SpinFrame:
        if self.last_frame is not None:
            return self.last_frame
        center_index = int(self.offset // self.item_size) % self.slot_count if self.slot_count else 0
        return SpinFrame(0.0, self.offset, self.offset, center_index)

    def spin_to(
        self,
        target_number: int,
        duration: float,
        slowdown: float = 0.0,
        on_settle: Callable[[int], None] | None = None,
    ) -> bool:
        """Start a spin towards 1-based ``target_number``.

        Returns False without touching any state when a spin is already running
        or the wheel has no slots.
        """
        if self.is_spinning or self.slot_count < 1:
            return False
        if not 1 <= target_number <= self.slot_count:
            raise ValueError(f"Target {target_number} is outside 1..{self.slot_count}.")
        target_index = target_number - 1
        start_offset = self.offset
        distance = forward_distance(
            start_offset,
            target_index,
            self.slot_count,
            self.item_size,
            self.min_travel,
        )
        self.plan = SpinPlan(
            target_index=target_index,
            n=self.slot_count,
            item_size=self.item_size,
            start_time=self.clock(),
            start_offset=start_offset,
            distance=distance,
            duration=max(0.0, float(duration)),
            slowdown=max(0.0, float(slowdown)),
        )
        self.on_settle = on_settle
        self.phase = self.SPINNING
        logger.debug(
            "Spin to slot %s of %s: %.0fpx over %.1fs",
            target_number,
            self.slot_count,
            distance,
            self.plan.duration,
        )
        return True

    def step(self, now: float | None = None) -> SpinFrame | None:
        """Advance the running spin; returns None when idle."""
        if not self.is_spinning or self.plan is None:
            return None
        if now is None:
            now = self.clock()
        frame = self.plan.offset_at(now)
        self.last_frame = frame
        if frame.settled:
            self.offset = frame.wrapped_offset
            self.phase = self.IDLE
            callback = self.on_settle
            self.on_settle = None
            if callback:
                callback(self.plan.target_index)
        return frame
