from __future__ import annotations

import pytest

from wheel_spin import (
    ITEM_SIZE,
    MIN_TRAVEL_SLOTS,
    SpinAnimator,
    center_offset,
    ease_out_quartic,
    forward_distance,
    visible_slots,
)


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def run_to_end(animator: SpinAnimator, clock: FakeClock, step: float = 0.25):
    frames = []
    while animator.is_spinning:
        clock.now += step
        frames.append(animator.step())
    return frames


def test_ease_curve_endpoints_and_monotonic():
    assert ease_out_quartic(0.0) == 0.0
    assert ease_out_quartic(1.0) == 1.0
    assert ease_out_quartic(-3) == 0.0
    assert ease_out_quartic(7) == 1.0
    values = [ease_out_quartic(i / 100) for i in range(101)]
    assert values == sorted(values)
    # Front-loaded: half the time covers far more than half the distance.
    assert ease_out_quartic(0.5) > 0.9


@pytest.mark.parametrize("n", [1, 2, 3, 7, 50, 99, 100, 101, 1900])
def test_forward_distance_is_positive_and_meets_floor(n):
    track = n * ITEM_SIZE
    for start in (0.0, 37.5, ITEM_SIZE * (n - 1), track * 3 + 12.0):
        for target in {0, n // 2, n - 1}:
            distance = forward_distance(start, target, n)
            assert distance >= 0
            assert distance >= MIN_TRAVEL_SLOTS * ITEM_SIZE
            assert (start + distance) % track == pytest.approx(target * ITEM_SIZE % track)


def test_forward_distance_large_wheel_needs_no_extra_lap():
    n = 1900
    distance = forward_distance(0.0, 500, n)
    assert distance == 500 * ITEM_SIZE


def test_forward_distance_rejects_empty_wheel():
    with pytest.raises(ValueError):
        forward_distance(0.0, 0, 0)


def test_spin_lands_exactly_on_every_target():
    for n in range(1, 26):
        clock = FakeClock()
        animator = SpinAnimator(clock=clock)
        animator.reset(n)
        # Chain spins so every start offset is a previous landing spot.
        for target_number in list(range(1, n + 1)) + [n, 1]:
            settled = []
            assert animator.spin_to(target_number, 3.0, 1.0, on_settle=settled.append)
            frames = run_to_end(animator, clock, step=0.7)
            last = frames[-1]
            assert last.settled
            assert last.center_index == target_number - 1
            assert last.wrapped_offset == (target_number - 1) * ITEM_SIZE
            assert settled == [target_number - 1]
            assert animator.offset == (target_number - 1) * ITEM_SIZE


def test_single_slot_still_animates_and_settles_on_zero():
    clock = FakeClock()
    animator = SpinAnimator(clock=clock)
    animator.reset(1)
    assert animator.spin_to(1, 2.0)
    assert animator.plan.distance >= MIN_TRAVEL_SLOTS * ITEM_SIZE
    clock.now += 1.0
    mid = animator.step()
    assert not mid.settled
    assert mid.virtual_offset > 0
    frames = run_to_end(animator, clock)
    assert frames[-1].center_index == 0
    assert frames[-1].wrapped_offset == 0


def test_progress_is_clamped_and_offset_never_goes_backwards():
    clock = FakeClock()
    animator = SpinAnimator(clock=clock)
    animator.reset(7)
    animator.spin_to(4, 5.0)
    previous = -1.0
    for _ in range(40):
        clock.now += 0.2
        frame = animator.step()
        if frame is None:
            break
        assert 0.0 <= frame.progress <= 1.0
        assert frame.virtual_offset >= previous
        assert 0 <= frame.wrapped_offset < 7 * ITEM_SIZE
        previous = frame.virtual_offset
    assert not animator.is_spinning


def test_second_spin_while_spinning_is_ignored():
    clock = FakeClock()
    animator = SpinAnimator(clock=clock)
    animator.reset(10)
    calls = []
    assert animator.spin_to(3, 4.0, on_settle=calls.append)
    plan = animator.plan
    assert animator.spin_to(8, 1.0, on_settle=calls.append) is False
    assert animator.plan is plan
    run_to_end(animator, clock)
    assert calls == [2]


def test_spin_refused_on_empty_wheel_and_bad_target():
    animator = SpinAnimator(clock=FakeClock())
    assert animator.spin_to(1, 1.0) is False
    assert not animator.is_spinning
    animator.reset(4)
    with pytest.raises(ValueError):
        animator.spin_to(5, 1.0)
    assert not animator.is_spinning


def test_reset_refused_while_spinning():
    animator = SpinAnimator(clock=FakeClock())
    animator.reset(4)
    animator.spin_to(2, 1.0)
    with pytest.raises(RuntimeError):
        animator.reset(9)


def test_zero_duration_settles_on_first_step():
    clock = FakeClock()
    animator = SpinAnimator(clock=clock)
    animator.reset(6)
    animator.spin_to(6, 0)
    frame = animator.step()
    assert frame.settled
    assert frame.center_index == 5


def test_slowdown_does_not_change_the_curve():
    clock_a, clock_b = FakeClock(), FakeClock()
    fast, slow = SpinAnimator(clock=clock_a), SpinAnimator(clock=clock_b)
    for animator in (fast, slow):
        animator.reset(12)
    fast.spin_to(5, 10.0, slowdown=0.0)
    slow.spin_to(5, 10.0, slowdown=8.0)
    clock_a.now += 3.3
    clock_b.now += 3.3
    assert fast.step().virtual_offset == slow.step().virtual_offset


def test_visible_slots_wrap_around_the_list_end():
    viewport = 600
    slots = visible_slots(0.0, 5, ITEM_SIZE, viewport)
    indices = [index for index, _ in slots]
    centred = [y for index, y in slots if index == 0]
    assert center_offset(viewport) in centred
    # Slot 5 (index 4) sits directly above slot 1.
    above = [index for index, y in slots if y == center_offset(viewport) - ITEM_SIZE]
    assert above == [4]
    assert all(0 <= index < 5 for index in indices)


def test_visible_slots_single_slot_repeats():
    slots = visible_slots(0.0, 1, ITEM_SIZE, 600)
    assert len(slots) >= 5
    assert {index for index, _ in slots} == {0}


def test_translate_centres_the_target():
    clock = FakeClock()
    animator = SpinAnimator(clock=clock)
    animator.reset(8)
    animator.spin_to(3, 1.0)
    frame = run_to_end(animator, clock)[-1]
    assert frame.translate_y(600) == -(2 * ITEM_SIZE - (300 - ITEM_SIZE / 2))
