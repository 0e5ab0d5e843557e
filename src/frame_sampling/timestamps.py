"""Timestamp planning for the frame selection policies."""

from __future__ import annotations

import enum
import math
import random
from typing import List

from video_thumbnails.errors import InvalidDuration

# Decoders can mishandle frames right at the start boundary.
RANDOM_LOWER_BOUND_S = 0.1
SMART_RANDOM_COUNT = 3


class SelectionPolicy(str, enum.Enum):
    FIRST_FRAME = "first"
    RANDOM = "random"
    SMART = "smart"


def _check_duration(duration_s: float) -> float:
    try:
        duration = float(duration_s)
    except (TypeError, ValueError) as exc:
        raise InvalidDuration(f"Unusable duration: {duration_s!r}") from exc
    if not math.isfinite(duration) or duration <= 0:
        raise InvalidDuration(f"Video duration must be > 0 (got {duration_s!r})")
    return duration


def plan_first_frame() -> List[float]:
    return [0.0]


def plan_random(duration_s: float, count: int, rng: random.Random | None = None) -> List[float]:
    """Draw ``count`` independent timestamps in (0.1, duration), sorted ascending.

    Draws are with replacement, so duplicates are possible. Clips with no
    float strictly inside (0.1, duration) sample from (0, duration) instead;
    if that interval is empty too the duration is rejected.
    """

    duration = _check_duration(duration_s)
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValueError(f"count must be a positive integer (got {count!r})")

    rng = rng or random.Random()
    low = RANDOM_LOWER_BOUND_S
    if math.nextafter(low, math.inf) >= duration:
        low = 0.0
        if math.nextafter(low, math.inf) >= duration:
            raise InvalidDuration(f"Duration too short to sample: {duration!r}")
    times: List[float] = []
    for _ in range(count):
        ts = rng.uniform(low, duration)
        # uniform() may return either endpoint; keep the interval open
        while ts <= low or ts >= duration:
            ts = rng.uniform(low, duration)
        times.append(ts)
    return sorted(times)


def plan_smart(duration_s: float, rng: random.Random | None = None) -> List[float]:
    """First frame followed by three sorted random draws."""

    random_part = plan_random(duration_s, SMART_RANDOM_COUNT, rng=rng)
    return plan_first_frame() + random_part


def plan(
    policy: SelectionPolicy | str,
    duration_s: float,
    count: int | None = None,
    rng: random.Random | None = None,
) -> List[float]:
    policy = SelectionPolicy(policy)
    if policy is SelectionPolicy.FIRST_FRAME:
        return plan_first_frame()
    if policy is SelectionPolicy.SMART:
        return plan_smart(duration_s, rng=rng)
    if count is None:
        raise ValueError("count is required for the random policy")
    return plan_random(duration_s, count, rng=rng)
