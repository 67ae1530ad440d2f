"""
Weighted candidate selection.

Pure helpers: weight normalization, candidate pool building, and the
weighted random draw used by swipe rotation, message routing and spin.
"""

import math
import random
from typing import Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_WEIGHT = 5
MIN_WEIGHT = 1
MAX_WEIGHT = 10


def normalize_weight(value) -> int:
    """Coerce a stored weight into [1, 10].

    Missing, non-numeric and sub-1 values fall back to the default weight;
    values above the maximum are clamped. Fractions are floored.
    """
    if isinstance(value, bool) or value is None:
        return DEFAULT_WEIGHT
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_WEIGHT
    if not math.isfinite(number):
        return DEFAULT_WEIGHT
    n = math.floor(number)
    if n < MIN_WEIGHT:
        return DEFAULT_WEIGHT
    return min(n, MAX_WEIGHT)


def weighted_draw(
    candidates: Sequence[T],
    weight_fn: Callable[[T], float],
    rng: Callable[[], float] = random.random,
) -> Optional[T]:
    """Pick one candidate with probability proportional to its weight.

    Args:
        candidates: Ordered candidate pool
        weight_fn: Returns the weight for a candidate
        rng: Uniform [0, 1) generator

    Returns:
        The selected candidate, or None for an empty pool. A single-candidate
        pool is returned without consuming randomness.
    """
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    total = sum(weight_fn(c) for c in candidates)
    r = rng() * total
    for candidate in candidates:
        r -= weight_fn(candidate)
        if r <= 0:
            return candidate

    # Rounding can leave r marginally above zero after the last subtraction
    return candidates[-1]


def build_candidate_pool(profiles: Iterable, selected_ids: Iterable[str], exclude_id: Optional[str] = None) -> List:
    """Filter profiles to the selected set, optionally dropping one id, sorted by name."""
    selected = set(selected_ids)
    pool = [p for p in profiles if p.id in selected and p.id != exclude_id]
    pool.sort(key=lambda p: (p.name.casefold(), p.name))
    return pool


def weight_shares(selected_ids: Iterable[str], weight_fn: Callable[[str], int]) -> Dict[str, int]:
    """Rounded percentage share per selected profile id."""
    ids = list(dict.fromkeys(selected_ids))
    total = sum(weight_fn(pid) for pid in ids)
    if total == 0:
        return {}
    return {pid: round(weight_fn(pid) / total * 100) for pid in ids}
