from typing import List, Optional, Tuple

from rapidfuzz.distance import Levenshtein


def similarity(a: str, b: str, score_cutoff: Optional[float] = None) -> float:
    """Edit-distance similarity in percent: 100 * (1 - distance / max(len)).

    With `score_cutoff`, pairs that cannot reach it return 0.0 without the
    full distance being computed.
    """
    a = a or ""
    b = b or ""
    longest = max(len(a), len(b))
    if longest == 0:
        return 100.0

    if score_cutoff is None:
        dist = Levenshtein.distance(a, b)
    else:
        # largest distance that still reaches score_cutoff
        max_dist = int(longest * (100.0 - score_cutoff) / 100.0 + 1e-9)
        if max_dist < 0:
            return 0.0
        dist = Levenshtein.distance(a, b, score_cutoff=max_dist)
        if dist > max_dist:
            return 0.0
    return max(0.0, min(100.0, 100.0 * (longest - dist) / longest))


def window_lengths(length: int, tolerance: float) -> List[int]:
    """L and every length within L +/- round(L * tolerance)."""
    if length <= 0:
        return []
    delta = int(length * tolerance + 0.5)
    return list(range(max(1, length - delta), length + delta + 1))


def best_window_similarity(needle: str, haystack: str, tolerance: float = 0.2) -> Tuple[float, Optional[str]]:
    """Best similarity of `needle` against any window of `haystack`.

    Windows of every length in `window_lengths` slide across the haystack.
    A needle longer than the haystack is compared against the whole haystack
    once. Windows that cannot beat the best so far are cut off early.
    """
    if not needle or not haystack:
        return 0.0, None

    if len(needle) > len(haystack):
        return similarity(needle, haystack), haystack

    best = 0.0
    best_window: Optional[str] = None
    for width in window_lengths(len(needle), tolerance):
        if width > len(haystack):
            continue
        for start in range(len(haystack) - width + 1):
            window = haystack[start:start + width]
            sim = similarity(needle, window, score_cutoff=best)
            if sim > best:
                best = sim
                best_window = window
                if best == 100.0:
                    return best, best_window
    return best, best_window
