import logging
from typing import List, Sequence

from batch_models import DecisionKind, InvalidInput, MatchCandidateScore, MatchDecision, check_number

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 75.0
DEFAULT_NEAREST_LIMIT = 3


def check_threshold(threshold: float) -> float:
    check_number(threshold, "threshold")
    if not 0 <= threshold <= 100:
        raise InvalidInput(f"threshold must be in [0, 100], got {threshold}")
    return threshold


def _check_scores(scores: Sequence[MatchCandidateScore]):
    for s in scores:
        check_number(s.score, f"score for batch {s.batch_id}")
        if not 0 <= s.score <= 100:
            raise InvalidInput(f"score for batch {s.batch_id} must be in [0, 100], got {s.score}")


def rank(scores: Sequence[MatchCandidateScore]) -> List[MatchCandidateScore]:
    """Descending score, ties broken by batch id."""
    return sorted(scores, key=lambda s: (-s.score, s.batch_id))


def classify(
    scores: Sequence[MatchCandidateScore],
    threshold: float = DEFAULT_THRESHOLD,
    nearest_limit: int = DEFAULT_NEAREST_LIMIT,
) -> MatchDecision:
    """Turn per-candidate scores into one decision.

    One candidate at or above the threshold is an exact match whether or not
    its expiry was corroborated; the caller sees the flag and decides how to
    present it. Two or more are ambiguous and carry the full ranking. None is
    no-match, with the best few below-threshold candidates as `nearest`.
    """
    check_threshold(threshold)
    _check_scores(scores)

    ranked = rank(scores)
    survivors = tuple(s for s in ranked if s.score >= threshold)

    if not survivors:
        nearest = tuple(s for s in ranked if s.score > 0)[:max(0, nearest_limit)]
        decision = MatchDecision(DecisionKind.NO_MATCH, (), threshold, nearest)
    elif len(survivors) == 1:
        decision = MatchDecision(DecisionKind.EXACT, survivors, threshold)
    else:
        decision = MatchDecision(DecisionKind.AMBIGUOUS, survivors, threshold)

    logger.info("decision=%s survivors=%d candidates=%d threshold=%s",
                decision.kind.value, len(survivors), len(ranked), threshold)
    return decision
