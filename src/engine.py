"""
Batch matching pipeline: candidate expansion, windowed scoring, decision.

Parameters always come from the caller (see config_loader for the YAML
defaults); nothing here reads files or the environment.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from batch_models import BatchRecord, ExtractedText, InvalidInput, MatchDecision, check_number
from decision import DEFAULT_NEAREST_LIMIT, DEFAULT_THRESHOLD, check_threshold, classify
from matcher import DEFAULT_EXPIRY_SIMILARITY, DEFAULT_WINDOW_TOLERANCE, check_window_tolerance, score_candidates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchSettings:
    threshold: float = DEFAULT_THRESHOLD
    window_tolerance: float = DEFAULT_WINDOW_TOLERANCE
    expiry_similarity: float = DEFAULT_EXPIRY_SIMILARITY
    nearest_limit: int = DEFAULT_NEAREST_LIMIT
    max_workers: Optional[int] = None

    def validate(self) -> "MatchSettings":
        check_threshold(self.threshold)
        check_window_tolerance(self.window_tolerance)
        check_number(self.expiry_similarity, "expiry similarity")
        check_number(self.nearest_limit, "nearest limit")
        if not 0 <= self.expiry_similarity <= 100:
            raise InvalidInput(f"expiry similarity must be in [0, 100], got {self.expiry_similarity}")
        if self.nearest_limit < 0:
            raise InvalidInput(f"nearest limit must be >= 0, got {self.nearest_limit}")
        if self.max_workers is not None and check_number(self.max_workers, "max workers") < 1:
            raise InvalidInput(f"max workers must be >= 1, got {self.max_workers}")
        return self


def match_decision(
    extracted: ExtractedText,
    records: List[BatchRecord],
    settings: Optional[MatchSettings] = None,
) -> MatchDecision:
    settings = (settings or MatchSettings()).validate()
    logger.debug("matching %d chars against %d batches", len(extracted.searchable_text), len(records))

    scores = score_candidates(
        extracted,
        records,
        window_tolerance=settings.window_tolerance,
        expiry_similarity=settings.expiry_similarity,
        max_workers=settings.max_workers,
    )
    return classify(scores, threshold=settings.threshold, nearest_limit=settings.nearest_limit)
