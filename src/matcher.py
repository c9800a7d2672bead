import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from batch_models import BatchRecord, ExtractedText, InvalidInput, MatchCandidateScore, check_number
from candidate_normalizer import CandidateVariants, expand
from similarity import best_window_similarity

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_TOLERANCE = 0.2
DEFAULT_EXPIRY_SIMILARITY = 90.0


def check_window_tolerance(tolerance: float) -> float:
    check_number(tolerance, "window tolerance")
    if not 0 <= tolerance < 1:
        raise InvalidInput(f"window tolerance must be in [0, 1), got {tolerance}")
    return tolerance


def _best_variant(variants: Iterable[str], text: str, tolerance: float, stop_at: float = 100.0):
    best_score = 0.0
    best_variant: Optional[str] = None
    # sorted so the reported variant is stable across runs
    for variant in sorted(variants):
        sim, _ = best_window_similarity(variant.lower(), text, tolerance)
        if sim > best_score:
            best_score = sim
            best_variant = variant
            if best_score >= stop_at:
                break
    return best_score, best_variant


def score(
    extracted: ExtractedText,
    candidate: BatchRecord,
    window_tolerance: float = DEFAULT_WINDOW_TOLERANCE,
    expiry_similarity: float = DEFAULT_EXPIRY_SIMILARITY,
    variants: Optional[CandidateVariants] = None,
) -> MatchCandidateScore:
    """Score one batch record against the OCR text.

    The score is the best windowed similarity of any batch-code variant.
    Expiry corroboration is reported separately: True when any rendering of
    the record's expiry date is found with at least `expiry_similarity`.
    """
    check_window_tolerance(window_tolerance)
    check_number(expiry_similarity, "expiry similarity")
    if variants is None:
        variants = expand(candidate)

    text = extracted.searchable_text.lower()
    expiry_checked = bool(variants.expiry_date_variants)

    if not text.strip():
        return MatchCandidateScore(candidate.batch_id, 0.0, False, expiry_checked)

    code_score, code_variant = _best_variant(variants.batch_code_variants, text, window_tolerance)

    corroborated = False
    if expiry_checked:
        expiry_score, expiry_variant = _best_variant(
            variants.expiry_date_variants, text, window_tolerance, stop_at=expiry_similarity)
        corroborated = expiry_score >= expiry_similarity
        if corroborated:
            logger.debug("expiry %r found for %s (%.1f)", expiry_variant, candidate.batch_id, expiry_score)

    logger.debug("batch %s best variant %r score=%.1f expiry=%s",
                 candidate.batch_id, code_variant, code_score, corroborated)
    return MatchCandidateScore(
        batch_id=candidate.batch_id,
        score=code_score,
        expiry_corroborated=corroborated,
        expiry_checked=expiry_checked,
        matched_variant=code_variant,
    )


def score_candidates(
    extracted: ExtractedText,
    records: List[BatchRecord],
    window_tolerance: float = DEFAULT_WINDOW_TOLERANCE,
    expiry_similarity: float = DEFAULT_EXPIRY_SIMILARITY,
    max_workers: Optional[int] = None,
) -> List[MatchCandidateScore]:
    """Score every record that has a usable batch code, in input order."""
    check_window_tolerance(window_tolerance)

    jobs = []
    for record in records:
        variants = expand(record)
        if not variants.matchable:
            logger.debug("skipping batch %s: no batch code", record.batch_id)
            continue
        jobs.append((record, variants))

    def _run(job) -> MatchCandidateScore:
        record, variants = job
        return score(extracted, record, window_tolerance, expiry_similarity, variants)

    if max_workers and max_workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(_run, jobs))
    return [_run(job) for job in jobs]

