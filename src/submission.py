import time
from datetime import datetime
from typing import Dict, List, Optional

from batch_models import BatchRecord, DecisionKind, ExtractedText, InvalidInput, MatchDecision

MANUAL_CONFIDENCE = 50


def _batch_number(record: BatchRecord) -> str:
    return record.batch_codes[0] if record.batch_codes else record.batch_id


def match_type_for(decision: MatchDecision, selected_batch_id: str) -> str:
    """exact | fuzzy | manual

    exact:  the decision was Exact on the selected batch and its expiry was
            found in the text.
    fuzzy:  the selected batch cleared the threshold but was not an expiry
            corroborated exact match (or was picked among ambiguous ones).
    manual: the user picked a batch that did not clear the threshold.
    """
    ranked = {s.batch_id: s for s in decision.ranked}
    chosen = ranked.get(selected_batch_id)
    if chosen is None:
        return "manual"
    if decision.kind is DecisionKind.EXACT and chosen.expiry_corroborated:
        return "exact"
    return "fuzzy"


def build_submission(
    decision: MatchDecision,
    records: List[BatchRecord],
    session_id: str,
    quantity: int,
    extracted: ExtractedText,
    selected_batch_id: Optional[str] = None,
    captured_at: Optional[datetime] = None,
) -> Dict:
    """Payload the scanner posts once a batch is confirmed.

    `selected_batch_id` defaults to the decision's best candidate; a NoMatch
    decision therefore needs an explicit (manual) selection.
    """
    if quantity is None or quantity < 1:
        raise InvalidInput(f"quantity must be >= 1, got {quantity}")

    by_id = {r.batch_id: r for r in records}
    if selected_batch_id is None:
        if decision.best is None:
            raise InvalidInput("no batch selected and the decision has no candidate")
        selected_batch_id = decision.best.batch_id
    record = by_id.get(selected_batch_id)
    if record is None:
        raise InvalidInput(f"unknown batch {selected_batch_id}")

    match_type = match_type_for(decision, selected_batch_id)
    if match_type == "manual":
        confidence = MANUAL_CONFIDENCE
    else:
        confidence = int(next(s.score for s in decision.ranked if s.batch_id == selected_batch_id))

    alternatives = [
        _batch_number(by_id[s.batch_id]) if s.batch_id in by_id else s.batch_id
        for s in decision.ranked
        if s.batch_id != selected_batch_id
    ]

    ts_ms = int((captured_at.timestamp() if captured_at else time.time()) * 1000)
    return {
        "session_id": session_id,
        "batch_number": _batch_number(record),
        "quantity": quantity,
        "capture_id": str(ts_ms),
        "confidence": confidence,
        "match_type": match_type,
        "submit_timestamp": ts_ms,
        "extracted_text": extracted.searchable_text,
        "selected_from_options": match_type != "manual",
        "alternative_matches": alternatives,
    }
