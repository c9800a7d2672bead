import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from batch_models import BatchRecord, ExtractedText, InvalidInput, MatchCandidateScore as S
from decision import classify
from submission import MANUAL_CONFIDENCE, build_submission, match_type_for

RECORDS = [BatchRecord("b1", ("AB1234",)), BatchRecord("b2", ("AB1235", "L-2"))]
CAPTURED_AT = datetime(2026, 1, 1, tzinfo=timezone.utc)
TEXT = ExtractedText("Lot AB1234")


def test_exact_corroborated_submission():
    decision = classify([S("b1", 100.0, True, True, "AB1234")])
    payload = build_submission(decision, RECORDS, "S-001", 2, TEXT, captured_at=CAPTURED_AT)
    assert payload == {
        "session_id": "S-001",
        "batch_number": "AB1234",
        "quantity": 2,
        "capture_id": "1767225600000",
        "confidence": 100,
        "match_type": "exact",
        "submit_timestamp": 1767225600000,
        "extracted_text": "Lot AB1234",
        "selected_from_options": True,
        "alternative_matches": [],
    }


def test_exact_without_expiry_is_fuzzy():
    decision = classify([S("b1", 100.0)])
    assert match_type_for(decision, "b1") == "fuzzy"


def test_ambiguous_defaults_to_best_and_lists_alternatives():
    decision = classify([S("b1", 90.0, True, True), S("b2", 80.0)])
    payload = build_submission(decision, RECORDS, "S-001", 1, TEXT, captured_at=CAPTURED_AT)
    assert payload["batch_number"] == "AB1234"
    assert payload["match_type"] == "fuzzy"
    assert payload["confidence"] == 90
    assert payload["alternative_matches"] == ["AB1235"]


def test_picking_the_second_ambiguous_candidate():
    decision = classify([S("b1", 90.0), S("b2", 80.0)])
    payload = build_submission(decision, RECORDS, "S-001", 1, TEXT, selected_batch_id="b2", captured_at=CAPTURED_AT)
    assert payload["batch_number"] == "AB1235"
    assert payload["confidence"] == 80
    assert payload["alternative_matches"] == ["AB1234"]


def test_manual_selection_after_no_match():
    decision = classify([S("b1", 40.0)])
    payload = build_submission(decision, RECORDS, "S-001", 3, TEXT, selected_batch_id="b1", captured_at=CAPTURED_AT)
    assert payload["match_type"] == "manual"
    assert payload["confidence"] == MANUAL_CONFIDENCE
    assert payload["selected_from_options"] is False
    assert payload["alternative_matches"] == []


def test_no_match_needs_a_selection():
    decision = classify([S("b1", 40.0)])
    with pytest.raises(InvalidInput):
        build_submission(decision, RECORDS, "S-001", 1, TEXT)


@pytest.mark.parametrize("quantity", [0, -1, None])
def test_quantity_must_be_positive(quantity):
    decision = classify([S("b1", 100.0)])
    with pytest.raises(InvalidInput):
        build_submission(decision, RECORDS, "S-001", quantity, TEXT)


def test_unknown_batch():
    decision = classify([S("b1", 100.0)])
    with pytest.raises(InvalidInput):
        build_submission(decision, RECORDS, "S-001", 1, TEXT, selected_batch_id="nope")


def test_timestamp_defaults_to_now():
    decision = classify([S("b1", 100.0)])
    payload = build_submission(decision, RECORDS, "S-001", 1, TEXT)
    assert payload["submit_timestamp"] > 1767225600000
    assert payload["capture_id"] == str(payload["submit_timestamp"])
