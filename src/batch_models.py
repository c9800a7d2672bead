from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from date_formats import parse_any_date


class InvalidInput(ValueError):
    """Out-of-range or malformed parameter, score, config or manifest."""


def check_number(value, name: str):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    return value


def _optional_str(value) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass(frozen=True)
class BatchRecord:
    batch_id: str
    batch_codes: Tuple[str, ...]
    product_name: Optional[str] = None
    manufacturing_date: Optional[date] = None
    expiry_date: Optional[date] = None
    manufacturer: Optional[str] = None
    session_id: Optional[str] = None

    @classmethod
    def from_manifest_entry(cls, key: str, entry: Dict, session_id: Optional[str] = None) -> "BatchRecord":
        entry = entry or {}
        if not isinstance(entry, dict):
            raise InvalidInput(f"manifest entry for batch {key} must be an object")
        batch_number = _optional_str(entry.get("batch_number")) or _optional_str(key)
        lot_number = _optional_str(entry.get("lot_number"))

        codes: List[str] = []
        for code in (batch_number, lot_number):
            if code and code not in codes:
                codes.append(code)

        return cls(
            batch_id=str(key),
            batch_codes=tuple(codes),
            product_name=_optional_str(entry.get("product_name") or entry.get("item_name")),
            manufacturing_date=parse_any_date(_optional_str(entry.get("manufacturing_date"))),
            expiry_date=parse_any_date(_optional_str(entry.get("expiry_date"))),
            manufacturer=_optional_str(entry.get("manufacturer")),
            session_id=session_id,
        )

    @property
    def display_name(self) -> str:
        if self.product_name:
            return self.product_name
        if self.batch_codes:
            return f"Lot: {self.batch_codes[0]}"
        return f"Batch: {self.batch_id}"


def records_from_manifest(payload: Dict) -> List[BatchRecord]:
    """Session manifest as served to the scanner: {"session_id", "batches": {number: {...}}}."""
    payload = payload or {}
    if not isinstance(payload, dict):
        raise InvalidInput("manifest must be an object")
    batches = payload.get("batches")
    if not batches:
        return []
    if not isinstance(batches, dict):
        raise InvalidInput("manifest batches must be an object keyed by batch number")
    session_id = _optional_str(payload.get("session_id"))
    return [
        BatchRecord.from_manifest_entry(key, entry, session_id)
        for key, entry in batches.items()
    ]


@dataclass(frozen=True)
class ExtractedText:
    text: str
    lines: Tuple[str, ...] = ()

    @classmethod
    def from_lines(cls, lines: List[str]) -> "ExtractedText":
        cleaned = tuple(line.strip() for line in lines if line and line.strip())
        return cls(text="\n".join(cleaned), lines=cleaned)

    @property
    def searchable_text(self) -> str:
        if self.text and self.text.strip():
            return self.text
        return "\n".join(self.lines)


@dataclass(frozen=True)
class MatchCandidateScore:
    batch_id: str
    score: float
    expiry_corroborated: bool = False
    expiry_checked: bool = False  # False: record has no expiry, corroboration unknown
    matched_variant: Optional[str] = None


class DecisionKind(str, Enum):
    EXACT = "exact"
    AMBIGUOUS = "ambiguous"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class MatchDecision:
    kind: DecisionKind
    ranked: Tuple[MatchCandidateScore, ...]
    threshold: float
    nearest: Tuple[MatchCandidateScore, ...] = field(default=())

    @property
    def is_exact(self) -> bool:
        return self.kind is DecisionKind.EXACT

    @property
    def best(self) -> Optional[MatchCandidateScore]:
        return self.ranked[0] if self.ranked else None

    def to_dict(self) -> Dict:
        def _score(s: MatchCandidateScore) -> Dict:
            return {
                "batch_id": s.batch_id,
                "score": round(s.score, 1),
                "expiry_corroborated": s.expiry_corroborated,
                "expiry_checked": s.expiry_checked,
                "matched_variant": s.matched_variant,
            }

        return {
            "decision": self.kind.value,
            "threshold": self.threshold,
            "ranked": [_score(s) for s in self.ranked],
            "nearest": [_score(s) for s in self.nearest],
        }


def search_batches(records: List[BatchRecord], query: str) -> List[BatchRecord]:
    """Case-insensitive substring search over id, codes, product and manufacturer."""
    if not query or not query.strip():
        return list(records)
    q = query.strip().lower()

    def _hit(record: BatchRecord) -> bool:
        fields = [record.batch_id, record.product_name, record.manufacturer, *record.batch_codes]
        return any(q in f.lower() for f in fields if f)

    return [r for r in records if _hit(r)]
