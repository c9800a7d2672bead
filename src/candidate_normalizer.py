import re
from dataclasses import dataclass
from typing import FrozenSet, Set

from batch_models import BatchRecord
from date_formats import date_format_set


@dataclass(frozen=True)
class CandidateVariants:
    batch_code_variants: FrozenSet[str]
    expiry_date_variants: FrozenSet[str]

    @property
    def matchable(self) -> bool:
        return bool(self.batch_code_variants)


def _strip_code(code: str) -> str:
    # "AB-12 34" -> "AB1234"
    return re.sub(r"[\W_]+", "", code)


def code_variants(code: str) -> Set[str]:
    raw = (code or "").strip()
    if not raw:
        return set()
    variants = {raw, raw.upper()}
    stripped = _strip_code(raw)
    if stripped:
        variants.add(stripped)
        variants.add(stripped.upper())
    return variants


def expand(record: BatchRecord) -> CandidateVariants:
    """All spellings the record's batch codes and expiry date may take in print."""
    codes: Set[str] = set()
    for code in record.batch_codes:
        codes |= code_variants(code)

    if record.expiry_date is None:
        expiry: Set[str] = set()
    else:
        expiry = set(date_format_set(record.expiry_date))

    return CandidateVariants(frozenset(codes), frozenset(expiry))
