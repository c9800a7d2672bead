"""
Labelled-field extraction from OCR text of a batch label.

Each field has its own list of patterns and is extracted independently;
the first pattern that matches wins. Nothing here decides which batch the
label belongs to, that is the matcher's job.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Pattern

from batch_models import ExtractedText
from date_formats import parse_any_date

_MON = r"(?:JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC)"

_DATE = (
    r"(\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}"
    r"|\d{4}[/.\-]\d{1,2}[/.\-]\d{1,2}"
    r"|\d{1,2}[\s\-/.]?" + _MON + r"[\s\-/.]?\d{2,4}"
    r"|" + _MON + r"[\s\-/.]?\d{1,2},?\s?\d{4}"
    r"|" + _MON + r"[\s\-/.]?\d{2,4}"
    r"|\d{1,2}[/.\-]\d{2,4})"
)


@dataclass(frozen=True)
class LabeledPattern:
    label: str
    patterns: List[Pattern]

    def extract(self, text: str) -> Optional[str]:
        for pattern in self.patterns:
            match = pattern.search(text)
            if match:
                value = match.group(1).strip(" :.-")
                if value:
                    return value
        return None


def _compile(*patterns: str) -> List[Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


EXTRACTORS: Dict[str, LabeledPattern] = {
    "batch_number": LabeledPattern("batch_number", _compile(
        r"\b(?:BATCH\b\s*(?:(?:NUMBER|NO)\b|#)?|B\.?\s*NO)\.?\s*[:\-]?\s*([A-Z0-9][A-Z0-9\-/]{2,})",
    )),
    "lot_number": LabeledPattern("lot_number", _compile(
        r"\bLOT\b\s*(?:(?:NUMBER|NO)\b|#)?\.?\s*[:\-]?\s*([A-Z0-9][A-Z0-9\-/]{2,})",
    )),
    "expiry_date": LabeledPattern("expiry_date", _compile(
        r"\bEXP(?:IRY|\.|IRES)?\s*(?:DATE|DT)?\.?\s*[:\-]?\s*" + _DATE,
        r"\bUSE\s+(?:BY|BEFORE)\s*[:\-]?\s*" + _DATE,
    )),
    "manufacturing_date": LabeledPattern("manufacturing_date", _compile(
        r"\bM(?:FG|FD)\.?\s*(?:DATE|DT)?\.?\s*[:\-]?\s*" + _DATE,
        r"\bMANUFACTURED\s*(?:ON)?\s*[:\-]?\s*" + _DATE,
    )),
    "manufacturer": LabeledPattern("manufacturer", _compile(
        r"\b(?:MFD|MANUFACTURED|MARKETED|MKTD)\.?\s+BY\s*[:\-]?\s*([^\n]+)",
    )),
}

_LABEL_LINE = re.compile(r"\b(BATCH|B\.?\s*NO|LOT|EXP|MFG|MFD|MANUFACTURED|MARKETED|MKTD|USE BY|MRP|PRICE)\b", re.IGNORECASE)


def extract_product_name(lines: List[str]) -> Optional[str]:
    """First line that carries letters and is not a labelled line."""
    for line in lines:
        s = line.strip()
        if not s or _LABEL_LINE.search(s):
            continue
        if len(re.findall(r"[A-Za-z]", s)) >= 3:
            return s
    return None


@dataclass(frozen=True)
class ExtractedFields:
    batch_number: Optional[str] = None
    lot_number: Optional[str] = None
    expiry_text: Optional[str] = None
    expiry_date: Optional[date] = None
    manufacturing_text: Optional[str] = None
    manufacturing_date: Optional[date] = None
    manufacturer: Optional[str] = None
    product_name: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "batch_number": self.batch_number,
            "lot_number": self.lot_number,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else self.expiry_text,
            "manufacturing_date": self.manufacturing_date.isoformat() if self.manufacturing_date else self.manufacturing_text,
            "manufacturer": self.manufacturer,
            "product_name": self.product_name,
        }


def _fallback_expiry(text: str, manufacturing_text: Optional[str]) -> Optional[str]:
    # unlabelled date: take the last one that is not the manufacturing date
    candidates = [m.group(1) for m in re.finditer(_DATE, text, re.IGNORECASE)]
    candidates = [c for c in candidates if c != manufacturing_text and parse_any_date(c)]
    return candidates[-1] if candidates else None


def extract_fields(extracted: ExtractedText) -> ExtractedFields:
    text = extracted.searchable_text
    lines = list(extracted.lines) or text.splitlines()

    values = {label: extractor.extract(text) for label, extractor in EXTRACTORS.items()}
    expiry_text = values["expiry_date"] or _fallback_expiry(text, values["manufacturing_date"])

    return ExtractedFields(
        batch_number=values["batch_number"],
        lot_number=values["lot_number"],
        expiry_text=expiry_text,
        expiry_date=parse_any_date(expiry_text),
        manufacturing_text=values["manufacturing_date"],
        manufacturing_date=parse_any_date(values["manufacturing_date"]),
        manufacturer=values["manufacturer"].strip() if values["manufacturer"] else None,
        product_name=extract_product_name(lines),
    )
