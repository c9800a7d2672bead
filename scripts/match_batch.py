#!/usr/bin/env python
"""
Match OCR text from a batch label against a session manifest.

    python scripts/match_batch.py --manifest session.json --text-file label.txt
    python scripts/match_batch.py --manifest session.json --text "Lot: AB1234 Exp 03/2026" --json
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from batch_models import ExtractedText, InvalidInput, records_from_manifest
from config_loader import expiry_days_from_config, load_matching_config, settings_from_config
from engine import match_decision
from expiry import expiry_status, expiry_within_tolerance, group_by_expiry_status
from field_extractor import extract_fields


def _read_text(args) -> ExtractedText:
    if args.text is not None:
        return ExtractedText.from_lines(args.text.splitlines())
    with open(args.text_file, "r", encoding="utf-8") as f:
        return ExtractedText.from_lines(f.read().splitlines())


def _print_report(decision, records, fields, tolerance_days: int, warning_days: int):
    by_id = {r.batch_id: r for r in records}
    print(f"🔍 decision: {decision.kind.value} (threshold {decision.threshold:g})")

    if fields.batch_number or fields.lot_number:
        print(f"  🏷️ label: batch={fields.batch_number} lot={fields.lot_number} exp={fields.expiry_text}")

    listed = decision.ranked or decision.nearest
    if not decision.ranked and listed:
        print("  ⚠️ nearest matches below threshold:")
    for i, s in enumerate(listed, 1):
        record = by_id.get(s.batch_id)
        name = record.display_name if record else s.batch_id
        expiry = record.expiry_date if record else None
        if not s.expiry_checked:
            exp_flag = "unknown"
        else:
            exp_flag = "✅" if s.expiry_corroborated else "❌"
        print(f"  {i}. {s.batch_id} {name} score={s.score:.1f} expiry_in_text={exp_flag} "
              f"status={expiry_status(expiry, warning_days=warning_days)}")
        if fields.expiry_date and expiry:
            within = expiry_within_tolerance(fields.expiry_date, expiry, tolerance_days)
            print(f"     printed expiry {fields.expiry_date.isoformat()} vs manifest {expiry.isoformat()}: "
                  f"{'OK' if within else 'MISMATCH'}")

    if not listed:
        print("  ❌ no matching batch found")


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Match batch label OCR text against a session manifest")
    parser.add_argument("--manifest", required=True, help="session manifest JSON ({session_id, batches})")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text-file", help="OCR text, one recognised line per line")
    source.add_argument("--text", help="OCR text given inline")
    parser.add_argument("--config", help="matching.yml path (default: $BATCH_MATCH_CONFIG or config/matching.yml)")
    parser.add_argument("--threshold", type=float, help="override the similarity threshold (0-100)")
    parser.add_argument("--json", action="store_true", help="print the decision as JSON")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        cfg = load_matching_config(args.config)
        if args.threshold is not None:
            cfg["matching"]["threshold"] = args.threshold
        settings = settings_from_config(cfg)
        tolerance_days, warning_days = expiry_days_from_config(cfg)

        with open(args.manifest, "r", encoding="utf-8") as f:
            records = records_from_manifest(json.load(f))
        extracted = _read_text(args)
    except InvalidInput as e:
        print(f"❌ invalid input: {e}")
        return 2
    except (OSError, ValueError) as e:
        print(f"❌ could not read input: {e}")
        return 2

    decision = match_decision(extracted, records, settings)
    fields = extract_fields(extracted)

    if args.json:
        out = decision.to_dict()
        out["fields"] = fields.to_dict()
        print(json.dumps(out, ensure_ascii=False, indent=2))
    else:
        groups = group_by_expiry_status(records, warning_days=warning_days)
        print(f"📦 matching against {len(records)} batches "
              f"(expired {len(groups['expired'])}, expiring soon {len(groups['expiring_soon'])})")
        _print_report(decision, records, fields, tolerance_days, warning_days)
    return 0


if __name__ == "__main__":
    sys.exit(main())
