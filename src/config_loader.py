import os
from typing import Optional, Tuple

import yaml

from batch_models import InvalidInput
from engine import MatchSettings


DEFAULTS = {
    "matching": {
        "threshold": 75,
        "window_tolerance": 0.2,
        "expiry_similarity": 90,
        "nearest_limit": 3,
        "max_workers": None,
    },
    "expiry": {"tolerance_days": 30, "warning_days": 30},
}


def _default_path() -> str:
    return os.getenv(
        "BATCH_MATCH_CONFIG",
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config", "matching.yml"),
    )


def load_matching_config(path: Optional[str] = None) -> dict:
    path = path or _default_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {k: dict(v) for k, v in DEFAULTS.items()}
    except yaml.YAMLError as e:
        raise InvalidInput(f"could not parse {path}: {e}") from e

    if not isinstance(cfg, dict):
        raise InvalidInput(f"{path} must hold a mapping, got {type(cfg).__name__}")

    # shallow merge defaults; an empty section keeps the defaults
    merged = {k: dict(v) for k, v in DEFAULTS.items()}
    for k, v in cfg.items():
        if isinstance(merged.get(k), dict):
            if v is None:
                continue
            if not isinstance(v, dict):
                raise InvalidInput(f"config section '{k}' must be a mapping")
            merged[k].update(v)
        else:
            merged[k] = v
    return merged


def _section(cfg: dict, name: str) -> dict:
    section = cfg.get(name) or {}
    if not isinstance(section, dict):
        raise InvalidInput(f"config section '{name}' must be a mapping")
    return section


def settings_from_config(cfg: dict) -> MatchSettings:
    m = _section(cfg, "matching")
    try:
        settings = MatchSettings(
            threshold=float(m.get("threshold", 75)),
            window_tolerance=float(m.get("window_tolerance", 0.2)),
            expiry_similarity=float(m.get("expiry_similarity", 90)),
            nearest_limit=int(m.get("nearest_limit", 3)),
            max_workers=int(m["max_workers"]) if m.get("max_workers") is not None else None,
        )
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"invalid matching config: {e}") from e
    return settings.validate()


def expiry_days_from_config(cfg: dict) -> Tuple[int, int]:
    """(tolerance_days, warning_days) from the `expiry` section."""
    e = _section(cfg, "expiry")
    try:
        tolerance_days = int(e.get("tolerance_days", 30))
        warning_days = int(e.get("warning_days", 30))
    except (TypeError, ValueError) as err:
        raise InvalidInput(f"invalid expiry config: {err}") from err
    if tolerance_days < 0 or warning_days < 0:
        raise InvalidInput("expiry days must be >= 0")
    return tolerance_days, warning_days
