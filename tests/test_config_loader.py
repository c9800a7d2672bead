import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from batch_models import InvalidInput
from config_loader import DEFAULTS, expiry_days_from_config, load_matching_config, settings_from_config
from engine import MatchSettings


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_matching_config(str(tmp_path / "missing.yml"))
    assert cfg == DEFAULTS
    cfg["matching"]["threshold"] = 10
    assert DEFAULTS["matching"]["threshold"] == 75


def test_file_values_override_defaults(tmp_path):
    path = tmp_path / "matching.yml"
    path.write_text("matching:\n  threshold: 80\n  max_workers: 4\n", encoding="utf-8")
    cfg = load_matching_config(str(path))
    assert cfg["matching"]["threshold"] == 80
    assert cfg["matching"]["window_tolerance"] == 0.2
    assert cfg["expiry"]["tolerance_days"] == 30

    settings = settings_from_config(cfg)
    assert settings.threshold == 80.0
    assert settings.max_workers == 4


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "matching.yml"
    path.write_text("", encoding="utf-8")
    assert load_matching_config(str(path)) == DEFAULTS


def test_env_var_points_to_config(tmp_path, monkeypatch):
    path = tmp_path / "custom.yml"
    path.write_text("matching:\n  nearest_limit: 5\n", encoding="utf-8")
    monkeypatch.setenv("BATCH_MATCH_CONFIG", str(path))
    assert load_matching_config()["matching"]["nearest_limit"] == 5


def test_shipped_config_matches_defaults(monkeypatch):
    monkeypatch.delenv("BATCH_MATCH_CONFIG", raising=False)
    assert settings_from_config(load_matching_config()) == MatchSettings()


@pytest.mark.parametrize("matching", [
    {"threshold": 150},
    {"threshold": "high"},
    {"window_tolerance": 1.2},
    {"max_workers": 0},
])
def test_invalid_values(matching):
    with pytest.raises(InvalidInput):
        settings_from_config({"matching": matching})


def _write(tmp_path, text):
    path = tmp_path / "matching.yml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_yaml_syntax_error(tmp_path):
    with pytest.raises(InvalidInput):
        load_matching_config(_write(tmp_path, "matching: [threshold: 80\n"))


def test_empty_section_keeps_defaults(tmp_path):
    cfg = load_matching_config(_write(tmp_path, "matching:\nexpiry:\n  warning_days: 10\n"))
    assert cfg["matching"] == DEFAULTS["matching"]
    assert expiry_days_from_config(cfg) == (30, 10)


@pytest.mark.parametrize("text", ["matching: 80\n", "- 1\n- 2\n", "expiry: [30]\n"])
def test_malformed_sections(tmp_path, text):
    with pytest.raises(InvalidInput):
        load_matching_config(_write(tmp_path, text))


def test_settings_from_config_accepts_empty_or_missing_section():
    assert settings_from_config({"matching": None}) == MatchSettings()
    assert settings_from_config({}) == MatchSettings()
    with pytest.raises(InvalidInput):
        settings_from_config({"matching": [75]})


@pytest.mark.parametrize("expiry", [{"tolerance_days": "soon"}, {"warning_days": -1}, {"tolerance_days": None}])
def test_invalid_expiry_days(expiry):
    with pytest.raises(InvalidInput):
        expiry_days_from_config({"expiry": expiry})
