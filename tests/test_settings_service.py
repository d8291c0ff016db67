import json
from pathlib import Path

import pytest

from core.models.settings import AppSettings
from core.services.settings_service import export_dir, load_settings, save_settings


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    s = load_settings(tmp_path / "nope.json")

    assert s.export.page_width_mm == 80
    assert s.export.capture_width_px == 400
    assert s.export.scale == 2
    assert s.print.delay_ms == 100
    assert s.pricing.clamp_percentage_discount is True


def test_partial_file_overrides_and_ignores_unknown(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({"export": {"page_width_mm": 58}, "legacy": 1}), encoding="utf-8")

    s = load_settings(p)

    assert s.export.page_width_mm == 58
    assert s.export.background == "#ffffff"


@pytest.mark.parametrize("content", ["{not json", json.dumps({"export": {"scale": -1}})])
def test_bad_file_falls_back_to_defaults(tmp_path: Path, content: str) -> None:
    p = tmp_path / "settings.json"
    p.write_text(content, encoding="utf-8")

    assert load_settings(p) == AppSettings()


def test_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / "custom.json"
    p.write_text(json.dumps({"display": {"currency_symbol": "$"}}), encoding="utf-8")
    monkeypatch.setenv("INVOICER_SETTINGS", str(p))
    monkeypatch.setenv("INVOICER_LOG_LEVEL", "DEBUG")

    s = load_settings()

    assert s.display.currency_symbol == "$"
    assert s.logging.level == "DEBUG"


def test_save_then_export_dir(tmp_path: Path) -> None:
    s = AppSettings()
    s.export.export_dir = str(tmp_path / "out")

    path = save_settings(s, tmp_path / "data" / "settings.json")

    assert load_settings(path).export.export_dir == str(tmp_path / "out")
    assert export_dir(s).is_dir()
