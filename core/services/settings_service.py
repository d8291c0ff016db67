from __future__ import annotations
import os
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from core.models.settings import AppSettings

log = logging.getLogger(__name__)

# --- Chemins de base ---
ROOT_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = ROOT_DIR / "data"
EXPORTS_DIR = ROOT_DIR / "exports"
SETTINGS_JSON = DATA_DIR / "settings.json"

def settings_path() -> Path:
    """data/settings.json, ou le fichier désigné par INVOICER_SETTINGS."""
    env = os.environ.get("INVOICER_SETTINGS")
    return Path(env) if env else SETTINGS_JSON

def _load_json(path: os.PathLike | str):
    p = Path(path)
    if not p.exists():
        return None
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Lecture impossible de %s (%s), valeurs par défaut.", p, e)
        return None

def load_settings(path: Optional[os.PathLike | str] = None) -> AppSettings:
    p = Path(path) if path else settings_path()
    data = _load_json(p)
    s = AppSettings()
    if isinstance(data, dict):
        try:
            s = AppSettings.model_validate(data)
        except ValidationError as e:
            log.warning("Paramètres invalides dans %s, valeurs par défaut.\n%s", p, e)

    level = os.environ.get("INVOICER_LOG_LEVEL")
    if level:
        s.logging.level = level
    return s

def save_settings(settings: AppSettings, path: Optional[os.PathLike | str] = None) -> Path:
    p = Path(path) if path else settings_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(settings.model_dump(), ensure_ascii=False, indent=2), encoding="utf-8")
    return p

def export_dir(settings: AppSettings) -> Path:
    d = Path(settings.export.export_dir) if settings.export.export_dir else EXPORTS_DIR
    d.mkdir(parents=True, exist_ok=True)
    return d
