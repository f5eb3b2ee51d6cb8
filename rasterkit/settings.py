from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


SETTINGS_VERSION = 1


@dataclass
class EngineSettings:
    # Encoding
    default_quality: float = 0.92

    # Geometry
    crop_min_size: int = 20

    # Collage layout
    collage_thumb_width: int = 200
    collage_thumb_height: int = 200
    collage_gap: int = 10

    # Single-image editor; None keeps every snapshot
    history_limit: Optional[int] = None

    # Batch export naming
    export_suffix: str = "_edited"

    log_level: str = "INFO"


def _optional_int(raw: object) -> Optional[int]:
    if raw is None:
        return None
    value = int(raw)
    return value if value > 0 else None


def settings_from_raw(raw: dict) -> EngineSettings:
    defaults = EngineSettings()
    quality = float(raw.get("default_quality", defaults.default_quality))
    return EngineSettings(
        default_quality=max(0.0, min(1.0, quality)),
        crop_min_size=max(1, int(raw.get("crop_min_size", defaults.crop_min_size))),
        collage_thumb_width=max(1, int(raw.get("collage_thumb_width", defaults.collage_thumb_width))),
        collage_thumb_height=max(1, int(raw.get("collage_thumb_height", defaults.collage_thumb_height))),
        collage_gap=max(0, int(raw.get("collage_gap", defaults.collage_gap))),
        history_limit=_optional_int(raw.get("history_limit", defaults.history_limit)),
        export_suffix=str(raw.get("export_suffix", defaults.export_suffix)),
        log_level=str(raw.get("log_level", defaults.log_level)).upper(),
    )


def settings_to_raw(settings: EngineSettings) -> dict:
    return {
        "version": SETTINGS_VERSION,
        "default_quality": settings.default_quality,
        "crop_min_size": settings.crop_min_size,
        "collage_thumb_width": settings.collage_thumb_width,
        "collage_thumb_height": settings.collage_thumb_height,
        "collage_gap": settings.collage_gap,
        "history_limit": settings.history_limit,
        "export_suffix": settings.export_suffix,
        "log_level": settings.log_level,
    }


def load_settings(path: str | Path) -> EngineSettings:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"settings file {path} must contain a JSON object")
    return settings_from_raw(raw)


def save_settings(path: str | Path, settings: EngineSettings) -> None:
    Path(path).write_text(json.dumps(settings_to_raw(settings), indent=2), encoding="utf-8")
