"""
Runtime settings for the Media Mix API.

Values come from environment variables, optionally loaded from a .env file
at the repository root.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).parent.parent.parent

load_dotenv(ROOT_DIR / ".env")

DEFAULT_OPTIMIZER_INCREMENT = 1000.0
DEFAULT_OPTIMIZER_TOLERANCE = 0.01


@dataclass(frozen=True)
class Settings:
    """Snapshot of the environment-driven configuration."""
    data_file: Optional[Path] = None
    cors_origins: list[str] = field(default_factory=list)
    media_types: dict[str, str] = field(default_factory=dict)
    optimizer_increment: float = DEFAULT_OPTIMIZER_INCREMENT
    optimizer_tolerance: float = DEFAULT_OPTIMIZER_TOLERANCE


def parse_media_types(raw: str) -> dict[str, str]:
    """
    Parse an explicit channel to media type table.

    Accepts either a JSON object ({"TV": "Offline"}) or a comma-separated
    list of NAME=TYPE pairs (TV=Offline,Digital=Online).
    """
    raw = raw.strip()
    if not raw:
        return {}

    if raw.startswith("{"):
        mapping = json.loads(raw)
        if not isinstance(mapping, dict):
            raise ValueError("MMM_MEDIA_TYPES must be a JSON object")
        return {str(k).strip(): str(v).strip() for k, v in mapping.items()}

    mapping = {}
    for pair in raw.split(","):
        if not pair.strip():
            continue
        if "=" not in pair:
            raise ValueError(f"Invalid media type entry: {pair!r} (expected NAME=TYPE)")
        name, media_type = pair.split("=", 1)
        mapping[name.strip()] = media_type.strip()
    return mapping


def get_allowed_origins(extra: str = "") -> list[str]:
    """Get CORS allowed origins from environment or defaults."""
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    if extra:
        origins.extend([o.strip() for o in extra.split(",") if o.strip()])

    frontend_url = os.getenv("FRONTEND_URL")
    if frontend_url:
        origins.append(frontend_url)

    return origins


def load_settings() -> Settings:
    """Read settings from the environment. Invalid numbers raise ValueError."""
    data_file = os.getenv("MMM_DATA_FILE")

    increment = float(os.getenv("MMM_OPTIMIZER_INCREMENT", DEFAULT_OPTIMIZER_INCREMENT))
    tolerance = float(os.getenv("MMM_OPTIMIZER_TOLERANCE", DEFAULT_OPTIMIZER_TOLERANCE))
    if increment <= 0:
        raise ValueError("MMM_OPTIMIZER_INCREMENT must be positive")
    if tolerance < 0:
        raise ValueError("MMM_OPTIMIZER_TOLERANCE must not be negative")

    return Settings(
        data_file=Path(data_file) if data_file else None,
        cors_origins=get_allowed_origins(os.getenv("CORS_ORIGINS", "")),
        media_types=parse_media_types(os.getenv("MMM_MEDIA_TYPES", "")),
        optimizer_increment=increment,
        optimizer_tolerance=tolerance,
    )
