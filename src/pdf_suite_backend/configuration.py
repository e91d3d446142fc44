from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

load_dotenv()

_HERE = Path(__file__).resolve()
_CANDIDATE_CONFIG_PATHS = [parent / "config/config.yaml" for parent in _HERE.parents[:3]]

CONFIG_PATH = next((path for path in _CANDIDATE_CONFIG_PATHS if path.exists()), None)
if CONFIG_PATH is None:  # pragma: no cover - fail fast in broken installs
    raise FileNotFoundError("Default config.yaml could not be located; the package data is missing.")

# Environment variable -> dotted config key.
ENV_OVERRIDES: Dict[str, str] = {
    "HOST": "server.host",
    "PORT": "server.port",
    "UPLOAD_DIR": "uploads.directory",
    "MAX_UPLOAD_MB": "uploads.max_file_size_mb",
    "LOG_LEVEL": "logging.level",
}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@lru_cache(maxsize=1)
def _load_default_config() -> DictConfig:
    return OmegaConf.load(CONFIG_PATH)  # type: ignore[return-value]


def environment_overrides() -> Dict[str, Any]:
    dotlist = [f"{key}={os.environ[name]}" for name, key in ENV_OVERRIDES.items() if os.environ.get(name)]
    overrides: Dict[str, Any] = OmegaConf.to_container(OmegaConf.from_dotlist(dotlist))  # type: ignore[assignment]

    origins = os.environ.get("CORS_ORIGINS")
    if origins:
        overrides.setdefault("server", {})["cors_origins"] = [origin.strip() for origin in origins.split(",") if origin.strip()]
    return overrides


def make_runtime_config(overrides: Dict[str, Any]) -> DictConfig:
    base_container = OmegaConf.to_container(_load_default_config(), resolve=False)
    base = OmegaConf.create(base_container)
    OmegaConf.set_struct(base, True)

    override_config = OmegaConf.create(overrides)
    merged = DictConfig(OmegaConf.merge(base, override_config))
    return merged


@lru_cache(maxsize=1)
def get_settings() -> DictConfig:
    return make_runtime_config(environment_overrides())


def reset_settings() -> None:
    get_settings.cache_clear()


def compression_options(level: str) -> Dict[str, Any]:
    """PyMuPDF save options for ``level``; unknown levels use ``medium``."""
    levels = get_settings().compression
    key = level if level in levels else "medium"
    return OmegaConf.to_container(levels[key], resolve=True)  # type: ignore[return-value]


def max_upload_bytes() -> int:
    return int(get_settings().uploads.max_file_size_mb) * 1024 * 1024


def configure_logging(level: Optional[str] = None) -> None:
    level_name = str(level or get_settings().logging.level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
