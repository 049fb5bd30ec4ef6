from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
FILE_GLOB = "*.json"
URL_PREFIX = "/data/"

FETCH_TIMEOUT_DEFAULT = 10.0
MAX_CONCURRENCY_DEFAULT = 16


@dataclass(frozen=True)
class DashboardConfig:
    data_dir: Path = DATA_DIR
    file_glob: str = FILE_GLOB
    url_prefix: str = URL_PREFIX
    base_url: Optional[str] = None
    fetch_timeout: float = FETCH_TIMEOUT_DEFAULT
    max_concurrency: int = MAX_CONCURRENCY_DEFAULT
    headers: Tuple[Tuple[str, str], ...] = ()


def _as_float(value: object, default: float) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except Exception:
        return default


def _as_int(value: object, default: int) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except Exception:
        return default


def normalize_config(raw: dict) -> DashboardConfig:
    data_dir = raw.get("data_dir") or DATA_DIR
    file_glob = (raw.get("file_glob") or FILE_GLOB).strip()

    url_prefix = raw.get("url_prefix") or URL_PREFIX
    if not url_prefix.endswith("/"):
        url_prefix += "/"

    base_url = (raw.get("base_url") or "").strip() or None
    if base_url:
        base_url = base_url.rstrip("/")

    fetch_timeout = _as_float(raw.get("fetch_timeout", FETCH_TIMEOUT_DEFAULT), FETCH_TIMEOUT_DEFAULT)
    fetch_timeout = max(0.1, min(300.0, fetch_timeout))

    max_concurrency = _as_int(raw.get("max_concurrency", MAX_CONCURRENCY_DEFAULT), MAX_CONCURRENCY_DEFAULT)
    max_concurrency = max(1, min(256, max_concurrency))

    raw_headers = raw.get("headers") or {}
    if isinstance(raw_headers, dict):
        raw_headers = raw_headers.items()
    headers = tuple((str(k), str(v)) for k, v in raw_headers)
    return DashboardConfig(
        data_dir=Path(data_dir),
        file_glob=file_glob or FILE_GLOB,
        url_prefix=url_prefix,
        base_url=base_url,
        fetch_timeout=fetch_timeout,
        max_concurrency=max_concurrency,
        headers=headers,
    )


def load_config(**overrides: object) -> DashboardConfig:
    """Build the config from ``WEBFORMS_*`` environment variables plus explicit overrides."""
    raw: dict = {
        "data_dir": os.environ.get("WEBFORMS_DATA_DIR"),
        "base_url": os.environ.get("WEBFORMS_BASE_URL"),
        "fetch_timeout": os.environ.get("WEBFORMS_FETCH_TIMEOUT", FETCH_TIMEOUT_DEFAULT),
    }
    raw.update({k: v for k, v in overrides.items() if v is not None})
    return normalize_config(raw)
