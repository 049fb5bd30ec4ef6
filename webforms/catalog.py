from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from webforms.config import DashboardConfig


@dataclass(frozen=True)
class ResourceDescriptor:
    identifier: str
    location: str


def sort_catalog(descriptors: Iterable[ResourceDescriptor]) -> List[ResourceDescriptor]:
    """Case-insensitive lexical order by identifier (raw identifier breaks ties)."""
    return sorted(descriptors, key=lambda d: (d.identifier.casefold(), d.identifier))


def build_catalog(pairs: Iterable[Tuple[str, str]]) -> List[ResourceDescriptor]:
    return sort_catalog(ResourceDescriptor(identifier=str(i), location=str(loc)) for i, loc in pairs)


def get_source_files(config: DashboardConfig) -> List[Path]:
    data_dir = Path(config.data_dir)
    if not data_dir.is_dir():
        return []
    return sorted(p for p in data_dir.glob(config.file_glob) if p.is_file())


def location_for(path: Path, config: DashboardConfig) -> str:
    """Served URL when a base URL is configured, otherwise the local path."""
    if config.base_url:
        return f"{config.url_prefix}{path.name}"
    return str(path)


def discover_catalog(config: DashboardConfig, files: Optional[List[Path]] = None) -> List[ResourceDescriptor]:
    files = get_source_files(config) if files is None else files
    return build_catalog((f.name, location_for(f, config)) for f in files)
