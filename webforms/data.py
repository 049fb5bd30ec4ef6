from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

import httpx

from webforms.catalog import ResourceDescriptor
from webforms.config import DashboardConfig
from webforms.fields import Record

logger = logging.getLogger(__name__)


class ResourceUnavailable(Exception):
    """A resource could not be fetched (network error, bad status, timeout)."""

    def __init__(self, identifier: str, reason: str):
        super().__init__(f"{identifier}: {reason}")
        self.identifier = identifier
        self.reason = reason


class MalformedPayload(ResourceUnavailable):
    """The resource was fetched but its body is not a JSON object."""


class LoadedSnapshot(Mapping):
    """Read-only identifier -> record mapping for one load cycle (records are read-only too).

    Failed identifiers are listed in ``failed`` and never appear as keys.
    """

    __slots__ = ("_records", "failed")

    def __init__(self, records: Optional[Mapping[str, Record]] = None, failed: Iterable[str] = ()):
        self._records = MappingProxyType({k: MappingProxyType(dict(v)) for k, v in (records or {}).items()})
        self.failed: Tuple[str, ...] = tuple(failed)

    def __getitem__(self, identifier: str) -> Record:
        return self._records[identifier]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"LoadedSnapshot(loaded={len(self)}, failed={list(self.failed)})"

    @classmethod
    def empty(cls) -> "LoadedSnapshot":
        return cls()


def resolve_url(location: str, config: DashboardConfig) -> Optional[str]:
    """HTTP URL for ``location``, or None when it names a local file."""
    if urlsplit(location).scheme in {"http", "https"}:
        return location
    if config.base_url:
        return f"{config.base_url}/{location.lstrip('/')}"
    return None


def _decode(identifier: str, payload: Any) -> Record:
    if not isinstance(payload, dict):
        raise MalformedPayload(identifier, f"expected a JSON object, got {type(payload).__name__}")
    return payload


async def _read_local(descriptor: ResourceDescriptor) -> Any:
    path = Path(descriptor.location)
    try:
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ResourceUnavailable(descriptor.identifier, str(exc)) from exc
    try:
        return json.loads(text)
    except ValueError as exc:
        raise MalformedPayload(descriptor.identifier, f"invalid JSON: {exc}") from exc


async def _read_remote(client: httpx.AsyncClient, descriptor: ResourceDescriptor, url: str) -> Any:
    try:
        response = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise ResourceUnavailable(descriptor.identifier, f"{type(exc).__name__}: {exc}") from exc
    if not response.is_success:
        raise ResourceUnavailable(descriptor.identifier, f"HTTP {response.status_code}")
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedPayload(descriptor.identifier, f"invalid JSON: {exc}") from exc


async def fetch_record(
    client: httpx.AsyncClient,
    descriptor: ResourceDescriptor,
    config: DashboardConfig,
) -> Record:
    url = resolve_url(descriptor.location, config)
    read = _read_local(descriptor) if url is None else _read_remote(client, descriptor, url)
    try:
        payload = await asyncio.wait_for(read, timeout=config.fetch_timeout)
    except asyncio.TimeoutError as exc:
        raise ResourceUnavailable(descriptor.identifier, f"timed out after {config.fetch_timeout:g}s") from exc
    return _decode(descriptor.identifier, payload)


async def _load_one(
    client: httpx.AsyncClient,
    semaphore: asyncio.Semaphore,
    descriptor: ResourceDescriptor,
    config: DashboardConfig,
) -> Tuple[str, Optional[Record]]:
    async with semaphore:
        try:
            return descriptor.identifier, await fetch_record(client, descriptor, config)
        except ResourceUnavailable as exc:
            logger.warning("Failed to load data for %s: %s", descriptor.identifier, exc.reason)
        except Exception:
            logger.exception("Unexpected error loading %s", descriptor.identifier)
    return descriptor.identifier, None


def merge_results(results: Iterable[Tuple[str, Optional[Record]]]) -> LoadedSnapshot:
    """Fold per-resource results in catalog order; later duplicates overwrite earlier ones."""
    records: Dict[str, Record] = {}
    failed: List[str] = []
    for identifier, record in results:
        if record is None:
            failed.append(identifier)
        else:
            records[identifier] = record
    failed = list(dict.fromkeys(i for i in failed if i not in records))
    return LoadedSnapshot(records, failed)


async def load_snapshot(
    catalog: Iterable[ResourceDescriptor],
    *,
    config: Optional[DashboardConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> LoadedSnapshot:
    """Fetch every resource concurrently and publish one snapshot once all settle."""
    config = config or DashboardConfig()
    catalog = list(catalog)
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=config.fetch_timeout, headers=list(config.headers), follow_redirects=True)
    try:
        semaphore = asyncio.Semaphore(config.max_concurrency)
        results = await asyncio.gather(*(_load_one(client, semaphore, d, config) for d in catalog))
    finally:
        if owns_client:
            await client.aclose()

    snapshot = merge_results(results)
    logger.info("Loaded %d of %d webform resources (%d failed)", len(snapshot), len(catalog), len(snapshot.failed))
    return snapshot


def load_snapshot_sync(
    catalog: Iterable[ResourceDescriptor],
    *,
    config: Optional[DashboardConfig] = None,
) -> LoadedSnapshot:
    return asyncio.run(load_snapshot(catalog, config=config))
