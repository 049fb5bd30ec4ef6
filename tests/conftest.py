from __future__ import annotations

import json
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from webforms.catalog import ResourceDescriptor, build_catalog
from webforms.config import DashboardConfig
from webforms.data import LoadedSnapshot
from webforms.sorting import ViewRow, build_view_rows

from _helpers import ACME, BASE, BOLT


@pytest.fixture()
def catalog() -> List[ResourceDescriptor]:
    return build_catalog((name, f"{BASE}/{name}") for name in ["A.json", "B.json", "C.json"])


@pytest.fixture()
def config() -> DashboardConfig:
    return DashboardConfig(fetch_timeout=2.0, max_concurrency=4)


def make_transport(payloads: Dict[str, object], statuses: Optional[Dict[str, int]] = None) -> httpx.MockTransport:
    """Serve ``payloads`` by filename; dicts are JSON-encoded, strings sent raw, missing names 404."""
    statuses = statuses or {}

    def handler(request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        if name in statuses:
            return httpx.Response(statuses[name])
        if name not in payloads:
            return httpx.Response(404)
        body = payloads[name]
        if isinstance(body, str):
            return httpx.Response(200, content=body.encode("utf-8"))
        return httpx.Response(200, content=json.dumps(body).encode("utf-8"), headers={"content-type": "application/json"})

    return httpx.MockTransport(handler)


@pytest.fixture()
def mock_client() -> Callable[..., httpx.AsyncClient]:
    def _factory(payloads: Dict[str, object], statuses: Optional[Dict[str, int]] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=make_transport(payloads, statuses))

    return _factory


@pytest.fixture()
def example_rows(catalog) -> List[ViewRow]:
    """A and B loaded, C failed."""
    return build_view_rows(catalog, LoadedSnapshot({"A.json": ACME, "B.json": BOLT}, failed=["C.json"]))
