from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from webforms.catalog import ResourceDescriptor, discover_catalog
from webforms.charts import ChartData, ChartFields, normalize_chart
from webforms.config import DashboardConfig
from webforms.data import LoadedSnapshot, load_snapshot
from webforms.fields import SortKey
from webforms.sorting import SortState, ViewRow, build_view_rows, sort_rows

logger = logging.getLogger(__name__)


class WebformDashboard:
    """Current snapshot and sort state for one consuming view.

    Derived views (rows, sorted rows, chart) are recomputed from the latest
    snapshot on every read.
    """

    def __init__(
        self,
        catalog: List[ResourceDescriptor],
        config: Optional[DashboardConfig] = None,
        *,
        chart_fields: ChartFields = ChartFields(),
    ):
        self.catalog = list(catalog)
        self.config = config or DashboardConfig()
        self.chart_fields = chart_fields
        self.snapshot: LoadedSnapshot = LoadedSnapshot.empty()
        self.sort_state = SortState()
        self.loaded = False

    @classmethod
    def from_config(cls, config: DashboardConfig) -> "WebformDashboard":
        return cls(discover_catalog(config), config)

    async def reload(self, *, client: Optional[httpx.AsyncClient] = None) -> LoadedSnapshot:
        snapshot = await load_snapshot(self.catalog, config=self.config, client=client)
        self.snapshot = snapshot
        self.loaded = True
        return snapshot

    def reload_sync(self) -> LoadedSnapshot:
        return asyncio.run(self.reload())

    def request_sort(self, key: SortKey | str) -> SortState:
        self.sort_state = self.sort_state.toggle(key)
        logger.debug("Sort state now %s %s", self.sort_state.key_name, self.sort_state.direction.value)
        return self.sort_state

    def rows(self) -> List[ViewRow]:
        return build_view_rows(self.catalog, self.snapshot)

    def sorted_rows(self, state: Optional[SortState] = None) -> List[ViewRow]:
        return sort_rows(self.rows(), state or self.sort_state)

    def chart(self) -> ChartData:
        return normalize_chart(self.rows(), self.chart_fields)

    def summary(self) -> Dict[str, Any]:
        return {
            "total": len(self.catalog),
            "loaded": len(self.snapshot),
            "failed": list(self.snapshot.failed),
            "ready": self.loaded,
        }
