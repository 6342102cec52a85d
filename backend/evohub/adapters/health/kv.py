"""Key-value store health probe adapter."""

import time

from evohub.core.exceptions import KeyValueStoreError
from evohub.core.protocols.health import HealthProbe
from evohub.core.protocols.kv_store import KeyValueStore
from evohub.schemas.health import ProbeResult, ProbeStatus


class KeyValueHealthProbe(HealthProbe):
    """Probes the configured key-value backend through ``ping()``."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def name(self) -> str:
        return "kv"

    async def check(self) -> ProbeResult:
        start = time.perf_counter()
        if not await self._store.ping():
            raise KeyValueStoreError("ping returned false")
        latency = (time.perf_counter() - start) * 1000
        return ProbeResult(status=ProbeStatus.up, latency_ms=round(latency, 2))
