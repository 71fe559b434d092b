"""
Adapter selector.

`get_adapter()` reads `settings.data_adapter` the first time it is called
and returns the same instance for the rest of the process. There is no
runtime switching: the flag is a deployment choice.

    mock      -> MockAdapter over a fresh MockStore (default)
    supabase  -> RemoteAdapter, or RealtimeRemoteAdapter when REALTIME=true
"""

from functools import lru_cache

import structlog

from adapter import DataAdapter
from mock_adapter import MockAdapter, MockStore, SessionStorage
from remote_adapter import RealtimeRemoteAdapter, RemoteAdapter
from settings import settings

logger = structlog.get_logger(component="api")

ADAPTER_TYPES = {"mock", "supabase"}


def is_realtime_enabled() -> bool:
    return settings.realtime and settings.data_adapter == "supabase"


def build_adapter(kind: str) -> DataAdapter:
    if kind not in ADAPTER_TYPES:
        raise ValueError(f"Unknown DATA_ADAPTER: {kind!r} (expected one of {sorted(ADAPTER_TYPES)})")

    if kind == "mock":
        return MockAdapter(MockStore(), SessionStorage())
    if is_realtime_enabled():
        return RealtimeRemoteAdapter()
    return RemoteAdapter()


@lru_cache(maxsize=1)
def get_adapter() -> DataAdapter:
    adapter = build_adapter(settings.data_adapter)
    logger.info(
        "Data adapter selected",
        adapter=type(adapter).__name__,
        realtime=is_realtime_enabled(),
    )
    return adapter
