"""FastAPI application, store wiring, and startup."""

import logging
from typing import Optional, Tuple

from fastapi import FastAPI

from unified_inbox.adapters.realtime import LocalChangeFeed, StorageDirWatcher
from unified_inbox.adapters.storage import JsonRecordStore, MemoryRecordStore, PostgrestRecordStore
from unified_inbox.adapters.web import inbox_routes
from unified_inbox.config import AppConfig, configure_logging
from unified_inbox.service import InboxService

logger = logging.getLogger(__name__)

app = FastAPI(title="Unified Inbox")
app.include_router(inbox_routes.inbox_router)

_watcher: Optional[StorageDirWatcher] = None


def build_store(config: AppConfig) -> Tuple[object, Optional[object]]:
    """Return (record store, change feed) for the configured backend.

    The PostgREST backend has no change feed here; the fallback refresh
    keeps its snapshots bounded instead.
    """
    backend = config.storage.backend
    if backend == "memory":
        feed = LocalChangeFeed()
        return MemoryRecordStore(change_feed=feed), feed
    if backend == "postgrest":
        return PostgrestRecordStore(config.storage.postgrest_url, config.storage.postgrest_api_key), None
    watcher = StorageDirWatcher(config.storage.storage_dir)
    return JsonRecordStore(config.storage.storage_dir, change_feed=watcher.feed), watcher


@app.get("/status")
async def status():
    """Server status endpoint"""
    service = inbox_routes.inbox_service
    return {
        "ready": service is not None,
        "sessions": list(service.active_sessions) if service else [],
        "cache": service.cache.stats if service else None,
        "watcher": _watcher.is_running if _watcher else False,
    }


@app.on_event("startup")
async def startup_event():
    """Wire the inbox service and start the storage watcher"""
    global _watcher
    config = AppConfig.from_env()
    configure_logging(config.log_level)
    store, change_feed = build_store(config)
    if isinstance(change_feed, StorageDirWatcher):
        change_feed.start()
        _watcher = change_feed
    inbox_routes.set_service(InboxService.from_config(config, store, change_feed))
    logger.info("Unified inbox ready (store=%s)", config.storage.backend)


@app.on_event("shutdown")
async def shutdown_event():
    global _watcher
    service = inbox_routes.inbox_service
    if service is not None:
        await service.close_all_sessions()
    if _watcher is not None:
        _watcher.stop()
        _watcher = None
    inbox_routes.set_service(None)


def main():
    import uvicorn

    config = AppConfig.from_env()
    uvicorn.run(app, host="0.0.0.0", port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
