"""Inbox API routes."""

from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from unified_inbox.domain.models import FeedSnapshot, InboxFilter, UnifiedItem
from unified_inbox.errors import StoreError, UnknownSourceError
from unified_inbox.service import InboxService

inbox_router = APIRouter(prefix="/inbox", tags=["Inbox"])

inbox_service: Optional[InboxService] = None


def set_service(service: Optional[InboxService]) -> None:
    global inbox_service
    inbox_service = service


def _service() -> InboxService:
    if inbox_service is None:
        raise HTTPException(status_code=503, detail="Inbox service not initialised")
    return inbox_service


class ItemModel(BaseModel):
    id: str
    source_type: str
    native_id: str
    title: str
    preview: str
    timestamp: str
    is_unread: bool
    action_type: str
    action_id: str


class FeedResponse(BaseModel):
    viewer_id: str
    filter: str
    items: List[ItemModel]
    counts: Dict[str, int]
    computed_at: str


class ItemRequest(BaseModel):
    item_id: str


class MarkAllRequest(BaseModel):
    filter: InboxFilter = InboxFilter.ALL
    item_ids: Optional[List[str]] = None


class MarkAllResponse(BaseModel):
    ok: bool
    succeeded: List[str]
    failed: Dict[str, str]


class ActionResponse(BaseModel):
    success: bool
    changed: Optional[bool] = None


class SessionResponse(BaseModel):
    active: bool


def _feed_response(snapshot: FeedSnapshot) -> FeedResponse:
    return FeedResponse(**snapshot.to_dict())


async def _lookup(service: InboxService, viewer_id: str, item_id: str) -> UnifiedItem:
    item = await service.find_item(viewer_id, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item {item_id!r} not in feed")
    return item


@inbox_router.get("/{viewer_id}/feed", response_model=FeedResponse)
async def get_feed(viewer_id: str, filter: InboxFilter = InboxFilter.ALL):
    snapshot = await _service().get_feed(viewer_id, filter)
    return _feed_response(snapshot)


@inbox_router.get("/{viewer_id}/counts")
async def get_counts(viewer_id: str):
    counts = await _service().get_unread_counts(viewer_id)
    return counts.to_dict()


@inbox_router.post("/{viewer_id}/read", response_model=ActionResponse)
async def mark_read(viewer_id: str, req: ItemRequest):
    service = _service()
    item = await _lookup(service, viewer_id, req.item_id)
    try:
        routed = await service.mark_read(item, viewer_id)
    except StoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ActionResponse(success=routed)


@inbox_router.post("/{viewer_id}/read-all", response_model=MarkAllResponse)
async def mark_all_read(viewer_id: str, req: Optional[MarkAllRequest] = None):
    service = _service()
    req = req or MarkAllRequest()
    snapshot = await service.get_feed(viewer_id, req.filter)
    items = snapshot.items
    if req.item_ids is not None:
        wanted = set(req.item_ids)
        items = [item for item in items if item.id in wanted]
    result = await service.mark_all_read(items, viewer_id)
    return MarkAllResponse(**result.to_dict())


@inbox_router.post("/{viewer_id}/dismiss", response_model=ActionResponse)
async def dismiss(viewer_id: str, req: ItemRequest):
    try:
        await _service().dismiss(req.item_id, viewer_id)
    except UnknownSourceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ActionResponse(success=True)


@inbox_router.post("/{viewer_id}/restore", response_model=ActionResponse)
async def restore(viewer_id: str, req: ItemRequest):
    try:
        changed = await _service().restore(req.item_id, viewer_id)
    except UnknownSourceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ActionResponse(success=True, changed=changed)


@inbox_router.post("/{viewer_id}/session", response_model=SessionResponse)
async def open_session(viewer_id: str):
    active = await _service().open_session(viewer_id)
    return SessionResponse(active=active)


@inbox_router.delete("/{viewer_id}/session", response_model=SessionResponse)
async def close_session(viewer_id: str):
    await _service().close_session(viewer_id)
    return SessionResponse(active=False)
