"""
Broadcast API - Endpoints for live classroom captions

Implements:
- Session creation / termination and text ingestion from the teacher's page
- History polling for clients without server-sent events
- Server-sent event stream of captions for students
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from classcast.api.deps import get_services
from classcast.config.constants import DEFAULT_LISTENER_LOCALE
from classcast.schemas.broadcast import (
    BroadcastRequest,
    CaptionItem,
    CreateSessionResponse,
    EndSessionResponse,
    HistoryResponse,
    SubmitTextResponse,
)
from classcast.services.broadcast import ListenerStream
from classcast.services.broadcast.stream import SSE_HEADERS
from classcast.services.container import BroadcastServices

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/broadcast")
async def broadcast(
    req: BroadcastRequest,
    services: BroadcastServices = Depends(get_services),
):
    """
    Teacher-side ingestion.

    - action=create: start a session, returns {"sessionId"}
    - action=end: end a session, returns {"success": true}
    - otherwise: submit interim or final text; translation continues in the
      background and the response returns immediately
    """
    if req.action == "create":
        session_id = services.registry.create()
        await services.storage.record_session_created(session_id)
        return CreateSessionResponse(session_id=session_id).model_dump(by_alias=True)

    if req.action == "end":
        if not req.session_id:
            raise HTTPException(status_code=400, detail="Session ID is required")
        services.registry.end(req.session_id)
        await services.storage.record_session_ended(req.session_id)
        return EndSessionResponse().model_dump()

    text = (req.text or "").strip()
    if not req.session_id or not text:
        raise HTTPException(status_code=400, detail="Session ID and text are required")

    session_id = req.session_id
    active = services.registry.touch(session_id)
    orchestrator = services.orchestrator
    # Stamp at submission so "latest interim" follows the teacher's order
    timestamp = orchestrator.next_timestamp()

    if req.interim:
        services.supervisor.spawn(
            orchestrator.handle_interim(session_id, text, timestamp),
            name=f"interim:{session_id}",
        )
        return SubmitTextResponse(active=active).model_dump(exclude_none=True)

    services.supervisor.spawn(
        orchestrator.handle_final(session_id, text, timestamp),
        name=f"final:{session_id}",
    )
    return SubmitTextResponse(active=active, pending=True).model_dump(exclude_none=True)


@router.get("/broadcast")
async def poll_history(
    session_id: Optional[str] = Query(None, alias="sessionId"),
    locale: str = Query(DEFAULT_LISTENER_LOCALE),
    since: int = Query(0),
    services: BroadcastServices = Depends(get_services),
):
    """Captions newer than `since` (ms) in the listener's language."""
    if not session_id:
        return HistoryResponse().model_dump(exclude_none=True)

    if not services.registry.exists(session_id):
        return HistoryResponse(active=False).model_dump(exclude_none=True)

    messages = [
        CaptionItem(
            original=m.original,
            translated=m.translated_for(locale) or m.original,
            timestamp=m.timestamp,
            provisional=m.provisional,
        )
        for m in services.registry.history(session_id, since=since)
    ]
    return HistoryResponse(messages=messages, active=True).model_dump(exclude_none=True)


@router.get("/broadcast/stream")
async def stream(
    session_id: Optional[str] = Query(None, alias="sessionId"),
    locale: str = Query(DEFAULT_LISTENER_LOCALE),
    services: BroadcastServices = Depends(get_services),
):
    """Server-sent events: connected, last interim replay, then live captions."""
    if not session_id:
        raise HTTPException(status_code=400, detail="Session ID required")

    listener = ListenerStream(services.registry, services.bus, session_id, locale)
    return StreamingResponse(
        listener.events(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
