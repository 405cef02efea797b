"""
Broadcast API Schemas

Pydantic models for the ingestion and streaming endpoints. Field names follow the
camelCase JSON the browser clients send and expect.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class BroadcastRequest(BaseModel):
    """
    Single ingestion body, dispatched on `action`:
    - {"action": "create"}
    - {"action": "end", "sessionId": ...}
    - {"sessionId": ..., "text": ..., "interim": bool}
    """
    model_config = ConfigDict(populate_by_name=True)

    action: Optional[Literal["create", "end"]] = None
    session_id: Optional[str] = Field(None, alias="sessionId")
    text: Optional[str] = None
    interim: bool = False


class CreateSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., serialization_alias="sessionId")


class EndSessionResponse(BaseModel):
    success: bool = True


class SubmitTextResponse(BaseModel):
    success: bool = True
    active: bool = True
    pending: Optional[bool] = None


class CaptionItem(BaseModel):
    original: str
    translated: str
    timestamp: int
    provisional: bool = False


class HistoryResponse(BaseModel):
    messages: List[CaptionItem] = []
    active: Optional[bool] = None


# =============================================================================
# Stream Event Models
# =============================================================================

class StreamEventBase(BaseModel):
    """Base model for all events pushed to listeners."""
    type: str


class ConnectedEvent(StreamEventBase):
    type: Literal["connected"] = "connected"
    active: bool
    timestamp: int


class MessageEvent(StreamEventBase):
    type: Literal["message"] = "message"
    original: str
    translated: str
    timestamp: int
    provisional: bool = False
    interim: bool = False
