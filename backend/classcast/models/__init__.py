from .database import Base
from .broadcast import BroadcastSessionRecord, BroadcastCaptionRecord

__all__ = ["Base", "BroadcastSessionRecord", "BroadcastCaptionRecord"]
