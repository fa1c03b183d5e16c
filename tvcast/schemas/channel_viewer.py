# tvcast/schemas/channel_viewer.py
from typing import Optional

from pydantic import BaseModel, Field


class ViewerRegister(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=64)
    observer_id: Optional[str] = Field(None, max_length=64)


class ViewerRegistered(BaseModel):
    session_id: str
    viewer_count: int


class ViewerHeartbeatRead(BaseModel):
    registered: bool
    viewer_count: int


class ViewerCountRead(BaseModel):
    channel_id: str
    viewer_count: int
