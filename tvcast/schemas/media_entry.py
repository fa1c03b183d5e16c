# tvcast/schemas/media_entry.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tvcast.services.hls_playlist import InvalidSegmentUri, check_segment_uri
from tvcast.services.schedule_resolver import InvalidWindowTime, parse_window_time


class MediaEntryBase(BaseModel):
    title: str = Field(..., max_length=255)
    source_url: str = Field(..., min_length=1, max_length=2048)
    file_type: Optional[str] = Field(None, max_length=64)
    duration_seconds: Optional[int] = Field(None, gt=0)
    is_always_on: bool = False
    scheduled_at: Optional[datetime] = None
    window_start: Optional[str] = None
    window_end: Optional[str] = None


class MediaEntryCreate(MediaEntryBase):
    """
    Entrada de grade validada na ingestão.

    Janelas malformadas são rejeitadas aqui (422) em vez de virarem "00:00"
    silenciosamente; e as duas pontas da janela vêm juntas ou nenhuma. URL
    com espaço, quebra de linha ou "#" no início também (422).
    """

    @field_validator("source_url")
    @classmethod
    def _check_source_url(cls, v: str) -> str:
        # uma linha de URI no manifesto por mídia
        try:
            return check_segment_uri(v)
        except InvalidSegmentUri as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("window_start", "window_end")
    @classmethod
    def _check_window_time(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        try:
            parse_window_time(v)
        except InvalidWindowTime as exc:
            raise ValueError(str(exc)) from exc
        return v

    @model_validator(mode="after")
    def _check_window_pair(self) -> "MediaEntryCreate":
        if (self.window_start is None) != (self.window_end is None):
            raise ValueError("window_start e window_end devem ser informados juntos")
        return self


class MediaEntryRead(MediaEntryBase):
    id: str
    channel_id: str
    position: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
