# tvcast/schemas/schedule.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from tvcast.schemas.media_entry import MediaEntryRead


class ScheduleSelectionRead(BaseModel):
    # instante avaliado, já no fuso de referência
    reference_time: datetime
    entry: Optional[MediaEntryRead] = None
    # índice da entrada na grade (ordem de origem), None se nada tocar
    index: Optional[int] = None
