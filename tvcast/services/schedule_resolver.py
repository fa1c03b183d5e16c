# tvcast/services/schedule_resolver.py
"""
Seleção do que deve estar tocando agora num canal.

Regras:
- a grade é avaliada na ordem de origem (MediaEntry.position); a primeira
  entrada cuja janela [window_start, window_end) contém o horário atual vence;
- janela com window_end < window_start atravessa a meia-noite (22:00-06:00);
- entradas sem as duas pontas da janela só entram pelo fallback "24/7";
- sem janela casando: primeira entrada is_always_on, senão None.

Os horários são minutos desde a meia-noite no fuso de referência fixo
(UTC+3 por padrão), para que a grade não dependa do fuso do espectador.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, Sequence, TypeVar

from tvcast.core.config import settings

logger = logging.getLogger("tvcast.schedule")

_WINDOW_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class InvalidWindowTime(ValueError):
    """Horário de janela fora do formato HH:MM (ou HH:MM:SS)."""


class ScheduledItem(Protocol):
    id: str
    is_always_on: bool
    window_start: Optional[str]
    window_end: Optional[str]


T = TypeVar("T", bound=ScheduledItem)


def parse_window_time(value: str) -> int:
    """
    "HH:MM" ou "HH:MM:SS" -> minutos desde a meia-noite.

    Segundos são aceitos e ignorados. Hora 0-23, minuto 0-59; qualquer outra
    coisa levanta InvalidWindowTime.
    """
    match = _WINDOW_TIME_RE.match(value or "")
    if not match:
        raise InvalidWindowTime(f"Horário inválido: {value!r} (esperado HH:MM)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3)) if match.group(3) is not None else 0
    if hours > 23 or minutes > 59 or seconds > 59:
        raise InvalidWindowTime(f"Horário fora do intervalo: {value!r}")

    return hours * 60 + minutes


def reference_timezone() -> timezone:
    return timezone(timedelta(minutes=settings.SCHEDULE_UTC_OFFSET_MINUTES))


def reference_now(now: datetime | None = None) -> datetime:
    """
    Converte `now` para o fuso de referência.

    `now` naive é tratado como UTC (mesma convenção do banco).
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(reference_timezone())


def minutes_of_day(now: datetime | None = None) -> int:
    local = reference_now(now)
    return local.hour * 60 + local.minute


def window_contains(start: int, end: int, minute: int) -> bool:
    """
    [start, end) em minutos do dia; end < start atravessa a meia-noite.
    start == end é uma janela vazia.
    """
    if end < start:
        return minute >= start or minute < end
    return start <= minute < end


def _entry_window(entry: ScheduledItem) -> tuple[int, int] | None:
    if not entry.window_start or not entry.window_end:
        return None
    try:
        return parse_window_time(entry.window_start), parse_window_time(entry.window_end)
    except InvalidWindowTime:
        # dado legado que escapou da validação de ingestão: vira "sem janela"
        logger.warning(
            "Ignorando janela inválida da mídia %s (%r-%r)",
            entry.id,
            entry.window_start,
            entry.window_end,
        )
        return None


def resolve_scheduled(entries: Sequence[T], now: datetime | None = None) -> Optional[T]:
    """
    Retorna a entrada que deve tocar em `now` (ou None para grade vazia / sem
    janela casando e sem item 24/7). Pura: mesmo (now, entries) -> mesmo resultado.
    """
    if not entries:
        return None

    minute = minutes_of_day(now)

    for entry in entries:
        window = _entry_window(entry)
        if window is None:
            continue
        if window_contains(window[0], window[1], minute):
            return entry

    for entry in entries:
        if entry.is_always_on:
            return entry

    return None


def index_of(entries: Sequence[ScheduledItem], entry_id: str | None) -> int | None:
    if entry_id is None:
        return None
    for idx, entry in enumerate(entries):
        if entry.id == entry_id:
            return idx
    return None


def next_after(
    entries: Sequence[T],
    current_id: str | None,
    now: datetime | None = None,
) -> Optional[T]:
    """
    Transição de "o item atual terminou".

    Reavalia a agenda; se ela aponta para outra entrada, troca para ela.
    Caso contrário avança para a próxima da grade, em loop (módulo tamanho).
    Um current_id desconhecido conta como posição 0.
    """
    if not entries:
        return None

    scheduled = resolve_scheduled(entries, now)
    if scheduled is not None and scheduled.id != current_id:
        return scheduled

    current_index = index_of(entries, current_id) or 0
    return entries[(current_index + 1) % len(entries)]


class PlaybackCursor:
    """
    Estado do lado do player: a grade carregada e o índice atual.

    Deve ser atualizado com refresh() pelo menos a cada
    SCHEDULE_POLL_SECONDS para pegar as viradas de janela, e com
    media_ended() quando o item atual acaba.
    """

    def __init__(self, entries: Sequence[T]):
        self.entries = list(entries)
        self.current_index = 0
        self.scheduled: Optional[ScheduledItem] = None

    @property
    def current(self) -> Optional[ScheduledItem]:
        if not self.entries:
            return None
        return self.entries[self.current_index]

    def refresh(self, now: datetime | None = None) -> Optional[ScheduledItem]:
        if not self.entries:
            return None

        scheduled = resolve_scheduled(self.entries, now)
        if scheduled is not None:
            self.scheduled = scheduled
            idx = index_of(self.entries, scheduled.id)
            if idx is not None:
                self.current_index = idx
        return self.current

    def media_ended(self, now: datetime | None = None) -> Optional[ScheduledItem]:
        if not self.entries:
            return None

        current = self.current
        nxt = next_after(self.entries, current.id if current else None, now)
        if nxt is not None:
            idx = index_of(self.entries, nxt.id)
            if idx is not None:
                self.current_index = idx
        return self.current
