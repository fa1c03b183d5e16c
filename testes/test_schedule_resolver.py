from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from tvcast.services.schedule_resolver import (
    InvalidWindowTime,
    PlaybackCursor,
    next_after,
    parse_window_time,
    reference_now,
    resolve_scheduled,
    window_contains,
)

MSK = timezone(timedelta(hours=3))


@dataclass
class Entry:
    id: str
    window_start: Optional[str] = None
    window_end: Optional[str] = None
    is_always_on: bool = False


def at(hour: int, minute: int = 0) -> datetime:
    """Horário no fuso de referência (UTC+3)."""
    return datetime(2026, 10, 17, hour, minute, tzinfo=MSK)


def test_parse_window_time():
    assert parse_window_time("00:00") == 0
    assert parse_window_time("09:30") == 570
    assert parse_window_time("23:59") == 1439
    # segundos aceitos e ignorados
    assert parse_window_time("22:00:45") == 1320
    assert parse_window_time("7:05") == 425


@pytest.mark.parametrize("value", ["", "24:00", "12:60", "9h", "12", "ab:cd", "12:5", "-1:00"])
def test_parse_window_time_rejects_malformed(value):
    with pytest.raises(InvalidWindowTime):
        parse_window_time(value)


def test_window_contains_overnight_and_empty():
    assert window_contains(1320, 360, 1410)
    assert window_contains(1320, 360, 120)
    assert not window_contains(1320, 360, 720)
    # janela vazia nunca casa
    assert not window_contains(600, 600, 600)


def test_overnight_window():
    entries = [Entry("night", "22:00", "06:00")]
    assert resolve_scheduled(entries, at(23, 30)) is entries[0]
    assert resolve_scheduled(entries, at(2, 0)) is entries[0]
    assert resolve_scheduled(entries, at(12, 0)) is None


def test_daytime_window_end_is_exclusive():
    entries = [Entry("day", "09:00", "17:00")]
    assert resolve_scheduled(entries, at(10, 0)) is entries[0]
    assert resolve_scheduled(entries, at(8, 59)) is None
    assert resolve_scheduled(entries, at(17, 0)) is None


def test_always_on_selected_regardless_of_clock():
    entries = [Entry("a"), Entry("b", is_always_on=True), Entry("c", is_always_on=True)]
    for hour in (0, 6, 12, 18, 23):
        assert resolve_scheduled(entries, at(hour)) is entries[1]


def test_first_matching_window_wins():
    entries = [
        Entry("first", "08:00", "12:00"),
        Entry("second", "09:00", "11:00"),
        Entry("fallback", is_always_on=True),
    ]
    assert resolve_scheduled(entries, at(10)).id == "first"
    assert resolve_scheduled(entries, at(13)).id == "fallback"


def test_entries_without_both_bounds_only_via_fallback():
    entries = [Entry("half", window_start="00:00"), Entry("none")]
    assert resolve_scheduled(entries, at(10)) is None


def test_empty_lineup_returns_none():
    assert resolve_scheduled([], at(10)) is None
    assert next_after([], "x", at(10)) is None


def test_result_is_always_an_input_element():
    entries = [
        Entry("a", "01:00", "02:00"),
        Entry("b", "23:00", "01:00"),
        Entry("c", is_always_on=True),
    ]
    for minute in range(0, 24 * 60, 7):
        selected = resolve_scheduled(entries, at(minute // 60, minute % 60))
        assert selected is None or selected in entries
        # mesma entrada, mesma resposta
        assert resolve_scheduled(entries, at(minute // 60, minute % 60)) is selected


def test_reference_timezone_independent_of_input_zone():
    entries = [Entry("morning", "09:00", "10:00")]
    # 06:30 UTC == 09:30 em UTC+3
    utc = datetime(2026, 10, 17, 6, 30, tzinfo=timezone.utc)
    assert resolve_scheduled(entries, utc) is entries[0]
    # naive é tratado como UTC
    assert resolve_scheduled(entries, utc.replace(tzinfo=None)) is entries[0]
    assert reference_now(utc).hour == 9


def test_malformed_stored_window_is_treated_as_unwindowed(caplog):
    entries = [Entry("broken", "99:99", "10:00"), Entry("fallback", is_always_on=True)]
    assert resolve_scheduled(entries, at(9, 30)).id == "fallback"
    assert "broken" in caplog.text


def test_next_after_switches_to_scheduled_entry():
    entries = [
        Entry("a", is_always_on=True),
        Entry("b"),
        Entry("news", "20:00", "21:00"),
    ]
    assert next_after(entries, "a", at(20, 15)).id == "news"


def test_next_after_loops_round_robin():
    entries = [Entry("a", is_always_on=True), Entry("b"), Entry("c")]
    # agenda aponta para "a" (24/7): terminou "a" -> avança para "b"
    assert next_after(entries, "a", at(12)).id == "b"
    # terminou "c" e a agenda quer "a" (diferente) -> volta para "a"
    assert next_after(entries, "c", at(12)).id == "a"

    loop = [Entry("x"), Entry("y")]
    assert next_after(loop, "x", at(12)).id == "y"
    assert next_after(loop, "y", at(12)).id == "x"


def test_playback_cursor_refresh_and_media_ended():
    entries = [
        Entry("loop1", is_always_on=True),
        Entry("loop2"),
        Entry("show", "18:00", "19:00"),
    ]
    cursor = PlaybackCursor(entries)
    assert cursor.refresh(at(12)).id == "loop1"
    assert cursor.media_ended(at(12)).id == "loop2"
    # janela abriu: refresh troca para o programa
    assert cursor.refresh(at(18, 1)).id == "show"
    assert cursor.current_index == 2
    # programa terminou ainda dentro da janela -> segue a grade em loop
    assert cursor.media_ended(at(18, 30)).id == "loop1"


def test_playback_cursor_empty():
    cursor = PlaybackCursor([])
    assert cursor.current is None
    assert cursor.refresh(at(12)) is None
    assert cursor.media_ended(at(12)) is None
