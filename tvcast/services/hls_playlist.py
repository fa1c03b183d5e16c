# tvcast/services/hls_playlist.py
"""
Geração (e leitura) do manifesto HLS da grade de um canal.

O manifesto é finito e terminado com #EXT-X-ENDLIST; o player é quem faz o
loop da grade 24/7.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

import m3u8
from m3u8.parser import ParseError

from tvcast.core.config import settings

HLS_MEDIA_TYPE = "application/vnd.apple.mpegurl"


class PlaylistEntry(Protocol):
    source_url: str
    duration_seconds: Optional[int]


class PlaylistParseError(ValueError):
    """Texto não é um manifesto M3U estendido válido."""


class InvalidSegmentUri(ValueError):
    """URL de mídia que não cabe numa linha de URI do manifesto."""


@dataclass(frozen=True)
class PlaylistSegment:
    uri: str
    duration: float


def check_segment_uri(uri: str) -> str:
    """
    Cada mídia vira exatamente uma linha de URI: espaço, quebra de linha ou
    caractere de controle quebrariam o manifesto, e "#" viraria uma tag.
    """
    if not uri:
        raise InvalidSegmentUri("URL de mídia vazia")
    if uri.startswith("#"):
        raise InvalidSegmentUri(f"URL de mídia não pode começar com '#': {uri!r}")
    for ch in uri:
        if ch.isspace() or ord(ch) < 32 or ord(ch) == 127:
            raise InvalidSegmentUri(f"URL de mídia com espaço ou caractere de controle: {uri!r}")
    return uri


def _format_duration(duration: float) -> str:
    return f"{float(duration):.1f}"


def compile_playlist(
    entries: Iterable[PlaylistEntry],
    *,
    target_duration: int | None = None,
    default_duration: int | None = None,
) -> str:
    """
    Monta o manifesto: cabeçalho obrigatório, um par #EXTINF/URL por mídia e
    #EXT-X-ENDLIST. Mídia sem duração recebe o default (180s).

    URL inválida (ver check_segment_uri) levanta InvalidSegmentUri: nunca
    sai manifesto parcial ou com linhas a mais.
    """
    if target_duration is None:
        target_duration = settings.HLS_TARGET_DURATION
    if default_duration is None:
        default_duration = settings.HLS_DEFAULT_SEGMENT_SECONDS

    lines: List[str] = [
        "#EXTM3U",
        "#EXT-X-VERSION:3",
        f"#EXT-X-TARGETDURATION:{target_duration}",
        "#EXT-X-MEDIA-SEQUENCE:0",
        "#EXT-X-PLAYLIST-TYPE:EVENT",
    ]

    for entry in entries:
        uri = check_segment_uri(entry.source_url)
        duration = entry.duration_seconds or default_duration
        lines.append(f"#EXTINF:{_format_duration(duration)},")
        lines.append(uri)

    lines.append("#EXT-X-ENDLIST")
    return "\n".join(lines) + "\n"


def parse_playlist(text: str) -> List[PlaylistSegment]:
    """
    Lê um manifesto de mídia (via m3u8) e devolve os segmentos (uri, duração)
    na ordem. Texto sem #EXTM3U ou com duração ilegível -> PlaylistParseError.
    """
    if not (text or "").lstrip().startswith("#EXTM3U"):
        raise PlaylistParseError("Manifesto não começa com #EXTM3U")

    try:
        playlist = m3u8.loads(text)
    except (ParseError, ValueError) as exc:
        raise PlaylistParseError(f"Manifesto inválido: {exc}") from exc

    if playlist.is_variant:
        raise PlaylistParseError("Esperado manifesto de mídia, veio master playlist")

    return [
        PlaylistSegment(uri=segment.uri, duration=float(segment.duration))
        for segment in playlist.segments
    ]
