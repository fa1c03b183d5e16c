from dataclasses import dataclass
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient

from tvcast.crud import media_entry as crud_media
from tvcast.main import app
from tvcast.schemas.media_entry import MediaEntryCreate
from tvcast.services.hls_playlist import (
    InvalidSegmentUri,
    PlaylistParseError,
    PlaylistSegment,
    compile_playlist,
    parse_playlist,
)

from conftest import create_channel

HEADER = [
    "#EXTM3U",
    "#EXT-X-VERSION:3",
    "#EXT-X-TARGETDURATION:10",
    "#EXT-X-MEDIA-SEQUENCE:0",
    "#EXT-X-PLAYLIST-TYPE:EVENT",
]


@dataclass
class Media:
    source_url: str
    duration_seconds: Optional[int] = None


def test_compile_playlist_defaults_missing_duration():
    text = compile_playlist(
        [
            Media("https://cdn.example.com/a.mp4", 120),
            Media("https://cdn.example.com/b.mp4", None),
        ]
    )
    lines = text.splitlines()

    assert lines[: len(HEADER)] == HEADER
    assert lines[len(HEADER):] == [
        "#EXTINF:120.0,",
        "https://cdn.example.com/a.mp4",
        "#EXTINF:180.0,",
        "https://cdn.example.com/b.mp4",
        "#EXT-X-ENDLIST",
    ]
    assert [line for line in lines if line.startswith("#EXTINF")] == ["#EXTINF:120.0,", "#EXTINF:180.0,"]
    assert text.endswith("#EXT-X-ENDLIST\n")


def test_compile_then_parse_recovers_segments_in_order():
    media = [
        Media("https://cdn.example.com/1.m3u8", 30),
        Media("https://cdn.example.com/2.mp4", None),
        Media("rtmp://live.example.com/app/stream", 3600),
    ]
    segments = parse_playlist(compile_playlist(media))
    assert segments == [
        PlaylistSegment("https://cdn.example.com/1.m3u8", 30.0),
        PlaylistSegment("https://cdn.example.com/2.mp4", 180.0),
        PlaylistSegment("rtmp://live.example.com/app/stream", 3600.0),
    ]


def test_parse_playlist_ignores_blank_lines_and_titles():
    text = "#EXTM3U\n#EXT-X-VERSION:3\n\n#EXTINF:12.5,Abertura\nhttp://x/1.ts\n#EXT-X-ENDLIST\n"
    assert parse_playlist(text) == [PlaylistSegment("http://x/1.ts", 12.5)]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "not a playlist",
        "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=800000\nhttp://x/low.m3u8\n",
        "#EXTM3U\n#EXTINF:abc,\nhttp://x/1.ts\n",
    ],
)
def test_parse_playlist_rejects_invalid(text):
    with pytest.raises(PlaylistParseError):
        parse_playlist(text)


@pytest.mark.parametrize(
    "uri",
    [
        "http://a/1.ts\n#EXTINF:1.0,\nhttp://evil/x.ts",
        "http://a/1.ts\r\n#EXT-X-ENDLIST",
        "#EXT-X-ENDLIST",
        "http://a/com espaco.ts",
        "",
    ],
)
def test_compile_playlist_refuses_uri_that_would_add_lines(uri):
    with pytest.raises(InvalidSegmentUri):
        compile_playlist([Media("https://cdn.example.com/ok.mp4", 10), Media(uri, 10)])


@pytest.mark.asyncio
async def test_hls_endpoint_requires_channel_id():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/hls-playlist")
    assert r.status_code == 400
    assert r.text == "Channel ID required"


@pytest.mark.asyncio
async def test_hls_endpoint_not_found_for_unknown_or_empty_channel(db):
    channel = await create_channel(db)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r_unknown = await ac.get("/hls-playlist", params={"channelId": "does-not-exist"})
        r_empty = await ac.get("/hls-playlist", params={"channelId": channel.id})

    assert r_unknown.status_code == 404
    assert r_empty.status_code == 404


@pytest.mark.asyncio
async def test_hls_endpoint_serves_lineup_in_order(db):
    channel = await create_channel(db)
    await crud_media.create_for_channel(
        db,
        channel_id=channel.id,
        obj_in=MediaEntryCreate(title="A", source_url="https://cdn.example.com/a.mp4", duration_seconds=120),
    )
    await crud_media.create_for_channel(
        db,
        channel_id=channel.id,
        obj_in=MediaEntryCreate(title="B", source_url="https://cdn.example.com/b.mp4"),
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/hls-playlist", params={"channelId": channel.id})

    assert r.status_code == 200, r.text
    assert r.headers["content-type"].startswith("application/vnd.apple.mpegurl")
    assert r.headers["cache-control"] == "no-cache"
    assert parse_playlist(r.text) == [
        PlaylistSegment("https://cdn.example.com/a.mp4", 120.0),
        PlaylistSegment("https://cdn.example.com/b.mp4", 180.0),
    ]


@pytest.mark.asyncio
async def test_hls_endpoint_internal_error_is_generic(db, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("connection string with password=secret")

    monkeypatch.setattr(crud_media, "list_by_channel", boom)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/hls-playlist", params={"channelId": "any"})

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
    assert "secret" not in r.text


@pytest.mark.asyncio
async def test_hls_endpoint_never_serves_manifest_with_injected_lines(db):
    channel = await create_channel(db)
    # linha legada gravada sem passar pela validação de ingestão
    await crud_media.create(
        db,
        {
            "channel_id": channel.id,
            "title": "legado",
            "source_url": "http://a/1.ts\n#EXTINF:1.0,\nhttp://evil/x.ts",
            "position": 0,
        },
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/hls-playlist", params={"channelId": channel.id})

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
    assert "evil" not in r.text


@pytest.mark.asyncio
async def test_hls_endpoint_answers_plain_options():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.options("/hls-playlist", params={"channelId": "any"})

    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"
    assert "content-type" in r.headers["access-control-allow-headers"]
