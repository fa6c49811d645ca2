"""Tests for the Deezer preview resolver (no network)."""

from dataclasses import dataclass, field
from typing import Any

import requests

from song_guess.preview import DeezerPreviewResolver


@dataclass
class FakeResponse:
    status_code: int = 200
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


@dataclass
class FakeSession:
    response: FakeResponse | None = None
    error: Exception | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)

    def get(self, url: str, params: dict[str, Any], timeout: float) -> FakeResponse:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        pass


def test_returns_first_preview() -> None:
    session = FakeSession(FakeResponse(payload={"data": [{"preview": "https://cdns.deezer/clip.mp3"}]}))
    resolver = DeezerPreviewResolver(session=session, timeout=3)

    assert resolver.resolve_preview("Bohemian Rhapsody", "Queen") == "https://cdns.deezer/clip.mp3"
    assert session.calls[0]["params"] == {"q": "Bohemian Rhapsody Queen", "limit": 1}
    assert session.calls[0]["timeout"] == 3


def test_no_results_returns_none() -> None:
    session = FakeSession(FakeResponse(payload={"data": []}))

    assert DeezerPreviewResolver(session=session).resolve_preview("Nothing", "Nobody") is None


def test_http_error_returns_none() -> None:
    session = FakeSession(FakeResponse(status_code=503, payload={}))

    assert DeezerPreviewResolver(session=session).resolve_preview("Song", "Artist") is None


def test_network_error_returns_none() -> None:
    session = FakeSession(error=requests.ConnectionError("offline"))

    assert DeezerPreviewResolver(session=session).resolve_preview("Song", "Artist") is None


def test_malformed_body_returns_none() -> None:
    bad_json = FakeSession(FakeResponse(payload=ValueError("not json")))
    no_preview = FakeSession(FakeResponse(payload={"data": [{"title": "Song"}]}))

    assert DeezerPreviewResolver(session=bad_json).resolve_preview("Song", "Artist") is None
    assert DeezerPreviewResolver(session=no_preview).resolve_preview("Song", "Artist") is None
