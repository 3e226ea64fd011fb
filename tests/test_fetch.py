from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import requests

from fetch_unroll import (
    ConfigError,
    Fetch,
    FetchOptions,
    HttpStatusError,
    NetworkError,
    fetch_unroll,
    fetch_url,
)
from fetch_unroll.transports import available_transports, registry
from fetch_unroll.transports.httpx_transport import HttpxTransport
from fetch_unroll.transports.requests_transport import RequestsTransport

PACK_URL = "https://example.com/releases/download/pack-1.0/pack_linux.tar.gz"


class _FakeResponse:
    def __init__(self, status_code: int, content: bytes = b"", *, reason: str = "OK", url: str = PACK_URL) -> None:
        self.status_code = status_code
        self.content = content
        self.reason = reason
        self.url = url


def _patch_session_get(monkeypatch: pytest.MonkeyPatch, handler) -> list[dict]:
    calls: list[dict] = []

    def fake_get(self, url: str, **kwargs):
        calls.append({"url": url, "max_redirects": self.max_redirects, **kwargs})
        return handler(url)

    monkeypatch.setattr(requests.Session, "get", fake_get)
    return calls


def test_requests_transport_returns_body(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_session_get(monkeypatch, lambda url: _FakeResponse(200, b"payload"))

    body = fetch_url(PACK_URL, FetchOptions(timeout=5, max_redirects=3))

    assert body == b"payload"
    assert calls[0]["url"] == PACK_URL
    assert calls[0]["timeout"] == 5
    assert calls[0]["allow_redirects"] is True
    assert calls[0]["max_redirects"] == 3


def test_not_found_raises_status_error_without_extraction(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _patch_session_get(monkeypatch, lambda url: _FakeResponse(404, b"missing", reason="Not Found"))
    dest = tmp_path / "out"

    with pytest.raises(HttpStatusError) as excinfo:
        Fetch.from_url(PACK_URL).unroll().strip_components(1).to(dest)

    assert excinfo.value.status_code == 404
    assert excinfo.value.url == PACK_URL
    assert "404" in str(excinfo.value)
    assert not dest.exists()


def test_redirect_status_is_not_success(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_session_get(monkeypatch, lambda url: _FakeResponse(304, reason="Not Modified"))

    with pytest.raises(HttpStatusError) as excinfo:
        fetch_url(PACK_URL)

    assert excinfo.value.status_code == 304


def test_connection_error_is_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(url: str):
        raise requests.ConnectionError("Name or service not known")

    _patch_session_get(monkeypatch, handler)

    with pytest.raises(NetworkError) as excinfo:
        fetch_url(PACK_URL)

    assert excinfo.value.url == PACK_URL
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_redirect_loop_is_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(url: str):
        raise requests.TooManyRedirects("Exceeded 2 redirects.")

    _patch_session_get(monkeypatch, handler)

    with pytest.raises(NetworkError, match="redirects"):
        fetch_url(PACK_URL, FetchOptions(max_redirects=2))


def test_unsupported_scheme_never_reaches_transport(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_session_get(monkeypatch, lambda url: _FakeResponse(200, b""))

    with pytest.raises(NetworkError, match="unsupported scheme"):
        fetch_url("ftp://example.com/pack.tar.gz")

    assert calls == []


def test_fetch_unroll_from_url(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, make_archive) -> None:
    archive = make_archive([("pack-1.0/lib/libpack.a", b"lib"), ("pack-1.0/include/pack.h", b"hdr")])
    _patch_session_get(monkeypatch, lambda url: _FakeResponse(200, archive))
    dest = tmp_path / "target" / "pack"

    fetch_unroll(PACK_URL, dest, strip_components=1)

    assert (dest / "lib" / "libpack.a").read_bytes() == b"lib"
    assert (dest / "include" / "pack.h").read_bytes() == b"hdr"


def test_fetch_unroll_from_bytes(tmp_path: Path, make_archive) -> None:
    archive = make_archive([("a/b.txt", b"bee")])

    fetch_unroll(archive, tmp_path / "out", strip_components=1)

    assert (tmp_path / "out" / "b.txt").read_bytes() == b"bee"


def test_fetch_requires_exactly_one_source() -> None:
    with pytest.raises(ValueError):
        Fetch()
    with pytest.raises(ValueError):
        Fetch(url=PACK_URL, data=b"x")


def _httpx_options() -> FetchOptions:
    return FetchOptions(transport="httpx", timeout=5, max_redirects=4)


def test_httpx_transport_follows_redirects() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old.tar.gz":
            return httpx.Response(302, headers={"Location": "https://cdn.example.com/new.tar.gz"})
        assert request.headers["User-Agent"].startswith("fetch-unroll/")
        return httpx.Response(200, content=b"moved payload")

    transport = HttpxTransport(http_transport=httpx.MockTransport(handler))

    assert transport.get("https://example.com/old.tar.gz", _httpx_options()) == b"moved payload"


def test_httpx_transport_redirect_bound() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": str(request.url.copy_with(path=request.url.path + "x"))})

    transport = HttpxTransport(http_transport=httpx.MockTransport(handler))

    with pytest.raises(NetworkError, match="redirects"):
        transport.get("https://example.com/loop", _httpx_options())


def test_httpx_transport_status_error() -> None:
    transport = HttpxTransport(
        http_transport=httpx.MockTransport(lambda request: httpx.Response(500))
    )

    with pytest.raises(HttpStatusError) as excinfo:
        transport.get(PACK_URL, _httpx_options())

    assert excinfo.value.status_code == 500


def test_httpx_transport_connect_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = HttpxTransport(http_transport=httpx.MockTransport(handler))

    with pytest.raises(NetworkError, match="connection refused"):
        transport.get(PACK_URL, _httpx_options())


def test_transport_selected_by_name(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str] = []

    def fake_get(self, url: str, options: FetchOptions) -> bytes:
        seen.append(options.transport)
        return b"via httpx"

    monkeypatch.setattr(HttpxTransport, "get", fake_get)

    assert Fetch.from_url(PACK_URL).transport("httpx").read() == b"via httpx"
    assert seen == ["httpx"]


def test_registry_knows_builtin_transports() -> None:
    assert isinstance(registry.load("requests"), RequestsTransport)
    assert isinstance(registry.load("httpx"), HttpxTransport)
    assert {"requests", "httpx"} <= set(available_transports())


def test_unknown_transport_is_config_error() -> None:
    with pytest.raises(ConfigError, match="curl"):
        fetch_url(PACK_URL, FetchOptions(transport="curl"))


def test_zero_timeout_from_builder_disables_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_session_get(monkeypatch, lambda url: _FakeResponse(200, b"payload"))

    assert Fetch.from_url(PACK_URL).timeout(0).read() == b"payload"

    assert calls[0]["timeout"] is None


def test_negative_timeout_option_means_no_timeout() -> None:
    assert FetchOptions(timeout=-1).timeout is None
    assert FetchOptions(timeout=2.5).timeout == 2.5
