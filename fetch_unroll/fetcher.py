from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import urlsplit

from rich.markup import escape

from fetch_unroll.config import load_fetch_options
from fetch_unroll.errors import NetworkError
from fetch_unroll.logging import log
from fetch_unroll.options import FetchOptions
from fetch_unroll.saver import Save
from fetch_unroll.transports import registry
from fetch_unroll.unroller import Unroll

SUPPORTED_SCHEMES = ("http", "https")


def fetch_url(url: str, options: Optional[FetchOptions] = None) -> bytes:
    """Perform a single GET against ``url`` and return the response body.

    Redirects are followed up to ``options.max_redirects``. Nothing is retried.
    """
    scheme = urlsplit(url).scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        raise NetworkError(url, f"unsupported scheme '{scheme or '<none>'}'")
    options = options or load_fetch_options()
    transport = registry.load(options.transport)
    log(f"[info]Fetching[/info] {escape(url)} via {transport.name}")
    return transport.get(url, options)


@dataclass(frozen=True)
class Fetch:
    """Where an archive comes from: a URL, or bytes already in memory.

    Fetching is deferred until one of the builders returned by :meth:`unroll`
    or :meth:`save` is finalized with ``.to(path)``.
    """

    url: Optional[str] = None
    data: Optional[bytes] = None
    options: Optional[FetchOptions] = None

    def __post_init__(self):
        if (self.url is None) == (self.data is None):
            raise ValueError("Fetch needs exactly one of url or data")

    @staticmethod
    def from_url(url: str, options: Optional[FetchOptions] = None) -> "Fetch":
        return Fetch(url=url, options=options)

    @staticmethod
    def from_bytes(data: bytes) -> "Fetch":
        return Fetch(data=bytes(data))

    def with_options(self, options: FetchOptions) -> "Fetch":
        return replace(self, options=options)

    def _resolved_options(self) -> FetchOptions:
        return self.options or load_fetch_options()

    def transport(self, name: str) -> "Fetch":
        return replace(self, options=replace(self._resolved_options(), transport=name))

    def timeout(self, seconds: float | None) -> "Fetch":
        return replace(self, options=replace(self._resolved_options(), timeout=seconds))

    def read(self) -> bytes:
        if self.data is not None:
            return self.data
        return fetch_url(self.url, self.options)

    def unroll(self) -> Unroll:
        return Unroll(source=self)

    def save(self) -> Save:
        return Save(source=self)
