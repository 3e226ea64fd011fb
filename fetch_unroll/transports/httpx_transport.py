from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
from rich.markup import escape

from fetch_unroll.errors import HttpStatusError, NetworkError
from fetch_unroll.logging import log
from fetch_unroll.options import FetchOptions
from fetch_unroll.transports.base import is_success


@dataclass
class HttpxTransport:
    name: str = "httpx"
    # Replaces the network layer of the client, e.g. with httpx.MockTransport.
    http_transport: Optional[httpx.BaseTransport] = None

    def get(self, url: str, options: FetchOptions) -> bytes:
        client = httpx.Client(
            follow_redirects=True,
            max_redirects=options.max_redirects,
            timeout=options.timeout,
            headers={"User-Agent": options.user_agent},
            transport=self.http_transport,
        )
        with client:
            try:
                resp = client.get(url)
            except httpx.TooManyRedirects as exc:
                raise NetworkError(
                    url, f"exceeded {options.max_redirects} redirects"
                ) from exc
            except httpx.HTTPError as exc:
                raise NetworkError(url, str(exc) or type(exc).__name__) from exc

        if not is_success(resp.status_code):
            raise HttpStatusError(url, resp.status_code, resp.reason_phrase)

        log(f"[info]Fetched[/info] {len(resp.content)} bytes from {escape(str(resp.url))}")
        return resp.content
