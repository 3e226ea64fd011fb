from __future__ import annotations

from dataclasses import dataclass

import requests
from rich.markup import escape

from fetch_unroll.errors import HttpStatusError, NetworkError
from fetch_unroll.logging import log
from fetch_unroll.options import FetchOptions
from fetch_unroll.transports.base import is_success


@dataclass
class RequestsTransport:
    name: str = "requests"

    def get(self, url: str, options: FetchOptions) -> bytes:
        with requests.Session() as session:
            session.max_redirects = options.max_redirects
            session.headers["User-Agent"] = options.user_agent
            try:
                resp = session.get(url, timeout=options.timeout, allow_redirects=True)
            except requests.TooManyRedirects as exc:
                raise NetworkError(
                    url, f"exceeded {options.max_redirects} redirects"
                ) from exc
            except requests.RequestException as exc:
                raise NetworkError(url, str(exc)) from exc

            if not is_success(resp.status_code):
                raise HttpStatusError(url, resp.status_code, resp.reason or "")
            payload = resp.content

        log(f"[info]Fetched[/info] {len(payload)} bytes from {escape(str(resp.url))}")
        return payload
