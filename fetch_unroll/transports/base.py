from __future__ import annotations

from typing import Protocol

from fetch_unroll.options import FetchOptions


class Transport(Protocol):
    name: str

    def get(self, url: str, options: FetchOptions) -> bytes:
        ...


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300
