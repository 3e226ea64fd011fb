from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import BinaryIO, Optional, Union

from fetch_unroll.fetcher import Fetch, fetch_url
from fetch_unroll.options import FetchOptions, UnrollOptions
from fetch_unroll.unroller import unroll_archive_to

Source = Union[str, bytes, bytearray, memoryview]
PathLike = Union[str, os.PathLike]


def _source_for(source: Source, options: Optional[FetchOptions]) -> Fetch:
    if isinstance(source, str):
        return Fetch.from_url(source, options)
    return Fetch.from_bytes(bytes(source))


def fetch_unroll(
    source: Source,
    dest: PathLike,
    strip_components: int = 0,
    overwrite: bool = True,
    options: Optional[FetchOptions] = None,
) -> None:
    """Fetch a ``.tar.gz`` archive and extract it below ``dest``.

    ``source`` is either an http(s) URL or the archive bytes. The first error
    (network, HTTP status, decompression, archive or filesystem) is raised;
    entries written before a failure stay on disk.
    """
    (
        _source_for(source, options)
        .unroll()
        .strip_components(strip_components)
        .overwrite(overwrite)
        .to(dest)
    )


def fetch(url: str) -> bytes:
    warnings.warn(
        "fetch() is deprecated, use Fetch.from_url(url).read()",
        DeprecationWarning,
        stacklevel=2,
    )
    return fetch_url(url)


def unroll(pack: Union[bytes, bytearray, BinaryIO], dest: PathLike) -> None:
    warnings.warn(
        "unroll() is deprecated, use Fetch.from_bytes(data).unroll().to(dest)",
        DeprecationWarning,
        stacklevel=2,
    )
    payload = bytes(pack) if isinstance(pack, (bytes, bytearray, memoryview)) else pack.read()
    unroll_archive_to(payload, UnrollOptions(), Path(dest))
