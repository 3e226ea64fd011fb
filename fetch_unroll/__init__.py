"""Fetch ``.tar.gz`` archives over HTTP(S) and unroll them into a directory.

    from fetch_unroll import Fetch

    Fetch.from_url(pack_url).unroll().strip_components(1).to("target/pack")
"""

from fetch_unroll.api import fetch, fetch_unroll, unroll
from fetch_unroll.errors import (
    ArchiveError,
    ConfigError,
    DecompressionError,
    FetchUnrollError,
    FilesystemError,
    HttpStatusError,
    NetworkError,
    PathTraversalError,
)
from fetch_unroll.fetcher import Fetch, fetch_url
from fetch_unroll.options import FetchOptions, SaveOptions, UnrollOptions
from fetch_unroll.saver import Save
from fetch_unroll.unroller import Unroll
from fetch_unroll.version import __version__

__all__ = [
    "ArchiveError",
    "ConfigError",
    "DecompressionError",
    "Fetch",
    "FetchOptions",
    "FetchUnrollError",
    "FilesystemError",
    "HttpStatusError",
    "NetworkError",
    "PathTraversalError",
    "Save",
    "SaveOptions",
    "Unroll",
    "UnrollOptions",
    "__version__",
    "fetch",
    "fetch_unroll",
    "fetch_url",
    "unroll",
]
