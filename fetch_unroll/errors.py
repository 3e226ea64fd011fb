from __future__ import annotations

from pathlib import Path


class FetchUnrollError(Exception):
    pass


class ConfigError(FetchUnrollError):
    pass


class NetworkError(FetchUnrollError):
    def __init__(self, url: str, message: str):
        super().__init__(f"Transport error for {url}: {message}")
        self.url = url


class HttpStatusError(FetchUnrollError):
    def __init__(self, url: str, status_code: int, reason: str = ""):
        detail = f" {reason}" if reason else ""
        super().__init__(f"Invalid status: {status_code}{detail} for url: {url}")
        self.url = url
        self.status_code = status_code


class DecompressionError(FetchUnrollError):
    pass


class ArchiveError(FetchUnrollError):
    pass


class PathTraversalError(ArchiveError):
    def __init__(self, entry: str):
        super().__init__(f"Archive entry escapes destination directory: {entry}")
        self.entry = entry


class FilesystemError(FetchUnrollError):
    def __init__(self, path: Path | str, message: str):
        super().__init__(f"{message}: {path}")
        self.path = Path(path)
