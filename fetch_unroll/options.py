from __future__ import annotations

from dataclasses import dataclass

from fetch_unroll.version import __version__

DEFAULT_TRANSPORT = "requests"
DEFAULT_TIMEOUT = 120.0
DEFAULT_MAX_REDIRECTS = 10
DEFAULT_USER_AGENT = f"fetch-unroll/{__version__}"


@dataclass(frozen=True)
class FetchOptions:
    transport: str = DEFAULT_TRANSPORT
    timeout: float | None = DEFAULT_TIMEOUT
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        # Zero or negative disables the timeout.
        if self.timeout is not None and self.timeout <= 0:
            object.__setattr__(self, "timeout", None)


@dataclass(frozen=True)
class UnrollOptions:
    strip_components: int = 0
    overwrite: bool = True
    create_dest_path: bool = True
    fix_invalid_dest: bool = True
    cleanup_on_error: bool = False
    cleanup_dest_dir: bool = False
    strip_when_alone: bool = False

    def __post_init__(self):
        if self.strip_components < 0:
            raise ValueError(
                f"strip_components must be non-negative, got {self.strip_components}"
            )


@dataclass(frozen=True)
class SaveOptions:
    create_dest_path: bool = True
    overwrite: bool = True
    fix_invalid_dest: bool = True
    cleanup_on_error: bool = True
