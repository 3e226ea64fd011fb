from __future__ import annotations

import gzip
import io
import tarfile
from typing import Callable, Iterable, Tuple, Union

import pytest

# name, payload; bytes for a file, None for a directory, ("->", target) for a symlink
Entry = Tuple[str, Union[bytes, None, Tuple[str, str]]]


def build_tar_gz(entries: Iterable[Entry], mode: int = 0o644) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, payload in entries:
            info = tarfile.TarInfo(name=name)
            info.mtime = 0
            if payload is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            elif isinstance(payload, tuple):
                info.type = tarfile.SYMTYPE
                info.linkname = payload[1]
                tar.addfile(info)
            else:
                info.size = len(payload)
                info.mode = mode
                tar.addfile(info, io.BytesIO(payload))
    return gzip.compress(buf.getvalue())


@pytest.fixture
def make_archive() -> Callable[..., bytes]:
    return build_tar_gz


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch):
    config_dir = tmp_path_factory.mktemp("config")
    monkeypatch.setenv("FETCH_UNROLL_CONFIG", str(config_dir / "config.toml"))
    monkeypatch.delenv("FETCH_UNROLL_TRANSPORT", raising=False)
    monkeypatch.delenv("FETCH_UNROLL_TIMEOUT", raising=False)
    monkeypatch.delenv("FETCH_UNROLL_VERBOSE", raising=False)
    return config_dir / "config.toml"
