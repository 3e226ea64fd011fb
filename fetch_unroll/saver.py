from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Union

from rich.markup import escape

from fetch_unroll.errors import FilesystemError
from fetch_unroll.logging import log
from fetch_unroll.options import SaveOptions
from fetch_unroll.unroller import PayloadSource


def _describe(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _prepare_file_dest(path: Path, options: SaveOptions) -> bool:
    """Make ``path`` writable as a file. Returns False when it must be left alone."""
    if path.is_dir() and not path.is_symlink():
        if not options.fix_invalid_dest:
            raise FilesystemError(path, "Destination is a directory")
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        if not options.overwrite:
            return False
        path.unlink()
    elif options.create_dest_path:
        path.parent.mkdir(parents=True, exist_ok=True)
    return True


def save_payload_to(payload: bytes, options: SaveOptions, path: Path) -> None:
    try:
        writable = _prepare_file_dest(path, options)
    except OSError as exc:
        raise FilesystemError(path, f"Could not prepare destination ({_describe(exc)})") from exc
    if not writable:
        log(f"[warn]Keeping existing file[/warn] {escape(str(path))}")
        return

    try:
        with path.open("xb") as dst:
            dst.write(payload)
    except OSError as exc:
        if options.cleanup_on_error and path.is_file():
            try:
                os.remove(path)
            except OSError as cleanup_exc:
                log(f"[warn]Could not remove partial file[/warn] {escape(str(path))}: {escape(str(cleanup_exc))}")
        raise FilesystemError(path, f"Could not write file ({_describe(exc)})") from exc
    log(f"[success]Saved[/success] {len(payload)} bytes to {escape(str(path))}")


@dataclass(frozen=True)
class Save:
    source: PayloadSource
    options: SaveOptions = field(default_factory=SaveOptions)

    def create_dest_path(self, flag: bool) -> "Save":
        return replace(self, options=replace(self.options, create_dest_path=flag))

    def overwrite(self, flag: bool) -> "Save":
        return replace(self, options=replace(self.options, overwrite=flag))

    def fix_invalid_dest(self, flag: bool) -> "Save":
        return replace(self, options=replace(self.options, fix_invalid_dest=flag))

    def cleanup_on_error(self, flag: bool) -> "Save":
        return replace(self, options=replace(self.options, cleanup_on_error=flag))

    def to(self, path: Union[str, os.PathLike]) -> None:
        """Fetch the payload and write it to ``path``.

        An existing file is left untouched when overwriting is disabled.
        """
        payload = self.source.read()
        save_payload_to(payload, self.options, Path(path))
