from __future__ import annotations

import gzip
import io
import os
import shutil
import tarfile
import zlib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Set, Tuple, Union

from rich.markup import escape

from fetch_unroll.errors import (
    ArchiveError,
    DecompressionError,
    FetchUnrollError,
    FilesystemError,
    PathTraversalError,
)
from fetch_unroll.logging import log
from fetch_unroll.options import UnrollOptions

# Permission bits kept from archive entries; setuid, setgid and sticky are dropped.
FILE_MODE_MASK = 0o777
# Extracted files stay readable and writable by their owner.
FILE_MODE_OWNER_RW = 0o600


class PayloadSource(Protocol):
    def read(self) -> bytes:
        ...


@dataclass(frozen=True)
class PlannedEntry:
    member: tarfile.TarInfo
    target: Path


def _describe(exc: OSError) -> str:
    return exc.strerror or str(exc)


def decompress(payload: bytes) -> bytes:
    if not payload:
        raise DecompressionError("Invalid gzip stream: empty payload")
    try:
        return gzip.decompress(payload)
    except (OSError, EOFError, zlib.error) as exc:
        raise DecompressionError(f"Invalid gzip stream: {exc}") from exc


def split_entry_name(name: str) -> Tuple[str, ...]:
    if name.startswith("/"):
        raise PathTraversalError(name)
    return tuple(part for part in name.split("/") if part not in ("", "."))


def count_common_components(members: Iterable[tarfile.TarInfo]) -> int:
    """Number of leading directory segments shared by every file and directory entry."""
    common: Optional[Tuple[str, ...]] = None
    for member in members:
        if member.isdir():
            parts = split_entry_name(member.name)
        elif member.isfile():
            parts = split_entry_name(member.name)[:-1]
        else:
            continue
        if common is None:
            common = parts
            continue
        shared = 0
        for left, right in zip(common, parts):
            if left != right:
                break
            shared += 1
        common = common[:shared]
    return len(common) if common else 0


def _target_for(dest: Path, name: str, strip_components: int) -> Optional[Path]:
    parts = split_entry_name(name)[strip_components:]
    if not parts:
        return None
    if ".." in parts:
        raise PathTraversalError(name)
    target = dest.joinpath(*parts)
    try:
        target.resolve().relative_to(dest.resolve())
    except ValueError as exc:
        raise PathTraversalError(name) from exc
    return target


def plan_entries(
    members: List[tarfile.TarInfo], options: UnrollOptions, dest: Path
) -> List[PlannedEntry]:
    strip_components = options.strip_components
    if options.strip_when_alone:
        strip_components = min(strip_components, count_common_components(members))

    planned: List[PlannedEntry] = []
    for member in members:
        if not (member.isdir() or member.isfile()):
            log(f"[warn]Ignoring non-regular entry[/warn] {escape(member.name)}")
            continue
        target = _target_for(dest, member.name, strip_components)
        if target is None:
            log(f"[info]Skipping stripped entry[/info] {escape(member.name)}")
            continue
        planned.append(PlannedEntry(member=member, target=target))
    return planned


def _remove_dir_entries(path: Path) -> None:
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def _prepare_dest(dest: Path, options: UnrollOptions) -> bool:
    """Make ``dest`` an existing directory. Returns True if it existed before."""
    try:
        if dest.is_dir():
            if options.cleanup_dest_dir:
                _remove_dir_entries(dest)
            return True
        if dest.exists() or dest.is_symlink():
            if not options.fix_invalid_dest:
                raise FilesystemError(dest, "Destination is not a directory")
            dest.unlink()
        if not options.create_dest_path:
            raise FilesystemError(dest, "Destination directory does not exist")
        dest.mkdir(parents=True)
        return False
    except OSError as exc:
        raise FilesystemError(dest, f"Could not prepare destination ({_describe(exc)})") from exc


def _cleanup(dest: Path, existed: bool) -> None:
    log(f"[warn]Cleaning up[/warn] {escape(str(dest))}")
    try:
        if existed:
            _remove_dir_entries(dest)
        else:
            shutil.rmtree(dest)
    except OSError as exc:
        log(f"[error]Cleanup of {escape(str(dest))} failed:[/error] {escape(str(exc))}")


def _read_member(tar: tarfile.TarFile, member: tarfile.TarInfo) -> bytes:
    try:
        fileobj = tar.extractfile(member)
        if fileobj is None:
            raise ArchiveError(f"No data for archive entry {member.name}")
        return fileobj.read()
    except tarfile.TarError as exc:
        raise ArchiveError(f"Truncated archive entry {member.name}: {exc}") from exc


def _write_file(
    tar: tarfile.TarFile,
    entry: PlannedEntry,
    options: UnrollOptions,
    written: Set[Path],
) -> None:
    target = entry.target
    data = _read_member(tar, entry.member)
    try:
        if target.is_dir() and not target.is_symlink():
            raise FilesystemError(target, "A directory is in the way of file entry")
        if target.exists() or target.is_symlink():
            if not options.overwrite and target not in written:
                raise FilesystemError(target, "File already exists")
            target.unlink()
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("xb") as dst:
            dst.write(data)
        os.chmod(target, (entry.member.mode & FILE_MODE_MASK) | FILE_MODE_OWNER_RW)
    except OSError as exc:
        raise FilesystemError(target, f"Could not write file ({_describe(exc)})") from exc
    written.add(target)


def _make_dir(entry: PlannedEntry) -> None:
    try:
        entry.target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(entry.target, f"Could not create directory ({_describe(exc)})") from exc


def unroll_archive_to(payload: bytes, options: UnrollOptions, dest: Path) -> None:
    """Extract a gzip-compressed tar ``payload`` below ``dest``.

    The payload is decompressed and every entry path is validated before the
    destination is touched, so a corrupt stream or an entry escaping ``dest``
    leaves the filesystem unchanged. Write failures part-way through leave the
    entries written so far in place unless ``cleanup_on_error`` is set.
    """
    data = decompress(payload)
    if not data:
        _prepare_dest(dest, options)
        log(f"[warn]Archive has no entries[/warn] {escape(str(dest))}")
        return
    try:
        tar = tarfile.open(fileobj=io.BytesIO(data), mode="r:")
    except tarfile.TarError as exc:
        raise ArchiveError(f"Invalid tar archive: {exc}") from exc

    with tar:
        try:
            members = tar.getmembers()
        except tarfile.TarError as exc:
            raise ArchiveError(f"Invalid tar archive: {exc}") from exc
        planned = plan_entries(members, options, dest)

        existed = _prepare_dest(dest, options)
        written: Set[Path] = set()
        try:
            for entry in planned:
                if entry.member.isdir():
                    _make_dir(entry)
                else:
                    _write_file(tar, entry, options, written)
        except FetchUnrollError:
            if options.cleanup_on_error and dest.is_dir():
                _cleanup(dest, existed)
            raise

    log(f"[success]Unrolled[/success] {len(planned)} entries to {escape(str(dest))}")


@dataclass(frozen=True)
class Unroll:
    """Extraction settings for a fetched ``.tar.gz`` archive."""

    source: PayloadSource
    options: UnrollOptions = field(default_factory=UnrollOptions)

    def _with(self, **changes) -> "Unroll":
        return replace(self, options=replace(self.options, **changes))

    def strip_components(self, count: int) -> "Unroll":
        return self._with(strip_components=count)

    def strip_when_alone(self, flag: bool) -> "Unroll":
        return self._with(strip_when_alone=flag)

    def overwrite(self, flag: bool) -> "Unroll":
        return self._with(overwrite=flag)

    def create_dest_path(self, flag: bool) -> "Unroll":
        return self._with(create_dest_path=flag)

    def fix_invalid_dest(self, flag: bool) -> "Unroll":
        return self._with(fix_invalid_dest=flag)

    def cleanup_on_error(self, flag: bool) -> "Unroll":
        return self._with(cleanup_on_error=flag)

    def cleanup_dest_dir(self, flag: bool) -> "Unroll":
        return self._with(cleanup_dest_dir=flag)

    def to(self, dest: Union[str, os.PathLike]) -> None:
        payload = self.source.read()
        unroll_archive_to(payload, self.options, Path(dest))
