#
# Copyright 2024 unisdk Project Authors. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

"""
ZIP extraction and creation for SDK archives.

unzip_file() streams every entry to disk chunk by chunk. Progress and
completion are both driven by one byte counter owned by the extraction:
the call only returns once the counter equals the total size of the
filtered entries and the archive has been closed.
"""

import os
import shutil
import time
import zipfile
import zlib
from pathlib import PurePosixPath
from typing import Callable, Iterable, List, Optional, Tuple

from unisdk.utils.errors import SdkIOError, SdkNotFoundError

TOP_LEVEL_ALWAYS = "always"
TOP_LEVEL_AUTO = "auto"
TOP_LEVEL_NONE = "none"
TOP_LEVEL_POLICIES = [TOP_LEVEL_ALWAYS, TOP_LEVEL_AUTO, TOP_LEVEL_NONE]

# Archives built on Chinese Windows systems store entry names in GBK
DEFAULT_NAME_ENCODING = "gbk"

# general purpose flag bit 11: entry name is UTF-8
ZIP_FLAG_UTF8 = 0x800

COPY_CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[float], None]


class ExtractionProgress:
    """Cumulative byte counter of one extraction.

    Only advanced after a chunk has been written, so it never decreases and
    never goes past the total.
    """

    def __init__(self, total_size: int, on_progress: Optional[ProgressCallback] = None):
        self.total_size = total_size
        self.written = 0
        self.on_progress = on_progress
        self._last_reported = None

    @property
    def complete(self) -> bool:
        return self.written == self.total_size

    def advance(self, size: int):
        if self.written + size > self.total_size:
            raise SdkIOError(
                f"Archive entries produced more data than declared "
                f"({self.written + size} > {self.total_size} bytes)"
            )
        self.written += size
        self._report(self.fraction())

    def fraction(self) -> float:
        if self.total_size == 0:
            return 1.0
        return self.written / self.total_size

    def finish(self):
        # zero-sized archives never advance
        if self._last_reported != 1.0:
            self._report(1.0)

    def _report(self, value: float):
        if self.on_progress is None or value == self._last_reported:
            return
        self._last_reported = value
        self.on_progress(value)


def decode_entry_name(info: zipfile.ZipInfo, encoding: str = DEFAULT_NAME_ENCODING) -> str:
    """
    Decode an entry name with the given encoding.

    zipfile decodes names without the UTF-8 flag as cp437; such names are
    re-encoded to their raw bytes and decoded with encoding instead. Names
    carrying the UTF-8 flag are returned unchanged.
    """
    name = info.filename
    if info.flag_bits & ZIP_FLAG_UTF8 or not encoding:
        return name.replace("\\", "/")
    try:
        name = name.encode("cp437").decode(encoding)
    except (UnicodeEncodeError, UnicodeDecodeError):
        print(f"   ⚠️  Cannot decode entry name {name!r} as {encoding}, keeping it as is")
    return name.replace("\\", "/")


def _top_level_dirs(names: Iterable[str]) -> List[str]:
    return sorted({name.split("/")[0] for name in names})


def should_remove_top_level(names: List[str], output_dir, policy: str) -> bool:
    """
    Decide whether the single shared first path segment is stripped.

    Args:
        names: Filtered entry names
        output_dir: Destination directory
        policy: "always" strips when exactly one top-level segment exists,
            "auto" additionally requires it to equal the destination's base name,
            "none" never strips

    Raises:
        ValueError: unknown policy
    """
    if policy not in TOP_LEVEL_POLICIES:
        raise ValueError(f"Unknown top level policy: {policy}, must be one of {TOP_LEVEL_POLICIES}")
    top_level_dirs = _top_level_dirs(names)
    if len(top_level_dirs) != 1:
        return False
    # a lone top-level file is not a directory to strip
    if not all(name.startswith(top_level_dirs[0] + "/") for name in names):
        return False
    if policy == TOP_LEVEL_ALWAYS:
        return True
    if policy == TOP_LEVEL_AUTO:
        return top_level_dirs[0] == os.path.basename(os.path.normpath(os.fspath(output_dir)))
    return False


def _relative_entry_path(name: str, remove_top_level: bool) -> str:
    if remove_top_level:
        name = "/".join(name.split("/")[1:])
    posix = PurePosixPath(name)
    if posix.is_absolute() or ".." in posix.parts:
        raise SdkIOError(f"Unsafe entry path in archive: {name}")
    return name.strip("/")


def _collect_entries(
    zf: zipfile.ZipFile, ignore_files: Iterable[str], encoding: str
) -> List[Tuple[zipfile.ZipInfo, str]]:
    ignore_files = list(ignore_files)
    entries = []
    for info in zf.infolist():
        name = decode_entry_name(info, encoding)
        if any(pattern in name for pattern in ignore_files):
            continue
        entries.append((info, name))
    return entries


def unzip_file(
    zip_file_path,
    output_dir,
    ignore_files: Iterable[str] = (),
    remove_top_level: str = TOP_LEVEL_NONE,
    on_progress: Optional[ProgressCallback] = None,
    encoding: str = DEFAULT_NAME_ENCODING,
):
    """
    Stream-extract a ZIP archive.

    Args:
        zip_file_path: Archive to extract
        output_dir: Destination directory, created if missing
        ignore_files: Entries whose name contains any of these strings are skipped
        remove_top_level: "always", "auto" or "none", see should_remove_top_level()
        on_progress: Optional callback receiving written/total bytes in [0, 1]
        encoding: Encoding of entry names stored without the UTF-8 flag

    Raises:
        SdkNotFoundError: zip_file_path does not exist
        SdkIOError: corrupt, encrypted or unsupported archive, or a read/write
            failure on any entry; remaining entries are not extracted
        ValueError: unknown remove_top_level policy
    """
    zip_file_path = os.fspath(zip_file_path)
    output_dir = os.fspath(output_dir)
    start = time.time()

    if not os.path.isfile(zip_file_path):
        raise SdkNotFoundError(f"File {zip_file_path} does not exist")
    if remove_top_level not in TOP_LEVEL_POLICIES:
        raise ValueError(
            f"Unknown top level policy: {remove_top_level}, must be one of {TOP_LEVEL_POLICIES}"
        )

    os.makedirs(output_dir, exist_ok=True)

    current_entry = None
    try:
        with zipfile.ZipFile(zip_file_path, "r") as zf:
            entries = _collect_entries(zf, ignore_files, encoding)
            strip = should_remove_top_level(
                [name for _, name in entries], output_dir, remove_top_level
            )
            progress = ExtractionProgress(
                sum(info.file_size for info, _ in entries if not info.is_dir()),
                on_progress,
            )

            for info, name in entries:
                current_entry = name
                relative_path = _relative_entry_path(name, strip)
                if not relative_path:
                    # the stripped top-level directory itself
                    continue
                entry_path = os.path.join(output_dir, *relative_path.split("/"))

                if info.is_dir() or name.endswith("/"):
                    os.makedirs(entry_path, exist_ok=True)
                    continue

                # directory entries are not guaranteed to come first
                os.makedirs(os.path.dirname(entry_path), exist_ok=True)
                with zf.open(info) as src, open(entry_path, "wb") as dst:
                    for chunk in iter(lambda: src.read(COPY_CHUNK_SIZE), b""):
                        dst.write(chunk)
                        progress.advance(len(chunk))
            current_entry = None

            if not progress.complete:
                raise SdkIOError(
                    f"Extraction of {zip_file_path} incomplete: "
                    f"{progress.written}/{progress.total_size} bytes written"
                )
    except SdkIOError:
        print(f"   ✗ Failed to extract {current_entry or zip_file_path}. Took {time.time() - start:.2f}s")
        raise
    except (
        OSError,
        zipfile.BadZipFile,
        zipfile.LargeZipFile,
        zlib.error,
        EOFError,
        # unsupported compression method (e.g. Deflate64)
        NotImplementedError,
        # encrypted entry
        RuntimeError,
    ) as e:
        print(f"   ✗ Failed to extract {current_entry or zip_file_path}. Took {time.time() - start:.2f}s")
        where = f" (entry {current_entry})" if current_entry else ""
        raise SdkIOError(f"Failed to extract {zip_file_path}{where}: {e}") from e

    # the archive is closed at this point
    progress.finish()
    print(f"   ✓ Extracted to {output_dir}. Took {time.time() - start:.2f}s")


def zip_directory(source_dir, output_zip_path):
    """
    Fold a directory tree into a ZIP archive.

    Every file and directory under source_dir is added with its path relative
    to source_dir. An existing output_zip_path is overwritten.

    Raises:
        SdkNotFoundError: source_dir does not exist
        SdkIOError: reading a source file or writing the archive fails
    """
    source_dir = os.fspath(source_dir)
    output_zip_path = os.fspath(output_zip_path)
    start = time.time()

    if not os.path.isdir(source_dir):
        raise SdkNotFoundError(f"Directory {source_dir} does not exist")

    output_abs = os.path.abspath(output_zip_path)
    output_parent = os.path.dirname(output_abs)
    try:
        os.makedirs(output_parent, exist_ok=True)
        # write next to the target, then swap, so a failed build keeps the old archive
        temp_path = output_abs + ".tmp"
        with zipfile.ZipFile(temp_path, "w", zipfile.ZIP_DEFLATED) as zipf:
            for root, dirs, files in os.walk(source_dir):
                dirs.sort()
                rel_root = os.path.relpath(root, source_dir)
                if rel_root != ".":
                    zipf.write(root, rel_root.replace(os.sep, "/") + "/")
                for file_name in sorted(files):
                    file_path = os.path.join(root, file_name)
                    if os.path.abspath(file_path) in (output_abs, temp_path):
                        continue
                    arcname = os.path.relpath(file_path, source_dir).replace(os.sep, "/")
                    zipf.write(file_path, arcname)
        shutil.move(temp_path, output_abs)
    except (OSError, zipfile.LargeZipFile) as e:
        if os.path.exists(output_abs + ".tmp"):
            os.remove(output_abs + ".tmp")
        raise SdkIOError(f"Failed to zip {source_dir} into {output_zip_path}: {e}") from e

    print(f"   ✓ Zip file saved to {output_zip_path}. Took {time.time() - start:.2f}s")
