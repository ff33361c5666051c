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
Content digests for SDK archives.

A source is either a filesystem path or a buffer-backed object (bytes,
bytearray, memoryview or a binary file-like object). Both are read in
fixed-size chunks so memory use stays bounded whatever the file size.
"""

import hashlib
import io
import os
import time
from typing import Callable, Optional, Union, BinaryIO

from unisdk.utils.errors import SdkIOError, SdkNotFoundError

# 1MB per chunk
CHUNK_SIZE = 1024 * 1024
DEFAULT_ALGORITHM = "md5"

ProgressCallback = Callable[[float], None]
HashSource = Union[str, os.PathLike, bytes, bytearray, memoryview, BinaryIO]


def _new_hash(algorithm: str):
    try:
        return hashlib.new(algorithm)
    except ValueError as e:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}") from e


def _stream_size(stream) -> Optional[int]:
    """Remaining bytes of a seekable stream, None if it cannot be measured."""
    try:
        if not stream.seekable():
            return None
        position = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(position)
        return end - position
    except (AttributeError, OSError):
        return None


def _digest_stream(
    stream,
    total_size: Optional[int],
    algorithm: str,
    on_progress: Optional[ProgressCallback],
    chunk_size: int,
) -> str:
    digest = _new_hash(algorithm)
    processed = 0
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        digest.update(chunk)
        processed += len(chunk)
        if on_progress and total_size:
            on_progress(min(processed / total_size, 1.0))
    if on_progress and not total_size and total_size is not None:
        # empty source, nothing was reported yet
        on_progress(1.0)
    return digest.hexdigest().upper()


def calculate_path_checksum(
    file_path,
    on_progress: Optional[ProgressCallback] = None,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = CHUNK_SIZE,
) -> str:
    """
    Compute the digest of a file on disk.

    Args:
        file_path: Path of the file to hash
        on_progress: Optional callback receiving processed/total after each chunk
        algorithm: Any hashlib algorithm name (default: md5)
        chunk_size: Bytes read per chunk

    Returns:
        str: Upper-case hexadecimal digest

    Raises:
        SdkNotFoundError: file_path does not exist
        SdkIOError: the file cannot be opened or a read fails mid-stream
    """
    file_path = os.fspath(file_path)
    if not os.path.exists(file_path):
        raise SdkNotFoundError(f"File {file_path} does not exist")

    start = time.time()
    try:
        total_size = os.stat(file_path).st_size
        with open(file_path, "rb") as f:
            checksum = _digest_stream(f, total_size, algorithm, on_progress, chunk_size)
    except OSError as e:
        raise SdkIOError(f"Failed to read {file_path}: {e}") from e

    print(
        f"   File: {file_path}, {algorithm.upper()}: {checksum}. "
        f"Took {time.time() - start:.2f}s"
    )
    return checksum


def calculate_buffer_checksum(
    buffer,
    on_progress: Optional[ProgressCallback] = None,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = CHUNK_SIZE,
) -> str:
    """
    Compute the digest of an in-memory buffer or binary stream.

    Bytes-like buffers are wrapped in a BytesIO. Streams are read from their
    current position; progress is only reported when the remaining size can be
    measured (seekable streams).

    Raises:
        SdkIOError: a read fails mid-stream
    """
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        stream = io.BytesIO(buffer)
    else:
        stream = buffer
    try:
        return _digest_stream(
            stream, _stream_size(stream), algorithm, on_progress, chunk_size
        )
    except OSError as e:
        raise SdkIOError(f"Failed to read buffer: {e}") from e


def calculate_checksum(
    source: HashSource,
    on_progress: Optional[ProgressCallback] = None,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = CHUNK_SIZE,
) -> str:
    """Compute the digest of a path or a buffer-backed source.

    Callers do not need to know which backing store they hold.
    """
    if isinstance(source, (str, os.PathLike)):
        return calculate_path_checksum(source, on_progress, algorithm, chunk_size)
    return calculate_buffer_checksum(source, on_progress, algorithm, chunk_size)


def calculate_file_md5(source: HashSource, on_progress: Optional[ProgressCallback] = None) -> str:
    return calculate_checksum(source, on_progress, "md5")
