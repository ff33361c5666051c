#!/usr/bin/env python3
"""
Tests for content checksums.

Run with: python3 -m pytest test_checksum.py
"""

import hashlib
import io
import os
import tempfile
import unittest

from unisdk.utils.common.checksum import (
    calculate_buffer_checksum,
    calculate_checksum,
    calculate_file_md5,
    calculate_path_checksum,
)
from unisdk.utils.errors import SdkIOError, SdkNotFoundError


class TestPathChecksum(unittest.TestCase):
    """Test hashing of files on disk."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.file_path = os.path.join(self.temp_dir.name, "android-SDK@4.36.zip")
        self.data = os.urandom(3 * 1024 + 17)
        with open(self.file_path, "wb") as f:
            f.write(self.data)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_matches_hashlib_reference(self):
        """Test digest equals hashlib's over the same bytes, upper-case."""
        expected = hashlib.md5(self.data).hexdigest().upper()
        self.assertEqual(calculate_path_checksum(self.file_path), expected)
        self.assertEqual(calculate_file_md5(self.file_path), expected)

    def test_deterministic(self):
        """Test repeated hashing gives the same digest."""
        self.assertEqual(
            calculate_checksum(self.file_path), calculate_checksum(self.file_path)
        )

    def test_other_algorithm(self):
        """Test a non-default hashlib algorithm."""
        expected = hashlib.sha256(self.data).hexdigest().upper()
        self.assertEqual(calculate_checksum(self.file_path, algorithm="sha256"), expected)

    def test_progress_per_chunk(self):
        """Test progress is reported after every chunk and ends at 1.0."""
        progress = []
        calculate_path_checksum(self.file_path, progress.append, chunk_size=1024)
        self.assertEqual(len(progress), 4)
        self.assertEqual(progress, sorted(progress))
        self.assertEqual(progress[-1], 1.0)

    def test_empty_file(self):
        """Test an empty file hashes and reports completion once."""
        empty_path = os.path.join(self.temp_dir.name, "empty.zip")
        open(empty_path, "wb").close()
        progress = []
        checksum = calculate_path_checksum(empty_path, progress.append)
        self.assertEqual(checksum, hashlib.md5(b"").hexdigest().upper())
        self.assertEqual(progress, [1.0])

    def test_missing_file(self):
        """Test a missing path raises SdkNotFoundError."""
        with self.assertRaises(SdkNotFoundError):
            calculate_checksum(os.path.join(self.temp_dir.name, "missing.zip"))

    def test_unreadable_path(self):
        """Test a path that cannot be read as a file raises SdkIOError."""
        with self.assertRaises(SdkIOError):
            calculate_checksum(self.temp_dir.name)

    def test_unknown_algorithm(self):
        """Test an unknown algorithm name is rejected."""
        with self.assertRaises(ValueError):
            calculate_checksum(self.file_path, algorithm="not-a-hash")


class TestBufferChecksum(unittest.TestCase):
    """Test hashing of buffer-backed sources."""

    def test_bytes_match_path_flavor(self):
        """Test bytes and file sources with equal content give equal digests."""
        data = b"uni-app offline sdk" * 100
        with tempfile.TemporaryDirectory() as temp_dir:
            file_path = os.path.join(temp_dir, "sdk.zip")
            with open(file_path, "wb") as f:
                f.write(data)
            self.assertEqual(calculate_checksum(data), calculate_checksum(file_path))

    def test_bytearray_and_memoryview(self):
        """Test every bytes-like flavor is accepted."""
        data = b"hello"
        expected = "5D41402ABC4B2A76B9719D911017C592"
        self.assertEqual(calculate_checksum(data), expected)
        self.assertEqual(calculate_checksum(bytearray(data)), expected)
        self.assertEqual(calculate_checksum(memoryview(data)), expected)

    def test_stream_progress(self):
        """Test a seekable stream reports fractional progress."""
        progress = []
        calculate_buffer_checksum(io.BytesIO(b"x" * 10), progress.append, chunk_size=4)
        self.assertEqual(progress, [0.4, 0.8, 1.0])

    def test_failing_stream(self):
        """Test a read failure mid-stream raises SdkIOError."""

        class BrokenStream(io.RawIOBase):
            def readable(self):
                return True

            def read(self, size=-1):
                raise OSError("device not ready")

        with self.assertRaises(SdkIOError):
            calculate_buffer_checksum(BrokenStream())


if __name__ == "__main__":
    unittest.main()
