#!/usr/bin/env python3
"""
Tests for ZIP extraction and creation.

Run with: python3 -m pytest test_archive.py
"""

import os
import struct
import tempfile
import unittest
import zipfile

from unisdk.utils.common.archive import (
    TOP_LEVEL_ALWAYS,
    TOP_LEVEL_AUTO,
    TOP_LEVEL_NONE,
    ExtractionProgress,
    should_remove_top_level,
    unzip_file,
    zip_directory,
)
from unisdk.utils.common.path import MACOS_FILES
from unisdk.utils.errors import SdkIOError, SdkNotFoundError


class LegacyZipInfo(zipfile.ZipInfo):
    """ZipInfo writing its name as raw bytes without the UTF-8 flag."""

    def _encodeFilenameFlags(self):
        return self.filename.encode("cp437"), self.flag_bits


def make_zip(zip_path, entries):
    """Write entries ({name: bytes or None for a directory}) to zip_path."""
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            if data is None:
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(name, data)


def patch_entry_header(zip_path, entry_name, method=None, flag_bits=0):
    """Rewrite the compression method and/or OR flag bits into both headers of one entry.

    zipfile only writes methods and flags it supports, archives from other
    tools (Deflate64 from Windows Explorer, encrypted entries) are emulated
    by patching a stored entry after the fact.
    """
    with zipfile.ZipFile(zip_path) as zf:
        infos = zf.infolist()
        central = zf.start_dir
    with open(zip_path, "rb") as f:
        data = bytearray(f.read())

    for info in infos:
        name_len, extra_len, comment_len = struct.unpack("<HHH", data[central + 28:central + 34])
        if info.filename == entry_name:
            local = info.header_offset
            if method is not None:
                data[local + 8:local + 10] = struct.pack("<H", method)
                data[central + 10:central + 12] = struct.pack("<H", method)
            if flag_bits:
                for offset in (local + 6, central + 8):
                    (flags,) = struct.unpack("<H", data[offset:offset + 2])
                    data[offset:offset + 2] = struct.pack("<H", flags | flag_bits)
        central += 46 + name_len + extra_len + comment_len

    with open(zip_path, "wb") as f:
        f.write(data)


def make_stored_zip(zip_path, entries):
    os.makedirs(os.path.dirname(zip_path), exist_ok=True)
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_STORED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)


# compression method 9 in the ZIP format, not supported by zipfile
DEFLATE64 = 9
# general purpose flag bit 0
ENCRYPTED = 0x1


def list_files(root):
    """Relative paths of all files under root -> their content."""
    files = {}
    for dir_path, _, file_names in os.walk(root):
        for file_name in file_names:
            path = os.path.join(dir_path, file_name)
            with open(path, "rb") as f:
                files[os.path.relpath(path, root).replace(os.sep, "/")] = f.read()
    return files


class TestUnzipFile(unittest.TestCase):
    """Test unzip_file."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = self.temp_dir.name
        self.zip_path = os.path.join(self.root, "android-SDK@3.2.1.zip")
        self.output_dir = os.path.join(self.root, "out", "3.2.1")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_always_strips_single_top_level(self):
        """Test "always" strips the one shared top-level directory."""
        make_zip(self.zip_path, {
            "android-SDK@3.2.1/": None,
            "android-SDK@3.2.1/SDK/libs/foo.so": b"foo",
            "android-SDK@3.2.1/readme.txt": b"readme",
        })
        unzip_file(self.zip_path, self.output_dir, remove_top_level=TOP_LEVEL_ALWAYS)
        self.assertEqual(
            list_files(self.output_dir),
            {"SDK/libs/foo.so": b"foo", "readme.txt": b"readme"},
        )

    def test_auto_strips_only_matching_name(self):
        """Test "auto" strips only when the top-level name equals the output dir name."""
        make_zip(self.zip_path, {"3.2.1/libs/foo.so": b"foo"})
        unzip_file(self.zip_path, self.output_dir, remove_top_level=TOP_LEVEL_AUTO)
        self.assertEqual(list_files(self.output_dir), {"libs/foo.so": b"foo"})

        other_dir = os.path.join(self.root, "other")
        unzip_file(self.zip_path, other_dir, remove_top_level=TOP_LEVEL_AUTO)
        self.assertEqual(list_files(other_dir), {"3.2.1/libs/foo.so": b"foo"})

    def test_none_never_strips(self):
        """Test "none" keeps the top-level directory."""
        make_zip(self.zip_path, {"top/libs/foo.so": b"foo"})
        unzip_file(self.zip_path, self.output_dir, remove_top_level=TOP_LEVEL_NONE)
        self.assertEqual(list_files(self.output_dir), {"top/libs/foo.so": b"foo"})

    def test_multiple_top_levels_not_stripped(self):
        """Test nothing is stripped when entries have several top-level names."""
        make_zip(self.zip_path, {"a/x.txt": b"x", "b/y.txt": b"y"})
        unzip_file(self.zip_path, self.output_dir, remove_top_level=TOP_LEVEL_ALWAYS)
        self.assertEqual(list_files(self.output_dir), {"a/x.txt": b"x", "b/y.txt": b"y"})

    def test_ignored_entries_skipped(self):
        """Test entries containing an ignore pattern are not extracted nor counted."""
        make_zip(self.zip_path, {
            "__MACOSX/top/._foo.so": b"resource fork",
            "top/libs/foo.so": b"foo",
            "top/libs/.DS_Store": b"junk",
        })
        progress = []
        unzip_file(
            self.zip_path, self.output_dir, MACOS_FILES, TOP_LEVEL_ALWAYS, progress.append
        )
        # __MACOSX filtered out, so "top" is the only top-level name left
        self.assertEqual(list_files(self.output_dir), {"libs/foo.so": b"foo"})
        self.assertEqual(progress[-1], 1.0)

    def test_progress_monotonic_and_complete(self):
        """Test progress never decreases, never exceeds 1.0 and ends at exactly 1.0."""
        make_zip(self.zip_path, {
            "top/a.bin": os.urandom(200 * 1024),
            "top/b.bin": os.urandom(10),
            "top/c/d.bin": os.urandom(70 * 1024),
        })
        progress = []
        unzip_file(self.zip_path, self.output_dir, on_progress=progress.append)
        self.assertGreater(len(progress), 1)
        self.assertEqual(progress, sorted(progress))
        self.assertTrue(all(0.0 <= value <= 1.0 for value in progress))
        self.assertEqual(progress[-1], 1.0)
        self.assertEqual(progress.count(1.0), 1)

    def test_empty_files_only(self):
        """Test an archive without data still reports completion."""
        make_zip(self.zip_path, {"top/": None, "top/empty.txt": b""})
        progress = []
        unzip_file(self.zip_path, self.output_dir, on_progress=progress.append)
        self.assertEqual(progress, [1.0])
        self.assertEqual(list_files(self.output_dir), {"top/empty.txt": b""})

    def test_files_before_directories(self):
        """Test parent directories are created even when no directory entry precedes a file."""
        make_zip(self.zip_path, {"top/deep/nested/file.txt": b"x", "top/deep/": None})
        unzip_file(self.zip_path, self.output_dir)
        self.assertEqual(list_files(self.output_dir), {"top/deep/nested/file.txt": b"x"})

    def test_legacy_encoded_names(self):
        """Test names stored as GBK bytes without the UTF-8 flag are decoded."""
        name = "中文/说明.txt"
        with zipfile.ZipFile(self.zip_path, "w") as zf:
            info = LegacyZipInfo(name.encode("gbk").decode("cp437"))
            zf.writestr(info, b"gbk")
        unzip_file(self.zip_path, self.output_dir, encoding="gbk")
        self.assertEqual(list_files(self.output_dir), {"中文/说明.txt": b"gbk"})

    def test_utf8_names_kept(self):
        """Test names flagged as UTF-8 are not re-decoded."""
        make_zip(self.zip_path, {"中文/说明.txt": b"utf8"})
        unzip_file(self.zip_path, self.output_dir, encoding="gbk")
        self.assertEqual(list_files(self.output_dir), {"中文/说明.txt": b"utf8"})

    def test_creates_output_dir(self):
        """Test a missing output directory is created."""
        make_zip(self.zip_path, {"a.txt": b"a"})
        unzip_file(self.zip_path, self.output_dir)
        self.assertTrue(os.path.isdir(self.output_dir))

    def test_missing_archive(self):
        """Test a missing archive raises SdkNotFoundError."""
        with self.assertRaises(SdkNotFoundError):
            unzip_file(os.path.join(self.root, "missing.zip"), self.output_dir)

    def test_corrupt_archive(self):
        """Test a file that is not a ZIP raises SdkIOError."""
        with open(self.zip_path, "wb") as f:
            f.write(b"this is not a zip file")
        with self.assertRaises(SdkIOError):
            unzip_file(self.zip_path, self.output_dir)

    def test_unsafe_entry(self):
        """Test entries escaping the output directory abort the extraction."""
        make_zip(self.zip_path, {"../evil.txt": b"evil"})
        with self.assertRaises(SdkIOError):
            unzip_file(self.zip_path, self.output_dir)
        self.assertFalse(os.path.exists(os.path.join(self.root, "out", "evil.txt")))

    def test_unsupported_compression_method(self):
        """Test an entry with a compression method zipfile cannot read raises SdkIOError."""
        make_stored_zip(self.zip_path, {"libs/a.so": b"a", "libs/b.so": b"b"})
        patch_entry_header(self.zip_path, "libs/b.so", method=DEFLATE64)
        with self.assertRaises(SdkIOError) as ctx:
            unzip_file(self.zip_path, self.output_dir)
        self.assertIn("libs/b.so", str(ctx.exception))

    def test_encrypted_entry(self):
        """Test an encrypted entry raises SdkIOError."""
        make_stored_zip(self.zip_path, {"libs/a.so": b"a"})
        patch_entry_header(self.zip_path, "libs/a.so", flag_bits=ENCRYPTED)
        with self.assertRaises(SdkIOError):
            unzip_file(self.zip_path, self.output_dir)

    def test_unknown_policy(self):
        """Test an unknown top level policy is rejected."""
        make_zip(self.zip_path, {"a.txt": b"a"})
        with self.assertRaises(ValueError):
            unzip_file(self.zip_path, self.output_dir, remove_top_level="sometimes")


class TestShouldRemoveTopLevel(unittest.TestCase):
    """Test the top-level stripping decision."""

    def test_lone_file_not_stripped(self):
        """Test a single top-level file is never stripped."""
        self.assertFalse(should_remove_top_level(["readme.txt"], "/tmp/out", TOP_LEVEL_ALWAYS))

    def test_auto_compares_base_name(self):
        """Test "auto" compares against the destination base name."""
        names = ["out/", "out/a.txt"]
        self.assertTrue(should_remove_top_level(names, "/tmp/out/", TOP_LEVEL_AUTO))
        self.assertFalse(should_remove_top_level(names, "/tmp/other", TOP_LEVEL_AUTO))


class TestExtractionProgress(unittest.TestCase):
    """Test the extraction byte counter."""

    def test_overflow_raises(self):
        """Test more data than declared is an error."""
        progress = ExtractionProgress(10)
        progress.advance(6)
        with self.assertRaises(SdkIOError):
            progress.advance(5)
        self.assertEqual(progress.written, 6)

    def test_complete_only_at_total(self):
        """Test completion is keyed to the total byte count."""
        reported = []
        progress = ExtractionProgress(10, reported.append)
        progress.advance(4)
        self.assertFalse(progress.complete)
        progress.advance(6)
        self.assertTrue(progress.complete)
        progress.finish()
        self.assertEqual(reported, [0.4, 1.0])


class TestZipDirectory(unittest.TestCase):
    """Test zip_directory."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = self.temp_dir.name
        self.source_dir = os.path.join(self.root, "source")
        files = {
            "libs/foo.so": os.urandom(4096),
            "libs/armeabi-v7a/bar.so": b"bar",
            "中文.txt": "内容".encode("utf-8"),
            "empty.txt": b"",
        }
        for rel_path, data in files.items():
            path = os.path.join(self.source_dir, *rel_path.split("/"))
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        os.makedirs(os.path.join(self.source_dir, "assets", "empty_dir"))
        self.files = files

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_round_trip(self):
        """Test zip then unzip yields the same files, byte for byte."""
        zip_path = os.path.join(self.root, "sdk.zip")
        zip_directory(self.source_dir, zip_path)

        output_dir = os.path.join(self.root, "restored")
        unzip_file(zip_path, output_dir, [], TOP_LEVEL_NONE)

        self.assertEqual(list_files(output_dir), self.files)
        self.assertTrue(os.path.isdir(os.path.join(output_dir, "assets", "empty_dir")))

    def test_relative_entry_names(self):
        """Test entries are stored relative to the source directory."""
        zip_path = os.path.join(self.root, "sdk.zip")
        zip_directory(self.source_dir, zip_path)
        with zipfile.ZipFile(zip_path) as zf:
            names = zf.namelist()
        self.assertIn("libs/foo.so", names)
        self.assertIn("assets/empty_dir/", names)
        self.assertFalse(any(name.startswith("source") for name in names))

    def test_overwrites_existing(self):
        """Test an existing output file is replaced."""
        zip_path = os.path.join(self.root, "sdk.zip")
        with open(zip_path, "wb") as f:
            f.write(b"stale")
        zip_directory(self.source_dir, zip_path)
        self.assertTrue(zipfile.is_zipfile(zip_path))

    def test_output_inside_source(self):
        """Test the archive does not include itself when written inside the source."""
        zip_path = os.path.join(self.source_dir, "self.zip")
        zip_directory(self.source_dir, zip_path)
        with zipfile.ZipFile(zip_path) as zf:
            self.assertNotIn("self.zip", zf.namelist())
            self.assertNotIn("self.zip.tmp", zf.namelist())

    def test_missing_source(self):
        """Test a missing source directory raises SdkNotFoundError."""
        with self.assertRaises(SdkNotFoundError):
            zip_directory(os.path.join(self.root, "missing"), os.path.join(self.root, "x.zip"))


if __name__ == "__main__":
    unittest.main()
