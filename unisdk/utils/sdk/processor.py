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
SDK ingestion pipeline.

Processes the staging directory and unpacks every archive into the SDK tree:

    <staging>/android-SDK@4.36.zip  ->  <sdk_root>/android/4.36/

ingest() handles one archive at a time, in file name order:

    DISCOVERED -> TARGET_RESOLVED -> SKIPPED                      (already populated)
                                  -> TARGET_READY -> HASHING -> EXTRACTING -> INGESTED
                                                                           -> FAILED

normalize() is a separate pass over the whole SDK tree. For each
<platform>/<version> directory it keeps only the SDK folder and moves its
contents up one level. A version directory that already holds the library
folder (libs) is considered done, so the pass can be re-run.

Known gap: the libs folder is a heuristic done-marker. A version directory
whose libs folder was written by an extraction that later failed outside
this tool would be treated as complete.
"""

import os
import shutil
import time
from typing import Callable, List, Optional, Tuple

from unisdk.utils.common.archive import unzip_file
from unisdk.utils.common.checksum import calculate_checksum
from unisdk.utils.common.path import is_directory_populated, list_directory, move_contents_up
from unisdk.utils.errors import SdkIOError, SdkNotFoundError, SdkParseError, UniSdkError
from unisdk.utils.sdk.config import SdkConfig
from unisdk.utils.sdk.types import (
    CandidateArchive,
    CandidateResult,
    CandidateState,
    IngestionRecord,
    IngestionReport,
    SdkIdentity,
    SdkPlatform,
    is_sdk_archive_name,
)

ProgressCallback = Callable[[float], None]


class SdkProcessor:
    """Unpacks staged SDK archives into the canonical SDK tree."""

    def __init__(
        self,
        config: SdkConfig,
        on_hash_progress: Optional[ProgressCallback] = None,
        on_extract_progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize the processor.

        Args:
            config: Paths and naming rules of this run
            on_hash_progress: Optional progress sink for archive hashing
            on_extract_progress: Optional progress sink for archive extraction
        """
        self.config = config
        self.skips = list(config.ignore_names)
        self.on_hash_progress = on_hash_progress
        self.on_extract_progress = on_extract_progress

    # region ingestion

    def discover(self) -> Tuple[List[CandidateArchive], List[CandidateResult]]:
        """
        Scan the staging directory for SDK archives.

        Returns:
            tuple: (candidates, parse_failures)
                candidates: archives whose name parsed into an SdkIdentity
                parse_failures: FAILED results for names following the
                    convention that could not be parsed (e.g. unknown platform)

        Raises:
            SdkNotFoundError: the staging directory does not exist
        """
        staging_path = self.config.staging_path
        if not os.path.isdir(staging_path):
            raise SdkNotFoundError(f"Staging directory {staging_path} does not exist")

        candidates = []
        failures = []
        for file_name in list_directory(staging_path, self.skips):
            file_path = os.path.join(staging_path, file_name)
            if not is_sdk_archive_name(file_name) or not os.path.isfile(file_path):
                continue
            try:
                identity = SdkIdentity.parse(file_name)
            except SdkParseError as e:
                print(f"   ✗ Skipping {file_name}: {e}")
                failures.append(
                    CandidateResult(
                        file_name=file_name,
                        state=CandidateState.FAILED,
                        error=e,
                        failed_step=CandidateState.DISCOVERED,
                    )
                )
                continue
            candidates.append(CandidateArchive(identity=identity, source_path=file_path))
        return candidates, failures

    def get_target_path(self, identity: SdkIdentity) -> str:
        return os.path.join(self.config.sdk_root, identity.platform.value, identity.version)

    def check_version_dir(self, identity: SdkIdentity) -> Tuple[bool, str]:
        """
        Resolve the target directory of an identity.

        An absent or empty (modulo the ignore set) directory is created and
        reported as not existing.

        Returns:
            tuple: (is_exist, target_path) where is_exist only reflects the
                state at lookup time
        """
        target_path = self.get_target_path(identity)
        if is_directory_populated(target_path, self.skips):
            return True, target_path
        os.makedirs(target_path, exist_ok=True)
        return False, target_path

    def process_candidate(self, candidate: CandidateArchive) -> CandidateResult:
        """
        Hash and extract one candidate archive.

        Failures are returned as a FAILED result, never raised, so the
        remaining candidates still get processed.
        """
        identity = candidate.identity
        file_name = candidate.file_name
        result = CandidateResult(
            file_name=file_name, state=CandidateState.DISCOVERED, candidate=candidate
        )
        print(f"\n Processing {file_name} ({identity})...")

        target_path = None
        try:
            result.state = CandidateState.TARGET_RESOLVED
            is_exist, target_path = self.check_version_dir(identity)
            if is_exist:
                print(f"   {target_path} already populated, skipped")
                result.state = CandidateState.SKIPPED
                return result
            result.state = CandidateState.TARGET_READY

            result.state = CandidateState.HASHING
            content_hash = calculate_checksum(
                candidate.source_path,
                self.on_hash_progress,
                algorithm=self.config.hash_algorithm,
            )

            result.state = CandidateState.EXTRACTING
            extracted = False
            try:
                unzip_file(
                    candidate.source_path,
                    target_path,
                    self.skips,
                    self.config.top_level_policy,
                    self.on_extract_progress,
                    self.config.name_encoding,
                )
                extracted = True
            finally:
                # a half written target would be skipped as populated next run
                if not extracted:
                    self._reset_target(target_path)
        except (UniSdkError, OSError) as e:
            print(f"   ✗ {file_name} failed while {result.state.value}: {e}")
            result.failed_step = result.state
            result.state = CandidateState.FAILED
            result.error = e
            return result

        result.record = IngestionRecord(
            identity=identity,
            content_hash=content_hash,
            source_filename=file_name,
            source_path=candidate.source_path,
            target_path=target_path,
        )
        result.state = CandidateState.INGESTED
        print(f"   ✓ Ingested {identity} into {target_path}")
        return result

    def _reset_target(self, target_path: Optional[str]):
        # the target was absent or empty before extraction, put it back that way
        if not target_path or not os.path.isdir(target_path):
            return
        try:
            for name in os.listdir(target_path):
                self._remove_entry(os.path.join(target_path, name))
            print(f"   Cleared partially extracted {target_path}")
        except OSError as e:
            print(f"   ⚠️  Failed to clear {target_path}, remove it manually: {e}")

    def ingest(self) -> IngestionReport:
        """
        Process every candidate archive of the staging directory sequentially.

        Returns:
            IngestionReport: records of ingested archives, skipped and failed candidates
        """
        start = time.time()
        report = IngestionReport()
        candidates, parse_failures = self.discover()
        for failure in parse_failures:
            report.add(failure)

        if not candidates:
            print(f"   No sdk archives found in {self.config.staging_path}")

        for candidate in candidates:
            report.add(self.process_candidate(candidate))

        print(
            f"\n   Ingested: {len(report.records)}, skipped: {len(report.skipped)}, "
            f"failed: {len(report.failures)}. Took {time.time() - start:.2f}s"
        )
        return report

    # endregion

    # region normalization

    @staticmethod
    def _remove_entry(path: str):
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.unlink(path)

    def _is_normalized(self, entries: List[str]) -> bool:
        library_dir_name = self.config.library_dir_name.lower()
        return library_dir_name in [name.lower() for name in entries]

    def normalize_version_dir(self, version_path: str) -> bool:
        """
        Keep only the SDK folder of a version directory and move its contents up.

        Returns:
            bool: True if the directory was normalized, False if it was skipped

        Raises:
            SdkIOError: a delete or move failed; the directory may be left
                half processed and needs manual recovery
        """
        sdk_dir_name = self.config.sdk_dir_name
        step = "listing"
        try:
            entries = os.listdir(version_path)
            # has a libs folder, already processed
            if self._is_normalized(entries):
                return False
            if sdk_dir_name not in entries:
                print(f"   ⚠️  No {sdk_dir_name} folder in {version_path}, skipped")
                return False
            sdk_path = os.path.join(version_path, sdk_dir_name)
            if not os.path.isdir(sdk_path) or os.path.islink(sdk_path):
                print(f"   ⚠️  {sdk_path} is not a directory, skipped")
                return False

            step = "deleting"
            for file_name in entries:
                if file_name != sdk_dir_name:
                    self._remove_entry(os.path.join(version_path, file_name))

            step = "moving up"
            if not move_contents_up(version_path):
                return False
        except OSError as e:
            print(f"   ✗ Normalization of {version_path} failed while {step}: {e}")
            if isinstance(e, SdkIOError):
                raise
            raise SdkIOError(
                f"Normalization of {version_path} failed while {step}: {e}"
            ) from e

        print(f"   ✓ Normalized {version_path}")
        return True

    def normalize(self) -> List[str]:
        """
        Run the normalization pass over the whole SDK root.

        Returns:
            list: version directories normalized by this run

        Raises:
            SdkIOError: any step failed, the pass stops there
        """
        sdk_root = self.config.sdk_root
        normalized = []
        if not os.path.isdir(sdk_root):
            print(f"   ⚠️  SDK root {sdk_root} does not exist, nothing to normalize")
            return normalized

        platforms = [
            name for name in list_directory(sdk_root, self.skips) if SdkPlatform.is_known(name)
        ]
        for platform in platforms:
            platform_path = os.path.join(sdk_root, platform)
            if not os.path.isdir(platform_path) or os.path.islink(platform_path):
                continue

            for version in list_directory(platform_path, self.skips):
                version_path = os.path.join(platform_path, version)
                if not os.path.isdir(version_path) or os.path.islink(version_path):
                    continue
                if self.normalize_version_dir(version_path):
                    normalized.append(version_path)

        return normalized

    # endregion
