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

"""Data model of the SDK ingestion pipeline."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from unisdk.utils.errors import SdkParseError

# sdk archive file identity, e.g. android-SDK@4.36.zip
SDK_ZIP_IDENTITY = "-SDK@"
SDK_ZIP_FILE = "zip"


class SdkPlatform(Enum):
    """Offline SDK platforms."""
    ANDROID = "android"
    IOS = "ios"

    @classmethod
    def from_name(cls, name: str) -> "SdkPlatform":
        """Case-insensitive lookup, raises SdkParseError for unknown platforms."""
        lowered = name.strip().lower()
        for platform in cls:
            if platform.value == lowered:
                return platform
        raise SdkParseError(
            f"Unknown sdk platform: {name!r}, must be one of {[p.value for p in cls]}",
            field="platform",
        )

    @classmethod
    def is_known(cls, name: str) -> bool:
        return name.strip().lower() in [p.value for p in cls]


def is_sdk_archive_name(file_name: str) -> bool:
    """Whether file_name follows the <platform>-SDK@<version>.zip convention."""
    return SDK_ZIP_IDENTITY in file_name and file_name.lower().endswith(
        f".{SDK_ZIP_FILE.lower()}"
    )


@dataclass(frozen=True)
class SdkIdentity:
    """Platform and version of one SDK, e.g. android 4.36."""
    platform: SdkPlatform
    version: str

    @classmethod
    def parse(cls, file_name: str) -> "SdkIdentity":
        """
        Parse an archive file name such as android-SDK@4.36.zip.

        Raises:
            SdkParseError: file_name does not follow the naming convention
        """
        if not is_sdk_archive_name(file_name):
            raise SdkParseError(f"Not an sdk archive name: {file_name}", field="file_name")
        stem = file_name[: -len(f".{SDK_ZIP_FILE}")]
        parts = stem.split(SDK_ZIP_IDENTITY)
        if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
            raise SdkParseError(
                f"Expected <platform>{SDK_ZIP_IDENTITY}<version>.{SDK_ZIP_FILE}, got {file_name}",
                field="file_name",
            )
        platform, version = parts
        return cls(SdkPlatform.from_name(platform), version.strip())

    def __str__(self) -> str:
        return f"{self.platform.value}@{self.version}"


@dataclass
class CandidateArchive:
    """An archive found in the staging directory."""
    identity: SdkIdentity
    source_path: str

    @property
    def file_name(self) -> str:
        return os.path.basename(self.source_path)


@dataclass
class IngestionRecord:
    """Audit entry of a successfully extracted archive."""
    identity: SdkIdentity
    content_hash: str
    source_filename: str
    source_path: str
    target_path: str = ""

    def to_dict(self) -> dict:
        return {
            "platform": self.identity.platform.value,
            "version": self.identity.version,
            "md5": self.content_hash,
            "file_name": self.source_filename,
            "file_path": self.source_path,
            "target_path": self.target_path,
        }


class CandidateState(Enum):
    DISCOVERED = "discovered"
    TARGET_RESOLVED = "target_resolved"
    SKIPPED = "skipped"
    TARGET_READY = "target_ready"
    HASHING = "hashing"
    EXTRACTING = "extracting"
    INGESTED = "ingested"
    FAILED = "failed"


@dataclass
class CandidateResult:
    """Final state of one candidate in one run."""
    file_name: str
    state: CandidateState
    candidate: Optional[CandidateArchive] = None
    record: Optional[IngestionRecord] = None
    error: Optional[Exception] = None
    # state the candidate was in when it failed
    failed_step: Optional[CandidateState] = None


@dataclass
class IngestionReport:
    records: List[IngestionRecord] = field(default_factory=list)
    skipped: List[CandidateResult] = field(default_factory=list)
    failures: List[CandidateResult] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return len(self.failures) > 0

    def add(self, result: CandidateResult):
        if result.state == CandidateState.INGESTED:
            self.records.append(result.record)
        elif result.state == CandidateState.SKIPPED:
            self.skipped.append(result)
        elif result.state == CandidateState.FAILED:
            self.failures.append(result)
