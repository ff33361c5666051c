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
uni-app offline SDK ingestion.

This module scans a staging directory for SDK archives, extracts them into
<sdk_root>/<platform>/<version>/ and normalizes the extracted trees.
"""

from .config import SdkConfig, load_sdk_config
from .processor import SdkProcessor
from .types import (
    CandidateArchive,
    CandidateResult,
    CandidateState,
    IngestionRecord,
    IngestionReport,
    SdkIdentity,
    SdkPlatform,
)

__all__ = [
    "CandidateArchive",
    "CandidateResult",
    "CandidateState",
    "IngestionRecord",
    "IngestionReport",
    "SdkConfig",
    "SdkIdentity",
    "SdkPlatform",
    "SdkProcessor",
    "load_sdk_config",
]
