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
Configuration for the SDK pipeline.

Read from the optional [sdk] table of UNISDK.toml at the project root:

    [sdk]
    sdk_root = "sdk"                  # canonical SDK tree (default: <project>/sdk)
    staging_path = "sdk/temp"         # where archives are dropped (default: <sdk_root>/temp)
    app_dist_path = "app-dist"        # app build outputs (default: <project>/app-dist)
    ignore_names = [".DS_Store"]      # default: MACOS_FILES
    sdk_dir_name = "SDK"
    library_dir_name = "libs"
    name_encoding = "gbk"
    top_level_policy = "always"
    hash_algorithm = "md5"

String values support ${VAR} and $VAR environment references.
"""

import hashlib
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Try to import tomli for Python < 3.11, tomllib for Python >= 3.11
try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

from unisdk.utils.common.archive import DEFAULT_NAME_ENCODING, TOP_LEVEL_ALWAYS, TOP_LEVEL_POLICIES
from unisdk.utils.common.checksum import DEFAULT_ALGORITHM
from unisdk.utils.common.path import MACOS_FILES
from unisdk.utils.errors import SdkConfigError

CONFIG_FILE_NAME = "UNISDK.toml"


def expand_env(value):
    """
    Expand environment variables in configuration values.

    Supports ${VAR_NAME} and $VAR_NAME syntax; unknown variables are kept as is.
    """
    if not isinstance(value, str):
        return value

    # Pattern for ${VAR_NAME}
    pattern1 = re.compile(r'\$\{([^}]+)\}')
    value = pattern1.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)

    # Pattern for $VAR_NAME
    pattern2 = re.compile(r'\$([A-Za-z_][A-Za-z0-9_]*)')
    value = pattern2.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)

    return value


@dataclass
class SdkConfig:
    """Paths and naming rules of one pipeline run.

    Passed explicitly to every component, nothing reads globals.
    """
    project_dir: str
    sdk_root: str = ""
    staging_path: str = ""
    app_dist_path: str = ""
    ignore_names: List[str] = field(default_factory=lambda: list(MACOS_FILES))
    sdk_dir_name: str = "SDK"
    library_dir_name: str = "libs"
    name_encoding: str = DEFAULT_NAME_ENCODING
    top_level_policy: str = TOP_LEVEL_ALWAYS
    hash_algorithm: str = DEFAULT_ALGORITHM

    def __post_init__(self):
        self.project_dir = os.path.abspath(self.project_dir)
        self.sdk_root = self._resolve(self.sdk_root or "sdk")
        self.staging_path = (
            self._resolve(self.staging_path)
            if self.staging_path
            else os.path.join(self.sdk_root, "temp")
        )
        self.app_dist_path = self._resolve(self.app_dist_path or "app-dist")
        self.validate()

    def _resolve(self, path: str) -> str:
        path = os.path.expanduser(expand_env(path))
        if not os.path.isabs(path):
            path = os.path.join(self.project_dir, path)
        return os.path.normpath(path)

    def validate(self):
        if self.top_level_policy not in TOP_LEVEL_POLICIES:
            raise SdkConfigError(
                f"Invalid top_level_policy: {self.top_level_policy}, "
                f"must be one of {TOP_LEVEL_POLICIES}"
            )
        if self.hash_algorithm.lower() not in hashlib.algorithms_available:
            raise SdkConfigError(f"Unsupported hash_algorithm: {self.hash_algorithm}")
        if not self.sdk_dir_name or not self.library_dir_name:
            raise SdkConfigError("sdk_dir_name and library_dir_name must not be empty")

    def with_overrides(self, **overrides) -> "SdkConfig":
        """Copy of this config with the non-None overrides applied (CLI flags)."""
        values = {
            "project_dir": self.project_dir,
            "sdk_root": self.sdk_root,
            "staging_path": self.staging_path,
            "app_dist_path": self.app_dist_path,
            "ignore_names": list(self.ignore_names),
            "sdk_dir_name": self.sdk_dir_name,
            "library_dir_name": self.library_dir_name,
            "name_encoding": self.name_encoding,
            "top_level_policy": self.top_level_policy,
            "hash_algorithm": self.hash_algorithm,
        }
        # a new sdk_root moves the default staging path along with it
        if overrides.get("sdk_root") and not overrides.get("staging_path"):
            if self.staging_path == os.path.join(self.sdk_root, "temp"):
                values["staging_path"] = ""
        values.update({k: v for k, v in overrides.items() if v is not None})
        return SdkConfig(**values)

    def get_config_summary(self) -> str:
        lines = []
        lines.append(f"  Project: {self.project_dir}")
        lines.append(f"  SDK root: {self.sdk_root}")
        lines.append(f"  Staging: {self.staging_path}")
        lines.append(f"  App dist: {self.app_dist_path}")
        lines.append(f"  Entry name encoding: {self.name_encoding}")
        return "\n".join(lines)


def _read_config_file(config_file: str) -> Dict[str, Any]:
    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise SdkConfigError(f"Failed to parse {config_file}: {e}") from e


def load_sdk_config(project_dir: Optional[str] = None) -> SdkConfig:
    """
    Load SdkConfig from <project_dir>/UNISDK.toml.

    Falls back to default values if the file does not exist.

    Raises:
        SdkConfigError: the file is malformed or holds invalid values
    """
    project_dir = os.path.abspath(project_dir or os.getcwd())
    config_file = os.path.join(project_dir, CONFIG_FILE_NAME)

    if not os.path.isfile(config_file):
        print(f"   ⚠️  {CONFIG_FILE_NAME} not found at {config_file}, using default configuration values")
        return SdkConfig(project_dir=project_dir)

    sdk_table = _read_config_file(config_file).get("sdk", {})
    if not isinstance(sdk_table, dict):
        raise SdkConfigError(f"[sdk] in {config_file} must be a table")

    known = {
        "sdk_root",
        "staging_path",
        "app_dist_path",
        "ignore_names",
        "sdk_dir_name",
        "library_dir_name",
        "name_encoding",
        "top_level_policy",
        "hash_algorithm",
    }
    unknown = sorted(set(sdk_table) - known)
    if unknown:
        print(f"   ⚠️  Ignoring unknown keys in [sdk]: {', '.join(unknown)}")

    values = {key: expand_env(sdk_table[key]) for key in known if key in sdk_table}
    if "ignore_names" in values:
        ignore_names = values["ignore_names"]
        if not isinstance(ignore_names, list) or not all(isinstance(n, str) for n in ignore_names):
            raise SdkConfigError("ignore_names must be a list of strings")
    for key, value in values.items():
        if key != "ignore_names" and not isinstance(value, str):
            raise SdkConfigError(f"{key} must be a string, got {type(value).__name__}")

    return SdkConfig(project_dir=project_dir, **values)
