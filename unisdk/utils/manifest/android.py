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
Android app metadata from a uni-app build output.

Reads <dist>/manifest.json and projects the fields the Android offline
packaging needs. Every field is read through get_path() and falls back to
its default on its own, so one bad field never hides the others.
"""

import json
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from unisdk.utils.errors import SdkParseError

DPI_DRAWABLE_HDPI = "drawable-hdpi"
DPI_DRAWABLE_XHDPI = "drawable-xhdpi"
DPI_DRAWABLE_XXHDPI = "drawable-xxhdpi"
DPI_DRAWABLE_XXXHDPI = "drawable-xxxhdpi"

ABI_FILTERS = ["armeabi-v7a", "arm64-v8a", "x86", "x86_64"]

APP_ICONS_SIZE_MAP = {
    DPI_DRAWABLE_HDPI: 72,
    DPI_DRAWABLE_XHDPI: 96,
    DPI_DRAWABLE_XXHDPI: 144,
    DPI_DRAWABLE_XXXHDPI: 192,
    # icon submitted to the app store
    "app-store": 1024,
}

# https://uniapp.dcloud.net.cn/tutorial/app-permission-android.html#modules
DEFAULT_APP_PERMISSIONS = [
    "android.permission.INTERNET",
    "android.permission.READ_EXTERNAL_STORAGE",
    "android.permission.WRITE_EXTERNAL_STORAGE",
    "android.permission.READ_MEDIA_IMAGES",
    "android.permission.READ_MEDIA_VIDEO",
    "android.permission.READ_MEDIA_VISUAL_USER_SELECTED",
    "android.permission.READ_PHONE_STATE",
    "android.permission.ACCESS_NETWORK_STATE",
    "android.permission.ACCESS_WIFI_STATE",
    # oaid on Asus devices
    "com.asus.msa.SupplementaryDID.ACCESS",
    # app badges on Huawei devices
    "com.huawei.android.launcher.permission.CHANGE_BADGE",
    # app badges on vivo devices, https://dev.vivo.com.cn/documentCenter/doc/787
    "com.vivo.notification.permission.BADGE_ICON",
    "android.permission.INSTALL_PACKAGES",
    "android.permission.REQUEST_INSTALL_PACKAGES",
]

PERMISSION_NAME_PATTERN = re.compile(r'android:name="([^"]+)"')

_MISSING = object()


def get_path(document: Any, path: str, default: Any = None) -> Any:
    """
    Read a dot-separated path from nested dicts.

    Returns default as soon as a segment is missing or an intermediate value
    is not a dict.
    """
    current = document
    for key in path.split("."):
        if not isinstance(current, dict):
            return default
        current = current.get(key, _MISSING)
        if current is _MISSING:
            return default
    return default if current is None else current


def parse_version_name(value: Any) -> Tuple[int, int, int]:
    """
    Parse "1.2.3" into (1, 2, 3); "1.2" is padded to (1, 2, 0).

    Raises:
        SdkParseError: non-numeric segment or more than three segments
    """
    if not isinstance(value, str) or not value.strip():
        raise SdkParseError(f"Version name must be a non-empty string, got {value!r}", field="version.name")
    segments = value.strip().split(".")
    if len(segments) > 3:
        raise SdkParseError(f"Version name {value!r} has more than three segments", field="version.name")
    numbers = []
    for segment in segments:
        if not segment.isdigit():
            raise SdkParseError(f"Version name {value!r} has non-numeric segment {segment!r}", field="version.name")
        numbers.append(int(segment))
    while len(numbers) < 3:
        numbers.append(0)
    return numbers[0], numbers[1], numbers[2]


def parse_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise SdkParseError(f"{field} must be a number, got {value!r}", field=field)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise SdkParseError(f"{field} must be a number, got {value!r}", field=field)


def extract_permissions(fragments: Any) -> List[str]:
    """
    Pull android:name="..." values out of <uses-permission .../> fragments.

    Fragments without a match (and non-string items) are dropped.
    """
    if not isinstance(fragments, list):
        return []
    permissions = []
    for fragment in fragments:
        if not isinstance(fragment, str):
            continue
        permissions.extend(PERMISSION_NAME_PATTERN.findall(fragment))
    return permissions


class AndroidAppInfo:
    """Android app metadata of one build output directory."""

    MANIFEST_FILE = "manifest.json"

    def __init__(self, dist_path: str):
        """
        Args:
            dist_path: Build output directory holding manifest.json
        """
        self.app_dist_path = dist_path
        self.manifest: Optional[Dict[str, Any]] = None
        self.parse_errors: List[SdkParseError] = []

        # region base config
        self.dcloud_appid = "__UNI__A"
        self.app_name = "UniApp"
        self.app_description = ""
        self.app_version: Tuple[int, int, int] = (0, 0, 0)
        self.app_version_code = 1
        # endregion

        # region icons
        self.app_icons_assets_dir = "unpackage/res/icons"
        self.app_icons_exts = ["png"]
        self.app_icons: Dict[str, str] = {}
        self.app_icons_size_map = dict(APP_ICONS_SIZE_MAP)
        # endregion

        # uni-app modules map to permissions, not resolved here, use app_permissions
        self.app_modules: Dict[str, Any] = {}

        # region permissions
        self.app_permissions: List[str] = []
        self.app_permissions_default = list(DEFAULT_APP_PERMISSIONS)
        # endregion

        self.min_sdk_version = 21
        self.abi_filters: List[str] = ["arm64-v8a"]

        self._load()

    @property
    def manifest_path(self) -> str:
        return os.path.join(self.app_dist_path, self.MANIFEST_FILE)

    def _load(self):
        self._read_manifest()
        if self.manifest is None:
            return
        self._init_base_config()
        self._init_icons()
        self._init_modules()
        self._init_permissions()

    def _read_manifest(self):
        if not os.path.isfile(self.manifest_path):
            return
        try:
            with open(self.manifest_path, "r", encoding="utf-8") as f:
                manifest = json.load(f)
        except (OSError, ValueError) as e:
            self._record(SdkParseError(f"Failed to read {self.manifest_path}: {e}", field="manifest"))
            return
        if not isinstance(manifest, dict):
            self._record(SdkParseError(f"{self.manifest_path} is not a JSON object", field="manifest"))
            return
        self.manifest = manifest

    def _record(self, error: SdkParseError):
        print(f"   ⚠️  {error}")
        self.parse_errors.append(error)

    def _string_field(self, path: str, default: str) -> str:
        value = get_path(self.manifest, path, default)
        if not isinstance(value, str):
            self._record(SdkParseError(f"{path} must be a string, got {value!r}", field=path))
            return default
        return value

    def _init_base_config(self):
        self.dcloud_appid = self._string_field("id", self.dcloud_appid)
        self.app_name = self._string_field("name", self.app_name)
        self.app_description = self._string_field("description", self.app_description)

        version_name = get_path(self.manifest, "version.name")
        if version_name is not None:
            try:
                self.app_version = parse_version_name(version_name)
            except SdkParseError as e:
                self._record(e)

        version_code = get_path(self.manifest, "version.code")
        if version_code is not None:
            try:
                self.app_version_code = parse_int(version_code, "version.code")
            except SdkParseError as e:
                self._record(e)

        min_sdk_version = get_path(self.manifest, "plus.distribute.android.minSdkVersion")
        if min_sdk_version is not None:
            try:
                self.min_sdk_version = parse_int(min_sdk_version, "plus.distribute.android.minSdkVersion")
            except SdkParseError as e:
                self._record(e)

        abi_filters = get_path(self.manifest, "plus.distribute.android.abiFilters")
        if abi_filters is not None:
            if isinstance(abi_filters, list) and all(isinstance(abi, str) for abi in abi_filters):
                self.abi_filters = list(abi_filters)
            else:
                self._record(SdkParseError(
                    f"abiFilters must be a list of strings, got {abi_filters!r}",
                    field="plus.distribute.android.abiFilters",
                ))

    def _init_icons(self):
        icons = get_path(self.manifest, "plus.distribute.icons.android")
        if isinstance(icons, dict):
            self.app_icons = {str(k): v for k, v in icons.items() if isinstance(v, str)}

    def _init_modules(self):
        modules = get_path(self.manifest, "permissions")
        if isinstance(modules, dict):
            self.app_modules = modules

    def _init_permissions(self):
        fragments = get_path(self.manifest, "plus.distribute.google.permissions")
        if fragments is not None:
            self.app_permissions = extract_permissions(fragments)

    def get_icon_paths(self) -> List[str]:
        return list(self.app_icons.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dist_path": self.app_dist_path,
            "has_manifest": self.manifest is not None,
            "appid": self.dcloud_appid,
            "name": self.app_name,
            "description": self.app_description,
            "version": list(self.app_version),
            "version_code": self.app_version_code,
            "min_sdk_version": self.min_sdk_version,
            "abi_filters": self.abi_filters,
            "icons": self.app_icons,
            "modules": self.app_modules,
            "permissions": self.app_permissions,
            "parse_errors": [str(e) for e in self.parse_errors],
        }

    def __repr__(self):
        return (
            f"AndroidAppInfo(appid={self.dcloud_appid}, name={self.app_name}, "
            f"version={'.'.join(map(str, self.app_version))}, code={self.app_version_code})"
        )
