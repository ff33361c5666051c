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

import os
from typing import Dict, Iterable

from unisdk.utils.common.archive import DEFAULT_NAME_ENCODING, TOP_LEVEL_ALWAYS, unzip_file
from unisdk.utils.common.path import list_directory
from unisdk.utils.errors import SdkNotFoundError
from unisdk.utils.manifest.android import AndroidAppInfo


def collect_app_dist(
    app_dist_path: str,
    ignore_names: Iterable[str] = (),
    encoding: str = DEFAULT_NAME_ENCODING,
) -> Dict[str, AndroidAppInfo]:
    """
    Read the app metadata of every build output in app_dist_path.

    Directories are read as they are. A .zip build output is extracted next to
    itself (into a directory named after the archive), the archive is removed
    once extracted, and the directory is read. An archive whose directory name
    is already taken is reported and left alone.

    Returns:
        dict: build output name -> AndroidAppInfo

    Raises:
        SdkNotFoundError: app_dist_path does not exist
        SdkIOError: extracting a zipped build output failed
    """
    if not os.path.isdir(app_dist_path):
        raise SdkNotFoundError(f"App dist directory {app_dist_path} does not exist")

    ignore_names = list(ignore_names)
    result = {}
    for app_dist in list_directory(app_dist_path, ignore_names):
        dist_path = os.path.join(app_dist_path, app_dist)
        if os.path.isdir(dist_path):
            result[app_dist] = AndroidAppInfo(dist_path)
        elif app_dist.lower().endswith(".zip"):
            temp_name = app_dist[: -len(".zip")]
            unzip_target = os.path.join(app_dist_path, temp_name)
            if temp_name in result or os.path.lexists(unzip_target):
                # never merge two build outputs into one directory
                print(f"   ✗ {dist_path} clashes with existing {unzip_target}, skipped")
                continue
            unzip_file(dist_path, unzip_target, ignore_names, TOP_LEVEL_ALWAYS, encoding=encoding)
            # remove the original archive
            os.remove(dist_path)
            result[temp_name] = AndroidAppInfo(unzip_target)
    return result
