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

"""App build output metadata (manifest.json) for offline packaging."""

from .android import AndroidAppInfo, get_path, parse_version_name
from .dist import collect_app_dist

__all__ = ["AndroidAppInfo", "collect_app_dist", "get_path", "parse_version_name"]
