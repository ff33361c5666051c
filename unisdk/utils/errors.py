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
Error taxonomy for unisdk.

All unisdk exceptions derive from UniSdkError. The concrete classes also
derive from the matching builtin (FileNotFoundError, OSError, ValueError) so
callers catching the builtin keep working.

Usage:
    from unisdk.utils.errors import SdkIOError, SdkNotFoundError

    try:
        unzip_file(zip_path, target_path)
    except SdkNotFoundError as e:
        print(f"   ✗ {e}")
"""


class UniSdkError(Exception):
    """Base exception for all unisdk errors."""
    pass


class SdkNotFoundError(UniSdkError, FileNotFoundError):
    """A source path, archive or directory that must exist is missing."""
    pass


class SdkIOError(UniSdkError, OSError):
    """Read, write or stream failure."""
    pass


class FlattenConflictError(SdkIOError):
    """Promoting a child directory's entries would overwrite an existing entry."""
    pass


class SdkParseError(UniSdkError, ValueError):
    """Malformed identity string or manifest field.

    Always scoped to a single candidate or field, never to a whole run.
    """

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class SdkConfigError(UniSdkError):
    """Invalid UNISDK.toml or configuration value."""
    pass
