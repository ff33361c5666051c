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
Directory helpers for the SDK tree.

- is_directory_populated / is_directory_populated_async: decide whether a
  target directory still needs processing
- move_contents_up: promote the entries of a directory's sole child one level
"""

import asyncio
import os
import shutil
from typing import Iterable, List

from unisdk.utils.errors import FlattenConflictError, SdkIOError

# Files (folders) created automatically on macOS, skipped everywhere
MACOS_FILES = [
    ".DS_Store",
    "._.DS_Store",
    "__MACOSX",
    ".AppleDouble",
    ".LSOverride",
    ".Spotlight-V100",
    ".Trashes",
    ".fseventsd",
]


def list_directory(dir_path, ignore_names: Iterable[str] = ()) -> List[str]:
    """
    Sorted entry names of a directory, minus the ignored names.

    Raises:
        SdkIOError: dir_path cannot be listed
    """
    ignore_names = set(ignore_names)
    try:
        entries = os.listdir(dir_path)
    except OSError as e:
        raise SdkIOError(f"Failed to read directory {dir_path}: {e}") from e
    return sorted(name for name in entries if name not in ignore_names)


def is_directory_populated(dir_path, ignore_names: Iterable[str] = ()) -> bool:
    """
    Check whether a directory exists and holds anything besides ignored names.

    Args:
        dir_path: Directory to check
        ignore_names: Entry names that do not count (e.g. MACOS_FILES)

    Returns:
        bool: False if dir_path is absent or only holds ignored names
    """
    if not os.path.exists(dir_path):
        return False
    return len(list_directory(dir_path, ignore_names)) > 0


async def is_directory_populated_async(dir_path, ignore_names: Iterable[str] = ()) -> bool:
    """Non-blocking flavor of is_directory_populated with identical results."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, is_directory_populated, dir_path, tuple(ignore_names)
    )


def move_contents_up(dir_path, ignore_names: Iterable[str] = ()) -> bool:
    """
    Promote the contents of the first child directory of dir_path into dir_path.

    The first listed (sorted) entry is taken as the outer item; names in
    ignore_names are not considered. If it is a directory, every entry inside
    it is renamed into dir_path and the emptied directory is removed. Only one
    level is flattened.

    Args:
        dir_path: Directory to flatten
        ignore_names: Entry names never picked as the outer item

    Returns:
        bool: True if entries were moved, False for the no-op cases

    Raises:
        FlattenConflictError: an entry of the outer directory has the same name
            as an existing entry of dir_path; nothing is moved in that case
        SdkIOError: listing, renaming or removing fails
    """
    entries = list_directory(dir_path, ignore_names)
    if not entries:
        print(f"   ⚠️  {dir_path} is empty, nothing to move up")
        return False

    outer_name = entries[0]
    outer_path = os.path.join(dir_path, outer_name)
    if not os.path.isdir(outer_path) or os.path.islink(outer_path):
        print(f"   ⚠️  {outer_path} is not a directory, nothing to move up")
        return False

    children = list_directory(outer_path)
    existing = set(os.listdir(dir_path))
    # the outer directory itself moves out of the way, see below
    existing.discard(outer_name)
    conflicts = [name for name in children if name in existing]
    if conflicts:
        raise FlattenConflictError(
            f"Cannot move contents of {outer_path} up, "
            f"already present in {dir_path}: {', '.join(conflicts)}"
        )

    try:
        if outer_name in children:
            # a child shares the outer directory's name, park the outer one first
            parked_path = os.path.join(dir_path, f".{outer_name}.unisdk-flatten")
            if os.path.lexists(parked_path):
                raise FlattenConflictError(f"Temporary path {parked_path} already exists")
            os.rename(outer_path, parked_path)
            outer_path = parked_path

        for name in children:
            os.rename(os.path.join(outer_path, name), os.path.join(dir_path, name))

        # empty by construction
        shutil.rmtree(outer_path)
    except FlattenConflictError:
        raise
    except OSError as e:
        raise SdkIOError(f"Failed to move contents of {outer_path} up into {dir_path}: {e}") from e

    return True
