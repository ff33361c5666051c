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

"""Command context objects shared by the CLI and its sub-commands."""

from .command import CliCommand
from .context import CliContext
from .namespace import CliNameSpace
from .result import CliResult

__all__ = ["CliCommand", "CliContext", "CliNameSpace", "CliResult"]
