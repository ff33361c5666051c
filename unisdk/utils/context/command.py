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

import argparse
import sys

from .context import CliContext
from .namespace import CliNameSpace


# Base class of every command, the root one included
class CliCommand:
    def description(self) -> str:
        raise NotImplementedError

    def cli(self) -> CliNameSpace:
        raise NotImplementedError

    def exec(self, context: CliContext, args: CliNameSpace):
        raise NotImplementedError

    def parse_args(self, parser: argparse.ArgumentParser, module_name: str, argv=None):
        """Parse argv for a sub-command, dropping the sub-command name itself.

        Only the first occurrence is the sub-command; later ones are arguments.
        """
        if argv is None:
            argv = sys.argv[1:]
        input_argv = list(argv)
        if module_name in input_argv:
            index = input_argv.index(module_name)
            input_argv = input_argv[:index] + input_argv[index + 1:]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args
