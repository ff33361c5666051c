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
import argparse

from unisdk.utils.common.archive import zip_directory
from unisdk.utils.context.command import CliCommand
from unisdk.utils.context.context import CliContext
from unisdk.utils.context.namespace import CliNameSpace
from unisdk.utils.context.result import CliResult
from unisdk.utils.errors import UniSdkError


class Pack(CliCommand):
    def description(self) -> str:
        return """Zip a directory, keeping paths relative to it.

An existing output file is overwritten.

EXAMPLES:
    unisdk pack ./sdk/android/4.36 ./android-SDK@4.36.zip
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="unisdk pack",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument("source", type=str, help="Directory to zip")
        parser.add_argument("output", type=str, help="Output .zip path")
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        return self.parse_args(parser, module_name)

    def exec(self, context: CliContext, args: CliNameSpace) -> CliResult:
        print(f"Zipping {args.source}...")
        try:
            zip_directory(args.source, args.output)
        except UniSdkError as e:
            print(f"ERROR: {e}")
            return CliResult(error=e)
        return CliResult(value=os.path.abspath(args.output))
