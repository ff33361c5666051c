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

from unisdk.utils.common.checksum import DEFAULT_ALGORITHM, calculate_checksum
from unisdk.utils.common.progress import ConsoleProgress
from unisdk.utils.context.command import CliCommand
from unisdk.utils.context.context import CliContext
from unisdk.utils.context.namespace import CliNameSpace
from unisdk.utils.context.result import CliResult
from unisdk.utils.errors import UniSdkError


class Checksum(CliCommand):
    def description(self) -> str:
        return """Compute the checksum of a file (upper-case hex).

EXAMPLES:
    unisdk checksum sdk/temp/android-SDK@4.36.zip
    unisdk checksum --algorithm sha256 sdk/temp/android-SDK@4.36.zip
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="unisdk checksum",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument("file", type=str, help="File to hash")
        parser.add_argument(
            "--algorithm",
            type=str,
            default=DEFAULT_ALGORITHM,
            help=f"hashlib algorithm name (default: {DEFAULT_ALGORITHM})",
        )
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        return self.parse_args(parser, module_name)

    def exec(self, context: CliContext, args: CliNameSpace) -> CliResult:
        progress = ConsoleProgress()
        try:
            checksum = calculate_checksum(args.file, progress, algorithm=args.algorithm)
        except (UniSdkError, ValueError) as e:
            progress.close()
            print(f"ERROR: {e}")
            return CliResult(error=e)
        progress.close()
        return CliResult(value=checksum)
