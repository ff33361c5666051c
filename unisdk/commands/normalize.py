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

from unisdk.commands.ingest import add_config_arguments, load_config_from_args
from unisdk.utils.context.command import CliCommand
from unisdk.utils.context.context import CliContext
from unisdk.utils.context.namespace import CliNameSpace
from unisdk.utils.context.result import CliResult
from unisdk.utils.errors import UniSdkError
from unisdk.utils.sdk.processor import SdkProcessor


class Normalize(CliCommand):
    def description(self) -> str:
        return """Normalize the SDK tree.

For every <sdk_root>/<platform>/<version>/ without a libs folder, deletes
everything except the SDK folder and moves the SDK folder's contents up.
Safe to re-run: normalized directories are skipped.

A failure stops the pass; the message names the version directory and the
step (deleting, moving up) so the directory can be fixed by hand.

EXAMPLES:
    unisdk normalize
    unisdk normalize --sdk-root ./sdk
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="unisdk normalize",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        add_config_arguments(parser)
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        return self.parse_args(parser, module_name)

    def exec(self, context: CliContext, args: CliNameSpace) -> CliResult:
        print("Normalizing SDK tree...\n")
        try:
            config = load_config_from_args(context, args)
            normalized = SdkProcessor(config).normalize()
        except UniSdkError as e:
            print(f"ERROR: {e}")
            return CliResult(error=e)

        print(f"\n✓ Normalized {len(normalized)} version directory(ies)")
        return CliResult(value=normalized)
