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
import sys
import importlib
import argparse

from unisdk.utils.context.namespace import CliNameSpace
from unisdk.utils.context.context import CliContext
from unisdk.utils.context.command import CliCommand
from unisdk.utils.context.result import CliResult

SCRIPT_PATH = os.path.split(os.path.realpath(__file__))[0]
PACKAGE_NAME = os.path.basename(SCRIPT_PATH)


# Root Class for Command Line Interface
class Cli(CliCommand):
    def description(self) -> str:
        return """UNISDK - uni-app Offline SDK Organizer

Organizes offline SDK packages for the app build pipeline:
unpacks <platform>-SDK@<version>.zip archives into sdk/<platform>/<version>/,
normalizes the extracted trees and reads app metadata from build outputs.

USAGE:
    unisdk <command> [options]

COMMANDS:
    ingest      Unpack staged SDK archives, then normalize the SDK tree
    normalize   Normalize the SDK tree only
    manifest    Read app metadata from app-dist build outputs
    pack        Zip a directory
    checksum    Compute the checksum of a file

EXAMPLES:
    unisdk ingest                        # sdk/temp/*.zip -> sdk/<platform>/<version>/
    unisdk ingest --encoding utf-8       # archives with UTF-8 entry names
    unisdk normalize --sdk-root ./sdk
    unisdk manifest --json
    unisdk pack ./sdk/android/4.36 android-SDK@4.36.zip

For more information on a specific command:
    unisdk <command> --help
        """

    def get_command_list(self) -> list:
        arr = []
        for command in os.listdir(os.path.join(SCRIPT_PATH, "commands")):
            if not command.startswith("_") and command.endswith(".py"):
                arr.append(os.path.splitext(os.path.basename(command))[0])
        return sorted(arr)

    def _parser(self, add_help=True) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="unisdk",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
            add_help=add_help,
        )
        parser.add_argument(
            "subcommand",
            metavar=f"{self.get_command_list()}",
            type=str,
            nargs="?" if not add_help else None,
            choices=self.get_command_list(),
        )
        return parser

    def cli(self) -> CliNameSpace:
        # help for the main command only (unisdk --help), not for sub-commands
        if len(sys.argv) == 2 and sys.argv[1] in ["--help", "-h"]:
            self._parser().print_help()
            sys.exit(0)

        # parse only known args, --help stays for the sub-command
        args, unknown = self._parser(add_help=False).parse_known_args(namespace=CliNameSpace())
        return args

    def exec(self, context: CliContext, args: CliNameSpace) -> CliResult:
        if not args.subcommand:
            print("ERROR: No command specified\n")
            self._parser().print_help()
            sys.exit(1)

        # unisdk.commands.<subcommand>.<Subcommand>
        module = importlib.import_module(f"{PACKAGE_NAME}.commands.{args.subcommand}")
        klass = getattr(module, args.subcommand.capitalize())
        sub_cmd = klass()
        return sub_cmd.exec(context, sub_cmd.cli())


def main():
    cmd = Cli()
    result = cmd.exec(CliContext(), cmd.cli())
    if result is not None and result.is_failure():
        sys.exit(result.exit_code)


if __name__ == "__main__":
    main()
