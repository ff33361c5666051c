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
import json
import argparse

from unisdk.utils.context.command import CliCommand
from unisdk.utils.context.context import CliContext
from unisdk.utils.context.namespace import CliNameSpace
from unisdk.utils.context.result import CliResult
from unisdk.utils.errors import UniSdkError
from unisdk.utils.manifest.dist import collect_app_dist
from unisdk.utils.sdk.config import load_sdk_config


class Manifest(CliCommand):
    def description(self) -> str:
        return """Read app metadata from the app build outputs.

Each directory in app-dist is read through its manifest.json. Zipped build
outputs are extracted next to the archive first and the archive is removed.

EXAMPLES:
    unisdk manifest
    unisdk manifest --app-dist ./app-dist --json
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="unisdk manifest",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "--project-dir",
            type=str,
            help="Project directory holding UNISDK.toml (default: current directory)",
        )
        parser.add_argument(
            "--app-dist",
            type=str,
            help="Directory of app build outputs (default: <project>/app-dist)",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the metadata as JSON",
        )
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        return self.parse_args(parser, module_name)

    def exec(self, context: CliContext, args: CliNameSpace) -> CliResult:
        if args.project_dir:
            context.project_dir = args.project_dir
        try:
            config = load_sdk_config(context.get_project_dir()).with_overrides(
                app_dist_path=args.app_dist
            )
            result = collect_app_dist(
                config.app_dist_path, config.ignore_names, config.name_encoding
            )
        except UniSdkError as e:
            print(f"ERROR: {e}")
            return CliResult(error=e)

        if args.json:
            print(json.dumps(
                {name: info.to_dict() for name, info in result.items()},
                indent=2,
                ensure_ascii=False,
            ))
        else:
            for name, info in result.items():
                print(f"\n{name}:")
                for key, value in info.to_dict().items():
                    print(f"  {key}: {value}")
        return CliResult(value=result)
