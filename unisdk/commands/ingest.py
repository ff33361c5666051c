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

from unisdk.utils.common.progress import ConsoleProgress
from unisdk.utils.context.command import CliCommand
from unisdk.utils.context.context import CliContext
from unisdk.utils.context.namespace import CliNameSpace
from unisdk.utils.context.result import CliResult
from unisdk.utils.errors import UniSdkError
from unisdk.utils.sdk.config import load_sdk_config
from unisdk.utils.sdk.processor import SdkProcessor


def add_config_arguments(parser: argparse.ArgumentParser):
    """Arguments overriding UNISDK.toml, shared by the sdk commands."""
    parser.add_argument(
        "--project-dir",
        type=str,
        help="Project directory holding UNISDK.toml (default: current directory)",
    )
    parser.add_argument(
        "--sdk-root",
        type=str,
        help="Canonical SDK tree (default: <project>/sdk)",
    )


def load_config_from_args(context: CliContext, args: CliNameSpace, **overrides):
    if args.project_dir:
        context.project_dir = args.project_dir
    config = load_sdk_config(context.get_project_dir())
    return config.with_overrides(sdk_root=args.sdk_root, **overrides)


class Ingest(CliCommand):
    def description(self) -> str:
        return """Unpack staged SDK archives into the SDK tree.

Every <platform>-SDK@<version>.zip in the staging directory is hashed and
extracted into <sdk_root>/<platform>/<version>/, unless that directory is
already populated. Afterwards the normalization pass keeps only the SDK
folder of each version directory and moves its contents up one level.

EXAMPLES:
    unisdk ingest
    unisdk ingest --staging ~/Downloads/uniapp-sdk
    unisdk ingest --encoding utf-8
    unisdk ingest --no-normalize

OUTPUT STRUCTURE:
    sdk/
    ├── temp/                       Staged archives (android-SDK@4.36.zip)
    ├── android/4.36/               Flattened SDK folder (libs/, ...)
    └── ios/4.36/
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="unisdk ingest",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        add_config_arguments(parser)
        parser.add_argument(
            "--staging",
            type=str,
            help="Directory holding the SDK archives (default: <sdk_root>/temp)",
        )
        parser.add_argument(
            "--encoding",
            type=str,
            help="Encoding of non UTF-8 archive entry names (default: gbk)",
        )
        parser.add_argument(
            "--no-normalize",
            action="store_true",
            help="Skip the normalization pass",
        )
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        return self.parse_args(parser, module_name)

    def exec(self, context: CliContext, args: CliNameSpace) -> CliResult:
        print("=" * 80)
        print("UNISDK Ingest - Unpack Offline SDK Archives")
        print("=" * 80)

        try:
            config = load_config_from_args(
                context, args, staging_path=args.staging, name_encoding=args.encoding
            )
        except UniSdkError as e:
            print(f"ERROR: {e}")
            return CliResult(error=e)
        print(config.get_config_summary())

        hash_progress = ConsoleProgress("Hashing")
        extract_progress = ConsoleProgress("Extracting")
        processor = SdkProcessor(
            config,
            on_hash_progress=hash_progress,
            on_extract_progress=extract_progress,
        )

        try:
            report = processor.ingest()
        except UniSdkError as e:
            print(f"ERROR: {e}")
            return CliResult(error=e)
        finally:
            hash_progress.close()
            extract_progress.close()

        normalized = []
        if not args.no_normalize:
            print(f"\n{'='*80}")
            print("Normalizing SDK Tree")
            print(f"{'='*80}")
            try:
                normalized = processor.normalize()
            except UniSdkError as e:
                print(f"ERROR: {e}")
                return CliResult(value=report, error=e)

        print(f"\n{'='*80}")
        print("Ingestion Summary")
        print(f"{'='*80}\n")
        for record in report.records:
            print(f"✓ {record.identity}  {record.content_hash}  {record.source_filename}")
        for skipped in report.skipped:
            print(f"- {skipped.file_name} (already populated)")
        for failure in report.failures:
            step = failure.failed_step.value if failure.failed_step else "unknown"
            print(f"✗ {failure.file_name} failed while {step}: {failure.error}")
        if not args.no_normalize:
            print(f"  Normalized version directories: {len(normalized)}")
        print()

        if report.has_failures:
            return CliResult(value=report, error=report.failures[0].error)
        return CliResult(value=report)
