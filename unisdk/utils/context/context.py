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


# This context data class to save the context of the command
class CliContext:
    def __init__(self, project_dir=None):
        self.project_dir = project_dir

    def get_project_dir(self) -> str:
        """Project directory of this invocation, defaulting to the working directory."""
        if self.project_dir:
            return os.path.abspath(self.project_dir)
        try:
            return os.getcwd()
        except (OSError, FileNotFoundError):
            # the working directory was removed under us
            return os.environ.get("PWD", ".")
