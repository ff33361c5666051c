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

"""Outcome of a command: a value on success, the error that stopped it otherwise."""


class CliResult:
    # process exit codes
    EXIT_OK = 0
    EXIT_FAILURE = 1

    def __init__(self, value=None, error=None):
        self.value = value
        self.error = error

    def is_success(self) -> bool:
        return self.error is None

    def is_failure(self) -> bool:
        return self.error is not None

    @property
    def exit_code(self) -> int:
        return self.EXIT_OK if self.is_success() else self.EXIT_FAILURE

    def get_value(self, default=None):
        """The value of a successful run, default for a failed one.

        Failed ingest runs still carry their report in `value`, read it
        directly when the partial outcome matters.
        """
        return self.value if self.is_success() else default

    def get_error(self, default=None):
        return self.error if self.is_failure() else default

    def __repr__(self):
        if self.is_success():
            return f"CliResult(value={self.value!r})"
        return f"CliResult(error={self.error!r})"
