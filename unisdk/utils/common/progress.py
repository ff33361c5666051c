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

import sys


class ConsoleProgress:
    """Progress sink printing "Progress: NN%" on a single console line.

    The line is only redrawn when the integer percentage changes.
    """

    def __init__(self, label: str = "Progress", stream=None):
        self.label = label
        self.stream = stream if stream is not None else sys.stdout
        self.percent = -1
        self.line_open = False

    def __call__(self, fraction: float):
        percent = min(int(fraction * 100), 100)
        if percent == self.percent:
            return
        self.percent = percent
        self.stream.write(f"\r   {self.label}: {percent}%")
        self.line_open = True
        if percent == 100:
            self.close()
        self.stream.flush()

    def close(self):
        # new line after progress
        if self.line_open:
            self.stream.write("\n")
            self.stream.flush()
        self.line_open = False
        self.percent = -1
