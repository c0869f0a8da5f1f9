# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import sys

from tabswitch.cli import main

if __name__ == "__main__":
  sys.exit(main())
