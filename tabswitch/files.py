# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import logging
import pathlib
from typing import Optional

from tabswitch import helper


class FileReader:

  def __init__(self, platform: Optional[helper.Platform] = None):
    self.platform = platform or helper.platform

  def read_file_to_string(self, path: pathlib.Path) -> Optional[str]:
    """Returns the full file contents or None if the file is not readable
    (yet)."""
    try:
      with path.open(encoding="utf-8", errors="replace") as f:
        return f.read()
    except OSError as e:
      logging.debug("Could not read %s: %s", path, e)
      return None

  def wait_for_file(self,
                    path: pathlib.Path,
                    timeout: Optional[float] = None,
                    min_interval: float = 0.05,
                    max_interval: float = 1.0) -> str:
    """Blocks until the file at path can be read and returns its contents.

    With timeout=None this waits forever, the only way out is the file
    becoming readable. A TimeoutError is raised otherwise.
    """
    wait_range = helper.WaitRange(
        min=min_interval, max=max_interval, factor=1.5, timeout=timeout)
    logging.info("WAITING FOR LOG FILE: %s", path)
    for time_spent, _ in helper.wait_with_backoff(wait_range, self.platform):
      contents = self.read_file_to_string(path)
      if contents is not None:
        logging.debug("LOG FILE READ after %.2fs: %s", time_spent, path)
        return contents
    raise TimeoutError(f"Could not read {path}")
