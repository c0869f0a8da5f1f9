# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import logging
import os
import pathlib
import sys
from typing import Optional, Union

PathLike = Union[str, os.PathLike]

DATA_DIR_NAME = "data"
TAB_SWITCHING_DIR_NAME = "tab_switching"


class PathResolutionError(RuntimeError):
  pass


class PathResolver:
  """Resolves the well-known directories of a tab switching run.

  exe_dir: The directory of the executable under test. For local browser
    builds this is the build output directory (e.g. src/out/Release), which
    puts the test data at src/data/tab_switching.
  log_dir: The directory the browser writes its debug log to. Chrome writes
    chrome_debug.log into its user data directory.
  """

  def __init__(self,
               exe_dir: Optional[PathLike] = None,
               log_dir: Optional[PathLike] = None):
    self._exe_dir = pathlib.Path(exe_dir) if exe_dir else None
    self._log_dir = pathlib.Path(log_dir) if log_dir else None

  @classmethod
  def for_executable(cls,
                     executable: Optional[PathLike],
                     log_dir: Optional[PathLike] = None) -> PathResolver:
    exe_dir = None
    if executable:
      exe_dir = pathlib.Path(executable).absolute().parent
    return cls(exe_dir, log_dir)

  def exe_dir(self) -> pathlib.Path:
    exe_dir = self._exe_dir
    if exe_dir is None:
      if not sys.argv or not sys.argv[0]:
        raise PathResolutionError("Could not resolve the executable directory")
      exe_dir = pathlib.Path(sys.argv[0]).absolute().parent
    if not exe_dir.is_dir():
      raise PathResolutionError(
          f"Executable directory does not exist: {exe_dir}")
    return exe_dir

  def log_dir(self) -> pathlib.Path:
    if self._log_dir is None:
      raise PathResolutionError("No log directory available")
    return self._log_dir

  def join(self, base: PathLike, *segments: str) -> pathlib.Path:
    return pathlib.Path(base).joinpath(*segments)

  def tab_switching_data_prefix(self) -> str:
    """Returns <exe_dir>/../../data/tab_switching/ with a trailing path
    separator."""
    prefix = self.exe_dir().parent.parent
    prefix = self.join(prefix, DATA_DIR_NAME, TAB_SWITCHING_DIR_NAME)
    logging.debug("TAB SWITCHING DATA: %s", prefix)
    return str(prefix) + os.sep

  def log_file(self, file_name: str) -> pathlib.Path:
    return self.join(self.log_dir(), file_name)
