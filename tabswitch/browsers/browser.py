# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import abc
import datetime as dt
import logging
import pathlib
import re
import shutil
from typing import Any, Dict, Optional

from tabswitch import helper
from tabswitch.flags import Flags


class BrowserWindow(abc.ABC):
  """Tab control for a single browser window.

  Tabs are addressed by their index in the window, contiguous from 0 to
  tab_count() - 1. All wait_* methods block the caller.
  """

  def __init__(self, browser: Browser, index: int):
    self.browser = browser
    self.index = index

  @abc.abstractmethod
  def tab_count(self) -> int:
    """Returns the number of tabs, raises if the count cannot be read."""

  @abc.abstractmethod
  def append_tab(self, url: str) -> None:
    """Requests a new tab navigated to url, does not wait for it to load."""

  @abc.abstractmethod
  def activate_tab(self, index: int) -> None:
    pass

  @abc.abstractmethod
  def active_tab_index(self) -> Optional[int]:
    pass

  def wait_for_tab_count_to_change(
      self,
      count: int,
      timeout: dt.timedelta,
      expected_count: Optional[int] = None) -> Optional[int]:
    """Waits until the tab count differs from count, or reaches
    expected_count if given. Returns the new count or None on timeout."""
    wait_range = helper.WaitRange(
        min=0.05, max=0.5, factor=1.5, timeout=timeout.total_seconds())
    new_count = count
    try:
      for _ in helper.wait_with_backoff(wait_range, self.browser.platform):
        new_count = self.tab_count()
        if expected_count is None and new_count != count:
          return new_count
        if expected_count is not None and new_count == expected_count:
          return new_count
    except TimeoutError:
      logging.warning("Timeout waiting for tab count change: %s => %s", count,
                      new_count)
    return None

  def wait_for_tab_to_become_active(self, index: int,
                                    timeout: dt.timedelta) -> bool:
    wait_range = helper.WaitRange(
        min=0.01, max=0.2, factor=1.5, timeout=timeout.total_seconds())
    try:
      for _ in helper.wait_with_backoff(wait_range, self.browser.platform):
        if self.active_tab_index() == index:
          return True
    except TimeoutError:
      logging.warning("Timeout waiting for tab %s to become active", index)
    return False

  @abc.abstractmethod
  def close(self) -> bool:
    """Closes the browser owning this window. Returns True if the browser
    reported a successful shutdown."""

  def __str__(self) -> str:
    return f"{self.browser}:window[{self.index}]"


class Browser(abc.ABC):

  @classmethod
  def default_flags(cls, initial_data: Flags.InitialDataType = None) -> Flags:
    return Flags(initial_data)

  def __init__(self,
               label: str,
               path: Optional[pathlib.Path],
               flags: Flags.InitialDataType = None,
               user_data_dir: Optional[pathlib.Path] = None,
               type: Optional[str] = None,  # pylint: disable=redefined-builtin
               platform: Optional[helper.Platform] = None):
    self.platform = platform or helper.platform
    # Marked optional to make subclass constructor calls easier with pytype.
    assert type
    self.type: str = type
    self.label: str = label
    self._unique_name: str = ""
    self.app_name: str = type
    self.version: str = "custom"
    if path:
      self.path = self._resolve_binary(path)
      assert self.path.is_absolute()
      self.version = self._extract_version()
      self.unique_name = f"{self.type}_{self.version}_{self.label}"
    else:
      self.path = pathlib.Path()
      self.unique_name = f"{self.type}_{self.label}"
    self.user_data_dir: Optional[pathlib.Path] = user_data_dir
    self.clear_user_data_dir: bool = False
    self._is_running: bool = False
    self._pid: Optional[int] = None
    self._flags: Flags = self.default_flags(flags)

  @property
  def unique_name(self) -> str:
    return self._unique_name

  @unique_name.setter
  def unique_name(self, name: str) -> None:
    assert name
    # Replace any potentially unsafe chars in the name
    self._unique_name = re.sub(r"[^\w\d\-\.]", "_", name).lower()

  @property
  def flags(self) -> Flags:
    return self._flags

  @property
  def pid(self) -> Optional[int]:
    return self._pid

  @property
  def is_running(self) -> bool:
    if not self._is_running:
      return False
    if self._pid is None:
      return True
    return self.platform.is_process_running(self._pid)

  @property
  def log_dir(self) -> Optional[pathlib.Path]:
    """Directory the browser writes its debug log into."""
    return self.user_data_dir

  def _resolve_binary(self, path: pathlib.Path) -> pathlib.Path:
    path = path.absolute()
    assert path.exists(), f"Binary at path={path} does not exist."
    self.app_name = path.stem
    assert path.is_file(), (f"Binary at path={path} is not a file.")
    return path

  @abc.abstractmethod
  def _extract_version(self) -> str:
    pass

  def details_json(self) -> Dict[str, Any]:
    return {
        "label": self.label,
        "browser": self.type,
        "unique_name": self.unique_name,
        "app_name": self.app_name,
        "version": self.version,
        "flags": tuple(self.flags.get_list()),
        "path": str(self.path),
        "user_data_dir": str(self.user_data_dir),
    }

  def clear_user_data(self) -> None:
    if (self.clear_user_data_dir and self.user_data_dir and
        self.user_data_dir.exists()):
      shutil.rmtree(self.user_data_dir)

  def setup(self) -> None:
    assert not self._is_running
    self.clear_user_data()
    self.start()
    assert self._is_running

  @abc.abstractmethod
  def start(self) -> None:
    pass

  def cleanup(self) -> None:
    """Removes temporary state after the results have been collected."""

  @abc.abstractmethod
  def window(self, index: int) -> BrowserWindow:
    """Returns the window proxy at index, raises IndexError if there is no
    such window."""

  def force_quit(self) -> None:
    logging.info("Browser.force_quit()")
    if self._pid:
      self.platform.terminate(self._pid)
    self._is_running = False

  def __str__(self) -> str:
    return f"{self.type.capitalize()}:{self.label}"
