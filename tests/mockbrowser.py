# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import abc
import pathlib
from typing import List, Optional, Set, Tuple

from pyfakefs import fake_filesystem_unittest

from tabswitch import helper
from tabswitch.browsers.browser import Browser, BrowserWindow
from tabswitch.tabs import DEFAULT_SITES

ActivePlatformClass = type(helper.platform)

SAMPLE_LOG = (
    "[1234:5678:0101/000000.000:INFO:chrome_main.cc(123)] Starting\n"
    "Histogram: MPArch.RWHH_WhiteoutDuration recorded 9 samples, "
    "average = 512.00, standard deviation = 419.17 (flags = 0x1)\n"
    "0  ------------------------------------O (3 = 33.3%)\n"
)


class MockPlatform(ActivePlatformClass):

  def __init__(self):
    self.running_pids: Set[int] = set()

  def sleep(self, seconds):
    pass

  def is_process_running(self, pid: int) -> bool:
    return pid in self.running_pids

  def terminate(self, pid: int) -> None:
    self.running_pids.discard(pid)

  def app_version(self, app_path: pathlib.Path) -> str:
    return "Google Chrome 115.0.5790.170"


mock_platform = MockPlatform()


class MockWindow(BrowserWindow):
  """Simulates a tab strip. Appended tabs only show up in the tab count after
  a later tab_count() call, like asynchronously created tabs."""

  browser: MockBrowser

  def __init__(self, browser: MockBrowser, index: int):
    super().__init__(browser, index)
    self.tabs: List[str] = ["about:blank"]
    self.pending_tabs: List[str] = []
    self.active_index: int = 0
    # Tabs that never report becoming active.
    self.stuck_tabs: Set[int] = set()
    # Number of appended tabs that never show up.
    self.lost_tabs: int = 0
    self.events: List[Tuple] = []

  def tab_count(self) -> int:
    if self.browser.tab_count_error:
      raise self.browser.tab_count_error
    pending = self.pending_tabs[:len(self.pending_tabs) - self.lost_tabs]
    self.tabs.extend(pending)
    self.pending_tabs = self.pending_tabs[len(pending):]
    return len(self.tabs)

  def append_tab(self, url: str) -> None:
    self.events.append(("append", url))
    self.pending_tabs.append(url)

  def activate_tab(self, index: int) -> None:
    assert 0 <= index < len(self.tabs), f"Invalid tab index {index}"
    self.events.append(("activate", index))
    self.active_index = index

  def active_tab_index(self) -> Optional[int]:
    if self.active_index in self.stuck_tabs:
      return None
    return self.active_index

  def wait_for_tab_to_become_active(self, index, timeout) -> bool:
    result = super().wait_for_tab_to_become_active(index, timeout)
    self.events.append(("active", index, result))
    return result

  def close(self) -> bool:
    self.events.append(("close",))
    return self.browser.close()


class MockBrowser(Browser):
  BIN_PATH = pathlib.Path("/chromium/src/out/Release/chrome")
  VERSION = "115.0.5790.170"

  @classmethod
  def setup_fs(cls, fs) -> None:
    fs.create_file(cls.BIN_PATH)

  def __init__(self,
               label: str = "mock",
               path: Optional[pathlib.Path] = None,
               user_data_dir: Optional[pathlib.Path] = None,
               *args,
               **kwargs):
    kwargs["type"] = "chrome"
    kwargs.setdefault("platform", mock_platform)
    super().__init__(label, path or self.BIN_PATH, None, user_data_dir, *args,
                     **kwargs)
    self.did_run = False
    self.did_cleanup = False
    self.close_result = True
    self.close_error: Optional[Exception] = None
    self.tab_count_error: Optional[Exception] = None
    self.has_window = True
    # Written to <log_dir>/chrome_debug.log when the browser closes.
    self.log_contents: Optional[str] = SAMPLE_LOG
    self._window: Optional[MockWindow] = None

  def _extract_version(self) -> str:
    return self.VERSION

  def start(self) -> None:
    assert not self._is_running
    self._is_running = True
    self.did_run = True

  def window(self, index: int) -> MockWindow:
    if index != 0 or not self.has_window:
      raise IndexError(f"No window {index}")
    if self._window is None:
      self._window = MockWindow(self, index)
    return self._window

  def close(self) -> bool:
    assert self._is_running
    self._is_running = False
    if self.close_error:
      raise self.close_error
    if self.log_contents is not None and self.log_dir:
      log_file = self.log_dir / "chrome_debug.log"
      log_file.parent.mkdir(parents=True, exist_ok=True)
      log_file.write_text(self.log_contents, encoding="utf-8")
    return self.close_result

  def force_quit(self) -> None:
    self._is_running = False

  def cleanup(self) -> None:
    self.did_cleanup = True


class BaseTabSwitchTestCase(
    fake_filesystem_unittest.TestCase, metaclass=abc.ABCMeta):

  DATA_DIR = pathlib.Path("/chromium/src/data/tab_switching")
  USER_DATA_DIR = pathlib.Path("/tmp/tabswitch_profile")

  def setUp(self):
    self.setUpPyfakefs()
    MockBrowser.setup_fs(self.fs)
    for site in DEFAULT_SITES:
      self.fs.create_file(self.DATA_DIR / site / "index.html")
    self.fs.create_dir(self.USER_DATA_DIR)
    self.platform = mock_platform
    self.browser = MockBrowser(
        "mock", user_data_dir=self.USER_DATA_DIR, platform=self.platform)
