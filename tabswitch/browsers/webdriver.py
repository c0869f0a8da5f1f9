# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import abc
import datetime as dt
import logging
import pathlib
import traceback
from typing import Any, Dict, List, Optional, Set

import selenium.common.exceptions
from selenium import webdriver

from tabswitch import helper
from tabswitch.browsers.browser import Browser, BrowserWindow
from tabswitch.flags import Flags


class WebdriverException(Exception):
  pass


class WebDriverWindow(BrowserWindow):
  """Maps the tabs of the single WebDriver window onto window handles.
  The driver does not guarantee any handle order, tabs opened through this
  window are therefore indexed in the order they were requested."""

  browser: WebDriverBrowser

  def __init__(self, browser: WebDriverBrowser, index: int):
    super().__init__(browser, index)
    self._tab_order: List[str] = list(self.driver.window_handles)
    self._seen: Set[str] = set(self._tab_order)

  @property
  def driver(self) -> webdriver.Remote:
    return self.browser.driver

  def _register_tab(self, handle: str) -> None:
    if handle not in self._tab_order:
      self._tab_order.append(handle)

  def _handles(self) -> List[str]:
    current = list(self.driver.window_handles)
    current_set = set(current)
    # Drop closed tabs, but keep requested tabs the driver has not reported
    # yet.
    self._tab_order = [
        handle for handle in self._tab_order
        if handle in current_set or handle not in self._seen
    ]
    for handle in current:
      self._register_tab(handle)
    self._seen.update(current_set)
    return [handle for handle in self._tab_order if handle in current_set]

  def tab_count(self) -> int:
    return len(self._handles())

  def append_tab(self, url: str) -> None:
    logging.debug("APPEND_TAB %s", url)
    self.driver.switch_to.new_window("tab")
    self._register_tab(self.driver.current_window_handle)
    self.driver.get(url)

  def activate_tab(self, index: int) -> None:
    handles = self._handles()
    if not 0 <= index < len(handles):
      raise IndexError(f"Invalid tab index={index}, tab count={len(handles)}")
    logging.debug("ACTIVATE_TAB %s", index)
    self.driver.switch_to.window(handles[index])

  def active_tab_index(self) -> Optional[int]:
    try:
      current = self.driver.current_window_handle
      handles = self._handles()
      if current not in handles:
        return None
      visibility = self.driver.execute_script("return document.visibilityState")
    except selenium.common.exceptions.WebDriverException as e:
      logging.debug("Could not query active tab: %s", e.msg)
      return None
    if visibility != "visible":
      return None
    return handles.index(current)

  def close(self) -> bool:
    return self.browser.close()


class WebDriverBrowser(Browser, metaclass=abc.ABCMeta):
  WINDOW_CLS = WebDriverWindow
  # Max time to wait for the browser process to go away after quitting.
  SHUTDOWN_TIMEOUT = dt.timedelta(seconds=10)

  _driver: Optional[webdriver.Remote]

  def __init__(self,
               label: str,
               path: Optional[pathlib.Path],
               flags: Flags.InitialDataType = None,
               user_data_dir: Optional[pathlib.Path] = None,
               driver_path: Optional[pathlib.Path] = None,
               type: Optional[str] = None,  # pylint: disable=redefined-builtin
               platform: Optional[helper.Platform] = None):
    super().__init__(label, path, flags, user_data_dir, type, platform)
    self._driver = None
    self._driver_path = driver_path
    self._driver_pid: Optional[int] = None
    self._window: Optional[WebDriverWindow] = None

  @property
  def driver(self) -> webdriver.Remote:
    assert self._driver, f"{self} has no running webdriver"
    return self._driver

  def details_json(self) -> Dict[str, Any]:
    details = super().details_json()
    details["driver"] = str(self._driver_path or "")
    return details

  def start(self) -> None:
    assert not self._is_running
    self._driver = self._start_driver(self._driver_path)
    if hasattr(self._driver, "service"):
      self._driver_pid = self._driver.service.process.pid
      self._pid = self._find_browser_pid(
          self.platform.process_children(self._driver_pid))
    self._is_running = True
    # Force main window to foreground.
    self._driver.switch_to.window(self._driver.current_window_handle)

  def _find_browser_pid(self, children: List[Dict[str, Any]]) -> Optional[int]:
    """Returns the pid of the driver child running self.path.
    Launchers are often symlinks or wrapper scripts, so the binary path is
    resolved first. A lone child is taken as the browser."""
    if self.path:
      browser_path = self.path.resolve()
      for child in children:
        exe = child.get("exe")
        if exe and pathlib.Path(exe).resolve() == browser_path:
          return int(child["pid"])
    if len(children) == 1:
      return int(children[0]["pid"])
    logging.debug("Could not find browser process for %s in %s", self.path,
                  children)
    return None

  @abc.abstractmethod
  def _start_driver(self,
                    driver_path: Optional[pathlib.Path]) -> webdriver.Remote:
    pass

  def window(self, index: int) -> BrowserWindow:
    if index != 0:
      raise IndexError(f"{self} only exposes window 0, got index={index}")
    if not self._is_running or not self.driver.window_handles:
      raise IndexError(f"{self} has no open window")
    if self._window is None:
      self._window = self.WINDOW_CLS(self, index)
    return self._window

  def close(self) -> bool:
    """Quits the browser and waits for the browser process to exit."""
    logging.info("CLOSING BROWSER %s", self)
    try:
      self.driver.quit()
    except selenium.common.exceptions.WebDriverException as e:
      logging.error("Could not quit browser: %s", e.msg)
      self.force_quit()
      return False
    finally:
      self._is_running = False
      self._driver = None
      self._window = None
    return self._wait_for_process_exit()

  def _wait_for_process_exit(self) -> bool:
    pid = self._pid
    self._pid = None
    if pid is None:
      return True
    wait_range = helper.WaitRange(
        min=0.1, max=1, timeout=self.SHUTDOWN_TIMEOUT.total_seconds())
    try:
      for _ in helper.wait_with_backoff(wait_range, self.platform):
        if not self.platform.is_process_running(pid):
          return True
    except TimeoutError:
      logging.error("Browser process pid=%s did not exit", pid)
    return False

  def force_quit(self) -> None:
    if self._driver is None:
      return
    logging.debug("QUIT")
    try:
      try:
        self._driver.quit()
      except selenium.common.exceptions.InvalidSessionIdException:
        return
    except Exception as e:  # pylint: disable=broad-except
      logging.debug("Could not quit browser: %s\n%s", e, traceback.format_exc())
      super().force_quit()
    finally:
      self._is_running = False
      self._driver = None
      self._window = None

