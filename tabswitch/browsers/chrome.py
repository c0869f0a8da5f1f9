# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import logging
import pathlib
import re
import shlex
import shutil
import tempfile
from typing import Optional, Tuple

import selenium.common.exceptions
from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService

from tabswitch import helper
from tabswitch.browsers.webdriver import (WebDriverBrowser, WebDriverWindow,
                                          WebdriverException)
from tabswitch.flags import Flags

LOG_FILE_NAME = "chrome_debug.log"


class ChromeWebDriverWindow(WebDriverWindow):

  def append_tab(self, url: str) -> None:
    # Target.createTarget returns before the page has loaded, unlike
    # driver.get(), and leaves the new tab in the background.
    logging.debug("APPEND_TAB %s", url)
    result = self.driver.execute_cdp_cmd("Target.createTarget", {
        "url": url,
        "background": True
    })
    # chromedriver uses the DevTools target id as window handle.
    self._register_tab(result["targetId"])


class ChromeWebDriver(WebDriverBrowser):
  WINDOW_CLS = ChromeWebDriverWindow

  DEFAULT_FLAGS = (
      "--no-default-browser-check",
      "--disable-sync",
      "--no-experiments",
      "--disable-extensions",
      "--no-first-run",
  )
  # Writes chrome_debug.log into the user data dir and dumps all histograms
  # into it on shutdown.
  LOGGING_FLAGS = (
      "--enable-logging",
      "--dump-histograms-on-exit",
  )

  @classmethod
  def default_path(cls) -> pathlib.Path:
    return helper.search_app_or_executable(
        "Chrome Stable",
        macos=["Google Chrome.app"],
        linux=["google-chrome", "chrome"],
        win=["Google/Chrome/Application/chrome.exe"])

  def __init__(self,
               label: str,
               path: pathlib.Path,
               flags: Flags.InitialDataType = None,
               user_data_dir: Optional[pathlib.Path] = None,
               driver_path: Optional[pathlib.Path] = None,
               show_window: bool = True,
               platform: Optional[helper.Platform] = None):
    super().__init__(
        label,
        path,
        self.DEFAULT_FLAGS,
        user_data_dir,
        driver_path,
        type="chrome",
        platform=platform)
    self._flags.update(flags)
    self._flags.update(self.LOGGING_FLAGS)
    if not show_window:
      self._flags.set("--headless", "new")
    self._is_temporary_user_data_dir = False
    if self.user_data_dir is None:
      self.user_data_dir = pathlib.Path(
          tempfile.mkdtemp(prefix="tabswitch_chrome_"))
      self._is_temporary_user_data_dir = True
      self.clear_user_data_dir = True

  @property
  def log_file(self) -> Optional[pathlib.Path]:
    if not self.log_dir:
      return None
    return self.log_dir / LOG_FILE_NAME

  @property
  def is_temporary_user_data_dir(self) -> bool:
    return self._is_temporary_user_data_dir

  def cleanup(self) -> None:
    if not self._is_temporary_user_data_dir or not self.user_data_dir:
      return
    logging.debug("REMOVING USER DATA DIR: %s", self.user_data_dir)
    shutil.rmtree(self.user_data_dir, ignore_errors=True)

  def _extract_version(self) -> str:
    version_string = self.platform.app_version(self.path)
    # Sample output: "Google Chrome 90.0.4430.212 dev" => "90.0.4430.212"
    matches = re.findall(r"[\d\.]+", version_string)
    if not matches:
      raise ValueError(f"Could not extract version from '{version_string}'")
    return matches[0]

  def _get_chrome_args(self) -> Tuple[str, ...]:
    flags_copy = self.flags.copy()
    if self.user_data_dir:
      flags_copy["--user-data-dir"] = str(self.user_data_dir)
    return tuple(flags_copy.get_list())

  def _find_driver(self) -> Optional[pathlib.Path]:
    # Local builds ship chromedriver next to chrome.
    local_driver = self.path.parent / "chromedriver"
    if self.platform.is_win:
      local_driver = local_driver.with_suffix(".exe")
    if local_driver.is_file():
      return local_driver
    # Falls back to selenium-manager if nothing is found.
    return self.platform.which("chromedriver")

  def _start_driver(self,
                    driver_path: Optional[pathlib.Path]) -> webdriver.Remote:
    assert not self._is_running
    driver_path = driver_path or self._find_driver()
    options = ChromeOptions()
    args = self._get_chrome_args()
    for arg in args:
      options.add_argument(arg)
    options.binary_location = str(self.path)
    logging.info("STARTING BROWSER: %s", self.path)
    logging.info("STARTING BROWSER: driver: %s", driver_path or "auto")
    logging.info("STARTING BROWSER: args: %s", shlex.join(args))
    if driver_path:
      service = ChromeService(executable_path=str(driver_path))
    else:
      service = ChromeService()
    try:
      return webdriver.Chrome(options=options, service=service)
    except selenium.common.exceptions.WebDriverException as e:
      msg = f"Could not start webdriver for {self.path}"
      logging.error(msg)
      raise WebdriverException(msg) from e
