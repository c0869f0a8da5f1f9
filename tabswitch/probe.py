# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import logging
import pathlib
import sys
from typing import TYPE_CHECKING, Optional, TextIO

from tabulate import tabulate

from tabswitch import helper
from tabswitch.config import ProbeConfig
from tabswitch.exception import Handler, ProbeAssertionError
from tabswitch.files import FileReader
from tabswitch.histogram import LogScrapeResult, scrape_whiteout_duration
from tabswitch.paths import PathResolver
from tabswitch.tabs import TabSet, file_url

if TYPE_CHECKING:
  from tabswitch.browsers.browser import Browser, BrowserWindow


def check(condition: bool, message: str) -> None:
  if not condition:
    raise ProbeAssertionError(message)


class TabSwitchPerfProbe:
  """
  Opens static copies of a fixed set of sites in separate tabs, switches
  linearly through them and reports the tab switch whiteout duration the
  browser dumps into its debug log on exit.

  Output format, parsed by the page cycler graphing scripts:
    __tsw_timings = [512.00,419.17]
  where 512.00 is the average and 419.17 the standard deviation.
  """
  NAME = "tab_switching"

  def __init__(self,
               browser: Browser,
               config: ProbeConfig = ProbeConfig(),
               path_resolver: Optional[PathResolver] = None,
               file_reader: Optional[FileReader] = None,
               exceptions: Optional[Handler] = None,
               out: Optional[TextIO] = None):
    self.browser = browser
    self.config = config
    self.tab_set: TabSet = config.tab_set
    if path_resolver is None:
      path_resolver = self._default_path_resolver(browser, config)
    self.path_resolver = path_resolver
    self.file_reader = file_reader or FileReader(browser.platform)
    self.exceptions = exceptions or Handler()
    self._out = out
    self.durations = helper.Durations()
    self.result: Optional[LogScrapeResult] = None
    # Fails hard if the executable directory cannot be resolved, there is no
    # test data without it.
    self.path_prefix: str = self.path_resolver.tab_switching_data_prefix()

  @classmethod
  def _default_path_resolver(cls, browser: Browser,
                             config: ProbeConfig) -> PathResolver:
    log_dir = config.log_dir or browser.log_dir
    if config.exe_dir:
      return PathResolver(config.exe_dir, log_dir)
    executable = browser.path if browser.path.name else None
    return PathResolver.for_executable(executable, log_dir)

  @property
  def out(self) -> TextIO:
    return self._out or sys.stdout

  @property
  def is_success(self) -> bool:
    return self.exceptions.is_success

  def tab_file_path(self, site: str) -> str:
    return self.tab_set.file_path(self.path_prefix, site)

  def open_tabs(self, window: BrowserWindow) -> int:
    """Requests one new tab per site, returns the number of requested tabs.
    Does not wait for the tabs to load."""
    number_of_new_tabs_opened = 0
    for site in self.tab_set:
      file_path = self.tab_file_path(site)
      if not pathlib.Path(file_path).is_file():
        logging.warning("Missing tab switching data: %s", file_path)
      window.append_tab(file_url(file_path))
      number_of_new_tabs_opened += 1
    return number_of_new_tabs_opened

  def run(self) -> LogScrapeResult:
    if not self.browser.is_running:
      with self.durations.measure("start"):
        self.browser.setup()
    try:
      window = self.browser.window(0)
    except IndexError as e:
      raise ProbeAssertionError(
          f"Could not get window 0 of {self.browser}") from e

    try:
      initial_tab_count = window.tab_count()
    except Exception as e:
      raise ProbeAssertionError(f"Could not read tab count of {window}") from e

    with self.durations.measure("open_tabs"):
      new_tab_count = self.open_tabs(window)
      expected_tab_count = initial_tab_count + new_tab_count
      final_tab_count = window.wait_for_tab_count_to_change(
          initial_tab_count,
          self.config.tab_count_timeout,
          expected_count=expected_tab_count)
    check(final_tab_count is not None,
          f"Timeout waiting for {new_tab_count} new tabs, "
          f"initial tab count={initial_tab_count}")
    assert final_tab_count is not None
    check(final_tab_count == expected_tab_count,
          f"Expected {expected_tab_count} tabs, but got {final_tab_count}")

    with self.durations.measure("switch_tabs"):
      self.switch_tabs(window, initial_tab_count, final_tab_count)

    # Closing the browser forces the histogram dump into the log.
    with self.durations.measure("close"):
      self.close_browser(window)

    log_file = self.path_resolver.log_file(self.config.log_file_name)
    with self.durations.measure("wait_for_log"):
      contents = self.wait_for_log(log_file)

    self.result = scrape_whiteout_duration(contents)
    self.log_summary()
    print(self.result.format_line(), file=self.out, flush=True)
    return self.result

  def switch_tabs(self, window: BrowserWindow, initial_tab_count: int,
                  final_tab_count: int) -> None:
    """Switches linearly through the newly opened tabs, waiting for each tab
    to become active before moving on."""
    window.activate_tab(0)
    timeout = self.config.tab_activation_timeout
    for index in range(initial_tab_count, final_tab_count):
      window.activate_tab(index)
      check(
          window.wait_for_tab_to_become_active(index, timeout),
          f"Timeout waiting for tab {index} to become active")

  def close_browser(self, window: BrowserWindow) -> bool:
    """Closes the browser, failures are recorded but do not stop the run."""
    with self.exceptions.info("Closing browser"):
      try:
        application_closed = window.close()
      except Exception as e:  # pylint: disable=broad-except
        self.exceptions.handle(e)
        return False
      return self.exceptions.expect(
          application_closed, f"Browser {self.browser} did not close cleanly")

  def wait_for_log(self, log_file: pathlib.Path) -> str:
    log_timeout = self.config.log_timeout
    if log_timeout is None:
      # No upper bound, a browser that never writes its log blocks here.
      return self.file_reader.wait_for_file(log_file)
    try:
      return self.file_reader.wait_for_file(
          log_file, timeout=log_timeout.total_seconds())
    except TimeoutError as e:
      raise ProbeAssertionError(
          f"Timeout waiting for log file after {log_timeout}: {log_file}") from e

  def log_summary(self) -> None:
    rows = list(self.durations.to_json().items())
    logging.info("PHASE DURATIONS:\n%s",
                 tabulate(rows, headers=["phase", "seconds"], floatfmt=".3f"))
    assert self.result
    if self.result.found:
      logging.info("WHITEOUT DURATION: average=%s std_dev=%s",
                   self.result.average, self.result.std_dev)
    else:
      logging.warning("WHITEOUT DURATION: no data, reporting defaults")
