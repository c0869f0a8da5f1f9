# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
from typing import Optional, Sequence, Type

from tabswitch import cli_helper, helper
from tabswitch.browsers.browser import Browser
from tabswitch.browsers.chrome import ChromeWebDriver
from tabswitch.config import ProbeConfig
from tabswitch.exception import Handler, ProbeAssertionError
from tabswitch.probe import TabSwitchPerfProbe

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 2
EXIT_ERROR = 3

DESCRIPTION = """
Opens a fixed set of locally stored sites in new tabs, switches through
them and prints the tab switch whiteout duration:
  __tsw_timings = [<average>,<std_dev>]

The test data is expected in <exe-dir>/../../data/tab_switching/.
"""


class TabSwitchCLI:

  BROWSER_CLS: Type[ChromeWebDriver] = ChromeWebDriver
  PROBE_CLS: Type[TabSwitchPerfProbe] = TabSwitchPerfProbe

  def __init__(self) -> None:
    self.parser = argparse.ArgumentParser(
        prog="tabswitch",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=DESCRIPTION.strip())
    self.args = argparse.Namespace()
    self.probe: Optional[TabSwitchPerfProbe] = None
    self._setup_parser()

  def _setup_parser(self) -> None:
    browser_group = self.parser.add_argument_group("Browser Options")
    browser_group.add_argument(
        "--browser",
        type=cli_helper.parse_existing_file_path,
        help="Browser binary, defaults to the installed Chrome Stable.")
    browser_group.add_argument(
        "--driver-path",
        type=cli_helper.parse_existing_file_path,
        help="chromedriver binary, looked up next to the browser or on PATH "
        "if not provided.")
    browser_group.add_argument(
        "--user-data-dir",
        type=cli_helper.parse_dir_path,
        help="Browser profile directory, a temporary one is used by default.")
    window_group = browser_group.add_mutually_exclusive_group()
    window_group.add_argument(
        "--headless",
        dest="show_window",
        action="store_false",
        default=None,
        help="Run the browser without a visible window.")
    window_group.add_argument(
        "--show-window",
        dest="show_window",
        action="store_true",
        help="Run the browser with a visible window (default).")
    browser_group.add_argument(
        "--browser-flag",
        dest="browser_flags",
        action="append",
        default=[],
        help="Additional browser flag, can be repeated.")

    probe_group = self.parser.add_argument_group("Probe Options")
    probe_group.add_argument(
        "--config",
        type=cli_helper.parse_hjson_file_path,
        help="hjson config file, command line options take precedence.")
    probe_group.add_argument(
        "--sites",
        type=cli_helper.parse_sites,
        help="Comma-separated list of site directories to open.")
    probe_group.add_argument(
        "--exe-dir",
        type=cli_helper.parse_dir_path,
        help="Directory used to locate ../../data/tab_switching, "
        "defaults to the browser binary's directory.")
    probe_group.add_argument(
        "--log-dir",
        type=cli_helper.parse_dir_path,
        help="Directory containing the browser's debug log, "
        "defaults to the browser profile directory.")
    probe_group.add_argument(
        "--tab-timeout",
        type=cli_helper.parse_positive_float,
        help="Seconds to wait for new tabs and for each tab activation "
        "(default: 10).")
    probe_group.add_argument(
        "--log-timeout",
        type=cli_helper.parse_positive_float,
        help="Seconds to wait for the debug log. Waits forever by default.")
    self._add_verbosity_argument(self.parser)
    # Disable colors by default when piped to a file.
    has_color = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
    self.parser.add_argument(
        "--no-color",
        dest="color",
        action="store_false",
        default=has_color,
        help="Disable colored output")

  def _add_verbosity_argument(self, parser: argparse.ArgumentParser) -> None:
    debug_output_group = parser.add_argument_group(
        "Verbosity / Debugging Options")
    verbosity_group = debug_output_group.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        "-q",
        dest="verbosity",
        default=0,
        action="store_const",
        const=-1,
        help="Disable most output printing.")
    verbosity_group.add_argument(
        "--verbose",
        "-v",
        dest="verbosity",
        action="count",
        default=0,
        help=("Increase output verbosity. "
              "Repeat for more verbose output (0..2)."))
    debug_output_group.add_argument(
        "--throw",
        action="store_true",
        default=False,
        help="Directly throw exceptions")

  def _get_config(self, args: argparse.Namespace) -> ProbeConfig:
    config = ProbeConfig()
    if args.config:
      config = ProbeConfig.load(args.config)
    tab_timeout = None
    if args.tab_timeout:
      tab_timeout = dt.timedelta(seconds=args.tab_timeout)
    log_timeout = None
    if args.log_timeout:
      log_timeout = dt.timedelta(seconds=args.log_timeout)
    flags = None
    if args.browser_flags:
      flags = tuple(config.flags) + tuple(args.browser_flags)
    return config.merge(
        sites=tuple(args.sites) if args.sites else None,
        exe_dir=args.exe_dir,
        log_dir=args.log_dir,
        tab_count_timeout=tab_timeout,
        tab_activation_timeout=tab_timeout,
        log_timeout=log_timeout,
        show_window=args.show_window,
        flags=flags)

  def _get_browser(self, args: argparse.Namespace,
                   config: ProbeConfig) -> Browser:
    path = args.browser or self.BROWSER_CLS.default_path()
    return self.BROWSER_CLS(
        label="tabswitch",
        path=path,
        flags=config.flags,
        user_data_dir=args.user_data_dir,
        driver_path=args.driver_path,
        show_window=config.show_window)

  def _get_probe(self, browser: Browser,
                 config: ProbeConfig) -> TabSwitchPerfProbe:
    return self.PROBE_CLS(
        browser, config, exceptions=Handler(throw=self.args.throw))

  def run(self, argv: Sequence[str]) -> int:
    self.args = self.parser.parse_args(argv)
    self._initialize_logging()
    browser: Optional[Browser] = None
    try:
      config = self._get_config(self.args)
      logging.debug("CONFIG: %s", config.to_json())
      browser = self._get_browser(self.args, config)
      logging.debug("BROWSER: %s", browser.details_json())
      self.probe = self._get_probe(browser, config)
      self.probe.run()
    except KeyboardInterrupt:
      return EXIT_INTERRUPTED
    except ProbeAssertionError as e:
      if self.args.throw:
        raise
      self._log_failure(e)
      return EXIT_FAILURE
    except Exception as e:  # pylint: disable=broad-except
      if self.args.throw:
        raise
      self._log_failure(e)
      return EXIT_ERROR
    finally:
      if browser is not None:
        self._cleanup_browser(browser)
    if not self.probe.is_success:
      self.probe.exceptions.log()
      return EXIT_FAILURE
    return EXIT_SUCCESS

  def _cleanup_browser(self, browser: Browser) -> None:
    if browser.is_running:
      browser.force_quit()
    browser.cleanup()

  def _log_failure(self, e: Exception) -> None:
    logging.debug(e, exc_info=True)
    logging.error("")
    logging.error("#" * 80)
    logging.error("TAB SWITCHING UNSUCCESSFUL got %s:", e.__class__.__name__)
    logging.error("-" * 80)
    logging.error(e)
    logging.error("#" * 80)

  def _initialize_logging(self) -> None:
    logging.getLogger().setLevel(logging.INFO)
    console_handler = logging.StreamHandler()
    if self.args.verbosity == -1:
      console_handler.setLevel(logging.ERROR)
    elif self.args.verbosity == 0:
      console_handler.setLevel(logging.INFO)
    elif self.args.verbosity >= 1:
      console_handler.setLevel(logging.DEBUG)
      logging.getLogger().setLevel(logging.DEBUG)
    console_handler.addFilter(logging.Filter("root"))
    if self.args.color:
      console_handler.setFormatter(helper.ColoredLogFormatter())
    logging.getLogger().addHandler(console_handler)


def main(argv: Optional[Sequence[str]] = None) -> int:
  if argv is None:
    argv = sys.argv[1:]
  return TabSwitchCLI().run(argv)
