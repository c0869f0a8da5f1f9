# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import dataclasses
import logging
from typing import Optional, Tuple

WHITEOUT_HISTOGRAM = "MPArch.RWHH_WhiteoutDuration"
HISTOGRAM_MARKER = f"Histogram: {WHITEOUT_HISTOGRAM}"
AVERAGE_MARKER = "average = "
AVERAGE_TERMINATOR = ","
STD_DEV_MARKER = "standard deviation = "
STD_DEV_TERMINATOR = " "

DEFAULT_VALUE = "0.0"
RESULT_LINE_PREFIX = "__tsw_timings"


@dataclasses.dataclass(frozen=True)
class LogScrapeResult:
  """Average and standard deviation as printed by the browser's histogram
  dump, kept as opaque decimal text."""
  average: str = DEFAULT_VALUE
  std_dev: str = DEFAULT_VALUE
  found: bool = False

  def format_line(self) -> str:
    # Consumed by the page cycler graphing scripts, keep the exact format:
    # __tsw_timings = [512.00,419.17]
    return f"{RESULT_LINE_PREFIX} = [{self.average},{self.std_dev}]"

  def __str__(self) -> str:
    return self.format_line()


def _find_value(contents: str,
                marker: str,
                terminator: str,
                start: int,
                stop_at_line_end: bool = False) -> Optional[Tuple[str, int]]:
  """Returns the text between marker and terminator, searching from start,
  and the offset where the value begins. With stop_at_line_end a line break
  also ends the value."""
  marker_pos = contents.find(marker, start)
  if marker_pos == -1:
    return None
  value_start = marker_pos + len(marker)
  value_end = contents.find(terminator, value_start)
  if stop_at_line_end:
    line_end = contents.find("\n", value_start)
    if line_end != -1 and (value_end == -1 or line_end < value_end):
      value_end = line_end
  if value_end == -1:
    return None
  return contents[value_start:value_end].rstrip("\r"), value_start


def scrape_whiteout_duration(contents: str) -> LogScrapeResult:
  """Extracts average and standard deviation of the whiteout duration
  histogram from the browser's debug log contents.

  Missing histograms or partially missing fields yield the default values.
  """
  histogram_pos = contents.find(HISTOGRAM_MARKER)
  if histogram_pos == -1:
    logging.warning("Histogram %s not found in log", WHITEOUT_HISTOGRAM)
    return LogScrapeResult()
  average_match = _find_value(contents, AVERAGE_MARKER, AVERAGE_TERMINATOR,
                              histogram_pos)
  if average_match is None:
    logging.warning("Histogram %s has no '%s' field", WHITEOUT_HISTOGRAM,
                    AVERAGE_MARKER.strip())
    return LogScrapeResult()
  average, average_pos = average_match
  std_dev_match = _find_value(
      contents,
      STD_DEV_MARKER,
      STD_DEV_TERMINATOR,
      average_pos,
      stop_at_line_end=True)
  if std_dev_match is None:
    logging.warning("Histogram %s has no '%s' field", WHITEOUT_HISTOGRAM,
                    STD_DEV_MARKER.strip())
    return LogScrapeResult()
  std_dev, _ = std_dev_match
  if not average or not std_dev:
    logging.warning("Histogram %s has empty fields: average=%r std_dev=%r",
                    WHITEOUT_HISTOGRAM, average, std_dev)
    return LogScrapeResult()
  return LogScrapeResult(average, std_dev, found=True)
