# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from tabswitch.histogram import LogScrapeResult, scrape_whiteout_duration
from tabswitch.probe import TabSwitchPerfProbe
from tabswitch.tabs import DEFAULT_SITES, TabSet

__version__ = "0.1.0"
