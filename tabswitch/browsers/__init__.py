# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from tabswitch.browsers.browser import Browser, BrowserWindow
from tabswitch.browsers.chrome import ChromeWebDriver
from tabswitch.browsers.webdriver import WebDriverBrowser, WebDriverWindow
