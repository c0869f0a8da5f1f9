# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import os
import pathlib
import sys

import pytest
from pyfakefs import fake_filesystem_unittest

from tabswitch.paths import PathResolutionError, PathResolver


class PathResolverTestCase(fake_filesystem_unittest.TestCase):

  def setUp(self):
    self.setUpPyfakefs()
    self.exe_dir = pathlib.Path("/chromium/src/out/Release")
    self.fs.create_dir(self.exe_dir)

  def test_tab_switching_data_prefix(self):
    resolver = PathResolver(self.exe_dir)
    prefix = resolver.tab_switching_data_prefix()
    expected = str(pathlib.Path("/chromium/src/data/tab_switching")) + os.sep
    self.assertEqual(prefix, expected)
    self.assertTrue(prefix.endswith(os.sep))

  def test_for_executable(self):
    self.fs.create_file(self.exe_dir / "chrome")
    resolver = PathResolver.for_executable(self.exe_dir / "chrome")
    self.assertEqual(resolver.exe_dir(), self.exe_dir)

  def test_missing_exe_dir(self):
    resolver = PathResolver(pathlib.Path("/does/not/exist"))
    with self.assertRaises(PathResolutionError):
      resolver.exe_dir()
    with self.assertRaises(PathResolutionError):
      resolver.tab_switching_data_prefix()

  def test_log_file(self):
    resolver = PathResolver(self.exe_dir, "/tmp/profile")
    self.assertEqual(
        resolver.log_file("chrome_debug.log"),
        pathlib.Path("/tmp/profile/chrome_debug.log"))

  def test_missing_log_dir(self):
    resolver = PathResolver(self.exe_dir)
    with self.assertRaises(PathResolutionError):
      resolver.log_dir()

  def test_join(self):
    resolver = PathResolver(self.exe_dir)
    self.assertEqual(
        resolver.join("/a", "b", "c"), pathlib.Path("/a") / "b" / "c")


if __name__ == "__main__":
  sys.exit(pytest.main([__file__]))
