# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import pathlib
import sys
from unittest import mock

import pytest
from pyfakefs import fake_filesystem_unittest

from tabswitch.files import FileReader
from tests.mockbrowser import MockPlatform


class FileReaderTestCase(fake_filesystem_unittest.TestCase):

  def setUp(self):
    self.setUpPyfakefs()
    self.platform = MockPlatform()
    self.reader = FileReader(self.platform)
    self.path = pathlib.Path("/tmp/profile/chrome_debug.log")

  def test_read_missing(self):
    self.assertIsNone(self.reader.read_file_to_string(self.path))

  def test_read_directory(self):
    self.fs.create_dir(self.path)
    self.assertIsNone(self.reader.read_file_to_string(self.path))

  def test_read(self):
    self.fs.create_file(self.path, contents="line 1\nline 2\n")
    self.assertEqual(
        self.reader.read_file_to_string(self.path), "line 1\nline 2\n")

  def test_wait_for_existing_file(self):
    self.fs.create_file(self.path, contents="done")
    self.assertEqual(self.reader.wait_for_file(self.path), "done")

  def test_wait_for_file_appearing(self):
    attempts = []

    def sleep(seconds):
      attempts.append(seconds)
      if len(attempts) == 3:
        self.fs.create_file(self.path, contents="dumped")

    with mock.patch.object(self.platform, "sleep", side_effect=sleep):
      contents = self.reader.wait_for_file(self.path)
    self.assertEqual(contents, "dumped")
    self.assertEqual(len(attempts), 3)
    # Backoff grows between attempts.
    self.assertLess(attempts[0], attempts[1])
    self.assertLess(attempts[1], attempts[2])

  def test_wait_for_file_timeout(self):
    with self.assertRaises(TimeoutError):
      self.reader.wait_for_file(self.path, timeout=0.01)


if __name__ == "__main__":
  sys.exit(pytest.main([__file__]))
