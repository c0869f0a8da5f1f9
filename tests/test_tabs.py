# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import os
import sys
import unittest

import pytest

from tabswitch import tabs


class TabSetTestCase(unittest.TestCase):

  def test_default(self):
    tab_set = tabs.TabSet.default()
    self.assertEqual(len(tab_set), 10)
    self.assertEqual(tab_set.sites[0], "espn.go.com")
    self.assertEqual(tab_set.sites[-1], "www.altavista.com")
    self.assertEqual(list(tab_set), list(tabs.DEFAULT_SITES))

  def test_file_path(self):
    tab_set = tabs.TabSet(["a.com", "b.com"])
    prefix = os.sep + os.path.join("data", "tab_switching") + os.sep
    self.assertEqual(
        tab_set.file_path(prefix, "a.com"),
        prefix + "a.com" + os.sep + "index.html")
    self.assertTupleEqual(
        tab_set.file_paths(prefix), (
            prefix + "a.com" + os.sep + "index.html",
            prefix + "b.com" + os.sep + "index.html",
        ))

  def test_invalid(self):
    with self.assertRaises(ValueError):
      tabs.TabSet([])
    with self.assertRaises(ValueError):
      tabs.TabSet([""])
    with self.assertRaises(ValueError):
      tabs.TabSet(["a.com", "a.com"])
    with self.assertRaises(ValueError):
      tabs.TabSet(["a.com/index.html"])
    with self.assertRaises(ValueError):
      tabs.TabSet(["a.com", "b\\c"])
    with self.assertRaises(ValueError):
      tabs.TabSet(["a.com", None])

  def test_immutable_copy(self):
    sites = ["a.com", "b.com"]
    tab_set = tabs.TabSet(sites)
    sites.append("c.com")
    self.assertEqual(len(tab_set), 2)
    self.assertEqual(tab_set, tabs.TabSet(["a.com", "b.com"]))
    self.assertNotEqual(tab_set, tabs.TabSet(["b.com", "a.com"]))

  def test_parse_sites(self):
    self.assertListEqual(
        list(tabs.parse_sites("a.com, b.com,,c.com ")),
        ["a.com", "b.com", "c.com"])
    self.assertListEqual(list(tabs.parse_sites("")), [])


@unittest.skipIf(sys.platform == "win32", "posix paths only")
class FileUrlTestCase(unittest.TestCase):

  def test_file_url(self):
    self.assertEqual(
        tabs.file_url("/data/tab_switching/allegro.pl/index.html"),
        "file:///data/tab_switching/allegro.pl/index.html")


if __name__ == "__main__":
  sys.exit(pytest.main([__file__]))
