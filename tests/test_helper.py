# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import datetime as dt
import itertools
import os
import sys
import unittest

import pytest

from tabswitch import helper
from tests.mockbrowser import MockPlatform


class WaitTestCase(unittest.TestCase):

  def test_invalid_wait_ranges(self):
    with self.assertRaises(AssertionError):
      helper.WaitRange(min=-1)
    with self.assertRaises(AssertionError):
      helper.WaitRange(timeout=0)
    with self.assertRaises(AssertionError):
      helper.WaitRange(factor=0.2)

  def test_range(self):
    durations = list(
        itertools.islice(helper.WaitRange(min=1, max=16, factor=2), 5))
    self.assertListEqual(durations, [
        dt.timedelta(seconds=1),
        dt.timedelta(seconds=2),
        dt.timedelta(seconds=4),
        dt.timedelta(seconds=8),
        dt.timedelta(seconds=16)
    ])

  def test_range_extended(self):
    durations = list(
        itertools.islice(helper.WaitRange(min=1, max=4, factor=2), 5))
    self.assertListEqual(
        durations,
        [
            dt.timedelta(seconds=1),
            dt.timedelta(seconds=2),
            dt.timedelta(seconds=4),
            # Capped at max
            dt.timedelta(seconds=4),
            dt.timedelta(seconds=4),
        ])

  def test_unbounded_range(self):
    wait_range = helper.WaitRange(min=1, timeout=None)
    self.assertIsNone(wait_range.timeout)

  def test_wait_with_backoff(self):
    data = []
    delta = 0.0005
    for time_spent, time_left in helper.wait_with_backoff(
        helper.WaitRange(min=0.01, max=0.05)):
      data.append((time_spent, time_left))
      if len(data) == 2:
        break
      helper.platform.sleep(delta)
    self.assertEqual(len(data), 2)
    first_time_spent, first_time_left = data[0]
    second_time_spent, second_time_left = data[1]
    self.assertLessEqual(first_time_spent + delta, second_time_spent)
    self.assertGreaterEqual(first_time_left, second_time_left + delta)

  def test_wait_with_backoff_unbounded(self):
    platform = MockPlatform()
    count = 0
    for _, time_left in helper.wait_with_backoff(
        helper.WaitRange(min=0.01, timeout=None), platform):
      self.assertIsNone(time_left)
      count += 1
      if count == 100:
        break
    self.assertEqual(count, 100)

  def test_wait_with_backoff_timeout(self):
    platform = MockPlatform()
    with self.assertRaises(TimeoutError):
      for _ in helper.wait_with_backoff(
          helper.WaitRange(min=0.01, timeout=0.01), platform):
        pass


class DurationsTestCase(unittest.TestCase):

  def test_single(self):
    durations = helper.Durations()
    self.assertTrue(len(durations) == 0)
    self.assertDictEqual(durations.to_json(), {})
    with durations.measure("a"):
      pass
    self.assertGreaterEqual(durations["a"].total_seconds(), 0)
    self.assertTrue(len(durations) == 1)
    self.assertIn("a", durations)
    self.assertNotIn("b", durations)

  def test_invalid_twice(self):
    durations = helper.Durations()
    with durations.measure("a"):
      pass
    with self.assertRaises(AssertionError):
      with durations.measure("a"):
        pass
    self.assertTrue(len(durations) == 1)
    self.assertListEqual(list(durations.to_json().keys()), ["a"])

  def test_multiple(self):
    durations = helper.Durations()
    for name in ["c", "a", "b"]:
      with durations.measure(name):
        pass
    self.assertEqual(len(durations), 3)
    self.assertListEqual(list(durations.to_json().keys()), ["c", "a", "b"])

  def test_measure_on_error(self):
    durations = helper.Durations()
    with self.assertRaises(ValueError):
      with durations.measure("a"):
        raise ValueError("boom")
    self.assertIn("a", durations)


class PlatformTestCase(unittest.TestCase):

  def test_sleep_zero(self):
    helper.platform.sleep(0)
    helper.platform.sleep(dt.timedelta())

  def test_current_process_is_running(self):
    self.assertTrue(helper.platform.is_process_running(os.getpid()))
    self.assertIsNotNone(helper.platform.process_info(os.getpid()))


if __name__ == "__main__":
  sys.exit(pytest.main([__file__]))
