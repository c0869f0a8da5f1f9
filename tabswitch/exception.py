# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import logging
import sys
import traceback
from dataclasses import dataclass
from types import TracebackType
from typing import List, Optional, Tuple, Type

TInfoStack = Tuple[str, ...]


class ProbeAssertionError(AssertionError):
  """A fatal check of the tab switching run failed."""


class ExpectationError(AssertionError):
  """A non-fatal check failed, the run continues."""


@dataclass
class Entry:
  traceback: str
  exception: BaseException
  info_stack: TInfoStack


class ContextManager:

  def __init__(self, exception_handler: Handler, entries: Tuple[str, ...]):
    self._handler = exception_handler
    self._added_info_stack_entries = entries
    self._previous_info_stack: TInfoStack = ()

  def __enter__(self):
    self._previous_info_stack = self._handler.info_stack
    self._handler._info_stack = self._previous_info_stack + (
        self._added_info_stack_entries)

  def __exit__(self, exception_type: Optional[Type[BaseException]],
               exception_value: Optional[BaseException],
               traceback: Optional[TracebackType]) -> bool:
    self._handler._info_stack = self._previous_info_stack
    return False


class Handler:
  """Collects non-fatal exceptions together with an info stack describing
  what was going on when they were raised."""

  def __init__(self, throw: bool = False):
    self._exceptions: List[Entry] = []
    self.throw: bool = throw
    # The info_stack adds additional meta information to handle exceptions.
    # Unlike the source-based backtrace, this can contain dynamic information
    # for easier debugging.
    self._info_stack: TInfoStack = ()

  @property
  def is_success(self) -> bool:
    return len(self._exceptions) == 0

  @property
  def info_stack(self) -> TInfoStack:
    return self._info_stack

  @property
  def exceptions(self) -> List[Entry]:
    return self._exceptions

  def info(self, *stack_entries: str) -> ContextManager:
    return ContextManager(self, stack_entries)

  def expect(self, condition: bool, message: str) -> bool:
    """Records an ExpectationError if condition is false, without stopping
    the caller (unless throw is set)."""
    if condition:
      return True
    try:
      raise ExpectationError(message)
    except ExpectationError as e:
      self.handle(e)
    return False

  def handle(self, e: BaseException) -> None:
    if isinstance(e, KeyboardInterrupt):
      # Fast exit on KeyboardInterrupts for a better user experience.
      sys.exit(0)
    tb: str = traceback.format_exc()
    self._exceptions.append(Entry(tb, e, self.info_stack))
    logging.info("Intermediate Exception: %s", e)
    logging.debug(tb)
    if self.throw:
      raise e

  def log(self) -> None:
    if self.is_success:
      return
    logging.error("ERRORS occurred:")
    for entry in self._exceptions:
      logging.debug("-" * 80)
      logging.debug(entry.exception)
      logging.debug(entry.traceback)
    for entry in self._exceptions:
      logging.error("=" * 80)
      if entry.info_stack:
        info = "Info: "
        joiner = "\n" + (" " * (len(info) - 2)) + "> "
        logging.error("%s%s", info, joiner.join(entry.info_stack))
      logging.error("Type: %s:", entry.exception.__class__.__name__)
      logging.error("      %s", entry.exception)
