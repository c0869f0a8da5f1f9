# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import abc
import datetime as dt
import logging
import os
import pathlib
import shlex
import shutil
import subprocess
import sys
import time
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import psutil


class TTYColor:
  YELLOW = "\033[38;5;3m"
  GREEN = "\033[38;5;2m"
  RED = "\033[38;5;1m"

  BOLD = "\033[1m"
  RESET = "\033[0m"


class ColoredLogFormatter(logging.Formatter):

  FORMAT = "%(message)s"

  FORMATS = {
      logging.DEBUG: FORMAT + " (%(filename)s:%(lineno)d)",
      logging.INFO: TTYColor.GREEN + FORMAT + TTYColor.RESET,
      logging.WARNING: TTYColor.YELLOW + FORMAT + TTYColor.RESET,
      logging.ERROR: TTYColor.RED + FORMAT + TTYColor.RESET,
      logging.CRITICAL: TTYColor.BOLD + TTYColor.RED + FORMAT + TTYColor.RESET,
  }

  def format(self, record):
    log_fmt = self.FORMATS.get(record.levelno)
    formatter = logging.Formatter(log_fmt)
    return formatter.format(record)


class Platform(abc.ABC):

  @property
  @abc.abstractmethod
  def short_name(self) -> str:
    pass

  @property
  def is_macos(self) -> bool:
    return False

  @property
  def is_linux(self) -> bool:
    return False

  @property
  def is_win(self) -> bool:
    return False

  def search_binary(self, app_path: pathlib.Path) -> Optional[pathlib.Path]:
    return None

  def sleep(self, seconds: float) -> None:
    if isinstance(seconds, dt.timedelta):
      seconds = seconds.total_seconds()
    if seconds == 0:
      return
    logging.debug("WAIT %ss", seconds)
    time.sleep(seconds)

  def sh_stdout(self, *args, encoding: str = "utf-8") -> str:
    logging.debug("SHELL: %s", shlex.join(map(str, args)))
    completed_process = subprocess.run(
        list(map(str, args)), capture_output=True, check=True)
    return completed_process.stdout.decode(encoding)

  def app_version(self, app_path: pathlib.Path) -> str:
    assert app_path.exists(), f"Binary {app_path} does not exist."
    return self.sh_stdout(app_path, "--version").strip()

  def which(self, binary: str) -> Optional[pathlib.Path]:
    result = shutil.which(binary)
    if not result:
      return None
    return pathlib.Path(result)

  def process_info(self, pid: int) -> Optional[Dict[str, Any]]:
    try:
      return psutil.Process(pid).as_dict()
    except psutil.NoSuchProcess:
      return None

  def process_children(self,
                       parent_pid: int,
                       recursive: bool = False) -> List[Dict[str, Any]]:
    try:
      process = psutil.Process(parent_pid)
    except psutil.NoSuchProcess:
      return []
    return [
        child.as_dict(attrs=("pid", "exe", "name", "status"))
        for child in process.children(recursive=recursive)
    ]

  def is_process_running(self, pid: int) -> bool:
    info = self.process_info(pid)
    if info is None:
      return False
    return info["status"] not in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD)

  def terminate(self, pid: int) -> None:
    try:
      process = psutil.Process(pid)
    except psutil.NoSuchProcess:
      return
    process.terminate()


class WinPlatform(Platform):
  SEARCH_PATHS = (
      pathlib.Path("."),
      pathlib.Path(os.path.expandvars("%ProgramFiles%")),
      pathlib.Path(os.path.expandvars("%ProgramFiles(x86)%")),
      pathlib.Path(os.path.expandvars("%APPDATA%")),
      pathlib.Path(os.path.expandvars("%LOCALAPPDATA%")),
  )

  @property
  def is_win(self) -> bool:
    return True

  @property
  def short_name(self) -> str:
    return "win"

  def search_binary(self, app_path: pathlib.Path) -> Optional[pathlib.Path]:
    if app_path.suffix != ".exe":
      raise ValueError("Expected executable path with '.exe' suffix, "
                       f"but got: '{app_path.name}'")
    for path in self.SEARCH_PATHS:
      # Recreate Path object for easier pyfakefs testing
      result_path = pathlib.Path(path) / app_path
      if result_path.exists():
        return result_path
    return None


class MacOSPlatform(Platform):

  @property
  def is_macos(self) -> bool:
    return True

  @property
  def short_name(self) -> str:
    return "macos"

  def search_binary(self, app_path: pathlib.Path) -> Optional[pathlib.Path]:
    if app_path.suffix != ".app":
      raise ValueError("Expected app name with '.app' suffix, "
                       f"but got: '{app_path.name}'")
    for search_root in (pathlib.Path("/Applications"),
                        pathlib.Path.home() / "Applications"):
      candidate = search_root / app_path
      if not candidate.is_dir():
        continue
      binaries = list((candidate / "Contents" / "MacOS").iterdir())
      if len(binaries) == 1:
        return binaries[0]
      # Prefer the binary named after the app bundle.
      for binary in binaries:
        if binary.name == app_path.stem:
          return binary
    return None


class LinuxPlatform(Platform):
  SEARCH_PATHS = (
      pathlib.Path("."),
      pathlib.Path("/usr/local/sbin"),
      pathlib.Path("/usr/local/bin"),
      pathlib.Path("/usr/sbin"),
      pathlib.Path("/usr/bin"),
      pathlib.Path("/sbin"),
      pathlib.Path("/bin"),
      pathlib.Path("/opt/google"),
  )

  @property
  def is_linux(self) -> bool:
    return True

  @property
  def short_name(self) -> str:
    return "linux"

  def search_binary(self, app_path: pathlib.Path) -> Optional[pathlib.Path]:
    for path in self.SEARCH_PATHS:
      # Recreate Path object for easier pyfakefs testing
      result_path = pathlib.Path(path) / app_path
      if result_path.exists():
        return result_path
    return None


if sys.platform == "linux":
  platform: Platform = LinuxPlatform()
elif sys.platform == "darwin":
  platform = MacOSPlatform()
elif sys.platform == "win32":
  platform = WinPlatform()
else:
  raise Exception("Unsupported Platform")


def search_app_or_executable(name: str,
                             macos: Sequence[str] = (),
                             win: Sequence[str] = (),
                             linux: Sequence[str] = ()) -> pathlib.Path:
  executables: Sequence[str] = []
  if platform.is_macos:
    executables = macos
  elif platform.is_win:
    executables = win
  elif platform.is_linux:
    executables = linux

  if not executables:
    raise ValueError(
        f"Executable {name} not supported on platform {platform.short_name}")
  for name_or_path in executables:
    binary = platform.search_binary(pathlib.Path(name_or_path))
    if binary and binary.exists():
      return binary
  raise Exception(f"Executable {name} not found on {platform.short_name}")


# =============================================================================


class WaitRange:
  """
  Yields increasing sleep intervals, from `min` up to `max`, growing by
  `factor` after each step. A `timeout` of None waits forever.
  """

  def __init__(
      self,
      min: float = 0.1,  # pylint: disable=redefined-builtin
      timeout: Optional[float] = 10,
      factor: float = 1.01,
      max: Optional[float] = None):  # pylint: disable=redefined-builtin
    assert 0 < min
    self.min = dt.timedelta(seconds=min)
    if not max:
      self.max = self.min * 10
    else:
      assert min <= max
      self.max = dt.timedelta(seconds=max)
    assert 1.0 < factor
    self.factor = factor
    self.timeout: Optional[dt.timedelta] = None
    if timeout is not None:
      assert 0 < timeout
      self.timeout = dt.timedelta(seconds=timeout)
    self.current = self.min

  def __iter__(self) -> Iterator[dt.timedelta]:
    while True:
      yield self.current
      self.current = min(self.current * self.factor, self.max)


def wait_with_backoff(
    wait_range: WaitRange,
    sleep_platform: Optional[Platform] = None
) -> Iterator[Tuple[float, Optional[float]]]:
  """
  Yields (time_spent, time_left) in seconds and sleeps between iterations.
  time_left is None for unbounded wait ranges.
  Raises TimeoutError once the timeout of the wait_range has passed.
  """
  assert isinstance(wait_range, WaitRange)
  sleep_platform = sleep_platform or platform
  start = dt.datetime.now()
  timeout = wait_range.timeout
  for sleep_for in wait_range:
    duration = dt.datetime.now() - start
    if timeout is None:
      yield duration.total_seconds(), None
    else:
      if duration > timeout:
        raise TimeoutError(f"Waited for {duration}")
      time_left = timeout - duration
      yield duration.total_seconds(), time_left.total_seconds()
    sleep_platform.sleep(sleep_for.total_seconds())


class Durations:
  """
  Helper object to track durations.
  """

  class _DurationMeasureContext:

    def __init__(self, durations: Durations, name: str):
      self._start_time: Optional[dt.datetime] = None
      self._durations = durations
      self._name = name

    def __enter__(self):
      self._start_time = dt.datetime.now()

    def __exit__(self, exc_type, exc_value, traceback):
      assert self._start_time
      delta = dt.datetime.now() - self._start_time
      self._durations[self._name] = delta

  def __init__(self):
    self._durations: Dict[str, dt.timedelta] = {}

  def __getitem__(self, name: str) -> dt.timedelta:
    return self._durations[name]

  def __setitem__(self, name: str, duration: dt.timedelta):
    assert name not in self._durations, (f"Cannot set '{name}' duration twice!")
    self._durations[name] = duration

  def __contains__(self, name: str) -> bool:
    return name in self._durations

  def __len__(self):
    return len(self._durations)

  def measure(self, name: str) -> Durations._DurationMeasureContext:
    assert name not in self._durations, (
        f"Cannot measure '{name}' duration twice!")
    return self._DurationMeasureContext(self, name)

  def to_json(self) -> Dict[str, float]:
    # Keep insertion order, it follows the order of the measured phases.
    return {
        name: duration.total_seconds()
        for name, duration in self._durations.items()
    }
