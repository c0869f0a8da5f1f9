# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import dataclasses
import datetime as dt
import logging
import math
import pathlib
from typing import Any, Dict, Optional, Tuple

import hjson

from tabswitch.browsers.chrome import LOG_FILE_NAME
from tabswitch.tabs import DEFAULT_SITES, TabSet

DEFAULT_TIMEOUT = dt.timedelta(milliseconds=10000)


class ConfigError(ValueError):
  pass


@dataclasses.dataclass(frozen=True)
class ProbeConfig:
  sites: Tuple[str, ...] = DEFAULT_SITES
  exe_dir: Optional[pathlib.Path] = None
  log_dir: Optional[pathlib.Path] = None
  log_file_name: str = LOG_FILE_NAME
  tab_count_timeout: dt.timedelta = DEFAULT_TIMEOUT
  tab_activation_timeout: dt.timedelta = DEFAULT_TIMEOUT
  # None waits forever for the log file.
  log_timeout: Optional[dt.timedelta] = None
  show_window: bool = True
  flags: Tuple[str, ...] = ()

  def __post_init__(self):
    if not self.sites:
      raise ConfigError("Config contains empty 'sites' list.")
    try:
      TabSet(self.sites)
    except ValueError as e:
      raise ConfigError(f"Invalid 'sites': {e}") from e
    if not self.log_file_name:
      raise ConfigError("Invalid empty 'log_file_name'.")
    for name in ("tab_count_timeout", "tab_activation_timeout"):
      if getattr(self, name) <= dt.timedelta():
        raise ConfigError(f"'{name}' must be positive.")
    if self.log_timeout is not None and self.log_timeout <= dt.timedelta():
      raise ConfigError("'log_timeout' must be positive.")

  @property
  def tab_set(self) -> TabSet:
    return TabSet(self.sites)

  @classmethod
  def load(cls, path: pathlib.Path) -> ProbeConfig:
    with path.open(encoding="utf-8") as f:
      try:
        data = hjson.load(f)
      except ValueError as e:
        raise ConfigError(
            f"Invalid {hjson.__name__} config file: {path}: {e}") from e
    logging.debug("CONFIG FILE: %s", path)
    return cls.from_dict(data, base_dir=path.parent)

  @classmethod
  def from_dict(cls,
                data: Dict[str, Any],
                base_dir: Optional[pathlib.Path] = None) -> ProbeConfig:
    if not isinstance(data, dict):
      raise ConfigError(f"Expected a dict, but got: {type(data).__name__}")
    field_names = set(field.name for field in dataclasses.fields(cls))
    unknown = set(data.keys()) - field_names
    if unknown:
      raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    kwargs: Dict[str, Any] = {}
    if "sites" in data:
      kwargs["sites"] = _parse_str_list("sites", data["sites"])
    if "flags" in data:
      kwargs["flags"] = _parse_str_list("flags", data["flags"])
    for name in ("exe_dir", "log_dir"):
      if data.get(name):
        kwargs[name] = _parse_dir(name, data[name], base_dir)
    if "log_file_name" in data:
      kwargs["log_file_name"] = str(data["log_file_name"])
    for name in ("tab_count_timeout", "tab_activation_timeout"):
      if name in data:
        kwargs[name] = _parse_seconds(name, data[name])
    if data.get("log_timeout") is not None:
      kwargs["log_timeout"] = _parse_seconds("log_timeout", data["log_timeout"])
    if "show_window" in data:
      if not isinstance(data["show_window"], bool):
        raise ConfigError("'show_window' must be a boolean.")
      kwargs["show_window"] = data["show_window"]
    return cls(**kwargs)

  def merge(self, **overrides) -> ProbeConfig:
    """Returns a copy with all non-None overrides applied."""
    changes = {
        name: value for name, value in overrides.items() if value is not None
    }
    return dataclasses.replace(self, **changes)

  def to_json(self) -> Dict[str, Any]:
    return {
        "sites": list(self.sites),
        "exe_dir": str(self.exe_dir) if self.exe_dir else None,
        "log_dir": str(self.log_dir) if self.log_dir else None,
        "log_file_name": self.log_file_name,
        "tab_count_timeout": self.tab_count_timeout.total_seconds(),
        "tab_activation_timeout": self.tab_activation_timeout.total_seconds(),
        "log_timeout": (self.log_timeout.total_seconds()
                        if self.log_timeout else None),
        "show_window": self.show_window,
        "flags": list(self.flags),
    }


def _parse_str_list(name: str, value: Any) -> Tuple[str, ...]:
  if isinstance(value, str):
    value = [value]
  if not isinstance(value, (list, tuple)):
    raise ConfigError(f"'{name}' must be a list, but got: {value!r}")
  for item in value:
    if not isinstance(item, str) or not item:
      raise ConfigError(f"'{name}' contains an invalid entry: {item!r}")
  return tuple(value)


def _parse_seconds(name: str, value: Any) -> dt.timedelta:
  if isinstance(value, bool) or not isinstance(value, (int, float)):
    raise ConfigError(f"'{name}' must be a number of seconds: {value!r}")
  if not math.isfinite(value) or value <= 0:
    raise ConfigError(f"'{name}' must be positive, but got: {value}")
  return dt.timedelta(seconds=value)


def _parse_dir(name: str, value: Any,
               base_dir: Optional[pathlib.Path]) -> pathlib.Path:
  if not isinstance(value, str):
    raise ConfigError(f"'{name}' must be a path string: {value!r}")
  path = pathlib.Path(value).expanduser()
  if not path.is_absolute() and base_dir is not None:
    path = base_dir / path
  return path
