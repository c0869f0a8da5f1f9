# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import collections
from typing import Dict, Iterable, Optional, Tuple, Union


class Flags(collections.UserDict):
  """Ordered browser command-line flags, mapping flag names to an optional
  value. "--foo" is stored as {"--foo": None}, "--foo=bar" as
  {"--foo": "bar"}.
  """

  InitialDataType = Optional[Union[Dict[str, Optional[str]], "Flags",
                                   Iterable[Union[str, Tuple[str,
                                                             Optional[str]]]]]]

  @classmethod
  def split(cls, flag_str: str) -> Tuple[str, Optional[str]]:
    if "=" in flag_str:
      flag_name, flag_value = flag_str.split("=", maxsplit=1)
      return (flag_name, flag_value)
    return (flag_str, None)

  def __init__(self, initial_data: Flags.InitialDataType = None):
    super().__init__()
    self.update(initial_data)

  def __setitem__(self, flag_name: str, flag_value: Optional[str]):
    self.set(flag_name, flag_value)

  def set(self,
          flag_name: str,
          flag_value: Optional[str] = None,
          override: bool = False) -> None:
    if not override and flag_name in self:
      old_value = self[flag_name]
      assert flag_value == old_value, (
          f"Flag {flag_name}={flag_value} was already set "
          f"with a different previous value: '{old_value}'")
      return
    self._set(flag_name, flag_value)

  def _set(self, flag_name: str, flag_value: Optional[str] = None) -> None:
    assert flag_name, "Cannot set empty flag"
    assert "=" not in flag_name, (
        f"Flag name contains '=': {flag_name}, please split")
    assert flag_name.startswith("-"), f"Invalid flag name: {flag_name}"
    assert flag_value is None or isinstance(flag_value, str), (
        f"Flag value must be a str, got: {repr(flag_value)}")
    self.data[flag_name] = flag_value

  def update(self,
             initial_data: Flags.InitialDataType = None,
             override: bool = False) -> None:
    if initial_data is None:
      return
    if isinstance(initial_data, (Flags, dict)):
      for flag_name, flag_value in initial_data.items():
        self.set(flag_name, flag_value, override)
      return
    for flag_name_or_items in initial_data:
      if isinstance(flag_name_or_items, str):
        flag_name, flag_value = self.split(flag_name_or_items)
      else:
        flag_name, flag_value = flag_name_or_items
      self.set(flag_name, flag_value, override)

  def copy(self) -> Flags:
    return self.__class__(self)

  def get_list(self) -> Iterable[str]:
    return (k if v is None else f"{k}={v}" for k, v in self.items())

  def __str__(self) -> str:
    return " ".join(self.get_list())
