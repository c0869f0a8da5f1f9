# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import argparse
import math
import pathlib
from typing import Sequence

import hjson

from tabswitch import tabs


def parse_path(str_value: str) -> pathlib.Path:
  try:
    path = pathlib.Path(str_value).expanduser()
  except RuntimeError as e:
    raise argparse.ArgumentTypeError(f"Invalid Path '{str_value}': {e}") from e
  if not path.exists():
    raise argparse.ArgumentTypeError(f"Path '{path}' does not exist.")
  return path


def parse_existing_file_path(str_value: str) -> pathlib.Path:
  path = parse_path(str_value)
  if not path.is_file():
    raise argparse.ArgumentTypeError(f"Path '{path}' is not a file.")
  return path


def parse_dir_path(str_value: str) -> pathlib.Path:
  path = parse_path(str_value)
  if not path.is_dir():
    raise argparse.ArgumentTypeError(f"Path '{path}' is not a directory.")
  return path


def parse_hjson_file_path(str_value: str) -> pathlib.Path:
  path = parse_existing_file_path(str_value)
  with path.open(encoding="utf-8") as f:
    try:
      hjson.load(f)
    except ValueError as e:
      raise argparse.ArgumentTypeError(
          f"Invalid {hjson.__name__} file: {path}: {e}") from e
  return path


def parse_positive_float(value: str) -> float:
  try:
    value_f = float(value)
  except ValueError as e:
    raise argparse.ArgumentTypeError(f"Expected a number, got: {value}") from e
  if not math.isfinite(value_f) or value_f <= 0:
    raise argparse.ArgumentTypeError(
        f"Expected positive value, but got: {value_f}")
  return value_f


def parse_sites(value: str) -> Sequence[str]:
  sites = tabs.parse_sites(value)
  if not sites:
    raise argparse.ArgumentTypeError(f"No sites provided: '{value}'")
  return sites
