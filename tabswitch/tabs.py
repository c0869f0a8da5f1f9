# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from __future__ import annotations

import os
import pathlib
from typing import Iterable, Iterator, Sequence, Tuple

INDEX_FILE_NAME = "index.html"

# Local snapshots of these sites live in data/tab_switching/<name>/.
DEFAULT_SITES: Tuple[str, ...] = (
    "espn.go.com",
    "bugzilla.mozilla.org",
    "news.cnet.com",
    "www.amazon.com",
    "kannada.chakradeo.net",
    "allegro.pl",
    "ml.wikipedia.org",
    "www.bbc.co.uk",
    "126.com",
    "www.altavista.com",
)


def file_url(path: str) -> str:
  return pathlib.Path(path).absolute().as_uri()


class TabSet:
  """Immutable, ordered list of site names to open, one tab each."""

  def __init__(self, sites: Iterable[str] = DEFAULT_SITES):
    self._sites: Tuple[str, ...] = tuple(sites)
    if not self._sites:
      raise ValueError("No sites provided")
    for site in self._sites:
      if not site or not isinstance(site, str):
        raise ValueError(f"Invalid site name: {repr(site)}")
      if "/" in site or "\\" in site:
        raise ValueError(f"Site name must not contain path separators: {site}")
    duplicates = set(site for site in self._sites if self._sites.count(site) > 1)
    if duplicates:
      raise ValueError(f"Duplicate site names: {sorted(duplicates)}")

  @classmethod
  def default(cls) -> TabSet:
    return cls(DEFAULT_SITES)

  @property
  def sites(self) -> Tuple[str, ...]:
    return self._sites

  def file_path(self, prefix: str, site: str) -> str:
    """Returns prefix + site + separator + index.html, prefix is expected to
    end with a path separator."""
    return prefix + site + os.sep + INDEX_FILE_NAME

  def file_paths(self, prefix: str) -> Tuple[str, ...]:
    return tuple(self.file_path(prefix, site) for site in self._sites)

  def __iter__(self) -> Iterator[str]:
    return iter(self._sites)

  def __len__(self) -> int:
    return len(self._sites)

  def __eq__(self, other) -> bool:
    if not isinstance(other, TabSet):
      return NotImplemented
    return self._sites == other._sites

  def __hash__(self) -> int:
    return hash(self._sites)

  def __str__(self) -> str:
    return f"TabSet({','.join(self._sites)})"


def parse_sites(value: str) -> Sequence[str]:
  return [site.strip() for site in value.split(",") if site.strip()]
