#!/usr/bin/env python3
# Copyright 2023 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

import os
import pathlib
import platform

USE_PYTHON3 = True


def CheckChange(input_api, output_api, on_commit):
  results = []
  # Pylint
  files_to_check = [r'^[^\.]+\.py$']
  disabled_warnings = [
      "missing-module-docstring",
      "missing-class-docstring",
      "missing-function-docstring",
      "useless-return",
      "line-too-long",  # Annoying false-positives on file:// URLs
      "protected-access",  # Tests poke at browser internals
  ]
  pylint_checks = input_api.canned_checks.GetPylint(
      input_api,
      output_api,
      files_to_check=files_to_check,
      disabled_warnings=disabled_warnings)
  results += input_api.RunTests(pylint_checks)
  # License header checks
  results += input_api.canned_checks.CheckLicense(input_api, output_api)
  # Tests import helpers through the "tests" package.
  env = os.environ.copy()
  separator = ";" if platform.system() == "Windows" else ":"
  env["PYTHONPATH"] = env.get("PYTHONPATH", "") + separator + "."
  if on_commit:
    dirs_to_check = [
        str(path) for path in pathlib.Path("tests").glob("**") if path.is_dir()
    ]
    files_to_check = [r'.*test_.*\.py$']
  else:
    # The probe and cli tests cover the full run on upload.
    dirs_to_check = [
        "tests",
    ]
    files_to_check = [r'.*test_(probe|cli)\.py$']

  for dir_to_check in dirs_to_check:
    results += input_api.canned_checks.RunUnitTestsInDirectory(
        input_api,
        output_api,
        directory=dir_to_check,
        env=env,
        files_to_check=files_to_check,
        skip_shebang_check=True,
        run_on_python2=False)
  return results


def CheckChangeOnUpload(input_api, output_api):
  return CheckChange(input_api, output_api, on_commit=False)


def CheckChangeOnCommit(input_api, output_api):
  return CheckChange(input_api, output_api, on_commit=True)
