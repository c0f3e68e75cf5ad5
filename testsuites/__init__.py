"""
Test suites package.

Keeps `testsuites` importable for:
  - the shared UI framework (`testsuites.ui_testing.framework`)
  - programmatic runners (e.g., `run_tests.py`)
"""
