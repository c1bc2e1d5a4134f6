"""
Test suites package.

`testsuites` is importable so that page objects, framework helpers and the
unit tests share one import root, e.g. `run_tests.py` and
`testsuites.ui_testing.framework.config_loader`.
"""
