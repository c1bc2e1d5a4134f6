"""
================================================================================
Autotest Tools
================================================================================

Infrastructure utilities for the Practical Law UI automation suite.

Modules:
    - common: Shared logging setup and output directory bootstrap
    - report_tools: Allure attachment helpers and per-test / per-session
      result reports (JSON, text, HTML)

Example:
    from autotest_tools.common import init_logger
    from autotest_tools.report_tools import ResultsReporter

    init_logger(level="INFO", log_file="Logs/test-log.log")
    reporter = ResultsReporter(results_dir="TestResults", reports_dir="Reports")
    reporter.generate_session_report()

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
]
