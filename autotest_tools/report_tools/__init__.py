"""
================================================================================
Report Tools
================================================================================

Allure attachment helpers and the per-test / per-session results reporter.

================================================================================
"""

from .allure_utils import (
    TestResultSummary,
    attach_html,
    attach_json,
    attach_png,
    attach_text,
    generate_allure_report,
)
from .results_reporter import (
    ConsoleLogEntry,
    ResultsReporter,
    TestAttachment,
    TestExecutionDetails,
    TestStep,
    safe_filename,
)

__all__ = [
    "ConsoleLogEntry",
    "ResultsReporter",
    "TestAttachment",
    "TestExecutionDetails",
    "TestResultSummary",
    "TestStep",
    "attach_html",
    "attach_json",
    "attach_png",
    "attach_text",
    "generate_allure_report",
    "safe_filename",
]
