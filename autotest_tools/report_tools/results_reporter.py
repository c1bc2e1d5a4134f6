"""
================================================================================
Test Results Reporter
================================================================================

Writes machine- and human-readable results for every executed UI test and
rolls them up into a session report.

Outputs:
    - TestResults/{TestName}_{yyyyMMdd_HHmmss}.json   per-test JSON (camelCase)
    - TestResults/{TestName}_{yyyyMMdd_HHmmss}.txt    per-test text report
    - Reports/{session}_FullReport.html               session HTML (jinja2)
    - Reports/{session}_Summary.json                  session JSON summary

================================================================================
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from .allure_utils import TestResultSummary


_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
_FILE_STAMP = "%Y%m%d_%H%M%S"
_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_.-]+")


def safe_filename(name: str) -> str:
    """Turn a pytest node name like `test_x[chromium]` into a file-safe stem."""
    return _UNSAFE_FILENAME.sub("_", name).strip("_") or "test"


def _camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def _to_camel_dict(value: Any) -> Any:
    if isinstance(value, dict):
        return {(_camel(k) if isinstance(k, str) else k): _to_camel_dict(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_camel_dict(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass
class TestStep:
    """A single action recorded during a test."""
    __test__ = False

    action: str
    details: Optional[str] = None
    result: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ConsoleLogEntry:
    """A browser console message."""
    level: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class TestAttachment:
    """A file produced by the test (screenshot, page source, ...)."""
    __test__ = False

    type: str
    file_path: str
    description: str = ""


@dataclass
class TestExecutionDetails:
    """Everything known about one test execution."""
    __test__ = False

    test_name: str
    test_class: str = ""
    test_category: str = ""
    test_description: str = ""
    result: str = "Unknown"
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    error_message: Optional[str] = None
    stack_trace: Optional[str] = None
    environment_info: Dict[str, Any] = field(default_factory=dict)
    test_steps: List[TestStep] = field(default_factory=list)
    console_output: List[ConsoleLogEntry] = field(default_factory=list)
    attachments: List[TestAttachment] = field(default_factory=list)
    performance_metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def file_stem(self) -> str:
        return f"{safe_filename(self.test_name)}_{self.start_time.strftime(_FILE_STAMP)}"

    def add_step(self, action: str, details: Optional[str] = None, result: Optional[str] = None) -> None:
        self.test_steps.append(TestStep(action=action, details=details, result=result))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "test_name": self.test_name,
            "test_class": self.test_class,
            "test_category": self.test_category,
            "test_description": self.test_description,
            "result": self.result,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_seconds": round(self.duration_seconds, 3),
            "error_message": self.error_message,
            "stack_trace": self.stack_trace,
            "environment_info": self.environment_info,
            "test_steps": [vars(step) for step in self.test_steps],
            "console_output": [vars(entry) for entry in self.console_output],
            "attachments": [vars(a) for a in self.attachments],
            "performance_metrics": self.performance_metrics,
        }
        return _to_camel_dict(data)


class ResultsReporter:
    """
    Collects test executions for a session and writes per-test and
    per-session reports.

    Usage:
        >>> reporter = ResultsReporter("TestResults", "Reports")
        >>> reporter.capture(details)
        >>> reporter.generate_session_report()
    """

    def __init__(
        self,
        results_dir: Union[str, Path] = "TestResults",
        reports_dir: Union[str, Path] = "Reports",
    ):
        self.results_dir = Path(results_dir)
        self.reports_dir = Path(reports_dir)
        self.results_dir.mkdir(parents=True, exist_ok=True)
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        self._session_results: List[TestExecutionDetails] = []

    @property
    def session_results(self) -> List[TestExecutionDetails]:
        return list(self._session_results)

    def capture(self, details: TestExecutionDetails) -> Optional[Path]:
        """
        Record one test execution and write its JSON and text reports.

        Returns:
            Path of the JSON file, or None when writing failed
        """
        if details.end_time is None:
            details.end_time = datetime.now()
        self._session_results.append(details)

        json_path = self.results_dir / f"{details.file_stem}.json"
        text_path = self.results_dir / f"{details.file_stem}.txt"
        try:
            json_path.write_text(
                json.dumps(details.to_dict(), indent=2, default=str),
                encoding="utf-8",
            )
            text_path.write_text(self.render_text_report(details), encoding="utf-8")
        except OSError as e:
            logger.error(f"❌ Failed to write results for {details.test_name}: {e}")
            return None

        logger.debug(f"Test results captured: {json_path}")
        return json_path

    def render_text_report(self, details: TestExecutionDetails) -> str:
        lines = [
            "=" * 80,
            f"TEST EXECUTION REPORT: {details.test_name}",
            "=" * 80,
            "",
            "TEST SUMMARY",
            "-" * 40,
            f"Test Name: {details.test_name}",
            f"Test Class: {details.test_class}",
            f"Test Category: {details.test_category}",
            f"Test Description: {details.test_description}",
            f"Result: {details.result}",
            f"Start Time: {details.start_time:%Y-%m-%d %H:%M:%S}",
            f"End Time: {details.end_time:%Y-%m-%d %H:%M:%S}" if details.end_time else "End Time: -",
            f"Duration: {details.duration_seconds:.2f} seconds",
            "",
            "ENVIRONMENT INFORMATION",
            "-" * 40,
        ]
        lines.extend(f"{key}: {value}" for key, value in details.environment_info.items())
        lines.append("")

        if details.test_steps:
            lines.extend(["TEST EXECUTION STEPS", "-" * 40])
            for index, step in enumerate(details.test_steps, start=1):
                lines.append(f"Step {index}: [{step.timestamp:%H:%M:%S.%f}] {step.action}")
                if step.details:
                    lines.append(f"    Details: {step.details}")
                if step.result:
                    lines.append(f"    Result: {step.result}")
            lines.append("")

        if details.error_message:
            lines.extend(["ERROR DETAILS", "-" * 40, f"Error: {details.error_message}"])
            if details.stack_trace:
                lines.extend(["Stack Trace:", details.stack_trace])
            lines.append("")

        if details.console_output:
            lines.extend(["BROWSER CONSOLE", "-" * 40])
            lines.extend(
                f"[{entry.timestamp:%H:%M:%S}] {entry.level.upper()}: {entry.message}"
                for entry in details.console_output
            )
            lines.append("")

        if details.performance_metrics:
            lines.extend(["PERFORMANCE METRICS", "-" * 40])
            lines.extend(f"{key}: {value}" for key, value in details.performance_metrics.items())
            lines.append("")

        if details.attachments:
            lines.extend(["ATTACHMENTS", "-" * 40])
            lines.extend(f"{a.type}: {a.file_path} {a.description}".rstrip() for a in details.attachments)
            lines.append("")

        return "\n".join(lines)

    def summary(self) -> TestResultSummary:
        summary = TestResultSummary()
        for details in self._session_results:
            summary.add(details.result, details.duration_seconds)
        return summary

    def generate_session_report(self, session_name: Optional[str] = None) -> Optional[Path]:
        """
        Write the session HTML report and JSON summary.

        Returns:
            Path of the HTML report, or None when generation failed
        """
        session = session_name or f"TestSession_{datetime.now().strftime(_FILE_STAMP)}"
        html_path = self.reports_dir / f"{session}_FullReport.html"
        json_path = self.reports_dir / f"{session}_Summary.json"

        try:
            html_path.write_text(self.render_html_report(session), encoding="utf-8")
            json_path.write_text(
                json.dumps(self.session_summary(session), indent=2, default=str),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error(f"❌ Failed to generate session report: {e}")
            return None

        logger.info(f"📊 Session report generated: {html_path}")
        return html_path

    def session_summary(self, session: str) -> Dict[str, Any]:
        return {
            "sessionName": session,
            "generatedAt": datetime.now().isoformat(),
            "summary": self.summary().to_dict(),
            "tests": [
                {
                    "testName": d.test_name,
                    "testClass": d.test_class,
                    "category": d.test_category,
                    "result": d.result,
                    "durationSeconds": round(d.duration_seconds, 2),
                    "errorMessage": d.error_message,
                }
                for d in self._session_results
            ],
        }

    def render_html_report(self, session: str) -> str:
        env = Environment(
            loader=FileSystemLoader(str(_TEMPLATES_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
        )
        template = env.get_template("session_report.html")
        tests = []
        for details in self._session_results:
            screenshot = next(
                (a.file_path for a in details.attachments if a.type == "Screenshot"),
                None,
            )
            tests.append({
                "name": details.test_name,
                "result": details.result,
                "css_class": details.result.lower(),
                "duration": f"{details.duration_seconds:.2f}s",
                "started": details.start_time.strftime("%H:%M:%S"),
                "details_link": f"../{self.results_dir.name}/{details.file_stem}.txt",
                "screenshot": screenshot,
                "error": details.error_message,
            })
        return template.render(
            session=session,
            generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            summary=self.summary(),
            tests=tests,
        )


__all__ = [
    "ConsoleLogEntry",
    "ResultsReporter",
    "TestAttachment",
    "TestExecutionDetails",
    "TestStep",
    "safe_filename",
]
