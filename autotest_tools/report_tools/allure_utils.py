"""
================================================================================
Allure Report Utilities
================================================================================

Attachment helpers used by page objects and failure diagnostics, plus the
pass-rate summary shared by the session reports.

Features:
- JSON / text / HTML / PNG attachment helpers
- Test result summary with pass rate
- Allure HTML report generation through the allure CLI

================================================================================
"""

import json
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import allure
from loguru import logger


# ================================================================================
# Attachment Helpers
# ================================================================================

def _attach(body: Union[str, bytes], name: str, kind) -> None:
    allure.attach(body, name=name, attachment_type=kind)


def attach_json(data: Any, name: str = "Data") -> None:
    """Serialize `data` (non-JSON values through str) and attach it."""
    _attach(json.dumps(data, indent=2, default=str), name, allure.attachment_type.JSON)


def attach_text(text: str, name: str = "Text") -> None:
    _attach(text, name, allure.attachment_type.TEXT)


def attach_html(html: str, name: str = "HTML") -> None:
    """Captured page source, rendered inline by the Allure viewer."""
    _attach(html, name, allure.attachment_type.HTML)


def attach_png(source: Union[bytes, str, Path], name: str = "Screenshot") -> None:
    """Attach a PNG given as raw bytes or as a file path."""
    if isinstance(source, (str, Path)):
        allure.attach.file(str(source), name=name, attachment_type=allure.attachment_type.PNG)
    else:
        _attach(source, name, allure.attachment_type.PNG)


# ================================================================================
# Summary
# ================================================================================

@dataclass
class TestResultSummary:
    """Summary of test execution results."""
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    other: int = 0
    duration_seconds: float = 0.0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        """Calculate pass rate percentage."""
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def add(self, result: str, duration_seconds: float = 0.0) -> None:
        self.total += 1
        self.duration_seconds += duration_seconds
        outcome = result.lower()
        if outcome == "passed":
            self.passed += 1
        elif outcome == "failed":
            self.failed += 1
        elif outcome == "skipped":
            self.skipped += 1
        else:
            self.other += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (camelCase, matching the per-test JSON files)."""
        return {
            "totalTests": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "other": self.other,
            "passRate": round(self.pass_rate, 2),
            "totalDurationSeconds": round(self.duration_seconds, 2),
            "timestamp": self.timestamp,
        }


# ================================================================================
# Allure CLI
# ================================================================================

def generate_allure_report(
    results_dir: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
) -> bool:
    """
    Generate Allure HTML report from results.

    Args:
        results_dir: Path to allure-results directory
        output_dir: Optional output directory

    Returns:
        True if successful
    """
    results_dir = Path(results_dir)
    report_dir = Path(output_dir) if output_dir else results_dir.parent / "allure-report"

    cmd = [
        "allure", "generate",
        str(results_dir),
        "-o", str(report_dir),
        "--clean"
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        logger.warning("Allure CLI not found. Install allure-commandline to build HTML reports.")
        return False

    if result.returncode == 0:
        logger.info(f"Allure report generated at {report_dir}")
        return True

    logger.error(f"Allure report generation failed: {result.stderr}")
    return False
