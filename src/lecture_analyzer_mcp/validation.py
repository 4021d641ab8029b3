"""Semantic checks on a normalized lecture analysis.

Checks that go beyond schema conformance: chapter timestamp format and
ordering, and formula LaTeX delimiters. Issues are reported, not raised;
the normalizer logs them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .models.analysis import Chapter, Formula, LectureAnalysis

_TIMESTAMP_RE = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")


@dataclass
class ValidationResult:
    """Aggregated result of all validation checks."""

    passed: bool
    issues: list[str] = field(default_factory=list)


def timestamp_to_seconds(value: str) -> int | None:
    """Parse ``MM:SS`` or ``H:MM:SS`` into seconds; None when malformed."""
    value = value.strip()
    if not _TIMESTAMP_RE.match(value):
        return None
    parts = value.split(":")
    return sum(int(p) * (60 ** (len(parts) - 1 - j)) for j, p in enumerate(parts))


def is_latex_wrapped(equation: str) -> bool:
    s = equation.strip()
    return len(s) > 4 and s.startswith("$$") and s.endswith("$$")


def validate_chapters(chapters: list[Chapter]) -> list[str]:
    """Check chapter timestamp format and non-decreasing order.

    Returns:
        List of issue strings (empty = all valid).
    """
    issues: list[str] = []
    prev_seconds = -1

    for i, chapter in enumerate(chapters):
        start = timestamp_to_seconds(chapter.start)
        end = timestamp_to_seconds(chapter.end)
        if start is None:
            issues.append(f"Chapter {i}: invalid start timestamp '{chapter.start}'")
            continue
        if chapter.end and end is None:
            issues.append(f"Chapter {i}: invalid end timestamp '{chapter.end}'")
        if start < prev_seconds:
            issues.append(f"Chapter {i}: start '{chapter.start}' is before the previous chapter")
        if end is not None and end < start:
            issues.append(f"Chapter {i}: ends at '{chapter.end}' before it starts")
        prev_seconds = start

    return issues


def validate_formulas(formulas: list[Formula]) -> list[str]:
    """Report equations that are not wrapped in ``$$...$$``."""
    return [
        f"Formula {i}: not LaTeX-wrapped: {f.equation!r}"
        for i, f in enumerate(formulas)
        if not is_latex_wrapped(f.equation)
    ]


def validate_analysis(analysis: LectureAnalysis) -> ValidationResult:
    """Run all semantic validations on a lecture analysis."""
    issues = validate_chapters(analysis.chapters)
    issues.extend(validate_formulas(analysis.formulas))
    return ValidationResult(passed=not issues, issues=issues)
