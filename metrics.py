"""Prometheus textfile metrics export for pytest sessions and page-object activity.

Page objects record events (pages opened, elements hidden, static elements
checked) in a process-wide counter; the session hook exports them together
with the test outcome summary. A fresh registry is built per write so repeated
local runs in one process do not leak global metric state.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from prometheus_client import CollectorRegistry, Gauge, generate_latest

PAGE_EVENTS: Counter[str] = Counter()


def record_page_event(event: str, count: int = 1) -> None:
    PAGE_EVENTS[event] += count


@dataclass(frozen=True)
class SessionMetrics:
    """Aggregate session counters exported at pytest session finish."""

    total: int
    passed: int
    failed: int
    skipped: int
    duration_seconds: float
    page_events: dict[str, int] = field(default_factory=dict)


def write_metrics(path: str, summary: SessionMetrics) -> None:
    """Write metrics atomically to the Prometheus textfile collector path."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    registry = CollectorRegistry()
    Gauge("qa_tests_total", "Total tests collected", registry=registry).set(summary.total)
    Gauge("qa_tests_passed", "Passed tests", registry=registry).set(summary.passed)
    Gauge("qa_tests_failed", "Failed tests", registry=registry).set(summary.failed)
    Gauge("qa_tests_skipped", "Skipped tests", registry=registry).set(summary.skipped)
    Gauge(
        "qa_test_session_duration_seconds",
        "Total pytest session duration in seconds",
        registry=registry,
    ).set(summary.duration_seconds)

    page_events = Gauge(
        "qa_page_events",
        "Page-object events recorded during the session",
        ["event"],
        registry=registry,
    )
    for event, count in sorted(summary.page_events.items()):
        page_events.labels(event=event).set(count)

    # Write-then-rename so the collector never scrapes a partial file.
    tmp_path = target.with_suffix(f"{target.suffix}.tmp")
    tmp_path.write_bytes(generate_latest(registry))
    tmp_path.replace(target)
