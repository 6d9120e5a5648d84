"""Markdown report for a finished execution.

`TestExecution` is the single source of truth. Rendering is deterministic.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from doipsim.core.models import SimilarFailureSuggestion, TestExecution
from doipsim.core.services import interpret_nrc


def _render_suggestion(rank: int, s: SimilarFailureSuggestion, lines: List[str]) -> None:
    lines.append(
        f"{rank}. **{s.category}** `{s.source_id}` "
        f"(similarity {s.similarity:.2f}, confidence {s.confidence:.2f}, ~{s.estimated_fix_time_minutes} min)"
    )
    lines.append(f"   {s.suggestion}")
    if s.resolved_by:
        lines.append(f"   Owner: {s.resolved_by}")
    for step in s.resolution_steps:
        lines.append(f"   - {step}")


def render_execution_report(execution: TestExecution, *, generated_at: Optional[datetime] = None) -> str:
    ts = generated_at or datetime.now(timezone.utc)
    # Treat naive timestamps as UTC to avoid ambiguity in reports/tests.
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)

    seq = execution.sequence
    result = execution.result

    lines: List[str] = []
    lines.append(f"# Test Report: {seq.name}")
    lines.append("")
    lines.append(f"**Sequence:** `{seq.id}` ({len(seq.messages)} steps, timeout {seq.timeout}ms)")
    lines.append(f"**Target ECUs:** `{', '.join(seq.target_ecus)}`")
    lines.append(f"**Execution:** `{execution.id}` ({execution.status})")
    lines.append(f"**Generated:** `{ts.isoformat()}`")
    lines.append("")

    if result is None:
        lines.append("_No result recorded._")
        return "\n".join(lines) + "\n"

    lines.append("## Result")
    lines.append("")
    lines.append(f"**Status:** `{result.status}`")
    lines.append(f"**Duration:** `{result.duration:.0f}ms`")
    lines.append(f"**Responses:** `{len(result.actual_responses)}`")
    if result.error_message:
        lines.append(f"**Error:** {result.error_message}")

    negatives = [r for r in result.actual_responses if r.is_negative]
    if negatives:
        lines.append("")
        lines.append("### Negative responses")
        for r in negatives:
            lines.append(f"- `{r.service} {r.sub_function} {r.data}`: {interpret_nrc(r.data or '')}")

    if execution.similar_failures:
        lines.append("")
        lines.append("## Similar failures")
        lines.append("")
        for i, s in enumerate(execution.similar_failures, start=1):
            _render_suggestion(i, s, lines)

    if result.logs:
        lines.append("")
        lines.append("## Appendix: execution log")
        lines.append("")
        lines.append("```")
        lines.extend(result.logs)
        lines.append("```")

    return "\n".join(lines) + "\n"
