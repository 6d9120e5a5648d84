"""JSON dump helpers (CLI-friendly, testable).

We keep CLI printing logic out of core modules; this returns plain dicts.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from doipsim.core.models import ECU, FailurePattern, TestExecution

DumpMode = Literal["summary", "execution"]


def _clean(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v not in (None, "", [], {})}


def execution_to_json_dict(execution: TestExecution, *, mode: DumpMode = "summary") -> Dict[str, Any]:
    if mode == "execution":
        # Pydantic v2: mode="json" produces JSON-serializable types.
        return execution.model_dump(mode="json")

    result = execution.result
    negatives = [r for r in (result.actual_responses if result else []) if r.is_negative]

    # summary mode (small, stable, explainable)
    return {
        "execution": _clean(
            {
                "id": execution.id,
                "status": execution.status,
                "progress": execution.progress,
                "current_step": execution.current_step,
            }
        ),
        "sequence": {
            "id": execution.sequence.id,
            "name": execution.sequence.name,
            "steps": len(execution.sequence.messages),
            "target_ecus": execution.sequence.target_ecus,
            "timeout_ms": execution.sequence.timeout,
        },
        "result": (
            _clean(
                {
                    "id": result.id,
                    "status": result.status,
                    "timestamp": result.timestamp.isoformat(),
                    "duration_ms": round(result.duration, 1),
                    "responses": len(result.actual_responses),
                    "negative_responses": [f"{r.sub_function}:{r.data}" for r in negatives],
                    "error_message": result.error_message,
                }
            )
            if result
            else None
        ),
        "similar_failures": [
            {
                "source_id": s.source_id,
                "category": s.category,
                "similarity": round(s.similarity, 3),
                "confidence": round(s.confidence, 3),
                "suggestion": s.suggestion,
                "resolution_steps": list(s.resolution_steps),
                "estimated_fix_time_minutes": s.estimated_fix_time_minutes,
                "resolved_by": s.resolved_by,
            }
            for s in execution.similar_failures
        ],
    }


def ecus_to_json_list(ecus: List[ECU]) -> List[Dict[str, Any]]:
    return [e.model_dump(mode="json") for e in ecus]


def patterns_to_json_list(patterns: List[FailurePattern]) -> List[Dict[str, Any]]:
    return [p.model_dump(mode="json") for p in patterns]
