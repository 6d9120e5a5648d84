"""Canonical domain models (single source of truth).

This file is the one place where we define models used across:
- simulation (ECU state, requests and responses)
- execution (sequences, results, execution records)
- diagnosis (failure context, pattern catalog, suggestions)

Design note:
- Requests, sequences, failure contexts and catalog patterns are frozen; results are append-only
  by convention (the executor builds them once and only appends logs/responses while running).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from doipsim.core.services import NEGATIVE_RESPONSE_SERVICE, normalize_code

ECUType = Literal["engine", "transmission", "body", "gateway", "abs", "airbag"]
ECUStatus = Literal["online", "degraded", "offline"]
ResultStatus = Literal["success", "failure", "timeout"]
ExecutionStatus = Literal["pending", "running", "completed", "failed"]
FailureCategory = Literal["connectivity", "protocol", "ecu_specific", "environmental", "security", "timing"]

ECU_TYPES: tuple[str, ...] = ("engine", "transmission", "body", "gateway", "abs", "airbag")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class BaseModelFrozen(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ECU(BaseModelStrict):
    """Simulated network-addressable diagnostic endpoint.

    Instances handed out by the registry are copies; only the registry mutates the live state.
    """

    id: str
    type: ECUType
    status: ECUStatus = "online"
    temperature: float
    voltage: float
    security_level: int = Field(default=0, ge=0)
    error_codes: List[str] = Field(default_factory=list)
    last_response_at: Optional[datetime] = None


class DiagnosticMessage(BaseModelFrozen):
    id: str = Field(default_factory=lambda: new_id("msg"))
    service: str
    sub_function: str = ""
    data: Optional[str] = None
    target_ecu: str

    @field_validator("service")
    @classmethod
    def _normalize_service(cls, v: str) -> str:
        code = normalize_code(v)
        if len(code) != 2 or any(c not in "0123456789ABCDEF" for c in code):
            raise ValueError(f"service must be two hex digits, got {v!r}")
        return code

    @field_validator("sub_function")
    @classmethod
    def _normalize_sub_function(cls, v: str) -> str:
        return normalize_code(v)

    @property
    def is_negative(self) -> bool:
        return self.service == NEGATIVE_RESPONSE_SERVICE

    @property
    def nrc(self) -> Optional[str]:
        """Negative-response code carried by a negative response (None for positive ones)."""
        return self.data if self.is_negative else None


class TestSequence(BaseModelFrozen):
    __test__ = False  # not a pytest test class

    id: str = Field(default_factory=lambda: new_id("seq"))
    name: str = Field(min_length=1)
    messages: List[DiagnosticMessage] = Field(min_length=1)
    timeout: int = Field(default=30000, gt=0, description="Declared sequence timeout in milliseconds")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v

    @property
    def target_ecus(self) -> List[str]:
        """Distinct target ECU ids in first-seen order."""
        return list(dict.fromkeys(m.target_ecu for m in self.messages))


class TestResult(BaseModelStrict):
    __test__ = False

    id: str = Field(default_factory=lambda: new_id("result"))
    sequence_id: str
    status: ResultStatus
    timestamp: datetime = Field(default_factory=_utcnow)
    duration: float = Field(default=0.0, ge=0, description="Simulated network time in milliseconds")
    actual_responses: List[DiagnosticMessage] = Field(default_factory=list)
    error_message: Optional[str] = None
    logs: List[str] = Field(default_factory=list)

    @field_validator("timestamp")
    @classmethod
    def _ensure_timezone_aware(cls, v: datetime) -> datetime:
        # Prevent naive/aware mixing bugs in "days ago" math.
        if isinstance(v, datetime) and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class FailureContext(BaseModelFrozen):
    """Read-only snapshot of the step a sequence failed on."""

    service: str
    sub_function: str = ""
    target_ecu: str
    ecu_type: Optional[ECUType] = None
    sequence_position: int = Field(default=0, ge=0)
    elapsed_ms: float = 0.0
    prior_responses: List[DiagnosticMessage] = Field(default_factory=list)
    ecu_state: Optional[ECU] = None


class FailurePattern(BaseModelFrozen):
    id: str
    category: FailureCategory
    pattern: str
    description: str
    common_causes: List[str] = Field(default_factory=list)
    resolution_steps: List[str] = Field(default_factory=list)
    average_fix_time: int = Field(ge=0, description="Minutes")
    success_rate: float = Field(ge=0.0, le=1.0)


class SimilarFailureSuggestion(BaseModelStrict):
    source_id: str
    similarity: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    category: FailureCategory
    suggestion: str
    resolution_steps: List[str] = Field(default_factory=list)
    estimated_fix_time_minutes: int = 0
    resolved_by: Optional[str] = None

    @property
    def score(self) -> float:
        return self.similarity * self.confidence


class TestExecution(BaseModelStrict):
    """Execution record owned by the caller; diagnosis output is attached here."""

    __test__ = False

    id: str = Field(default_factory=lambda: new_id("exec"))
    sequence: TestSequence
    status: ExecutionStatus = "pending"
    progress: float = 0.0
    current_step: int = 0
    result: Optional[TestResult] = None
    similar_failures: List[SimilarFailureSuggestion] = Field(default_factory=list)
