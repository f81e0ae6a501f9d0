"""
Pydantic models describing benchmark results.

A result carries only raw measurements: the total elapsed time of one
iteration batch, the per-call samples of that batch and the
``(iterations, total)`` regression pairs an external analysis can fit.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

RUN_STATUSES = {"complete", "failed"}
FAILURE_KINDS = {"setup", "iteration"}


class BenchmarkResult(BaseModel):
    """Timing statistics emitted when a harness run completes."""

    name: str
    iterations: int = Field(ge=0)
    elapsed_ms: float = Field(ge=0.0)
    samples_ms: list[float] = Field(default_factory=list)
    regression: list[tuple[int, float]] = Field(default_factory=list)

    @field_validator("samples_ms")
    @classmethod
    def _validate_samples(cls, value: list[float]) -> list[float]:
        if any(sample < 0 for sample in value):
            raise ValueError("samples_ms must be non-negative.")
        return value

    @model_validator(mode="after")
    def _validate_sample_count(self) -> BenchmarkResult:
        if len(self.samples_ms) != self.iterations:
            raise ValueError(
                f"Expected {self.iterations} samples, got {len(self.samples_ms)}."
            )
        return self


class RunOutcome(BaseModel):
    """What a suite runner records for one unit: a result or a failure."""

    name: str
    status: str
    result: BenchmarkResult | None = None
    error: str | None = None
    failure_kind: str | None = None

    @field_validator("status")
    @classmethod
    def _validate_status(cls, value: str) -> str:
        if value not in RUN_STATUSES:
            raise ValueError(f"Unsupported run status: {value}")
        return value

    @field_validator("failure_kind")
    @classmethod
    def _validate_failure_kind(cls, value: str | None) -> str | None:
        if value is not None and value not in FAILURE_KINDS:
            raise ValueError(f"Unsupported failure kind: {value}")
        return value

    @model_validator(mode="after")
    def _validate_channel(self) -> RunOutcome:
        if self.status == "complete" and self.result is None:
            raise ValueError("A complete outcome requires a result.")
        if self.status == "failed" and (self.result is not None or not self.error):
            raise ValueError("A failed outcome carries an error and no result.")
        return self
