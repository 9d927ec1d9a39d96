"""Aggregation of compliance judgements into display-ready summaries.

Everything here is pure: inputs are never mutated and the same payload always
produces the same summary.
"""
from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from compliance_backend.core.schema import JudgementItem, WorkflowRunResult

FULL_COMPLIANCE = "○"
PARTIAL_COMPLIANCE = "△"
NON_COMPLIANCE = "×"

KNOWN_STATUSES: tuple[str, ...] = (FULL_COMPLIANCE, PARTIAL_COMPLIANCE, NON_COMPLIANCE)

CATEGORY_NAMES: dict[str, str] = {
    FULL_COMPLIANCE: "full",
    PARTIAL_COMPLIANCE: "partial",
    NON_COMPLIANCE: "non",
}


def _status_of(item: Any) -> str:
    if isinstance(item, JudgementItem):
        return item.status
    if isinstance(item, Mapping):
        assessment = item.get("assessment")
        if isinstance(assessment, Mapping):
            return str(assessment.get("compliance_status") or "")
        return str(item.get("compliance_status") or item.get("status") or "")
    assessment = getattr(item, "assessment", None)
    if assessment is not None:
        return str(getattr(assessment, "compliance_status", "") or "")
    return str(getattr(item, "status", "") or "")


def aggregate_compliance(items: Iterable[Any]) -> Counter[str]:
    """Count judgement items by their literal compliance status.

    Unrecognised symbols are counted under their own value so the counts
    always add up to the number of items.
    """

    return Counter(_status_of(item) for item in items)


def percentage(counts: Mapping[str, int], status: str, total: int | None = None) -> int:
    """Share of ``status`` in percent, rounded half up; 0 for an empty list."""

    if total is None:
        total = sum(counts.values())
    if total <= 0:
        return 0
    return int(math.floor(100 * counts.get(status, 0) / total + 0.5))


@dataclass(frozen=True, slots=True)
class StatusShare:
    status: str
    category: str
    count: int
    percentage: int


@dataclass(frozen=True, slots=True)
class ComplianceSummary:
    total: int
    counts: dict[str, int]
    shares: list[StatusShare] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "counts": dict(self.counts),
            "shares": [
                {
                    "status": share.status,
                    "category": share.category,
                    "count": share.count,
                    "percentage": share.percentage,
                }
                for share in self.shares
            ],
        }


def summarize_compliance(items: Iterable[Any]) -> ComplianceSummary:
    materialised = list(items)
    counts = aggregate_compliance(materialised)
    total = len(materialised)

    ordered = [status for status in KNOWN_STATUSES if counts.get(status)]
    ordered.extend(status for status in counts if status not in KNOWN_STATUSES)

    shares = [
        StatusShare(
            status=status,
            category=CATEGORY_NAMES.get(status, "unknown"),
            count=counts[status],
            percentage=percentage(counts, status, total),
        )
        for status in ordered
    ]
    return ComplianceSummary(total=total, counts=dict(counts), shares=shares)


@dataclass(frozen=True, slots=True)
class RunSummary:
    run_id: str | None
    status: str
    succeeded: bool
    elapsed_time: float
    total_tokens: int
    total_steps: int
    created_at: int | None
    finished_at: int | None
    error: str | None
    compliance: ComplianceSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status,
            "succeeded": self.succeeded,
            "elapsed_time": round(self.elapsed_time, 2),
            "total_tokens": self.total_tokens,
            "total_steps": self.total_steps,
            "created_at": self.created_at,
            "finished_at": self.finished_at,
            "error": self.error,
            "compliance": self.compliance.to_dict(),
        }


def summarize_run(result: WorkflowRunResult) -> RunSummary:
    return RunSummary(
        run_id=result.id,
        status=result.status,
        succeeded=result.succeeded,
        elapsed_time=float(result.elapsed_time or 0.0),
        total_tokens=int(result.total_tokens or 0),
        total_steps=int(result.total_steps or 0),
        created_at=result.created_at,
        finished_at=result.finished_at,
        error=result.error,
        compliance=summarize_compliance(result.judgement),
    )
