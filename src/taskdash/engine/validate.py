# src/taskdash/engine/validate.py

"""
Task input validation.

This module validates new-task requests against the rules the creation
form enforces: required fields, date ordering, at least one named
activity.

Responsibilities:
- request-level rules (beyond model invariants),
- collecting every problem at once, with stable codes.

It does NOT build or store tasks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .ops import NewTaskRequest


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class ValidationError(Exception):
    """
    Fatal validation error used for command flow control.

    Raised when an operation must abort (invalid request, unknown id
    given on the command line). `issues` holds the individual problems
    when the error comes from request validation.
    """

    def __init__(self, message: str, issues: Sequence["ValidationIssue"] = ()) -> None:
        super().__init__(message)
        self.issues = tuple(issues)

    def __str__(self) -> str:
        base = super().__str__()
        if not self.issues:
            return base
        details = "\n".join(f"  - {i.code}: {i.message}" for i in self.issues)
        return f"{base}\n{details}"


# ---------------------------------------------------------------------
# Result objects
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """
    A single validation problem.

    `code` is a stable identifier suitable for tests and future filtering.
    """

    code: str
    message: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    issues: Sequence[ValidationIssue]

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def codes(self) -> list[str]:
        return [i.code for i in self.issues]

    def raise_for_issues(self, message: str = "Invalid task") -> None:
        if self.issues:
            raise ValidationError(message, self.issues)


# ---------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------

def validate_new_task(req: NewTaskRequest) -> ValidationResult:
    """
    Validate a creation request.

    Notes:
    - All rules run; the result lists every problem found.
    - Blank activities are ignored (they are dropped on creation), so a
      request whose activities are all blank has none.
    """
    issues: list[ValidationIssue] = []

    if not req.name or not req.name.strip():
        issues.append(ValidationIssue(code="name_required", message="Name is required"))

    if not req.areas:
        issues.append(
            ValidationIssue(code="areas_required", message="Select at least one area")
        )

    if req.start_date is None:
        issues.append(
            ValidationIssue(code="start_required", message="Start date is required")
        )

    if req.end_date is None:
        issues.append(ValidationIssue(code="end_required", message="End date is required"))
    elif req.start_date is not None and req.end_date <= req.start_date:
        issues.append(
            ValidationIssue(
                code="end_before_start",
                message="End date must be after the start date",
            )
        )

    if not any(a.name.strip() for a in req.activities):
        issues.append(
            ValidationIssue(code="activities_required", message="Add at least one activity")
        )

    if req.requires_support and not req.support_areas:
        issues.append(
            ValidationIssue(
                code="support_areas_required",
                message="Support was requested but no support area was selected",
            )
        )

    for a in req.activities:
        if not 0 <= a.percentage <= 100:
            issues.append(
                ValidationIssue(
                    code="percentage_out_of_range",
                    message=f"Activity '{a.name}' percentage must be within 0..100",
                )
            )

    return ValidationResult(issues=tuple(issues))
