"""Validation package for migration results."""

from .base import ValidationIssue, ValidationOutcome, ValidationWarning, Validator
from .migration import (
    BUSINESS_LOGIC_NOT_PRESERVED,
    COMPILATION_FAILED,
    DOCUMENTATION_MISMATCH,
    GENERATION_FAILED,
    MANUAL_REVIEW_REQUIRED,
    MigrationValidator,
    compute_score,
)

__all__ = [
    "BUSINESS_LOGIC_NOT_PRESERVED",
    "COMPILATION_FAILED",
    "DOCUMENTATION_MISMATCH",
    "GENERATION_FAILED",
    "MANUAL_REVIEW_REQUIRED",
    "MigrationValidator",
    "ValidationIssue",
    "ValidationOutcome",
    "ValidationWarning",
    "Validator",
    "compute_score",
]
