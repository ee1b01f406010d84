from analysis.feasibility import FeasibilityReport, check_feasibility
from analysis.solution_validator import (
    SolutionValidator,
    ValidationReport,
    ValidationViolation,
)

__all__ = [
    "FeasibilityReport",
    "check_feasibility",
    "SolutionValidator",
    "ValidationReport",
    "ValidationViolation",
]
