"""Graders for retrieval and answer evaluation.

Code-based graders only: fast, deterministic, objective.
"""

from tests.evals.graders.code_graders import (
    grade_must_include_criteria,
    grade_must_not_include_criteria,
    grade_retrieved_ids,
)

__all__ = [
    "grade_must_include_criteria",
    "grade_must_not_include_criteria",
    "grade_retrieved_ids",
]
