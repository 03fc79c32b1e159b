"""
ChallengeResult model representing the outcome of a recording challenge (ephemeral).
"""

from typing import List

from pydantic import BaseModel, Field, field_validator

from .failure_record import FailureRecord


class ChallengeResult(BaseModel):
    """
    Outcome of challenging a subject with recording and continuation on.

    Attributes:
        passed: Overall verdict
        failures: Every recorded violation, in traversal order
    """

    passed: bool
    failures: List[FailureRecord] = Field(default_factory=list)

    @field_validator("failures")
    @classmethod
    def check_passed_consistency(cls, v, info):
        """Validate that passed=True implies failures is empty."""
        if info.data.get("passed") and len(v) > 0:
            raise ValueError("passed=True but failures is not empty")
        return v

    def get_last_failure(self, delimiter: str = "\n") -> str:
        return delimiter.join(failure.format() for failure in self.failures)

    class Config:
        json_schema_extra = {
            "example": {
                "passed": False,
                "failures": [
                    {
                        "key_path": ["wheels"],
                        "depth": 1,
                        "rule_name": "range",
                        "reason": "range(1, 3)",
                        "recorded_argument": 5,
                        "subject_type": "integer",
                    }
                ],
            }
        }
