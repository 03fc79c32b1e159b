"""
FailureRecord model representing one recorded validation failure (ephemeral).
"""

from typing import Any

from pydantic import BaseModel, Field


class FailureRecord(BaseModel):
    """
    One violation found while challenging a subject.

    Only scalar subjects are recorded verbatim, strings truncated
    and sanitized; containers are described by type and length only.

    Attributes:
        key_path: Keys from root to the failing element
        depth: Nesting depth of the failing element
        rule_name: Rule or pseudo rule that failed
        reason: Failure description, including rule arguments
        recorded_argument: The subject if scalar (sanitized), otherwise None
        subject_type: Type of the subject, with length for strings and containers
    """

    key_path: tuple[Any, ...] = ()
    depth: int = Field(0, ge=0)
    rule_name: str
    reason: str
    recorded_argument: bool | int | float | str | None = None
    subject_type: str

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "key_path": ["person", "address", "street"],
                "depth": 3,
                "rule_name": "tableElements",
                "reason": "missing required element",
                "recorded_argument": None,
                "subject_type": "missing",
            }
        }

    @property
    def location(self) -> str:
        return " > ".join(["root", *(str(key) for key in self.key_path)])

    def format(self) -> str:
        saw = f"({self.subject_type})"
        if self.recorded_argument is not None:
            if isinstance(self.recorded_argument, bool):
                saw += " true" if self.recorded_argument else " false"
            else:
                saw += f" {self.recorded_argument}"
        return f"({self.depth}) {self.location}: {self.reason} - saw {saw}."
