"""
Rule model describing a single rule offered by a rule provider.
"""

from pydantic import BaseModel, Field

from nestcheck.core.types import TypeTag


class Rule(BaseModel):
    """
    Metadata of one rule of a rule provider.

    Attributes:
        name: Final rule name (after resolving renamed aliases)
        is_type_checking: Rule promises to reject any unexpected subject type without erroring
        type: Type affiliation, used to infer type-checking rules
        params_required: Number of arguments the rule requires
        params_allowed: Number of arguments the rule accepts
        renamed_from: Deprecated name the rule was looked up by, if any
    """

    name: str = Field(..., min_length=1)
    is_type_checking: bool
    type: TypeTag
    params_required: int = Field(0, ge=0)
    params_allowed: int = Field(0, ge=0)
    renamed_from: str | None = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "name": "range",
                "is_type_checking": False,
                "type": 56,
                "params_required": 2,
                "params_allowed": 2,
                "renamed_from": None,
            }
        }
