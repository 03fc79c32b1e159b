"""
Rule set construction, validation engine and configuration management.
"""

from .challenger import Challenger, Validator
from .failure_recorder import FailureRecorder
from .rule_config import RuleSetBuilder, RuleSetLoader
from .rule_set_factory import RuleSetFactory, RuleSetGenerator

__all__ = [
    "Challenger",
    "Validator",
    "FailureRecorder",
    "RuleSetFactory",
    "RuleSetGenerator",
    "RuleSetLoader",
    "RuleSetBuilder",
]
