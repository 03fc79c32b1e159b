"""
Call-scoped accumulator of validation failures.

A recorder is created per challenge (or passed in by the caller) and never
stored on a validator, provider or challenger instance.
"""

from collections.abc import Mapping
from typing import Any

from nestcheck.core.models import FailureRecord
from nestcheck.core.types import MISSING, type_name

DEFAULT_TRUNCATE = 40


def sanitize(text: str, truncate: int = DEFAULT_TRUNCATE) -> str:
    """Truncate a string and escape control characters."""
    truncated = len(text) > truncate
    text = text[:truncate]
    text = "".join(char if char.isprintable() else repr(char)[1:-1] for char in text)
    return f"{text}..." if truncated else text


def describe_subject_type(subject: Any) -> str:
    """Type name of a subject, with length for strings and containers."""
    name = type_name(subject)
    if isinstance(subject, (str, list, tuple, Mapping)):
        return f"{name}:{len(subject)}"
    return name


def describe_rule(rule_name: str, arguments: tuple[Any, ...] = (), truncate: int = DEFAULT_TRUNCATE) -> str:
    """Rule name with its arguments, like range(1, 3)."""
    if not arguments:
        return rule_name
    rendered = []
    for argument in arguments:
        if isinstance(argument, (list, tuple)):
            rendered.append(f"[{', '.join(_render(value, truncate) for value in argument)}]")
        else:
            rendered.append(_render(argument, truncate))
    return f"{rule_name}({', '.join(rendered)})"


def _render(value: Any, truncate: int) -> str:
    if isinstance(value, str):
        return f"'{sanitize(value, truncate)}'"
    return repr(value)


class FailureRecorder:
    """
    Accumulates FailureRecords of a single challenge.

    Usage:
        recorder = FailureRecorder()
        challenger.challenge(subject, rule_set, Challenger.RECORD, recorder)
        print(recorder.get_last_failure())
    """

    def __init__(self, truncate: int = DEFAULT_TRUNCATE):
        """
        Args:
            truncate: Maximum length of recorded string subjects
        """
        self.truncate = truncate
        self._failures: list[FailureRecord] = []

    def record(
        self,
        key_path: tuple[Any, ...],
        depth: int,
        rule_name: str,
        reason: str,
        subject: Any = MISSING,
    ) -> FailureRecord:
        """
        Record a failure.

        Args:
            key_path: Keys from root to the failing element
            depth: Nesting depth of the failing element
            rule_name: Failing rule or pseudo rule
            reason: Failure description
            subject: The failing subject; only scalars are recorded verbatim
        """
        if isinstance(subject, str):
            recorded = sanitize(subject, self.truncate)
        elif isinstance(subject, (bool, int, float)):
            recorded = subject
        else:
            recorded = None
        failure = FailureRecord(
            key_path=tuple(key_path),
            depth=depth,
            rule_name=rule_name,
            reason=reason,
            recorded_argument=recorded,
            subject_type=describe_subject_type(subject),
        )
        self._failures.append(failure)
        return failure

    def mark(self) -> int:
        """Position to roll back to, should a branch be rescued."""
        return len(self._failures)

    def rollback(self, mark: int) -> None:
        """Discard failures recorded after mark."""
        del self._failures[mark:]

    @property
    def failures(self) -> list[FailureRecord]:
        return list(self._failures)

    def __len__(self) -> int:
        return len(self._failures)

    def __bool__(self) -> bool:
        return bool(self._failures)

    def get_last_failure(self, delimiter: str = "\n") -> str:
        """
        Render recorded failures.

        Returns:
            Failure lines joined by delimiter; empty string if none
        """
        return delimiter.join(failure.format() for failure in self._failures)
