"""
Prometheus metrics collection for nestcheck

This module provides metrics instrumentation for monitoring rule set
construction and challenge outcomes.
"""
import time
from collections.abc import Iterable

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from nestcheck.core.models import FailureRecord

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# CHALLENGE METRICS
# =======================

challenges_total = Counter(
    name="nestcheck_challenges_total",
    documentation="Total number of challenges",
    labelnames=["rule_set", "outcome"],  # outcome: passed, failed
    registry=REGISTRY,
)

challenge_failures_total = Counter(
    name="nestcheck_challenge_failures_total",
    documentation="Total number of recorded failures by failing rule",
    labelnames=["rule_name"],
    registry=REGISTRY,
)

challenge_duration_seconds = Histogram(
    name="nestcheck_challenge_duration_seconds",
    documentation="Time spent challenging a subject in seconds",
    labelnames=["rule_set"],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
    registry=REGISTRY,
)

# =======================
# RULE SET METRICS
# =======================

rule_sets_built_total = Counter(
    name="nestcheck_rule_sets_built_total",
    documentation="Total number of rule set builds",
    labelnames=["status"],  # status: success, error
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


class track_duration:
    """
    Context manager observing the duration of a block in a histogram

    Usage:
        with track_duration(challenge_duration_seconds, rule_set="person"):
            validator.challenge(subject, rule_set)

    The duration is observed whether the block raises or not.
    """

    def __init__(self, histogram: Histogram, **labels):
        self.child = histogram.labels(**labels)
        self.started = None

    def __enter__(self):
        self.started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.child.observe(time.perf_counter() - self.started)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """Increment a labelled counter."""
    counter.labels(**labels).inc(value)


# =======================
# METRICS COLLECTOR CLASS
# =======================

class ValidatorMetrics:
    """
    Metrics collector for a Validator.

    Passed to Validator(metrics=...); a validator without one records nothing.
    """

    def record_build(self, success: bool = True) -> None:
        """
        Record a rule set build.

        Args:
            success: Whether the source could be built
        """
        increment_counter(rule_sets_built_total, 1, status="success" if success else "error")

    def time_challenge(self, rule_set: str) -> track_duration:
        """Context manager timing one challenge."""
        return track_duration(challenge_duration_seconds, rule_set=rule_set)

    def record_challenge(self, rule_set: str, passed: bool, failures: Iterable[FailureRecord] = ()) -> None:
        """
        Record a challenge outcome.

        Args:
            rule_set: Rule set label
            passed: Verdict
            failures: Recorded failures, if recording
        """
        increment_counter(challenges_total, 1, rule_set=rule_set, outcome="passed" if passed else "failed")
        for failure in failures:
            increment_counter(challenge_failures_total, 1, rule_name=failure.rule_name)
