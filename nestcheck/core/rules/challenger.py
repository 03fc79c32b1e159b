"""
Recursive validation engine.

Challenger walks a subject and a RuleSet in parallel, applying the rules of
every node through the rule provider. Validator is the application-facing
facade bundling one provider, one factory and one challenger.

Neither class keeps per-call state on the instance; the failure recorder
is a parameter (Challenger) or thread-local (Validator).
"""

import threading
from typing import Any

from nestcheck.config import NestcheckSettings, get_settings
from nestcheck.core.models import ChallengeResult, ListItems, RuleSet, TableElements
from nestcheck.core.types import MISSING
from nestcheck.core.validators import BaseRuleProvider, RuleProvider, enum_contains
from nestcheck.observability.logger import get_logger

from .failure_recorder import FailureRecorder, describe_rule
from .rule_set_factory import RuleSetFactory

logger = get_logger(__name__)


class Challenger:
    """
    Validates subjects against rule sets.

    Options are a bitmask:
    - RECORD: record failures in a FailureRecorder
    - CONTINUE: don't stop at the first failure; only effective with RECORD

    Usage:
        challenger = Challenger(provider)
        recorder = FailureRecorder()
        passed = challenger.challenge(subject, rule_set, Challenger.RECORD | Challenger.CONTINUE, recorder)
    """

    RECORD = 1
    CONTINUE = 2

    def __init__(
        self,
        rule_provider: BaseRuleProvider,
        recursion_limit: int | None = None,
        factory: RuleSetFactory | None = None,
        record_truncate: int | None = None,
    ):
        """
        Initialize the challenger.

        Args:
            rule_provider: Provider applying the rules
            recursion_limit: Maximum depth of a challenged node (default: settings)
            factory: Factory building raw rule set sources passed to challenge()
            record_truncate: Maximum length of recorded string subjects (default: settings)
        """
        settings = get_settings()
        self.rule_provider = rule_provider
        self.recursion_limit = recursion_limit if recursion_limit is not None else settings.recursion_limit
        self.factory = factory or RuleSetFactory(rule_provider, self.recursion_limit)
        self.record_truncate = record_truncate if record_truncate is not None else settings.record_truncate

    def challenge(
        self,
        subject: Any,
        rule_set: RuleSet | Any,
        options: int = 0,
        recorder: FailureRecorder | None = None,
    ) -> bool:
        """
        Validate subject against a rule set.

        Args:
            subject: Data to validate; never mutated
            rule_set: RuleSet, or raw source to be built by the factory
            options: Bitmask of RECORD and CONTINUE
            recorder: Recorder to use; implies RECORD

        Returns:
            True if the subject passes

        Raises:
            RuleSetError: If rule_set is a raw source that cannot be built
        """
        rule_set = self.factory.make(rule_set)
        record = bool(options & self.RECORD) or recorder is not None
        if record and recorder is None:
            recorder = FailureRecorder(self.record_truncate)
        walk = _Challenge(
            self.rule_provider,
            self.recursion_limit,
            recorder if record else None,
            record and bool(options & self.CONTINUE),
        )
        passed = walk.node(subject, rule_set, 0, (), root=True)
        logger.debug(f"Challenge {'passed' if passed else 'failed'}")
        return passed


class _Challenge:
    """State of a single challenge; discarded when the challenge returns."""

    def __init__(
        self,
        provider: BaseRuleProvider,
        recursion_limit: int,
        recorder: FailureRecorder | None,
        cont: bool,
    ):
        self.provider = provider
        self.recursion_limit = recursion_limit
        self.recorder = recorder
        self.cont = cont

    def record(self, key_path: tuple[Any, ...], depth: int, rule_name: str, reason: str, subject: Any) -> None:
        if self.recorder is not None:
            self.recorder.record(key_path, depth, rule_name, reason, subject)

    def node(self, subject: Any, rule_set: RuleSet, depth: int, key_path: tuple[Any, ...], root: bool = False) -> bool:
        if depth >= self.recursion_limit:
            logger.warning(f"Stopped challenge at recursion limit[{self.recursion_limit}], depth {depth}")
            self.record(key_path, depth, "recursion", f"recursion limit[{self.recursion_limit}] exceeded", subject)
            return False

        if subject is MISSING:
            # optional is ignored at root.
            if rule_set.optional and not root:
                return True
            self.record(key_path, depth, "optional", "missing required element", subject)
            return False

        if subject is None and (
            rule_set.nullable
            or (rule_set.alternative_enum is not None and None in rule_set.alternative_enum)
        ):
            return True

        failed = self.first_failing_rule(subject, rule_set)
        if failed is not None:
            if rule_set.alternative_enum is not None and enum_contains(
                self.provider.enum_domain, subject, rule_set.alternative_enum
            ):
                return True
            if rule_set.alternative_rule_set is not None:
                return self.node(subject, rule_set.alternative_rule_set, depth, key_path, root)
            self.record(key_path, depth, failed.name, describe_rule(failed.name, failed.arguments), subject)
            return False

        if rule_set.table_elements is not None:
            mark = self.recorder.mark() if self.recorder is not None else 0
            if self.table_elements(subject, rule_set.table_elements, depth, key_path):
                return True
            if rule_set.list_items is None:
                return False
            if not self.list_items(subject, rule_set.list_items, depth, key_path, quiet=True):
                return False
            if self.recorder is not None:
                self.recorder.rollback(mark)
            return True

        if rule_set.list_items is not None:
            return self.list_items(subject, rule_set.list_items, depth, key_path)

        return True

    def first_failing_rule(self, subject: Any, rule_set: RuleSet):
        for invocation in rule_set.rules:
            if not self.provider.apply(invocation.name, subject, *invocation.arguments):
                return invocation
        return None

    def table_elements(
        self, subject: Any, table: TableElements, depth: int, key_path: tuple[Any, ...]
    ) -> bool:
        buckets = self.provider.buckets(subject)
        if buckets is None:
            self.record(key_path, depth, "tableElements", "subject is not a container", subject)
            return False

        # Keys compare as strings; JSON object keys always are.
        declared = {str(key): (key, rule_set) for key, rule_set in table.rules_by_elements.items()}
        whitelist = {str(key) for key in table.whitelist}
        blacklist = {str(key) for key in table.blacklist}
        present = set()
        passed = True

        for key, value in buckets:
            str_key = str(key)
            present.add(str_key)
            element_path = (*key_path, key)
            if str_key in declared:
                valid = self.node(value, declared[str_key][1], depth + 1, element_path)
            elif table.exclusive:
                self.record(element_path, depth + 1, "tableElements", "key is not allowed, exclusive", value)
                valid = False
            elif table.whitelist and str_key not in whitelist:
                self.record(element_path, depth + 1, "tableElements", "key is not whitelisted", value)
                valid = False
            elif str_key in blacklist:
                self.record(element_path, depth + 1, "tableElements", "key is blacklisted", value)
                valid = False
            else:
                valid = True
            if not valid:
                passed = False
                if not self.cont:
                    return False

        for str_key, (key, rule_set) in declared.items():
            if str_key in present:
                continue
            if not self.node(MISSING, rule_set, depth + 1, (*key_path, key)):
                passed = False
                if not self.cont:
                    return False

        return passed

    def list_items(
        self,
        subject: Any,
        list_items: ListItems,
        depth: int,
        key_path: tuple[Any, ...],
        quiet: bool = False,
    ) -> bool:
        """
        Args:
            quiet: Don't record that the subject isn't list-like; the caller
                already recorded the failures of tableElements
        """
        if not isinstance(subject, (list, tuple)):
            if not quiet:
                self.record(key_path, depth, "listItems", "subject is not list-like", subject)
            return False

        passed = True
        for index, item in enumerate(subject):
            if not self.node(item, list_items.item_rules, depth + 1, (*key_path, index)):
                passed = False
                if not self.cont:
                    return False

        count = len(subject)
        if list_items.min_occur and count < list_items.min_occur:
            self.record(key_path, depth, "listItems", f"minOccur[{list_items.min_occur}] not reached", subject)
            passed = False
        elif list_items.max_occur and count > list_items.max_occur:
            self.record(key_path, depth, "listItems", f"maxOccur[{list_items.max_occur}] exceeded", subject)
            passed = False
        return passed


class Validator:
    """
    Application-facing validator.

    Construct once at start-up and inject where needed. The last failure
    recorder is kept per thread, so concurrent challenges don't mix.

    Usage:
        validator = Validator()
        rule_set = validator.make({"tableElements": {"name": {"string": True}}})
        if not validator.challenge(data, rule_set, Validator.RECORD):
            print(validator.get_last_failure())
    """

    RECORD = Challenger.RECORD
    CONTINUE = Challenger.CONTINUE

    def __init__(
        self,
        rule_provider: BaseRuleProvider | None = None,
        settings: NestcheckSettings | None = None,
        metrics=None,
    ):
        """
        Initialize the validator.

        Args:
            rule_provider: Provider of rules (default: RuleProvider with the settings' enum domain)
            settings: Configuration (default: from environment)
            metrics: Optional ValidatorMetrics collaborator
        """
        self.settings = settings or get_settings()
        self.rule_provider = rule_provider or RuleProvider(self.settings.enum_domain)
        self.factory = RuleSetFactory(self.rule_provider, self.settings.recursion_limit)
        self.challenger = Challenger(
            self.rule_provider,
            self.settings.recursion_limit,
            factory=self.factory,
            record_truncate=self.settings.record_truncate,
        )
        self.metrics = metrics
        self._local = threading.local()

    def make(self, source: Any) -> RuleSet:
        """
        Build a RuleSet.

        Raises:
            RuleSetError: If the source is malformed
        """
        if self.metrics is None:
            return self.factory.make(source)
        try:
            rule_set = self.factory.make(source)
        except ValueError:
            self.metrics.record_build(success=False)
            raise
        self.metrics.record_build(success=True)
        return rule_set

    def challenge(self, subject: Any, rule_set: RuleSet | Any, options: int = 0, name: str = "default") -> bool:
        """
        Validate subject against a rule set.

        Args:
            subject: Data to validate
            rule_set: RuleSet or raw source
            options: Bitmask of RECORD and CONTINUE
            name: Rule set label for metrics

        Returns:
            True if the subject passes
        """
        recorder = FailureRecorder(self.settings.record_truncate) if options & self.RECORD else None
        self._local.recorder = recorder
        if self.metrics is None:
            return self.challenger.challenge(subject, rule_set, options, recorder)
        with self.metrics.time_challenge(name):
            passed = self.challenger.challenge(subject, rule_set, options, recorder)
        self.metrics.record_challenge(name, passed, recorder.failures if recorder is not None else [])
        return passed

    def get_last_failure(self, delimiter: str = "\n") -> str:
        """
        Failures recorded by this thread's latest challenge with RECORD.

        Returns:
            Failure lines joined by delimiter; empty string if none
        """
        recorder = getattr(self._local, "recorder", None)
        if recorder is None:
            return ""
        return recorder.get_last_failure(delimiter)

    def validate(self, subject: Any, rule_set: RuleSet | Any, name: str = "default") -> ChallengeResult:
        """
        Validate, recording every failure.

        Returns:
            ChallengeResult carrying the verdict and all failures
        """
        passed = self.challenge(subject, rule_set, self.RECORD | self.CONTINUE, name)
        return ChallengeResult(passed=passed, failures=self._local.recorder.failures)
