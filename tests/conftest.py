"""
Pytest configuration and fixtures for nestcheck tests

This module provides shared fixtures for unit and integration tests.
"""
import pytest

from nestcheck.config import NestcheckSettings, reset_settings
from nestcheck.core.rules import Challenger, FailureRecorder, RuleSetFactory, Validator
from nestcheck.core.types import EnumDomain
from nestcheck.core.validators import RuleProvider


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests of a single component"
    )
    config.addinivalue_line(
        "markers", "integration: Tests spanning factory, challenger and surfaces"
    )


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep NESTCHECK_* variables of the host out of the tests."""
    for name in ("RECURSION_LIMIT", "ENUM_DOMAIN", "LOG_LEVEL", "LOG_FORMAT", "RECORD_TRUNCATE"):
        monkeypatch.delenv(f"NESTCHECK_{name}", raising=False)
    reset_settings()
    yield
    reset_settings()


# =======================
# COMPONENT FIXTURES
# =======================

@pytest.fixture
def settings() -> NestcheckSettings:
    return NestcheckSettings()


@pytest.fixture
def provider() -> RuleProvider:
    """Default provider, scalar_nullable enum domain"""
    return RuleProvider()


@pytest.fixture
def equatable_provider() -> RuleProvider:
    """Provider whose enum only accepts bool, int and str"""
    return RuleProvider(EnumDomain.EQUATABLE)


@pytest.fixture
def factory(provider) -> RuleSetFactory:
    return RuleSetFactory(provider, recursion_limit=10)


@pytest.fixture
def challenger(provider, factory) -> Challenger:
    return Challenger(provider, recursion_limit=10, factory=factory)


@pytest.fixture
def recorder() -> FailureRecorder:
    return FailureRecorder()


@pytest.fixture
def validator(provider, settings) -> Validator:
    return Validator(rule_provider=provider, settings=settings)


# =======================
# RULE SET SOURCES
# =======================

@pytest.fixture
def person_source() -> dict:
    """Two-level tableElements: person -> address"""
    return {
        "tableElements": {
            "name": {"string": True, "minLength": 1},
            "age": {"integer": True, "range": [0, 150]},
            "email": {"optional": True, "email": True},
            "address": {
                "tableElements": {
                    "street": {"string": True},
                    "city": {"string": True},
                    "zip": {"optional": True, "digital": True},
                },
            },
        },
    }


@pytest.fixture
def person() -> dict:
    return {
        "name": "Ann",
        "age": 42,
        "address": {
            "street": "Main Street 1",
            "city": "Springfield",
        },
    }
