"""
Pytest fixtures for the test suite.

Engine tests build a fresh matrix, registry and authorizer per test; nothing
is shared through module globals. Web tests build their own FastAPI app.
"""
from __future__ import annotations

import logging
from logging.handlers import QueueHandler

import pytest

from module_authz.engine.decision import DECISION_LOGGER_NAME
from module_authz.engine.evaluator import Evaluator, build_authorizer
from module_authz.engine.identity import CallerIdentity
from module_authz.engine.matrix import build_default_matrix
from module_authz.engine.registry import build_policy_registry


@pytest.fixture
def matrix():
    return build_default_matrix()


@pytest.fixture
def registry():
    return build_policy_registry()


@pytest.fixture
def evaluator(matrix):
    return Evaluator(matrix)


@pytest.fixture
def authorizer(matrix):
    return build_authorizer(matrix)


@pytest.fixture
def caller():
    """Factory: caller("IncidentManager", "Employee") -> authenticated identity."""

    def _make(*roles: str, user_id: str = "user-1", display_name: str = "Test User") -> CallerIdentity:
        return CallerIdentity(user_id=user_id, display_name=display_name, roles=tuple(roles))

    return _make


@pytest.fixture(autouse=True)
def _reset_decision_logger():
    """Undo what an app lifespan may have done to the decision logger."""
    yield
    decision_logger = logging.getLogger(DECISION_LOGGER_NAME)
    for handler in list(decision_logger.handlers):
        if isinstance(handler, QueueHandler):
            decision_logger.removeHandler(handler)
    decision_logger.propagate = True


@pytest.fixture
def decision_records(caplog):
    """Callable returning captured records that carry a structured decision."""
    caplog.set_level(logging.DEBUG, logger="module_authz")

    def _records() -> list[logging.LogRecord]:
        return [r for r in caplog.records if hasattr(r, "authz_decision")]

    return _records
