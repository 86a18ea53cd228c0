"""Tests for decision records and the queued JSON decision sink."""

import io
import json
import logging
import time
from logging.handlers import QueueHandler

from module_authz.engine.decision import DECISION_LOGGER_NAME, DecisionLog, DecisionReason
from module_authz.engine.enums import Action, Module, Role
from module_authz.engine.evaluator import Evaluator
from module_authz.engine.matrix import build_default_matrix
from module_authz.engine.requirements import ModuleAction, RoleSet
from module_authz.logging_config import DecisionJsonFormatter, configure_decision_log


def test_denial_record_lists_attempted_roles(evaluator, caller):
    decision = evaluator.evaluate(ModuleAction(Module.PPE_MANAGEMENT, Action.DELETE), caller("Employee", "Nope"))
    record = decision.to_log_record()
    assert record["granted"] is False
    assert record["reason"] == DecisionReason.NOT_PERMITTED.value
    assert record["attempted_roles"] == ["Employee", "Nope"]
    assert record["unparsed_roles"] == ["Nope"]
    assert "granted_by" not in record


def test_grant_record_names_role(evaluator, caller):
    record = evaluator.evaluate(RoleSet(frozenset({Role.ADMIN})), caller("Admin")).to_log_record()
    assert record["granted_by"] == "Admin"
    assert "attempted_roles" not in record


def test_decision_log_uses_given_logger(caller):
    logger = logging.getLogger("tests.decisions")
    seen: list[logging.LogRecord] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            seen.append(record)

    handler = _Collect()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        Evaluator(build_default_matrix(), DecisionLog(logger)).evaluate(
            ModuleAction(Module.DASHBOARD, Action.READ), caller("Viewer")
        )
    finally:
        logger.removeHandler(handler)

    assert len(seen) == 1
    assert seen[0].levelno == logging.INFO
    assert seen[0].authz_decision["granted"] is True


def test_json_formatter_merges_decision():
    record = logging.LogRecord("module_authz.decisions", logging.WARNING, __file__, 1, "denied %s", ("x",), None)
    record.authz_decision = {"granted": False, "user_id": "u1"}
    payload = json.loads(DecisionJsonFormatter().format(record))
    assert payload["message"] == "denied x"
    assert payload["level"] == "WARNING"
    assert payload["granted"] is False
    assert payload["user_id"] == "u1"
    assert "timestamp" in payload


def test_configure_decision_log_writes_json_lines(evaluator, caller):
    stream = io.StringIO()
    listener = configure_decision_log(logging.StreamHandler(stream), queue_size=100)
    try:
        evaluator.evaluate(ModuleAction(Module.INCIDENT_MANAGEMENT, Action.CREATE), caller("IncidentManager"))
        evaluator.evaluate(ModuleAction(Module.INCIDENT_MANAGEMENT, Action.DELETE), caller("Viewer"))
    finally:
        listener.stop()  # flushes the queue

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert [line["granted"] for line in lines] == [True, False]
    assert lines[0]["granted_by"] == "IncidentManager"
    assert lines[1]["attempted_roles"] == ["Viewer"]


def test_configure_decision_log_replaces_previous_queue():
    first = configure_decision_log(logging.NullHandler())
    second = configure_decision_log(logging.NullHandler())
    try:
        handlers = [h for h in logging.getLogger("module_authz.decisions").handlers if isinstance(h, QueueHandler)]
        assert len(handlers) == 1
    finally:
        first.stop()
        second.stop()


def test_full_queue_drops_instead_of_blocking(evaluator, caller, monkeypatch):
    # Listener stopped, so nothing drains the queue.
    monkeypatch.setattr(logging, "raiseExceptions", False)
    listener = configure_decision_log(logging.NullHandler(), queue_size=1)
    listener.stop()
    for _ in range(5):
        assert evaluator.evaluate(ModuleAction(Module.DASHBOARD, Action.READ), caller("Viewer")).granted


def test_slow_root_handler_does_not_delay_decisions(evaluator, caller):
    seen: list[logging.LogRecord] = []

    class _Slow(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            seen.append(record)
            time.sleep(0.5)

    root = logging.getLogger()
    slow = _Slow()
    listener = configure_decision_log(logging.NullHandler())
    root.addHandler(slow)
    try:
        started = time.perf_counter()
        decision = evaluator.evaluate(ModuleAction(Module.DASHBOARD, Action.READ), caller("Viewer"))
        elapsed = time.perf_counter() - started
    finally:
        root.removeHandler(slow)
        listener.stop()

    assert decision.granted is True
    assert elapsed < 0.25
    assert [r for r in seen if r.name == DECISION_LOGGER_NAME] == []
    assert logging.getLogger(DECISION_LOGGER_NAME).propagate is False


def test_invalid_claims_stay_out_of_decision_stream(evaluator, caller, caplog):
    caplog.set_level(logging.WARNING, logger="module_authz")
    stream = io.StringIO()
    listener = configure_decision_log(logging.StreamHandler(stream), queue_size=100)
    try:
        evaluator.evaluate(ModuleAction(Module.DASHBOARD, Action.READ), caller("Ghost", "Phantom", "Viewer"))
    finally:
        listener.stop()

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert len(lines) == 1
    assert lines[0]["granted"] is True
    assert lines[0]["granted_by"] == "Viewer"

    notes = [r for r in caplog.records if "invalid role" in r.getMessage()]
    assert [r.name for r in notes] == ["module_authz.engine.evaluator"] * 2
