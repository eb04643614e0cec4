from __future__ import annotations

import pytest

from remex.domain.entities import (
    ConnectionIdentity,
    Executable,
    ExecutableId,
    ExecutionResult,
    Session,
    SessionPhase,
    SessionState,
)


def test_identifiers_reject_blank_values() -> None:
    with pytest.raises(ValueError):
        ExecutableId("")
    with pytest.raises(ValueError):
        ConnectionIdentity("   ")
    assert str(ExecutableId("e1")) == "e1"
    assert str(ConnectionIdentity("c1")) == "c1"


def test_executable_payload_roundtrip_keeps_name() -> None:
    item = Executable.from_payload({"id": 12, "name": None})

    assert item == Executable(ExecutableId("12"), "")
    assert Executable(ExecutableId("e1"), "job").to_payload() == {"id": "e1", "name": "job"}


def test_execution_result_parsing() -> None:
    result = ExecutionResult.from_payload({"exitCode": "1", "stdout": None})

    assert result == ExecutionResult(exit_code=1, stdout="", stderr="")
    assert result.succeeded is False
    assert ExecutionResult(exit_code=0).succeeded is True
    with pytest.raises(ValueError):
        ExecutionResult.from_payload({"exitCode": True})
    with pytest.raises(ValueError):
        ExecutionResult.from_payload({"exitCode": "abc"})


def test_session_append_is_ordered_and_rejects_duplicates() -> None:
    first = Executable(ExecutableId("e1"), "a")
    second = Executable(ExecutableId("e2"), "b")
    session = Session().with_executable(first).with_executable(second)

    assert session.executables == (first, second)
    assert session.find(ExecutableId("e2")) == second
    assert session.find(ExecutableId("zz")) is None
    with pytest.raises(ValueError):
        session.with_executable(Executable(ExecutableId("e1"), "again"))


def test_session_from_executables_drops_later_duplicates() -> None:
    session = Session.from_executables(
        [Executable(ExecutableId("e1"), "a"), Executable(ExecutableId("e1"), "b")]
    )

    assert session.executables == (Executable(ExecutableId("e1"), "a"),)


def test_state_phase_progression() -> None:
    state = SessionState()
    assert state.phase is SessionPhase.CONNECTING

    state.identity = ConnectionIdentity("c1")
    state.auth_pending = True
    state.auto_login = True
    assert state.phase is SessionPhase.AUTO_LOGIN_PENDING

    state.auto_login = False
    assert state.phase is SessionPhase.UNAUTHENTICATED

    state.session = Session()
    assert state.phase is SessionPhase.AUTHENTICATED
    assert state.snapshot().authenticated is True

    state.connection_lost = True
    assert state.phase is SessionPhase.DISCONNECTED


def test_snapshot_is_detached_from_state() -> None:
    state = SessionState(identity=ConnectionIdentity("c1"), ready=True)
    snap = state.snapshot()

    state.ready = False

    assert snap.ready is True
    assert snap.executables == ()
    assert snap.last_error_message is None
