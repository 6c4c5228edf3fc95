"""Tests for the exception hierarchy and result values."""

from __future__ import annotations

from burrow import Message
from burrow.exceptions import (
    BurrowError,
    MessageNotRegisteredError,
    MessageRegistrationError,
    MessagingConnectionError,
    MessagingError,
    MessagingSerializationError,
    SchemaDeclarationError,
)
from burrow.result import EnvelopeFault, FaultKind, Result


def test_all_errors_share_the_root() -> None:
    for exc in (
        SchemaDeclarationError,
        MessageRegistrationError,
        MessageNotRegisteredError,
        MessagingError,
    ):
        assert issubclass(exc, BurrowError)
    assert issubclass(MessagingConnectionError, MessagingError)
    assert issubclass(MessagingSerializationError, MessagingError)


def test_not_registered_error_keeps_type() -> None:
    class Stray(Message):
        pass

    e = MessageNotRegisteredError(Stray)
    assert e.message_type is Stray
    assert "Stray is not registered" in str(e)


def test_result_is_truthy_only_on_success() -> None:
    ok = Result.success({"a": 1})
    bad: Result[dict[str, int]] = Result.failure(FaultKind.PROJECTION_ERROR, "nope")
    assert ok and ok.unwrap() == {"a": 1}
    assert not bad
    assert str(bad.fault) == "nope"
    assert bad.fault == EnvelopeFault(FaultKind.PROJECTION_ERROR, "nope")
