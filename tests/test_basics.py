"""Basic unit tests for the slackbot package."""

from slackbot import (
    AlreadyDisconnectedError,
    CallbackError,
    DispatchDrop,
    EventType,
    HeartbeatTimeout,
    Hello,
    NotConnectedError,
    ProtocolError,
    SlackBot,
    SlackBotError,
    TransportError,
    __version__,
)


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert SlackBot is not None


def test_error_hierarchy():
    for cls in (TransportError, ProtocolError, DispatchDrop, CallbackError,
                HeartbeatTimeout, AlreadyDisconnectedError):
        assert issubclass(cls, SlackBotError)
    assert issubclass(NotConnectedError, TransportError)


def test_error_attributes():
    err = SlackBotError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    proto = ProtocolError("Slack error: invalid_auth", error="invalid_auth")
    assert proto.code == "protocol_error"
    assert proto.error == "invalid_auth"
    assert proto.details == {"error": "invalid_auth"}

    timeout = HeartbeatTimeout(last_ping=3, last_pong=0)
    assert timeout.code == "heartbeat_timeout"
    assert timeout.details == {"last_ping": 3, "last_pong": 0}

    assert AlreadyDisconnectedError().code == "already_disconnected"
    assert NotConnectedError().code == "not_connected"


def test_callback_error_keeps_cause():
    cause = ValueError("boom")
    err = CallbackError(Hello(), cause)
    assert err.__cause__ is cause
    assert err.details == {"type": "hello"}
    assert "boom" in str(err)


def test_event_constants():
    assert EventType.HELLO == "hello"
    assert EventType.MESSAGE == "message"
    assert EventType.PONG == "pong"
