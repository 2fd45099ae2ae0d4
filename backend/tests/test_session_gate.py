"""
Tests for SessionGate identity holding and change notification
"""
import pytest

from daily_question.core.errors import NotAuthenticated
from daily_question.services.session_gate import SessionGate


def test_starts_signed_out():
    gate = SessionGate()
    assert gate.current_identity is None
    assert gate.is_authenticated is False
    with pytest.raises(NotAuthenticated):
        gate.require_identity()


def test_sign_in_and_out_notify_listeners():
    gate = SessionGate()
    seen = []
    gate.subscribe(seen.append)

    assert gate.set_identity("A") is True
    assert gate.require_identity() == "A"
    assert gate.sign_out() is True

    assert seen == ["A", None]


def test_reasserting_same_identity_does_not_notify():
    gate = SessionGate("A")
    seen = []
    gate.subscribe(seen.append)

    assert gate.set_identity("A") is False
    assert seen == []


def test_unsubscribe_stops_notifications():
    gate = SessionGate()
    seen = []
    unsubscribe = gate.subscribe(seen.append)

    unsubscribe()
    unsubscribe()
    gate.set_identity("A")

    assert seen == []
