# Booking state machine: transition table and actor rules.
import pytest

from stayfinder.booking_state import (
    Actor,
    BookingStatus,
    TERMINAL_STATUSES,
    assert_actor_allowed,
    assert_transition,
    initial_status,
)
from stayfinder.errors import Forbidden, InvalidTransition


def test_initial_status_depends_on_instant_book():
    assert initial_status(False) == BookingStatus.PENDING
    assert initial_status(True) == BookingStatus.CONFIRMED


@pytest.mark.parametrize(
    "current,target",
    [
        (BookingStatus.PENDING, BookingStatus.CONFIRMED),
        (BookingStatus.PENDING, BookingStatus.CANCELLED),
        (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
        (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
    ],
)
def test_allowed_transitions(current, target):
    assert_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (BookingStatus.PENDING, BookingStatus.COMPLETED),
        (BookingStatus.CONFIRMED, BookingStatus.CONFIRMED),
        (BookingStatus.CANCELLED, BookingStatus.CONFIRMED),
        (BookingStatus.CANCELLED, BookingStatus.CANCELLED),
        (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
    ],
)
def test_rejected_transitions(current, target):
    with pytest.raises(InvalidTransition):
        assert_transition(current, target)


def test_terminal_states_have_no_exits():
    for terminal in TERMINAL_STATUSES:
        for target in BookingStatus:
            with pytest.raises(InvalidTransition):
                assert_transition(terminal, target)


def test_only_host_confirms():
    assert_actor_allowed(BookingStatus.CONFIRMED, Actor.HOST)
    with pytest.raises(Forbidden):
        assert_actor_allowed(BookingStatus.CONFIRMED, Actor.GUEST)


def test_guest_and_host_cancel():
    assert_actor_allowed(BookingStatus.CANCELLED, Actor.GUEST)
    assert_actor_allowed(BookingStatus.CANCELLED, Actor.HOST)


def test_completion_is_system_only():
    assert_actor_allowed(BookingStatus.COMPLETED, Actor.SYSTEM)
    with pytest.raises(Forbidden):
        assert_actor_allowed(BookingStatus.COMPLETED, Actor.HOST)


def test_pending_cannot_be_requested():
    with pytest.raises(InvalidTransition):
        assert_actor_allowed(BookingStatus.PENDING, Actor.HOST)
