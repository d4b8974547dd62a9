# Booking lifecycle: the closed set of statuses and who may move a booking between them.
from __future__ import annotations

import enum
from typing import Dict, FrozenSet

from .errors import Forbidden, InvalidTransition


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Actor(str, enum.Enum):
    GUEST = "guest"
    HOST = "host"
    SYSTEM = "system"


# Statuses that hold the dates; a new booking may not overlap any of them.
ACTIVE_STATUSES: FrozenSet[BookingStatus] = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
TERMINAL_STATUSES: FrozenSet[BookingStatus] = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})

# target status -> actors allowed to request it
ALLOWED_ACTORS: Dict[BookingStatus, FrozenSet[Actor]] = {
    BookingStatus.CONFIRMED: frozenset({Actor.HOST}),
    BookingStatus.CANCELLED: frozenset({Actor.GUEST, Actor.HOST}),
    BookingStatus.COMPLETED: frozenset({Actor.SYSTEM}),
}

# current status -> statuses reachable from it
TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


def initial_status(instant_book: bool) -> BookingStatus:
    return BookingStatus.CONFIRMED if instant_book else BookingStatus.PENDING


def assert_actor_allowed(target: BookingStatus, actor: Actor) -> None:
    """
    Raise Forbidden unless `actor` may request `target`.

    Checked before the transition itself so that, for example, a guest asking to
    confirm gets Forbidden whatever state the booking is in. Statuses nobody may
    request (pending) are an InvalidTransition.
    """
    if target not in ALLOWED_ACTORS:
        raise InvalidTransition(f"Bookings cannot be moved to '{target.value}'")
    if actor not in ALLOWED_ACTORS[target]:
        raise Forbidden(f"A {actor.value} may not set a booking to '{target.value}'")


def assert_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target not in TRANSITIONS.get(current, frozenset()):
        raise InvalidTransition(f"Invalid booking transition: {current.value} -> {target.value}")
