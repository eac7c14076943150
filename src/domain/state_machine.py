# src/domain/state_machine.py

from enum import Enum
from typing import Dict, Set, Tuple

from src.domain.exceptions import InvalidStateTransitionError


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CONFIRMED_UNPAID = "CONFIRMED_UNPAID"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class BookingStateMachine:
    """
    Central lifecycle controller for booking transitions.
    Defines the legal state transitions.

    PENDING bookings hold locked inventory. The webhook moves them to
    CONFIRMED or FAILED, the abandoned-booking job to CANCELLED.
    CONFIRMED_UNPAID is kept for bookings taken before online payment
    was switched on; they can still be settled or cancelled.
    """

    _ALLOWED_TRANSITIONS: Dict[BookingStatus, Set[BookingStatus]] = {
        BookingStatus.PENDING: {
            BookingStatus.CONFIRMED,
            BookingStatus.FAILED,
            BookingStatus.CANCELLED,
        },
        BookingStatus.CONFIRMED_UNPAID: {
            BookingStatus.CONFIRMED,
            BookingStatus.CANCELLED,
        },
        BookingStatus.CONFIRMED: set(),
        BookingStatus.FAILED: set(),
        BookingStatus.CANCELLED: set(),
    }

    @classmethod
    def can_transition(
        cls,
        from_status: BookingStatus,
        to_status: BookingStatus,
    ) -> bool:
        """
        Returns True if transition is allowed.
        """
        cls._ensure_valid_status(from_status)
        cls._ensure_valid_status(to_status)

        return to_status in cls._ALLOWED_TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(
        cls,
        from_status: BookingStatus,
        to_status: BookingStatus,
    ) -> None:
        """
        Raises InvalidStateTransitionError if transition is illegal.
        """
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(
                from_state=from_status.value,
                to_state=to_status.value,
            )

    @classmethod
    def holds_inventory(cls, status: BookingStatus) -> bool:
        """
        Returns True for statuses whose quantity is counted as locked.
        """
        cls._ensure_valid_status(status)
        return status == BookingStatus.PENDING

    @classmethod
    def counts_as_sold(cls, status: BookingStatus) -> bool:
        cls._ensure_valid_status(status)
        return status in (BookingStatus.CONFIRMED, BookingStatus.CONFIRMED_UNPAID)

    @classmethod
    def sold_statuses(cls) -> Tuple[BookingStatus, ...]:
        return tuple(status for status in BookingStatus if cls.counts_as_sold(status))

    @classmethod
    def holding_statuses(cls) -> Tuple[BookingStatus, ...]:
        return tuple(status for status in BookingStatus if cls.holds_inventory(status))

    @staticmethod
    def _ensure_valid_status(status: BookingStatus) -> None:
        if not isinstance(status, BookingStatus):
            raise TypeError(
                f"Expected BookingStatus, got {type(status)}"
            )
