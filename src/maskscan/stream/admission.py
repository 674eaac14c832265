"""
Admission Guard
===============

Single-flight admission control for per-frame work.

The guard is a two-state machine, IDLE -> PROCESSING -> IDLE. Entering is an
atomic compare-and-swap; a frame that arrives while the guard is PROCESSING
is rejected, never queued.

Entering yields an AdmissionTicket. Whoever holds the ticket owns the
pipeline's frame slot. The ticket can be handed to another thread with
transfer(); the holder must release() it when done. Releasing is idempotent,
so the guard returns to IDLE exactly once per admitted frame.

Example:
    guard = AdmissionGuard()

    with guard.admit() as ticket:
        if ticket is None:
            return  # busy, drop the frame
        prepare_frame()
        worker.submit(ticket.transfer())
"""

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional


logger = logging.getLogger(__name__)


class AdmissionState(str, Enum):
    """Guard states."""

    IDLE = "IDLE"
    PROCESSING = "PROCESSING"


class AdmissionTicket:
    """Proof of admission; releasing it returns the guard to IDLE."""

    __slots__ = ("_guard", "_released", "_transferred", "sequence")

    def __init__(self, guard: "AdmissionGuard", sequence: int) -> None:
        self._guard = guard
        self._released = False
        self._transferred = False
        self.sequence = sequence

    @property
    def released(self) -> bool:
        return self._released

    @property
    def transferred(self) -> bool:
        return self._transferred

    def transfer(self) -> "AdmissionTicket":
        """Mark the ticket as handed off; the admit() scope will not release it."""
        self._transferred = True
        return self

    def release(self) -> bool:
        """
        Return the guard to IDLE.

        Returns:
            True if this call released the guard, False if already released.
        """
        return self._guard._release(self)


class AdmissionGuard:
    """
    Atomic IDLE/PROCESSING admission state.

    Attributes:
        admitted_count: Tickets issued
        rejected_count: Attempts refused while busy
        released_count: Tickets returned
    """

    def __init__(self) -> None:
        self._state = AdmissionState.IDLE
        self._cond = threading.Condition()
        self._sequence = 0
        self.admitted_count = 0
        self.rejected_count = 0
        self.released_count = 0

    @property
    def state(self) -> AdmissionState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is AdmissionState.PROCESSING

    def _compare_and_set(self, expected: AdmissionState, new: AdmissionState) -> bool:
        # Caller holds self._cond
        if self._state is not expected:
            return False
        self._state = new
        return True

    def try_acquire(self) -> Optional[AdmissionTicket]:
        """
        Enter PROCESSING if the guard is IDLE.

        Returns:
            A ticket, or None when another frame is in flight.
        """
        with self._cond:
            if not self._compare_and_set(AdmissionState.IDLE, AdmissionState.PROCESSING):
                self.rejected_count += 1
                return None
            self._sequence += 1
            self.admitted_count += 1
            return AdmissionTicket(self, self._sequence)

    @contextmanager
    def admit(self) -> Iterator[Optional[AdmissionTicket]]:
        """
        Scope one admission attempt.

        Yields a ticket or None. On exit, including exceptions, the ticket
        is released unless it was transferred.
        """
        ticket = self.try_acquire()
        try:
            yield ticket
        finally:
            if ticket is not None and not ticket.transferred:
                ticket.release()

    def _release(self, ticket: AdmissionTicket) -> bool:
        with self._cond:
            if ticket._released:
                return False
            ticket._released = True
            if not self._compare_and_set(AdmissionState.PROCESSING, AdmissionState.IDLE):
                logger.error(
                    f"Admission ticket {ticket.sequence} released while guard was idle"
                )
                return False
            self.released_count += 1
            self._cond.notify_all()
            return True

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the guard is IDLE.

        Returns:
            True if idle, False on timeout.
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: self._state is AdmissionState.IDLE, timeout=timeout
            )

    def metrics(self) -> dict:
        """Export guard counters."""
        return {
            "state": self._state.value,
            "admitted": self.admitted_count,
            "rejected": self.rejected_count,
            "released": self.released_count,
        }
