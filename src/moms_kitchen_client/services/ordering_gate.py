"""Ordering-window gate.

Decides whether checkout (or cancellation) is currently allowed by comparing
wall-clock time with the time-of-day windows configured on the server.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, time

from moms_kitchen_client.models.order_models import OrderingWindow

logger = logging.getLogger(__name__)


def format_hhmm(now: datetime | time) -> str:
    """Zero-padded 24-hour ``HH:MM`` for a clock reading."""
    return f"{now.hour:02d}:{now.minute:02d}"


def is_within_window(now: datetime | time, windows: Sequence[OrderingWindow] | None) -> bool:
    """Check whether ``now`` falls inside any window, bounds inclusive.

    Args:
        now: Clock reading; only hour and minute are used
        windows: Configured windows

    Returns:
        True iff windows is non-empty and one of them contains ``now``
    """
    if not windows:
        return False
    hhmm = format_hhmm(now)
    return any(window.contains(hhmm) for window in windows)


class OrderingGate:
    """Open/closed state derived from ordering windows.

    The state starts unknown (None). A missing or empty window list leaves
    the current state unchanged. ``on_close`` runs once per open-to-closed
    transition, never on repeated evaluations while closed, and never when
    the first known state is already closed.
    """

    def __init__(self, name: str = "ordering", on_close: Callable[[], None] | None = None) -> None:
        """Initialize a gate in the unknown state.

        Args:
            name: Label used in log messages
            on_close: Called when the gate goes from open to closed
        """
        self.name = name
        self.on_close = on_close
        self.is_open: bool | None = None
        self.windows: list[OrderingWindow] | None = None

    @property
    def allows(self) -> bool:
        """Whether the gated action may start now. Unknown counts as closed."""
        return self.is_open is True

    def evaluate(self, now: datetime | time, windows: Sequence[OrderingWindow] | None) -> bool | None:
        """Re-evaluate the gate for a clock reading.

        Args:
            now: Current wall-clock time
            windows: Windows from the latest settings

        Returns:
            The gate state after evaluation
        """
        if not windows:
            logger.debug(f"No {self.name} windows configured, gate state unchanged")
            return self.is_open

        self.windows = list(windows)
        was_open = self.is_open
        self.is_open = is_within_window(now, windows)

        if was_open != self.is_open:
            logger.info(f"{self.name.capitalize()} gate is now {'open' if self.is_open else 'closed'}")

        if was_open is True and self.is_open is False and self.on_close is not None:
            self.on_close()

        return self.is_open

    def refresh(self, now: datetime | time) -> bool | None:
        """Re-evaluate against the windows from the last evaluation.

        Lets screens that never fetch settings themselves keep the gate
        current. Stays unknown until some screen has loaded windows.
        """
        return self.evaluate(now, self.windows)
