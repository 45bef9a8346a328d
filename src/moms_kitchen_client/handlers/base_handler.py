"""Base class for screens gated by ordering windows.

A gated screen loads settings when it mounts, evaluates its gate right away
and then re-evaluates it every poll interval until it unmounts.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime

from moms_kitchen_client.exceptions import ApiError
from moms_kitchen_client.models.order_models import AppSettings, OrderingWindow
from moms_kitchen_client.models.result_models import Notice
from moms_kitchen_client.services.ordering_gate import OrderingGate
from moms_kitchen_client.services.scheduler import DEFAULT_INTERVAL_SECONDS, PeriodicTask
from moms_kitchen_client.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

NoticeListener = Callable[[Notice], None]


class GatedScreenHandler(ABC):
    """Screen whose actions are allowed only inside configured time windows."""

    def __init__(
        self,
        settings_service: SettingsService,
        gate: OrderingGate,
        clock: Callable[[], datetime] = datetime.now,
        poll_interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        on_notice: NoticeListener | None = None,
    ) -> None:
        """Initialize the screen handler.

        Args:
            settings_service: Source of the window configuration
            gate: Gate evaluated by this screen
            clock: Returns the current local wall-clock time
            poll_interval_seconds: Seconds between gate evaluations
            on_notice: Called with every notice raised by the screen
        """
        self.settings_service = settings_service
        self.gate = gate
        self.clock = clock
        self.poll_interval_seconds = poll_interval_seconds
        self.on_notice = on_notice
        self.settings: AppSettings | None = None
        self.notices: list[Notice] = []
        self._poller: PeriodicTask | None = None

    @abstractmethod
    def windows_for(self, settings: AppSettings) -> list[OrderingWindow] | None:
        """Pick the windows this screen's gate is evaluated against."""
        pass

    @property
    def is_polling(self) -> bool:
        return self._poller is not None and self._poller.is_running

    async def load_settings(self) -> AppSettings | None:
        """Fetch settings and evaluate the gate against them.

        A failed fetch keeps the previous settings and gate state.
        """
        try:
            self.settings = await self.settings_service.get_settings()
        except ApiError as e:
            logger.error(f"Load settings failed: {e}")
            return self.settings

        self.check_gate()
        return self.settings

    def check_gate(self) -> bool | None:
        """Evaluate the gate for the current time.

        Returns:
            Gate state; unchanged when no settings are loaded yet
        """
        if self.settings is None:
            return self.gate.is_open
        return self.gate.evaluate(self.clock(), self.windows_for(self.settings))

    def start_polling(self) -> None:
        """Start re-evaluating the gate every poll interval."""
        if self.is_polling:
            return
        self._poller = PeriodicTask(
            self.check_gate,
            interval_seconds=self.poll_interval_seconds,
            name=f"{self.gate.name}-gate",
        ).start()

    async def unmount(self) -> None:
        """Stop polling. No timer outlives the screen."""
        if self._poller is not None:
            await self._poller.wait_stopped()
            self._poller = None

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)
