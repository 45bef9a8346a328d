"""Client for runtime settings (ordering windows)."""

import logging
from typing import Any

from pydantic import ValidationError

from moms_kitchen_client.models.order_models import AppSettings, OrderingWindow
from moms_kitchen_client.services.api_client import ApiClient

logger = logging.getLogger(__name__)

WINDOW_KEYS = ("orderingWindows", "ordering_windows", "cancellationWindows", "cancellation_windows")


class SettingsService:
    """Fetches settings served by ``GET /api/settings``."""

    def __init__(self, api_client: ApiClient) -> None:
        self.api_client = api_client

    async def get_settings(self) -> AppSettings:
        """Fetch the current settings.

        Windows that fail validation are skipped one by one, so a single bad
        entry never hides the valid ones.

        Returns:
            AppSettings; window lists are None when the server omits them
        """
        body = await self.api_client.get("/api/settings")
        data = body.get("data") or {}
        raw = data.get("settings")
        settings = AppSettings.model_validate(self._clean(raw if isinstance(raw, dict) else {}))
        if settings.ordering_windows is None:
            logger.warning("Settings did not include ordering windows")
        return settings

    @staticmethod
    def _clean(raw: dict[str, Any]) -> dict[str, Any]:
        cleaned = dict(raw)
        for key in WINDOW_KEYS:
            if key not in cleaned:
                continue
            entries = cleaned[key]
            if not isinstance(entries, list):
                logger.warning(f"Ignoring {key}: expected a list, got {type(entries).__name__}")
                cleaned[key] = None
                continue

            windows = []
            for entry in entries:
                try:
                    windows.append(OrderingWindow.model_validate(entry))
                except ValidationError as e:
                    logger.warning(f"Skipping malformed window in {key}: {e}")
            cleaned[key] = windows
        return cleaned
