"""Client for the menu endpoints."""

import logging

from pydantic import ValidationError

from moms_kitchen_client.models.menu_models import MenuItem
from moms_kitchen_client.services.api_client import ApiClient

logger = logging.getLogger(__name__)


class MenuService:
    """Fetches menus available for ordering."""

    def __init__(self, api_client: ApiClient) -> None:
        self.api_client = api_client

    async def list_menus(self, limit: int = 20) -> list[MenuItem]:
        """Fetch the menus on offer.

        The listing may come wrapped in a ``data`` envelope or bare; menus
        that fail validation are skipped.

        Args:
            limit: Maximum number of menus to fetch

        Returns:
            List of MenuItem objects, empty list if none are on offer
        """
        body = await self.api_client.get("/api/menus", params={"limit": limit})
        payload = body.get("data") if isinstance(body.get("data"), dict) else body
        raw_menus = payload.get("menus")
        if not isinstance(raw_menus, list):
            return []

        menus = []
        for menu_data in raw_menus:
            try:
                menus.append(MenuItem.model_validate(menu_data))
            except ValidationError as e:
                logger.warning(f"Skipping malformed menu: {e}")
        return menus

    async def get_menu(self, menu_id: str) -> MenuItem:
        body = await self.api_client.get(f"/api/menus/{menu_id}")
        data = body.get("data") or {}
        return MenuItem.model_validate(data.get("menu", data))
