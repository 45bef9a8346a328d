"""Client for order and payment endpoints."""

import logging
from typing import Any

from pydantic import ValidationError

from moms_kitchen_client.models.order_models import Order, OrderPayload, PaymentHandle
from moms_kitchen_client.services.api_client import ApiClient

logger = logging.getLogger(__name__)


class OrderService:
    """Creates, lists and cancels orders and reports payment outcomes."""

    def __init__(self, api_client: ApiClient) -> None:
        self.api_client = api_client

    async def create_order(self, payload: OrderPayload) -> dict[str, Any]:
        """Submit an order.

        Returns:
            The raw response body; for online checkout it carries the
            payment handle (see ``payment_handle``)
        """
        return await self.api_client.post("/api/orders", json=payload.model_dump())

    @staticmethod
    def payment_handle(body: dict[str, Any]) -> PaymentHandle:
        """Extract the payment handle from a create-order response."""
        source = body
        if not body.get("clientSecret") and isinstance(body.get("data"), dict):
            source = body["data"]
        return PaymentHandle.model_validate(source)

    async def list_orders(self, limit: int = 50) -> list[Order]:
        """Fetch the user's orders; malformed entries are skipped."""
        body = await self.api_client.get("/api/orders", params={"limit": limit})
        data = body.get("data") or {}
        orders = []
        for order_data in data.get("orders") or []:
            try:
                orders.append(Order.model_validate(order_data))
            except ValidationError as e:
                logger.warning(f"Skipping malformed order: {e}")
        return orders

    async def get_order(self, order_id: str) -> Order:
        body = await self.api_client.get(f"/api/orders/{order_id}")
        data = body.get("data") or {}
        return Order.model_validate(data.get("order", data))

    async def cancel_order(self, order_id: str) -> dict[str, Any]:
        """Cancel an order.

        Returns:
            Updated order fields from the server (may be empty)
        """
        body = await self.api_client.put(f"/api/orders/{order_id}/cancel")
        data = body.get("data")
        if isinstance(data, dict):
            order = data.get("order")
            return order if isinstance(order, dict) else data
        return {}

    async def verify_payment(self, payment_intent_id: str) -> bool:
        """Ask the server to confirm a payment succeeded."""
        body = await self.api_client.post(
            "/api/payments/verify-payment", json={"payment_intent_id": payment_intent_id}
        )
        return bool(body.get("success"))

    async def fail_payment(self, payment_intent_id: str) -> None:
        """Report a failed or cancelled payment so the order is not left pending."""
        await self.api_client.post("/api/payments/fail-payment", json={"payment_intent_id": payment_intent_id})
        logger.info(f"Reported failed payment {payment_intent_id}")
