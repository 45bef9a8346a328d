"""Client metrics for sessions, checkout and cart state."""

from opentelemetry import metrics

meter = metrics.get_meter("moms-kitchen-client")

token_refresh_counter = meter.create_counter(
    name="token_refresh_total",
    description="Access token refresh attempts by outcome",
    unit="1",
)

checkout_counter = meter.create_counter(
    name="checkout_total",
    description="Checkout attempts by payment method and outcome",
    unit="1",
)

cart_cleared_counter = meter.create_counter(
    name="cart_cleared_total",
    description="Cart clears by reason",
    unit="1",
)

api_response_time = meter.create_histogram(
    name="api_response_time_seconds",
    description="Response time for backend API calls",
    unit="s",
)


def record_token_refresh(outcome: str) -> None:
    """Record a token refresh attempt.

    Args:
        outcome: "success" or "failure"
    """
    token_refresh_counter.add(1, {"outcome": outcome})


def record_checkout(payment_method: str, outcome: str) -> None:
    """Record a checkout attempt.

    Args:
        payment_method: "cod" or "online"
        outcome: e.g. "confirmed", "rejected", "payment_failed"
    """
    checkout_counter.add(1, {"payment_method": payment_method, "outcome": outcome})


def record_cart_cleared(reason: str) -> None:
    """Record the cart being emptied.

    Args:
        reason: "checkout", "kitchen_closed" or "user"
    """
    cart_cleared_counter.add(1, {"reason": reason})


def record_api_call(method: str, path: str, duration_seconds: float) -> None:
    """Record a backend API call duration.

    Args:
        method: HTTP method
        path: Request path
        duration_seconds: Duration in seconds
    """
    api_response_time.record(duration_seconds, {"method": method, "path": path})
